"""
End-to-end allocation run: clock rows + transaction rows -> employee totals.

Data only flows forward. Shift normalization and transaction aggregation
run independently, presence is resolved on the slot grid, pools are
allocated, leftovers are redistributed per day, and the totals are checked
against the approved transaction tips.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional

from tippool.allocation import AllocationResult, allocate, validate_boh_ratio
from tippool.config import Settings
from tippool.diagnostics import Diagnostics
from tippool.errors import DateRangeMismatchError, StrandedTipsError
from tippool.intervals import generate_intervals, generate_shift_intervals, validate_interval_minutes
from tippool.models import EmployeeFinalTotal, IntervalAnchor, PresenceRecord, ShiftRecord, TransactionSlot
from tippool.presence import resolve_presence, resolve_shift_anchored_presence
from tippool.redistribution import RedistributionResult, redistribute, unallocated_by_day
from tippool.roles import Classifier, classify
from tippool.shifts import merge_shifts, normalize
from tippool.totals import VerificationResult, aggregate_totals, verify
from tippool.transactions import aggregate

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    interval_minutes: int
    boh_ratio: float
    shifts: List[ShiftRecord]
    transaction_slots: List[TransactionSlot]
    presence: List[PresenceRecord]
    allocation: AllocationResult
    redistribution: RedistributionResult
    totals: List[EmployeeFinalTotal]
    verification: VerificationResult
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    @property
    def transaction_total(self) -> float:
        return self.verification.expected

    def summary(self) -> Dict[str, Any]:
        allocated = sum(t.allocated_amount for t in self.totals)
        redistributed = sum(t.redistributed_amount for t in self.totals)
        paid = allocated + redistributed
        return {
            "transaction_total": self.transaction_total,
            "allocated_total": allocated,
            "redistributed_total": redistributed,
            "stranded_total": self.redistribution.stranded_total,
            "allocated_percent": (allocated / paid * 100) if paid else 0.0,
            "redistributed_percent": (redistributed / paid * 100) if paid else 0.0,
            "unallocated_by_day": {
                day.isoformat(): amount
                for day, amount in unallocated_by_day(self.allocation.unallocated).items()
            },
            "sanity_check_passed": self.verification.passed,
        }


def check_date_ranges(
    shifts: Iterable[ShiftRecord],
    slots: Iterable[TransactionSlot],
    strict: bool = True,
    diagnostics: Optional[Diagnostics] = None,
) -> None:
    """
    The clock date span and the transaction date span must overlap.

    Spans are compared, not individual dates: clock days 18 and 20 with
    transactions on the 19th pass here, and the 19th's tips are left to
    redistribution. Transaction dates are taken after any timezone
    conversion, so this check sees the same dates the slot join does.
    """
    clock_dates = {s.work_date for s in shifts}
    transaction_dates = {s.work_date for s in slots}
    if not clock_dates or not transaction_dates:
        return
    if min(clock_dates) <= max(transaction_dates) and min(transaction_dates) <= max(clock_dates):
        return
    error = DateRangeMismatchError(clock_dates, transaction_dates)
    if strict:
        raise error
    if diagnostics is not None:
        diagnostics.warning("date_range_mismatch", str(error))
    else:
        logger.warning(str(error))


def _reference_dates(shifts: Iterable[ShiftRecord], slots: Iterable[TransactionSlot]) -> List[date]:
    return sorted({s.work_date for s in shifts} | {s.work_date for s in slots})


def run_pipeline(
    clock_rows: Iterable[Mapping[str, Any]],
    transaction_rows: Iterable[Mapping[str, Any]],
    settings: Optional[Settings] = None,
    classifier: Classifier = classify,
) -> PipelineResult:
    """
    Run every allocation step and return all intermediate tables.

    Raises DateRangeMismatchError and StrandedTipsError in strict mode. A
    failed conservation check is reported on ``result.verification``; call
    ``raise_for_status()`` on it to make it fatal.
    """
    settings = settings or Settings()
    diagnostics = Diagnostics()
    minutes = validate_interval_minutes(settings.interval_minutes, diagnostics)
    ratio = validate_boh_ratio(settings.boh_ratio, diagnostics)

    shifts = normalize(clock_rows, diagnostics)
    if settings.merge_shifts:
        shifts = merge_shifts(shifts, settings.merge_tolerance_minutes, diagnostics)

    if settings.convert_timezone:
        zones = (settings.source_timezone, settings.target_timezone)
    else:
        zones = (None, None)
    slots = aggregate(transaction_rows, minutes, *zones, diagnostics=diagnostics)

    check_date_ranges(shifts, slots, settings.strict, diagnostics)

    if IntervalAnchor(settings.anchor) is IntervalAnchor.SHIFT:
        shift_intervals = generate_shift_intervals(shifts, minutes)
        presence = resolve_shift_anchored_presence(shift_intervals, minutes, classifier)
    else:
        intervals = generate_intervals(_reference_dates(shifts, slots), minutes)
        presence = resolve_presence(intervals, shifts, classifier)

    allocation = allocate(slots, presence, ratio, settings.policy, diagnostics)
    redistribution = redistribute(allocation.unallocated, shifts, diagnostics)
    if redistribution.stranded and settings.strict:
        raise StrandedTipsError(redistribution.stranded)

    roster = sorted({s.employee_id for s in shifts})
    totals = aggregate_totals(allocation.shares, redistribution.shares, roster)
    verification = verify(totals, slots, settings.tolerance)
    if not verification.passed:
        diagnostics.error(
            "conservation_failed",
            f"Allocated ${verification.actual:.2f} but transactions total ${verification.expected:.2f}",
            delta=verification.delta,
        )

    return PipelineResult(
        interval_minutes=minutes,
        boh_ratio=ratio,
        shifts=shifts,
        transaction_slots=slots,
        presence=presence,
        allocation=allocation,
        redistribution=redistribution,
        totals=totals,
        verification=verification,
        diagnostics=diagnostics,
    )
