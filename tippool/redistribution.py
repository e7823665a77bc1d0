from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Set

from tippool.diagnostics import Diagnostics
from tippool.models import RedistributedShare, ShiftRecord, UnallocatedTip


@dataclass
class RedistributionResult:
    shares: List[RedistributedShare] = field(default_factory=list)
    # work date -> amount nobody was on the roster to receive
    stranded: Dict[date, float] = field(default_factory=dict)

    @property
    def stranded_total(self) -> float:
        return sum(self.stranded.values())


def daily_roster(shifts: Iterable[ShiftRecord]) -> Dict[date, List[str]]:
    """Distinct employees per work date, including shifts missing a clock-out."""
    roster: Dict[date, Set[str]] = defaultdict(set)
    for shift in shifts:
        roster[shift.work_date].add(shift.employee_id)
    return {day: sorted(names) for day, names in roster.items()}


def unallocated_by_day(unallocated: Iterable[UnallocatedTip]) -> Dict[date, float]:
    totals: Dict[date, float] = defaultdict(float)
    for tip in sorted(unallocated, key=lambda t: (t.work_date, t.slot_start or datetime.min)):
        totals[tip.work_date] += tip.amount
    return dict(sorted(totals.items()))


def redistribute(
    unallocated: Iterable[UnallocatedTip],
    shifts: Iterable[ShiftRecord],
    diagnostics: Optional[Diagnostics] = None,
) -> RedistributionResult:
    """
    Spread each day's unallocated total evenly over everyone who worked that day.

    Role is irrelevant here. A day with unallocated money and nobody on the
    roster cannot be settled; its amount is reported in ``stranded``.
    """
    roster = daily_roster(shifts)
    result = RedistributionResult()
    for work_date, amount in unallocated_by_day(unallocated).items():
        employees = roster.get(work_date, [])
        if not employees:
            result.stranded[work_date] = amount
            if diagnostics is not None:
                diagnostics.error(
                    "stranded_tips",
                    f"${amount:.2f} unallocated on {work_date} with nobody clocked in that day",
                    work_date=work_date.isoformat(),
                    amount=amount,
                )
            continue
        each = amount / len(employees)
        for employee in employees:
            result.shares.append(RedistributedShare(employee_id=employee, work_date=work_date, amount=each))
    return result
