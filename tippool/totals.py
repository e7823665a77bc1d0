from dataclasses import dataclass
from typing import Dict, Iterable, List

from tippool.config import DEFAULT_TOLERANCE
from tippool.errors import ConservationError
from tippool.models import DirectShare, EmployeeFinalTotal, RedistributedShare, TransactionSlot


def aggregate_totals(
    direct_shares: Iterable[DirectShare],
    redistributed_shares: Iterable[RedistributedShare],
    employees: Iterable[str] = (),
) -> List[EmployeeFinalTotal]:
    """
    Per-employee allocated, redistributed and combined amounts.

    ``employees`` adds zero rows for people who worked but earned nothing.
    Shares are summed in a fixed order so repeated runs give identical floats.
    """
    allocated: Dict[str, float] = {name: 0.0 for name in employees}
    redistributed: Dict[str, float] = dict.fromkeys(allocated, 0.0)

    for share in sorted(direct_shares, key=lambda s: (s.employee_id, s.work_date, s.slot_start, s.role.value)):
        allocated[share.employee_id] = allocated.get(share.employee_id, 0.0) + share.amount
        redistributed.setdefault(share.employee_id, 0.0)
    for share in sorted(redistributed_shares, key=lambda s: (s.employee_id, s.work_date)):
        redistributed[share.employee_id] = redistributed.get(share.employee_id, 0.0) + share.amount
        allocated.setdefault(share.employee_id, 0.0)

    return [
        EmployeeFinalTotal(
            employee_id=name,
            allocated_amount=allocated[name],
            redistributed_amount=redistributed[name],
            total_amount=allocated[name] + redistributed[name],
        )
        for name in sorted(allocated)
    ]


@dataclass
class VerificationResult:
    expected: float
    actual: float
    tolerance: float = DEFAULT_TOLERANCE

    @property
    def delta(self) -> float:
        return self.actual - self.expected

    @property
    def passed(self) -> bool:
        return abs(self.delta) < self.tolerance

    def raise_for_status(self) -> None:
        if not self.passed:
            raise ConservationError(self.expected, self.actual, self.delta)


def verify(
    final_totals: Iterable[EmployeeFinalTotal],
    transaction_slots: Iterable[TransactionSlot],
    tolerance: float = DEFAULT_TOLERANCE,
) -> VerificationResult:
    """Every approved tip dollar must end up with exactly one employee."""
    actual = sum(t.total_amount for t in final_totals)
    expected = sum(s.tip_amount for s in transaction_slots)
    return VerificationResult(expected=expected, actual=actual, tolerance=tolerance)
