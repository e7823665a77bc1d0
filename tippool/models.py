from datetime import date, datetime
from enum import Enum
from typing import Dict, NamedTuple, Optional, Tuple

from pydantic import BaseModel, ConfigDict, model_validator


class Role(str, Enum):
    FOH = "FOH"
    BOH = "BOH"
    EXEC = "EXEC"


class AllocationPolicy(str, Enum):
    # a role alone on duty takes the whole slot
    FULL_FALLBACK = "full_fallback"
    # a role alone on duty takes only its ratio share; the rest goes to redistribution
    STRICT_RATIO = "strict_ratio"


class IntervalAnchor(str, Enum):
    CALENDAR = "calendar"
    SHIFT = "shift"


class UnallocatedReason(str, Enum):
    NO_COVERAGE = "no coverage"
    FOH = "FOH"
    BOH = "BOH"


class SlotKey(NamedTuple):
    work_date: date
    slot_start: datetime


class Record(BaseModel):
    model_config = ConfigDict(frozen=True)


class ShiftRecord(Record):
    employee_id: str
    department: str = ""
    work_date: date
    clock_in: datetime
    clock_out: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_order(self):
        if self.clock_out is not None and self.clock_out <= self.clock_in:
            raise ValueError(f"clock_out {self.clock_out} is not after clock_in {self.clock_in}")
        return self

    @property
    def is_complete(self) -> bool:
        return self.clock_out is not None


class Interval(Record):
    work_date: date
    slot_start: datetime
    slot_end: datetime

    @property
    def key(self) -> SlotKey:
        return SlotKey(self.work_date, self.slot_start)


class ShiftInterval(Interval):
    """A slot tiled from one employee's clock-in."""

    employee_id: str
    department: str = ""


class TransactionSlot(Record):
    work_date: date
    slot_start: datetime
    tip_amount: float
    transaction_count: int = 0

    @property
    def key(self) -> SlotKey:
        return SlotKey(self.work_date, self.slot_start)


class PresenceRecord(Record):
    work_date: date
    slot_start: datetime
    slot_end: datetime
    present_by_role: Dict[Role, Tuple[str, ...]]

    @property
    def key(self) -> SlotKey:
        return SlotKey(self.work_date, self.slot_start)

    def employees(self, role: Role) -> Tuple[str, ...]:
        return self.present_by_role.get(role, ())

    def count(self, role: Role) -> int:
        return len(self.employees(role))


class TipPool(Record):
    work_date: date
    slot_start: datetime
    total_tip: float
    foh_pool: float = 0.0
    boh_pool: float = 0.0
    foh_count: int = 0
    boh_count: int = 0
    exec_count: int = 0


class UnallocatedTip(Record):
    work_date: date
    slot_start: Optional[datetime] = None
    amount: float
    reason: UnallocatedReason


class DirectShare(Record):
    employee_id: str
    role: Role
    work_date: date
    slot_start: datetime
    amount: float


class RedistributedShare(Record):
    employee_id: str
    work_date: date
    amount: float


class EmployeeFinalTotal(Record):
    employee_id: str
    allocated_amount: float = 0.0
    redistributed_amount: float = 0.0
    total_amount: float = 0.0
