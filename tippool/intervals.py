"""
The discretized time axis every other step keys into.

Two anchors are supported. Calendar-anchored slots form a fixed grid from
midnight to midnight, shared by shifts and transactions. Shift-anchored
slots start at each shift's exact clock-in and are aligned to the grid by
flooring before they are joined with transactions.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from tippool.config import DEFAULT_INTERVAL_MINUTES
from tippool.diagnostics import Diagnostics
from tippool.models import Interval, ShiftInterval, ShiftRecord

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60
MIN_INTERVAL_MINUTES = 2
MAX_INTERVAL_MINUTES = 60


def _coerce_minutes(value) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        return int(number) if number.is_integer() else None
    return None


def is_valid_interval(minutes: int) -> bool:
    return (
        MIN_INTERVAL_MINUTES <= minutes <= MAX_INTERVAL_MINUTES
        and MINUTES_PER_DAY % minutes == 0
    )


def validate_interval_minutes(value, diagnostics: Optional[Diagnostics] = None) -> int:
    """
    Return a usable slot length in minutes.

    Anything that is not a whole number in [2, 60] dividing 1440 evenly is
    replaced by the default of 15 minutes, with a warning.
    """
    minutes = _coerce_minutes(value)
    if minutes is not None and is_valid_interval(minutes):
        return minutes

    message = (
        f"Interval of {value!r} minutes must be a whole number between "
        f"{MIN_INTERVAL_MINUTES} and {MAX_INTERVAL_MINUTES} that divides {MINUTES_PER_DAY}; "
        f"using {DEFAULT_INTERVAL_MINUTES}"
    )
    if diagnostics is not None:
        diagnostics.warning("interval_minutes_invalid", message, value=repr(value))
    else:
        logger.warning(message)
    return DEFAULT_INTERVAL_MINUTES


def midnight(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def floor_to_interval(moment: datetime, interval_minutes: int) -> datetime:
    """Floor a timestamp onto the midnight-anchored grid."""
    elapsed = moment.hour * 60 + moment.minute
    return midnight(moment) + timedelta(minutes=elapsed - elapsed % interval_minutes)


def slot_for(moment: datetime, interval_minutes: int) -> Interval:
    start = floor_to_interval(moment, interval_minutes)
    return Interval(
        work_date=start.date(),
        slot_start=start,
        slot_end=start + timedelta(minutes=interval_minutes),
    )


def generate_day_intervals(work_date: date, interval_minutes: int) -> List[Interval]:
    base = datetime.combine(work_date, datetime.min.time())
    step = timedelta(minutes=interval_minutes)
    intervals = []
    for i in range(MINUTES_PER_DAY // interval_minutes):
        start = base + i * step
        intervals.append(Interval(work_date=work_date, slot_start=start, slot_end=start + step))
    return intervals


def generate_intervals(
    reference_dates: Iterable[date],
    interval_minutes,
    diagnostics: Optional[Diagnostics] = None,
) -> List[Interval]:
    """Calendar-anchored slots for every reference date, in time order."""
    minutes = validate_interval_minutes(interval_minutes, diagnostics)
    intervals: List[Interval] = []
    for work_date in sorted(set(reference_dates)):
        intervals.extend(generate_day_intervals(work_date, minutes))
    return intervals


def generate_shift_intervals(
    shifts: Iterable[ShiftRecord],
    interval_minutes,
    diagnostics: Optional[Diagnostics] = None,
) -> List[ShiftInterval]:
    """
    Shift-anchored slots: tile each shift forward from its clock-in.

    The last slot is kept whole even when the shift ends partway through it,
    so a shift shorter than one interval still yields exactly one slot.
    Shifts without a resolved clock-out are skipped.
    """
    minutes = validate_interval_minutes(interval_minutes, diagnostics)
    step = timedelta(minutes=minutes)
    intervals: List[ShiftInterval] = []
    for shift in shifts:
        if not shift.is_complete:
            continue
        start = shift.clock_in
        while start < shift.clock_out:
            intervals.append(
                ShiftInterval(
                    work_date=shift.work_date,
                    slot_start=start,
                    slot_end=start + step,
                    employee_id=shift.employee_id,
                    department=shift.department,
                )
            )
            start += step
    return intervals
