"""Who was on duty in each slot, by role."""

from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List

from tippool.intervals import floor_to_interval, validate_interval_minutes
from tippool.models import Interval, PresenceRecord, Role, ShiftInterval, ShiftRecord, SlotKey
from tippool.roles import Classifier, classify


def overlaps(shift: ShiftRecord, interval: Interval) -> bool:
    """Half-open overlap: touching at an endpoint is not presence."""
    return shift.clock_in < interval.slot_end and shift.clock_out > interval.slot_start


def _build_record(interval: Interval, present: Dict[str, str], classifier: Classifier) -> PresenceRecord:
    by_role: Dict[Role, List[str]] = {role: [] for role in Role}
    for employee in sorted(present):
        by_role[classifier(employee, present[employee])].append(employee)
    return PresenceRecord(
        work_date=interval.work_date,
        slot_start=interval.slot_start,
        slot_end=interval.slot_end,
        present_by_role={role: tuple(names) for role, names in by_role.items()},
    )


def resolve_presence(
    intervals: Iterable[Interval],
    shifts: Iterable[ShiftRecord],
    classifier: Classifier = classify,
) -> List[PresenceRecord]:
    """
    One PresenceRecord per interval, employees deduplicated within the slot.

    Shifts without a clock-out never count as present. An employee with
    several shifts overlapping a slot is classified by the first of them.
    """
    complete = sorted((s for s in shifts if s.is_complete), key=lambda s: (s.clock_in, s.employee_id))
    by_day: Dict[date, List[Interval]] = defaultdict(list)
    for interval in intervals:
        by_day[interval.work_date].append(interval)

    records: List[PresenceRecord] = []
    for work_date in sorted(by_day):
        day_start = min(i.slot_start for i in by_day[work_date])
        day_end = max(i.slot_end for i in by_day[work_date])
        # only shifts touching this day's window need the per-slot test
        candidates = [s for s in complete if s.clock_in < day_end and s.clock_out > day_start]
        for interval in by_day[work_date]:
            present: Dict[str, str] = {}
            for shift in candidates:
                if overlaps(shift, interval):
                    present.setdefault(shift.employee_id, shift.department)
            records.append(_build_record(interval, present, classifier))
    return records


def resolve_shift_anchored_presence(
    shift_intervals: Iterable[ShiftInterval],
    interval_minutes,
    classifier: Classifier = classify,
) -> List[PresenceRecord]:
    """
    Presence from shift-anchored slots, floored onto the midnight grid.

    Each employee slot is credited to every grid slot it overlaps (half-open),
    so a 10:07-10:22 slot counts for both 10:00 and 10:15 and a transaction
    anywhere inside it finds the employee.
    """
    minutes = validate_interval_minutes(interval_minutes)
    step = timedelta(minutes=minutes)
    grid: Dict[SlotKey, Dict[str, str]] = defaultdict(dict)
    for interval in shift_intervals:
        start: datetime = floor_to_interval(interval.slot_start, minutes)
        while start < interval.slot_end:
            grid[SlotKey(start.date(), start)].setdefault(interval.employee_id, interval.department)
            start += step

    records: List[PresenceRecord] = []
    for key in sorted(grid):
        slot = Interval(work_date=key.work_date, slot_start=key.slot_start, slot_end=key.slot_start + step)
        records.append(_build_record(slot, grid[key], classifier))
    return records


def presence_index(records: Iterable[PresenceRecord]) -> Dict[SlotKey, PresenceRecord]:
    return {record.key: record for record in records}

