"""Turn time-clock export rows into typed shift records."""

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from tippool.diagnostics import Diagnostics
from tippool.errors import DataQualityError
from tippool.models import ShiftRecord
from tippool.parsing import clean, first_field, is_missing, parse_hours, parse_timestamp

HOURS_FIELDS = ("Total Less Break", "Total-Less-Break-Hours", "Total Less Break Hours")
MISSED_PUNCH_TRUE = {"yes", "y", "true", "1", "x"}


def employee_name(row: Mapping[str, Any]) -> str:
    first = clean(row.get("First Name"))
    last = clean(row.get("Last Name"))
    return " ".join(part for part in (first, last) if part)


def missed_punch(row: Mapping[str, Any]) -> bool:
    if clean(row.get("Missed Punch")).lower() in MISSED_PUNCH_TRUE:
        return True
    return "missed" in clean(row.get("Status")).lower()


def _clock_out(row: Mapping[str, Any], clock_in: datetime) -> Tuple[Optional[datetime], bool]:
    """Resolved clock-out and whether it was synthesized from elapsed hours."""
    time_out = row.get("Time Out")
    if not is_missing(time_out) and not missed_punch(row):
        date_out = row.get("Date Out")
        if is_missing(date_out):
            date_out = row.get("Date In")
        try:
            clock_out = parse_timestamp(date_out, time_out)
        except DataQualityError:
            clock_out = None
        if clock_out is not None and clock_out > clock_in:
            return clock_out, False

    hours = parse_hours(first_field(row, HOURS_FIELDS))
    if hours is None:
        return None, False
    return clock_in + timedelta(minutes=hours * 60), True


def normalize_row(row: Mapping[str, Any], diagnostics: Optional[Diagnostics] = None) -> Optional[ShiftRecord]:
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    employee = employee_name(row)
    try:
        clock_in = parse_timestamp(row.get("Date In"), row.get("Time In"))
    except DataQualityError as exc:
        diagnostics.warning(
            "clock_in_unparseable",
            f"Skipping clock row for {employee or 'unknown employee'}: {exc}",
            employee=employee,
        )
        return None

    clock_out, synthesized = _clock_out(row, clock_in)
    if clock_out is None:
        diagnostics.warning(
            "clock_out_unresolved",
            f"No usable clock-out for {employee} on {clock_in.date()}; "
            "counted for the day but not for any slot",
            employee=employee,
            work_date=clock_in.date().isoformat(),
        )
    elif synthesized:
        diagnostics.info(
            "clock_out_synthesized",
            f"Clock-out for {employee} on {clock_in.date()} taken from elapsed hours",
            employee=employee,
        )

    return ShiftRecord(
        employee_id=employee,
        department=clean(row.get("Department")),
        work_date=clock_in.date(),
        clock_in=clock_in,
        clock_out=clock_out,
    )


def normalize(raw_rows: Iterable[Mapping[str, Any]], diagnostics: Optional[Diagnostics] = None) -> List[ShiftRecord]:
    """
    Build one ShiftRecord per usable clock row.

    Rows without a parseable clock-in are dropped. Rows whose clock-out cannot
    be resolved are kept with clock_out=None so the employee still counts
    toward that day's redistribution roster.
    """
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    shifts = []
    for row in raw_rows:
        if not any(clean(v) for v in row.values()):
            continue
        shift = normalize_row(row, diagnostics)
        if shift is not None:
            shifts.append(shift)
    return shifts


def merge_shifts(
    shifts: Iterable[ShiftRecord],
    tolerance_minutes: int = 1,
    diagnostics: Optional[Diagnostics] = None,
) -> List[ShiftRecord]:
    """
    Collapse back-to-back or overlapping shifts of one employee on one day.

    Two shifts merge when the next clock-in is no later than the current
    clock-out plus the tolerance. Shifts without a clock-out are left alone.
    """
    tolerance = timedelta(minutes=tolerance_minutes)
    groups: Dict[tuple, List[ShiftRecord]] = defaultdict(list)
    passthrough: List[ShiftRecord] = []
    for shift in shifts:
        if shift.is_complete:
            groups[(shift.employee_id, shift.work_date)].append(shift)
        else:
            passthrough.append(shift)

    merged: List[ShiftRecord] = []
    merged_away = 0
    for key in sorted(groups):
        ordered = sorted(groups[key], key=lambda s: (s.clock_in, s.clock_out))
        current = ordered[0]
        for shift in ordered[1:]:
            if shift.clock_in <= current.clock_out + tolerance:
                if shift.clock_out > current.clock_out:
                    current = current.model_copy(update={"clock_out": shift.clock_out})
                merged_away += 1
            else:
                merged.append(current)
                current = shift
        merged.append(current)

    if merged_away and diagnostics is not None:
        diagnostics.info("shifts_merged", f"Merged {merged_away} adjacent shift rows", count=merged_away)

    merged.extend(passthrough)
    merged.sort(key=lambda s: (s.work_date, s.employee_id, s.clock_in))
    return merged
