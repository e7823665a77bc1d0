import sys
import pathlib
from datetime import date, datetime

ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from tippool.diagnostics import Diagnostics
from tippool.models import ShiftRecord
from tippool.shifts import merge_shifts, normalize

DAY = date(2025, 2, 18)


def clock_row(first, last, dept, time_in, time_out, day="2025-02-18", day_out=None, hours="", **extra):
    row = {
        "First Name": first,
        "Last Name": last,
        "Department": dept,
        "Date In": day,
        "Time In": time_in,
        "Date Out": day_out or day,
        "Time Out": time_out,
        "Total Less Break": hours,
    }
    row.update(extra)
    return row


def shift(name, start, end):
    return ShiftRecord(
        employee_id=name,
        department="Front of House",
        work_date=start.date(),
        clock_in=start,
        clock_out=end,
    )


def at(hour, minute=0):
    return datetime(2025, 2, 18, hour, minute)


def test_normalize_basic_row():
    shifts = normalize([clock_row(" Ann ", "Lee", "Front of House", "10:00 AM", "2:30 PM")])

    assert len(shifts) == 1
    record = shifts[0]
    assert record.employee_id == "Ann Lee"
    assert record.department == "Front of House"
    assert record.work_date == DAY
    assert record.clock_in == at(10)
    assert record.clock_out == at(14, 30)


def test_missing_clock_out_is_synthesized_from_hours():
    diagnostics = Diagnostics()
    shifts = normalize([clock_row("Ann", "Lee", "FOH", "10:00 AM", "-", hours="2.5")], diagnostics)

    assert shifts[0].clock_out == at(12, 30)
    assert diagnostics.count("clock_out_synthesized") == 1
    assert diagnostics.count("clock_out_unresolved") == 0


def test_missed_punch_flag_ignores_recorded_clock_out():
    row = clock_row("Ann", "Lee", "FOH", "10:00 AM", "11:59 PM", hours="1", **{"Missed Punch": "Yes"})
    assert normalize([row])[0].clock_out == at(11)

    row = clock_row("Ann", "Lee", "FOH", "10:00 AM", "11:59 PM", hours="1", Status="Missed Out")
    assert normalize([row])[0].clock_out == at(11)


def test_unresolvable_clock_out_is_kept_and_reported():
    diagnostics = Diagnostics()
    shifts = normalize([clock_row("Fay", "Bar", "Bar", "5:00 PM", "")], diagnostics)

    assert len(shifts) == 1
    assert shifts[0].clock_out is None
    assert not shifts[0].is_complete
    assert diagnostics.count("clock_out_unresolved") == 1


def test_unparseable_clock_in_is_dropped():
    diagnostics = Diagnostics()
    rows = [
        clock_row("Ann", "Lee", "FOH", "not a time", "2:00 PM"),
        clock_row("Ben", "Line", "Kitchen", "9:30 AM", "1:00 PM"),
    ]
    shifts = normalize(rows, diagnostics)

    assert [s.employee_id for s in shifts] == ["Ben Line"]
    assert diagnostics.count("clock_in_unparseable") == 1


def test_clock_in_without_date_is_dropped():
    diagnostics = Diagnostics()
    rows = [
        clock_row("Ann", "Lee", "FOH", "10:00 AM", "2:00 PM", day=""),
        clock_row("Cy", "Dee", "FOH", "10:00 AM", "2:00 PM", day="-"),
        clock_row("Ben", "Line", "Kitchen", "9:30 AM", "1:00 PM"),
    ]
    shifts = normalize(rows, diagnostics)

    assert [s.employee_id for s in shifts] == ["Ben Line"]
    assert diagnostics.count("clock_in_unparseable") == 2


def test_blank_rows_are_skipped():
    blank = {key: "" for key in clock_row("", "", "", "", "")}
    assert normalize([blank]) == []


def test_overnight_shift_uses_date_out():
    row = clock_row("Ann", "Lee", "FOH", "10:00 PM", "2:00 AM", day_out="2025-02-19")
    record = normalize([row])[0]
    assert record.work_date == DAY
    assert record.clock_out == datetime(2025, 2, 19, 2, 0)


def test_merge_back_to_back_shifts():
    shifts = [shift("Ann Lee", at(12, 1), at(14)), shift("Ann Lee", at(10), at(12))]
    merged = merge_shifts(shifts)

    assert len(merged) == 1
    assert merged[0].clock_in == at(10)
    assert merged[0].clock_out == at(14)


def test_merge_overlapping_shifts_keeps_latest_end():
    merged = merge_shifts([shift("Ann Lee", at(10), at(12)), shift("Ann Lee", at(11), at(13))])
    assert [(s.clock_in, s.clock_out) for s in merged] == [(at(10), at(13))]

    # a shift contained in another does not shorten it
    merged = merge_shifts([shift("Ann Lee", at(10), at(15)), shift("Ann Lee", at(11), at(12))])
    assert [(s.clock_in, s.clock_out) for s in merged] == [(at(10), at(15))]


def test_merge_leaves_real_gaps_and_other_employees_alone():
    diagnostics = Diagnostics()
    shifts = [
        shift("Ann Lee", at(10), at(12)),
        shift("Ann Lee", at(12, 5), at(14)),
        shift("Ben Line", at(12), at(14)),
    ]
    merged = merge_shifts(shifts, tolerance_minutes=1, diagnostics=diagnostics)

    assert len(merged) == 3
    assert diagnostics.count("shifts_merged") == 0


def test_merge_passes_incomplete_shifts_through():
    incomplete = ShiftRecord(employee_id="Fay Bar", department="Bar", work_date=DAY, clock_in=at(17))
    merged = merge_shifts([incomplete, shift("Ann Lee", at(10), at(12))])
    assert incomplete in merged
    assert len(merged) == 2
