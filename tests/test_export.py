import sys
import pathlib

import pandas as pd
import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from tippool.config import Settings
from tippool.export import FILE_NAMES, result_tables, write_results
from tippool.models import AllocationPolicy
from tippool.pipeline import run_pipeline

CLOCK = [
    {
        "First Name": "Alice", "Last Name": "Server", "Department": "Front of House",
        "Date In": "2025-02-18", "Time In": "10:00 AM", "Date Out": "2025-02-18", "Time Out": "10:30 AM",
    },
    {
        "First Name": "Bob", "Last Name": "Boss", "Department": "Management",
        "Date In": "2025-02-18", "Time In": "10:00 AM", "Date Out": "2025-02-18", "Time Out": "10:30 AM",
    },
]
TXNS = [{"TransDateTime": "2025-02-18 10:05", "AmtTip": "20.00", "Approved": "Yes"}]


@pytest.fixture
def result():
    return run_pipeline(CLOCK, TXNS, Settings(policy=AllocationPolicy.STRICT_RATIO))


def test_result_tables(result):
    tables = result_tables(result)

    assert set(tables) == set(FILE_NAMES)
    assert len(tables["presence"]) == 96
    assert list(tables["totals"]["Employee"]) == ["Alice Server", "Bob Boss"]
    assert tables["unallocated"].iloc[0]["Reason"] == "BOH"


def test_write_results(result, tmp_path):
    output_dir = tmp_path / "out" / "nested"
    written = write_results(result, output_dir)

    for name, path in written.items():
        assert path.exists(), name
        assert path.name == FILE_NAMES[name]

    totals = pd.read_csv(written["totals"])
    assert list(totals.columns) == ["Employee", "Allocated Tips", "Unallocated Tips", "Total Tips"]
    assert totals["Total Tips"].tolist() == [18.5, 1.5]
    assert totals["Total Tips"].sum() == pytest.approx(20.0)
