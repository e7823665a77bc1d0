import sys
import pathlib
from datetime import date, datetime, timedelta

import pytest

# Ensure repo root is on sys.path so tests can import the tippool package
ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from tippool.allocation import allocate, validate_boh_ratio
from tippool.diagnostics import Diagnostics
from tippool.models import (
    AllocationPolicy,
    PresenceRecord,
    Role,
    TransactionSlot,
    UnallocatedReason,
)

DAY = date(2025, 2, 18)
TEN = datetime(2025, 2, 18, 10, 0)


def slot(amount, start=TEN):
    return TransactionSlot(work_date=start.date(), slot_start=start, tip_amount=amount, transaction_count=1)


def presence(foh=(), boh=(), execs=(), start=TEN):
    return PresenceRecord(
        work_date=start.date(),
        slot_start=start,
        slot_end=start + timedelta(minutes=15),
        present_by_role={Role.FOH: tuple(foh), Role.BOH: tuple(boh), Role.EXEC: tuple(execs)},
    )


def shares_by_employee(result):
    out = {}
    for share in result.shares:
        out[share.employee_id] = out.get(share.employee_id, 0.0) + share.amount
    return out


def test_both_roles_split_by_ratio():
    result = allocate([slot(100.0)], [presence(foh=["Ann", "Bea"], boh=["Cal"])], boh_ratio=0.15)

    pool = result.pools[0]
    assert pool.foh_pool == pytest.approx(85.0)
    assert pool.boh_pool == pytest.approx(15.0)
    assert (pool.foh_count, pool.boh_count) == (2, 1)
    assert result.unallocated == []

    shares = shares_by_employee(result)
    assert shares["Ann"] == pytest.approx(42.5)
    assert shares["Bea"] == pytest.approx(42.5)
    assert shares["Cal"] == pytest.approx(15.0)


def test_custom_ratio():
    result = allocate([slot(40.0)], [presence(foh=["Ann"], boh=["Cal"])], boh_ratio=0.25)
    shares = shares_by_employee(result)
    assert shares == pytest.approx({"Ann": 30.0, "Cal": 10.0})


def test_only_foh_takes_everything_under_full_fallback():
    result = allocate([slot(30.0)], [presence(foh=["Ann", "Bea", "Dee"])])

    pool = result.pools[0]
    assert pool.foh_pool == pytest.approx(30.0)
    assert pool.boh_pool == 0.0
    assert result.unallocated == []
    # every FOH employee gets exactly T/n
    assert all(s.amount == pytest.approx(10.0) for s in result.shares)
    assert len(result.shares) == 3


def test_only_boh_takes_everything_under_full_fallback():
    result = allocate([slot(20.0)], [presence(boh=["Cal", "Dan"])])
    assert result.pools[0].boh_pool == pytest.approx(20.0)
    assert result.pools[0].foh_pool == 0.0
    assert shares_by_employee(result) == pytest.approx({"Cal": 10.0, "Dan": 10.0})
    assert result.unallocated == []


def test_strict_ratio_orphans_missing_role_share():
    result = allocate(
        [slot(20.0)],
        [presence(foh=["Ann"])],
        boh_ratio=0.15,
        policy=AllocationPolicy.STRICT_RATIO,
    )

    assert result.pools[0].foh_pool == pytest.approx(17.0)
    assert len(result.unallocated) == 1
    assert result.unallocated[0].amount == pytest.approx(3.0)
    assert result.unallocated[0].reason is UnallocatedReason.BOH


def test_strict_ratio_with_only_boh_orphans_foh_share():
    result = allocate([slot(20.0)], [presence(boh=["Cal"])], policy="strict_ratio")
    assert result.pools[0].boh_pool == pytest.approx(3.0)
    assert result.unallocated[0].amount == pytest.approx(17.0)
    assert result.unallocated[0].reason is UnallocatedReason.FOH


def test_no_presence_is_one_no_coverage_entry():
    # no presence record at all for the slot
    result = allocate([slot(12.5)], [])
    assert len(result.unallocated) == 1
    assert result.unallocated[0].amount == pytest.approx(12.5)
    assert result.unallocated[0].reason is UnallocatedReason.NO_COVERAGE
    assert result.unallocated[0].work_date == DAY
    assert result.shares == []


def test_executives_are_not_paid_from_pools():
    result = allocate([slot(10.0)], [presence(execs=["Eve CEO"])])
    assert result.pools[0].exec_count == 1
    assert result.shares == []
    assert result.unallocated[0].reason is UnallocatedReason.NO_COVERAGE

    result = allocate([slot(10.0)], [presence(foh=["Ann"], execs=["Eve CEO"])])
    assert shares_by_employee(result) == pytest.approx({"Ann": 10.0})


@pytest.mark.parametrize("policy", list(AllocationPolicy))
@pytest.mark.parametrize("ratio", [0.0, 0.15, 0.5, 1.0])
@pytest.mark.parametrize("staff", [
    {"foh": ["Ann", "Bea", "Dee"], "boh": ["Cal"]},
    {"foh": ["Ann"]},
    {"boh": ["Cal", "Dan", "Eli"]},
    {},
])
def test_pools_plus_unallocated_equal_slot_total(policy, ratio, staff):
    result = allocate([slot(33.33)], [presence(**staff)], boh_ratio=ratio, policy=policy)

    pool = result.pools[0]
    orphaned = sum(u.amount for u in result.unallocated)
    assert pool.foh_pool >= 0 and pool.boh_pool >= 0
    assert pool.foh_pool + pool.boh_pool + orphaned == pytest.approx(33.33)
    assert result.allocated_total + result.unallocated_total == pytest.approx(33.33)


@pytest.mark.parametrize("value", [-0.1, 1.5, "lots", None, True])
def test_invalid_ratio_falls_back_to_default(value):
    diagnostics = Diagnostics()
    assert validate_boh_ratio(value, diagnostics) == 0.15
    assert diagnostics.count("boh_ratio_invalid") == 1


def test_ratio_accepts_numeric_strings():
    assert validate_boh_ratio("0.2") == pytest.approx(0.2)
    assert validate_boh_ratio(0) == 0.0
