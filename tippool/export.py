"""Tabular views of a pipeline run, and CSV output for the CLI."""

from pathlib import Path
from typing import Dict, Union

import pandas as pd

from tippool.models import Role
from tippool.pipeline import PipelineResult

AMOUNT_DECIMALS = 2

FILE_NAMES = {
    "shifts": "cleaned_clock_data.csv",
    "tips_by_slot": "tips_by_slot.csv",
    "presence": "interval_employee_presence.csv",
    "tip_pools": "interval_tip_pools.csv",
    "unallocated": "unallocated_tips.csv",
    "redistribution": "unallocated_tip_distribution.csv",
    "totals": "final_employee_totals.csv",
}


def _frame(rows, columns) -> pd.DataFrame:
    return pd.DataFrame(rows, columns=columns)


def result_tables(result: PipelineResult) -> Dict[str, pd.DataFrame]:
    """One DataFrame per stage, column names as the operators know them."""
    tables = {
        "shifts": _frame(
            [
                {
                    "Employee": s.employee_id,
                    "Department": s.department,
                    "Date": s.work_date,
                    "TimeIn": s.clock_in,
                    "TimeOut": s.clock_out,
                }
                for s in result.shifts
            ],
            ["Employee", "Department", "Date", "TimeIn", "TimeOut"],
        ),
        "tips_by_slot": _frame(
            [
                {
                    "Date": s.work_date,
                    "TimeSlotStart": s.slot_start,
                    "AmtTip": s.tip_amount,
                    "Transactions": s.transaction_count,
                }
                for s in result.transaction_slots
            ],
            ["Date", "TimeSlotStart", "AmtTip", "Transactions"],
        ),
        "presence": _frame(
            [
                {
                    "Date": p.work_date,
                    "TimeSlotStart": p.slot_start,
                    "TimeSlotEnd": p.slot_end,
                    "FOHCount": p.count(Role.FOH),
                    "BOHCount": p.count(Role.BOH),
                    "ExecCount": p.count(Role.EXEC),
                    "FOHEmployees": "; ".join(p.employees(Role.FOH)),
                    "BOHEmployees": "; ".join(p.employees(Role.BOH)),
                    "ExecEmployees": "; ".join(p.employees(Role.EXEC)),
                }
                for p in result.presence
            ],
            [
                "Date", "TimeSlotStart", "TimeSlotEnd", "FOHCount", "BOHCount", "ExecCount",
                "FOHEmployees", "BOHEmployees", "ExecEmployees",
            ],
        ),
        "tip_pools": _frame(
            [
                {
                    "Date": p.work_date,
                    "TimeSlotStart": p.slot_start,
                    "AmtTip": p.total_tip,
                    "FOHCount": p.foh_count,
                    "BOHCount": p.boh_count,
                    "ExecCount": p.exec_count,
                    "FOHTipPool": p.foh_pool,
                    "BOHTipPool": p.boh_pool,
                }
                for p in result.allocation.pools
            ],
            ["Date", "TimeSlotStart", "AmtTip", "FOHCount", "BOHCount", "ExecCount", "FOHTipPool", "BOHTipPool"],
        ),
        "unallocated": _frame(
            [
                {
                    "Date": u.work_date,
                    "TimeSlotStart": u.slot_start,
                    "UnallocatedTip": u.amount,
                    "Reason": u.reason.value,
                }
                for u in result.allocation.unallocated
            ],
            ["Date", "TimeSlotStart", "UnallocatedTip", "Reason"],
        ),
        "redistribution": _frame(
            [
                {"Date": r.work_date, "Employee": r.employee_id, "UnallocatedTipShare": r.amount}
                for r in result.redistribution.shares
            ],
            ["Date", "Employee", "UnallocatedTipShare"],
        ),
        "totals": _frame(
            [
                {
                    "Employee": t.employee_id,
                    "Allocated Tips": t.allocated_amount,
                    "Unallocated Tips": t.redistributed_amount,
                    "Total Tips": t.total_amount,
                }
                for t in result.totals
            ],
            ["Employee", "Allocated Tips", "Unallocated Tips", "Total Tips"],
        ),
    }
    return tables


def write_results(result: PipelineResult, output_dir: Union[str, Path]) -> Dict[str, Path]:
    """Write every table as CSV under `output_dir`, amounts rounded to cents."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    written = {}
    for name, df in result_tables(result).items():
        path = output_dir / FILE_NAMES[name]
        df.round(AMOUNT_DECIMALS).to_csv(path, index=False)
        written[name] = path
    return written
