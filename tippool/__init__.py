"""Interval-based tip pooling for restaurant pay periods."""

from tippool.allocation import allocate
from tippool.config import Settings
from tippool.models import (
    AllocationPolicy,
    EmployeeFinalTotal,
    IntervalAnchor,
    Role,
    ShiftRecord,
    TipPool,
    TransactionSlot,
    UnallocatedTip,
)
from tippool.pipeline import PipelineResult, run_pipeline

__all__ = [
    "AllocationPolicy",
    "EmployeeFinalTotal",
    "IntervalAnchor",
    "PipelineResult",
    "Role",
    "Settings",
    "ShiftRecord",
    "TipPool",
    "TransactionSlot",
    "UnallocatedTip",
    "allocate",
    "run_pipeline",
]
