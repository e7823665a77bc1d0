"""
Split each slot's tips into FOH and BOH pools and share them out.

Precedence, per slot:

1. FOH and BOH both on duty: BOH gets ``total * boh_ratio``, FOH the rest.
2. Only one of them on duty: under ``full_fallback`` that role takes the
   whole slot; under ``strict_ratio`` it takes its ratio share and the
   absent role's share is recorded as unallocated, tagged with that role.
3. Nobody on duty: the whole slot is unallocated ("no coverage").

Each pool is divided evenly among the employees of its role present in the
slot. Executives are counted but never paid from a pool.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from tippool.config import DEFAULT_BOH_RATIO
from tippool.diagnostics import Diagnostics
from tippool.models import (
    AllocationPolicy,
    DirectShare,
    PresenceRecord,
    Role,
    TipPool,
    TransactionSlot,
    UnallocatedReason,
    UnallocatedTip,
)
from tippool.presence import presence_index

logger = logging.getLogger(__name__)


@dataclass
class AllocationResult:
    pools: List[TipPool] = field(default_factory=list)
    unallocated: List[UnallocatedTip] = field(default_factory=list)
    shares: List[DirectShare] = field(default_factory=list)

    @property
    def allocated_total(self) -> float:
        return sum(s.amount for s in self.shares)

    @property
    def unallocated_total(self) -> float:
        return sum(u.amount for u in self.unallocated)


def validate_boh_ratio(value, diagnostics: Optional[Diagnostics] = None) -> float:
    """BOH share of a fully staffed slot; anything outside [0, 1] becomes 0.15."""
    ratio = None
    if not isinstance(value, bool):
        try:
            ratio = float(value)
        except (TypeError, ValueError):
            ratio = None
    if ratio is not None and 0.0 <= ratio <= 1.0:
        return ratio

    message = f"BOH ratio {value!r} must be a number between 0 and 1; using {DEFAULT_BOH_RATIO}"
    if diagnostics is not None:
        diagnostics.warning("boh_ratio_invalid", message, value=repr(value))
    else:
        logger.warning(message)
    return DEFAULT_BOH_RATIO


def _shares(pool: float, employees, role: Role, slot: TransactionSlot) -> List[DirectShare]:
    if not employees:
        return []
    each = pool / len(employees)
    return [
        DirectShare(
            employee_id=employee,
            role=role,
            work_date=slot.work_date,
            slot_start=slot.slot_start,
            amount=each,
        )
        for employee in employees
    ]


def allocate(
    transaction_slots: Iterable[TransactionSlot],
    presence_records: Iterable[PresenceRecord],
    boh_ratio=DEFAULT_BOH_RATIO,
    policy: AllocationPolicy = AllocationPolicy.FULL_FALLBACK,
    diagnostics: Optional[Diagnostics] = None,
) -> AllocationResult:
    ratio = validate_boh_ratio(boh_ratio, diagnostics)
    policy = AllocationPolicy(policy)
    presence = presence_index(presence_records)
    result = AllocationResult()

    for slot in sorted(transaction_slots, key=lambda s: s.key):
        record = presence.get(slot.key)
        foh = record.employees(Role.FOH) if record else ()
        boh = record.employees(Role.BOH) if record else ()
        execs = record.count(Role.EXEC) if record else 0
        total = slot.tip_amount

        foh_pool = boh_pool = 0.0
        orphaned = []
        if foh and boh:
            boh_pool = total * ratio
            foh_pool = total - boh_pool
        elif foh:
            if policy is AllocationPolicy.STRICT_RATIO:
                orphaned.append((total * ratio, UnallocatedReason.BOH))
                foh_pool = total - total * ratio
            else:
                foh_pool = total
        elif boh:
            if policy is AllocationPolicy.STRICT_RATIO:
                boh_pool = total * ratio
                orphaned.append((total - boh_pool, UnallocatedReason.FOH))
            else:
                boh_pool = total
        else:
            orphaned.append((total, UnallocatedReason.NO_COVERAGE))

        result.pools.append(
            TipPool(
                work_date=slot.work_date,
                slot_start=slot.slot_start,
                total_tip=total,
                foh_pool=foh_pool,
                boh_pool=boh_pool,
                foh_count=len(foh),
                boh_count=len(boh),
                exec_count=execs,
            )
        )
        for amount, reason in orphaned:
            if amount:
                result.unallocated.append(
                    UnallocatedTip(
                        work_date=slot.work_date,
                        slot_start=slot.slot_start,
                        amount=amount,
                        reason=reason,
                    )
                )
        result.shares.extend(_shares(foh_pool, foh, Role.FOH, slot))
        result.shares.extend(_shares(boh_pool, boh, Role.BOH, slot))

    return result
