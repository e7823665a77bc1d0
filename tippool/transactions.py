"""Sum approved transaction tips per slot."""

from typing import Any, Dict, Iterable, List, Mapping, Optional

from tippool.diagnostics import Diagnostics
from tippool.errors import DataQualityError
from tippool.intervals import slot_for, validate_interval_minutes
from tippool.models import SlotKey, TransactionSlot
from tippool.parsing import clean, first_field, parse_timestamp, parse_tip_amount
from tippool.timezones import convert_timezone, get_zone

APPROVAL_FIELDS = ("Approved", "ApprovalFlag")
TIMESTAMP_FIELDS = ("TransDateTime", "TransactionTimestamp")
TIP_FIELDS = ("AmtTip", "TipAmount")


def is_approved(row: Mapping[str, Any]) -> bool:
    return (first_field(row, APPROVAL_FIELDS) or "").lower() == "yes"


def transaction_time(
    row: Mapping[str, Any],
    source_zone: Optional[str] = None,
    target_zone: Optional[str] = None,
):
    """Timestamp of a transaction row, converted when both zones are given."""
    moment = parse_timestamp(first_field(row, TIMESTAMP_FIELDS) or "")
    if source_zone and target_zone:
        moment = convert_timezone(moment, source_zone, target_zone)
    return moment


def aggregate(
    raw_transactions: Iterable[Mapping[str, Any]],
    interval_minutes,
    source_zone: Optional[str] = None,
    target_zone: Optional[str] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> List[TransactionSlot]:
    """
    Group approved transactions into midnight-anchored slots and sum the tips.

    Unapproved rows are ignored silently. Approved rows with an unparseable
    timestamp or tip amount are dropped and reported, so they never land in
    an unrelated slot. Pass both zone names to convert timestamps first.
    """
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    minutes = validate_interval_minutes(interval_minutes, diagnostics)
    if source_zone and target_zone:
        # unknown zone names raise ConfigurationError before any row is read
        get_zone(source_zone)
        get_zone(target_zone)

    totals: Dict[SlotKey, float] = {}
    counts: Dict[SlotKey, int] = {}
    for index, row in enumerate(raw_transactions):
        if not is_approved(row):
            continue
        try:
            moment = transaction_time(row, source_zone, target_zone)
        except DataQualityError as exc:
            diagnostics.warning(
                "transaction_timestamp_unparseable",
                f"Dropping transaction row {index}: {exc}",
                row=index,
            )
            continue
        try:
            amount = parse_tip_amount(first_field(row, TIP_FIELDS))
        except DataQualityError as exc:
            diagnostics.warning(
                "tip_amount_invalid",
                f"Dropping transaction row {index}: {exc}",
                row=index,
                value=clean(first_field(row, TIP_FIELDS)),
            )
            continue

        key = slot_for(moment, minutes).key
        totals[key] = totals.get(key, 0.0) + amount
        counts[key] = counts.get(key, 0) + 1

    return [
        TransactionSlot(
            work_date=key.work_date,
            slot_start=key.slot_start,
            tip_amount=totals[key],
            transaction_count=counts[key],
        )
        for key in sorted(totals)
    ]
