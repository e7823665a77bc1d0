import math
import re
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from dateutil import parser as date_parser

from tippool.errors import DataQualityError

MISSING_MARKERS = {"", "-", "--", "n/a", "na", "nan", "none", "null"}
_AMOUNT_NOISE = re.compile(r"[\s$,]")


def clean(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value).strip()


def is_missing(value: Any) -> bool:
    return clean(value).lower() in MISSING_MARKERS


def first_field(row: Mapping[str, Any], names: Sequence[str]) -> Optional[str]:
    """Value of the first of `names` present in the row, or None."""
    for name in names:
        if name in row:
            return clean(row[name])
    return None


# defaults differ in every date field, so a date part dateutil filled in
# from the default shows up as a mismatch
_DEFAULTS = (datetime(1900, 1, 1), datetime(1904, 2, 2))


def parse_timestamp(text: str, time_text: Optional[str] = None) -> datetime:
    """
    Parse a wall-clock timestamp such as "2025-02-18 10:30 AM".

    The result is naive. Any offset in the text is discarded; zone changes
    go through timezones.convert_timezone. The text must carry a full date:
    "10:05" or "7" raise DataQualityError instead of landing on today.
    """
    if time_text is not None and is_missing(text):
        raise DataQualityError(f"no date for time {clean(time_text)!r}")
    raw = clean(text)
    if time_text is not None:
        raw = f"{raw} {clean(time_text)}".strip()
    if is_missing(raw):
        raise DataQualityError("timestamp is empty")
    try:
        first, second = (date_parser.parse(raw, default=d) for d in _DEFAULTS)
    except (ValueError, OverflowError) as exc:
        raise DataQualityError(f"cannot parse timestamp {raw!r}") from exc
    if first.date() != second.date():
        raise DataQualityError(f"timestamp {raw!r} has no full date")
    return first.replace(tzinfo=None)


def parse_tip_amount(value: Any) -> float:
    """Parse a tip amount like "12.50" or "$1,204.00"."""
    text = _AMOUNT_NOISE.sub("", clean(value))
    negative = text.startswith("(") and text.endswith(")")
    if negative:
        text = text[1:-1]
    try:
        amount = float(text)
    except ValueError as exc:
        raise DataQualityError(f"cannot parse tip amount {clean(value)!r}") from exc
    if math.isnan(amount) or math.isinf(amount):
        raise DataQualityError(f"tip amount {clean(value)!r} is not a number")
    return -amount if negative else amount


def parse_hours(value: Any) -> Optional[float]:
    text = clean(value)
    if is_missing(text):
        return None
    try:
        hours = float(text)
    except ValueError:
        return None
    if math.isnan(hours) or hours <= 0:
        return None
    return hours
