from datetime import datetime, tzinfo

from dateutil import tz

from tippool.errors import ConfigurationError


def get_zone(name: str) -> tzinfo:
    zone = tz.gettz(name) if name else None
    if zone is None:
        raise ConfigurationError(f"Unknown timezone: {name!r}")
    return zone


def convert_timezone(moment: datetime, source_zone: str, target_zone: str) -> datetime:
    """
    Re-express a naive wall-clock time from `source_zone` in `target_zone`.

    Daylight-saving rules of both zones apply at that instant. The result is
    naive again so it can be floored onto the local slot grid.
    """
    source = get_zone(source_zone)
    target = get_zone(target_zone)
    if moment.tzinfo is not None:
        aware = moment.astimezone(source)
    else:
        aware = moment.replace(tzinfo=source)
    return aware.astimezone(target).replace(tzinfo=None)
