from typing import Union

from pydantic_settings import BaseSettings, SettingsConfigDict

from tippool.models import AllocationPolicy, IntervalAnchor

DEFAULT_INTERVAL_MINUTES = 15
DEFAULT_BOH_RATIO = 0.15
DEFAULT_TOLERANCE = 0.01


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="TIPPOOL_", env_file=".env", extra="ignore")

    # Slot length and ratio are kept raw; invalid values fall back with a
    # warning when a run starts (see intervals.validate_interval_minutes and
    # allocation.validate_boh_ratio).
    interval_minutes: Union[int, float, str] = DEFAULT_INTERVAL_MINUTES
    boh_ratio: Union[float, str] = DEFAULT_BOH_RATIO

    policy: AllocationPolicy = AllocationPolicy.FULL_FALLBACK
    anchor: IntervalAnchor = IntervalAnchor.CALENDAR

    merge_shifts: bool = True
    merge_tolerance_minutes: int = 1

    convert_timezone: bool = False
    source_timezone: str = "America/Chicago"
    target_timezone: str = "America/New_York"

    strict: bool = True
    tolerance: float = DEFAULT_TOLERANCE

    database_path: str = "tips.db"
