"""
UTC-first datetime utilities.

- All reading timestamps are stored and processed as UTC instants
- ISO 8601 with a 'Z' suffix is the storage and wire format
- Conversion to a person's wall clock happens only when formatting

Usage:
    from core.datetime_utils import utc_now, parse_datetime, format_iso, format_for_display

    dt = parse_datetime("2024-01-15T10:30:00+08:00")  # 02:30 UTC
    format_iso(dt)                                    # "2024-01-15T02:30:00Z"
    format_for_display(dt, ZoneInfo("Asia/Taipei"))   # "2024/01/15 10:30"
"""
import logging
from datetime import datetime, timezone, tzinfo
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


# =============================================================================
# CORE UTILITIES
# =============================================================================

def utc_now() -> datetime:
    """Get current datetime in UTC with timezone info."""
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    - If datetime is naive (no timezone), assumes it's already UTC
    - If datetime has timezone, converts to UTC
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def get_timezone(name: Optional[str]) -> tzinfo:
    """
    Resolve an IANA timezone name, falling back to UTC.

    Args:
        name: Timezone name such as "Asia/Taipei". Empty means UTC.

    Returns:
        tzinfo usable with datetime.astimezone().
    """
    if not name or name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown display timezone '{name}', using UTC")
        return timezone.utc


# =============================================================================
# PARSING
# =============================================================================

def parse_datetime(value: Union[str, datetime]) -> datetime:
    """
    Parse a datetime value to UTC datetime.

    Accepts datetime objects, ISO 8601 strings (with or without timezone,
    with or without a 'Z' suffix) and a few common date formats.

    Raises:
        ValueError: If the value cannot be parsed.

    Examples:
        >>> parse_datetime("2024-01-15T10:30:00Z")
        datetime.datetime(2024, 1, 15, 10, 30, tzinfo=datetime.timezone.utc)
    """
    if isinstance(value, datetime):
        return to_utc(value)

    if not isinstance(value, str):
        raise ValueError(f"Expected datetime or string, got {type(value).__name__}")

    value = value.strip()

    try:
        if value.endswith('Z'):
            value = value[:-1] + '+00:00'
        return to_utc(datetime.fromisoformat(value))
    except ValueError:
        pass

    formats = [
        "%Y-%m-%d %H:%M:%S",
        "%Y-%m-%d %H:%M",
        "%Y-%m-%d",
        "%Y/%m/%d %H:%M",
        "%Y/%m/%d",
    ]

    for fmt in formats:
        try:
            return datetime.strptime(value, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue

    raise ValueError(f"Cannot parse datetime: '{value}'")


# =============================================================================
# FORMATTING
# =============================================================================

def format_iso(dt: datetime) -> str:
    """
    Format datetime to ISO 8601 string with UTC timezone.

    Example:
        >>> format_iso(datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc))
        '2024-01-15T10:30:00Z'
    """
    utc_dt = to_utc(dt)
    if utc_dt.microsecond:
        return utc_dt.strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    return utc_dt.strftime("%Y-%m-%dT%H:%M:%SZ")


def format_for_display(dt: datetime, tz: Optional[tzinfo] = None) -> str:
    """
    Format an instant as local wall-clock time for reports.

    Args:
        dt: Instant to format.
        tz: Display timezone (default UTC).

    Returns:
        str: "YYYY/MM/DD HH:MM".
    """
    local = to_utc(dt).astimezone(tz or timezone.utc)
    return local.strftime("%Y/%m/%d %H:%M")
