"""Helpers for the absolute timestamps stored on vehicles and trips."""

from datetime import date, datetime
from typing import Optional, Union

from dateutil import parser, tz


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(tz.UTC)


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=tz.UTC)
    return value


def parse_timestamp(value: Union[str, date, datetime, None]) -> Optional[datetime]:
    """
    Parse a stored timestamp.

    Accepts ISO-8601 strings (with or without a 'Z' suffix), plain
    YYYY-MM-DD dates and date/datetime objects. Blank values give None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_aware(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=tz.UTC)
    text = str(value).strip()
    if not text:
        return None
    return ensure_aware(parser.isoparse(text))


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Format as ISO-8601 UTC with milliseconds, e.g. 2024-01-15T00:00:00.000Z."""
    if value is None:
        return None
    utc = ensure_aware(value).astimezone(tz.UTC)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


MONTHS_SHORT = [
    "Jan", "Feb", "Mar", "Apr", "Mei", "Jun",
    "Jul", "Agu", "Sep", "Okt", "Nov", "Des",
]
MONTHS_LONG = [
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
]


def to_local(value: datetime, timezone: str = "Asia/Jakarta") -> datetime:
    """Convert to the named zone (UTC when the name is unknown)."""
    return ensure_aware(value).astimezone(tz.gettz(timezone) or tz.UTC)


def format_local(
    value: Optional[datetime], timezone: str = "Asia/Jakarta", long: bool = False
) -> str:
    """
    Indonesian display format in the given zone.

    '15 Jan 2024, 10.30' (or '15 Januari 2024, 10.30' with long=True);
    '-' for a missing value.
    """
    if value is None:
        return "-"
    local = to_local(value, timezone)
    months = MONTHS_LONG if long else MONTHS_SHORT
    return f"{local.day} {months[local.month - 1]} {local.year}, {local:%H.%M}"


def format_local_date(value: date) -> str:
    """Short Indonesian date, e.g. '15/1/2024'."""
    return f"{value.day}/{value.month}/{value.year}"
