from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import TypeAdapter

_datetime = TypeAdapter(datetime)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[Union[datetime, str]]) -> Optional[datetime]:
    """Normalize a timestamp to an aware UTC datetime.

    SQLite hands back naive datetimes for timezone-aware columns, and the
    remote store returns ISO-8601 strings (fractions trimmed of trailing
    zeros, ``Z`` or ``+00:00`` offsets); both are treated as UTC.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = _datetime.validate_python(value)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def iso(value: Optional[datetime]) -> Optional[str]:
    value = as_utc(value)
    return value.isoformat().replace("+00:00", "Z") if value else None
