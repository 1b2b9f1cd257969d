import re
from datetime import datetime, timedelta

from dateutil import parser as dateutil_parser
from dateutil.parser import ParserError

from . import clock

_RELATIVE_RE = re.compile(r"^\+(\d+)\s*([mhdw])$")
_UNITS = {"m": "minutes", "h": "hours", "d": "days", "w": "weeks"}


def as_local(dt: datetime) -> datetime:
    """Attach the local timezone to naive datetimes; leave aware ones alone."""
    if dt.tzinfo is None:
        return dt.astimezone()
    return dt


def parse_trigger(text: str, now: datetime | None = None) -> datetime:
    """Parse a trigger date ('2026-12-01 09:00', 'dec 1 9am', '+3d', '+12h').

    Naive results are read as local time. Raises ValueError if unparseable.
    """
    now = now or clock.now()
    raw = text.strip().lower()
    if not raw:
        raise ValueError("trigger date cannot be empty")

    m = _RELATIVE_RE.match(raw)
    if m:
        amount, unit = int(m.group(1)), m.group(2)
        return now + timedelta(**{_UNITS[unit]: amount})

    midnight = datetime(now.year, now.month, now.day)
    try:
        parsed = dateutil_parser.parse(text, default=midnight)
    except (ParserError, ValueError, OverflowError):
        raise ValueError(f"unrecognized date '{text}': use YYYY-MM-DD HH:MM or +3d") from None
    return as_local(parsed)


def parse_timestamp(val: object) -> datetime | None:
    """Parse a stored timestamp (ISO string or epoch seconds)."""
    if val is None or val == "":
        return None
    if isinstance(val, bool):
        raise ValueError(f"not a timestamp: {val!r}")
    if isinstance(val, (int, float)):
        try:
            return datetime.fromtimestamp(val).astimezone()
        except (OverflowError, OSError) as e:
            raise ValueError(f"timestamp out of range: {val!r}") from e
    if isinstance(val, str):
        return as_local(datetime.fromisoformat(val))
    raise ValueError(f"not a timestamp: {val!r}")


def format_when(dt: datetime | None) -> str:
    if dt is None:
        return "unknown"
    return dt.strftime("%Y-%m-%d %H:%M")


def format_relative(dt: datetime, now: datetime | None = None) -> str:
    """'in 3d', 'in 5h', '2d ago' relative to now."""
    now = now or clock.now()
    s = int((dt - now).total_seconds())
    future = s >= 0
    s = abs(s)
    if s < 3600:
        span = f"{s // 60}m"
    elif s < 86400:
        span = f"{s // 3600}h"
    else:
        span = f"{s // 86400}d"
    return f"in {span}" if future else f"{span} ago"
