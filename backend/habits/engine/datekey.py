"""
Calendar-day keys — pure functions, no I/O.

A DateKey is a local calendar day rendered as YYYY-MM-DD. The fixed-width,
zero-padded format makes string order match calendar order.
"""
import re
from datetime import date, timedelta

DATE_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def from_date(d: date) -> str:
    return d.isoformat()


def to_date(key: str) -> date:
    return date.fromisoformat(key)


def is_date_key(value: str) -> bool:
    if not isinstance(value, str) or not DATE_KEY_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def today() -> str:
    """Key for the current local date."""
    return from_date(date.today())


def yesterday(today_key: str | None = None) -> str:
    """Key for the day before today_key (defaults to today())."""
    base = to_date(today_key) if today_key else date.today()
    return from_date(base - timedelta(days=1))


def adjacent(a: str, b: str) -> bool:
    """True iff b is exactly one calendar day after a."""
    return to_date(b) - to_date(a) == timedelta(days=1)
