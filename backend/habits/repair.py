"""
Audit of raw stored habit rows against the HabitRecord invariants.
"""
from pydantic import ValidationError as PydanticValidationError

from .engine.datekey import is_date_key
from .models import HabitRecord, normalize_reminder


def audit_row(row: dict) -> tuple[dict, list[str]]:
    """
    Returns (fixed_row, problems). fixed_row has completedDates valid,
    sorted and unique, lastCompleted equal to its latest entry, a
    non-negative streak and a well-formed (or cleared) reminder.
    The streak value itself is not recomputed.
    """
    problems: list[str] = []
    fixed = dict(row)

    raw_dates = row.get("completedDates") or []
    valid = [d for d in raw_dates if is_date_key(d)]
    if len(valid) != len(raw_dates):
        problems.append(f"dropped {len(raw_dates) - len(valid)} invalid date(s)")
    dates = sorted(set(valid))
    if len(dates) != len(valid):
        problems.append(f"dropped {len(valid) - len(dates)} duplicate date(s)")
    if dates != raw_dates and not problems:
        problems.append("completedDates out of order")
    fixed["completedDates"] = dates

    last = dates[-1] if dates else None
    if row.get("lastCompleted") != last:
        problems.append(f"lastCompleted {row.get('lastCompleted')!r} -> {last!r}")
    fixed["lastCompleted"] = last

    streak = row.get("streak") or 0
    if streak < 0:
        problems.append(f"negative streak {streak} -> 0")
        streak = 0
    fixed["streak"] = streak

    try:
        fixed["reminder"] = normalize_reminder(row.get("reminder"))
    except ValueError:
        problems.append(f"invalid reminder {row.get('reminder')!r} cleared")
        fixed["reminder"] = None

    return fixed, problems


def manual_problems(row: dict) -> list[str]:
    """
    Reasons a row still fails to load (blank name, missing id or createdAt,
    ...). audit_row cannot guess those values, so they need a person.
    """
    try:
        HabitRecord.model_validate(row)
    except PydanticValidationError as e:
        return [
            f"{'.'.join(str(p) for p in err['loc']) or 'row'}: {err['msg']}"
            for err in e.errors()
        ]
    return []
