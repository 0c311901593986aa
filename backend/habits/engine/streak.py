"""
Streak tracking — pure functions, no DB access.
"""
from ..models import HabitRecord
from .datekey import yesterday


def is_completed_on(record: HabitRecord, day: str) -> bool:
    return day in record.completed_dates


def toggle(record: HabitRecord, today: str) -> HabitRecord:
    """
    Mark or unmark `today` for a habit. Returns a new record with
    completed_dates, streak and last_completed replaced together; the
    input record is left untouched.

    Un-marking decrements the streak by one without re-deriving the chain
    from the remaining dates, so after a gap the streak can disagree with
    the longest run ending at last_completed. Only today can be toggled.
    """
    if is_completed_on(record, today):
        dates = [d for d in record.completed_dates if d != today]
        new_streak = max(0, record.streak - 1)
        last = dates[-1] if dates else None
    else:
        was_yesterday_completed = is_completed_on(record, yesterday(today))
        if was_yesterday_completed or record.streak == 0:
            new_streak = record.streak + 1
        else:
            new_streak = 1
        dates = sorted([*record.completed_dates, today])
        last = dates[-1]  # today, unless the clock moved backwards

    return record.model_copy(update={
        "completed_dates": dates,
        "streak": new_streak,
        "last_completed": last,
    })
