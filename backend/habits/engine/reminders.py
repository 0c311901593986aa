"""
Reminder rules — pure functions, no I/O.
"""
from datetime import datetime
from typing import Iterable

from ..models import HabitRecord
from .streak import is_completed_on


def current_time_key(now: datetime) -> str:
    """Render a wall-clock time as HH:MM, matching the stored reminder format."""
    return f"{now.hour:02d}:{now.minute:02d}"


def should_notify(current_time: str, habit: HabitRecord, today: str) -> bool:
    return habit.reminder == current_time and not is_completed_on(habit, today)


def due_reminders(habits: Iterable[HabitRecord], current_time: str, today: str) -> list[HabitRecord]:
    return [h for h in habits if should_notify(current_time, h, today)]


def reminder_message(habit: HabitRecord) -> str:
    return f"Time to complete: {habit.name}"
