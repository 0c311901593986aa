"""
Error taxonomy for habit operations.

ValidationError and NotFoundError are raised by the collection; StorageError
wraps failures from the persistence client. None of them are retried.
"""


class HabitError(Exception):
    pass


class ValidationError(HabitError):
    """Invalid input on create/update (e.g. empty name)."""


class NotFoundError(HabitError):
    def __init__(self, habit_id: str):
        super().__init__(f"Habit not found: {habit_id}")
        self.habit_id = habit_id


class StorageError(HabitError):
    """Load/save failure in the persistence boundary."""
