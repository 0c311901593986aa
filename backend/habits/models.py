import re
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import Optional

from .engine.datekey import is_date_key

REMINDER_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
DEFAULT_COLOR = "#8b5cf6"
MAX_NAME_LENGTH = 100


def normalize_reminder(v: Optional[str]) -> Optional[str]:
    """Empty means no reminder; anything else must be a 24h HH:MM time."""
    if v is None or not v.strip():
        return None
    v = v.strip()
    if not REMINDER_RE.match(v):
        raise ValueError("reminder must be HH:MM (24h)")
    return v


class HabitRecord(BaseModel):
    """
    A tracked habit. Serializes with camelCase keys (completedDates,
    lastCompleted, createdAt) so stored rows keep the app's original shape.
    """
    id: str
    name: str = Field(min_length=1, max_length=MAX_NAME_LENGTH)
    color: str = DEFAULT_COLOR
    completed_dates: list[str] = []
    streak: int = Field(default=0, ge=0)
    last_completed: Optional[str] = None
    reminder: Optional[str] = None
    created_at: str
    model_config = {"alias_generator": to_camel, "populate_by_name": True, "extra": "ignore"}

    @field_validator("completed_dates")
    @classmethod
    def validate_completed_dates(cls, v):
        for key in v:
            if not is_date_key(key):
                raise ValueError(f"invalid date key: {key!r}")
        return sorted(set(v))

    @field_validator("last_completed")
    @classmethod
    def validate_last_completed(cls, v):
        if v is not None and not is_date_key(v):
            raise ValueError(f"invalid date key: {v!r}")
        return v

    @field_validator("reminder")
    @classmethod
    def validate_reminder(cls, v):
        return normalize_reminder(v)

    @model_validator(mode="after")
    def check_last_completed(self):
        expected = self.completed_dates[-1] if self.completed_dates else None
        if self.last_completed != expected:
            raise ValueError(
                f"lastCompleted {self.last_completed!r} does not match latest completed date {expected!r}"
            )
        return self


class HabitCreate(BaseModel):
    name: str = Field(min_length=1, max_length=MAX_NAME_LENGTH)
    color: str = DEFAULT_COLOR
    reminder: Optional[str] = None


class HabitPatch(BaseModel):
    name: str = Field(min_length=1, max_length=MAX_NAME_LENGTH)
    color: Optional[str] = None     # None keeps the current colour
    reminder: Optional[str] = None  # None or "" clears the reminder
