"""
Ordered habit collection — CRUD over HabitRecords, no DB access.

Every mutation swaps in a new tuple of records, so a snapshot taken with
records() is never changed behind the caller's back. Persisting the result
is the caller's job.
"""
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Callable, Iterable, Iterator, Optional

from .engine import datekey
from .engine.streak import is_completed_on, toggle
from .errors import NotFoundError, ValidationError
from .models import DEFAULT_COLOR, MAX_NAME_LENGTH, HabitRecord, normalize_reminder

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _clean_name(name: str) -> str:
    if not name or not name.strip():
        raise ValidationError("name must not be empty")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"name must be at most {MAX_NAME_LENGTH} characters")
    return name


def _clean_reminder(reminder: Optional[str]) -> Optional[str]:
    try:
        return normalize_reminder(reminder)
    except ValueError as e:
        raise ValidationError(str(e)) from e


class HabitCollection:
    def __init__(
        self,
        habits: Iterable[HabitRecord] = (),
        today: Callable[[], str] = datekey.today,
    ):
        records = tuple(habits)
        ids = [h.id for h in records]
        if len(ids) != len(set(ids)):
            raise ValidationError("duplicate habit ids in collection")
        self._records = records
        self._today = today
        self._lock = threading.Lock()

    def __iter__(self) -> Iterator[HabitRecord]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def records(self) -> tuple[HabitRecord, ...]:
        return self._records

    def get(self, habit_id: str) -> HabitRecord:
        return self._find(habit_id)

    def create(self, name: str, color: str = DEFAULT_COLOR, reminder: Optional[str] = None) -> HabitRecord:
        name = _clean_name(name)
        reminder = _clean_reminder(reminder)
        record = HabitRecord(
            id=_new_id(),
            name=name,
            color=color,
            reminder=reminder,
            created_at=_now_iso(),
        )
        with self._lock:
            self._records = (*self._records, record)
        logger.info("Habit created: %s (%s)", record.id[:8], record.name)
        return record

    def update(
        self,
        habit_id: str,
        name: str,
        color: Optional[str] = None,
        reminder: Optional[str] = None,
    ) -> HabitRecord:
        """Edit name/colour/reminder. Streak state is never touched here."""
        name = _clean_name(name)
        reminder = _clean_reminder(reminder)
        with self._lock:
            current = self._find(habit_id)
            updated = current.model_copy(update={
                "name": name,
                "color": color if color is not None else current.color,
                "reminder": reminder,
            })
            self._replace(updated)
        logger.info("Habit updated: %s", habit_id[:8])
        return updated

    def delete(self, habit_id: str) -> None:
        with self._lock:
            self._find(habit_id)
            self._records = tuple(h for h in self._records if h.id != habit_id)
        logger.info("Habit deleted: %s", habit_id[:8])

    def toggle_today(self, habit_id: str) -> HabitRecord:
        with self._lock:
            updated = toggle(self._find(habit_id), self._today())
            self._replace(updated)
        logger.info("Habit toggled: %s streak=%d", habit_id[:8], updated.streak)
        return updated

    def is_completed_today(self, record: HabitRecord) -> bool:
        return is_completed_on(record, self._today())

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _find(self, habit_id: str) -> HabitRecord:
        for h in self._records:
            if h.id == habit_id:
                return h
        raise NotFoundError(habit_id)

    def _replace(self, record: HabitRecord) -> None:
        self._records = tuple(record if h.id == record.id else h for h in self._records)
