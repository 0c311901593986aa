import os
import logging
from functools import lru_cache
from typing import Optional

from pydantic import ValidationError as PydanticValidationError
from supabase import create_client, Client

from .config import HABITS_TABLE
from .errors import StorageError
from .models import HabitRecord

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_client() -> Client:
    try:
        url = os.environ["SUPABASE_URL"]
        key = os.environ["SUPABASE_SERVICE_KEY"]
    except KeyError as e:
        raise StorageError(f"Missing storage setting: {e.args[0]}") from e
    return create_client(url, key)


def habit_to_row(record: HabitRecord, position: Optional[int] = None) -> dict:
    """
    Serialized habit. `position` is only set on insert; an upsert without it
    leaves the stored slot in the insertion order untouched.
    """
    row = record.model_dump(by_alias=True)
    if position is not None:
        row["position"] = position
    return row


def ping(db: Client) -> None:
    try:
        db.table(HABITS_TABLE).select("id").limit(1).execute()
    except Exception as e:
        logger.error("Storage ping failed: %s", e)
        raise StorageError("Storage unavailable") from e


def load_habits(db: Client) -> list[HabitRecord]:
    try:
        res = db.table(HABITS_TABLE).select("*").order("position").order("createdAt").execute()
    except Exception as e:
        logger.error("Failed to load habits: %s", e)
        raise StorageError("Could not load habits") from e

    try:
        return [HabitRecord.model_validate(row) for row in (res.data or [])]
    except PydanticValidationError as e:
        logger.error("Stored habit failed validation: %s", e)
        raise StorageError("Stored habit data is invalid") from e


def save_habit(db: Client, record: HabitRecord, position: Optional[int] = None) -> None:
    """Write one habit row; other rows are never touched."""
    try:
        db.table(HABITS_TABLE).upsert(habit_to_row(record, position)).execute()
    except Exception as e:
        logger.error("Failed to save habit %s: %s", record.id[:8], e)
        raise StorageError("Could not save habit") from e


def delete_habit(db: Client, habit_id: str) -> None:
    try:
        db.table(HABITS_TABLE).delete().eq("id", habit_id).execute()
    except Exception as e:
        logger.error("Failed to delete habit %s: %s", habit_id[:8], e)
        raise StorageError("Could not delete habit") from e
