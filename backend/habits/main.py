"""
Habit Streaks — FastAPI backend
"""
import logging
import threading
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .collection import HabitCollection
from .config import ALLOWED_ORIGINS, NOTIFICATIONS_ENABLED, REMINDER_POLL_SECONDS
from .db import get_client, load_habits, save_habit, delete_habit, ping
from .engine import datekey
from .engine.reminders import current_time_key, due_reminders, reminder_message
from .errors import NotFoundError, StorageError, ValidationError
from .models import HabitCreate, HabitPatch, HabitRecord, REMINDER_RE
from .scheduler import ReminderScheduler

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

# Serializes load → mutate → save; sync handlers run on a thread pool.
_store_lock = threading.Lock()


@asynccontextmanager
async def lifespan(app: FastAPI):
    reminders = None
    if NOTIFICATIONS_ENABLED:
        reminders = app.state.reminders = ReminderScheduler(
            lambda: load_habits(get_client()),
            interval_seconds=REMINDER_POLL_SECONDS,
        )
        reminders.start()
    yield
    if reminders:
        reminders.shutdown()


limiter = Limiter(key_func=get_remote_address)
app = FastAPI(title="Habit Streaks API", lifespan=lifespan)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Content-Type"],
)


# ── Error mapping ─────────────────────────────────────────────────────────────

def _validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


def _not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


def _storage_error_handler(request: Request, exc: StorageError):
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})


app.add_exception_handler(ValidationError, _validation_error_handler)
app.add_exception_handler(NotFoundError, _not_found_handler)
app.add_exception_handler(StorageError, _storage_error_handler)


@app.get("/health")
def health():
    try:
        ping(get_client())
        return {"status": "ok", "db": "ok"}
    except StorageError as e:
        logger.error("Health check DB failure: %s", e)
        raise HTTPException(status_code=503, detail="DB unavailable")


# ── Habits ────────────────────────────────────────────────────────────────────

@app.get("/api/habits")
def list_habits():
    habits = _load_collection(get_client())
    return {"habits": [_habit_out(habits, h) for h in habits]}


@app.post("/api/habits", status_code=201)
@limiter.limit("60/minute")
def create_habit(request: Request, body: HabitCreate):
    with _store_lock:
        db = get_client()
        habits = _load_collection(db)
        record = habits.create(body.name, body.color, body.reminder)
        save_habit(db, record, position=len(habits) - 1)
    return _habit_out(habits, record)


@app.get("/api/habits/{habit_id}")
def get_habit(habit_id: str):
    habits = _load_collection(get_client())
    return _habit_out(habits, habits.get(habit_id))


@app.patch("/api/habits/{habit_id}")
@limiter.limit("60/minute")
def update_habit(request: Request, habit_id: str, body: HabitPatch):
    with _store_lock:
        db = get_client()
        habits = _load_collection(db)
        record = habits.update(habit_id, body.name, body.color, body.reminder)
        save_habit(db, record)
    return _habit_out(habits, record)


@app.delete("/api/habits/{habit_id}")
@limiter.limit("60/minute")
def remove_habit(request: Request, habit_id: str):
    with _store_lock:
        db = get_client()
        habits = _load_collection(db)
        habits.delete(habit_id)
        delete_habit(db, habit_id)
    return {"status": "deleted"}


@app.post("/api/habits/{habit_id}/toggle")
@limiter.limit("120/minute")
def toggle_habit(request: Request, habit_id: str):
    with _store_lock:
        db = get_client()
        habits = _load_collection(db)
        record = habits.toggle_today(habit_id)
        save_habit(db, record)
    return _habit_out(habits, record)


# ── Reminders ─────────────────────────────────────────────────────────────────

@app.get("/api/reminders/due")
def get_due_reminders(time: Optional[str] = Query(None, pattern=REMINDER_RE.pattern)):
    """Habits whose reminder matches `time` (default: now) and are not done today."""
    now = datetime.now()
    current_time = time or current_time_key(now)
    habits = _load_collection(get_client())
    due = due_reminders(habits, current_time, datekey.from_date(now.date()))
    return {
        "time": current_time,
        "due": [{"id": h.id, "name": h.name, "message": reminder_message(h)} for h in due],
    }


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_collection(db) -> HabitCollection:
    try:
        return HabitCollection(load_habits(db))
    except ValidationError as e:
        # duplicate ids in storage are a data problem, not a client one
        raise StorageError(str(e)) from e


def _habit_out(habits: HabitCollection, record: HabitRecord) -> dict:
    return {**record.model_dump(by_alias=True), "completedToday": habits.is_completed_today(record)}
