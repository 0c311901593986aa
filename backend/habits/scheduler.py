"""
Periodic reminder check.

Polls the stored habits on an interval and hands every habit whose reminder
is due to a notifier callable. Delivery (push, email, browser) is up to the
notifier; the default one only logs.
"""
import logging
from datetime import datetime
from typing import Callable, Iterable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from .engine import datekey
from .engine.reminders import current_time_key, due_reminders, reminder_message
from .errors import StorageError
from .models import HabitRecord

logger = logging.getLogger(__name__)

Notifier = Callable[[HabitRecord, str], None]


def log_notifier(habit: HabitRecord, message: str) -> None:
    logger.info("Habit Reminder for %s: %s", habit.id[:8], message)


class ReminderScheduler:
    def __init__(
        self,
        load_habits: Callable[[], Iterable[HabitRecord]],
        notify: Notifier = log_notifier,
        interval_seconds: int = 60,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._load_habits = load_habits
        self._notify = notify
        self._interval = interval_seconds
        self._clock = clock
        self._fired: set[tuple[str, str, str]] = set()
        self._scheduler: Optional[AsyncIOScheduler] = None

    def check(self, now: Optional[datetime] = None) -> list[HabitRecord]:
        """
        Fire every due reminder once. Calling again within the same minute
        fires nothing new, whatever the poll interval. A failed delivery is
        logged and does not stop the remaining habits.
        """
        now = now or self._clock()
        today = datekey.from_date(now.date())
        current_time = current_time_key(now)

        fired = []
        for habit in due_reminders(self._load_habits(), current_time, today):
            key = (habit.id, today, current_time)
            if key in self._fired:
                continue
            try:
                self._notify(habit, reminder_message(habit))
            except Exception as e:
                # left out of _fired so the next poll this minute retries it
                logger.error("Reminder delivery failed for %s: %s", habit.id[:8], e)
                continue
            self._fired.add(key)
            fired.append(habit)

        self._fired = {k for k in self._fired if k[1] == today and k[2] == current_time}
        return fired

    def start(self) -> None:
        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self._run, "interval", seconds=self._interval,
            id="reminder-check", max_instances=1, coalesce=True,
        )
        self._scheduler.start()
        logger.info("Reminder checks every %ds", self._interval)

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def shutdown(self) -> None:
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None

    def _run(self) -> None:
        try:
            fired = self.check()
        except StorageError as e:
            # next tick polls again
            logger.error("Reminder check skipped: %s", e)
            return
        if fired:
            logger.info("Fired %d reminder(s)", len(fired))
