import os

DEFAULT_ORIGINS = "http://localhost:3000"


def _flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


HABITS_TABLE = os.environ.get("HABITS_TABLE", "habits")

ALLOWED_ORIGINS = [
    o.strip() for o in os.environ.get("ALLOWED_ORIGINS", DEFAULT_ORIGINS).split(",") if o.strip()
]

# Reminders only fire once the operator opts in, like the browser permission prompt.
NOTIFICATIONS_ENABLED = _flag("NOTIFICATIONS_ENABLED")
REMINDER_POLL_SECONDS = int(os.environ.get("REMINDER_POLL_SECONDS", "60"))
