import os

from medtrack.core.env import load_env

load_env()

MEDTRACK_API_BASE = os.getenv("MEDTRACK_API_BASE", "http://127.0.0.1:8000")
MEDTRACK_TIMEOUT_S = int(os.getenv("MEDTRACK_TIMEOUT_S", "20"))
MEDTRACK_DB_PATH = os.getenv("MEDTRACK_DB_PATH", "")  # empty => medtrack/db/medtrack.db
MEDTRACK_TIMEZONE = os.getenv("MEDTRACK_TIMEZONE", "")  # empty => system local zone
MEDTRACK_LOG_LEVEL = os.getenv("MEDTRACK_LOG_LEVEL", "INFO")

NOTICE_SECONDS = float(os.getenv("NOTICE_SECONDS", "2.5"))
RECOMPUTE_COOLDOWN_S = float(os.getenv("RECOMPUTE_COOLDOWN_S", "0.3"))

CALENDAR_DAYS_BEFORE = int(os.getenv("CALENDAR_DAYS_BEFORE", "90"))
CALENDAR_DAYS_AFTER = int(os.getenv("CALENDAR_DAYS_AFTER", "89"))
SUMMARY_WINDOW_DAYS = int(os.getenv("SUMMARY_WINDOW_DAYS", "90"))

UPCOMING_LIMIT = int(os.getenv("UPCOMING_LIMIT", "5"))
UPCOMING_HORIZON_DAYS = int(os.getenv("UPCOMING_HORIZON_DAYS", "7"))
RECENT_DAYS = int(os.getenv("RECENT_DAYS", "7"))

REMINDER_WINDOW_MINUTES = int(os.getenv("REMINDER_WINDOW_MINUTES", "5"))
