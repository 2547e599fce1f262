# backend/tn_scheduler/constants.py
"""
Global constants for the scheduling engine.

Centralized location for all application constants to avoid hardcoded values
throughout the codebase.
"""

# =============================================================================
# TIME
# =============================================================================

DEFAULT_TIMEZONE = "Asia/Tokyo"

# =============================================================================
# SCHEDULER
# =============================================================================

SCHEDULER_MAX_INSTANCES = 1
# Cron jobs tolerate this much lateness before APScheduler drops a run
CRON_MISFIRE_GRACE_SECONDS = 30
CRON_FIELD_COUNT = 5

ONE_SHOT_JOB_PREFIX = "reminder"
CRON_JOB_PREFIX = "cron"
SYSTEM_JOB_PREFIX = "system"
HOUSEKEEPING_JOB_ID = f"{SYSTEM_JOB_PREFIX}_housekeeping"
HOUSEKEEPING_CRON = "0 2 * * *"

# =============================================================================
# DISPATCH
# =============================================================================

WEBHOOK_TIMEOUT_SECONDS = 10
WEBHOOK_USER_AGENT = "TN-API-Server-Reminder"
SMTP_TIMEOUT_SECONDS = 10

COMPLETION_TIMEOUT_SECONDS = 30
COMPLETION_API_URL = (
    "https://generativelanguage.googleapis.com/v1beta/models/"
    "gemini-2.0-flash:generateContent"
)
COMPLETION_MODEL = "gemini-2.0-flash"
COMPLETION_NO_TEXT = "No response text"

WEATHER_API_URL = "http://api.weatherapi.com/v1/forecast.json"
YAHOO_WEATHER_API_URL = "https://map.yahooapis.jp/weather/V1/place"
WEATHER_TIMEOUT_SECONDS = 15
WEATHER_FORECAST_DAYS = 2
WEATHER_HOURLY_POINTS = 24

EMAIL_SUBJECT_PREFIX = "🔔 Reminder: "
EMAIL_FOOTER = "TN API Server"

# =============================================================================
# RETENTION
# =============================================================================

WEATHER_RETENTION_DAYS = 30
RESULT_RETENTION_DAYS = 90

# =============================================================================
# STORAGE
# =============================================================================

DEFINITIONS_FILENAME = "schedule_definitions.json"
EXECUTION_RESULTS_FILENAME = "execution_results.json"
WEATHER_SNAPSHOTS_FILENAME = "weather_snapshots.json"
