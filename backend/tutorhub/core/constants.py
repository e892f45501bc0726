# backend/tutorhub/core/constants.py
"""
Platform-wide constants for TutorHub.

Values here are fixed by the product, not by deployment. Anything that
operators may tune lives in core/config.py instead.
"""

BRAND_NAME = "TutorHub"

# Day keys used in a tutor's weekly availability document, Monday first so the
# index matches date.weekday().
DAY_KEYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

FALLBACK_OPEN_TIME = "09:00"
FALLBACK_CLOSE_TIME = "17:00"

MINUTES_PER_HOUR = 60
CENTS_PER_UNIT = 100

# Notification types emitted by the scheduling core
NOTIFICATION_SESSION_REQUESTED = "session_requested"
NOTIFICATION_SESSION_STATUS_CHANGED = "session_status_changed"

# Upper bound on sessions completed per auto-complete chunk
MAX_AUTO_COMPLETE_BATCH_SIZE = 500
