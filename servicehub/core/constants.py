"""Application-wide constants for the ServiceHub platform."""

from __future__ import annotations

BRAND_NAME = "ServiceHub"
API_VERSION = "1.0.0"

# Password / profile constraints
MIN_PASSWORD_LENGTH = 6
MAX_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 2000
MAX_MESSAGE_LENGTH = 2000

# Rating
MIN_RATING = 1
MAX_RATING = 5

# Query limits
DEFAULT_PROVIDER_PAGE_SIZE = 10
MAX_PROVIDER_PAGE_SIZE = 100
DEFAULT_CHAT_PAGE_SIZE = 50
MAX_CHAT_PAGE_SIZE = 200

# Day of week keys used by provider availability
DAYS_OF_WEEK = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
DEFAULT_START_TIME = "09:00"
DEFAULT_END_TIME = "18:00"

# Uploads
ALLOWED_UPLOAD_MIME_PREFIXES = ("image/", "video/")
UPLOADS_URL_PREFIX = "/uploads"

# Reminder windows (hours before the scheduled start)
REMINDER_WINDOW_24H_HOURS = 24
REMINDER_WINDOW_1H_HOURS = 1

# SSE (Server-Sent Events) configuration
SSE_PATH_PREFIX = "/api/v1/realtime/stream"
