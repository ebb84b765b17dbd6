# servicehub/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
"""

from . import admin, auth, bookings, chat, payments, providers, realtime

__all__ = [
    "admin",
    "auth",
    "bookings",
    "chat",
    "payments",
    "providers",
    "realtime",
]
