# servicehub/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .auth import (
    get_current_active_user,
    get_current_customer,
    get_current_provider,
    get_current_user,
    get_current_user_stream,
    require_admin,
)
from .database import get_db
from .services import (
    get_auth_service,
    get_booking_service,
    get_message_service,
    get_notification_service,
    get_payment_service,
    get_provider_service,
    get_stats_service,
)

__all__ = [
    # Auth
    "get_current_user",
    "get_current_user_stream",
    "get_current_active_user",
    "get_current_customer",
    "get_current_provider",
    "require_admin",
    # Database
    "get_db",
    # Services
    "get_auth_service",
    "get_booking_service",
    "get_message_service",
    "get_notification_service",
    "get_payment_service",
    "get_provider_service",
    "get_stats_service",
]
