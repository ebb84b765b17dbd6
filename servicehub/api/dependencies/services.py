# servicehub/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.auth_service import AuthService
from ...services.booking_service import BookingService
from ...services.message_service import MessageService
from ...services.notification_service import NotificationService
from ...services.payment_service import PaymentService
from ...services.provider_service import ProviderService
from ...services.stats_service import StatsService
from ...services.upload_service import UploadService
from .database import get_db


@lru_cache(maxsize=1)
def get_notification_service() -> NotificationService:
    """NotificationService holds no session, so one instance is shared."""
    return NotificationService()


def get_upload_service() -> UploadService:
    return UploadService()


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db)


def get_booking_service(
    db: Session = Depends(get_db),
    upload_service: UploadService = Depends(get_upload_service),
) -> BookingService:
    """
    Get booking service instance.

    Args:
        db: Database session
        upload_service: Attachment storage

    Returns:
        BookingService instance
    """
    return BookingService(db, upload_service)


def get_message_service(db: Session = Depends(get_db)) -> MessageService:
    return MessageService(db)


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    return PaymentService(db)


def get_provider_service(db: Session = Depends(get_db)) -> ProviderService:
    return ProviderService(db)


def get_stats_service(db: Session = Depends(get_db)) -> StatsService:
    return StatsService(db)
