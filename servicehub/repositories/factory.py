# servicehub/repositories/factory.py
"""
Repository Factory for the ServiceHub Platform

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from sqlalchemy.orm import Session

from .booking_repository import BookingRepository
from .message_repository import MessageRepository
from .user_repository import UserRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation so services and tests can swap
    implementations in one place.
    """

    @staticmethod
    def create_user_repository(db: Session) -> UserRepository:
        """Create repository for user and provider lookups."""
        return UserRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> BookingRepository:
        """Create repository for booking operations."""
        return BookingRepository(db)

    @staticmethod
    def create_message_repository(db: Session) -> MessageRepository:
        """Create repository for chat messages."""
        return MessageRepository(db)
