"""Repository layer: all SQLAlchemy queries live here."""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .factory import RepositoryFactory
from .message_repository import MessageRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "MessageRepository",
    "RepositoryFactory",
    "UserRepository",
]
