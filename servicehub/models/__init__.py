# servicehub/models/__init__.py
"""
SQLAlchemy models. Importing this package registers every table on
``Base.metadata``.
"""

from .booking import Booking, BookingAttachment
from .message import Message
from .user import User

__all__ = ["Booking", "BookingAttachment", "Message", "User"]
