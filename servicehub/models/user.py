# servicehub/models/user.py
"""
User model for the ServiceHub platform.

A single table holds customers, providers and admins. The role is fixed
when the account is created and decides which profile fields are required:
customers carry an address, providers carry their service offering.
"""

from datetime import datetime, timezone
import logging
from typing import Any, Dict

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from ..core.constants import DAYS_OF_WEEK, DEFAULT_END_TIME, DEFAULT_START_TIME
from ..core.enums import RoleName
from ..core.ulid_helper import generate_ulid
from ..database import Base

logger = logging.getLogger(__name__)


def default_availability() -> Dict[str, Dict[str, Any]]:
    """Every weekday unavailable, 09:00-18:00 working hours."""
    return {
        day: {"available": False, "start_time": DEFAULT_START_TIME, "end_time": DEFAULT_END_TIME}
        for day in DAYS_OF_WEEK
    }


class User(Base):
    """
    Account and profile for every platform participant.

    Attributes:
        id: ULID primary key
        email: Unique, lowercased login email
        hashed_password: Bcrypt hash
        role: customer, provider or admin
        address/city/pincode: Customer profile
        service_type/location/hourly_rate: Provider offering
        availability: Weekday map of {available, start_time, end_time}
        rating: Average of rated bookings, two decimal places
    """

    __tablename__ = "users"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)
    phone_number = Column(String(20), nullable=False)
    role = Column(String(20), nullable=False, default=RoleName.CUSTOMER.value, index=True)

    # Customer profile
    address = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    pincode = Column(String(20), nullable=True)

    # Provider profile
    service_type = Column(String(50), nullable=True, index=True)
    location = Column(String(255), nullable=True)
    hourly_rate = Column(Numeric(10, 2), nullable=True)
    experience = Column(Integer, nullable=True, default=0)
    description = Column(Text, nullable=True)
    skills = Column(JSON, nullable=False, default=list)
    certifications = Column(JSON, nullable=False, default=list)
    availability = Column(JSON, nullable=False, default=default_availability)
    rating = Column(Numeric(3, 2), nullable=False, default=0)

    profile_image = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    customer_bookings = relationship(
        "Booking", foreign_keys="Booking.customer_id", back_populates="customer"
    )
    provider_bookings = relationship(
        "Booking", foreign_keys="Booking.provider_id", back_populates="provider"
    )

    __table_args__ = (
        CheckConstraint("role IN ('customer', 'provider', 'admin')", name="ck_users_role"),
        CheckConstraint("rating >= 0 AND rating <= 5", name="ck_users_rating_range"),
        CheckConstraint(
            "hourly_rate IS NULL OR hourly_rate >= 1", name="ck_users_hourly_rate_min"
        ),
    )

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.email} ({self.role})>"

    @property
    def is_customer(self) -> bool:
        return self.role == RoleName.CUSTOMER

    @property
    def is_provider(self) -> bool:
        return self.role == RoleName.PROVIDER

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN
