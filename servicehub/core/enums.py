# servicehub/core/enums.py
"""
Core enums for the ServiceHub platform.

Enumeration types shared by models, schemas and services. Values are the
wire values clients send and receive.
"""

from enum import Enum


class RoleName(str, Enum):
    """Account roles. Role is fixed when the account is created."""

    CUSTOMER = "customer"
    PROVIDER = "provider"
    ADMIN = "admin"


class ServiceType(str, Enum):
    """Service categories a provider can offer."""

    PLUMBING = "Plumbing"
    ELECTRICAL = "Electrical"
    CARPENTRY = "Carpentry"
    CLEANING = "Cleaning"
    PAINTING = "Painting"
    GARDENING = "Gardening"
    AC_REPAIR = "AC Repair"
    APPLIANCE_REPAIR = "Appliance Repair"
    HOME_MAINTENANCE = "Home Maintenance"
    OTHER = "Other"


class BookingStatus(str, Enum):
    """Booking lifecycle states."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Payment state of a booking."""

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class ReminderWindow(str, Enum):
    """Reminder windows scanned by the reminder job."""

    TWENTY_FOUR_HOURS = "24h"
    ONE_HOUR = "1h"
