"""Enum definitions for booking and scheduling constants."""

from enum import Enum


class Role(str, Enum):
    """Company member roles. Only OWNER and ADMIN manage recurring series."""

    OWNER = "OWNER"
    ADMIN = "ADMIN"
    CLEANER = "CLEANER"
    CUSTOMER = "CUSTOMER"


class RecurrenceFrequency(str, Enum):
    NONE = "NONE"
    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"


class BookingStatus(str, Enum):
    """
    Per-occurrence status.

    SCHEDULED → CLEANER_COMPLETED → COMPLETED, or SCHEDULED → CANCELLED / NO_SHOW
    """

    SCHEDULED = "SCHEDULED"
    CLEANER_COMPLETED = "CLEANER_COMPLETED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


class SeriesState(str, Enum):
    """Persisted pause marker on a series parent."""

    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"


class SubscriptionStatus(str, Enum):
    """Derived status of a series; never stored."""

    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ServiceType(str, Enum):
    STANDARD = "STANDARD"
    DEEP = "DEEP"
    MOVE_IN = "MOVE_IN"
    MOVE_OUT = "MOVE_OUT"
    POST_CONSTRUCTION = "POST_CONSTRUCTION"
    POST_PARTY = "POST_PARTY"
    OFFICE = "OFFICE"
    AIRBNB = "AIRBNB"
    CUSTOM = "CUSTOM"


class TimeOffType(str, Enum):
    VACATION = "VACATION"
    SICK = "SICK"
    PERSONAL = "PERSONAL"
    OTHER = "OTHER"


class TimeOffStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    DENIED = "DENIED"
