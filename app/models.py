import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .enums import BookingStatus, RecurrenceFrequency, Role, SeriesState, TimeOffStatus


def generate_public_id():
    """Generate a unique public ID for secure public access"""
    return str(uuid.uuid4())


class Company(Base):
    """Tenant - a cleaning business using the CRM"""

    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    tax_rate = Column(Float, default=0.0, nullable=False)  # Percentage, e.g. 8.25
    created_at = Column(DateTime, server_default=func.now())

    users = relationship("User", back_populates="company")
    clients = relationship("Client", back_populates="company")
    team_members = relationship("TeamMember", back_populates="company")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    firebase_uid = Column(String(255), unique=True, index=True, nullable=False)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    full_name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    role = Column(String(50), default=Role.OWNER.value, nullable=False)  # OWNER, ADMIN, CLEANER, CUSTOMER
    created_at = Column(DateTime, server_default=func.now())

    company = relationship("Company", back_populates="users")
    team_member = relationship("TeamMember", back_populates="user", uselist=False)


class TeamMember(Base):
    """Cleaner profile within a company; bookings are assigned to team members"""

    __tablename__ = "team_members"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    company = relationship("Company", back_populates="team_members")
    user = relationship("User", back_populates="team_member")
    time_off_requests = relationship("TimeOffRequest", back_populates="team_member")

    @property
    def display_name(self) -> str:
        if self.user is None:
            return ""
        return self.user.full_name or self.user.email


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(
        String(36), unique=True, nullable=False, index=True, default=generate_public_id
    )
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    company = relationship("Company", back_populates="clients")
    addresses = relationship("Address", back_populates="client", cascade="all, delete-orphan")


class Address(Base):
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    street = Column(String(255), nullable=False)
    city = Column(String(100), nullable=True)
    state = Column(String(50), nullable=True)
    zip = Column(String(20), nullable=True)

    client = relationship("Client", back_populates="addresses")


class Booking(Base):
    """
    A single cleaning occurrence.

    Recurring series form a one-level tree: the parent has recurrence_parent_id NULL and
    carries the authoritative recurrence metadata; generated children point at the parent.
    """

    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint(
            "recurrence_parent_id IS NULL OR recurrence_parent_id <> id",
            name="ck_bookings_not_own_parent",
        ),
        Index("ix_bookings_series_schedule", "recurrence_parent_id", "scheduled_at", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(
        String(36), unique=True, nullable=False, index=True, default=generate_public_id
    )

    # Tenant and references (copied from the parent when a series is generated)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    address_id = Column(Integer, ForeignKey("addresses.id"), nullable=False)
    assigned_to = Column(Integer, ForeignKey("team_members.id"), nullable=True, index=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    # Scheduling - the only field that varies across a generated series
    scheduled_at = Column(DateTime, nullable=False, index=True)

    # Template fields
    duration_minutes = Column(Integer, nullable=False, default=120)
    service_type = Column(String(50), nullable=False, default="STANDARD")
    price = Column(Float, nullable=False, default=0.0)
    notes = Column(Text, nullable=True)
    internal_notes = Column(Text, nullable=True)

    # Recurrence
    is_recurring = Column(Boolean, default=False, nullable=False)
    recurrence_frequency = Column(
        String(20), default=RecurrenceFrequency.NONE.value, nullable=False
    )
    recurrence_end_date = Column(DateTime, nullable=True)  # Authoritative on the parent only
    recurrence_parent_id = Column(Integer, ForeignKey("bookings.id"), nullable=True, index=True)
    # Pause marker, authoritative on the parent only
    series_state = Column(String(20), default=SeriesState.ACTIVE.value, nullable=False)
    paused_at = Column(DateTime, nullable=True)

    # Status workflow: SCHEDULED → CLEANER_COMPLETED → COMPLETED, or CANCELLED / NO_SHOW
    status = Column(String(50), default=BookingStatus.SCHEDULED.value, nullable=False, index=True)
    is_paid = Column(Boolean, default=False, nullable=False)
    cancelled_at = Column(DateTime, nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    client = relationship("Client")
    address = relationship("Address")
    assignee = relationship("TeamMember")
    parent = relationship("Booking", remote_side=[id], back_populates="children")
    children = relationship(
        "Booking",
        back_populates="parent",
        order_by="Booking.scheduled_at",
    )

    @property
    def is_series_parent(self) -> bool:
        return self.is_recurring and self.recurrence_parent_id is None


class TimeOffRequest(Base):
    __tablename__ = "time_off_requests"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    team_member_id = Column(Integer, ForeignKey("team_members.id"), nullable=False, index=True)
    type = Column(String(20), nullable=False)  # VACATION, SICK, PERSONAL, OTHER
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    reason = Column(Text, nullable=True)
    status = Column(String(20), default=TimeOffStatus.PENDING.value, nullable=False, index=True)
    # Bookings that were already scheduled inside the window when the request was made
    conflicted_booking_ids = Column(JSON, default=list, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    team_member = relationship("TeamMember", back_populates="time_off_requests")
