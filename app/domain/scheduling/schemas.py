"""Scheduling domain schemas - Pydantic models for validation"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...enums import (
    RecurrenceFrequency,
    ServiceType,
    SubscriptionStatus,
    TimeOffType,
)


def to_naive_utc(v: Optional[datetime]) -> Optional[datetime]:
    """Bookings store naive UTC; convert offset-aware input such as ...Z timestamps"""
    if v is not None and v.tzinfo is not None:
        return v.astimezone(timezone.utc).replace(tzinfo=None)
    return v


# ============================================================================
# CORE VALUE OBJECTS
# ============================================================================


class OccurrenceTemplate(BaseModel):
    """Every booking field except the date; copied verbatim into generated occurrences"""

    company_id: int
    client_id: int
    address_id: int
    assigned_to: Optional[int] = None
    created_by_id: Optional[int] = None
    duration_minutes: int
    service_type: str
    price: float
    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    recurrence_frequency: RecurrenceFrequency

    @classmethod
    def from_booking(cls, booking) -> "OccurrenceTemplate":
        """Snapshot the current template fields of a parent booking"""
        return cls(
            company_id=booking.company_id,
            client_id=booking.client_id,
            address_id=booking.address_id,
            assigned_to=booking.assigned_to,
            created_by_id=booking.created_by_id,
            duration_minutes=booking.duration_minutes,
            service_type=booking.service_type,
            price=booking.price,
            notes=booking.notes,
            internal_notes=booking.internal_notes,
            recurrence_frequency=booking.recurrence_frequency,
        )


class SubscriptionSummary(BaseModel):
    """Derived rollup of one series; computed on demand, never stored"""

    status: SubscriptionStatus
    totalCount: int
    completedCount: int
    upcomingCount: int
    nextOccurrenceDate: Optional[datetime] = None
    totalRevenue: float
    paidRevenue: float
    unpaidRevenue: float


class PauseResult(BaseModel):
    occurrencesRemoved: int
    message: str


class ResumeResult(BaseModel):
    occurrencesCreated: int
    message: str


# ============================================================================
# SERIES REQUESTS
# ============================================================================


class RecurringSeriesCreate(BaseModel):
    """Schema for creating a booking, optionally the root of a recurring series"""

    clientId: int
    addressId: int
    serviceType: ServiceType = ServiceType.STANDARD
    scheduledDate: datetime
    duration: int = Field(120, ge=30)
    price: float = Field(..., ge=0)
    recurrenceFrequency: RecurrenceFrequency = RecurrenceFrequency.NONE
    recurrenceEndDate: Optional[datetime] = None
    # Total bookings in the series, the first one included
    numberOfOccurrences: Optional[int] = Field(None, ge=1, le=104)
    assignedTo: Optional[int] = None
    notes: Optional[str] = None
    internalNotes: Optional[str] = None

    @field_validator("scheduledDate", "recurrenceEndDate")
    @classmethod
    def normalize_dates(cls, v):
        return to_naive_utc(v)

    @model_validator(mode="after")
    def validate_recurrence(self):
        if self.recurrenceFrequency == RecurrenceFrequency.NONE:
            if self.recurrenceEndDate is not None or self.numberOfOccurrences is not None:
                raise ValueError("recurrenceEndDate and numberOfOccurrences require a frequency")
        if self.recurrenceEndDate is not None and self.recurrenceEndDate < self.scheduledDate:
            raise ValueError("recurrenceEndDate must not be before scheduledDate")
        return self


class SeriesModifyRequest(BaseModel):
    """Changes applied to the parent template and to future scheduled occurrences"""

    duration: Optional[int] = Field(None, ge=30)
    price: Optional[float] = Field(None, ge=0)
    assignedTo: Optional[int] = None
    notes: Optional[str] = None
    # Parent only - shapes what a later resume generates
    recurrenceFrequency: Optional[RecurrenceFrequency] = None
    recurrenceEndDate: Optional[datetime] = None

    @field_validator("recurrenceEndDate")
    @classmethod
    def normalize_dates(cls, v):
        return to_naive_utc(v)

    @field_validator("recurrenceFrequency")
    @classmethod
    def validate_frequency(cls, v):
        if v == RecurrenceFrequency.NONE:
            raise ValueError("A recurring series cannot be switched to NONE")
        return v


class SeriesCancelRequest(BaseModel):
    reason: Optional[str] = None


# ============================================================================
# SERIES RESPONSES
# ============================================================================


class BookingResponse(BaseModel):
    """Schema for a single occurrence"""

    id: int
    public_id: str
    client_id: int
    address_id: int
    assigned_to: Optional[int] = None
    scheduled_at: datetime
    duration_minutes: int
    service_type: str
    price: float
    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    is_recurring: bool
    recurrence_frequency: str
    recurrence_end_date: Optional[datetime] = None
    recurrence_parent_id: Optional[int] = None
    status: str
    is_paid: bool

    class Config:
        from_attributes = True


class ScheduleOverview(BaseModel):
    frequency: RecurrenceFrequency
    startDate: datetime
    endDate: Optional[datetime] = None
    nextOccurrences: list[datetime]


class SeriesCreateResponse(BaseModel):
    parentBooking: BookingResponse
    totalBookings: int
    totalRevenue: float
    schedule: ScheduleOverview
    # Generated dates that fall inside the assignee's approved time off
    timeOffConflicts: list[datetime] = []
    message: str


class SubscriptionResponse(BaseModel):
    booking: BookingResponse
    subscriptionStatus: SubscriptionStatus
    isPaused: bool
    pausedAt: Optional[datetime] = None
    summary: SubscriptionSummary


class SubscriptionListSummary(BaseModel):
    total: int = 0
    active: int = 0
    paused: int = 0
    completed: int = 0
    cancelled: int = 0


class SubscriptionListResponse(BaseModel):
    data: list[SubscriptionResponse]
    summary: SubscriptionListSummary


class SubscriptionDetailResponse(SubscriptionResponse):
    occurrences: list[BookingResponse]


class SeriesUpdateResult(BaseModel):
    action: str
    affected: int
    message: str


# ============================================================================
# TIME OFF
# ============================================================================


class TimeOffConflictCheckRequest(BaseModel):
    """Either a single date or a date range"""

    teamMemberId: Optional[int] = None
    date: Optional[datetime] = None
    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None

    @field_validator("date", "startDate", "endDate")
    @classmethod
    def normalize_dates(cls, v):
        return to_naive_utc(v)

    @model_validator(mode="after")
    def validate_window(self):
        if self.startDate is None and self.date is None:
            raise ValueError("Date or date range is required")
        return self


class TimeOffConflict(BaseModel):
    id: int
    type: str
    startDate: datetime
    endDate: datetime
    reason: Optional[str] = None
    teamMemberId: int
    cleanerName: str


class AvailableTeamMember(BaseModel):
    id: int
    name: str
    email: Optional[str] = None


class TimeOffConflictCheckResponse(BaseModel):
    hasConflicts: bool
    conflicts: list[TimeOffConflict]
    unavailableTeamMemberIds: list[int]
    availableTeamMembers: list[AvailableTeamMember]


class TimeOffRequestCreate(BaseModel):
    teamMemberId: int
    type: TimeOffType
    startDate: datetime
    endDate: datetime
    reason: Optional[str] = None

    @field_validator("startDate", "endDate")
    @classmethod
    def normalize_dates(cls, v):
        return to_naive_utc(v)

    @model_validator(mode="after")
    def validate_range(self):
        if self.endDate < self.startDate:
            raise ValueError("End date must be after or equal to start date")
        return self


class TimeOffRequestResponse(BaseModel):
    id: int
    teamMemberId: int
    type: str
    startDate: datetime
    endDate: datetime
    reason: Optional[str] = None
    status: str
    conflictedBookingIds: list[int]
    conflictCount: int
