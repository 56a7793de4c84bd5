"""Series service - Business logic for creating, listing and editing recurring series"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import RECURRENCE_DEFAULT_HORIZON_MONTHS, RECURRENCE_MAX_OCCURRENCES
from ...enums import BookingStatus, RecurrenceFrequency, SeriesState
from ...models import Booking, User
from .availability_service import AvailabilityService
from .exceptions import (
    InvalidStateError,
    ResourceNotFoundError,
    SchedulingError,
    SchedulingValidationError,
    StorageFailure,
)
from .lifecycle_service import SubscriptionLifecycleService, is_paused, strip_legacy_marker
from .materializer import OccurrenceMaterializer
from .repository import BookingRepository
from .schemas import (
    BookingResponse,
    OccurrenceTemplate,
    RecurringSeriesCreate,
    ScheduleOverview,
    SeriesCreateResponse,
    SeriesModifyRequest,
    SeriesUpdateResult,
    SubscriptionDetailResponse,
    SubscriptionListResponse,
    SubscriptionListSummary,
    SubscriptionResponse,
)
from .subscription_view import derive_subscription
from .time_calculator import default_end_date, generate_recurring_dates, utcnow

logger = logging.getLogger(__name__)

# Number of dates echoed back in the creation response
PREVIEW_OCCURRENCES = 5


class SeriesService:
    """Service layer for recurring series"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()
        self.materializer = OccurrenceMaterializer(db)
        self.lifecycle = SubscriptionLifecycleService(db)
        self.availability = AvailabilityService(db)

    # ========================================================================
    # CREATION
    # ========================================================================

    def create_series(
        self,
        data: RecurringSeriesCreate,
        user: User,
        max_occurrences: int = RECURRENCE_MAX_OCCURRENCES,
    ) -> SeriesCreateResponse:
        """Create a booking and, for a repeating frequency, every generated occurrence after it"""
        company_id = user.company_id
        self._check_references(company_id, data.clientId, data.addressId, data.assignedTo)

        start = data.scheduledDate
        frequency = data.recurrenceFrequency
        recurring = frequency != RecurrenceFrequency.NONE

        dates: list[datetime] = []
        end_date: Optional[datetime] = None
        if recurring:
            dates, end_date = self._plan_dates(data, max_occurrences)

        parent = Booking(
            company_id=company_id,
            client_id=data.clientId,
            address_id=data.addressId,
            assigned_to=data.assignedTo,
            created_by_id=user.id,
            scheduled_at=start,
            duration_minutes=data.duration,
            service_type=data.serviceType.value,
            price=data.price,
            notes=data.notes,
            internal_notes=data.internalNotes,
            is_recurring=recurring,
            recurrence_frequency=frequency.value,
            recurrence_end_date=end_date,
            series_state=SeriesState.ACTIVE.value,
            status=BookingStatus.SCHEDULED.value,
            is_paid=False,
        )

        try:
            self.repo.add_booking(self.db, parent)
            if dates:
                template = OccurrenceTemplate.from_booking(parent)
                self.materializer.materialize(template, parent.id, dates)
            self.db.commit()
        except SchedulingError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"❌ Failed to create booking series for company {company_id}")
            raise StorageFailure("Failed to create recurring series") from e

        self.db.refresh(parent)
        total = 1 + len(dates)
        conflicts = self.availability.find_time_off_collisions(
            company_id, data.assignedTo, [start, *dates]
        )
        if conflicts:
            logger.warning(
                f"⚠️ Series {parent.id} has {len(conflicts)} dates inside approved time off"
            )

        logger.info(
            f"✅ Created booking {parent.id} with {len(dates)} generated occurrences "
            f"({frequency.value.lower()})"
        )

        return SeriesCreateResponse(
            parentBooking=BookingResponse.model_validate(parent),
            totalBookings=total,
            totalRevenue=data.price * total,
            schedule=ScheduleOverview(
                frequency=frequency,
                startDate=start,
                endDate=end_date,
                nextOccurrences=[start, *dates[: PREVIEW_OCCURRENCES - 1]],
            ),
            timeOffConflicts=conflicts,
            message=(
                f"Created recurring series with {total} bookings ({frequency.value.lower()})"
                if recurring
                else "Booking created"
            ),
        )

    def _plan_dates(
        self, data: RecurringSeriesCreate, max_occurrences: int
    ) -> tuple[list[datetime], datetime]:
        """
        Work out the generated dates and the end boundary stored on the parent.

        numberOfOccurrences is the total number of bookings in the series. The first
        booking is one of them, so children are capped at n - 1 and the last generated
        date becomes the stored end date.
        Without an explicit end date or count the series runs for the default horizon.
        """
        start = data.scheduledDate

        if data.numberOfOccurrences is not None:
            limit = min(data.numberOfOccurrences - 1, max_occurrences)
            dates = generate_recurring_dates(
                start, data.recurrenceFrequency, data.recurrenceEndDate, limit
            )
            end_date = data.recurrenceEndDate or (dates[-1] if dates else start)
            return dates, end_date

        end_date = data.recurrenceEndDate or default_end_date(
            start, RECURRENCE_DEFAULT_HORIZON_MONTHS
        )
        dates = generate_recurring_dates(start, data.recurrenceFrequency, end_date, max_occurrences)
        return dates, end_date

    def _check_references(
        self,
        company_id: int,
        client_id: int,
        address_id: int,
        team_member_id: Optional[int],
    ) -> None:
        client = self.repo.get_client(self.db, company_id, client_id)
        if not client or not self.repo.get_address(self.db, client.id, address_id):
            raise ResourceNotFoundError("Client or address not found")

        if team_member_id and not self.repo.get_team_member(self.db, company_id, team_member_id):
            raise ResourceNotFoundError("Team member not found")

    # ========================================================================
    # READS
    # ========================================================================

    def list_subscriptions(
        self,
        company_id: int,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> SubscriptionListResponse:
        """All series of a company with their derived status, optionally filtered"""
        now = now or utcnow()
        parents = self.repo.list_parents(self.db, company_id, client_id)
        children_by_parent = self.repo.get_children_by_parent(self.db, [p.id for p in parents])

        subscriptions = []
        for parent in parents:
            subscription = self._build_subscription(parent, children_by_parent[parent.id], now)
            if status and subscription.subscriptionStatus.value.lower() != status.lower():
                continue
            subscriptions.append(subscription)

        summary = SubscriptionListSummary(total=len(subscriptions))
        for subscription in subscriptions:
            key = subscription.subscriptionStatus.value.lower()
            setattr(summary, key, getattr(summary, key) + 1)

        return SubscriptionListResponse(data=subscriptions, summary=summary)

    def get_subscription(
        self, company_id: int, parent_id: int, now: Optional[datetime] = None
    ) -> SubscriptionDetailResponse:
        """One series with every occurrence"""
        now = now or utcnow()
        parent = self.lifecycle.get_parent(company_id, parent_id)
        children = self.repo.get_children(self.db, parent.id)
        subscription = self._build_subscription(parent, children, now)

        return SubscriptionDetailResponse(
            **subscription.model_dump(),
            occurrences=[BookingResponse.model_validate(b) for b in [parent, *children]],
        )

    def _build_subscription(
        self, parent: Booking, children: list[Booking], now: datetime
    ) -> SubscriptionResponse:
        summary = derive_subscription(parent, children, now)
        return SubscriptionResponse(
            booking=BookingResponse.model_validate(parent),
            subscriptionStatus=self.lifecycle.effective_status(parent, summary, now),
            isPaused=is_paused(parent),
            pausedAt=parent.paused_at,
            summary=summary,
        )

    # ========================================================================
    # EDITS
    # ========================================================================

    def modify_series(
        self,
        company_id: int,
        parent_id: int,
        data: SeriesModifyRequest,
        now: Optional[datetime] = None,
    ) -> SeriesUpdateResult:
        """
        Update the series template and every future scheduled occurrence.

        Works on paused series too; the new values are what a resume generates from.
        """
        now = now or utcnow()
        parent = self.lifecycle.get_parent(company_id, parent_id)

        if parent.status == BookingStatus.CANCELLED.value:
            raise InvalidStateError("Cannot modify a cancelled subscription")

        if data.assignedTo and not self.repo.get_team_member(self.db, company_id, data.assignedTo):
            raise ResourceNotFoundError("Team member not found")

        if data.recurrenceEndDate is not None and data.recurrenceEndDate < parent.scheduled_at:
            raise SchedulingValidationError("recurrenceEndDate must not be before the series start")

        updates = {}
        if data.duration is not None:
            updates["duration_minutes"] = data.duration
        if data.price is not None:
            updates["price"] = data.price
        if data.assignedTo is not None:
            updates["assigned_to"] = data.assignedTo
        if data.notes is not None:
            updates["notes"] = data.notes

        try:
            targets = self.repo.get_future_scheduled(self.db, parent.id, now, include_parent=False)
            affected = self.repo.update_bookings(self.db, targets, **updates) if updates else 0

            parent_updates = dict(updates)
            if data.recurrenceFrequency is not None:
                parent_updates["recurrence_frequency"] = data.recurrenceFrequency.value
            if data.recurrenceEndDate is not None:
                parent_updates["recurrence_end_date"] = data.recurrenceEndDate
            if parent_updates:
                self.repo.update_bookings(self.db, [parent], **parent_updates)

            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"❌ Failed to modify subscription {parent_id}")
            raise StorageFailure("Failed to update recurring series") from e

        logger.info(f"✏️ Subscription {parent_id} modified, {affected} future bookings updated")
        return SeriesUpdateResult(
            action="modified",
            affected=affected,
            message=f"Recurring series modified: {affected} bookings affected",
        )

    def cancel_series(
        self,
        company_id: int,
        parent_id: int,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> SeriesUpdateResult:
        """
        Cancel every future scheduled occurrence and end the series.

        Past occurrences keep their status; a parent still SCHEDULED becomes CANCELLED
        so the series derives as CANCELLED.
        """
        now = now or utcnow()
        parent = self.lifecycle.get_parent(company_id, parent_id)

        if parent.status == BookingStatus.CANCELLED.value:
            raise InvalidStateError("Subscription is already cancelled")

        try:
            targets = self.repo.get_future_scheduled(self.db, parent.id, now, include_parent=True)
            if parent.status == BookingStatus.SCHEDULED.value and parent not in targets:
                targets.append(parent)

            affected = self.repo.update_bookings(
                self.db,
                targets,
                status=BookingStatus.CANCELLED.value,
                cancelled_at=now,
                cancellation_reason=reason or "Recurring series cancelled",
            )
            # A cancelled series is never resumable
            self.repo.update_bookings(
                self.db,
                [parent],
                series_state=SeriesState.ACTIVE.value,
                paused_at=None,
                internal_notes=strip_legacy_marker(parent.internal_notes),
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"❌ Failed to cancel subscription {parent_id}")
            raise StorageFailure("Failed to cancel recurring series") from e

        logger.info(f"🛑 Subscription {parent_id} cancelled, {affected} bookings cancelled")
        return SeriesUpdateResult(
            action="cancelled",
            affected=affected,
            message=f"Recurring series cancelled: {affected} bookings affected",
        )


