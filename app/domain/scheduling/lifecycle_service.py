"""
Subscription lifecycle - pause and resume of recurring series.

States: ACTIVE <-> PAUSED, with COMPLETED and CANCELLED terminal for scheduling.
Each transition starts with a conditional write on the parent, so two concurrent
requests against the same series cannot both succeed.
"""

import logging
import re
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import RECURRENCE_DEFAULT_HORIZON_MONTHS, RECURRENCE_MAX_OCCURRENCES
from ...enums import BookingStatus, SeriesState, SubscriptionStatus
from ...models import Booking
from .exceptions import (
    InvalidStateError,
    SchedulingError,
    SeriesNotFoundError,
    StorageFailure,
)
from .materializer import OccurrenceMaterializer
from .repository import LEGACY_PAUSE_MARKER, BookingRepository
from .schemas import OccurrenceTemplate, PauseResult, ResumeResult, SubscriptionSummary
from .subscription_view import derive_subscription
from .time_calculator import default_end_date, generate_recurring_dates, start_of_tomorrow, utcnow

logger = logging.getLogger(__name__)

_LEGACY_MARKER_RE = re.compile(r"^\[PAUSED\].*?Original notes: ?", re.DOTALL)


def has_legacy_marker(booking: Booking) -> bool:
    return bool(booking.internal_notes) and booking.internal_notes.startswith(LEGACY_PAUSE_MARKER)


def is_paused(booking: Booking) -> bool:
    return booking.series_state == SeriesState.PAUSED.value or has_legacy_marker(booking)


def strip_legacy_marker(notes: Optional[str]) -> Optional[str]:
    """Recover the notes a legacy pause wrapped inside its marker text"""
    if not notes or not notes.startswith(LEGACY_PAUSE_MARKER):
        return notes
    restored = _LEGACY_MARKER_RE.sub("", notes, count=1)
    if restored == notes:
        # Marker without the original notes suffix
        return None
    return restored or None


class SubscriptionLifecycleService:
    """Service for pausing and resuming recurring series"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()
        self.materializer = OccurrenceMaterializer(db)

    def get_parent(self, company_id: int, parent_id: int) -> Booking:
        """Get a series parent, rejecting ids that point at a generated child"""
        parent = self.repo.get_parent(self.db, company_id, parent_id)
        if parent:
            return parent

        booking = self.repo.get_booking(self.db, company_id, parent_id)
        if booking and booking.recurrence_parent_id is not None:
            raise InvalidStateError(
                "This booking belongs to a series; manage the series through its parent booking"
            )
        raise SeriesNotFoundError("Subscription not found")

    def effective_status(
        self,
        parent: Booking,
        summary: SubscriptionSummary,
        now: Optional[datetime] = None,
    ) -> SubscriptionStatus:
        """Overlay the pause marker on the derived status"""
        now = now or utcnow()
        if not is_paused(parent) or summary.status == SubscriptionStatus.CANCELLED:
            return summary.status
        if parent.recurrence_end_date and parent.recurrence_end_date < now:
            return summary.status
        return SubscriptionStatus.PAUSED

    def pause(self, company_id: int, parent_id: int, now: Optional[datetime] = None) -> PauseResult:
        """Remove not-yet-serviced children and mark the series paused"""
        now = now or utcnow()
        parent = self.get_parent(company_id, parent_id)

        if is_paused(parent):
            raise InvalidStateError("Subscription is already paused")

        summary = derive_subscription(parent, self.repo.get_children(self.db, parent.id), now)
        if summary.status in (SubscriptionStatus.CANCELLED, SubscriptionStatus.COMPLETED):
            raise InvalidStateError(
                f"Cannot pause a {summary.status.value.lower()} subscription"
            )

        try:
            if not self.repo.claim_pause(self.db, parent.id, now):
                raise InvalidStateError("Subscription is already paused")
            removed = self.repo.delete_future_scheduled_children(self.db, parent.id, now)
            self.db.commit()
        except SchedulingError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"❌ Failed to pause subscription {parent_id}")
            raise StorageFailure("Failed to pause subscription") from e

        logger.info(f"⏸️ Subscription {parent_id} paused, {removed} future bookings removed")

        return PauseResult(
            occurrencesRemoved=removed,
            message=f"Subscription paused. {removed} future bookings removed.",
        )

    def resume(
        self, company_id: int, parent_id: int, now: Optional[datetime] = None
    ) -> ResumeResult:
        """
        Regenerate occurrences from tomorrow through the series end and clear the marker.

        Dates that fell inside the paused window are not recreated. The marker is only
        cleared when generation commits.
        """
        now = now or utcnow()
        parent = self.get_parent(company_id, parent_id)

        if parent.status == BookingStatus.CANCELLED.value:
            raise InvalidStateError("Cannot resume a cancelled subscription")
        if not is_paused(parent):
            raise InvalidStateError("Subscription is not paused")

        restored_notes = strip_legacy_marker(parent.internal_notes)
        # Template is taken from the parent as it is now, so edits made while paused apply
        template = OccurrenceTemplate.from_booking(parent).model_copy(
            update={"internal_notes": restored_notes}
        )

        start = start_of_tomorrow(now, parent.scheduled_at)
        end = parent.recurrence_end_date or default_end_date(now, RECURRENCE_DEFAULT_HORIZON_MONTHS)

        existing = {parent.scheduled_at}
        existing.update(child.scheduled_at for child in self.repo.get_children(self.db, parent.id))

        try:
            if not self.repo.claim_resume(self.db, parent.id, restored_notes):
                raise InvalidStateError("Subscription is not paused")

            created = []
            if end > start:
                instants = generate_recurring_dates(
                    start, template.recurrence_frequency, end, RECURRENCE_MAX_OCCURRENCES
                )
                instants = [instant for instant in instants if instant not in existing]
                created = self.materializer.materialize(template, parent.id, instants)

            self.db.commit()
        except SchedulingError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"❌ Failed to resume subscription {parent_id}")
            raise StorageFailure("Failed to resume subscription") from e

        if not created and end <= start:
            logger.info(f"▶️ Subscription {parent_id} resumed after its end date, nothing generated")
            return ResumeResult(
                occurrencesCreated=0,
                message="Subscription resumed but end date has passed. No new bookings created.",
            )

        logger.info(f"▶️ Subscription {parent_id} resumed, {len(created)} bookings created")
        return ResumeResult(
            occurrencesCreated=len(created),
            message=f"Subscription resumed. {len(created)} future bookings created.",
        )
