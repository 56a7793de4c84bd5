"""Occurrence materializer - turns a list of dates into persisted bookings"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from ...enums import BookingStatus
from ...models import Booking
from .exceptions import InvalidStateError, SchedulingValidationError
from .repository import BookingRepository
from .schemas import OccurrenceTemplate

logger = logging.getLogger(__name__)


class OccurrenceMaterializer:
    """
    Creates one child booking per date, linked to a series parent.

    Rows are flushed inside the caller's transaction; nothing is committed here,
    so the caller decides whether the whole series becomes visible.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()

    def materialize(
        self,
        template: OccurrenceTemplate,
        parent_id: int,
        instants: list[datetime],
    ) -> list[Booking]:
        self._check_instants(instants)
        self._check_parent(parent_id)

        occurrences = [self._build(template, parent_id, instant) for instant in instants]
        self.repo.bulk_insert(self.db, occurrences)

        logger.info(f"📅 Materialized {len(occurrences)} occurrences for series {parent_id}")
        return occurrences

    def _check_parent(self, parent_id: int) -> None:
        parent = self.db.get(Booking, parent_id)
        if parent is None:
            raise InvalidStateError(f"Series parent {parent_id} does not exist")
        if parent.recurrence_parent_id is not None:
            # Children never have children
            raise InvalidStateError(f"Booking {parent_id} is a series child, not a parent")
        if not parent.is_series_parent:
            raise InvalidStateError(f"Booking {parent_id} is not a recurring booking")

    @staticmethod
    def _check_instants(instants: list[datetime]) -> None:
        for previous, current in zip(instants, instants[1:]):
            if current <= previous:
                raise SchedulingValidationError("Occurrence dates must be strictly increasing")

    @staticmethod
    def _build(template: OccurrenceTemplate, parent_id: int, instant: datetime) -> Booking:
        return Booking(
            company_id=template.company_id,
            client_id=template.client_id,
            address_id=template.address_id,
            assigned_to=template.assigned_to,
            created_by_id=template.created_by_id,
            scheduled_at=instant,
            duration_minutes=template.duration_minutes,
            service_type=template.service_type,
            price=template.price,
            notes=template.notes,
            internal_notes=template.internal_notes,
            is_recurring=True,
            recurrence_frequency=template.recurrence_frequency.value,
            recurrence_parent_id=parent_id,
            status=BookingStatus.SCHEDULED.value,
            is_paid=False,
        )
