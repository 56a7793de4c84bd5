"""
Scheduling repository - Database operations for bookings, series and time off.

Write methods only flush; the calling service owns the transaction and commits
once per operation so a series is never half written.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import and_, not_, or_, update
from sqlalchemy.orm import Session, joinedload

from ...enums import BookingStatus, SeriesState, TimeOffStatus
from ...models import Address, Booking, Client, TeamMember, TimeOffRequest

# Prefix written into internal_notes by the legacy pause flow
LEGACY_PAUSE_MARKER = "[PAUSED]"


def _legacy_marker_clause():
    return Booking.internal_notes.like(f"{LEGACY_PAUSE_MARKER}%")


class BookingRepository:
    """Repository for booking and recurring series database operations"""

    @staticmethod
    def get_parent(db: Session, company_id: int, parent_id: int) -> Optional[Booking]:
        """Get a series parent scoped to a company"""
        return (
            db.query(Booking)
            .filter(
                Booking.id == parent_id,
                Booking.company_id == company_id,
                Booking.is_recurring.is_(True),
                Booking.recurrence_parent_id.is_(None),
            )
            .first()
        )

    @staticmethod
    def get_booking(db: Session, company_id: int, booking_id: int) -> Optional[Booking]:
        """Get any booking scoped to a company"""
        return (
            db.query(Booking)
            .filter(Booking.id == booking_id, Booking.company_id == company_id)
            .first()
        )

    @staticmethod
    def get_children(db: Session, parent_id: int) -> list[Booking]:
        """Get every generated occurrence of a series, oldest first"""
        return (
            db.query(Booking)
            .filter(Booking.recurrence_parent_id == parent_id)
            .order_by(Booking.scheduled_at)
            .all()
        )

    @staticmethod
    def get_children_by_parent(db: Session, parent_ids: list[int]) -> dict[int, list[Booking]]:
        """Get children for many parents in one query"""
        grouped: dict[int, list[Booking]] = {parent_id: [] for parent_id in parent_ids}
        if not parent_ids:
            return grouped

        children = (
            db.query(Booking)
            .filter(Booking.recurrence_parent_id.in_(parent_ids))
            .order_by(Booking.scheduled_at)
            .all()
        )
        for child in children:
            grouped[child.recurrence_parent_id].append(child)
        return grouped

    @staticmethod
    def list_parents(
        db: Session, company_id: int, client_id: Optional[int] = None
    ) -> list[Booking]:
        """Get all series parents for a company, newest first"""
        query = db.query(Booking).filter(
            Booking.company_id == company_id,
            Booking.is_recurring.is_(True),
            Booking.recurrence_parent_id.is_(None),
        )

        if client_id:
            query = query.filter(Booking.client_id == client_id)

        return query.order_by(Booking.scheduled_at.desc()).all()

    @staticmethod
    def get_future_scheduled(
        db: Session, parent_id: int, now: datetime, include_parent: bool = True
    ) -> list[Booking]:
        """Scheduled occurrences of a series that have not happened yet"""
        in_series = Booking.recurrence_parent_id == parent_id
        if include_parent:
            in_series = or_(Booking.id == parent_id, in_series)

        return (
            db.query(Booking)
            .filter(
                in_series,
                Booking.scheduled_at >= now,
                Booking.status == BookingStatus.SCHEDULED.value,
            )
            .order_by(Booking.scheduled_at)
            .all()
        )

    @staticmethod
    def add_booking(db: Session, booking: Booking) -> Booking:
        """Stage a single booking and assign its id"""
        db.add(booking)
        db.flush()
        return booking

    @staticmethod
    def bulk_insert(db: Session, bookings: list[Booking]) -> list[Booking]:
        """Stage many bookings in a single flush"""
        if bookings:
            db.add_all(bookings)
            db.flush()
        return bookings

    @staticmethod
    def delete_future_scheduled_children(db: Session, parent_id: int, now: datetime) -> int:
        """Hard delete children that are still scheduled and not yet serviced"""
        children = BookingRepository.get_future_scheduled(db, parent_id, now, include_parent=False)
        for child in children:
            db.delete(child)
        db.flush()
        return len(children)

    @staticmethod
    def claim_pause(db: Session, parent_id: int, now: datetime) -> bool:
        """
        Atomically flip an active series to paused.

        Returns False when the series was already paused, including by a concurrent request.
        """
        result = db.execute(
            update(Booking)
            .where(
                Booking.id == parent_id,
                Booking.series_state == SeriesState.ACTIVE.value,
                or_(Booking.internal_notes.is_(None), not_(_legacy_marker_clause())),
            )
            .values(series_state=SeriesState.PAUSED.value, paused_at=now)
            .execution_options(synchronize_session=False)
        )
        claimed = result.rowcount == 1
        # Reload the parent so the session sees the new state
        db.get(Booking, parent_id, populate_existing=True)
        return claimed

    @staticmethod
    def claim_resume(db: Session, parent_id: int, restored_notes: Optional[str]) -> bool:
        """
        Atomically clear the pause marker of a series.

        Returns False when the series is not paused, including when a concurrent resume won.
        """
        result = db.execute(
            update(Booking)
            .where(
                Booking.id == parent_id,
                or_(
                    Booking.series_state == SeriesState.PAUSED.value,
                    _legacy_marker_clause(),
                ),
            )
            .values(
                series_state=SeriesState.ACTIVE.value,
                paused_at=None,
                internal_notes=restored_notes,
            )
            .execution_options(synchronize_session=False)
        )
        claimed = result.rowcount == 1
        # Reload the parent so the session sees the new state
        db.get(Booking, parent_id, populate_existing=True)
        return claimed

    @staticmethod
    def update_bookings(db: Session, bookings: list[Booking], **updates) -> int:
        """Apply the same field updates to several bookings"""
        for booking in bookings:
            for key, value in updates.items():
                if hasattr(booking, key):
                    setattr(booking, key, value)
        db.flush()
        return len(bookings)

    # Client lookups used by series creation
    @staticmethod
    def get_client(db: Session, company_id: int, client_id: int) -> Optional[Client]:
        return (
            db.query(Client)
            .filter(Client.id == client_id, Client.company_id == company_id)
            .first()
        )

    @staticmethod
    def get_address(db: Session, client_id: int, address_id: int) -> Optional[Address]:
        return (
            db.query(Address)
            .filter(Address.id == address_id, Address.client_id == client_id)
            .first()
        )

    @staticmethod
    def get_team_member(db: Session, company_id: int, team_member_id: int) -> Optional[TeamMember]:
        return (
            db.query(TeamMember)
            .filter(TeamMember.id == team_member_id, TeamMember.company_id == company_id)
            .first()
        )


class TimeOffRepository:
    """Repository for time off and cleaner availability queries"""

    @staticmethod
    def get_approved_overlapping(
        db: Session,
        company_id: int,
        start: datetime,
        end: datetime,
        team_member_id: Optional[int] = None,
    ) -> list[TimeOffRequest]:
        """Approved requests whose window intersects [start, end]"""
        query = (
            db.query(TimeOffRequest)
            .options(joinedload(TimeOffRequest.team_member).joinedload(TeamMember.user))
            .filter(
                TimeOffRequest.company_id == company_id,
                TimeOffRequest.status == TimeOffStatus.APPROVED.value,
                TimeOffRequest.start_date <= end,
                TimeOffRequest.end_date >= start,
            )
        )

        if team_member_id:
            query = query.filter(TimeOffRequest.team_member_id == team_member_id)

        return query.order_by(TimeOffRequest.start_date).all()

    @staticmethod
    def find_open_overlapping(
        db: Session, team_member_id: int, start: datetime, end: datetime
    ) -> Optional[TimeOffRequest]:
        """Pending or approved request of a member that intersects [start, end]"""
        return (
            db.query(TimeOffRequest)
            .filter(
                TimeOffRequest.team_member_id == team_member_id,
                TimeOffRequest.status.in_(
                    [TimeOffStatus.PENDING.value, TimeOffStatus.APPROVED.value]
                ),
                and_(TimeOffRequest.start_date <= end, TimeOffRequest.end_date >= start),
            )
            .first()
        )

    @staticmethod
    def get_available_team_members(
        db: Session, company_id: int, exclude_ids: list[int]
    ) -> list[TeamMember]:
        query = (
            db.query(TeamMember)
            .options(joinedload(TeamMember.user))
            .filter(TeamMember.company_id == company_id, TeamMember.is_active.is_(True))
        )

        if exclude_ids:
            query = query.filter(TeamMember.id.notin_(exclude_ids))

        return query.order_by(TeamMember.id).all()

    @staticmethod
    def get_scheduled_bookings_for_member(
        db: Session, company_id: int, team_member_id: int, start: datetime, end: datetime
    ) -> list[Booking]:
        return (
            db.query(Booking)
            .filter(
                Booking.company_id == company_id,
                Booking.assigned_to == team_member_id,
                Booking.status == BookingStatus.SCHEDULED.value,
                Booking.scheduled_at >= start,
                Booking.scheduled_at <= end,
            )
            .order_by(Booking.scheduled_at)
            .all()
        )

    @staticmethod
    def create_request(db: Session, **request_data) -> TimeOffRequest:
        request = TimeOffRequest(**request_data)
        db.add(request)
        db.commit()
        db.refresh(request)
        return request
