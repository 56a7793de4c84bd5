"""Availability service - time off requests and their conflicts with scheduled bookings"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...enums import TimeOffStatus
from ...models import Booking
from .exceptions import ResourceNotFoundError, SchedulingValidationError
from .repository import BookingRepository, TimeOffRepository
from .schemas import (
    AvailableTeamMember,
    TimeOffConflict,
    TimeOffConflictCheckResponse,
    TimeOffRequestCreate,
    TimeOffRequestResponse,
)

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Service for cleaner time off checks"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = TimeOffRepository()
        self.bookings = BookingRepository()

    def check_conflicts(
        self,
        company_id: int,
        start: datetime,
        end: Optional[datetime] = None,
        team_member_id: Optional[int] = None,
    ) -> TimeOffConflictCheckResponse:
        """Approved time off overlapping a date or range, and who is still available"""
        end = end or start
        if end < start:
            raise SchedulingValidationError("End date must be after or equal to start date")

        requests = self.repo.get_approved_overlapping(
            self.db, company_id, start, end, team_member_id
        )
        unavailable_ids = sorted({r.team_member_id for r in requests})
        available = self.repo.get_available_team_members(self.db, company_id, unavailable_ids)

        return TimeOffConflictCheckResponse(
            hasConflicts=len(requests) > 0,
            conflicts=[
                TimeOffConflict(
                    id=r.id,
                    type=r.type,
                    startDate=r.start_date,
                    endDate=r.end_date,
                    reason=r.reason,
                    teamMemberId=r.team_member_id,
                    cleanerName=r.team_member.display_name if r.team_member else "",
                )
                for r in requests
            ],
            unavailableTeamMemberIds=unavailable_ids,
            availableTeamMembers=[
                AvailableTeamMember(
                    id=tm.id,
                    name=tm.display_name,
                    email=tm.user.email if tm.user else None,
                )
                for tm in available
            ],
        )

    def find_conflicting_bookings(
        self, company_id: int, team_member_id: int, start: datetime, end: datetime
    ) -> list[Booking]:
        """Scheduled bookings assigned to a cleaner inside [start, end]"""
        return self.repo.get_scheduled_bookings_for_member(
            self.db, company_id, team_member_id, start, end
        )

    def find_time_off_collisions(
        self, company_id: int, team_member_id: Optional[int], instants: list[datetime]
    ) -> list[datetime]:
        """Dates that fall inside an approved time off window of the cleaner"""
        if not team_member_id or not instants:
            return []

        windows = self.repo.get_approved_overlapping(
            self.db, company_id, min(instants), max(instants), team_member_id
        )
        return [
            instant
            for instant in instants
            if any(w.start_date <= instant <= w.end_date for w in windows)
        ]

    def request_time_off(self, company_id: int, data: TimeOffRequestCreate) -> TimeOffRequestResponse:
        """Create a pending time off request, recording bookings it would conflict with"""
        if data.endDate < data.startDate:
            raise SchedulingValidationError("End date must be after or equal to start date")

        member = self.bookings.get_team_member(self.db, company_id, data.teamMemberId)
        if not member:
            raise ResourceNotFoundError("Team member not found")

        existing = self.repo.find_open_overlapping(
            self.db, member.id, data.startDate, data.endDate
        )
        if existing:
            raise SchedulingValidationError(
                "A time off request for overlapping dates already exists"
            )

        conflicting = self.find_conflicting_bookings(
            company_id, member.id, data.startDate, data.endDate
        )
        request = self.repo.create_request(
            self.db,
            company_id=company_id,
            team_member_id=member.id,
            type=data.type.value,
            start_date=data.startDate,
            end_date=data.endDate,
            reason=data.reason,
            status=TimeOffStatus.PENDING.value,
            conflicted_booking_ids=[b.id for b in conflicting],
        )

        logger.info(
            f"🏖️ Time off request {request.id} for team member {member.id} "
            f"({len(conflicting)} conflicting bookings)"
        )

        return TimeOffRequestResponse(
            id=request.id,
            teamMemberId=request.team_member_id,
            type=request.type,
            startDate=request.start_date,
            endDate=request.end_date,
            reason=request.reason,
            status=request.status,
            conflictedBookingIds=request.conflicted_booking_ids or [],
            conflictCount=len(conflicting),
        )
