"""Tests for cleaner time off checks."""
from datetime import datetime

import pytest

from app.domain.scheduling.availability_service import AvailabilityService
from app.domain.scheduling.exceptions import ResourceNotFoundError, SchedulingValidationError
from app.domain.scheduling.schemas import TimeOffRequestCreate
from app.enums import BookingStatus, TimeOffStatus
from app.models import TeamMember, TimeOffRequest, User


@pytest.fixture
def service(db):
    return AvailabilityService(db)


@pytest.fixture
def second_member(db, company):
    user = User(
        firebase_uid="second-uid",
        company_id=company.id,
        full_name="Dana Duster",
        email="dana@sparkle.test",
        role="CLEANER",
    )
    db.add(user)
    db.flush()
    member = TeamMember(company_id=company.id, user_id=user.id, is_active=True)
    db.add(member)
    db.commit()
    return member


@pytest.fixture
def vacation(db, team_member):
    request = TimeOffRequest(
        company_id=team_member.company_id,
        team_member_id=team_member.id,
        type="VACATION",
        start_date=datetime(2025, 3, 10),
        end_date=datetime(2025, 3, 14),
        reason="Beach week",
        status=TimeOffStatus.APPROVED.value,
    )
    db.add(request)
    db.commit()
    return request


def test_check_conflicts_single_date(service, company, team_member, second_member, vacation):
    result = service.check_conflicts(company.id, datetime(2025, 3, 12))

    assert result.hasConflicts is True
    assert result.unavailableTeamMemberIds == [team_member.id]
    assert result.conflicts[0].cleanerName == "Carl Cleaner"
    assert [m.id for m in result.availableTeamMembers] == [second_member.id]


def test_check_conflicts_outside_window(service, company, team_member, vacation):
    result = service.check_conflicts(company.id, datetime(2025, 3, 15), datetime(2025, 3, 20))

    assert result.hasConflicts is False
    assert [m.id for m in result.availableTeamMembers] == [team_member.id]


def test_pending_requests_do_not_block(db, service, company, team_member, vacation):
    vacation.status = TimeOffStatus.PENDING.value
    db.commit()

    assert service.check_conflicts(company.id, datetime(2025, 3, 12)).hasConflicts is False


def test_check_conflicts_rejects_inverted_range(service, company):
    with pytest.raises(SchedulingValidationError):
        service.check_conflicts(company.id, datetime(2025, 3, 20), datetime(2025, 3, 10))


def test_request_time_off_records_conflicting_bookings(
    service, company, team_member, make_booking
):
    inside = make_booking(
        datetime(2025, 4, 2, 9, 0), assigned_to=team_member.id, is_recurring=False,
        recurrence_frequency="NONE",
    )
    make_booking(
        datetime(2025, 4, 3, 9, 0), assigned_to=team_member.id, is_recurring=False,
        recurrence_frequency="NONE", status=BookingStatus.CANCELLED.value,
    )
    make_booking(
        datetime(2025, 4, 20, 9, 0), assigned_to=team_member.id, is_recurring=False,
        recurrence_frequency="NONE",
    )

    response = service.request_time_off(
        company.id,
        TimeOffRequestCreate(
            teamMemberId=team_member.id,
            type="SICK",
            startDate=datetime(2025, 4, 1),
            endDate=datetime(2025, 4, 5),
        ),
    )

    assert response.status == TimeOffStatus.PENDING.value
    assert response.conflictedBookingIds == [inside.id]
    assert response.conflictCount == 1


def test_request_time_off_rejects_overlap(service, company, team_member, vacation):
    with pytest.raises(SchedulingValidationError, match="overlapping"):
        service.request_time_off(
            company.id,
            TimeOffRequestCreate(
                teamMemberId=team_member.id,
                type="PERSONAL",
                startDate=datetime(2025, 3, 13),
                endDate=datetime(2025, 3, 18),
            ),
        )


def test_request_time_off_unknown_member(service, company):
    with pytest.raises(ResourceNotFoundError):
        service.request_time_off(
            company.id,
            TimeOffRequestCreate(
                teamMemberId=12345,
                type="OTHER",
                startDate=datetime(2025, 3, 13),
                endDate=datetime(2025, 3, 18),
            ),
        )


def test_time_off_collisions_only_for_assignee(service, company, team_member, vacation):
    instants = [datetime(2025, 3, 5, 9, 0), datetime(2025, 3, 12, 9, 0)]

    assert service.find_time_off_collisions(company.id, team_member.id, instants) == [
        datetime(2025, 3, 12, 9, 0)
    ]
    assert service.find_time_off_collisions(company.id, None, instants) == []
