"""API tests for recurring series, subscriptions and time off endpoints."""
from datetime import datetime, timedelta

from app.domain.scheduling.time_calculator import utcnow
from app.enums import TimeOffStatus
from app.models import TimeOffRequest


def _series_payload(client_record, address, **overrides):
    start = (utcnow() + timedelta(days=7)).replace(hour=9, minute=0, second=0, microsecond=0)
    payload = {
        "clientId": client_record.id,
        "addressId": address.id,
        "scheduledDate": start.isoformat(),
        "price": 90,
        "recurrenceFrequency": "WEEKLY",
        "numberOfOccurrences": 4,
    }
    payload.update(overrides)
    return payload


def test_health(api_client):
    response = api_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_create_recurring_series(api_client, client_record, address):
    response = api_client.post("/bookings/recurring", json=_series_payload(client_record, address))

    assert response.status_code == 201
    body = response.json()
    assert body["totalBookings"] == 4
    assert body["totalRevenue"] == 360
    assert len(body["schedule"]["nextOccurrences"]) == 4


def test_create_rejects_end_before_start(api_client, client_record, address):
    payload = _series_payload(
        client_record, address, numberOfOccurrences=None, recurrenceEndDate="2020-01-01T00:00:00"
    )
    response = api_client.post("/bookings/recurring", json=payload)
    assert response.status_code == 422


def test_create_rejects_unknown_frequency(api_client, client_record, address):
    payload = _series_payload(client_record, address, recurrenceFrequency="DAILY")
    response = api_client.post("/bookings/recurring", json=payload)
    assert response.status_code == 422


def test_create_requires_admin(cleaner_client, client_record, address):
    response = cleaner_client.post(
        "/bookings/recurring", json=_series_payload(client_record, address)
    )
    assert response.status_code == 403


def test_pause_and_resume_round_trip(api_client, client_record, address):
    created = api_client.post("/bookings/recurring", json=_series_payload(client_record, address))
    series_id = created.json()["parentBooking"]["id"]

    paused = api_client.post(f"/subscriptions/{series_id}/pause")
    assert paused.status_code == 200
    assert paused.json()["occurrencesRemoved"] == 3

    detail = api_client.get(f"/subscriptions/{series_id}").json()
    assert detail["subscriptionStatus"] == "PAUSED"
    assert detail["isPaused"] is True

    again = api_client.post(f"/subscriptions/{series_id}/pause")
    assert again.status_code == 400
    assert again.json()["detail"] == "Subscription is already paused"

    resumed = api_client.post(f"/subscriptions/{series_id}/resume")
    assert resumed.status_code == 200
    assert resumed.json()["occurrencesCreated"] >= 1

    detail = api_client.get(f"/subscriptions/{series_id}").json()
    assert detail["subscriptionStatus"] == "ACTIVE"


def test_pause_unknown_subscription(api_client):
    response = api_client.post("/subscriptions/99999/pause")
    assert response.status_code == 404


def test_pause_child_booking_is_rejected(api_client, client_record, address):
    created = api_client.post("/bookings/recurring", json=_series_payload(client_record, address))
    series_id = created.json()["parentBooking"]["id"]
    detail = api_client.get(f"/subscriptions/{series_id}").json()
    child_id = detail["occurrences"][1]["id"]

    response = api_client.post(f"/subscriptions/{child_id}/pause")
    assert response.status_code == 400


def test_list_subscriptions_filters_by_status(api_client, client_record, address):
    first = api_client.post("/bookings/recurring", json=_series_payload(client_record, address))
    api_client.post("/bookings/recurring", json=_series_payload(client_record, address))
    api_client.post(f"/subscriptions/{first.json()['parentBooking']['id']}/pause")

    response = api_client.get("/subscriptions", params={"status": "PAUSED"})
    assert response.status_code == 200
    body = response.json()
    assert body["summary"]["total"] == 1
    assert body["data"][0]["booking"]["id"] == first.json()["parentBooking"]["id"]

    bad = api_client.get("/subscriptions", params={"status": "ARCHIVED"})
    assert bad.status_code == 422


def test_modify_and_cancel(api_client, client_record, address):
    created = api_client.post("/bookings/recurring", json=_series_payload(client_record, address))
    series_id = created.json()["parentBooking"]["id"]

    modified = api_client.patch(f"/subscriptions/{series_id}", json={"price": 110})
    assert modified.status_code == 200
    assert modified.json()["affected"] == 3

    cancelled = api_client.post(f"/subscriptions/{series_id}/cancel", json={"reason": "Moved"})
    assert cancelled.status_code == 200
    assert cancelled.json()["affected"] == 4

    detail = api_client.get(f"/subscriptions/{series_id}").json()
    assert detail["subscriptionStatus"] == "CANCELLED"


def test_time_off_endpoints(api_client, team_member):
    created = api_client.post(
        "/team/time-off",
        json={
            "teamMemberId": team_member.id,
            "type": "VACATION",
            "startDate": "2025-06-01T00:00:00",
            "endDate": "2025-06-07T00:00:00",
        },
    )
    assert created.status_code == 201
    assert created.json()["status"] == "PENDING"

    overlapping = api_client.post(
        "/team/time-off",
        json={
            "teamMemberId": team_member.id,
            "type": "SICK",
            "startDate": "2025-06-05T00:00:00",
            "endDate": "2025-06-09T00:00:00",
        },
    )
    assert overlapping.status_code == 400

    check = api_client.post(
        "/team/time-off/check-conflicts", json={"date": "2025-06-03T00:00:00"}
    )
    assert check.status_code == 200
    # Pending requests are not conflicts
    assert check.json()["hasConflicts"] is False
    assert check.json()["availableTeamMembers"][0]["id"] == team_member.id


def test_time_off_rejects_inverted_range(api_client, team_member):
    response = api_client.post(
        "/team/time-off",
        json={
            "teamMemberId": team_member.id,
            "type": "VACATION",
            "startDate": "2025-06-07T00:00:00",
            "endDate": "2025-06-01T00:00:00",
        },
    )
    assert response.status_code == 422


def test_create_with_utc_timestamps_and_time_off(
    api_client, db, client_record, address, team_member
):
    db.add(
        TimeOffRequest(
            company_id=team_member.company_id,
            team_member_id=team_member.id,
            type="VACATION",
            start_date=datetime(2025, 1, 20),
            end_date=datetime(2025, 1, 25),
            status=TimeOffStatus.APPROVED.value,
        )
    )
    db.commit()

    response = api_client.post(
        "/bookings/recurring",
        json={
            "clientId": client_record.id,
            "addressId": address.id,
            "scheduledDate": "2025-01-15T09:00:00Z",
            "recurrenceEndDate": "2025-02-12T09:00:00Z",
            "recurrenceFrequency": "WEEKLY",
            "price": 100,
            "assignedTo": team_member.id,
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["totalBookings"] == 5
    assert body["timeOffConflicts"] == ["2025-01-22T09:00:00"]
    assert body["parentBooking"]["scheduled_at"] == "2025-01-15T09:00:00"


def test_time_off_offsets_are_stored_as_utc(api_client, team_member):
    created = api_client.post(
        "/team/time-off",
        json={
            "teamMemberId": team_member.id,
            "type": "PERSONAL",
            "startDate": "2025-07-01T02:00:00+02:00",
            "endDate": "2025-07-02T00:00:00Z",
        },
    )

    assert created.status_code == 201
    assert created.json()["startDate"] == "2025-07-01T00:00:00"

    check = api_client.post(
        "/team/time-off/check-conflicts",
        json={"startDate": "2025-07-01T00:00:00Z", "endDate": "2025-07-03T00:00:00Z"},
    )
    assert check.status_code == 200
