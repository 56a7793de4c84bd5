"""Tests for turning generated dates into child bookings."""
from datetime import datetime

import pytest

from app.domain.scheduling.exceptions import InvalidStateError, SchedulingValidationError
from app.domain.scheduling.materializer import OccurrenceMaterializer
from app.domain.scheduling.repository import BookingRepository
from app.domain.scheduling.schemas import OccurrenceTemplate
from app.enums import BookingStatus


def test_materialize_creates_one_child_per_date(db, make_booking):
    parent = make_booking(datetime(2025, 1, 1), notes="Use side door", price=100.0)
    instants = [datetime(2025, 1, 8), datetime(2025, 1, 15), datetime(2025, 1, 22)]

    created = OccurrenceMaterializer(db).materialize(
        OccurrenceTemplate.from_booking(parent), parent.id, instants
    )
    db.commit()

    children = BookingRepository.get_children(db, parent.id)
    assert len(created) == 3
    assert [c.scheduled_at for c in children] == instants
    for child in children:
        assert child.recurrence_parent_id == parent.id
        assert child.price == 100.0
        assert child.notes == "Use side door"
        assert child.status == BookingStatus.SCHEDULED.value
        assert child.is_paid is False


def test_materialize_empty_list_is_a_noop(db, make_booking):
    parent = make_booking(datetime(2025, 1, 1))
    created = OccurrenceMaterializer(db).materialize(
        OccurrenceTemplate.from_booking(parent), parent.id, []
    )
    assert created == []
    assert BookingRepository.get_children(db, parent.id) == []


def test_materialize_rejects_unordered_dates(db, make_booking):
    parent = make_booking(datetime(2025, 1, 1))
    with pytest.raises(SchedulingValidationError):
        OccurrenceMaterializer(db).materialize(
            OccurrenceTemplate.from_booking(parent),
            parent.id,
            [datetime(2025, 1, 15), datetime(2025, 1, 8)],
        )


def test_materialize_rejects_child_as_parent(db, make_booking):
    parent = make_booking(datetime(2025, 1, 1))
    child = make_booking(datetime(2025, 1, 8), parent=parent)
    with pytest.raises(InvalidStateError):
        OccurrenceMaterializer(db).materialize(
            OccurrenceTemplate.from_booking(parent), child.id, [datetime(2025, 2, 1)]
        )


def test_materialize_rejects_missing_parent(db, make_booking):
    parent = make_booking(datetime(2025, 1, 1))
    with pytest.raises(InvalidStateError):
        OccurrenceMaterializer(db).materialize(
            OccurrenceTemplate.from_booking(parent), 9999, [datetime(2025, 2, 1)]
        )
