"""
Subscription aggregate view.

A subscription is one series parent plus its generated children. Its status and
rollups are derived here on every read and never persisted.
"""

from datetime import datetime
from typing import Optional

from ...enums import BookingStatus, SubscriptionStatus
from ...models import Booking
from .schemas import SubscriptionSummary
from .time_calculator import utcnow


def is_upcoming(booking: Booking, now: datetime) -> bool:
    return booking.scheduled_at >= now and booking.status == BookingStatus.SCHEDULED.value


def derive_subscription(
    parent: Booking, children: list[Booking], now: Optional[datetime] = None
) -> SubscriptionSummary:
    """
    Derive status, counts, next date and revenue for a series.

    PAUSED is never returned here; the lifecycle layer overlays it from the pause marker.
    """
    now = now or utcnow()
    occurrences = [parent, *children]

    upcoming = sorted(
        (b for b in occurrences if is_upcoming(b, now)), key=lambda b: b.scheduled_at
    )
    completed = [b for b in occurrences if b.status == BookingStatus.COMPLETED.value]
    paid = [b for b in occurrences if b.is_paid]

    if parent.status == BookingStatus.CANCELLED.value:
        status = SubscriptionStatus.CANCELLED
    elif parent.recurrence_end_date and parent.recurrence_end_date < now and not upcoming:
        status = SubscriptionStatus.COMPLETED
    elif not upcoming and occurrences:
        status = SubscriptionStatus.COMPLETED
    else:
        status = SubscriptionStatus.ACTIVE

    # Series price is taken from the parent; per-occurrence repricing is not reflected
    price = parent.price or 0.0
    total_count = len(occurrences)
    total_revenue = price * total_count
    paid_revenue = price * len(paid)

    return SubscriptionSummary(
        status=status,
        totalCount=total_count,
        completedCount=len(completed),
        upcomingCount=len(upcoming),
        nextOccurrenceDate=upcoming[0].scheduled_at if upcoming else None,
        totalRevenue=total_revenue,
        paidRevenue=paid_revenue,
        unpaidRevenue=total_revenue - paid_revenue,
    )
