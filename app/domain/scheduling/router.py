"""Scheduling router - FastAPI endpoints for recurring series, subscriptions and time off"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...config import RECURRENCE_SERIES_MAX_OCCURRENCES
from ...database import get_db
from ...enums import SubscriptionStatus
from ...models import User
from .availability_service import AvailabilityService
from .exceptions import SchedulingError
from .lifecycle_service import SubscriptionLifecycleService
from .schemas import (
    PauseResult,
    RecurringSeriesCreate,
    ResumeResult,
    SeriesCancelRequest,
    SeriesCreateResponse,
    SeriesModifyRequest,
    SeriesUpdateResult,
    SubscriptionDetailResponse,
    SubscriptionListResponse,
    TimeOffConflictCheckRequest,
    TimeOffConflictCheckResponse,
    TimeOffRequestCreate,
    TimeOffRequestResponse,
)
from .series_service import SeriesService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Recurring Bookings"])
time_off_router = APIRouter(prefix="/team/time-off", tags=["Time Off"])


def get_series_service(db: Session = Depends(get_db)) -> SeriesService:
    """Dependency injection for SeriesService"""
    return SeriesService(db)


def get_lifecycle_service(db: Session = Depends(get_db)) -> SubscriptionLifecycleService:
    """Dependency injection for SubscriptionLifecycleService"""
    return SubscriptionLifecycleService(db)


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(db)


def to_http_exception(error: SchedulingError) -> HTTPException:
    if error.status_code >= 500:
        return HTTPException(status_code=error.status_code, detail="Internal server error")
    return HTTPException(status_code=error.status_code, detail=error.message)


# ============================================================================
# SERIES
# ============================================================================


@router.post("/bookings/recurring", response_model=SeriesCreateResponse, status_code=201)
async def create_recurring_series(
    data: RecurringSeriesCreate,
    user: User = Depends(require_admin),
    service: SeriesService = Depends(get_series_service),
):
    """Create a booking and its recurring occurrences"""
    try:
        return service.create_series(data, user, max_occurrences=RECURRENCE_SERIES_MAX_OCCURRENCES)
    except SchedulingError as e:
        raise to_http_exception(e) from e


# ============================================================================
# SUBSCRIPTIONS
# ============================================================================


@router.get("/subscriptions", response_model=SubscriptionListResponse)
async def list_subscriptions(
    status: Optional[SubscriptionStatus] = Query(None),
    clientId: Optional[int] = Query(None),
    user: User = Depends(get_current_user),
    service: SeriesService = Depends(get_series_service),
):
    """List recurring series with their derived status"""
    return service.list_subscriptions(
        user.company_id, status=status.value if status else None, client_id=clientId
    )


@router.get("/subscriptions/{subscription_id}", response_model=SubscriptionDetailResponse)
async def get_subscription(
    subscription_id: int,
    user: User = Depends(get_current_user),
    service: SeriesService = Depends(get_series_service),
):
    try:
        return service.get_subscription(user.company_id, subscription_id)
    except SchedulingError as e:
        raise to_http_exception(e) from e


@router.post("/subscriptions/{subscription_id}/pause", response_model=PauseResult)
async def pause_subscription(
    subscription_id: int,
    user: User = Depends(require_admin),
    service: SubscriptionLifecycleService = Depends(get_lifecycle_service),
):
    """Pause a series, removing its future scheduled occurrences"""
    try:
        return service.pause(user.company_id, subscription_id)
    except SchedulingError as e:
        raise to_http_exception(e) from e


@router.post("/subscriptions/{subscription_id}/resume", response_model=ResumeResult)
async def resume_subscription(
    subscription_id: int,
    user: User = Depends(require_admin),
    service: SubscriptionLifecycleService = Depends(get_lifecycle_service),
):
    """Resume a paused series from tomorrow"""
    try:
        return service.resume(user.company_id, subscription_id)
    except SchedulingError as e:
        raise to_http_exception(e) from e


@router.patch("/subscriptions/{subscription_id}", response_model=SeriesUpdateResult)
async def modify_subscription(
    subscription_id: int,
    data: SeriesModifyRequest,
    user: User = Depends(require_admin),
    service: SeriesService = Depends(get_series_service),
):
    try:
        return service.modify_series(user.company_id, subscription_id, data)
    except SchedulingError as e:
        raise to_http_exception(e) from e


@router.post("/subscriptions/{subscription_id}/cancel", response_model=SeriesUpdateResult)
async def cancel_subscription(
    subscription_id: int,
    data: Optional[SeriesCancelRequest] = None,
    user: User = Depends(require_admin),
    service: SeriesService = Depends(get_series_service),
):
    try:
        return service.cancel_series(
            user.company_id, subscription_id, reason=data.reason if data else None
        )
    except SchedulingError as e:
        raise to_http_exception(e) from e


# ============================================================================
# TIME OFF
# ============================================================================


@time_off_router.post("/check-conflicts", response_model=TimeOffConflictCheckResponse)
async def check_time_off_conflicts(
    data: TimeOffConflictCheckRequest,
    user: User = Depends(get_current_user),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Approved time off overlapping a date or range"""
    start = data.startDate or data.date
    end = data.endDate or start
    try:
        return service.check_conflicts(user.company_id, start, end, data.teamMemberId)
    except SchedulingError as e:
        raise to_http_exception(e) from e


@time_off_router.post("", response_model=TimeOffRequestResponse, status_code=201)
async def request_time_off(
    data: TimeOffRequestCreate,
    user: User = Depends(get_current_user),
    service: AvailabilityService = Depends(get_availability_service),
):
    try:
        return service.request_time_off(user.company_id, data)
    except SchedulingError as e:
        raise to_http_exception(e) from e
