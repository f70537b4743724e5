from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends

from barber_dashboard.api.bookings import get_booking_service
from barber_dashboard.core.config import settings
from barber_dashboard.core.errors import ValidationError
from barber_dashboard.core.security import get_owner_id
from barber_dashboard.services.analytics import (
    AnalyticsSummary,
    DashboardOverview,
    dashboard_overview,
    resolve_range,
    summarize,
)
from barber_dashboard.services.booking_service import BookingService

router = APIRouter()


@router.get("/analytics", response_model=AnalyticsSummary)
async def analytics(
    start: Optional[date] = None,
    end: Optional[date] = None,
    owner_id: str = Depends(get_owner_id),
    service: BookingService = Depends(get_booking_service),
):
    start, end = resolve_range(start, end, date.today(), settings.ANALYTICS_DEFAULT_DAYS)
    if start > end:
        raise ValidationError("Start date must not be after end date.")
    return summarize(await service.list_bookings(owner_id), start, end)


@router.get("/dashboard", response_model=DashboardOverview)
async def dashboard(
    owner_id: str = Depends(get_owner_id),
    service: BookingService = Depends(get_booking_service),
):
    bookings = await service.list_bookings(owner_id)
    return dashboard_overview(bookings, date.today(), settings.DASHBOARD_LIST_LIMIT)
