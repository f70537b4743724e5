"""
Booking analytics.

Pure functions over an in-memory list of bookings. Nothing here touches the
store and nothing raises on bad data: unparseable dates drop the booking from
date-based views, unparseable prices count as zero.
"""
import datetime as dt
import math
from collections import Counter, defaultdict
from typing import Callable, Dict, Hashable, Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field

from barber_dashboard.models.booking import ANALYTICS_STATUSES, Booking, BookingStatus

COMPLETED = BookingStatus.COMPLETED.value
CANCELED = BookingStatus.CANCELED.value
PENDING = BookingStatus.PENDING.value


def filter_by_date_range(bookings: Iterable[Booking], start: dt.date, end: dt.date) -> List[Booking]:
    """Bookings with start <= date <= end (both ends inclusive)."""
    result = []
    for booking in bookings:
        day = booking.booking_date
        if day is not None and start <= day <= end:
            result.append(booking)
    return result


def count_by_status(bookings: Iterable[Booking]) -> Dict[str, int]:
    counts = {status.value: 0 for status in ANALYTICS_STATUSES}
    for booking in bookings:
        if booking.status in counts:
            counts[booking.status] += 1
    return counts


def _completed_with_price(bookings: Iterable[Booking]) -> Iterable[Booking]:
    return (b for b in bookings if b.status == COMPLETED and b.has_price)


def sum_revenue(bookings: Iterable[Booking]) -> float:
    return sum((b.revenue for b in _completed_with_price(bookings)), 0.0)


def group_revenue_by_date(bookings: Iterable[Booking]) -> List[Tuple[dt.date, float]]:
    """Revenue per calendar day, ascending by day."""
    totals: Dict[dt.date, float] = defaultdict(float)
    for booking in _completed_with_price(bookings):
        day = booking.booking_date
        if day is None:
            continue
        totals[day] += booking.revenue
    return sorted(totals.items())


def customer_key(booking: Booking) -> str:
    return booking.client_id or booking.client_name


def service_key(booking: Booking) -> str:
    return booking.service_ordered


def barber_key(booking: Booking) -> str:
    return booking.barber_name


def unique_count(bookings: Iterable[Booking], key: Callable[[Booking], Hashable]) -> int:
    return len({key(b) for b in bookings})


def _percent(part: int, total: int) -> int:
    if total == 0:
        return 0
    # Half-up, so 2.5 -> 3 the way the charts round it
    return math.floor(part / total * 100 + 0.5)


def completion_rate(bookings: List[Booking]) -> int:
    return _percent(sum(1 for b in bookings if b.status == COMPLETED), len(bookings))


def cancellation_rate(bookings: List[Booking]) -> int:
    return _percent(sum(1 for b in bookings if b.status == CANCELED), len(bookings))


def appointment_trends(bookings: Iterable[Booking]) -> List[Tuple[dt.date, int]]:
    counts = Counter(b.booking_date for b in bookings if b.booking_date is not None)
    return sorted(counts.items())


def service_popularity(bookings: Iterable[Booking]) -> List[Tuple[str, int]]:
    """Most-booked services first; ties broken by name."""
    counts = Counter(b.service_ordered for b in bookings if b.service_ordered)
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))


class BarberStats(BaseModel):
    barber_name: str
    total: int = 0
    completed: int = 0
    revenue: float = 0.0


def barber_performance(bookings: Iterable[Booking]) -> List[BarberStats]:
    stats: Dict[str, BarberStats] = {}
    for booking in bookings:
        if not booking.barber_name:
            continue
        row = stats.setdefault(booking.barber_name, BarberStats(barber_name=booking.barber_name))
        row.total += 1
        if booking.status == COMPLETED:
            row.completed += 1
            if booking.has_price:
                row.revenue += booking.revenue
    return sorted(stats.values(), key=lambda s: (-s.total, s.barber_name))


class RevenuePoint(BaseModel):
    date: dt.date
    revenue: float


class TrendPoint(BaseModel):
    date: dt.date
    count: int


class ServiceCount(BaseModel):
    service: str
    count: int


class AnalyticsSummary(BaseModel):
    start: dt.date
    end: dt.date
    total_appointments: int
    status_counts: Dict[str, int]
    total_revenue: float
    unique_customers: int
    unique_services: int
    unique_barbers: int
    completion_rate: int
    cancellation_rate: int
    revenue_by_date: List[RevenuePoint] = Field(default_factory=list)
    appointment_trends: List[TrendPoint] = Field(default_factory=list)
    service_popularity: List[ServiceCount] = Field(default_factory=list)
    barber_performance: List[BarberStats] = Field(default_factory=list)


def default_range(today: dt.date, days: int) -> Tuple[dt.date, dt.date]:
    return today - dt.timedelta(days=days), today


def summarize(bookings: Iterable[Booking], start: dt.date, end: dt.date) -> AnalyticsSummary:
    """Everything the analytics page shows, for one date range."""
    selected = filter_by_date_range(bookings, start, end)
    return AnalyticsSummary(
        start=start,
        end=end,
        total_appointments=len(selected),
        status_counts=count_by_status(selected),
        total_revenue=sum_revenue(selected),
        unique_customers=unique_count(selected, customer_key),
        unique_services=unique_count(selected, service_key),
        unique_barbers=unique_count(selected, barber_key),
        completion_rate=completion_rate(selected),
        cancellation_rate=cancellation_rate(selected),
        revenue_by_date=[RevenuePoint(date=d, revenue=r) for d, r in group_revenue_by_date(selected)],
        appointment_trends=[TrendPoint(date=d, count=c) for d, c in appointment_trends(selected)],
        service_popularity=[ServiceCount(service=s, count=c) for s, c in service_popularity(selected)],
        barber_performance=barber_performance(selected),
    )


class DashboardOverview(BaseModel):
    total_appointments: int
    pending_appointments: int
    today_appointments: int
    completed_appointments: int
    canceled_appointments: int
    total_revenue: float
    today: List[Booking] = Field(default_factory=list)
    upcoming: List[Booking] = Field(default_factory=list)
    recent_activity: List[Booking] = Field(default_factory=list)


def _sort_key(booking: Booking) -> dt.datetime:
    return booking.booking_datetime or dt.datetime.min


def dashboard_overview(bookings: List[Booking], today: dt.date, limit: int = 5) -> DashboardOverview:
    """Landing page numbers: all-time counts plus today / upcoming / recent lists."""
    counts = Counter(b.status for b in bookings)
    todays = [b for b in bookings if b.booking_date == today]

    upcoming = [
        b for b in bookings
        if b.booking_date is not None and b.booking_date >= today and b.status != CANCELED
    ]
    upcoming.sort(key=_sort_key)

    dated = [b for b in bookings if b.booking_date is not None]
    recent = sorted(dated, key=_sort_key, reverse=True)

    return DashboardOverview(
        total_appointments=len(bookings),
        pending_appointments=counts[PENDING],
        today_appointments=len(todays),
        completed_appointments=counts[COMPLETED],
        canceled_appointments=counts[CANCELED],
        total_revenue=sum_revenue(bookings),
        today=todays,
        upcoming=upcoming[:limit],
        recent_activity=recent[:limit],
    )


def resolve_range(
    start: Optional[dt.date], end: Optional[dt.date], today: dt.date, default_days: int
) -> Tuple[dt.date, dt.date]:
    """Fills in a missing bound from the default window ending today."""
    default_start, default_end = default_range(today, default_days)
    return start or default_start, end or default_end
