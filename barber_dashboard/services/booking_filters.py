import datetime as dt
from typing import Iterable, List, Optional

from pydantic import BaseModel

from barber_dashboard.models.booking import Booking

ALL = "all"


def _is_set(value: Optional[str]) -> bool:
    return bool(value) and value != ALL


class BookingFilter(BaseModel):
    """Status, barber and free-text filters from the appointments table. All must match."""
    status: str = ALL
    barber: str = ALL
    search: str = ""

    def matches(self, booking: Booking) -> bool:
        if _is_set(self.status) and booking.status != self.status:
            return False
        if _is_set(self.barber) and booking.barber_name != self.barber:
            return False
        if self.search:
            needle = self.search.lower()
            if needle not in booking.client_name.lower() and needle not in booking.service_ordered.lower():
                return False
        return True

    def apply(self, bookings: Iterable[Booking]) -> List[Booking]:
        return [b for b in bookings if self.matches(b)]


def bookings_on(bookings: Iterable[Booking], day: dt.date) -> List[Booking]:
    return [b for b in bookings if b.booking_date == day]


def barber_names(bookings: Iterable[Booking]) -> List[str]:
    return sorted({b.barber_name for b in bookings if b.barber_name})
