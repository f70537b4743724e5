import datetime as dt
import re
from enum import Enum
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError

from barber_dashboard.core.logger import logger


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELED = "canceled"
    DECLINED = "declined"
    NO_SHOW = "no-show"


# The analytics pages only chart these four.
ANALYTICS_STATUSES = (
    BookingStatus.COMPLETED,
    BookingStatus.CONFIRMED,
    BookingStatus.PENDING,
    BookingStatus.CANCELED,
)

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%a %b %d %Y",
)

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::\d{2})?\s*([AaPp][Mm])?\s*$")
_PRICE_RE = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_date(value: Any) -> Optional[dt.date]:
    """
    Converts whatever the booking app stored in `date` into a calendar date.
    Returns None when the value cannot be understood.
    """
    if value is None:
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value

    text = str(value).strip()
    if not text:
        return None

    for fmt in _DATE_FORMATS:
        try:
            return dt.datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    # ISO datetimes ("2024-01-05T10:00:00Z") keep their calendar day
    try:
        return dt.datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def parse_time(value: Any) -> Optional[dt.time]:
    """Accepts 'HH:MM', 'HH:MM:SS' and 'h:MM AM'. Anything else -> None."""
    if not value:
        return None
    match = _TIME_RE.match(str(value))
    if not match:
        return None

    hour, minute, meridiem = int(match.group(1)), int(match.group(2)), match.group(3)
    if meridiem:
        if not 1 <= hour <= 12:
            return None
        hour = hour % 12 + (12 if meridiem.lower() == "pm" else 0)
    if hour > 23 or minute > 59:
        return None
    return dt.time(hour, minute)


def parse_price(value: Any) -> float:
    """
    Price as a number, read from the leading numeric part of the value the way
    the booking app does: "12.50 PHP" is 12.5 and "1,500" is 1. Missing or
    non-numeric values count as zero.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    match = _PRICE_RE.match(str(value))
    if not match:
        return 0.0
    amount = float(match.group(1))
    # "1e999" overflows to inf
    if amount in (float("inf"), float("-inf")):
        return 0.0
    return amount


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class StatusHistoryEntry(BaseModel):
    status: str
    timestamp: dt.datetime = Field(default_factory=utc_now)
    updated_by: Literal["client", "barber"] = "barber"
    reason: str = ""


class Note(BaseModel):
    text: str
    timestamp: dt.datetime = Field(default_factory=utc_now)
    author: Literal["client", "barbershop"]
    author_id: str = ""
    author_name: Optional[str] = None


class Location(BaseModel):
    lat: float
    lng: float
    street_name: str = ""
    distance: float = 0


class Feedback(BaseModel):
    rating: int
    comment: Optional[str] = None
    created_at: Optional[str] = None


class Booking(BaseModel):
    # Postgres ids arrive as ints
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    barbershop_id: str
    barbershop_name: Optional[str] = None

    client_id: Optional[str] = None
    client_name: str = ""

    service_ordered: str = ""
    service_ordered_id: Optional[str] = None
    style_ordered: str = ""
    style_ordered_id: Optional[str] = None
    barber_name: str = ""
    barber_id: Optional[str] = None

    date: str = ""
    time: str = ""
    # Kept as a plain string: older records carry values outside BookingStatus
    status: str = BookingStatus.PENDING.value
    reason: Optional[str] = None
    barber_reason: Optional[str] = None

    price: Optional[Any] = None
    total_price: Optional[Any] = None

    is_home_service: bool = False
    is_emergency: bool = False
    is_service_ordered_package: bool = False

    created_at: Optional[str] = None
    location: Optional[Location] = None
    feedback: Optional[Feedback] = None

    status_history: List[StatusHistoryEntry] = Field(default_factory=list)
    client_notes: List[Note] = Field(default_factory=list)
    barbershop_notes: List[Note] = Field(default_factory=list)

    @field_validator("client_name", "service_ordered", "style_ordered", "barber_name", "date", "time", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return "" if value is None else value

    @field_validator("status_history", "client_notes", "barbershop_notes", mode="before")
    @classmethod
    def _drop_malformed_entries(cls, value, info: ValidationInfo):
        # One bad entry must not cost the whole booking
        entry_model = StatusHistoryEntry if info.field_name == "status_history" else Note
        if value is None:
            return []
        if not isinstance(value, list):
            logger.warning(f"⚠️ Ignoring {info.field_name}: expected a list, got {type(value).__name__}")
            return []

        entries = []
        for raw in value:
            try:
                entries.append(entry_model.model_validate(raw))
            except PydanticValidationError:
                logger.warning(f"⚠️ Dropping malformed {info.field_name} entry: {raw!r}")
        return entries

    @property
    def booking_date(self) -> Optional[dt.date]:
        return parse_date(self.date)

    @property
    def booking_datetime(self) -> Optional[dt.datetime]:
        day = self.booking_date
        if day is None:
            return None
        return dt.datetime.combine(day, parse_time(self.time) or dt.time.min)

    @property
    def has_price(self) -> bool:
        if self.price is not None and self.price != "":
            return True
        return self.total_price is not None

    @property
    def revenue(self) -> float:
        if self.price is not None and self.price != "":
            return parse_price(self.price)
        return parse_price(self.total_price)
