import asyncio
import datetime as dt
from contextlib import asynccontextmanager
from typing import Dict, FrozenSet, List, Optional

from pydantic import BaseModel
from pydantic import ValidationError as ModelValidationError

from barber_dashboard.core.config import settings
from barber_dashboard.core.errors import DashboardError, NotFoundError, StoreError, TransitionError, ValidationError
from barber_dashboard.core.logger import logger
from barber_dashboard.models.booking import Booking, BookingStatus, Note, StatusHistoryEntry, utc_now
from barber_dashboard.services.booking_filters import BookingFilter, bookings_on
from barber_dashboard.services.db_service import DocumentStore, db_service

S = BookingStatus

# Only consulted when STRICT_STATUS_TRANSITIONS is on.
ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    S.PENDING.value: frozenset({S.CONFIRMED.value, S.CANCELED.value, S.DECLINED.value}),
    S.CONFIRMED.value: frozenset({S.IN_PROGRESS.value, S.COMPLETED.value, S.CANCELED.value, S.NO_SHOW.value}),
    S.IN_PROGRESS.value: frozenset({S.COMPLETED.value, S.CANCELED.value}),
    S.COMPLETED.value: frozenset(),
    S.CANCELED.value: frozenset(),
    S.DECLINED.value: frozenset(),
    S.NO_SHOW.value: frozenset(),
}


def _as_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value


def check_transition(current: str, target: str, strict: bool) -> None:
    """
    Any status may follow any other unless `strict` is set. Re-applying the
    current status is always allowed.
    """
    if not strict or current == target:
        return
    if target not in ALLOWED_TRANSITIONS.get(current, frozenset()):
        raise TransitionError(current, target)


def append_history(
    history: List[StatusHistoryEntry], status: str, reason: Optional[str], now: Optional[dt.datetime] = None
) -> List[StatusHistoryEntry]:
    """
    Returns a new history list with one barber entry appended. The new
    timestamp never goes behind the previous entry's.
    """
    timestamp = _as_utc(now or utc_now())
    if history:
        previous = _as_utc(history[-1].timestamp)
        if timestamp < previous:
            timestamp = previous

    entry = StatusHistoryEntry(status=status, timestamp=timestamp, updated_by="barber", reason=reason or "")
    return [*history, entry]


def conversation(booking: Booking) -> List[Note]:
    """Client and barbershop notes in one timeline. Equal timestamps keep insertion order."""
    notes = [*booking.client_notes, *booking.barbershop_notes]
    return sorted(notes, key=lambda note: _as_utc(note.timestamp))


class BookingService:
    def __init__(self, store: DocumentStore = db_service, strict_transitions: Optional[bool] = None):
        self.store = store
        self.table = settings.BOOKINGS_TABLE
        self.strict = settings.STRICT_STATUS_TRANSITIONS if strict_transitions is None else strict_transitions
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    @asynccontextmanager
    async def _booking_lock(self, booking_id: str):
        """Per-booking lock, dropped again once nobody holds or waits for it."""
        lock = self._locks.setdefault(booking_id, asyncio.Lock())
        self._lock_users[booking_id] = self._lock_users.get(booking_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[booking_id] -= 1
            if not self._lock_users[booking_id]:
                del self._lock_users[booking_id]
                del self._locks[booking_id]

    async def list_bookings(self, owner_id: str) -> List[Booking]:
        rows = await self.store.query(self.table, "barbershop_id", owner_id)
        bookings = []
        for row in rows:
            try:
                bookings.append(Booking.model_validate(row))
            except ModelValidationError as e:
                logger.warning(f"⚠️ Skipping malformed booking {row.get('id')}: {e.error_count()} errors")
        logger.info(f"📋 Loaded {len(bookings)} bookings for {owner_id}")
        return bookings

    async def get_booking(self, owner_id: str, booking_id: str) -> Booking:
        row = await self.store.get_by_id(self.table, booking_id)
        # Another shop's booking looks exactly like a missing one
        if row.get("barbershop_id") != owner_id:
            raise NotFoundError(self.table, booking_id)
        try:
            return Booking.model_validate(row)
        except ModelValidationError as e:
            logger.error(f"❌ Booking {booking_id} is unreadable: {e.error_count()} errors")
            raise StoreError(f"read booking {booking_id}", e) from e

    async def transition(
        self, owner_id: str, booking_id: str, new_status: BookingStatus, reason: Optional[str] = None
    ) -> Booking:
        """
        Moves a booking to `new_status` and appends to its status history.

        Only status, status_history and (for cancellations with a reason)
        barber_reason are written. The read-append-write runs under a
        per-booking lock, which serializes callers in this process only; a
        writer in another process can still overwrite the history array.
        """
        try:
            target = BookingStatus(new_status).value
        except ValueError:
            raise ValidationError(f"Unknown booking status '{new_status}'.")

        async with self._booking_lock(booking_id):
            booking = await self.get_booking(owner_id, booking_id)
            check_transition(booking.status, target, self.strict)

            history = append_history(booking.status_history, target, reason)
            fields = {
                "status": target,
                "status_history": [entry.model_dump(mode="json") for entry in history],
            }
            if reason and target == S.CANCELED.value:
                fields["barber_reason"] = reason

            await self.store.update_fields(self.table, booking_id, fields)

        logger.info(f"🔁 Booking {booking_id}: {booking.status} -> {target}")
        update = {"status": target, "status_history": history}
        if "barber_reason" in fields:
            update["barber_reason"] = reason
        return booking.model_copy(update=update)

    async def accept(self, owner_id: str, booking_id: str) -> Booking:
        return await self.transition(owner_id, booking_id, S.CONFIRMED)

    async def cancel(self, owner_id: str, booking_id: str, reason: Optional[str] = None) -> Booking:
        return await self.transition(owner_id, booking_id, S.CANCELED, reason)

    async def delete_booking(self, owner_id: str, booking_id: str) -> None:
        """Hard delete. Nothing that references the booking is cleaned up."""
        await self.get_booking(owner_id, booking_id)
        await self.store.delete(self.table, booking_id)
        logger.info(f"🗑️ Booking {booking_id} deleted by {owner_id}")

    async def add_note(
        self, owner_id: str, booking_id: str, text: str, author_name: Optional[str] = None
    ) -> Booking:
        text = (text or "").strip()
        if not text:
            raise ValidationError("Message cannot be empty.")

        async with self._booking_lock(booking_id):
            booking = await self.get_booking(owner_id, booking_id)
            note = Note(text=text, author="barbershop", author_id=owner_id, author_name=author_name)
            notes = [*booking.barbershop_notes, note]
            await self.store.update_fields(
                self.table, booking_id,
                {"barbershop_notes": [n.model_dump(mode="json") for n in notes]},
            )

        logger.info(f"💬 Note added to booking {booking_id}")
        return booking.model_copy(update={"barbershop_notes": notes})


class ActionResult(BaseModel):
    success: bool
    message: str = ""


class BookingBoard:
    """
    The booking list one dashboard view works on.

    Loaded once, then patched in place after every successful write so the
    view never refetches the whole collection. A failed write leaves the
    list exactly as it was.
    """

    def __init__(self, service: BookingService, owner_id: str):
        self.service = service
        self.owner_id = owner_id
        self.bookings: List[Booking] = []
        self.closed = False

    async def load(self) -> ActionResult:
        try:
            bookings = await self.service.list_bookings(self.owner_id)
        except DashboardError as e:
            logger.error(f"❌ Board load failed for {self.owner_id}: {e.message}")
            return ActionResult(success=False, message="Failed to load data. Please try again.")
        if not self.closed:
            self.bookings = bookings
        return ActionResult(success=True)

    def close(self) -> None:
        self.closed = True

    def filtered(self, booking_filter: BookingFilter) -> List[Booking]:
        return booking_filter.apply(self.bookings)

    def today(self, day: dt.date) -> List[Booking]:
        return bookings_on(self.bookings, day)

    def _replace(self, updated: Booking) -> None:
        if self.closed:
            return
        self.bookings = [updated if b.id == updated.id else b for b in self.bookings]

    async def _apply(self, coro, failure: str) -> ActionResult:
        try:
            updated = await coro
        except DashboardError as e:
            logger.error(f"❌ {failure}: {e.message}")
            return ActionResult(success=False, message=e.message)
        self._replace(updated)
        return ActionResult(success=True)

    async def transition(self, booking_id: str, status: BookingStatus, reason: Optional[str] = None) -> ActionResult:
        return await self._apply(
            self.service.transition(self.owner_id, booking_id, status, reason),
            f"Status update failed for {booking_id}",
        )

    async def accept(self, booking_id: str) -> ActionResult:
        return await self.transition(booking_id, S.CONFIRMED)

    async def cancel(self, booking_id: str, reason: Optional[str] = None) -> ActionResult:
        return await self.transition(booking_id, S.CANCELED, reason)

    async def add_note(self, booking_id: str, text: str, author_name: Optional[str] = None) -> ActionResult:
        return await self._apply(
            self.service.add_note(self.owner_id, booking_id, text, author_name),
            f"Adding note failed for {booking_id}",
        )

    async def delete(self, booking_id: str) -> ActionResult:
        try:
            await self.service.delete_booking(self.owner_id, booking_id)
        except DashboardError as e:
            logger.error(f"❌ Delete failed for {booking_id}: {e.message}")
            return ActionResult(success=False, message=e.message)
        if not self.closed:
            self.bookings = [b for b in self.bookings if b.id != booking_id]
        return ActionResult(success=True)
