import asyncio
from datetime import date, datetime, timedelta, timezone

import pytest

from barber_dashboard.core.errors import NotFoundError, StoreError, TransitionError, ValidationError
from barber_dashboard.models.booking import Booking, BookingStatus, Note, StatusHistoryEntry
from barber_dashboard.services.booking_filters import BookingFilter
from barber_dashboard.services.booking_service import (
    BookingBoard,
    BookingService,
    append_history,
    check_transition,
    conversation,
)
from conftest import make_booking


@pytest.mark.asyncio
async def test_list_bookings_is_scoped_to_owner(store):
    service = BookingService(store)
    bookings = await service.list_bookings("owner-1")
    assert sorted(b.id for b in bookings) == ["b1", "b2"]


@pytest.mark.asyncio
async def test_list_bookings_skips_rows_without_id(store):
    store.tables["bookings"].append(make_booking(id=None, client_name="No Id"))
    bookings = await BookingService(store).list_bookings("owner-1")
    assert sorted(b.id for b in bookings) == ["b1", "b2"]


@pytest.mark.asyncio
async def test_bad_history_entry_keeps_booking_usable(store):
    row = store.row("bookings", "b1")
    row["status_history"] = [
        {"status": "pending", "timestamp": "2024-01-10T08:00:00Z", "updated_by": "system"},
        {"status": "pending", "timestamp": "2024-01-10T09:00:00Z", "updated_by": "client"},
    ]
    row["client_notes"] = "not a list"
    service = BookingService(store)

    loaded = {b.id: b for b in await service.list_bookings("owner-1")}
    assert [e.updated_by for e in loaded["b1"].status_history] == ["client"]
    assert loaded["b1"].client_notes == []

    board = BookingBoard(service, "owner-1")
    await board.load()
    result = await board.accept("b1")
    assert result.success
    assert [e["status"] for e in store.row("bookings", "b1")["status_history"]] == ["pending", "confirmed"]


@pytest.mark.asyncio
async def test_unreadable_booking_fails_as_store_error(store):
    store.row("bookings", "b1")["is_emergency"] = "sometimes"
    service = BookingService(store)

    with pytest.raises(StoreError):
        await service.accept("owner-1", "b1")

    result = await BookingBoard(service, "owner-1").accept("b1")
    assert result.success is False
    assert "Please try again" in result.message
    assert store.row("bookings", "b1")["status"] == "pending"


@pytest.mark.asyncio
async def test_cancel_without_history_creates_first_entry(store):
    service = BookingService(store)
    updated = await service.transition("owner-1", "b1", BookingStatus.CANCELED, "client unreachable")

    assert updated.status == "canceled"
    assert len(updated.status_history) == 1
    entry = updated.status_history[0]
    assert entry.status == "canceled"
    assert entry.reason == "client unreachable"
    assert entry.updated_by == "barber"
    assert entry.timestamp is not None
    assert updated.barber_reason == "client unreachable"

    # Only the changed fields went to the store
    collection, booking_id, fields = store.updates[-1]
    assert (collection, booking_id) == ("bookings", "b1")
    assert set(fields) == {"status", "status_history", "barber_reason"}
    assert store.row("bookings", "b1")["status_history"][0]["reason"] == "client unreachable"


@pytest.mark.asyncio
async def test_confirm_does_not_store_reason(store):
    updated = await BookingService(store).transition("owner-1", "b1", BookingStatus.CONFIRMED, "ignored")
    assert updated.barber_reason is None
    assert "barber_reason" not in store.updates[-1][2]
    assert updated.status_history[0].reason == "ignored"


@pytest.mark.asyncio
async def test_same_status_twice_grows_history_only(store):
    service = BookingService(store)
    first = await service.accept("owner-1", "b1")
    second = await service.accept("owner-1", "b1")

    assert first.status == second.status == "confirmed"
    assert len(second.status_history) == 2
    assert second.status_history[0].timestamp <= second.status_history[1].timestamp


@pytest.mark.asyncio
async def test_any_to_any_by_default(store):
    service = BookingService(store, strict_transitions=False)
    # b2 is completed
    updated = await service.transition("owner-1", "b2", BookingStatus.PENDING)
    assert updated.status == "pending"


@pytest.mark.asyncio
async def test_strict_mode_blocks_leaving_terminal_status(store):
    service = BookingService(store, strict_transitions=True)
    with pytest.raises(TransitionError):
        await service.transition("owner-1", "b2", BookingStatus.PENDING)
    assert store.updates == []

    updated = await service.transition("owner-1", "b1", BookingStatus.CONFIRMED)
    assert updated.status == "confirmed"


def test_check_transition_table():
    check_transition("pending", "confirmed", strict=True)
    check_transition("completed", "completed", strict=True)
    check_transition("completed", "pending", strict=False)
    with pytest.raises(TransitionError):
        check_transition("canceled", "confirmed", strict=True)


@pytest.mark.asyncio
async def test_unknown_status_is_rejected(store):
    with pytest.raises(ValidationError):
        await BookingService(store).transition("owner-1", "b1", "teleported")


@pytest.mark.asyncio
async def test_transition_unknown_or_foreign_booking(store):
    service = BookingService(store)
    with pytest.raises(NotFoundError):
        await service.transition("owner-1", "missing", BookingStatus.CONFIRMED)
    # b3 belongs to owner-2
    with pytest.raises(NotFoundError):
        await service.transition("owner-1", "b3", BookingStatus.CONFIRMED)


@pytest.mark.asyncio
async def test_delete_booking(store):
    service = BookingService(store)
    await service.delete_booking("owner-1", "b1")
    assert store.row("bookings", "b1") is None

    with pytest.raises(NotFoundError):
        await service.delete_booking("owner-1", "b1")
    with pytest.raises(NotFoundError):
        await service.delete_booking("owner-1", "nope")


def test_append_history_never_goes_back_in_time():
    future = datetime.now(timezone.utc) + timedelta(hours=1)
    history = [StatusHistoryEntry(status="pending", timestamp=future, updated_by="client")]

    result = append_history(history, "confirmed", None)
    assert len(history) == 1
    assert result[-1].timestamp == future
    assert result[-1].reason == ""


def test_append_history_handles_naive_timestamps():
    history = [StatusHistoryEntry(status="pending", timestamp=datetime(2024, 1, 1, 12, 0))]
    result = append_history(history, "confirmed", "ok", now=datetime(2024, 1, 1, 13, 0, tzinfo=timezone.utc))
    assert result[-1].timestamp == datetime(2024, 1, 1, 13, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_add_note_and_conversation_order(store):
    t = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
    store.row("bookings", "b1")["client_notes"] = [
        {"text": "Running late", "timestamp": t.isoformat(), "author": "client", "author_id": "c1"},
        {"text": "See you", "timestamp": (t + timedelta(minutes=5)).isoformat(), "author": "client"},
    ]
    service = BookingService(store)
    updated = await service.add_note("owner-1", "b1", "  No problem  ", "Kuya's")

    assert updated.barbershop_notes[-1].text == "No problem"
    assert updated.barbershop_notes[-1].author_id == "owner-1"
    assert store.updates[-1][2]["barbershop_notes"][0]["text"] == "No problem"

    with pytest.raises(ValidationError):
        await service.add_note("owner-1", "b1", "   ")


def test_conversation_ties_keep_insertion_order():
    t = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
    booking = Booking.model_validate(make_booking())
    booking.client_notes = [Note(text="client first", timestamp=t, author="client")]
    booking.barbershop_notes = [
        Note(text="earliest", timestamp=t - timedelta(minutes=1), author="barbershop"),
        Note(text="shop same time", timestamp=t, author="barbershop"),
    ]
    assert [n.text for n in conversation(booking)] == ["earliest", "client first", "shop same time"]


@pytest.mark.asyncio
async def test_board_patches_local_list_without_refetch(store):
    board = BookingBoard(BookingService(store), "owner-1")
    assert (await board.load()).success
    store.fail_on.add("query")

    result = await board.cancel("b1", "double booked")
    assert result.success
    b1 = next(b for b in board.bookings if b.id == "b1")
    assert b1.status == "canceled"
    assert b1.status_history[-1].reason == "double booked"

    assert [b.id for b in board.filtered(BookingFilter(status="canceled"))] == ["b1"]
    assert [b.id for b in board.today(date(2024, 1, 16))] == ["b2"]

    assert (await board.delete("b2")).success
    assert [b.id for b in board.bookings] == ["b1"]


@pytest.mark.asyncio
async def test_board_leaves_list_untouched_on_store_failure(store):
    board = BookingBoard(BookingService(store), "owner-1")
    await board.load()
    before = [b.model_copy() for b in board.bookings]

    store.fail_on.add("update_fields")
    result = await board.accept("b1")
    assert result.success is False
    assert "Please try again" in result.message
    assert board.bookings == before

    store.fail_on.add("delete")
    assert (await board.delete("b1")).success is False
    assert board.bookings == before


@pytest.mark.asyncio
async def test_board_reports_missing_booking(store):
    board = BookingBoard(BookingService(store), "owner-1")
    await board.load()
    result = await board.delete("ghost")
    assert result.success is False
    assert "not found" in result.message


@pytest.mark.asyncio
async def test_closed_board_ignores_late_results(store):
    board = BookingBoard(BookingService(store), "owner-1")
    await board.load()
    board.close()

    result = await board.accept("b1")
    assert result.success
    assert next(b for b in board.bookings if b.id == "b1").status == "pending"
    assert store.row("bookings", "b1")["status"] == "confirmed"


@pytest.mark.asyncio
async def test_board_load_failure(store):
    store.fail_on.add("query")
    board = BookingBoard(BookingService(store), "owner-1")
    result = await board.load()
    assert result.success is False
    assert board.bookings == []


@pytest.mark.asyncio
async def test_booking_locks_are_released_after_use(store):
    service = BookingService(store)

    await asyncio.gather(
        service.accept("owner-1", "b1"),
        service.cancel("owner-1", "b1", "shop closed"),
    )
    with pytest.raises(NotFoundError):
        await service.accept("owner-1", "ghost")

    # Both writers ran one after the other on the same history
    assert len(store.row("bookings", "b1")["status_history"]) == 2
    assert service._locks == {}
    assert service._lock_users == {}
