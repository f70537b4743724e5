import pytest

from barber_dashboard.core.errors import NotFoundError, ValidationError
from barber_dashboard.services.barber_service import BarberService
from conftest import FakeStore, make_booking


@pytest.mark.asyncio
async def test_add_barber_links_to_barbershop(store):
    service = BarberService(store)
    barber = await service.add_barber("owner-1", {"full_name": "Marco", "email": "marco@example.com"})

    assert barber.barber_id == "barbersprofile-1"
    assert barber.affiliated_barbershop == "Kuya's Barbershop"
    assert store.row("barbersprofile", barber.barber_id)["barber_id"] == barber.barber_id
    assert store.row("barbershops", "owner-1")["barbers"] == [barber.barber_id]

    listed = await service.list_barbers("owner-1")
    assert [b.full_name for b in listed] == ["Marco"]


@pytest.mark.asyncio
async def test_add_barber_requires_name_and_profile(store):
    service = BarberService(store)
    with pytest.raises(ValidationError):
        await service.add_barber("owner-1", {"full_name": "  "})
    with pytest.raises(NotFoundError):
        await service.add_barber("no-shop", {"full_name": "Marco"})
    assert "barbersprofile" not in store.tables


@pytest.mark.asyncio
async def test_update_barber_partial(store):
    service = BarberService(store)
    barber = await service.add_barber("owner-1", {"full_name": "Marco"})

    updated = await service.update_barber("owner-1", barber.barber_id, {"is_available": False})

    assert updated.is_available is False
    assert updated.full_name == "Marco"
    assert store.updates[-1][2] == {"is_available": False}


@pytest.mark.asyncio
async def test_delete_barber_leaves_bookings_orphaned(store):
    service = BarberService(store)
    barber = await service.add_barber("owner-1", {"full_name": "Marco"})

    await service.delete_barber("owner-1", barber.barber_id)

    assert store.row("barbersprofile", barber.barber_id) is None
    assert store.row("barbershops", "owner-1")["barbers"] == []
    # Bookings still name the barber
    assert store.row("bookings", "b1")["barber_name"] == "Marco"


@pytest.mark.asyncio
async def test_other_shops_barbers_are_invisible():
    store = FakeStore({
        "barbersprofile": [{"id": "x1", "barber_id": "x1", "full_name": "Rival", "affiliated_barbershop_id": "owner-2"}],
        "bookings": [make_booking()],
    })
    service = BarberService(store)
    assert await service.list_barbers("owner-1") == []
    with pytest.raises(NotFoundError):
        await service.delete_barber("owner-1", "x1")
