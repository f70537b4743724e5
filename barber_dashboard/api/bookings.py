from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from barber_dashboard.core.security import get_owner_id
from barber_dashboard.models.booking import Booking, BookingStatus, Note
from barber_dashboard.services.booking_filters import ALL, BookingFilter, barber_names, bookings_on
from barber_dashboard.services.booking_service import BookingService, conversation

router = APIRouter(prefix="/bookings")
booking_service = BookingService()


def get_booking_service() -> BookingService:
    return booking_service


class StatusChangeRequest(BaseModel):
    status: BookingStatus
    reason: Optional[str] = None


class CancelRequest(BaseModel):
    reason: Optional[str] = None


class NoteRequest(BaseModel):
    text: str
    author_name: Optional[str] = None


@router.get("", response_model=List[Booking])
async def list_bookings(
    status: str = ALL,
    barber: str = ALL,
    q: str = "",
    owner_id: str = Depends(get_owner_id),
    service: BookingService = Depends(get_booking_service),
):
    bookings = await service.list_bookings(owner_id)
    return BookingFilter(status=status, barber=barber, search=q).apply(bookings)


@router.get("/today", response_model=List[Booking])
async def todays_bookings(
    day: Optional[date] = None,
    owner_id: str = Depends(get_owner_id),
    service: BookingService = Depends(get_booking_service),
):
    bookings = await service.list_bookings(owner_id)
    return bookings_on(bookings, day or date.today())


@router.get("/barbers", response_model=List[str])
async def booking_barbers(
    owner_id: str = Depends(get_owner_id),
    service: BookingService = Depends(get_booking_service),
):
    return barber_names(await service.list_bookings(owner_id))


@router.post("/{booking_id}/status", response_model=Booking)
async def change_status(
    booking_id: str,
    req: StatusChangeRequest,
    owner_id: str = Depends(get_owner_id),
    service: BookingService = Depends(get_booking_service),
):
    return await service.transition(owner_id, booking_id, req.status, req.reason)


@router.post("/{booking_id}/accept", response_model=Booking)
async def accept_booking(
    booking_id: str,
    owner_id: str = Depends(get_owner_id),
    service: BookingService = Depends(get_booking_service),
):
    return await service.accept(owner_id, booking_id)


@router.post("/{booking_id}/cancel", response_model=Booking)
async def cancel_booking(
    booking_id: str,
    req: Optional[CancelRequest] = None,
    owner_id: str = Depends(get_owner_id),
    service: BookingService = Depends(get_booking_service),
):
    return await service.cancel(owner_id, booking_id, req.reason if req else None)


@router.delete("/{booking_id}")
async def delete_booking(
    booking_id: str,
    owner_id: str = Depends(get_owner_id),
    service: BookingService = Depends(get_booking_service),
):
    await service.delete_booking(owner_id, booking_id)
    return {"success": True}


@router.post("/{booking_id}/notes", response_model=Booking)
async def add_note(
    booking_id: str,
    req: NoteRequest,
    owner_id: str = Depends(get_owner_id),
    service: BookingService = Depends(get_booking_service),
):
    return await service.add_note(owner_id, booking_id, req.text, req.author_name)


@router.get("/{booking_id}/conversation", response_model=List[Note])
async def booking_conversation(
    booking_id: str,
    owner_id: str = Depends(get_owner_id),
    service: BookingService = Depends(get_booking_service),
):
    return conversation(await service.get_booking(owner_id, booking_id))
