from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from barber_dashboard.core.security import get_owner_id
from barber_dashboard.models.catalog import Barber
from barber_dashboard.services.barber_service import BarberService

router = APIRouter(prefix="/staff")
barber_service = BarberService()


def get_barber_service() -> BarberService:
    return barber_service


class BarberIn(BaseModel):
    full_name: str
    email: str = ""
    contact_number: str = ""
    address: str = ""
    is_available: bool = True


class BarberUpdate(BaseModel):
    full_name: Optional[str] = None
    email: Optional[str] = None
    contact_number: Optional[str] = None
    address: Optional[str] = None
    is_available: Optional[bool] = None


@router.get("", response_model=List[Barber])
async def list_staff(owner_id: str = Depends(get_owner_id), service: BarberService = Depends(get_barber_service)):
    return await service.list_barbers(owner_id)


@router.post("", response_model=Barber)
async def add_staff(
    req: BarberIn,
    owner_id: str = Depends(get_owner_id),
    service: BarberService = Depends(get_barber_service),
):
    return await service.add_barber(owner_id, req.model_dump())


@router.put("/{barber_id}", response_model=Barber)
async def update_staff(
    barber_id: str,
    req: BarberUpdate,
    owner_id: str = Depends(get_owner_id),
    service: BarberService = Depends(get_barber_service),
):
    return await service.update_barber(owner_id, barber_id, req.model_dump(exclude_none=True))


@router.delete("/{barber_id}")
async def delete_staff(
    barber_id: str,
    owner_id: str = Depends(get_owner_id),
    service: BarberService = Depends(get_barber_service),
):
    await service.delete_barber(owner_id, barber_id)
    return {"success": True}
