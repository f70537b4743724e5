from typing import Literal, Optional
from pydantic import BaseModel


class Barber(BaseModel):
    barber_id: str = ""
    full_name: str
    email: str = ""
    contact_number: str = ""
    address: str = ""
    is_available: bool = True
    affiliated_barbershop_id: str
    affiliated_barbershop: str = ""


class Service(BaseModel):
    id: str
    title: str
    featured_image: Optional[str] = None
    status: Literal["Available", "Disabled"] = "Available"
    barbershop_id: str


class Style(BaseModel):
    style_id: str
    style_name: str
    # Stored as text by the booking app (e.g. "250")
    price: str = "0"
    featured_image: Optional[str] = None
    service_id: str
    barbershop_id: str
