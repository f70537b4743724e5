from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from barber_dashboard.core.config import settings
from barber_dashboard.core.errors import NotFoundError, ValidationError
from barber_dashboard.core.logger import logger
from barber_dashboard.models.catalog import Service, Style
from barber_dashboard.services.db_service import DocumentStore, db_service
from barber_dashboard.services.storage_service import StorageService, image_path, storage_service

SERVICE_STATUSES = ("Available", "Disabled")


class ImageUpload(BaseModel):
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


def search_styles(styles_map: Dict[str, List[Style]], query: str) -> Dict[str, List[Style]]:
    """Keeps only styles whose name contains `query` (case-insensitive)."""
    needle = (query or "").strip().lower()
    if not needle:
        return styles_map
    return {
        service_id: [s for s in styles if needle in s.style_name.lower()]
        for service_id, styles in styles_map.items()
    }


class CatalogService:
    def __init__(self, store: DocumentStore = db_service, storage: StorageService = storage_service):
        self.store = store
        self.storage = storage
        self.services = settings.SERVICES_TABLE
        self.styles = settings.STYLES_TABLE

    async def _upload(self, folder: str, image: ImageUpload) -> str:
        return await self.storage.upload(image_path(folder, image.filename), image.content, image.content_type)

    async def _owned(self, table: str, identifier: str, owner_id: str, id_field: str = "id") -> Dict[str, Any]:
        row = await self.store.get_by_id(table, identifier, id_field)
        if row.get("barbershop_id") != owner_id:
            raise NotFoundError(table, identifier)
        return row

    # --- Services ---

    async def list_services(self, owner_id: str) -> List[Service]:
        rows = await self.store.query(self.services, "barbershop_id", owner_id)
        return [Service.model_validate({**row, "id": str(row["id"])}) for row in rows]

    async def create_service(
        self, owner_id: str, title: str, status: str = "Available", image: Optional[ImageUpload] = None
    ) -> Service:
        title = (title or "").strip()
        if not title:
            raise ValidationError("Service title is required")
        if image is None:
            raise ValidationError("Service image is required")
        if status not in SERVICE_STATUSES:
            raise ValidationError(f"Service status must be one of {', '.join(SERVICE_STATUSES)}")

        url = await self._upload("services", image)
        record = {"title": title, "status": status, "featured_image": url, "barbershop_id": owner_id}
        service_id = await self.store.create(self.services, record)
        logger.info(f"🧾 Service '{title}' created ({service_id})")
        return Service.model_validate({**record, "id": service_id})

    async def update_service(
        self,
        owner_id: str,
        service_id: str,
        title: Optional[str] = None,
        status: Optional[str] = None,
        image: Optional[ImageUpload] = None,
    ) -> Service:
        row = await self._owned(self.services, service_id, owner_id)

        fields: Dict[str, Any] = {}
        if title is not None:
            if not title.strip():
                raise ValidationError("Service title is required")
            fields["title"] = title.strip()
        if status is not None:
            if status not in SERVICE_STATUSES:
                raise ValidationError(f"Service status must be one of {', '.join(SERVICE_STATUSES)}")
            fields["status"] = status
        if image is not None:
            fields["featured_image"] = await self._upload("services", image)

        if fields:
            row = await self.store.update_fields(self.services, service_id, fields)
        return Service.model_validate({**row, "id": service_id})

    async def delete_service(self, owner_id: str, service_id: str) -> None:
        await self._owned(self.services, service_id, owner_id)
        await self.store.delete(self.services, service_id)
        logger.info(f"🗑️ Service {service_id} deleted")

    # --- Styles ---

    async def styles_by_service(self, owner_id: str) -> Dict[str, List[Style]]:
        rows = await self.store.query(self.styles, "barbershop_id", owner_id)
        grouped: Dict[str, List[Style]] = {}
        for row in rows:
            style = Style.model_validate({**row, "style_id": str(row.get("style_id") or row["id"])})
            grouped.setdefault(style.service_id, []).append(style)
        return grouped

    async def create_style(
        self, owner_id: str, service_id: str, style_name: str, price: str, image: Optional[ImageUpload] = None
    ) -> Style:
        style_name = (style_name or "").strip()
        if not style_name:
            raise ValidationError("Style name is required")
        await self._owned(self.services, service_id, owner_id)

        record = {
            "style_name": style_name,
            "price": str(price or "0").strip(),
            "service_id": service_id,
            "barbershop_id": owner_id,
            "featured_image": await self._upload("styles", image) if image else None,
        }
        style_id = await self.store.create(self.styles, record)
        await self.store.update_fields(self.styles, style_id, {"style_id": style_id})
        logger.info(f"✂️ Style '{style_name}' added to service {service_id}")
        return Style.model_validate({**record, "style_id": style_id})

    async def delete_style(self, owner_id: str, style_id: str) -> None:
        await self._owned(self.styles, style_id, owner_id)
        await self.store.delete(self.styles, style_id)
        logger.info(f"🗑️ Style {style_id} deleted")
