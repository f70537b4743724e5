from typing import Any, Dict, List, Optional

from barber_dashboard.core.config import settings
from barber_dashboard.core.errors import NotFoundError, ValidationError
from barber_dashboard.core.logger import logger
from barber_dashboard.models.catalog import Barber
from barber_dashboard.services.db_service import DocumentStore, db_service

EDITABLE_FIELDS = ("full_name", "email", "contact_number", "address", "is_available")


class BarberService:
    """Staff CRUD. Barbers are also listed on the owner's barbershop profile (`barbers` array)."""

    def __init__(self, store: DocumentStore = db_service):
        self.store = store
        self.table = settings.BARBERS_TABLE
        self.shops = settings.BARBERSHOPS_TABLE

    async def _barbershop(self, owner_id: str) -> Dict[str, Any]:
        try:
            return await self.store.get_by_id(self.shops, owner_id)
        except NotFoundError:
            logger.warning(f"⚠️ No barbershop profile for {owner_id}")
            raise

    async def list_barbers(self, owner_id: str) -> List[Barber]:
        rows = await self.store.query(self.table, "affiliated_barbershop_id", owner_id)
        return [Barber.model_validate({**row, "barber_id": str(row.get("barber_id") or row.get("id"))}) for row in rows]

    async def get_barber(self, owner_id: str, barber_id: str) -> Barber:
        row = await self.store.get_by_id(self.table, barber_id)
        if row.get("affiliated_barbershop_id") != owner_id:
            raise NotFoundError(self.table, barber_id)
        return Barber.model_validate({**row, "barber_id": barber_id})

    async def add_barber(self, owner_id: str, data: Dict[str, Any]) -> Barber:
        fields = {k: data[k] for k in EDITABLE_FIELDS if k in data}
        if not str(fields.get("full_name") or "").strip():
            raise ValidationError("Barber name is required.")

        shop = await self._barbershop(owner_id)
        record = {
            **fields,
            "affiliated_barbershop_id": owner_id,
            "affiliated_barbershop": shop.get("name") or "Unknown Barbershop",
        }

        barber_id = await self.store.create(self.table, record)
        # The booking app looks barbers up by barber_id, not the row id
        await self.store.update_fields(self.table, barber_id, {"barber_id": barber_id})

        roster = [*(shop.get("barbers") or []), barber_id]
        await self.store.update_fields(self.shops, owner_id, {"barbers": roster})

        logger.info(f"💈 Barber {barber_id} added to {owner_id}")
        return Barber.model_validate({**record, "barber_id": barber_id})

    async def update_barber(self, owner_id: str, barber_id: str, data: Dict[str, Any]) -> Barber:
        current = await self.get_barber(owner_id, barber_id)
        fields = {k: data[k] for k in EDITABLE_FIELDS if k in data}
        if "full_name" in fields and not str(fields["full_name"] or "").strip():
            raise ValidationError("Barber name is required.")
        if not fields:
            return current

        await self.store.update_fields(self.table, barber_id, fields)
        logger.info(f"✏️ Barber {barber_id} updated")
        return current.model_copy(update=fields)

    async def delete_barber(self, owner_id: str, barber_id: str) -> None:
        """
        Removes the barber from the roster and deletes the profile. Bookings
        that still name this barber are left as they are.
        """
        await self.get_barber(owner_id, barber_id)

        shop: Optional[Dict[str, Any]]
        try:
            shop = await self._barbershop(owner_id)
        except NotFoundError:
            shop = None

        if shop is not None:
            roster = [b for b in (shop.get("barbers") or []) if b != barber_id]
            await self.store.update_fields(self.shops, owner_id, {"barbers": roster})

        await self.store.delete(self.table, barber_id)
        logger.info(f"🗑️ Barber {barber_id} removed from {owner_id}")
