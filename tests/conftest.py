import copy
from typing import Any, Dict, List

import pytest

from barber_dashboard.core.errors import NotFoundError, StoreError


class FakeStore:
    """In-memory stand-in for DocumentStore. `fail_on` makes named operations raise StoreError."""

    def __init__(self, tables: Dict[str, List[Dict[str, Any]]] = None):
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            name: [copy.deepcopy(r) for r in rows] for name, rows in (tables or {}).items()
        }
        self.updates: List[tuple] = []
        self.fail_on = set()
        self.users: Dict[str, str] = {}
        self._seq = 0

    def _check(self, op: str):
        if op in self.fail_on:
            raise StoreError(op)

    def _find(self, collection: str, identifier: str, id_field: str):
        for row in self.tables.get(collection, []):
            if str(row.get(id_field)) == str(identifier):
                return row
        return None

    async def get_client(self):
        raise AssertionError("FakeStore has no Supabase client")

    async def query(self, collection, field, value):
        self._check("query")
        return [copy.deepcopy(r) for r in self.tables.get(collection, []) if r.get(field) == value]

    async def get_by_id(self, collection, identifier, id_field="id"):
        self._check("get_by_id")
        row = self._find(collection, identifier, id_field)
        if row is None:
            raise NotFoundError(collection, identifier)
        return copy.deepcopy(row)

    async def update_fields(self, collection, identifier, fields, id_field="id"):
        self._check("update_fields")
        row = self._find(collection, identifier, id_field)
        if row is None:
            raise NotFoundError(collection, identifier)
        row.update(copy.deepcopy(fields))
        self.updates.append((collection, identifier, copy.deepcopy(fields)))
        return copy.deepcopy(row)

    async def delete(self, collection, identifier, id_field="id"):
        self._check("delete")
        row = self._find(collection, identifier, id_field)
        if row is None:
            raise NotFoundError(collection, identifier)
        self.tables[collection].remove(row)

    async def create(self, collection, record):
        self._check("create")
        self._seq += 1
        new_id = f"{collection}-{self._seq}"
        self.tables.setdefault(collection, []).append({**copy.deepcopy(record), "id": new_id})
        return new_id

    async def current_user_id(self, token):
        return self.users.get(token)

    def row(self, collection, identifier):
        return self._find(collection, identifier, "id")


def make_booking(**overrides) -> Dict[str, Any]:
    row = {
        "id": "b1",
        "barbershop_id": "owner-1",
        "client_id": "c1",
        "client_name": "Juan Dela Cruz",
        "service_ordered": "Haircut",
        "style_ordered": "Low Fade",
        "barber_name": "Marco",
        "date": "2024-01-15",
        "time": "10:00",
        "status": "pending",
    }
    row.update(overrides)
    return row


@pytest.fixture
def store():
    return FakeStore({
        "bookings": [
            make_booking(),
            make_booking(id="b2", client_id="c2", client_name="Ana Reyes", service_ordered="Shave",
                         barber_name="Leo", date="2024-01-16", status="completed", price="150"),
            make_booking(id="b3", barbershop_id="owner-2", client_name="Other Shop Client"),
        ],
        "barbershops": [{"id": "owner-1", "name": "Kuya's Barbershop", "barbers": []}],
    })
