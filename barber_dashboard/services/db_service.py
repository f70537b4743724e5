from typing import Any, Dict, List, Optional

from supabase import create_async_client, AsyncClient

from barber_dashboard.core.config import settings
from barber_dashboard.core.errors import NotFoundError, StoreError
from barber_dashboard.core.logger import logger


class DocumentStore:
    """
    Thin async wrapper around the Supabase client.

    Collections map to tables; every call either returns plain dict rows or
    raises NotFoundError / StoreError. Callers never see Supabase exceptions.
    """
    _instance = None
    _client: Optional[AsyncClient] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(DocumentStore, cls).__new__(cls)
            # Async client is created lazily on first call
        return cls._instance

    async def get_client(self) -> AsyncClient:
        if not self._client:
            if not (settings.SUPABASE_URL and settings.SUPABASE_KEY):
                logger.warning("⚠️ Supabase credentials missing")
                raise StoreError("connect to the database")
            try:
                self._client = await create_async_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
                logger.info("✅ Supabase Async client initialized")
            except Exception as e:
                logger.error(f"❌ Failed to initialize Supabase Async: {e}")
                raise StoreError("connect to the database", e) from e
        return self._client

    async def query(self, collection: str, field: str, value: Any) -> List[Dict[str, Any]]:
        """All rows of `collection` where `field == value`."""
        client = await self.get_client()
        try:
            response = await client.table(collection).select("*").eq(field, value).execute()
        except Exception as e:
            logger.error(f"❌ DB Error (query {collection}.{field}): {e}")
            raise StoreError(f"load {collection}", e) from e

        rows = response.data or []
        logger.debug(f"📥 {len(rows)} rows from {collection} where {field}={value}")
        return rows

    async def get_by_id(self, collection: str, identifier: str, id_field: str = "id") -> Dict[str, Any]:
        client = await self.get_client()
        try:
            response = await client.table(collection).select("*").eq(id_field, identifier).limit(1).execute()
        except Exception as e:
            logger.error(f"❌ DB Error (get {collection}/{identifier}): {e}")
            raise StoreError(f"load {collection}", e) from e

        if not response.data:
            raise NotFoundError(collection, identifier)
        return response.data[0]

    async def update_fields(
        self, collection: str, identifier: str, fields: Dict[str, Any], id_field: str = "id"
    ) -> Dict[str, Any]:
        """
        Partial update: only `fields` are sent, the rest of the row is untouched.
        Returns the row as stored after the update.
        """
        client = await self.get_client()
        try:
            response = await client.table(collection).update(fields).eq(id_field, identifier).execute()
        except Exception as e:
            logger.error(f"❌ DB Error (update {collection}/{identifier}): {e}")
            raise StoreError(f"update {collection}", e) from e

        if not response.data:
            raise NotFoundError(collection, identifier)
        logger.info(f"✏️ Updated {collection}/{identifier}: {sorted(fields)}")
        return response.data[0]

    async def delete(self, collection: str, identifier: str, id_field: str = "id") -> None:
        client = await self.get_client()
        try:
            response = await client.table(collection).delete().eq(id_field, identifier).execute()
        except Exception as e:
            logger.error(f"❌ DB Error (delete {collection}/{identifier}): {e}")
            raise StoreError(f"delete from {collection}", e) from e

        if not response.data:
            raise NotFoundError(collection, identifier)
        logger.info(f"🗑️ {collection}/{identifier} deleted.")

    async def create(self, collection: str, record: Dict[str, Any]) -> str:
        """Inserts `record` and returns the id generated by the store."""
        client = await self.get_client()
        try:
            response = await client.table(collection).insert(record).execute()
        except Exception as e:
            logger.error(f"❌ DB Error (create in {collection}): {e}")
            raise StoreError(f"save to {collection}", e) from e

        if not response.data:
            raise StoreError(f"save to {collection}")
        new_id = str(response.data[0]["id"])
        logger.info(f"🆕 Created {collection}/{new_id}")
        return new_id

    async def current_user_id(self, token: str) -> Optional[str]:
        """
        Resolves a session token to the signed-in user's id via Supabase Auth.
        Returns None when the auth provider does not recognise the token.
        """
        client = await self.get_client()
        try:
            response = await client.auth.get_user(token)
        except Exception as e:
            logger.warning(f"⚠️ Auth lookup failed: {e}")
            return None

        if not response or not response.user:
            return None
        return str(response.user.id)


db_service = DocumentStore()
