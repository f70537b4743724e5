import time
from typing import Optional

from barber_dashboard.core.config import settings
from barber_dashboard.core.errors import StoreError
from barber_dashboard.core.logger import logger
from barber_dashboard.services.db_service import DocumentStore, db_service


def image_path(folder: str, filename: str) -> str:
    """'services/1700000000000_fade.png' - millisecond prefix keeps uploads unique."""
    safe_name = filename.replace("/", "_").strip() or "image"
    return f"{folder}/{int(time.time() * 1000)}_{safe_name}"


class StorageService:
    def __init__(self, store: DocumentStore = db_service, bucket: Optional[str] = None):
        self.store = store
        self.bucket = bucket or settings.STORAGE_BUCKET

    async def upload(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        """Uploads `data` to the bucket and returns its public download URL."""
        client = await self.store.get_client()
        try:
            bucket = client.storage.from_(self.bucket)
            await bucket.upload(path, data, {"content-type": content_type})
            url = await bucket.get_public_url(path)
        except Exception as e:
            logger.error(f"❌ Storage Error (upload {path}): {e}")
            raise StoreError("upload the image", e) from e

        logger.info(f"🖼️ Uploaded {path} ({len(data)} bytes)")
        return url


storage_service = StorageService()
