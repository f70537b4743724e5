from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from barber_dashboard.core.security import get_owner_id
from barber_dashboard.models.catalog import Service, Style
from barber_dashboard.services.catalog_service import CatalogService, ImageUpload, search_styles

router = APIRouter()
catalog_service = CatalogService()


def get_catalog_service() -> CatalogService:
    return catalog_service


async def _read_image(upload: Optional[UploadFile]) -> Optional[ImageUpload]:
    if upload is None or not upload.filename:
        return None
    return ImageUpload(
        filename=upload.filename,
        content=await upload.read(),
        content_type=upload.content_type or "application/octet-stream",
    )


@router.get("/services", response_model=List[Service])
async def list_services(owner_id: str = Depends(get_owner_id), service: CatalogService = Depends(get_catalog_service)):
    return await service.list_services(owner_id)


@router.post("/services", response_model=Service)
async def create_service(
    title: str = Form(""),
    status: str = Form("Available"),
    image: Optional[UploadFile] = File(None),
    owner_id: str = Depends(get_owner_id),
    service: CatalogService = Depends(get_catalog_service),
):
    return await service.create_service(owner_id, title, status, await _read_image(image))


@router.put("/services/{service_id}", response_model=Service)
async def update_service(
    service_id: str,
    title: Optional[str] = Form(None),
    status: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    owner_id: str = Depends(get_owner_id),
    service: CatalogService = Depends(get_catalog_service),
):
    return await service.update_service(owner_id, service_id, title, status, await _read_image(image))


@router.delete("/services/{service_id}")
async def delete_service(
    service_id: str,
    owner_id: str = Depends(get_owner_id),
    service: CatalogService = Depends(get_catalog_service),
):
    await service.delete_service(owner_id, service_id)
    return {"success": True}


@router.get("/styles", response_model=Dict[str, List[Style]])
async def list_styles(
    q: str = "",
    owner_id: str = Depends(get_owner_id),
    service: CatalogService = Depends(get_catalog_service),
):
    return search_styles(await service.styles_by_service(owner_id), q)


@router.post("/services/{service_id}/styles", response_model=Style)
async def create_style(
    service_id: str,
    style_name: str = Form(""),
    price: str = Form("0"),
    image: Optional[UploadFile] = File(None),
    owner_id: str = Depends(get_owner_id),
    service: CatalogService = Depends(get_catalog_service),
):
    return await service.create_style(owner_id, service_id, style_name, price, await _read_image(image))


@router.delete("/styles/{style_id}")
async def delete_style(
    style_id: str,
    owner_id: str = Depends(get_owner_id),
    service: CatalogService = Depends(get_catalog_service),
):
    await service.delete_style(owner_id, style_id)
    return {"success": True}
