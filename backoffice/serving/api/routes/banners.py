"""
Banners API Endpoints
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from pydantic import BaseModel

from backoffice.serving.api.dependencies import (
    Services,
    get_services,
    read_upload,
    require_session,
    validate_form,
)
from backoffice.services.banners import BannerInput

router = APIRouter(dependencies=[Depends(require_session)])


class BannerListResponse(BaseModel):
    """Banners, newest first"""
    items: List[Dict[str, Any]]
    total: int


@router.get("", response_model=BannerListResponse)
async def list_banners(services: Services = Depends(get_services)) -> BannerListResponse:
    items = list(services.banners.snapshot)
    return BannerListResponse(items=items, total=len(items))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_banner(
    title: str = Form(""),
    subtitle: str = Form(""),
    discount: str = Form(""),
    image_url: str = Form(""),
    image: Optional[UploadFile] = File(None),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    """Create a banner; an image URL or an uploaded file is required."""
    banner = validate_form(BannerInput, title=title, subtitle=subtitle, discount=discount, image_url=image_url)
    upload = await read_upload(image, services.settings.blobs.max_upload_bytes)
    return await services.banner_service.create(banner, image=upload)


@router.put("/{banner_id}")
async def update_banner(
    banner_id: str,
    title: str = Form(""),
    subtitle: str = Form(""),
    discount: str = Form(""),
    image_url: str = Form(""),
    image: Optional[UploadFile] = File(None),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    """Update a banner; without a new URL or file the current image is kept."""
    banner = validate_form(BannerInput, title=title, subtitle=subtitle, discount=discount, image_url=image_url)
    upload = await read_upload(image, services.settings.blobs.max_upload_bytes)
    return await services.banner_service.update(banner_id, banner, image=upload)


@router.delete("/{banner_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_banner(banner_id: str, services: Services = Depends(get_services)) -> None:
    await services.banner_service.delete(banner_id)
