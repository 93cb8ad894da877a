"""
Products API Endpoints

Catalog listing and product CRUD with image upload.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from pydantic import BaseModel

from backoffice.serving.api.dependencies import (
    Services,
    get_services,
    read_upload,
    require_session,
    validate_form,
)
from backoffice.services.catalog import ALL_CATEGORIES, ProductCategory, ProductInput, filter_products

router = APIRouter(dependencies=[Depends(require_session)])


class ProductListResponse(BaseModel):
    """Filtered product list"""
    items: List[Dict[str, Any]]
    total: int
    categories: List[str]


@router.get("", response_model=ProductListResponse)
async def list_products(
    search: Optional[str] = None,
    category: Optional[str] = Query(None, description=f"Category name or '{ALL_CATEGORIES}'"),
    services: Services = Depends(get_services),
) -> ProductListResponse:
    """List products from the live catalog snapshot."""
    items = filter_products(services.products.snapshot, search=search, category=category)
    return ProductListResponse(
        items=items,
        total=len(items),
        categories=[c.value for c in ProductCategory],
    )


@router.get("/{product_id}")
async def get_product(product_id: str, services: Services = Depends(get_services)) -> Dict[str, Any]:
    """Get one product."""
    product = services.products.get(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    name: str = Form(""),
    description: str = Form(""),
    category: str = Form(ProductCategory.MOBILE_ACCESSORIES.value),
    price: str = Form(""),
    stock: str = Form("0"),
    image_url: str = Form(""),
    image_url2: str = Form(""),
    image: Optional[UploadFile] = File(None),
    image2: Optional[UploadFile] = File(None),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    """Create a product; images may be given as URLs or uploaded files."""
    product = validate_form(
        ProductInput,
        name=name,
        description=description,
        category=category,
        price=price,
        stock=stock,
        image_url=image_url,
        image_url2=image_url2,
    )
    max_bytes = services.settings.blobs.max_upload_bytes
    return await services.catalog.create(
        product,
        image=await read_upload(image, max_bytes),
        image2=await read_upload(image2, max_bytes),
    )


@router.put("/{product_id}")
async def update_product(
    product_id: str,
    name: str = Form(""),
    description: str = Form(""),
    category: str = Form(ProductCategory.MOBILE_ACCESSORIES.value),
    price: str = Form(""),
    stock: str = Form("0"),
    image_url: str = Form(""),
    image_url2: str = Form(""),
    image: Optional[UploadFile] = File(None),
    image2: Optional[UploadFile] = File(None),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    """Update a product; blank image fields keep the current images."""
    product = validate_form(
        ProductInput,
        name=name,
        description=description,
        category=category,
        price=price,
        stock=stock,
        image_url=image_url,
        image_url2=image_url2,
    )
    max_bytes = services.settings.blobs.max_upload_bytes
    return await services.catalog.update(
        product_id,
        product,
        image=await read_upload(image, max_bytes),
        image2=await read_upload(image2, max_bytes),
    )


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(product_id: str, services: Services = Depends(get_services)) -> None:
    """Delete a product and its uploaded images."""
    await services.catalog.delete(product_id)
