"""
Catalog Service

Create, update and delete products in the ``Items`` collection, with up
to two images per product.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

import structlog
from pydantic import BaseModel, ConfigDict, field_validator

from backoffice.database.documents import DocumentCollection
from backoffice.reporting.primitives import safe_num
from .images import PRIMARY_IMAGE, SECONDARY_IMAGE, ImageManager, ImageUpload

logger = structlog.get_logger(__name__)

ALL_CATEGORIES = "All Categories"


class ProductCategory(str, Enum):
    """Product category enumeration"""
    MOBILE_ACCESSORIES = "Mobile Accessories"
    GEMS = "Gems"
    JEWELRY = "Jewelry"
    ELECTRONICS = "Electronics"
    OTHER = "Other"


class ProductInput(BaseModel):
    """Validated product form"""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str
    description: str
    category: ProductCategory = ProductCategory.MOBILE_ACCESSORIES
    price: float
    stock: int = 0
    image_url: str = ""
    image_url2: str = ""

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v:
            raise ValueError("Product name is required")
        return v

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        if not v:
            raise ValueError("Description is required")
        return v

    @field_validator("price", mode="before")
    @classmethod
    def validate_price(cls, v: Any) -> float:
        price = safe_num(v, fallback=-1.0)
        if price < 0:
            raise ValueError("Enter a valid price (0 or more)")
        return price

    @field_validator("stock", mode="before")
    @classmethod
    def validate_stock(cls, v: Any) -> int:
        stock = safe_num(0 if v is None or v == "" else v, fallback=-1.0)
        if stock < 0 or not stock.is_integer():
            raise ValueError("Enter a valid stock (0 or more)")
        return int(stock)

    def to_document(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "category": self.category.value,
            "price": self.price,
            "stock": self.stock,
        }


def filter_products(
    products: Sequence[Dict[str, Any]],
    search: Optional[str] = None,
    category: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Products whose name or description contains ``search`` and whose category matches."""
    query = (search or "").strip().lower()
    category = category if category and category != ALL_CATEGORIES else None

    matches = []
    for product in products:
        text_ok = (
            not query
            or query in str(product.get("name") or "").lower()
            or query in str(product.get("description") or "").lower()
        )
        category_ok = category is None or str(product.get("category") or "") == category
        if text_ok and category_ok:
            matches.append(product)
    return matches


class CatalogService:
    """
    Product write paths.

    Order of a write: upload new images, write the document, then delete
    blobs the write superseded.
    """

    def __init__(self, items: DocumentCollection, images: ImageManager):
        self.items = items
        self.images = images

    async def create(
        self,
        product: ProductInput,
        image: Optional[ImageUpload] = None,
        image2: Optional[ImageUpload] = None,
    ) -> Dict[str, Any]:
        main = await self.images.resolve(PRIMARY_IMAGE, {}, product.image_url, image)
        second = await self.images.resolve(SECONDARY_IMAGE, {}, product.image_url2, image2)

        document = {**product.to_document(), **main.fields(), **second.fields()}
        try:
            product_id = await self.items.add(document)
        except Exception:
            self.images.log_orphans([main, second], reason="product create failed")
            raise

        logger.info("Product created", product_id=product_id, name=product.name)
        return {"id": product_id, **document}

    async def update(
        self,
        product_id: str,
        product: ProductInput,
        image: Optional[ImageUpload] = None,
        image2: Optional[ImageUpload] = None,
    ) -> Dict[str, Any]:
        """
        Replace a product's fields and, where given, its images.

        Raises:
            DocumentNotFoundError: If the product does not exist
        """
        current = await self.items.get(product_id)

        main = await self.images.resolve(PRIMARY_IMAGE, current, product.image_url, image)
        second = await self.images.resolve(SECONDARY_IMAGE, current, product.image_url2, image2)

        changes = {**product.to_document(), **main.fields(), **second.fields()}
        try:
            document = await self.items.update(product_id, changes)
        except Exception:
            self.images.log_orphans([main, second], reason="product update failed")
            raise

        await self.images.discard(main.superseded, second.superseded)
        logger.info("Product updated", product_id=product_id)
        return document

    async def delete(self, product_id: str) -> Dict[str, Any]:
        """
        Delete a product and its uploaded images.

        Raises:
            DocumentNotFoundError: If the product does not exist
        """
        document = await self.items.delete(product_id)
        await self.images.discard(
            document.get(PRIMARY_IMAGE.path_field),
            document.get(SECONDARY_IMAGE.path_field),
        )
        logger.info("Product deleted", product_id=product_id)
        return document
