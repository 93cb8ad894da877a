"""
Banner Service

Promotional banners shown in the storefront carousel, newest first.
"""

from typing import Any, Dict, Optional

import structlog
from pydantic import BaseModel, ConfigDict, field_validator

from backoffice.database.documents import DocumentCollection
from .images import PRIMARY_IMAGE, ImageManager, ImageUpload

logger = structlog.get_logger(__name__)


class BannerInput(BaseModel):
    """Validated banner form"""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str
    subtitle: str
    discount: str = ""
    image_url: str = ""

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v:
            raise ValueError("Title required")
        return v

    @field_validator("subtitle")
    @classmethod
    def validate_subtitle(cls, v: str) -> str:
        if not v:
            raise ValueError("Subtitle required")
        return v

    def to_document(self) -> Dict[str, Any]:
        return {"title": self.title, "subtitle": self.subtitle, "discount": self.discount}


class MissingImageError(ValueError):
    """A banner needs an image URL or an uploaded file"""


class BannerService:
    """Banner write paths"""

    def __init__(self, banners: DocumentCollection, images: ImageManager):
        self.banners = banners
        self.images = images

    async def create(self, banner: BannerInput, image: Optional[ImageUpload] = None) -> Dict[str, Any]:
        """
        Raises:
            MissingImageError: If neither an image URL nor a file is given
        """
        if not banner.image_url and image is None:
            raise MissingImageError("Image URL or File required")

        main = await self.images.resolve(PRIMARY_IMAGE, {}, banner.image_url, image)
        document = {**banner.to_document(), **main.fields()}
        try:
            banner_id = await self.banners.add(document)
        except Exception:
            self.images.log_orphans([main], reason="banner create failed")
            raise

        logger.info("Banner created", banner_id=banner_id, title=banner.title)
        return {"id": banner_id, **document}

    async def update(
        self,
        banner_id: str,
        banner: BannerInput,
        image: Optional[ImageUpload] = None,
    ) -> Dict[str, Any]:
        """
        Raises:
            DocumentNotFoundError: If the banner does not exist
        """
        current = await self.banners.get(banner_id)
        main = await self.images.resolve(PRIMARY_IMAGE, current, banner.image_url, image)

        try:
            document = await self.banners.update(banner_id, {**banner.to_document(), **main.fields()})
        except Exception:
            self.images.log_orphans([main], reason="banner update failed")
            raise

        await self.images.discard(main.superseded)
        logger.info("Banner updated", banner_id=banner_id)
        return document

    async def delete(self, banner_id: str) -> Dict[str, Any]:
        """
        Raises:
            DocumentNotFoundError: If the banner does not exist
        """
        document = await self.banners.delete(banner_id)
        await self.images.discard(document.get(PRIMARY_IMAGE.path_field))
        logger.info("Banner deleted", banner_id=banner_id)
        return document
