"""
Entity Image Handling

Resolves the image of one entity slot (URL field + storage path field)
from either a pasted URL or an uploaded file, and cleans up blobs that a
write has superseded.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import structlog

from backoffice.storage.blobs import LocalBlobStore

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ImageUpload:
    """An uploaded image file"""
    filename: str
    content: bytes
    content_type: Optional[str] = None


@dataclass(frozen=True)
class ImageSlot:
    """Document fields holding one image reference"""
    url_field: str
    path_field: str


PRIMARY_IMAGE = ImageSlot("imageUrl", "imagePath")
SECONDARY_IMAGE = ImageSlot("imageUrl2", "imagePath2")


@dataclass(frozen=True)
class ImageChange:
    """Outcome of resolving one slot"""
    slot: ImageSlot
    url: str
    path: str
    superseded: Optional[str] = None
    uploaded: Optional[str] = None

    def fields(self) -> Dict[str, str]:
        return {self.slot.url_field: self.url, self.slot.path_field: self.path}


class ImageManager:
    """
    Image resolution for entities stored in one blob folder.

    Priority per slot: a new non-blank URL is used as is; otherwise an
    uploaded file is stored; otherwise the current reference is kept.
    Any blob owned by the current reference that gets replaced is reported
    as superseded so it can be discarded after the document write.
    """

    def __init__(self, blobs: LocalBlobStore, folder: str):
        self.blobs = blobs
        self.folder = folder

    async def resolve(
        self,
        slot: ImageSlot,
        current: Mapping[str, Any],
        url: Optional[str] = None,
        upload: Optional[ImageUpload] = None,
    ) -> ImageChange:
        current_url = str(current.get(slot.url_field) or "")
        current_path = str(current.get(slot.path_field) or "")
        url = (url or "").strip()

        if url and url != current_url:
            return ImageChange(slot, url=url, path="", superseded=current_path or None)

        if upload is not None:
            stored = await self.blobs.upload(self.folder, upload.filename, upload.content)
            return ImageChange(
                slot,
                url=stored.url,
                path=stored.path,
                superseded=current_path or None,
                uploaded=stored.path,
            )

        return ImageChange(slot, url=current_url, path=current_path)

    async def discard(self, *paths: Optional[str]) -> None:
        """Delete blobs that are no longer referenced. Failures are logged and ignored."""
        for path in paths:
            if not path:
                continue
            try:
                await self.blobs.delete(path)
            except Exception as e:
                logger.warning("Blob cleanup failed", path=path, error=str(e))

    def log_orphans(self, changes, reason: str) -> None:
        """Record uploads left unreferenced because the document write failed."""
        orphans = [change.uploaded for change in changes if change.uploaded]
        if orphans:
            logger.warning("Uploaded blobs left unreferenced", paths=orphans, reason=reason)
