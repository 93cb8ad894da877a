"""
Blob Storage

Filesystem-backed image storage. Blobs are written under
``<root>/<folder>/<epochMillis>_<sanitizedFilename>`` and exposed read-only
at ``<public_base_url>/<path>``.
"""

import asyncio
import re
import time
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional

import structlog

logger = structlog.get_logger(__name__)

_WHITESPACE = re.compile(r"\s+")


class BlobStorageError(RuntimeError):
    """A blob could not be written or removed"""


@dataclass(frozen=True)
class StoredBlob:
    """Location of an uploaded blob"""
    path: str
    url: str


def sanitize_filename(filename: str) -> str:
    """Drop any directory part and replace whitespace runs with underscores."""
    name = PurePosixPath(str(filename or "").replace("\\", "/")).name
    name = _WHITESPACE.sub("_", name.strip())
    return name or "upload"


def blob_path(folder: str, filename: str, timestamp_ms: Optional[int] = None) -> str:
    """Storage path for a new upload: ``<folder>/<epochMillis>_<name>``."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{folder}/{timestamp_ms}_{sanitize_filename(filename)}"


class LocalBlobStore:
    """
    Blob store on the local filesystem.

    Example:
        blobs = LocalBlobStore("./data/blobs", "/media")
        stored = await blobs.upload("Items", "phone case.png", data)
        stored.path  # "Items/1718000000000_phone_case.png"
    """

    def __init__(self, root: str, public_base_url: str = "/media"):
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")

    def public_url(self, path: str) -> str:
        return f"{self.public_base_url}/{path}"

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if self.root.resolve() not in target.parents:
            raise BlobStorageError(f"Blob path escapes storage root: {path}")
        return target

    async def upload(self, folder: str, filename: str, content: bytes) -> StoredBlob:
        """
        Store ``content`` under a new collision-resistant path.

        Raises:
            BlobStorageError: If the file cannot be written
        """
        timestamp_ms = int(time.time() * 1000)

        def _write() -> str:
            stamp = timestamp_ms
            while True:
                path = blob_path(folder, filename, stamp)
                target = self._resolve(path)
                target.parent.mkdir(parents=True, exist_ok=True)
                try:
                    # Exclusive create: an existing blob is never overwritten
                    with open(target, "xb") as fh:
                        fh.write(content)
                    return path
                except FileExistsError:
                    stamp += 1

        try:
            path = await asyncio.to_thread(_write)
        except OSError as e:
            logger.error("Blob upload failed", folder=folder, filename=filename, error=str(e))
            raise BlobStorageError(f"Failed to store {folder}/{filename}") from e

        logger.info("Blob uploaded", path=path, size=len(content))
        return StoredBlob(path=path, url=self.public_url(path))

    async def delete(self, path: str) -> None:
        """
        Remove a stored blob.

        Raises:
            BlobStorageError: If the blob is missing or cannot be removed
        """
        target = self._resolve(path)
        try:
            await asyncio.to_thread(target.unlink)
        except OSError as e:
            raise BlobStorageError(f"Failed to delete {path}") from e

        logger.info("Blob deleted", path=path)

    async def exists(self, path: str) -> bool:
        return await asyncio.to_thread(self._resolve(path).is_file)
