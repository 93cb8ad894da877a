"""
Storage Module
"""
from .blobs import BlobStorageError, LocalBlobStore, StoredBlob, blob_path, sanitize_filename

__all__ = [
    "BlobStorageError",
    "LocalBlobStore",
    "StoredBlob",
    "blob_path",
    "sanitize_filename",
]
