"""
Database Module
"""
from .connection import init_database, close_database, get_db, get_session_factory
from .documents import (
    DocumentCollection,
    DocumentNotFoundError,
    DocumentStore,
    DocumentStoreError,
)
from .models import Base, Collection, DocumentRecord

__all__ = [
    "init_database",
    "close_database",
    "get_db",
    "get_session_factory",
    "DocumentCollection",
    "DocumentNotFoundError",
    "DocumentStore",
    "DocumentStoreError",
    "Base",
    "Collection",
    "DocumentRecord",
]
