"""
Database Models - Document Table

The back-office treats its database as a schema-on-read document store: one
row per document, the document body kept as JSON, grouped by collection
name. Creation and update times are epoch milliseconds assigned by the store.
"""

from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import JSON, BigInteger, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


class Collection(str, Enum):
    """Document collections used by the back-office"""
    ITEMS = "Items"
    ORDERS = "orderReceipts"
    BANNERS = "Banners"


class DocumentRecord(Base):
    """
    Document Table

    Stores every document of every collection. ``data`` holds the document
    fields exactly as written; ``id``, ``createdAt`` and ``updatedAt`` are
    kept in dedicated columns and merged back on read.
    """
    __tablename__ = "documents"

    collection: Mapped[str] = mapped_column(String(100), primary_key=True)
    doc_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    data: Mapped[Dict[str, Any]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=dict,
    )
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    __table_args__ = (
        Index("ix_documents_collection_created", "collection", "created_at"),
    )

    def to_document(self) -> Dict[str, Any]:
        """Document view: body fields plus id and timestamps."""
        document = dict(self.data or {})
        document["id"] = self.doc_id
        document["createdAt"] = self.created_at
        document["updatedAt"] = self.updated_at
        return document
