"""
Document Store

Collection-oriented access to the documents table. Every successful write
is followed by a change notification for the collection so live projections
can reload their snapshot.

Example:
    store = DocumentStore(session_factory, feed)
    items = store.collection(Collection.ITEMS)
    item_id = await items.add({"name": "Phone case", "price": 1500})
"""

import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List, Mapping, Optional, Union

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backoffice.database.models import Collection, DocumentRecord
from backoffice.realtime.changefeed import ChangeFeed
from backoffice.reporting.primitives import to_millis

logger = structlog.get_logger(__name__)

RESERVED_FIELDS = ("id", "createdAt", "updatedAt")


class DocumentStoreError(RuntimeError):
    """A read or write against the document store failed"""


class DocumentNotFoundError(LookupError):
    """No document with the given id exists in the collection"""

    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"{collection}/{doc_id} not found")
        self.collection = collection
        self.doc_id = doc_id


def now_ms() -> int:
    return int(time.time() * 1000)


def _body(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if key not in RESERVED_FIELDS}


class DocumentCollection:
    """One named collection of the document store"""

    def __init__(
        self,
        name: str,
        session_factory: async_sessionmaker[AsyncSession],
        feed: Optional[ChangeFeed] = None,
    ):
        self.name = name
        self._session_factory = session_factory
        self._feed = feed

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncGenerator[AsyncSession, None]:
        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(
                "Document store operation failed",
                collection=self.name,
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise DocumentStoreError(f"{operation} on {self.name} failed") from e
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def _notify(self) -> None:
        if self._feed is None:
            return
        try:
            await self._feed.publish(self.name)
        except Exception as e:
            # The write is already committed; only live views miss this change.
            logger.error("Change notification failed", collection=self.name, error=str(e))

    async def _load(self, session: AsyncSession, doc_id: str) -> DocumentRecord:
        record = await session.get(DocumentRecord, (self.name, doc_id))
        if record is None:
            raise DocumentNotFoundError(self.name, doc_id)
        return record

    async def add(self, data: Mapping[str, Any]) -> str:
        """
        Insert a new document and return its generated id.

        A parseable ``createdAt`` in ``data`` is kept as the creation time;
        otherwise the store assigns the current time.
        """
        doc_id = uuid.uuid4().hex
        created_at = to_millis(data.get("createdAt")) or now_ms()

        async with self._session("add") as session:
            session.add(DocumentRecord(
                collection=self.name,
                doc_id=doc_id,
                data=_body(data),
                created_at=created_at,
            ))

        logger.info("Document added", collection=self.name, doc_id=doc_id)
        await self._notify()
        return doc_id

    async def update(self, doc_id: str, changes: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Merge ``changes`` into an existing document and stamp ``updatedAt``.

        Raises:
            DocumentNotFoundError: If the document does not exist
        """
        async with self._session("update") as session:
            record = await self._load(session, doc_id)
            record.data = {**(record.data or {}), **_body(changes)}
            record.updated_at = now_ms()
            document = record.to_document()

        logger.info("Document updated", collection=self.name, doc_id=doc_id, fields=sorted(_body(changes)))
        await self._notify()
        return document

    async def delete(self, doc_id: str) -> Dict[str, Any]:
        """
        Delete a document and return its last state.

        Raises:
            DocumentNotFoundError: If the document does not exist
        """
        async with self._session("delete") as session:
            record = await self._load(session, doc_id)
            document = record.to_document()
            await session.delete(record)

        logger.info("Document deleted", collection=self.name, doc_id=doc_id)
        await self._notify()
        return document

    async def get(self, doc_id: str) -> Dict[str, Any]:
        """
        Read one document.

        Raises:
            DocumentNotFoundError: If the document does not exist
        """
        async with self._session("get") as session:
            record = await self._load(session, doc_id)
            return record.to_document()

    async def snapshot(self, newest_first: bool = False) -> List[Dict[str, Any]]:
        """Every document of the collection, by creation time."""
        query = select(DocumentRecord).where(DocumentRecord.collection == self.name)
        if newest_first:
            query = query.order_by(DocumentRecord.created_at.desc(), DocumentRecord.doc_id.desc())
        else:
            query = query.order_by(DocumentRecord.created_at, DocumentRecord.doc_id)

        async with self._session("snapshot") as session:
            result = await session.execute(query)
            return [record.to_document() for record in result.scalars().all()]


class DocumentStore:
    """Entry point handing out collections bound to one session factory and feed"""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        feed: Optional[ChangeFeed] = None,
    ):
        self._session_factory = session_factory
        self.feed = feed

    def collection(self, name: Union[Collection, str]) -> DocumentCollection:
        name = name.value if isinstance(name, Collection) else name
        return DocumentCollection(name, self._session_factory, self.feed)
