"""
Store Projections

In-memory views over a document collection. A projection loads the full
collection once, subscribes to the change feed, and replaces its snapshot
wholesale on every notification. Readers always see one complete snapshot.

Example:
    async with StoreProjection(store.collection(Collection.ITEMS), feed) as items:
        products = items.snapshot
"""

import asyncio
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Tuple

import structlog

from .changefeed import ChangeFeed, Subscription

if TYPE_CHECKING:
    from backoffice.database.documents import DocumentCollection

logger = structlog.get_logger(__name__)

Document = Dict[str, Any]


class StoreProjection:
    """Latest snapshot of one collection, kept current by the change feed"""

    def __init__(
        self,
        collection: "DocumentCollection",
        feed: ChangeFeed,
        newest_first: bool = False,
    ):
        self.collection = collection
        self._feed = feed
        self._newest_first = newest_first
        self._snapshot: Tuple[Document, ...] = ()
        self._by_id: Mapping[str, Document] = MappingProxyType({})
        self._subscription: Optional[Subscription] = None
        self._refresh_lock = asyncio.Lock()
        self.version = 0

    @property
    def name(self) -> str:
        return self.collection.name

    @property
    def snapshot(self) -> Tuple[Document, ...]:
        return self._snapshot

    @property
    def by_id(self) -> Mapping[str, Document]:
        return self._by_id

    @property
    def active(self) -> bool:
        return self._subscription is not None and not self._subscription.closed

    def get(self, doc_id: str) -> Optional[Document]:
        return self._by_id.get(doc_id)

    async def refresh(self) -> bool:
        """
        Reload the collection and swap in the new snapshot.

        Refreshes run one at a time; the snapshot is always the result of
        the last read to start. A failed read is logged and leaves the
        previous snapshot in place.

        Returns:
            True if the snapshot was replaced
        """
        async with self._refresh_lock:
            try:
                documents = await self.collection.snapshot(newest_first=self._newest_first)
            except Exception as e:
                logger.error("Snapshot reload failed", collection=self.name, error=str(e))
                return False

            snapshot = tuple(documents)
            by_id = MappingProxyType({document["id"]: document for document in snapshot})
            self._snapshot, self._by_id = snapshot, by_id
            self.version += 1

        logger.debug("Snapshot replaced", collection=self.name, documents=len(snapshot), version=self.version)
        return True

    async def _on_change(self, collection: str) -> None:
        await self.refresh()

    async def start(self) -> "StoreProjection":
        """Load the initial snapshot and start listening for changes."""
        if self.active:
            return self
        await self.refresh()
        self._subscription = await self._feed.subscribe(self.name, self._on_change)
        logger.info("Projection started", collection=self.name, documents=len(self._snapshot))
        return self

    async def stop(self) -> None:
        """Stop listening. The last snapshot stays readable."""
        if self._subscription is not None:
            await self._subscription.close()
            self._subscription = None
            logger.info("Projection stopped", collection=self.name)

    async def __aenter__(self) -> "StoreProjection":
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
