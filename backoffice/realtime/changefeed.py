"""
Change Feed

Push notifications for document collections. After every write the
document store publishes the collection name; subscribers react by
reloading their snapshot. Two backends:

- LocalChangeFeed: in-process fan-out for a single server worker
- RedisChangeFeed: Redis pub/sub, so every worker sees every write
"""

import asyncio
import contextlib
from collections import defaultdict
from typing import Awaitable, Callable, Dict, List, Optional

import structlog
from redis.asyncio import Redis

logger = structlog.get_logger(__name__)

ChangeCallback = Callable[[str], Awaitable[None]]


class Subscription:
    """Handle returned by ``subscribe``; ``close`` stops delivery."""

    def __init__(self, collection: str, on_close: Callable[[], Awaitable[None]]):
        self.collection = collection
        self._on_close = on_close
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._on_close()


class ChangeFeed:
    """Interface shared by change feed backends"""

    async def publish(self, collection: str) -> None:
        raise NotImplementedError

    async def subscribe(self, collection: str, callback: ChangeCallback) -> Subscription:
        raise NotImplementedError

    async def close(self) -> None:
        """Release backend resources."""


class LocalChangeFeed(ChangeFeed):
    """
    In-process change feed.

    ``publish`` awaits every subscriber of the collection in subscription
    order. A failing subscriber is logged and does not stop the others.
    """

    def __init__(self):
        self._listeners: Dict[str, List[ChangeCallback]] = defaultdict(list)

    async def publish(self, collection: str) -> None:
        for callback in list(self._listeners.get(collection, [])):
            try:
                await callback(collection)
            except Exception as e:
                logger.error("Change listener failed", collection=collection, error=str(e))

    async def subscribe(self, collection: str, callback: ChangeCallback) -> Subscription:
        self._listeners[collection].append(callback)
        logger.debug("Subscribed to collection", collection=collection, backend="local")

        async def _remove() -> None:
            listeners = self._listeners.get(collection, [])
            if callback in listeners:
                listeners.remove(callback)
            logger.debug("Unsubscribed from collection", collection=collection, backend="local")

        return Subscription(collection, _remove)

    def listener_count(self, collection: str) -> int:
        return len(self._listeners.get(collection, []))


class RedisChangeFeed(ChangeFeed):
    """
    Redis pub/sub change feed.

    Each subscription owns a PubSub connection and a reader task that
    invokes the callback for every message on the collection channel.
    """

    def __init__(self, client: Redis, channel_prefix: str = "backoffice:changes"):
        self._client = client
        self._channel_prefix = channel_prefix
        self._subscriptions: List[Subscription] = []

    def channel(self, collection: str) -> str:
        return f"{self._channel_prefix}:{collection}"

    async def publish(self, collection: str) -> None:
        await self._client.publish(self.channel(collection), collection)

    async def subscribe(self, collection: str, callback: ChangeCallback) -> Subscription:
        channel = self.channel(collection)
        pubsub = self._client.pubsub(ignore_subscribe_messages=True)
        await pubsub.subscribe(channel)

        async def _reader() -> None:
            try:
                async for message in pubsub.listen():
                    if message is None or message.get("type") != "message":
                        continue
                    try:
                        await callback(collection)
                    except Exception as e:
                        logger.error("Change listener failed", collection=collection, error=str(e))
            except Exception:
                logger.exception("Change feed reader stopped", collection=collection, channel=channel)

        task = asyncio.create_task(_reader(), name=f"changefeed:{collection}")
        logger.debug("Subscribed to collection", collection=collection, backend="redis", channel=channel)

        async def _stop() -> None:
            task.cancel()
            # The reader may already have died on a connection error
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await task
            try:
                await pubsub.unsubscribe(channel)
            except Exception as e:
                logger.warning("Unsubscribe failed", collection=collection, error=str(e))
            await pubsub.aclose()
            logger.debug("Unsubscribed from collection", collection=collection, backend="redis")

        subscription = Subscription(collection, _stop)
        self._subscriptions.append(subscription)
        return subscription

    async def close(self) -> None:
        for subscription in self._subscriptions:
            await subscription.close()
        self._subscriptions.clear()


def create_change_feed(backend: str, client: Optional[Redis] = None, channel_prefix: str = "backoffice:changes") -> ChangeFeed:
    """Build the change feed for the configured backend."""
    if backend == "redis":
        if client is None:
            raise RuntimeError("Redis change feed requires an initialized Redis client")
        return RedisChangeFeed(client, channel_prefix=channel_prefix)
    return LocalChangeFeed()
