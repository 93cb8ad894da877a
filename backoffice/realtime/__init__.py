"""
Realtime Module

Change notifications and the live projections built on them.
"""
from .changefeed import (
    ChangeFeed,
    LocalChangeFeed,
    RedisChangeFeed,
    Subscription,
    create_change_feed,
)
from .projections import StoreProjection

__all__ = [
    "ChangeFeed",
    "LocalChangeFeed",
    "RedisChangeFeed",
    "Subscription",
    "create_change_feed",
    "StoreProjection",
]
