"""
Test Suite Configuration
"""
from datetime import datetime, timedelta
from typing import Any, AsyncGenerator, Dict, List

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from backoffice.config.settings import (
    AdminSettings,
    BlobStorageSettings,
    DocumentStoreSettings,
    Settings,
)
from backoffice.database.connection import create_engine_for_url, create_schema, create_session_factory
from backoffice.database.documents import DocumentStore
from backoffice.database.models import Collection
from backoffice.realtime.changefeed import LocalChangeFeed
from backoffice.storage.blobs import LocalBlobStore

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "s3cret-pass"


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Create test settings"""
    return Settings(
        app_env="testing",
        debug=True,
        database=DocumentStoreSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'backoffice.db'}"),
        blobs=BlobStorageSettings(root=str(tmp_path / "blobs")),
        admin=AdminSettings(email=ADMIN_EMAIL, password=ADMIN_PASSWORD),
    )


@pytest.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create test database engine"""
    engine = create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path / 'documents.db'}")
    await create_schema(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(test_engine)


@pytest.fixture
def feed() -> LocalChangeFeed:
    return LocalChangeFeed()


@pytest.fixture
def store(session_factory, feed) -> DocumentStore:
    return DocumentStore(session_factory, feed)


@pytest.fixture
def items(store):
    return store.collection(Collection.ITEMS)


@pytest.fixture
def orders(store):
    return store.collection(Collection.ORDERS)


@pytest.fixture
def banners(store):
    return store.collection(Collection.BANNERS)


@pytest.fixture
def blob_store(tmp_path) -> LocalBlobStore:
    return LocalBlobStore(str(tmp_path / "blobs"), "/media")


@pytest.fixture
def report_day() -> datetime:
    """Local midnight three days ago, so report ranges never straddle 'now'."""
    today = datetime.now().replace(hour=0, minute=0, second=0, microsecond=0)
    return today - timedelta(days=3)


@pytest.fixture
def sample_products() -> List[Dict[str, Any]]:
    """Create sample product snapshot"""
    return [
        {"id": "prod-1", "name": "Phone Case", "category": "Mobile Accessories", "price": 1500, "stock": 40},
        {"id": "prod-2", "name": "Blue Sapphire", "category": "Gems", "price": 85000, "stock": 3},
        {"id": "prod-3", "name": "Silver Ring", "category": "Jewelry", "price": 12000, "stock": 10},
    ]


@pytest.fixture
def sample_orders(report_day) -> List[Dict[str, Any]]:
    """Create sample order snapshot spread over two days"""
    day1 = round((report_day + timedelta(hours=10)).timestamp() * 1000)
    day2 = round((report_day + timedelta(days=1, hours=15)).timestamp() * 1000)
    return [
        {
            "id": "ord-1",
            "receiptId": "RCPT-001",
            "customerEmail": "nimal@example.com",
            "customer": {"name": "Nimal Perera", "phone": "0771234567"},
            "items": [{"productId": "prod-1", "price": 1500, "qty": 2}],
            "totalAmount": 3000,
            "status": "done",
            "discount": "SALE10",
            "createdAt": day1,
        },
        {
            "id": "ord-2",
            "receiptId": "RCPT-002",
            "customerEmail": "nimal@example.com",
            "customer": {"name": "Nimal Perera", "phone": "0771234567"},
            "items": [{"productId": "prod-3", "qty": 1}],
            "status": "Completed",
            "createdAt": day2,
        },
        {
            "id": "ord-3",
            "receiptId": "RCPT-003",
            "customerPhone": "0719876543",
            "customer": {"name": "Kamala Silva", "phone": "0719876543"},
            "items": [{"productId": "prod-2", "price": 85000, "qty": 1}],
            "totalAmount": 85000,
            "status": "pending",
            "createdAt": day2,
        },
    ]
