"""
Unit Tests - Catalog, Order and Banner Services
"""
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from backoffice.database.documents import DocumentNotFoundError, DocumentStoreError
from backoffice.serving.api.dependencies import read_upload
from backoffice.services.banners import BannerInput, BannerService, MissingImageError
from backoffice.services.catalog import (
    ALL_CATEGORIES,
    CatalogService,
    ProductInput,
    filter_products,
)
from backoffice.services.images import PRIMARY_IMAGE, ImageManager, ImageUpload
from backoffice.services.orders import (
    OrderInput,
    OrderService,
    OrderTab,
    OrderUpdate,
    count_orders,
    filter_orders,
)
from backoffice.storage.blobs import BlobStorageError, LocalBlobStore, blob_path, sanitize_filename

PNG = b"\x89PNG\r\n\x1a\nfake"


def product_form(**overrides):
    form = {
        "name": "Phone Case",
        "description": "Shockproof silicone case",
        "category": "Mobile Accessories",
        "price": "1500",
        "stock": "25",
    }
    form.update(overrides)
    return ProductInput(**form)


@pytest.fixture
def catalog(items, blob_store):
    return CatalogService(items, ImageManager(blob_store, "Items"))


@pytest.fixture
def banner_service(banners, blob_store):
    return BannerService(banners, ImageManager(blob_store, "Banners"))


class TestBlobStore:
    """Tests for LocalBlobStore"""

    def test_sanitize_filename(self):
        assert sanitize_filename("my  phone case.png") == "my_phone_case.png"
        assert sanitize_filename("../../etc/passwd") == "passwd"
        assert sanitize_filename("C:\\Users\\a\\ring.jpg") == "ring.jpg"
        assert sanitize_filename("") == "upload"

    def test_blob_path(self):
        assert blob_path("Items", "ring 1.png", timestamp_ms=1718000000000) == "Items/1718000000000_ring_1.png"

    async def test_upload_and_delete(self, blob_store):
        stored = await blob_store.upload("Items", "ring.png", PNG)

        assert stored.path.startswith("Items/")
        assert stored.path.endswith("_ring.png")
        assert stored.url == f"/media/{stored.path}"
        assert await blob_store.exists(stored.path)

        await blob_store.delete(stored.path)
        assert not await blob_store.exists(stored.path)

    async def test_same_name_same_millisecond_gets_distinct_paths(self, blob_store, monkeypatch):
        monkeypatch.setattr("backoffice.storage.blobs.time.time", lambda: 1718000000.0)

        first = await blob_store.upload("Items", "ring.png", PNG)
        second = await blob_store.upload("Items", "ring.png", b"second")

        assert first.path == "Items/1718000000000_ring.png"
        assert second.path == "Items/1718000000001_ring.png"
        assert (blob_store.root / first.path).read_bytes() == PNG
        assert (blob_store.root / second.path).read_bytes() == b"second"

    async def test_delete_missing_raises(self, blob_store):
        with pytest.raises(BlobStorageError):
            await blob_store.delete("Items/nothing.png")

    async def test_path_escape_rejected(self, blob_store):
        with pytest.raises(BlobStorageError):
            await blob_store.delete("../outside.txt")


class TestImageManager:
    """Tests for image slot resolution"""

    async def test_url_wins_over_upload(self, blob_store):
        manager = ImageManager(blob_store, "Items")
        current = {"imageUrl": "/media/Items/1_old.png", "imagePath": "Items/1_old.png"}

        change = await manager.resolve(PRIMARY_IMAGE, current, "https://cdn.example.com/new.png", ImageUpload("x.png", PNG))

        assert change.fields() == {"imageUrl": "https://cdn.example.com/new.png", "imagePath": ""}
        assert change.superseded == "Items/1_old.png"
        assert change.uploaded is None

    async def test_upload_used_without_url(self, blob_store):
        manager = ImageManager(blob_store, "Items")

        change = await manager.resolve(PRIMARY_IMAGE, {}, "", ImageUpload("new.png", PNG))

        assert change.path.startswith("Items/")
        assert change.url == f"/media/{change.path}"
        assert change.uploaded == change.path
        assert change.superseded is None

    async def test_nothing_given_keeps_current(self, blob_store):
        manager = ImageManager(blob_store, "Items")
        current = {"imageUrl": "https://cdn.example.com/a.png", "imagePath": ""}

        change = await manager.resolve(PRIMARY_IMAGE, current, "  ", None)

        assert change.fields() == {"imageUrl": "https://cdn.example.com/a.png", "imagePath": ""}
        assert change.superseded is None

    async def test_same_url_keeps_current_path(self, blob_store):
        manager = ImageManager(blob_store, "Items")
        current = {"imageUrl": "/media/Items/1_a.png", "imagePath": "Items/1_a.png"}

        change = await manager.resolve(PRIMARY_IMAGE, current, "/media/Items/1_a.png", None)

        assert change.path == "Items/1_a.png"
        assert change.superseded is None

    async def test_discard_swallows_failures(self, blob_store):
        manager = ImageManager(blob_store, "Items")
        await manager.discard("Items/missing.png", None, "")


class TestProductInput:
    """Tests for product form validation"""

    def test_valid_form(self):
        product = product_form(stock="")

        assert product.price == 1500
        assert product.stock == 0

    @pytest.mark.parametrize("field,value,message", [
        ("name", "  ", "Product name is required"),
        ("description", "", "Description is required"),
        ("price", "-1", "Enter a valid price (0 or more)"),
        ("price", "abc", "Enter a valid price (0 or more)"),
        ("stock", "-2", "Enter a valid stock (0 or more)"),
        ("stock", "1.5", "Enter a valid stock (0 or more)"),
    ])
    def test_invalid_fields(self, field, value, message):
        with pytest.raises(ValidationError) as exc_info:
            product_form(**{field: value})

        errors = exc_info.value.errors()
        assert errors[0]["loc"] == (field,)
        assert message in errors[0]["msg"]

    def test_unknown_category_rejected(self):
        with pytest.raises(ValidationError):
            product_form(category="Furniture")


class TestFilterProducts:
    """Tests for catalog search"""

    def test_search_and_category(self, sample_products):
        assert [p["id"] for p in filter_products(sample_products, search="ring")] == ["prod-3"]
        assert [p["id"] for p in filter_products(sample_products, category="Gems")] == ["prod-2"]
        assert len(filter_products(sample_products, category=ALL_CATEGORIES)) == 3
        assert filter_products(sample_products, search="ring", category="Gems") == []


class TestCatalogService:
    """Tests for CatalogService"""

    async def test_create_with_url(self, catalog, items):
        created = await catalog.create(product_form(image_url="https://cdn.example.com/case.png"))

        stored = await items.get(created["id"])
        assert stored["imageUrl"] == "https://cdn.example.com/case.png"
        assert stored["imagePath"] == ""
        assert stored["imageUrl2"] == ""

    async def test_create_with_uploads(self, catalog, blob_store):
        created = await catalog.create(
            product_form(),
            image=ImageUpload("front.png", PNG),
            image2=ImageUpload("back side.png", PNG),
        )

        assert await blob_store.exists(created["imagePath"])
        assert created["imagePath2"].endswith("_back_side.png")

    async def test_update_replaces_uploaded_image(self, catalog, blob_store):
        created = await catalog.create(product_form(), image=ImageUpload("old.png", PNG))
        old_path = created["imagePath"]

        updated = await catalog.update(created["id"], product_form(price="1800"), image=ImageUpload("new.png", PNG))

        assert updated["price"] == 1800
        assert updated["imagePath"] != old_path
        assert await blob_store.exists(updated["imagePath"])
        assert not await blob_store.exists(old_path)

    async def test_update_without_image_keeps_current(self, catalog):
        created = await catalog.create(product_form(image_url="https://cdn.example.com/a.png"))

        updated = await catalog.update(created["id"], product_form(name="Renamed"))

        assert updated["name"] == "Renamed"
        assert updated["imageUrl"] == "https://cdn.example.com/a.png"

    async def test_delete_removes_blobs(self, catalog, items, blob_store):
        created = await catalog.create(product_form(), image=ImageUpload("a.png", PNG))

        await catalog.delete(created["id"])

        assert not await blob_store.exists(created["imagePath"])
        with pytest.raises(DocumentNotFoundError):
            await items.get(created["id"])

    async def test_delete_survives_blob_cleanup_failure(self, catalog, items, blob_store):
        created = await catalog.create(product_form(), image=ImageUpload("a.png", PNG))
        await blob_store.delete(created["imagePath"])

        await catalog.delete(created["id"])

        assert await items.snapshot() == []

    async def test_failed_write_leaves_upload_orphaned(self, catalog, items, blob_store):
        items.add = AsyncMock(side_effect=DocumentStoreError("add on Items failed"))

        with pytest.raises(DocumentStoreError):
            await catalog.create(product_form(), image=ImageUpload("a.png", PNG))

        uploaded = list((blob_store.root / "Items").iterdir())
        assert len(uploaded) == 1

    async def test_update_missing_product(self, catalog):
        with pytest.raises(DocumentNotFoundError):
            await catalog.update("missing", product_form())


class TestOrders:
    """Tests for order filters and OrderService"""

    def test_filter_by_tab(self, sample_orders):
        orders = sample_orders + [{"id": "ord-4", "receiptId": "RCPT-004"}]

        assert [o["id"] for o in filter_orders(orders, OrderTab.PENDING)] == ["ord-3", "ord-4"]
        assert [o["id"] for o in filter_orders(orders, OrderTab.DONE)] == ["ord-1"]
        assert len(filter_orders(orders, OrderTab.ALL)) == 4

    def test_filter_by_search(self, sample_orders):
        assert [o["id"] for o in filter_orders(sample_orders, search="rcpt-002")] == ["ord-2"]
        assert [o["id"] for o in filter_orders(sample_orders, search="kamala")] == ["ord-3"]
        assert [o["id"] for o in filter_orders(sample_orders, search="077123")] == ["ord-1", "ord-2"]

    def test_count_orders(self, sample_orders):
        assert count_orders(sample_orders) == {"all": 3, "pending": 2, "done": 1}

    def test_order_needs_items(self):
        with pytest.raises(ValidationError):
            OrderInput(items=[])

    async def test_create_order_document(self, orders):
        service = OrderService(orders)
        payload = OrderInput(
            customer={"name": "Nimal", "phone": "0771234567", "email": "nimal@example.com"},
            items=[{"product_id": "prod-1", "price": 1500, "quantity": 2}],
            total_amount=3000,
            discount="SALE10",
        )

        created = await service.create(payload)
        stored = await orders.get(created["id"])

        assert stored["receiptId"].startswith("RCPT-")
        assert stored["status"] == "pending"
        assert stored["items"] == [{"productId": "prod-1", "price": 1500, "qty": 2}]
        assert stored["customerEmail"] == "nimal@example.com"
        assert stored["customerPhone"] == "0771234567"
        assert "customerId" not in stored

    async def test_mark_done_and_update(self, orders):
        service = OrderService(orders)
        created = await service.create(OrderInput(items=[{"product_id": "p", "price": 10, "quantity": 1}]))

        done = await service.mark_done(created["id"])
        assert done["status"] == "done"
        assert done["updatedAt"] is not None

        updated = await service.update(created["id"], OrderUpdate(discount="VIP"))
        assert updated["discount"] == "VIP"
        assert updated["status"] == "done"

    async def test_mark_done_missing_order(self, orders):
        with pytest.raises(DocumentNotFoundError):
            await OrderService(orders).mark_done("missing")


class TestBanners:
    """Tests for BannerService"""

    def test_required_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            BannerInput(title="", subtitle="")

        messages = [error["msg"] for error in exc_info.value.errors()]
        assert any("Title required" in m for m in messages)
        assert any("Subtitle required" in m for m in messages)

    async def test_create_requires_image(self, banner_service):
        with pytest.raises(MissingImageError, match="Image URL or File required"):
            await banner_service.create(BannerInput(title="Sale", subtitle="Up to 20% off"))

    async def test_create_update_delete(self, banner_service, banners, blob_store):
        created = await banner_service.create(
            BannerInput(title="Sale", subtitle="Up to 20% off", discount="SALE20"),
            image=ImageUpload("banner.jpg", PNG),
        )
        assert created["imagePath"].startswith("Banners/")

        updated = await banner_service.update(
            created["id"],
            BannerInput(title="Big Sale", subtitle="Up to 30% off", image_url="https://cdn.example.com/b.jpg"),
        )
        assert updated["imageUrl"] == "https://cdn.example.com/b.jpg"
        assert not await blob_store.exists(created["imagePath"])

        await banner_service.delete(created["id"])
        assert await banners.snapshot() == []


class TestReadUpload:
    """Tests for reading multipart image uploads"""

    @staticmethod
    def upload(filename, content):
        upload = MagicMock()
        upload.filename = filename
        upload.content_type = "image/png"
        upload.read = AsyncMock(return_value=content)
        return upload

    async def test_oversized_upload_rejected_after_bounded_read(self):
        upload = self.upload("big.png", b"x" * 11)

        with pytest.raises(HTTPException) as exc_info:
            await read_upload(upload, max_bytes=10)

        assert exc_info.value.status_code == 413
        upload.read.assert_awaited_once_with(11)

    async def test_upload_at_limit_accepted(self):
        upload = self.upload("ring.png", b"x" * 10)

        image = await read_upload(upload, max_bytes=10)

        assert image.filename == "ring.png"
        assert image.content == b"x" * 10

    async def test_missing_or_empty_file_is_no_upload(self):
        assert await read_upload(None, max_bytes=10) is None
        assert await read_upload(self.upload("", b""), max_bytes=10) is None
        assert await read_upload(self.upload("empty.png", b""), max_bytes=10) is None
