"""
Demo Data Seeder

Fills the document store with a small fake catalog, banners and a few
weeks of order receipts so the dashboard and sales report have something
to show.

Usage:
    python scripts/seed_demo.py --products 40 --orders 300 --days 45
"""

import argparse
import asyncio
import random
import time
from typing import Any, Dict, List

import structlog
from faker import Faker

from backoffice.config import get_settings
from backoffice.config.logging import configure_logging
from backoffice.database.connection import close_database, get_session_factory, init_database
from backoffice.database.documents import DocumentStore
from backoffice.database.models import Collection
from backoffice.services.catalog import ProductCategory

logger = structlog.get_logger(__name__)

fake = Faker()

DAY_MS = 24 * 60 * 60 * 1000
STATUSES = ["done"] * 6 + ["pending"] * 3 + ["cancelled"]
DISCOUNT_CODES = ["NEWYEAR10", "GEMS15", "FREESHIP"]


def generate_products(n: int) -> List[Dict[str, Any]]:
    categories = [category.value for category in ProductCategory]
    return [
        {
            "name": f"{fake.word().title()} {random.choice(['Case', 'Charger', 'Ring', 'Pendant', 'Cable', 'Stone'])}",
            "description": fake.sentence(nb_words=10),
            "category": random.choice(categories),
            "price": float(random.choice(range(500, 50000, 250))),
            "stock": random.randint(0, 120),
            "imageUrl": f"https://picsum.photos/seed/{fake.uuid4()}/600/600",
        }
        for _ in range(n)
    ]


def generate_customers(n: int) -> List[Dict[str, Any]]:
    return [
        {
            "id": fake.uuid4(),
            "name": fake.name(),
            "phone": fake.msisdn()[:10],
            "email": fake.email(),
            "address": fake.address().replace("\n", ", "),
        }
        for _ in range(n)
    ]


def generate_order(products: List[Dict[str, Any]], customer: Dict[str, Any], created_at: int) -> Dict[str, Any]:
    items = []
    for product in random.sample(products, k=min(len(products), random.randint(1, 4))):
        items.append({
            "productId": product["id"],
            "name": product["name"],
            "price": product["price"],
            "qty": random.randint(1, 3),
        })

    order: Dict[str, Any] = {
        "receiptId": f"RCPT-{created_at}",
        "customer": customer,
        "customerId": customer["id"],
        "customerEmail": customer["email"],
        "customerPhone": customer["phone"],
        "items": items,
        "totalAmount": sum(item["price"] * item["qty"] for item in items),
        "status": random.choice(STATUSES),
        "createdAt": created_at,
    }
    if random.random() < 0.25:
        order["discount"] = random.choice(DISCOUNT_CODES)
    return order


async def seed(products_count: int, orders_count: int, days: int) -> None:
    settings = get_settings()
    await init_database(settings)
    store = DocumentStore(get_session_factory())

    try:
        items = store.collection(Collection.ITEMS)
        products = []
        for product in generate_products(products_count):
            product_id = await items.add(product)
            products.append({"id": product_id, **product})
        logger.info("Seeded products", count=len(products))

        banners = store.collection(Collection.BANNERS)
        for code in DISCOUNT_CODES:
            await banners.add({
                "title": fake.catch_phrase(),
                "subtitle": fake.sentence(nb_words=6),
                "discount": code,
                "imageUrl": f"https://picsum.photos/seed/{code}/1200/400",
            })
        logger.info("Seeded banners", count=len(DISCOUNT_CODES))

        customers = generate_customers(max(1, orders_count // 4))
        orders = store.collection(Collection.ORDERS)
        now = int(time.time() * 1000)
        for _ in range(orders_count):
            created_at = now - random.randint(0, days * DAY_MS)
            await orders.add(generate_order(products, random.choice(customers), created_at))
        logger.info("Seeded orders", count=orders_count, days=days)
    finally:
        await close_database()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the back-office with demo data")
    parser.add_argument("--products", type=int, default=40)
    parser.add_argument("--orders", type=int, default=300)
    parser.add_argument("--days", type=int, default=45)
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    random.seed(args.seed)
    Faker.seed(args.seed)
    configure_logging()

    asyncio.run(seed(args.products, args.orders, args.days))


if __name__ == "__main__":
    main()
