"""
Dashboard API Endpoints

Headline figures over the live product and order snapshots.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from backoffice.reporting import format_lkr, safe_num
from backoffice.serving.api.dependencies import Services, get_services, require_session
from backoffice.services.orders import count_orders

router = APIRouter(dependencies=[Depends(require_session)])


class DashboardSummary(BaseModel):
    """Dashboard cards"""
    total_products: int
    catalog_value: float
    catalog_value_label: str
    total_stock: int
    total_orders: int
    pending_orders: int
    done_orders: int
    total_banners: int


@router.get("", response_model=DashboardSummary)
async def get_dashboard(services: Services = Depends(get_services)) -> DashboardSummary:
    """
    Summary cards for the dashboard.

    ``catalog_value`` is the plain sum of product prices; stock is not
    multiplied in.
    """
    products = services.products.snapshot
    catalog_value = sum(safe_num(product.get("price")) for product in products)
    total_stock = int(sum(safe_num(product.get("stock")) for product in products))
    counts = count_orders(services.orders.snapshot)

    return DashboardSummary(
        total_products=len(products),
        catalog_value=catalog_value,
        catalog_value_label=format_lkr(catalog_value),
        total_stock=total_stock,
        total_orders=counts["all"],
        pending_orders=counts["pending"],
        done_orders=counts["done"],
        total_banners=len(services.banners.snapshot),
    )
