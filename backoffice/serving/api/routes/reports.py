"""
Reports API Endpoints

Sales report over the live order and product snapshots.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query

from backoffice.reporting import RangePreset, SalesReport, build_sales_report, resolve_range
from backoffice.serving.api.dependencies import Services, get_services, require_session

router = APIRouter(dependencies=[Depends(require_session)])
logger = structlog.get_logger(__name__)


@router.get("/sales", response_model=SalesReport)
async def get_sales_report(
    preset: RangePreset = Query(RangePreset.LAST_7_DAYS, description="7d, 30d or custom"),
    date_from: Optional[str] = Query(None, alias="from", description="Custom range start (YYYY-MM-DD)"),
    date_to: Optional[str] = Query(None, alias="to", description="Custom range end (YYYY-MM-DD)"),
    services: Services = Depends(get_services),
) -> SalesReport:
    """
    Sales report for a preset or custom calendar range.

    Recomputed from the current snapshots on every call; a change to any
    order or product is reflected on the next request.
    """
    date_range = resolve_range(preset, date_from, date_to)
    report = build_sales_report(
        services.orders.snapshot,
        services.products.snapshot,
        date_range,
    )
    logger.info(
        "Sales report built",
        preset=preset.value,
        days=report.range.days,
        orders=report.totals.order_count,
    )
    return report
