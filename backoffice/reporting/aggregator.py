"""
Sales Report Aggregator

Builds the sales report from the current order and product snapshots and a
resolved date range. The pipeline is a sequence of deterministic passes:

1. status partition (every in-period order is tallied; only done orders go on)
2. line-item flattening with catalog fallback for name, category and price
3. revenue totals
4. daily trend with zero-filled days
5. category rollup
6. top products by revenue
7. low-performing catalog products by quantity sold
8. discount impact
9. customer insights

Order-level revenue (stages 3, 4, 8, 9) prefers the stored order total and
otherwise sums the order's own line items without catalog fallback. Product
and category stages use the catalog-resolved line items. The two rules can
disagree for orders whose items lack a price.

All sorts are stable; ties keep snapshot order.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import polars as pl
import structlog

from .primitives import (
    OrderStatus,
    day_key,
    format_lkr,
    normalize_status,
    safe_num,
    to_millis,
)
from .ranges import DateRange
from .schemas import (
    CategoryRevenue,
    CustomerInsights,
    CustomerStat,
    DailyBucket,
    DiscountImpact,
    DiscountRow,
    LowPerformer,
    ProductSales,
    ReportRange,
    ReportTotals,
    SalesReport,
    StatusCounts,
)

logger = structlog.get_logger(__name__)

Document = Mapping[str, Any]

TOP_PRODUCTS_LIMIT = 8
LOW_PRODUCTS_LIMIT = 8
TOP_CUSTOMERS_LIMIT = 5

DEFAULT_NAME = "Unknown"
DEFAULT_CATEGORY = "Other"

PRODUCT_ID_FIELDS = ("productId", "itemId", "id")
DISCOUNT_FIELDS = ("discount", "discountCode", "bannerDiscount")
CUSTOMER_KEY_FIELDS = ("customerId", "customerEmail", "customerPhone", "userId")

LINE_ITEM_SCHEMA = {
    "order_id": pl.Utf8,
    "product_id": pl.Utf8,
    "key": pl.Utf8,
    "name": pl.Utf8,
    "category": pl.Utf8,
    "price": pl.Float64,
    "quantity": pl.Float64,
    "line_total": pl.Float64,
}


@dataclass
class FlatLineItem:
    """One (order, line item) pair with resolved attributes"""
    order_id: str
    product_id: str
    key: str
    name: str
    category: str
    price: float
    quantity: float
    line_total: float


def _coalesce(*values: Any) -> Any:
    """First value that is not None."""
    for value in values:
        if value is not None:
            return value
    return None


def _first_truthy(doc: Document, fields: Iterable[str]) -> Any:
    for field in fields:
        value = doc.get(field)
        if value:
            return value
    return None


def line_items(order: Document) -> List[Document]:
    """The order's line items; anything that is not a list of mappings is ignored."""
    items = order.get("items")
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, Mapping)]


def item_quantity(item: Document) -> float:
    return safe_num(_coalesce(item.get("qty"), item.get("quantity")))


def order_revenue(order: Document) -> float:
    """
    Revenue of one order: the stored total when present and non-empty,
    otherwise the sum of its own line items' price x quantity.
    """
    total = order.get("totalAmount")
    if total is not None and total != "":
        return safe_num(total)
    return sum(
        safe_num(item.get("price")) * item_quantity(item)
        for item in line_items(order)
    )


def discount_label(order: Document) -> str:
    return str(_first_truthy(order, DISCOUNT_FIELDS) or "").strip()


def customer_key(order: Document) -> Optional[str]:
    """First available customer identifier, or None when the order has none."""
    value = _first_truthy(order, CUSTOMER_KEY_FIELDS)
    return str(value) if value else None


class SalesReportAggregator:
    """
    Computes a SalesReport from snapshots.

    Holds no state between calls; the same inputs always produce the same
    report.

    Example:
        aggregator = SalesReportAggregator()
        report = aggregator.build(orders, products, resolve_range("7d"))
    """

    def build(
        self,
        orders: Sequence[Document],
        products: Sequence[Document],
        date_range: DateRange,
    ) -> SalesReport:
        """Run every stage and assemble the report."""
        in_period = self.orders_in_period(orders, date_range)
        status_counts = self.count_statuses(in_period)
        done_orders = [
            order for order in in_period
            if normalize_status(order.get("status")) is OrderStatus.DONE
        ]

        catalog = {str(product.get("id")): product for product in products if product.get("id")}
        flat_items = self.flatten_line_items(done_orders, catalog)
        frame = self.line_item_frame(flat_items)

        report = SalesReport(
            range=ReportRange(
                from_ms=date_range.from_ms,
                to_ms=date_range.to_ms,
                days=len(date_range.days()),
            ),
            status_counts=status_counts,
            totals=self.compute_totals(done_orders, flat_items),
            daily_trend=self.daily_trend(done_orders, date_range),
            category_sales=self.category_sales(frame),
            top_products=self.top_products(frame),
            low_products=self.low_products(products, frame),
            discounts=self.discount_impact(done_orders),
            customers=self.customer_insights(done_orders, date_range),
        )

        logger.debug(
            "Sales report built",
            orders=len(orders),
            in_period=len(in_period),
            done=len(done_orders),
            line_items=len(flat_items),
        )
        return report

    # ------------------------------------------------------------------
    # Stage 1
    # ------------------------------------------------------------------

    def orders_in_period(self, orders: Sequence[Document], date_range: DateRange) -> List[Document]:
        """
        Orders created inside the range. Orders without a usable timestamp
        are kept; they only drop out of the daily trend.
        """
        kept = []
        for order in orders:
            ms = to_millis(order.get("createdAt"))
            if ms is not None and not date_range.contains(ms):
                continue
            kept.append(order)
        return kept

    def count_statuses(self, orders: Sequence[Document]) -> StatusCounts:
        counts = {status.value: 0 for status in OrderStatus}
        for order in orders:
            counts[normalize_status(order.get("status")).value] += 1
        return StatusCounts(**counts)

    # ------------------------------------------------------------------
    # Stage 2
    # ------------------------------------------------------------------

    def flatten_line_items(
        self,
        done_orders: Sequence[Document],
        catalog: Mapping[str, Document],
    ) -> List[FlatLineItem]:
        """Expand done orders into line items, resolving missing fields from the catalog."""
        flat = []
        for order in done_orders:
            for item in line_items(order):
                raw_id = _first_truthy(item, PRODUCT_ID_FIELDS)
                product_id = str(raw_id) if raw_id else ""
                product = catalog.get(product_id, {}) if product_id else {}

                name = str(item.get("name") or product.get("name") or DEFAULT_NAME)
                category = str(item.get("category") or product.get("category") or DEFAULT_CATEGORY)
                price = safe_num(_coalesce(item.get("price"), product.get("price"), 0))
                quantity = item_quantity(item)

                flat.append(FlatLineItem(
                    order_id=str(order.get("id", "")),
                    product_id=product_id,
                    key=product_id or name,
                    name=name,
                    category=category,
                    price=price,
                    quantity=quantity,
                    line_total=price * quantity,
                ))
        return flat

    def line_item_frame(self, flat_items: Sequence[FlatLineItem]) -> pl.DataFrame:
        return pl.DataFrame([asdict(item) for item in flat_items], schema=LINE_ITEM_SCHEMA)

    # ------------------------------------------------------------------
    # Stages 3 and 4
    # ------------------------------------------------------------------

    def compute_totals(
        self,
        done_orders: Sequence[Document],
        flat_items: Sequence[FlatLineItem],
    ) -> ReportTotals:
        revenue = sum(order_revenue(order) for order in done_orders)
        order_count = len(done_orders)
        items_sold = sum(item.quantity for item in flat_items)
        average = revenue / order_count if order_count > 0 else 0.0

        return ReportTotals(
            revenue=revenue,
            order_count=order_count,
            items_sold=items_sold,
            average_order_value=average,
            revenue_label=format_lkr(revenue),
        )

    def daily_trend(self, done_orders: Sequence[Document], date_range: DateRange) -> List[DailyBucket]:
        """Revenue and order count per local calendar day, every day of the range present."""
        buckets: Dict[str, Tuple[float, int]] = {}
        for order in done_orders:
            ms = to_millis(order.get("createdAt"))
            if ms is None:
                continue
            day = day_key(ms)
            revenue, count = buckets.get(day, (0.0, 0))
            buckets[day] = (revenue + order_revenue(order), count + 1)

        trend = []
        for day in date_range.days():
            key = day.isoformat()
            revenue, count = buckets.get(key, (0.0, 0))
            trend.append(DailyBucket(day=key, revenue=revenue, orders=count))
        return trend

    # ------------------------------------------------------------------
    # Stages 5 to 7
    # ------------------------------------------------------------------

    def category_sales(self, frame: pl.DataFrame) -> List[CategoryRevenue]:
        rows = (
            frame.group_by("category", maintain_order=True)
            .agg(pl.col("line_total").sum().alias("revenue"))
            .sort("revenue", descending=True, maintain_order=True)
            .to_dicts()
        )
        return [CategoryRevenue(**row) for row in rows]

    def top_products(self, frame: pl.DataFrame) -> List[ProductSales]:
        rows = (
            frame.group_by("key", maintain_order=True)
            .agg(
                pl.col("name").first(),
                pl.col("category").first(),
                pl.col("quantity").sum(),
                pl.col("line_total").sum().alias("revenue"),
            )
            .sort("revenue", descending=True, maintain_order=True)
            .head(TOP_PRODUCTS_LIMIT)
            .to_dicts()
        )
        return [ProductSales(**row) for row in rows]

    def low_products(self, products: Sequence[Document], frame: pl.DataFrame) -> List[LowPerformer]:
        """
        Slowest movers across the whole catalog, so products that never sold
        in the period are listed too.
        """
        sold = dict(
            frame.group_by("key")
            .agg(pl.col("quantity").sum())
            .iter_rows()
        )

        rows = []
        for product in products:
            product_id = str(product.get("id") or "")
            rows.append(LowPerformer(
                id=product_id,
                name=str(product.get("name") or DEFAULT_NAME),
                category=str(product.get("category") or DEFAULT_CATEGORY),
                stock=safe_num(product.get("stock")),
                qty_sold=sold.get(product_id, 0.0) if product_id else 0.0,
            ))

        rows.sort(key=lambda row: row.qty_sold)
        return rows[:LOW_PRODUCTS_LIMIT]

    # ------------------------------------------------------------------
    # Stages 8 and 9
    # ------------------------------------------------------------------

    def discount_impact(self, done_orders: Sequence[Document]) -> DiscountImpact:
        groups: Dict[str, DiscountRow] = {}
        for order in done_orders:
            label = discount_label(order)
            if not label:
                continue
            row = groups.setdefault(label, DiscountRow(discount=label, orders=0, revenue=0.0))
            row.orders += 1
            row.revenue += order_revenue(order)

        rows = sorted(groups.values(), key=lambda row: row.revenue, reverse=True)
        return DiscountImpact(
            rows=rows,
            discounted_orders=sum(row.orders for row in rows),
            discounted_revenue=sum(row.revenue for row in rows),
        )

    def customer_insights(self, done_orders: Sequence[Document], date_range: DateRange) -> CustomerInsights:
        """Group done orders by customer key; orders without one are left out."""
        groups: Dict[str, CustomerStat] = {}
        for order in done_orders:
            key = customer_key(order)
            if key is None:
                continue

            stat = groups.setdefault(key, CustomerStat(key=key, orders=0, revenue=0.0))
            stat.orders += 1
            stat.revenue += order_revenue(order)

            ms = to_millis(order.get("createdAt"))
            if ms is not None:
                stat.first_seen = ms if stat.first_seen is None else min(stat.first_seen, ms)
                stat.last_seen = ms if stat.last_seen is None else max(stat.last_seen, ms)

        customers = list(groups.values())
        repeat = [stat.key for stat in customers if stat.orders >= 2]
        new = [
            stat for stat in customers
            if stat.first_seen is not None and date_range.contains(stat.first_seen)
        ]
        top = sorted(customers, key=lambda stat: stat.revenue, reverse=True)

        return CustomerInsights(
            total_customers=len(customers),
            new_customers=len(new),
            repeat_customers=len(repeat),
            repeat_customer_keys=repeat,
            top_customers=top[:TOP_CUSTOMERS_LIMIT],
        )


def build_sales_report(
    orders: Sequence[Document],
    products: Sequence[Document],
    date_range: DateRange,
) -> SalesReport:
    """
    Convenience function to build a report.

    Args:
        orders: Order snapshot
        products: Product snapshot
        date_range: Resolved report range

    Returns:
        SalesReport
    """
    return SalesReportAggregator().build(orders, products, date_range)
