"""
Sales Report Models

Pydantic models describing the derived sales report. The report is never
persisted; these models are the response shape of the report endpoint.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class ReportRange(BaseModel):
    """Resolved report interval"""
    from_ms: int
    to_ms: int
    days: int


class StatusCounts(BaseModel):
    """Orders in period by normalized status"""
    done: int = 0
    pending: int = 0
    cancelled: int = 0
    unknown: int = 0


class ReportTotals(BaseModel):
    """Headline figures over done orders"""
    revenue: float = 0.0
    order_count: int = 0
    items_sold: float = 0.0
    average_order_value: float = 0.0
    revenue_label: str = "Rs. 0"


class DailyBucket(BaseModel):
    """One calendar day of the revenue trend"""
    day: str
    revenue: float = 0.0
    orders: int = 0


class CategoryRevenue(BaseModel):
    """Revenue by product category"""
    category: str
    revenue: float


class ProductSales(BaseModel):
    """Sold quantity and revenue of one product"""
    key: str
    name: str
    category: str
    quantity: float
    revenue: float


class LowPerformer(BaseModel):
    """Catalog product with its in-period sold quantity"""
    id: str
    name: str
    category: str
    stock: float
    qty_sold: float


class DiscountRow(BaseModel):
    """Done orders carrying one discount label"""
    discount: str
    orders: int
    revenue: float


class DiscountImpact(BaseModel):
    """Discount rollup"""
    rows: List[DiscountRow] = Field(default_factory=list)
    discounted_orders: int = 0
    discounted_revenue: float = 0.0


class CustomerStat(BaseModel):
    """Per-customer rollup"""
    key: str
    orders: int
    revenue: float
    first_seen: Optional[int] = None
    last_seen: Optional[int] = None


class CustomerInsights(BaseModel):
    """Customer segmentation over done orders"""
    total_customers: int = 0
    new_customers: int = 0
    repeat_customers: int = 0
    repeat_customer_keys: List[str] = Field(default_factory=list)
    top_customers: List[CustomerStat] = Field(default_factory=list)


class SalesReport(BaseModel):
    """Complete sales report for one range"""
    range: ReportRange
    status_counts: StatusCounts
    totals: ReportTotals
    daily_trend: List[DailyBucket]
    category_sales: List[CategoryRevenue]
    top_products: List[ProductSales]
    low_products: List[LowPerformer]
    discounts: DiscountImpact
    customers: CustomerInsights
