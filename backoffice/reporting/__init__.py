"""
Reporting Module

Sales analytics derived from the order and product snapshots.
"""
from .aggregator import SalesReportAggregator, build_sales_report, order_revenue
from .primitives import OrderStatus, format_lkr, normalize_status, safe_num, to_millis
from .ranges import DateRange, InvalidRangeError, RangePreset, resolve_range
from .schemas import SalesReport

__all__ = [
    "SalesReportAggregator",
    "build_sales_report",
    "order_revenue",
    "OrderStatus",
    "format_lkr",
    "normalize_status",
    "safe_num",
    "to_millis",
    "DateRange",
    "InvalidRangeError",
    "RangePreset",
    "resolve_range",
    "SalesReport",
]
