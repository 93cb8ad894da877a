"""
Services Module

Write paths for products, orders and banners.
"""
from .banners import BannerInput, BannerService, MissingImageError
from .catalog import CatalogService, ProductCategory, ProductInput, filter_products
from .images import ImageManager, ImageUpload
from .orders import (
    OrderInput,
    OrderService,
    OrderTab,
    OrderUpdate,
    count_orders,
    filter_orders,
)

__all__ = [
    "BannerInput",
    "BannerService",
    "MissingImageError",
    "CatalogService",
    "ProductCategory",
    "ProductInput",
    "filter_products",
    "ImageManager",
    "ImageUpload",
    "OrderInput",
    "OrderService",
    "OrderTab",
    "OrderUpdate",
    "count_orders",
    "filter_orders",
]
