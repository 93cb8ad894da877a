"""
API Routes Module
"""
from .health import router as health_router
from .auth import router as auth_router
from .products import router as products_router
from .orders import router as orders_router
from .banners import router as banners_router
from .dashboard import router as dashboard_router
from .reports import router as reports_router

__all__ = [
    "health_router",
    "auth_router",
    "products_router",
    "orders_router",
    "banners_router",
    "dashboard_router",
    "reports_router",
]
