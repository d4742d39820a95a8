"""
API Routes Module
"""
from .health import router as health_router
from .dashboard import router as dashboard_router
from .stock import router as stock_router
from .orders import router as orders_router

__all__ = [
    "health_router",
    "dashboard_router",
    "stock_router",
    "orders_router",
]
