"""
Data Transformation Module
"""
from .cleaners import DataCleaner, clean_payload
from .clock import Clock, FixedClock, SystemClock
from .inventory import CoverageThresholds, StockCoverageCalculator
from .listing import OrderSort, list_orders
from .records import Order, StockItem, orders_to_frame
from .transformers import DashboardTransformer

__all__ = [
    "DataCleaner",
    "clean_payload",
    "Clock",
    "FixedClock",
    "SystemClock",
    "CoverageThresholds",
    "StockCoverageCalculator",
    "OrderSort",
    "list_orders",
    "Order",
    "StockItem",
    "orders_to_frame",
    "DashboardTransformer",
]
