"""
Sales Dashboard Analytics

Order and inventory aggregation service for the e-commerce sales dashboard.
"""

__version__ = "1.0.0"
