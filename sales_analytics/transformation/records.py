"""
Canonical Records

Fixed-shape order and stock records produced by the cleaners, and their
columnar (Polars) form used by the aggregators.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

import polars as pl

# Empty SKUs are keyed by this many leading characters of the product name
SKU_FALLBACK_LENGTH = 20


@dataclass(frozen=True)
class Order:
    """One sold line item with its full financial breakdown"""
    order_id: str
    date: Optional[date]  # None when the source date is unparseable
    time: str
    hour: int
    product: str
    sku: str
    item_id: str
    quantity: int
    unit_price: float
    item_total: float
    platform_fee: float
    net_without_shipping: float
    shipping_mode: str
    logistic_type: str
    shipping_type: str
    shipment_id: str
    shipping_cost: float
    shipping_subsidy: float
    realized_margin: float
    payment_method: str
    installments: int
    buyer: str
    delivery_city: str
    delivery_region: str
    order_status: str
    shipment_status: str

    @property
    def sku_key(self) -> str:
        """SKU, or a product-derived key so unlisted products stay distinct"""
        return self.sku or self.product[:SKU_FALLBACK_LENGTH]

    @property
    def net_shipping_cost(self) -> float:
        """Shipping cost net of the subsidy rebate; negative is a net credit"""
        return self.shipping_cost - self.shipping_subsidy


@dataclass(frozen=True)
class StockItem:
    """Inventory snapshot row"""
    item_id: str
    sku: str
    title: str
    available_stock: int
    price: float
    status: str


ORDER_SCHEMA = {
    "order_id": pl.Utf8,
    "date": pl.Date,
    "hour": pl.Int64,
    "product": pl.Utf8,
    "sku": pl.Utf8,
    "sku_key": pl.Utf8,
    "item_id": pl.Utf8,
    "quantity": pl.Int64,
    "unit_price": pl.Float64,
    "item_total": pl.Float64,
    "platform_fee": pl.Float64,
    "net_without_shipping": pl.Float64,
    "shipping_type": pl.Utf8,
    "shipping_cost": pl.Float64,
    "shipping_subsidy": pl.Float64,
    "net_shipping_cost": pl.Float64,
    "realized_margin": pl.Float64,
    "payment_method": pl.Utf8,
    "installments": pl.Int64,
    "buyer": pl.Utf8,
    "delivery_city": pl.Utf8,
    "delivery_region": pl.Utf8,
}


def orders_to_frame(orders: Sequence[Order]) -> pl.DataFrame:
    """
    Build the columnar view of a batch of orders.

    Row order follows the input so that grouping with ``maintain_order``
    preserves encounter order for tie-breaking.
    """
    # sku_key and net_shipping_cost are derived properties
    columns = {name: [getattr(o, name) for o in orders] for name in ORDER_SCHEMA}
    frame = pl.DataFrame(columns, schema=ORDER_SCHEMA)
    return frame.with_columns(
        pl.col("date").dt.strftime("%Y-%m").alias("month"),
        pl.col("date").dt.year().alias("year"),
    )
