"""
Data Cleaning Module

Maps loosely-typed upstream rows (keyed by the sheet's human-readable
column names) into canonical ``Order`` and ``StockItem`` records.

Policy is best-effort coercion: a malformed field takes its documented
default and the row is kept. Nothing in here raises for bad data.
"""

import math
import re
import unicodedata
from datetime import date, datetime, tzinfo
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional
from zoneinfo import ZoneInfo

import structlog

from sales_analytics.config import get_settings
from .labels import NO_SHIPPING
from .records import Order, StockItem

logger = structlog.get_logger(__name__)


class OrderField:
    """Upstream column names for order rows"""
    ORDER_ID = "Order ID"
    DATE = "Fecha"
    TIME = "Hora"
    PRODUCT = "Producto"
    SKU = "SKU"
    ITEM_ID = "Item ID ML"
    QUANTITY = "Cantidad"
    UNIT_PRICE = "Precio Unitario"
    ITEM_TOTAL = "Total Item"
    PLATFORM_FEE = "Comisión Total ML"
    NET_WITHOUT_SHIPPING = "Neto Sin Envío"
    SHIPPING_MODE = "Logistic Mode"
    LOGISTIC_TYPE = "Logistic Type (API)"
    SHIPPING_TYPE = "Tipo Envío (Clasificado)"
    SHIPMENT_ID = "Shipment ID"
    SHIPPING_COST = "Shipping Cost Seller"
    SHIPPING_SUBSIDY = "Bonificación Envío"
    REALIZED_MARGIN = "Margen Real Final"
    PAYMENT_METHOD = "Medio de Pago"
    INSTALLMENTS = "Cuotas"
    ORDER_STATUS = "Estado"
    SHIPMENT_STATUS = "Estado Envío"
    BUYER = "Buyer"
    DELIVERY_REGION = "Departamento Entrega"
    DELIVERY_CITY = "Ciudad Entrega"


class StockField:
    """Upstream column names for stock rows"""
    ITEM_ID = "Item ID ML"
    SKU = "SKU"
    TITLE = "Título"
    AVAILABLE_STOCK = "Stock Disponible"
    PRICE = "Precio"
    STATUS = "Estado"


DATE_FORMATS = [
    "%Y-%m-%d",
    "%d/%m/%Y",
    "%Y/%m/%d",
    "%d-%m-%Y",
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M",
]

_CURRENCY_NOISE = re.compile(r"U\$S|US\$|UYU|[$€£¥\s]")
_LEADING_INT = re.compile(r"^\s*(\d{1,2})")
_WHITESPACE = re.compile(r"\s+")


def fold_text(value: str) -> str:
    """Strip accents, case-fold and collapse whitespace."""
    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WHITESPACE.sub(" ", stripped.casefold()).strip()


def to_text(value: Any) -> str:
    """Coerce to string; absent values become the empty string."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if not math.isfinite(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


def to_number(value: Any, default: float = 0.0) -> float:
    """
    Coerce to a finite float.

    Accepts currency-decorated strings and both decimal separators
    ("1.234,50" and "1,234.50"). Anything else yields ``default``.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else default
    if not isinstance(value, str):
        return default

    text = _CURRENCY_NOISE.sub("", value)
    if not text:
        return default
    if "," in text and "." in text:
        # The separator that appears last is the decimal one
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif "," in text:
        text = text.replace(",", ".")

    try:
        number = float(text)
    except ValueError:
        return default
    return number if math.isfinite(number) else default


def to_count(value: Any, default: int = 1) -> int:
    """Coerce to an integer >= 1 (quantities, installments)."""
    number = to_number(value, float(default))
    count = int(round(number))
    return count if count >= 1 else default


def _as_local(moment: datetime, tz: tzinfo) -> datetime:
    """Convert aware timestamps into the reporting timezone; naive ones are already local."""
    if moment.tzinfo is not None:
        return moment.astimezone(tz)
    return moment


def parse_date(value: Any, tz: tzinfo) -> Optional[date]:
    """Parse a calendar date, or None when the value is unusable."""
    if isinstance(value, datetime):
        return _as_local(value, tz).date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    try:
        return _as_local(datetime.fromisoformat(text.replace("Z", "+00:00")), tz).date()
    except ValueError:
        return None


def parse_hour(value: Any, tz: tzinfo) -> int:
    """
    Extract the hour of day (0-23).

    A full timestamp is tried first, then the leading integer of an
    "HH:MM:SS" string. Anything else is hour 0.
    """
    if isinstance(value, datetime):
        return _as_local(value, tz).hour
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value) if 0 <= value < 24 else 0
    if not isinstance(value, str) or not value.strip():
        return 0

    text = value.strip()
    try:
        return _as_local(datetime.fromisoformat(text.replace("Z", "+00:00")), tz).hour
    except ValueError:
        pass

    match = _LEADING_INT.match(text)
    if match:
        hour = int(match.group(1))
        if hour <= 23:
            return hour
    return 0


def _fold_keys(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Index a row by folded column name so accent/case drift still matches."""
    return {fold_text(str(key)): value for key, value in row.items()}


class DataCleaner:
    """
    Upstream row normalizer.

    Produces exactly one canonical record per input row, in input order.

    Example:
        cleaner = DataCleaner()
        orders = cleaner.clean_orders(raw_rows)
    """

    def __init__(self, timezone: Optional[str] = None):
        self.tz: tzinfo = ZoneInfo(timezone or get_settings().dashboard.timezone)

    def _getter(self, row: Mapping[str, Any]) -> Callable[[str], Any]:
        folded = _fold_keys(row)

        def get(column: str) -> Any:
            if column in row:
                return row[column]
            return folded.get(fold_text(column))

        return get

    def clean_order(self, row: Mapping[str, Any]) -> Order:
        """Normalize a single order row"""
        get = self._getter(row)

        shipping_type = to_text(get(OrderField.SHIPPING_TYPE)) or NO_SHIPPING
        raw_time = get(OrderField.TIME)

        return Order(
            order_id=to_text(get(OrderField.ORDER_ID)),
            date=parse_date(get(OrderField.DATE), self.tz),
            time=to_text(raw_time),
            hour=parse_hour(raw_time, self.tz),
            product=to_text(get(OrderField.PRODUCT)),
            sku=to_text(get(OrderField.SKU)),
            item_id=to_text(get(OrderField.ITEM_ID)),
            quantity=to_count(get(OrderField.QUANTITY)),
            unit_price=to_number(get(OrderField.UNIT_PRICE)),
            item_total=to_number(get(OrderField.ITEM_TOTAL)),
            platform_fee=to_number(get(OrderField.PLATFORM_FEE)),
            net_without_shipping=to_number(get(OrderField.NET_WITHOUT_SHIPPING)),
            shipping_mode=to_text(get(OrderField.SHIPPING_MODE)),
            logistic_type=to_text(get(OrderField.LOGISTIC_TYPE)),
            shipping_type=shipping_type,
            shipment_id=to_text(get(OrderField.SHIPMENT_ID)),
            shipping_cost=to_number(get(OrderField.SHIPPING_COST)),
            shipping_subsidy=to_number(get(OrderField.SHIPPING_SUBSIDY)),
            realized_margin=to_number(get(OrderField.REALIZED_MARGIN)),
            payment_method=to_text(get(OrderField.PAYMENT_METHOD)),
            installments=to_count(get(OrderField.INSTALLMENTS)),
            buyer=to_text(get(OrderField.BUYER)),
            delivery_city=to_text(get(OrderField.DELIVERY_CITY)),
            delivery_region=to_text(get(OrderField.DELIVERY_REGION)),
            order_status=to_text(get(OrderField.ORDER_STATUS)),
            shipment_status=to_text(get(OrderField.SHIPMENT_STATUS)),
        )

    def clean_stock_item(self, row: Mapping[str, Any]) -> StockItem:
        """Normalize a single stock row"""
        get = self._getter(row)
        return StockItem(
            item_id=to_text(get(StockField.ITEM_ID)),
            sku=to_text(get(StockField.SKU)),
            title=to_text(get(StockField.TITLE)),
            available_stock=max(int(to_number(get(StockField.AVAILABLE_STOCK))), 0),
            price=to_number(get(StockField.PRICE)),
            status=to_text(get(StockField.STATUS)),
        )

    def clean_orders(self, rows: Iterable[Mapping[str, Any]]) -> List[Order]:
        """Apply order normalization to a batch"""
        orders = [self.clean_order(row if isinstance(row, Mapping) else {}) for row in rows]
        undated = sum(1 for o in orders if o.date is None)
        if undated:
            logger.warning("Orders with unparseable date", count=undated, total=len(orders))
        logger.debug("Orders normalized", rows=len(orders))
        return orders

    def clean_stock(self, rows: Iterable[Mapping[str, Any]]) -> List[StockItem]:
        """Apply stock normalization to a batch"""
        items = [self.clean_stock_item(row if isinstance(row, Mapping) else {}) for row in rows]
        logger.debug("Stock normalized", rows=len(items))
        return items


def clean_payload(
    order_rows: Iterable[Mapping[str, Any]],
    stock_rows: Iterable[Mapping[str, Any]] = (),
    timezone: Optional[str] = None,
):
    """
    Convenience function to normalize a full upstream payload.

    Returns:
        Tuple of (orders, stock items)
    """
    cleaner = DataCleaner(timezone)
    return cleaner.clean_orders(order_rows), cleaner.clean_stock(stock_rows)
