"""
Test Suite Configuration
"""
from datetime import date
from typing import Any, Callable, Dict, List

import pytest

from sales_analytics.config import Settings
from sales_analytics.transformation import DataCleaner, Order, StockItem, orders_to_frame
from sales_analytics.transformation.inventory import CoverageThresholds
from sales_analytics.transformation.labels import NO_SHIPPING


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(
        app_env="testing",
        debug=True,
    )


@pytest.fixture
def today() -> date:
    """Fixed reference date; no test reads the wall clock"""
    return date(2024, 2, 10)


@pytest.fixture
def cleaner() -> DataCleaner:
    return DataCleaner(timezone="America/Montevideo")


@pytest.fixture
def thresholds() -> CoverageThresholds:
    return CoverageThresholds(window_days=90, alert_days=15, watch_days=30, infinite_days=999)


@pytest.fixture
def raw_order_rows() -> List[Dict[str, Any]]:
    """Three order rows as the feed sends them"""
    return [
        {
            "Order ID": 2000007001,
            "Fecha": "2024-01-05",
            "Hora": "14:30:00",
            "Producto": "Auriculares Bluetooth",
            "SKU": "AUR-001",
            "Item ID ML": "MLU100",
            "Cantidad": 2,
            "Precio Unitario": 500,
            "Total Item": 1000,
            "Comisión Total ML": 100,
            "Neto Sin Envío": 900,
            "Tipo Envío (Clasificado)": "FLEX",
            "Shipping Cost Seller": 50,
            "Bonificación Envío": 0,
            "Margen Real Final": 200,
            "Medio de Pago": "visa",
            "Cuotas": 1,
            "Buyer": "COMPRADOR1",
            "Departamento Entrega": "Montevideo",
            "Ciudad Entrega": "Pocitos",
        },
        {
            "Order ID": "2000007002",
            "Fecha": "2024-01-05",
            "Hora": "09:05:00",
            "Producto": "Cable USB-C",
            "SKU": "CAB-010",
            "Item ID ML": "MLU200",
            "Cantidad": "1",
            "Precio Unitario": "500",
            "Total Item": "500",
            "Comisión Total ML": "50",
            "Neto Sin Envío": "450",
            "Tipo Envío (Clasificado)": "",
            "Shipping Cost Seller": 0,
            "Bonificación Envío": 0,
            "Margen Real Final": "-50",
            "Medio de Pago": "visa",
            "Cuotas": "3",
            "Buyer": "COMPRADOR2",
            "Departamento Entrega": "Canelones",
            "Ciudad Entrega": "Las Piedras",
        },
        {
            "Order ID": "2000007003",
            "Fecha": "2024-02-01",
            "Hora": "2024-02-01T21:15:00",
            "Producto": "Auriculares Bluetooth",
            "SKU": "AUR-001",
            "Item ID ML": "MLU100",
            "Cantidad": 1,
            "Precio Unitario": 2000,
            "Total Item": 2000,
            "Comisión Total ML": 200,
            "Neto Sin Envío": 1800,
            "Tipo Envío (Clasificado)": "FULL",
            "Shipping Cost Seller": 100,
            "Bonificación Envío": 20,
            "Margen Real Final": 400,
            "Medio de Pago": "account_money",
            "Cuotas": 1,
            "Buyer": "COMPRADOR3",
            "Departamento Entrega": "montevideo",
            "Ciudad Entrega": "POCITOS NUEVO",
        },
    ]


@pytest.fixture
def raw_stock_rows() -> List[Dict[str, Any]]:
    """Stock sheet rows as the feed sends them"""
    return [
        {"Item ID ML": "MLU100", "SKU": "AUR-001", "Título": "Auriculares Bluetooth",
         "Stock Disponible": 6, "Precio": 1500, "Estado": "active"},
        {"Item ID ML": "MLU300", "SKU": "", "Título": "Soporte Notebook",
         "Stock Disponible": 50, "Precio": 800, "Estado": "active"},
        {"Item ID ML": "MLU400", "SKU": "FUN-002", "Título": "Funda Celular",
         "Stock Disponible": 0, "Precio": 300, "Estado": "paused"},
    ]


@pytest.fixture
def sample_orders(cleaner, raw_order_rows) -> List[Order]:
    return cleaner.clean_orders(raw_order_rows)


@pytest.fixture
def sample_stock(cleaner, raw_stock_rows) -> List[StockItem]:
    return cleaner.clean_stock(raw_stock_rows)


@pytest.fixture
def orders_frame(sample_orders):
    return orders_to_frame(sample_orders)


@pytest.fixture
def make_order() -> Callable[..., Order]:
    """Factory for canonical orders with neutral defaults"""
    def _make(**overrides) -> Order:
        fields = dict(
            order_id="1",
            date=date(2024, 1, 1),
            time="12:00:00",
            hour=12,
            product="Producto",
            sku="SKU-1",
            item_id="MLU1",
            quantity=1,
            unit_price=100.0,
            item_total=100.0,
            platform_fee=10.0,
            net_without_shipping=90.0,
            shipping_mode="",
            logistic_type="",
            shipping_type=NO_SHIPPING,
            shipment_id="",
            shipping_cost=0.0,
            shipping_subsidy=0.0,
            realized_margin=20.0,
            payment_method="visa",
            installments=1,
            buyer="",
            delivery_city="",
            delivery_region="",
            order_status="paid",
            shipment_status="",
        )
        fields.update(overrides)
        return Order(**fields)

    return _make
