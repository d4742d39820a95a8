"""
Display vocabulary for the dashboard views.

Shipping categories arrive already classified by the order sheet, so their
names stay in the sheet's language. Labels generated here (cash payments,
installments, the folded long tail) follow the configured locale.
"""

from typing import Dict

# Sheet vocabulary
NO_SHIPPING = "SIN ENVÍO"
DEFAULT_SHIPPING_COLOR = "#555577"

SHIPPING_COLORS: Dict[str, str] = {
    "FULL": "#FFE500",
    "FLEX": "#FF6B35",
    "MERCADO ENVIOS": "#88AAFF",
    "ENVIO POR FUERA": "#AA88FF",
    "RETIRO": "#44DDAA",
    NO_SHIPPING: "#555577",
    "OTRO TIPO": "#888899",
}

PAYMENT_LABELS: Dict[str, Dict[str, str]] = {
    "es": {
        "account_money": "Cuenta ML",
        "visa": "Visa",
        "master": "Mastercard",
        "oca": "OCA",
        "debvisa": "Débito Visa",
        "debmaster": "Débito Master",
        "abitab": "Abitab",
        "redpagos": "Redpagos",
        "amex": "Amex",
    },
    "en": {
        "account_money": "ML Account",
        "visa": "Visa",
        "master": "Mastercard",
        "oca": "OCA",
        "debvisa": "Visa Debit",
        "debmaster": "Master Debit",
        "abitab": "Abitab",
        "redpagos": "Redpagos",
        "amex": "Amex",
    },
}

LABELS: Dict[str, Dict[str, str]] = {
    "es": {
        "cash": "Contado",
        "installments": "{n} cuotas",
        "other": "Otros",
        "untitled": "Sin título",
        "gross_revenue": "Ingresos brutos",
        "fees": "Comisiones ML",
        "shipping_cost": "Costo envío",
        "shipping_subsidy": "Bonif. envío",
        "margin": "Margen real",
    },
    "en": {
        "cash": "Cash",
        "installments": "{n} installments",
        "other": "Other",
        "untitled": "Untitled",
        "gross_revenue": "Gross revenue",
        "fees": "Platform fees",
        "shipping_cost": "Shipping cost",
        "shipping_subsidy": "Shipping subsidy",
        "margin": "Net margin",
    },
}


def label(key: str, locale: str = "en", **kwargs) -> str:
    """Look up a display label, falling back to English."""
    template = LABELS.get(locale, LABELS["en"]).get(key, LABELS["en"][key])
    return template.format(**kwargs) if kwargs else template


def payment_label(code: str, locale: str = "en") -> str:
    """Map a raw payment code to its display label; unknown codes pass through."""
    return PAYMENT_LABELS.get(locale, PAYMENT_LABELS["en"]).get(code, code)


def installments_label(installments: int, locale: str = "en") -> str:
    if installments == 1:
        return label("cash", locale)
    return label("installments", locale, n=installments)


def shipping_color(shipping_type: str) -> str:
    return SHIPPING_COLORS.get(shipping_type, DEFAULT_SHIPPING_COLOR)
