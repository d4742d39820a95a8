"""
Geographic Normalization

Maps free-text delivery locations onto canonical administrative names:
Uruguay's departments, and Montevideo's neighbourhoods (barrios) for the
capital's deliveries.

Matching folds accents, case and whitespace before a dictionary lookup.
Neighbourhoods additionally fall back to substring containment in either
direction. Anything still unmatched passes through unchanged and shows up
as its own category.
"""

import re
from typing import Dict, List, Optional

import polars as pl

from .aggregators import category_breakdown
from .cleaners import fold_text
from .views import CategoryCount

CAPITAL = "Montevideo"

DEPARTMENTS = [
    "Artigas", "Canelones", "Cerro Largo", "Colonia", "Durazno", "Flores",
    "Florida", "Lavalleja", "Maldonado", "Montevideo", "Paysandú", "Río Negro",
    "Rivera", "Rocha", "Salto", "San José", "Soriano", "Tacuarembó",
    "Treinta y Tres",
]

NEIGHBORHOODS = [
    "Abayubá", "Aguada", "Aires Puros", "Atahualpa", "Bañados de Carrasco",
    "Barrio Sur", "Bella Italia", "Bella Vista", "Belvedere", "Brazo Oriental",
    "Buceo", "Capurro", "Carrasco", "Carrasco Norte", "Casabó", "Casavalle",
    "Castro", "Centro", "Cerrito", "Cerro", "Ciudad Vieja", "Colón Centro y Noroeste",
    "Colón Sureste", "Conciliación", "Cordón", "Flor de Maroñas", "Ituzaingó",
    "Jacinto Vera", "Jardines del Hipódromo", "La Blanqueada", "La Comercial",
    "La Figurita", "La Paloma", "La Teja", "Larrañaga", "Las Acacias",
    "Las Canteras", "Lezica", "Malvín", "Malvín Norte", "Manga", "Maroñas",
    "Melilla", "Mercado Modelo", "Nuevo París", "Pajas Blancas", "Palermo",
    "Parque Batlle", "Parque Guaraní", "Parque Rodó", "Paso de la Arena",
    "Paso de las Duranas", "Peñarol", "Piedras Blancas", "Pocitos", "Prado",
    "Punta Carretas", "Punta Gorda", "Punta de Rieles", "Reducto", "Sayago",
    "Toledo Chico", "Tres Cruces", "Tres Ombúes", "Unión", "Villa Dolores",
    "Villa Española", "Villa García", "Villa Muñoz", "Villa del Cerro",
]

_NON_ALNUM = re.compile(r"[^a-z0-9 ]")


def normalize_place(raw: str) -> str:
    """Fold a place name for comparison: no accents, lower case, alphanumerics only."""
    return fold_text(_NON_ALNUM.sub(" ", fold_text(raw)))


_DEPARTMENT_INDEX: Dict[str, str] = {normalize_place(name): name for name in DEPARTMENTS}
_NEIGHBORHOOD_INDEX: Dict[str, str] = {normalize_place(name): name for name in NEIGHBORHOODS}


def canonical_region(raw: str) -> str:
    """Canonical department name, or the input unchanged when unknown"""
    if not raw:
        return ""
    return _DEPARTMENT_INDEX.get(normalize_place(raw), raw)


def match_neighborhood(raw: str) -> Optional[str]:
    """
    Find the canonical barrio for a free-text city/neighbourhood.

    Exact folded match first, then containment either way; first hit in
    canonical order wins.
    """
    needle = normalize_place(raw) if raw else ""
    if not needle:
        return None
    if needle in _NEIGHBORHOOD_INDEX:
        return _NEIGHBORHOOD_INDEX[needle]
    for key, name in _NEIGHBORHOOD_INDEX.items():
        if key in needle or needle in key:
            return name
    return None


def canonical_neighborhood(raw: str) -> str:
    """Canonical barrio name, or the input unchanged when nothing matches"""
    return match_neighborhood(raw) or raw


def is_capital(raw_region: str) -> bool:
    return normalize_place(CAPITAL) in normalize_place(raw_region or "")


def _lookup(values: List[str], resolve) -> Dict[str, str]:
    return {value: resolve(value) for value in values if value is not None}


def region_breakdown(frame: pl.DataFrame) -> List[CategoryCount]:
    """Orders and revenue per canonical department; orders without a region are skipped"""
    located = frame.filter(pl.col("delivery_region") != "")
    if located.is_empty():
        return []
    mapping = _lookup(located["delivery_region"].unique().to_list(), canonical_region)
    breakdown = category_breakdown(located, pl.col("delivery_region").replace(mapping))
    return [CategoryCount(**row) for row in breakdown.iter_rows(named=True)]


def neighborhood_breakdown(frame: pl.DataFrame) -> List[CategoryCount]:
    """Orders and revenue per Montevideo barrio, for capital deliveries with a city"""
    regions = frame["delivery_region"].unique().to_list()
    capital_regions = [r for r in regions if r and is_capital(r)]
    located = frame.filter(
        pl.col("delivery_region").is_in(capital_regions) & (pl.col("delivery_city") != "")
    )
    if located.is_empty():
        return []
    mapping = _lookup(located["delivery_city"].unique().to_list(), canonical_neighborhood)
    breakdown = category_breakdown(located, pl.col("delivery_city").replace(mapping))
    return [CategoryCount(**row) for row in breakdown.iter_rows(named=True)]
