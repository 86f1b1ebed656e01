# app/domains/catalog/services/sort_policy.py
"""
Ordenações suportadas na listagem do catálogo.

Cada chave dá um ORDER BY determinístico; products.id entra sempre como
desempate, para a paginação ser estável entre páginas.
"""

from __future__ import annotations

from enum import Enum

from sqlalchemy import func

from app.models.product import Product
from app.models.product_review import RATING


class SortKey(str, Enum):
    NEWEST = "newest"
    PRICE_ASC = "price-asc"
    PRICE_DESC = "price-desc"
    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"
    POPULARITY = "popularity"


DEFAULT_SORT = SortKey.NEWEST

# nomes antigos ainda usados por alguns clientes
_ALIASES = {
    "recent": SortKey.NEWEST,
    "cheapest": SortKey.PRICE_ASC,
    "name": SortKey.NAME_ASC,
    "rating": SortKey.POPULARITY,
}


def parse_sort(value: str | SortKey | None) -> SortKey:
    """Chave desconhecida ou ausente -> newest."""
    if isinstance(value, SortKey):
        return value
    if not value:
        return DEFAULT_SORT
    norm = value.strip().lower().replace("_", "-")
    try:
        return SortKey(norm)
    except ValueError:
        return _ALIASES.get(norm, DEFAULT_SORT)


def order_by_for(key: SortKey) -> list:
    if key is SortKey.PRICE_ASC:
        return [Product.price.asc(), Product.id.asc()]
    if key is SortKey.PRICE_DESC:
        return [Product.price.desc(), Product.id.desc()]
    if key is SortKey.NAME_ASC:
        return [func.lower(Product.name).asc(), Product.id.asc()]
    if key is SortKey.NAME_DESC:
        return [func.lower(Product.name).desc(), Product.id.desc()]
    if key is SortKey.POPULARITY:
        return [RATING.desc(), Product.id.desc()]
    # newest
    return [Product.created_at.desc(), Product.id.desc()]
