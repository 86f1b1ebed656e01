# app/domains/catalog/usecases/products/list_products.py
# Lista produtos do catálogo com filtros facetados, paginação e facets

from __future__ import annotations

import logging
from collections.abc import Mapping
from decimal import Decimal

from pydantic import ValidationError

from app.core.errors import InvalidArgument
from app.domains.catalog.services.catalog_query_engine import CatalogQueryEngine
from app.schemas.products import ProductFilterIn, ProductListOut

log = logging.getLogger("catalog.usecases.list_products")

SPEC_PARAM_PREFIX = "spec_"


def spec_filters_from_params(params: Mapping[str, list[str]]) -> dict[str, list[str]]:
    """
    Extrai filtros de especificação dos parâmetros `spec_<Nome>=<valor>`
    (repetíveis). Os nomes são dinâmicos: não há lista fechada de especificações.
    """
    specs: dict[str, list[str]] = {}
    for key, values in params.items():
        if not key.startswith(SPEC_PARAM_PREFIX):
            continue
        name = key[len(SPEC_PARAM_PREFIX) :].strip()
        if not name:
            continue
        specs.setdefault(name, []).extend(values)
    return specs


def execute(
    engine: CatalogQueryEngine,
    *,
    page: int = 1,
    page_size: int | None = None,
    name: str | None = None,
    min_price: Decimal | None = None,
    max_price: Decimal | None = None,
    min_discount: Decimal | None = None,
    max_discount: Decimal | None = None,
    min_rating: float | None = None,
    max_rating: float | None = None,
    min_quantity: int | None = None,
    brands: list[str] | None = None,
    brand_ids: list[int] | None = None,
    categories: list[str] | None = None,
    category_ids: list[int] | None = None,
    specs: dict[str, list[str]] | None = None,
    sort: str | None = None,
) -> ProductListOut:
    """
    Lista produtos do catálogo.
    Suporta pesquisa por nome, intervalos de preço/desconto/rating, stock mínimo,
    marca, categoria (com sub-categorias) e especificações dinâmicas.
    """
    payload = {
        "page": page,
        "name": name,
        "min_price": min_price,
        "max_price": max_price,
        "min_discount": min_discount,
        "max_discount": max_discount,
        "min_rating": min_rating,
        "max_rating": max_rating,
        "min_quantity": min_quantity,
        "brands": brands or [],
        "brand_ids": brand_ids or [],
        "categories": categories or [],
        "category_ids": category_ids or [],
        "specs": specs or {},
        "sort": sort,
    }
    if page_size is not None:
        payload["page_size"] = page_size

    try:
        filters = ProductFilterIn(**payload)
    except ValidationError as e:
        raise InvalidArgument(f"Invalid catalog filter: {e.errors()[0].get('msg')}") from e

    result = engine.list_products(filters)

    if result.error_message:
        log.warning("list_products degraded: %s", result.error_message)
    else:
        log.info(
            "list_products: %d/%d items (page=%d, sort=%s)",
            len(result.items),
            result.total_items,
            filters.page,
            filters.sort or "newest",
        )
    return result
