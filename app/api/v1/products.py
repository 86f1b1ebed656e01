from __future__ import annotations

from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from app.core.config import settings
from app.core.deps import get_catalog_engine, get_result_cache
from app.domains.catalog.services.catalog_query_engine import CatalogQueryEngine
from app.domains.catalog.services.result_cache import ResultCache
from app.domains.catalog.usecases.cache.invalidate_catalog_cache import (
    execute as uc_invalidate_cache,
)
from app.domains.catalog.usecases.products.list_products import (
    execute as uc_q_list_products,
    spec_filters_from_params,
)
from app.schemas.products import CacheInvalidateIn, CacheInvalidateOut, ProductListOut

router = APIRouter(prefix="/products", tags=["products"])

EngineDep = Annotated[CatalogQueryEngine, Depends(get_catalog_engine)]
CacheDep = Annotated[ResultCache, Depends(get_result_cache)]


@router.get(
    "",
    summary="Get Product List",
    response_model=ProductListOut,
)
def list_products(
    request: Request,
    engine: EngineDep,
    page: int = Query(1, ge=1),
    page_size: int = Query(
        settings.CATALOG_DEFAULT_PAGE_SIZE, ge=1, le=settings.CATALOG_MAX_PAGE_SIZE
    ),
    name: str | None = Query(None),
    min_price: Decimal | None = Query(None),
    max_price: Decimal | None = Query(None),
    min_discount: Decimal | None = Query(None),
    max_discount: Decimal | None = Query(None),
    min_rating: float | None = Query(None),
    max_rating: float | None = Query(None),
    min_quantity: int | None = Query(None, ge=0),
    brand: list[str] | None = Query(None),
    id_brand: list[int] | None = Query(None),
    category: list[str] | None = Query(None),
    id_category: list[int] | None = Query(None),
    sort: str | None = Query(
        None, description="newest | price-asc | price-desc | name-asc | name-desc | popularity"
    ),
):
    """
    Lista produtos aprovados com filtros facetados.

    Especificações filtram-se com parâmetros dinâmicos `spec_<Nome>=<valor>`
    (repetir o parâmetro para aceitar vários valores do mesmo nome), ex.:
    `?spec_Color=Black&spec_Color=Red&spec_Storage=256GB`.

    Erros da BD na listagem não dão 5xx: vêm em `error_message` com lista vazia.
    """
    qp = request.query_params
    specs = spec_filters_from_params({k: qp.getlist(k) for k in qp.keys()})

    return uc_q_list_products(
        engine,
        page=page,
        page_size=page_size,
        name=name,
        min_price=min_price,
        max_price=max_price,
        min_discount=min_discount,
        max_discount=max_discount,
        min_rating=min_rating,
        max_rating=max_rating,
        min_quantity=min_quantity,
        brands=brand,
        brand_ids=id_brand,
        categories=category,
        category_ids=id_category,
        specs=specs,
        sort=sort,
    )


@router.post(
    "/cache/invalidate",
    response_model=CacheInvalidateOut,
    summary="Invalidar listagens em cache após escrita no catálogo",
)
def invalidate_cache(cache: CacheDep, payload: CacheInvalidateIn | None = None):
    payload = payload or CacheInvalidateIn()
    return uc_invalidate_cache(
        cache,
        reason=payload.reason,
        prefix=payload.prefix,
        id_category=payload.id_category,
    )
