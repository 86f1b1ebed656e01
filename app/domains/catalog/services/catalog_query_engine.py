# app/domains/catalog/services/catalog_query_engine.py
"""
Motor de listagem facetada do catálogo.

Fluxo de um pedido:
    1) intervalo inválido (min > max) -> resultado vazio, sem tocar na BD
    2) resolver categorias (fecho de descendentes ativos)
    3) construir predicados + ordenação
    4) cache por assinatura do filtro resolvido
    5) em miss: listagem, COUNT e cada dimensão de facets em paralelo, cada um
       com a sua sessão e limite de tempo
    6) juntar, e só guardar em cache resultados completos

Pools:
    - principal (categorias + listagem) e secundária (COUNT + facets) separadas,
      para que facets lentos de outros pedidos nunca ocupem os workers da listagem
    - o limite de cada query conta a partir do momento em que começa a correr;
      o tempo em fila tem um limite próprio do mesmo valor

Degradação:
    - falha/timeout nas categorias ou na listagem -> error_message, items vazios,
      contagens a 0
    - falha no COUNT -> total_items = limite inferior conhecido
    - falha num facet -> essa dimensão vem vazia
    - falha da cache -> tratada como miss
"""

from __future__ import annotations

import contextvars
import logging
import math
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.logging import log_timing
from app.domains.catalog.services import facets as facet_service
from app.domains.catalog.services.filter_conditions import FilterConditions, build_conditions
from app.domains.catalog.services.mappers import map_listing_row
from app.domains.catalog.services.result_cache import (
    NullResultCache,
    ResultCache,
    build_signature,
)
from app.domains.catalog.services.sort_policy import SortKey, parse_sort
from app.repositories.catalog.read.category_read_repo import CategoryReadRepository
from app.repositories.catalog.read.products_read_repo import ProductsReadRepository
from app.schemas.products import (
    FacetSetOut,
    ProductFilterIn,
    ProductListingOut,
    ProductListOut,
)

log = logging.getLogger("catalog.engine")

LIST_ERROR_MESSAGE = "Failed to load products"


class _Task:
    """Future + instante em que começou a correr (o limite conta a partir daí)."""

    def __init__(self, queue_deadline: float):
        self.queue_deadline = queue_deadline
        self.started = threading.Event()
        self.started_at = 0.0
        self.future: Future | None = None


class CatalogQueryEngine:
    """
    Ponto de entrada único: list_products(filters) -> ProductListOut.

    Nunca deixa escapar exceções da BD: erros na query principal vêm em
    `error_message`. Partilhado entre pedidos (a cache é o único estado mutável).
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        cache: ResultCache | None = None,
        *,
        query_timeout_s: float | None = None,
        max_workers: int | None = None,
        list_workers: int | None = None,
        cache_ttl_s: int | None = None,
        cache_ttl_category_s: int | None = None,
    ):
        self._session_factory = session_factory
        self.cache: ResultCache = cache if cache is not None else NullResultCache()
        self.query_timeout_s = (
            query_timeout_s if query_timeout_s is not None else settings.CATALOG_QUERY_TIMEOUT_S
        )
        self.cache_ttl_s = cache_ttl_s if cache_ttl_s is not None else settings.CATALOG_CACHE_TTL_S
        self.cache_ttl_category_s = (
            cache_ttl_category_s
            if cache_ttl_category_s is not None
            else settings.CATALOG_CACHE_TTL_CATEGORY_S
        )
        # categorias + listagem
        self._list_pool = ThreadPoolExecutor(
            max_workers=list_workers or settings.CATALOG_LIST_WORKERS,
            thread_name_prefix="catalog-list",
        )
        # COUNT + facets
        self._aux_pool = ThreadPoolExecutor(
            max_workers=max_workers or settings.CATALOG_QUERY_WORKERS,
            thread_name_prefix="catalog-q",
        )

    def close(self) -> None:
        self._list_pool.shutdown(wait=False, cancel_futures=True)
        self._aux_pool.shutdown(wait=False, cancel_futures=True)

    # Helpers internos --------------------------------------------

    def _submit(self, pool: ThreadPoolExecutor, fn: Callable[[Session], Any]) -> _Task:
        """Corre `fn(db)` numa thread com sessão própria (mantém o request-id nos logs)."""
        ctx = contextvars.copy_context()
        task = _Task(queue_deadline=time.monotonic() + self.query_timeout_s)

        def _run():
            task.started_at = time.monotonic()
            task.started.set()
            with self._session_factory() as db:
                return fn(db)

        task.future = pool.submit(ctx.run, _run)
        return task

    def _wait(self, name: str, task: _Task) -> tuple[bool, Any]:
        """
        (ok, resultado). Espera que a task arranque (até ao limite de fila) e
        depois até `query_timeout_s` desde o arranque. Timeout/erro -> (False, None)
        e cancela se ainda estiver na fila.
        """
        try:
            if not task.started.wait(max(0.0, task.queue_deadline - time.monotonic())):
                raise FutureTimeout()
            remaining = task.started_at + self.query_timeout_s - time.monotonic()
            return True, task.future.result(timeout=max(0.0, remaining))
        except FutureTimeout:
            task.future.cancel()
            log.warning("Catalog query '%s' timed out after %.1fs", name, self.query_timeout_s)
        except Exception as e:
            log.error("Catalog query '%s' failed: %s", name, e)
        return False, None

    def _cache_get(self, key: str) -> dict[str, Any] | None:
        try:
            return self.cache.get(key)
        except Exception as e:
            log.warning("Cache get failed (treated as miss): %s", e)
            return None

    def _cache_put(self, key: str, payload: dict[str, Any], ttl: int) -> None:
        try:
            self.cache.put(key, payload, ttl)
        except Exception as e:
            log.warning("Cache put failed (ignored): %s", e)

    def _ttl_for(self, filters: ProductFilterIn) -> int:
        if filters.has_category_selection():
            return self.cache_ttl_category_s
        return self.cache_ttl_s

    def resolve_categories(self, filters: ProductFilterIn) -> tuple[bool, set[int] | None]:
        """
        (ok, ids). ids é None quando não há seleção de categoria (o filtro é
        omitido). Corre na pool principal com o mesmo limite das outras queries.
        """
        if not filters.has_category_selection():
            return True, None
        task = self._submit(
            self._list_pool,
            lambda db: CategoryReadRepository(db).resolve_closure(
                names=filters.categories, ids=filters.category_ids
            ),
        )
        return self._wait("categories", task)

    # API ---------------------------------------------------------

    def list_products(self, filters: ProductFilterIn) -> ProductListOut:
        sort_key = parse_sort(filters.sort)

        if filters.has_invalid_range():
            log.info("Catalog listing: invalid range in filter, returning empty result")
            return _empty_result(filters)

        try:
            with log_timing("catalog.resolve_categories", log):
                ok, category_ids = self.resolve_categories(filters)
        except Exception as e:
            log.error("Catalog listing: category resolution failed: %s", e)
            ok = False
        if not ok:
            return _empty_result(filters, error_message=LIST_ERROR_MESSAGE)

        conditions = build_conditions(filters, category_ids)
        key = build_signature(filters, category_ids, sort_key.value)

        cached = self._cache_get(key)
        if cached is not None:
            log.debug("Catalog listing: cache hit %s", key)
            return ProductListOut.model_validate(cached)

        try:
            with log_timing("catalog.list_products", log, page=filters.page, sort=sort_key.value):
                result, complete = self._run_queries(filters, conditions, sort_key)
        except Exception:
            log.exception("Catalog listing: unexpected failure")
            return _empty_result(filters, error_message=LIST_ERROR_MESSAGE)

        if complete:
            self._cache_put(key, result.model_dump(mode="json"), self._ttl_for(filters))
        return result

    def _run_queries(
        self,
        filters: ProductFilterIn,
        conditions: FilterConditions,
        sort_key: SortKey,
    ) -> tuple[ProductListOut, bool]:
        rows_t = self._submit(
            self._list_pool,
            lambda db: ProductsReadRepository(db).list_products(
                conditions, sort=sort_key, page=filters.page, page_size=filters.page_size
            ),
        )
        count_t = self._submit(
            self._aux_pool, lambda db: ProductsReadRepository(db).count_products(conditions)
        )
        facet_ts = {
            dim: self._submit(
                self._aux_pool,
                lambda db, dim=dim: facet_service.aggregate(
                    ProductsReadRepository(db), conditions, dim
                ),
            )
            for dim in facet_service.FACET_DIMENSIONS
        }

        ok, rows = self._wait("list", rows_t)
        if not ok:
            count_t.future.cancel()
            for t in facet_ts.values():
                t.future.cancel()
            return _empty_result(filters, error_message=LIST_ERROR_MESSAGE), False

        items: list[ProductListingOut] = [map_listing_row(r) for r in rows]
        complete = True

        ok, total = self._wait("count", count_t)
        if not ok:
            complete = False
            total = filters.offset + len(items) if items else 0

        facets = FacetSetOut()
        for dim, task in facet_ts.items():
            ok, value = self._wait(f"facets.{dim}", task)
            if not ok:
                complete = False
                continue
            if dim == facet_service.FACET_PRICE:
                facets.min_price, facets.max_price = value
            else:
                setattr(facets, dim, value)

        return (
            ProductListOut(
                items=items,
                total_items=int(total),
                total_pages=_total_pages(int(total), filters.page_size),
                page=filters.page,
                page_size=filters.page_size,
                facets=facets,
            ),
            complete,
        )


def _total_pages(total: int, page_size: int) -> int:
    if total <= 0:
        return 0
    return math.ceil(total / page_size)


def _empty_result(filters: ProductFilterIn, error_message: str | None = None) -> ProductListOut:
    return ProductListOut(
        items=[],
        total_items=0,
        total_pages=0,
        page=filters.page,
        page_size=filters.page_size,
        facets=FacetSetOut(min_price=Decimal("0"), max_price=Decimal("0")),
        error_message=error_message,
    )
