# app/domains/catalog/usecases/cache/invalidate_catalog_cache.py
# Hook de invalidação chamado pelos mutadores do catálogo

from __future__ import annotations

import logging

from app.domains.catalog.services.result_cache import (
    CATALOG_KEY_PREFIX,
    ResultCache,
    in_category_scope,
)
from app.schemas.products import CacheInvalidateOut

log = logging.getLogger("catalog.usecases.invalidate_cache")


def execute(
    cache: ResultCache,
    *,
    reason: str | None = None,
    prefix: str | None = None,
    id_category: int | None = None,
) -> CacheInvalidateOut:
    """
    Invalida resultados de listagem em cache.

    Deve ser chamado após qualquer escrita bem-sucedida em produto, categoria,
    marca ou mapeamento de especificações; o motor não observa escritas.

    - sem argumentos: remove todas as listagens do catálogo
    - prefix: só as chaves com esse prefixo (ex.: scope_prefix({2, 3}))
    - id_category: só as listagens cujo âmbito de categoria inclui essa categoria
    """
    target = prefix if prefix and prefix.startswith(CATALOG_KEY_PREFIX) else CATALOG_KEY_PREFIX
    predicate = in_category_scope(id_category) if id_category is not None else None
    try:
        removed = cache.invalidate(target, predicate=predicate)
    except Exception as e:
        # cache indisponível: as entradas expiram pelo TTL
        log.error("Catalog cache invalidation failed (reason=%s): %s", reason, e)
        return CacheInvalidateOut(removed=0)

    log.info(
        "Catalog cache invalidated: %d entries (prefix=%s, category=%s, reason=%s)",
        removed,
        target,
        id_category if id_category is not None else "-",
        reason or "-",
    )
    return CacheInvalidateOut(removed=removed)
