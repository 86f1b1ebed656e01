# app/domains/catalog/services/result_cache.py
"""
Cache de resultados da listagem do catálogo.

Uso:
    cache = build_result_cache()
    key = build_signature(filters, category_ids, sort_key)

    payload = cache.get(key)
    ...
    cache.put(key, payload, ttl=36000)

    # Após escrita em produto/categoria/marca/especificação:
    cache.invalidate(CATALOG_KEY_PREFIX)

    # Só as listagens cujo âmbito de categoria inclui a categoria 3:
    cache.invalidate(CATALOG_KEY_PREFIX, predicate=in_category_scope(3))

Formato da chave (segmentos legíveis antes do hash, para invalidar por âmbito):
    catalog:products:cat=<ids do fecho|all|none>:brand=<ids e nomes|all>:<sha1>

Os valores são dicts JSON-compatíveis (ProductListOut.model_dump(mode="json")),
por isso os backends em memória e Redis devolvem exatamente o mesmo conteúdo.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Iterable
from decimal import Decimal
from typing import Any, Protocol
from urllib.parse import quote

from app.core.config import settings
from app.schemas.products import ProductFilterIn

log = logging.getLogger("catalog.cache")

CATALOG_KEY_PREFIX = "catalog:products:"

SCOPE_ALL = "all"
SCOPE_NONE = "none"

KeyPredicate = Callable[[str], bool]


class ResultCache(Protocol):
    def get(self, key: str) -> dict[str, Any] | None: ...

    def put(self, key: str, value: dict[str, Any], ttl: int) -> None: ...

    def invalidate(
        self, prefix: str | None = None, predicate: KeyPredicate | None = None
    ) -> int: ...


# Assinatura --------------------------------------------------


def _dec(v: Decimal | float | None) -> str | None:
    if v is None:
        return None
    d = Decimal(str(v)).normalize()
    return format(d, "f")


def _category_segment(category_ids: Iterable[int] | None) -> str:
    """None = sem seleção de categoria; conjunto vazio = seleção que não resolveu nada."""
    if category_ids is None:
        return SCOPE_ALL
    ids = sorted({int(i) for i in category_ids})
    return ",".join(str(i) for i in ids) if ids else SCOPE_NONE


def _brand_segment(filters: ProductFilterIn) -> str:
    # nomes codificados: ":" "," e os caracteres de glob do Redis nunca aparecem crus
    parts = [str(i) for i in sorted(set(filters.brand_ids))]
    parts += [quote(b.lower(), safe="") for b in sorted({b.lower() for b in filters.brands})]
    return ",".join(parts) if parts else SCOPE_ALL


def scope_prefix(category_ids: Iterable[int] | None = None) -> str:
    """Prefixo de todas as chaves com exatamente este âmbito de categoria."""
    return f"{CATALOG_KEY_PREFIX}cat={_category_segment(category_ids)}:"


def parse_scope(key: str) -> dict[str, str]:
    """
    Segmentos de âmbito de uma chave:
        parse_scope("catalog:products:cat=2,3:brand=all:ab12..") -> {"cat": "2,3", "brand": "all"}
    """
    if not key.startswith(CATALOG_KEY_PREFIX):
        return {}
    out: dict[str, str] = {}
    for part in key[len(CATALOG_KEY_PREFIX) :].split(":"):
        name, sep, value = part.partition("=")
        if sep:
            out[name] = value
    return out


def in_category_scope(id_category: int) -> KeyPredicate:
    """Predicado: a chave tem um âmbito de categoria que inclui `id_category`."""
    wanted = str(int(id_category))

    def _match(key: str) -> bool:
        cat = parse_scope(key).get("cat")
        if cat in (None, SCOPE_ALL, SCOPE_NONE):
            return False
        return wanted in cat.split(",")

    return _match


def build_signature(
    filters: ProductFilterIn,
    category_ids: Iterable[int] | None,
    sort_key: str,
) -> str:
    """
    Chave canónica do filtro já resolvido.

    Usa o fecho de categorias (não os nomes/ids pedidos), por isso selecionar
    a mesma categoria por nome ou por id dá a mesma chave. Listas ordenadas e
    comparações sem maiúsculas, como no filtro. O âmbito de categoria e de
    marca vai legível antes do hash.
    """
    if not filters.has_category_selection():
        category_ids = None
    payload = {
        "categories": sorted(set(category_ids)) if category_ids is not None else None,
        "brands": sorted(b.lower() for b in filters.brands),
        "brand_ids": sorted(filters.brand_ids),
        "name": filters.name.lower() if filters.name else None,
        "price": [_dec(filters.min_price), _dec(filters.max_price)],
        "discount": [_dec(filters.min_discount), _dec(filters.max_discount)],
        "rating": [_dec(filters.min_rating), _dec(filters.max_rating)],
        "quantity": filters.min_quantity,
        "specs": {
            name.lower(): sorted(v.lower() for v in values)
            for name, values in filters.specs.items()
        },
        "sort": str(sort_key),
        "page": filters.page,
        "page_size": filters.page_size,
    }
    raw = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    digest = hashlib.sha1(raw.encode("utf-8")).hexdigest()
    return f"{scope_prefix(category_ids)}brand={_brand_segment(filters)}:{digest}"


# Backends ----------------------------------------------------


class MemoryResultCache:
    """
    Cache em memória com TTL por entrada e limite de tamanho (LRU).
    Thread-safe.
    """

    def __init__(self, max_entries: int = 2048, clock: Callable[[], float] = time.monotonic):
        self._entries: OrderedDict[str, tuple[float, dict[str, Any]]] = OrderedDict()
        self._lock = threading.Lock()
        self._max_entries = max(1, int(max_entries))
        self._clock = clock

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> dict[str, Any] | None:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= now:
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return value

    def put(self, key: str, value: dict[str, Any], ttl: int) -> None:
        if ttl <= 0:
            return
        expires_at = self._clock() + ttl
        with self._lock:
            # substituição atómica da entrada (escritas concorrentes são equivalentes)
            self._entries[key] = (expires_at, value)
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                evicted, _ = self._entries.popitem(last=False)
                log.debug("Cache: evicted %s", evicted)

    def invalidate(self, prefix: str | None = None, predicate: KeyPredicate | None = None) -> int:
        with self._lock:
            if prefix is None and predicate is None:
                removed = len(self._entries)
                self._entries.clear()
            else:
                keys = [
                    k
                    for k in self._entries
                    if k.startswith(prefix or "") and (predicate is None or predicate(k))
                ]
                for k in keys:
                    del self._entries[k]
                removed = len(keys)
        log.debug("Cache: invalidated %d entries (prefix=%s)", removed, prefix)
        return removed


class RedisResultCache:
    """
    Cache partilhado entre processos (Redis). Os valores vão como JSON com SETEX.
    """

    def __init__(self, client, namespace: str = "cfe"):
        self.client = client
        self.namespace = namespace

    @classmethod
    def from_url(cls, url: str, namespace: str = "cfe") -> RedisResultCache:
        import redis

        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        return cls(client, namespace=namespace)

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def get(self, key: str) -> dict[str, Any] | None:
        raw = self.client.get(self._key(key))
        if raw is None:
            return None
        return json.loads(raw)

    def put(self, key: str, value: dict[str, Any], ttl: int) -> None:
        if ttl <= 0:
            return
        self.client.setex(self._key(key), int(ttl), json.dumps(value, separators=(",", ":")))

    def invalidate(self, prefix: str | None = None, predicate: KeyPredicate | None = None) -> int:
        pattern = _glob_escape(self._key(prefix or "")) + "*"
        ns = len(self.namespace) + 1
        removed = 0
        batch: list[str] = []
        for k in self.client.scan_iter(match=pattern, count=500):
            if predicate is not None and not predicate(k[ns:]):
                continue
            batch.append(k)
            if len(batch) >= 500:
                removed += int(self.client.delete(*batch))
                batch.clear()
        if batch:
            removed += int(self.client.delete(*batch))
        log.debug("Cache: invalidated %d redis keys (pattern=%s)", removed, pattern)
        return removed


class NullResultCache:
    """Sem cache: todas as leituras são miss."""

    def get(self, key: str) -> dict[str, Any] | None:
        return None

    def put(self, key: str, value: dict[str, Any], ttl: int) -> None:
        return None

    def invalidate(self, prefix: str | None = None, predicate: KeyPredicate | None = None) -> int:
        return 0


def _glob_escape(text: str) -> str:
    for ch in ("\\", "*", "?", "[", "]"):
        text = text.replace(ch, "\\" + ch)
    return text


def build_result_cache(backend: str | None = None) -> ResultCache:
    backend = (backend or settings.CATALOG_CACHE_BACKEND).lower()
    if backend == "redis":
        return RedisResultCache.from_url(settings.REDIS_URL)
    if backend == "none":
        return NullResultCache()
    return MemoryResultCache(max_entries=settings.CATALOG_CACHE_MAX_ENTRIES)
