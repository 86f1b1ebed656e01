# app/core/deps.py
# Dependências comuns para rotas FastAPI

from collections.abc import Iterator
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from app.domains.catalog.services.catalog_query_engine import CatalogQueryEngine
from app.domains.catalog.services.result_cache import ResultCache, build_result_cache
from app.infra.session import SessionLocal, get_session
from app.infra.uow import UoW


def get_uow(db: Annotated[Session, Depends(get_session)]) -> Iterator[UoW]:
    with UoW(db) as uow:
        yield uow


@lru_cache
def get_result_cache() -> ResultCache:
    return build_result_cache()


@lru_cache
def get_catalog_engine() -> CatalogQueryEngine:
    # partilhado por todos os pedidos; a cache é o único estado mutável
    return CatalogQueryEngine(SessionLocal, get_result_cache())
