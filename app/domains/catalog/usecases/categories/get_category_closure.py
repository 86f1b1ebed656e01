# app/domains/catalog/usecases/categories/get_category_closure.py

from __future__ import annotations

from app.core.errors import NotFound
from app.infra.uow import UoW
from app.schemas.categories import CategoryClosureOut


def execute(uow: UoW, *, id_category: int) -> CategoryClosureOut:
    """Categoria + descendentes ativos (o que um filtro por esta categoria abrange)."""
    category = uow.categories.get(id_category)
    if category is None:
        raise NotFound(f"Category {id_category} not found")

    ids = uow.categories.resolve_closure(ids=[id_category])
    return CategoryClosureOut(id=id_category, category_ids=sorted(ids))
