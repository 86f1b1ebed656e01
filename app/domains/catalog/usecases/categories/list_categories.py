# app/domains/catalog/usecases/categories/list_categories.py
# Lista categorias ativas (árvore alcançável a partir das raízes)

from __future__ import annotations

from app.infra.uow import UoW
from app.schemas.categories import CategoryOut


def execute(uow: UoW) -> list[CategoryOut]:
    return [CategoryOut.model_validate(c) for c in uow.categories.list_active()]
