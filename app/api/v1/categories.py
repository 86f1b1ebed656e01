from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path

from app.core.deps import get_uow
from app.domains.catalog.usecases.categories import get_category_closure as uc_closure
from app.domains.catalog.usecases.categories import list_categories as uc_list
from app.infra.uow import UoW
from app.schemas.categories import CategoryClosureOut, CategoryOut

router = APIRouter(prefix="/categories", tags=["categories"])
UowDep = Annotated[UoW, Depends(get_uow)]


@router.get("", response_model=list[CategoryOut])
def list_categories(uow: UowDep):
    """Categorias ativas (as que podem ser usadas como filtro)."""
    return uc_list.execute(uow)


@router.get("/{id_category}/closure", response_model=CategoryClosureOut)
def get_category_closure(uow: UowDep, id_category: int = Path(..., ge=1)):
    """IDs abrangidos por um filtro nesta categoria (ela + descendentes ativos)."""
    return uc_closure.execute(uow, id_category=id_category)
