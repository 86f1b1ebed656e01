# app/repositories/catalog/read/category_read_repo.py
from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, aliased

from app.models.category import CATEGORY_ACTIVE, Category


def active_tree_cte(name: str = "active_tree"):
    """
    Ids das categorias ativas alcançáveis a partir de uma raiz ativa.

    Uma categoria inativa corta a sua sub-árvore inteira, mesmo que os
    descendentes estejam ativos.
    """
    tree = (
        select(Category.id.label("id"))
        .where(Category.parent_id.is_(None), Category.status == CATEGORY_ACTIVE)
        .cte(name, recursive=True)
    )
    child = aliased(Category)
    return tree.union(
        select(child.id)
        .join(tree, child.parent_id == tree.c.id)
        .where(child.status == CATEGORY_ACTIVE)
    )


class CategoryReadRepository:
    """
    Leitura da árvore de categorias.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, id_category: int) -> Category | None:
        return self.db.get(Category, id_category)

    def resolve_closure(
        self,
        *,
        names: Iterable[str] = (),
        ids: Iterable[int] = (),
    ) -> set[int]:
        """
        Fecho transitivo dos descendentes (inclui os próprios nós selecionados),
        só com categorias da árvore ativa. Selecionar um nó debaixo de um
        antepassado inativo não devolve nada.

        Nomes comparados sem maiúsculas/espaços. Referências desconhecidas não
        contribuem com nada. UNION (e não UNION ALL) garante terminação mesmo
        que exista um ciclo nos dados.
        """
        names_ci = sorted({n.strip().lower() for n in names if n and n.strip()})
        ids_set = sorted({int(i) for i in ids})
        if not names_ci and not ids_set:
            return set()

        selectors = []
        if ids_set:
            selectors.append(Category.id.in_(ids_set))
        if names_ci:
            selectors.append(func.lower(func.trim(Category.name)).in_(names_ci))

        active = active_tree_cte()
        tree = (
            select(Category.id.label("id"))
            .where(Category.id.in_(select(active.c.id)), or_(*selectors))
            .cte("category_tree", recursive=True)
        )
        child = aliased(Category)
        tree = tree.union(
            select(child.id)
            .join(tree, child.parent_id == tree.c.id)
            .where(child.status == CATEGORY_ACTIVE)
        )

        return set(self.db.scalars(select(tree.c.id)).all())

    def list_active(self) -> list[Category]:
        """Categorias ativas alcançáveis a partir de uma raiz ativa."""
        active = active_tree_cte()
        stmt = (
            select(Category)
            .where(Category.id.in_(select(active.c.id)))
            .order_by(Category.name, Category.id)
        )
        return list(self.db.scalars(stmt).all())
