# app/infra/uow.py
# Unit of Work de leitura: agrupa os repositórios do catálogo numa sessão

from __future__ import annotations

from sqlalchemy.orm import Session

from app.repositories.catalog.read.category_read_repo import CategoryReadRepository
from app.repositories.catalog.read.products_read_repo import ProductsReadRepository


class UoW:
    """
    O catálogo só lê: não há commit. Ao sair termina a transação aberta
    pelas leituras para a ligação voltar limpa ao pool.
    """

    def __init__(self, db_session: Session) -> None:
        self.db = db_session
        self.products = ProductsReadRepository(db_session)
        self.categories = CategoryReadRepository(db_session)

    def end(self) -> None:
        if self.db.in_transaction():
            self.db.rollback()

    def __enter__(self) -> UoW:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.end()
