# app/infra/session.py
# Engine e session factory SQLAlchemy

from __future__ import annotations

from collections.abc import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings


def build_engine(url: str | None = None, *, statement_timeout_ms: int | None = None) -> Engine:
    """
    Cria o engine para o URL dado.

    - SQLite: permite uso multi-thread (o motor de listagem corre queries em paralelo)
    - Postgres: aplica statement_timeout a todas as ligações
    """
    url = url or settings.DATABASE_URL
    timeout_ms = statement_timeout_ms or settings.DB_STATEMENT_TIMEOUT_MS

    connect_args: dict = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    elif url.startswith("postgresql"):
        connect_args["options"] = f"-c statement_timeout={int(timeout_ms)}"

    return create_engine(
        url,
        echo=settings.DB_ECHO,
        pool_pre_ping=True,
        future=True,
        connect_args=connect_args,
    )


engine = build_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def get_session() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
