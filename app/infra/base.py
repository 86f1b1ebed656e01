# app/infra/base.py
from datetime import UTC, datetime

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    # naive UTC: as colunas DateTime não guardam timezone
    return datetime.now(UTC).replace(tzinfo=None)
