# app/models/specification.py
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.infra.base import Base, utcnow


class Specification(Base):
    """Nome de especificação (ex.: "Storage"). Os valores vivem por produto."""

    __tablename__ = "specifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)


class ProductSpecification(Base):
    """
    Valor de uma especificação para um produto, no contexto da categoria
    do produto. Qualquer valor registado é um valor de facet válido.
    """

    __tablename__ = "product_specifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id_product: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    id_specification: Mapped[int] = mapped_column(
        Integer, ForeignKey("specifications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    id_category: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True
    )
    value: Mapped[str] = mapped_column(String(255), nullable=False)

    specification = relationship("Specification")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("id_product", "id_specification"),)
