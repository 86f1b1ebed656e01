# app/models/product.py
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.infra.base import Base, utcnow

PRODUCT_DRAFT = "draft"
PRODUCT_PENDING = "pending"
PRODUCT_APPROVED = "approved"


class Product(Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    sku: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    discount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Só produtos "approved" aparecem no catálogo
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=PRODUCT_DRAFT)

    id_category: Mapped[int] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True
    )
    id_brand: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("brands.id", ondelete="SET NULL"), nullable=True, index=True
    )

    category = relationship("Category")
    brand = relationship("Brand")
    specifications = relationship("ProductSpecification", cascade="all, delete-orphan")
    images = relationship("ProductImage", cascade="all, delete-orphan")
    reviews = relationship("ProductReview", cascade="all, delete-orphan")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_products_status_price", "status", "price"),
        Index("ix_products_status_created", "status", "created_at"),
    )
