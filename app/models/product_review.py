# app/models/product_review.py
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
    select,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.infra.base import Base, utcnow


class ProductReview(Base):
    __tablename__ = "product_reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id_product: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    customer_ref: Mapped[str] = mapped_column(String(64), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_product_reviews_rating"),
        UniqueConstraint("id_product", "customer_ref"),
    )


# Rating médio (1 casa decimal) por produto, partilhado pelos filtros, ordenação e listagem
ratings_sq = (
    select(
        ProductReview.id_product.label("id_product"),
        func.round(func.avg(ProductReview.rating), 1).label("rating"),
    )
    .group_by(ProductReview.id_product)
    .subquery("product_ratings")
)

# Valor agregado, já pós-GROUP BY; produtos sem reviews valem 0
RATING = func.coalesce(ratings_sq.c.rating, 0)
