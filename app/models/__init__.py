# app/models/__init__.py
from app.infra.base import Base
from app.models.brand import Brand
from app.models.category import Category
from app.models.product import Product
from app.models.product_image import ProductImage
from app.models.product_review import ProductReview
from app.models.specification import ProductSpecification, Specification

__all__ = [
    "Base",
    "Brand",
    "Category",
    "Product",
    "ProductImage",
    "ProductReview",
    "ProductSpecification",
    "Specification",
    "create_db_and_tables",
]


def create_db_and_tables(bind=None) -> None:
    if bind is None:
        from app.infra.session import engine as bind

    Base.metadata.create_all(bind=bind)
