"""Pytest configuration and fixtures for the catalog listing engine."""

import os
import tempfile
from datetime import datetime, timedelta
from decimal import Decimal

os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "catalog-test-logs"))
os.environ.setdefault("LOG_COLORS", "false")

import pytest
from sqlalchemy.orm import sessionmaker

from app.domains.catalog.services.catalog_query_engine import CatalogQueryEngine
from app.domains.catalog.services.result_cache import MemoryResultCache
from app.infra.session import build_engine
from app.models import (
    Brand,
    Category,
    Product,
    ProductImage,
    ProductReview,
    ProductSpecification,
    Specification,
    create_db_and_tables,
)
from app.models.category import CATEGORY_INACTIVE
from app.models.product import PRODUCT_APPROVED, PRODUCT_DRAFT

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)

# id, name, price, discount, quantity, id_category, id_brand, status, specs, ratings
PRODUCTS = [
    (1, "Acme Phone X", "999.00", "10", 5, 3, 1, PRODUCT_APPROVED,
     {"Color": "Black", "Storage": "256GB"}, [5, 4]),
    (2, "Acme Phone Mini", "699.00", "0", 0, 3, 1, PRODUCT_APPROVED,
     {"Color": "Red", "Storage": "128GB"}, [3]),
    (3, "Globex Phone", "899.00", "5", 12, 3, 2, PRODUCT_APPROVED,
     {"Color": "Black", "Storage": "256GB"}, [4]),
    (4, "Initech Laptop 13", "1299.00", "0", 3, 4, 3, PRODUCT_APPROVED,
     {"Color": "Silver", "Storage": "512GB"}, []),
    (5, "Acme Laptop Pro", "1999.00", "0", 1, 4, 1, PRODUCT_APPROVED,
     {"Color": "black", "Storage": "1TB"}, [5]),
    (6, "Globex Kettle", "49.90", "0", 40, 7, 2, PRODUCT_APPROVED,
     {"Color": "Red"}, [2]),
    (7, "Acme Refurb Phone", "299.00", "0", 2, 6, 1, PRODUCT_APPROVED,
     {"Color": "Black"}, []),
    (8, "Acme Draft Phone", "500.00", "0", 9, 3, 1, PRODUCT_DRAFT,
     {"Color": "Black"}, [5]),
    (9, "Phone Case 50%_off", "19.99", "0", 100, 2, None, PRODUCT_APPROVED,
     {}, []),
]


@pytest.fixture()
def db_engine(tmp_path):
    """File-backed SQLite so worker threads share the same database."""
    engine = build_engine(f"sqlite:///{tmp_path / 'catalog.db'}")
    create_db_and_tables(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)


def _seed(db) -> None:
    db.add_all(
        [
            Category(id=1, name="Electronics"),
            Category(id=2, name="Phones", parent_id=1),
            Category(id=3, name="Smartphones", parent_id=2),
            Category(id=4, name="Laptops", parent_id=1),
            Category(id=5, name="Refurbished", parent_id=2, status=CATEGORY_INACTIVE),
            Category(id=6, name="Budget", parent_id=5),
            Category(id=7, name="Home"),
        ]
    )
    db.add_all(
        [
            Brand(id=1, name="Acme"),
            Brand(id=2, name="Globex"),
            Brand(id=3, name="Initech"),
            Brand(id=4, name="Umbrella"),
        ]
    )
    db.add_all([Specification(id=1, name="Color"), Specification(id=2, name="Storage")])
    db.flush()

    spec_ids = {"Color": 1, "Storage": 2}
    for pid, name, price, discount, qty, cat, brand, status, specs, ratings in PRODUCTS:
        db.add(
            Product(
                id=pid,
                name=name,
                sku=f"SKU-{pid:03d}",
                price=Decimal(price),
                discount=Decimal(discount),
                quantity=qty,
                status=status,
                id_category=cat,
                id_brand=brand,
                created_at=BASE_TIME + timedelta(days=pid),
            )
        )
        db.flush()
        for spec_name, value in specs.items():
            db.add(
                ProductSpecification(
                    id_product=pid,
                    id_specification=spec_ids[spec_name],
                    id_category=cat,
                    value=value,
                )
            )
        for i, rating in enumerate(ratings):
            db.add(ProductReview(id_product=pid, customer_ref=f"c{i}", rating=rating))

    db.add_all(
        [
            ProductImage(id_product=1, image_ref="img/1-b.jpg", is_primary=False, position=0),
            ProductImage(id_product=1, image_ref="img/1-a.jpg", is_primary=True, position=1),
            ProductImage(id_product=3, image_ref="img/3-b.jpg", position=2),
            ProductImage(id_product=3, image_ref="img/3-a.jpg", position=1),
        ]
    )
    db.commit()


@pytest.fixture()
def seeded(session_factory):
    with session_factory() as db:
        _seed(db)
    return session_factory


@pytest.fixture()
def db_session(seeded):
    with seeded() as db:
        yield db


@pytest.fixture()
def cache():
    return MemoryResultCache(max_entries=64)


@pytest.fixture()
def engine(seeded, cache):
    engine = CatalogQueryEngine(seeded, cache, query_timeout_s=5, max_workers=4)
    yield engine
    engine.close()
