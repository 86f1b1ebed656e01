from __future__ import annotations

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.domains.catalog.services.filter_conditions import FilterConditions
from app.domains.catalog.services.sort_policy import SortKey, order_by_for
from app.models.brand import Brand
from app.models.category import Category
from app.models.product import PRODUCT_APPROVED, Product
from app.models.product_review import RATING, ratings_sq
from app.models.specification import ProductSpecification, Specification
from app.repositories.catalog.read.category_read_repo import active_tree_cte
from app.repositories.catalog.read.product_aggregates import main_image_expr, specs_sq


class ProductsReadRepository:
    """
    Consultas de leitura para a listagem facetada do catálogo.

    Todas as queries partem de `products` com o filtro de estado (approved) e
    aplicam um FilterConditions já construído; os facets passam variantes
    desse FilterConditions sem a própria dimensão.
    """

    def __init__(self, db: Session):
        self.db = db

    # Lookups simples --------------------------------------------
    def get(self, id_product: int) -> Product | None:
        return self.db.get(Product, id_product)

    # Helpers internos --------------------------------------------

    def _apply_conditions(self, stmt, conditions: FilterConditions, *, ratings_joined: bool = False):
        """
        Aplica estado + predicados. O rating é filtrado sobre o valor agregado,
        por isso a subquery de ratings tem de estar ligada.
        """
        if conditions.needs_rating and not ratings_joined:
            stmt = stmt.join(ratings_sq, ratings_sq.c.id_product == Product.id, isouter=True)
        return stmt.where(Product.status == PRODUCT_APPROVED, conditions.where_clause())

    def _listing_query(self):
        """
        Query base da listagem: uma linha por produto, com agregados ligados por
        LEFT JOIN a subqueries já agrupadas por id_product.
        """
        return (
            select(
                Product.id,
                Product.name,
                Product.sku,
                Product.price,
                Product.discount,
                Product.quantity,
                Product.description,
                Product.id_category,
                Category.name.label("category_name"),
                Product.id_brand,
                Brand.name.label("brand_name"),
                RATING.label("rating"),
                main_image_expr().label("main_image"),
                specs_sq.c.specs.label("specs"),
                Product.created_at,
            )
            .select_from(Product)
            .join(Category, Category.id == Product.id_category, isouter=True)
            .join(Brand, Brand.id == Product.id_brand, isouter=True)
            .join(ratings_sq, ratings_sq.c.id_product == Product.id, isouter=True)
            .join(specs_sq, specs_sq.c.id_product == Product.id, isouter=True)
        )

    # Lista paginada ---------------------------------------------

    def list_products(
        self,
        conditions: FilterConditions,
        *,
        sort: SortKey,
        page: int = 1,
        page_size: int = 10,
    ):
        stmt = self._apply_conditions(self._listing_query(), conditions, ratings_joined=True)
        stmt = stmt.order_by(*order_by_for(sort))
        stmt = stmt.limit(page_size).offset((max(1, page) - 1) * page_size)
        return self.db.execute(stmt).all()

    def count_products(self, conditions: FilterConditions) -> int:
        """COUNT sobre a identidade do produto, com os mesmos predicados da listagem."""
        stmt = select(func.count(func.distinct(Product.id))).select_from(Product)
        stmt = self._apply_conditions(stmt, conditions)
        return int(self.db.scalar(stmt) or 0)

    # Facets ------------------------------------------------------

    def get_price_range(self, conditions: FilterConditions) -> tuple[Decimal, Decimal]:
        stmt = select(func.min(Product.price), func.max(Product.price)).select_from(Product)
        stmt = self._apply_conditions(stmt, conditions)
        row = self.db.execute(stmt).one()
        lo, hi = row
        return Decimal(str(lo or 0)), Decimal(str(hi or 0))

    def list_category_counts(self, conditions: FilterConditions):
        """
        (id, name, count) das categorias da árvore ativa com produtos para os
        filtros. Categorias debaixo de um antepassado inativo não aparecem.
        """
        active = active_tree_cte()
        stmt = (
            select(
                Category.id,
                Category.name,
                func.count(func.distinct(Product.id)).label("count"),
            )
            .select_from(Product)
            .join(Category, Category.id == Product.id_category)
            .where(Category.id.in_(select(active.c.id)))
        )
        stmt = self._apply_conditions(stmt, conditions)
        stmt = stmt.group_by(Category.id, Category.name).order_by(Category.name, Category.id)
        return self.db.execute(stmt).all()

    def list_brand_counts(self, conditions: FilterConditions):
        stmt = (
            select(
                Brand.id,
                Brand.name,
                func.count(func.distinct(Product.id)).label("count"),
            )
            .select_from(Product)
            .join(Brand, Brand.id == Product.id_brand)
        )
        stmt = self._apply_conditions(stmt, conditions)
        stmt = stmt.group_by(Brand.id, Brand.name).order_by(Brand.name, Brand.id)
        return self.db.execute(stmt).all()

    def list_spec_value_counts(self, conditions: FilterConditions, *, name: str | None = None):
        """
        (name, value, count) das especificações dos produtos que passam os filtros.
        Com `name`, restringe a esse nome de especificação.
        """
        stmt = (
            select(
                Specification.name,
                ProductSpecification.value,
                func.count(func.distinct(Product.id)).label("count"),
            )
            .select_from(Product)
            .join(ProductSpecification, ProductSpecification.id_product == Product.id)
            .join(Specification, Specification.id == ProductSpecification.id_specification)
        )
        if name is not None:
            stmt = stmt.where(func.lower(Specification.name) == func.lower(name))
        stmt = self._apply_conditions(stmt, conditions)
        stmt = stmt.group_by(Specification.name, ProductSpecification.value).order_by(
            Specification.name, ProductSpecification.value
        )
        return self.db.execute(stmt).all()
