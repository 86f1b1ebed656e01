# app/domains/catalog/services/filter_conditions.py
"""
Construção dos predicados de listagem a partir de um ProductFilterIn.

Puro: não faz I/O. Cada campo opcional gera zero ou um Predicate; todos os
valores vão como bind params (nunca interpolados no SQL).

Dimensões (usadas pelos facets para excluir a própria seleção):
    name, price, discount, rating, quantity, brand, category, spec
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import and_, exists, false, func, or_, select, true
from sqlalchemy.orm import aliased
from sqlalchemy.sql.elements import ColumnElement

from app.models.brand import Brand
from app.models.product import Product
from app.models.product_review import RATING
from app.models.specification import ProductSpecification, Specification
from app.schemas.products import ProductFilterIn

DIM_NAME = "name"
DIM_PRICE = "price"
DIM_DISCOUNT = "discount"
DIM_RATING = "rating"
DIM_QUANTITY = "quantity"
DIM_BRAND = "brand"
DIM_CATEGORY = "category"
DIM_SPEC = "spec"


@dataclass(frozen=True)
class Predicate:
    dimension: str
    clause: ColumnElement
    params: tuple[Any, ...] = ()
    # nome da especificação (só para DIM_SPEC)
    key: str | None = None
    # True = avaliado sobre o valor agregado (rating), não sobre a linha
    aggregate: bool = False

    def matches(self, dimension: str, key: str | None = None) -> bool:
        if self.dimension != dimension:
            return False
        if key is None:
            return True
        return (self.key or "").lower() == key.lower()


@dataclass(frozen=True)
class FilterConditions:
    predicates: tuple[Predicate, ...] = field(default_factory=tuple)

    # Composição --------------------------------------------------
    def without(self, dimension: str, key: str | None = None) -> FilterConditions:
        """Cópia sem os predicados de uma dimensão (ou de um nome de spec)."""
        return FilterConditions(
            tuple(p for p in self.predicates if not p.matches(dimension, key))
        )

    def only(self, *dimensions: str) -> FilterConditions:
        return FilterConditions(tuple(p for p in self.predicates if p.dimension in dimensions))

    # Leitura -----------------------------------------------------
    @property
    def params(self) -> list[Any]:
        """Valores pela ordem em que os predicados foram construídos."""
        out: list[Any] = []
        for p in self.predicates:
            out.extend(p.params)
        return out

    @property
    def needs_rating(self) -> bool:
        return any(p.aggregate for p in self.predicates)

    @property
    def spec_names(self) -> list[str]:
        return [p.key for p in self.predicates if p.dimension == DIM_SPEC and p.key]

    def has(self, dimension: str) -> bool:
        return any(p.dimension == dimension for p in self.predicates)

    def where_clause(self) -> ColumnElement:
        """AND de todos os predicados; sem predicados = listagem sem filtro."""
        if not self.predicates:
            return true()
        return and_(*(p.clause for p in self.predicates))

    def __len__(self) -> int:
        return len(self.predicates)


# Helpers internos --------------------------------------------


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _bounds(
    dimension: str,
    column,
    lo,
    hi,
    *,
    aggregate: bool = False,
) -> list[Predicate]:
    out: list[Predicate] = []
    if lo is not None:
        out.append(Predicate(dimension, column >= lo, (lo,), aggregate=aggregate))
    if hi is not None:
        out.append(Predicate(dimension, column <= hi, (hi,), aggregate=aggregate))
    return out


def _brand_predicates(names: list[str], ids: list[int]) -> list[Predicate]:
    out: list[Predicate] = []
    # alias próprio: a query exterior pode já ter brands no FROM
    b = aliased(Brand)
    brand_key = func.lower(func.trim(b.name))

    if names:
        lowered = [n.lower() for n in names]
        if len(lowered) == 1:
            match = brand_key == lowered[0]
        else:
            match = brand_key.in_(lowered)
        out.append(
            Predicate(
                DIM_BRAND,
                Product.id_brand.in_(select(b.id).where(match)),
                tuple(lowered),
            )
        )

    if ids:
        clause = Product.id_brand == ids[0] if len(ids) == 1 else Product.id_brand.in_(ids)
        out.append(Predicate(DIM_BRAND, clause, tuple(ids)))

    if len(out) > 1:
        # nome ou id: qualquer um seleciona a marca
        return [
            Predicate(
                DIM_BRAND,
                or_(*(p.clause for p in out)),
                tuple(v for p in out for v in p.params),
            )
        ]
    return out


def _spec_predicate(name: str, values: Iterable[str]) -> Predicate:
    """
    Um EXISTS por valor aceite, em OR. Aliases próprios para não correlacionar
    com product_specifications da query exterior (facets de specs).
    """
    alternatives = []
    params: list[Any] = []
    for value in values:
        ps = aliased(ProductSpecification)
        sp = aliased(Specification)
        alternatives.append(
            exists(
                select(1)
                .select_from(ps)
                .join(sp, sp.id == ps.id_specification)
                .where(
                    ps.id_product == Product.id,
                    func.lower(sp.name) == func.lower(name),
                    func.lower(ps.value) == func.lower(value),
                )
            )
        )
        params.extend([name, value])

    clause = alternatives[0] if len(alternatives) == 1 else or_(*alternatives)
    return Predicate(DIM_SPEC, clause, tuple(params), key=name)


# API ---------------------------------------------------------


def build_conditions(
    filters: ProductFilterIn,
    category_ids: Iterable[int] | None = None,
) -> FilterConditions:
    """
    Constrói os predicados para os filtros.

    `category_ids` é o fecho já resolvido das categorias selecionadas. Se houve
    seleção mas o fecho veio vazio, gera um predicado que não devolve nada
    (nunca ignora o filtro do utilizador).
    """
    preds: list[Predicate] = []

    if filters.name:
        like = f"%{_escape_like(filters.name)}%"
        preds.append(Predicate(DIM_NAME, Product.name.ilike(like, escape="\\"), (like,)))

    preds += _bounds(DIM_PRICE, Product.price, filters.min_price, filters.max_price)
    preds += _bounds(DIM_DISCOUNT, Product.discount, filters.min_discount, filters.max_discount)
    preds += _bounds(
        DIM_RATING, RATING, filters.min_rating, filters.max_rating, aggregate=True
    )

    if filters.min_quantity is not None:
        preds.append(
            Predicate(DIM_QUANTITY, Product.quantity >= filters.min_quantity, (filters.min_quantity,))
        )

    preds += _brand_predicates(filters.brands, filters.brand_ids)

    if filters.has_category_selection():
        ids = sorted(set(category_ids or ()))
        if ids:
            preds.append(Predicate(DIM_CATEGORY, Product.id_category.in_(ids), tuple(ids)))
        else:
            preds.append(Predicate(DIM_CATEGORY, false()))

    for name, values in filters.specs.items():
        if values:
            preds.append(_spec_predicate(name, values))

    return FilterConditions(tuple(preds))
