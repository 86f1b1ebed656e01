# app/domains/catalog/services/facets.py
"""
Agregação de facets para o contexto de filtros atual.

Regra única para todas as dimensões: cada facet ignora a **sua própria**
seleção e respeita todos os outros filtros ativos. Assim escolher um valor
nunca faz desaparecer as alternativas dessa mesma dimensão.

- categories: filtros sem categoria
- brands: filtros sem marca
- specifications: nomes não selecionados usam o conjunto totalmente filtrado;
  cada nome selecionado usa os filtros sem a seleção desse nome
- preço min/max: só estado + âmbito de categoria (senão o intervalo colapsava
  para o que já está selecionado)
"""

from __future__ import annotations

from decimal import Decimal

from app.domains.catalog.services.filter_conditions import (
    DIM_BRAND,
    DIM_CATEGORY,
    DIM_SPEC,
    FilterConditions,
)
from app.domains.catalog.services.mappers import map_option_rows, map_spec_rows
from app.repositories.catalog.read.products_read_repo import ProductsReadRepository
from app.schemas.products import FacetOptionOut, SpecFacetOut

FACET_CATEGORIES = "categories"
FACET_BRANDS = "brands"
FACET_SPECIFICATIONS = "specifications"
FACET_PRICE = "price"

FACET_DIMENSIONS = (FACET_CATEGORIES, FACET_BRANDS, FACET_SPECIFICATIONS, FACET_PRICE)


def aggregate_categories(
    repo: ProductsReadRepository, conditions: FilterConditions
) -> list[FacetOptionOut]:
    return map_option_rows(repo.list_category_counts(conditions.without(DIM_CATEGORY)))


def aggregate_brands(
    repo: ProductsReadRepository, conditions: FilterConditions
) -> list[FacetOptionOut]:
    return map_option_rows(repo.list_brand_counts(conditions.without(DIM_BRAND)))


def aggregate_price_range(
    repo: ProductsReadRepository, conditions: FilterConditions
) -> tuple[Decimal, Decimal]:
    return repo.get_price_range(conditions.only(DIM_CATEGORY))


def aggregate_specifications(
    repo: ProductsReadRepository, conditions: FilterConditions
) -> list[SpecFacetOut]:
    selected = conditions.spec_names
    selected_ci = {n.lower() for n in selected}

    facets = {
        key: facet
        for key, facet in map_spec_rows(repo.list_spec_value_counts(conditions)).items()
        if key not in selected_ci
    }

    for name in selected:
        own = map_spec_rows(
            repo.list_spec_value_counts(conditions.without(DIM_SPEC, name), name=name)
        )
        facet = own.get(name.lower())
        if facet is not None:
            facets[name.lower()] = facet

    return [facets[k] for k in sorted(facets)]


def aggregate(
    repo: ProductsReadRepository, conditions: FilterConditions, dimension: str
):
    """Calcula uma dimensão de facets (usado pelo motor para correr em paralelo)."""
    if dimension == FACET_CATEGORIES:
        return aggregate_categories(repo, conditions)
    if dimension == FACET_BRANDS:
        return aggregate_brands(repo, conditions)
    if dimension == FACET_SPECIFICATIONS:
        return aggregate_specifications(repo, conditions)
    if dimension == FACET_PRICE:
        return aggregate_price_range(repo, conditions)
    raise ValueError(f"Unknown facet dimension: {dimension}")
