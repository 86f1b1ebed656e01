# app/domains/catalog/services/mappers.py
# Row -> schema para a listagem do catálogo

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from app.domains.catalog.services.row_codec import decode_specs
from app.schemas.products import (
    FacetOptionOut,
    FacetValueOut,
    ProductListingOut,
    ProductSpecOut,
    SpecFacetOut,
)


def _get(row: Any, key: str, default=None):
    if isinstance(row, dict):
        return row.get(key, default)
    mapping = getattr(row, "_mapping", None)
    if mapping is not None:
        return mapping.get(key, default)
    return getattr(row, key, default)


def _decimal(v) -> Decimal:
    if v is None:
        return Decimal("0")
    if isinstance(v, Decimal):
        return v
    return Decimal(str(v))


def map_listing_row(row: Any) -> ProductListingOut:
    """
    Linha plana da query de listagem -> ProductListingOut.
    Tolera agregados vazios (sem specs, sem imagem, sem reviews).
    """
    rating = _get(row, "rating")
    return ProductListingOut(
        id=int(_get(row, "id")),
        name=_get(row, "name") or "",
        sku=_get(row, "sku"),
        price=_decimal(_get(row, "price")),
        discount=_decimal(_get(row, "discount")),
        quantity=int(_get(row, "quantity") or 0),
        description=_get(row, "description"),
        id_category=_get(row, "id_category"),
        category_name=_get(row, "category_name"),
        id_brand=_get(row, "id_brand"),
        brand_name=_get(row, "brand_name"),
        rating=round(float(rating), 1) if rating is not None else 0.0,
        main_image=_get(row, "main_image") or None,
        specifications=[ProductSpecOut(**s) for s in decode_specs(_get(row, "specs"))],
        created_at=_get(row, "created_at"),
    )


def map_option_rows(rows: Iterable[Any]) -> list[FacetOptionOut]:
    return [
        FacetOptionOut(id=int(_get(r, "id")), name=_get(r, "name") or "", count=int(_get(r, "count") or 0))
        for r in rows
    ]


def map_spec_rows(rows: Iterable[Any]) -> dict[str, SpecFacetOut]:
    """
    (name, value, count) -> {nome: SpecFacetOut}, juntando valores que só
    diferem em maiúsculas (o filtro também os trata como iguais).
    """
    facets: dict[str, SpecFacetOut] = {}
    index: dict[tuple[str, str], FacetValueOut] = {}

    for r in rows:
        name = _get(r, "name")
        value = _get(r, "value")
        if not name or value is None:
            continue
        count = int(_get(r, "count") or 0)

        facet = facets.get(name.lower())
        if facet is None:
            facet = facets[name.lower()] = SpecFacetOut(name=name)

        key = (name.lower(), value.lower())
        existing = index.get(key)
        if existing is None:
            existing = index[key] = FacetValueOut(value=value, count=0)
            facet.values.append(existing)
        existing.count += count

    for facet in facets.values():
        facet.values.sort(key=lambda v: v.value.lower())
    return facets
