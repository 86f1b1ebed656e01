from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.config import settings


def _clean_str(v: str | None) -> str | None:
    if v is None:
        return None
    v = str(v).strip()
    return v or None


def _clean_str_list(values) -> list[str]:
    """Strip, drop blanks, de-duplicate case-insensitively (keeps first spelling)."""
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]
    seen: set[str] = set()
    out: list[str] = []
    for raw in values:
        v = _clean_str(raw)
        if v is None or v.lower() in seen:
            continue
        seen.add(v.lower())
        out.append(v)
    return out


# ----------- FILTRO ---------------
class ProductFilterIn(BaseModel):
    """
    Pedido de listagem do catálogo.

    Campos ausentes/vazios não filtram. `specs` mapeia nome de especificação
    -> valores aceites (OR dentro do mesmo nome, AND entre nomes).
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    min_discount: Decimal | None = None
    max_discount: Decimal | None = None
    min_rating: float | None = None
    max_rating: float | None = None
    min_quantity: int | None = None

    brands: list[str] = Field(default_factory=list)
    brand_ids: list[int] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    category_ids: list[int] = Field(default_factory=list)
    specs: dict[str, list[str]] = Field(default_factory=dict)

    sort: str | None = None
    page: int = Field(1, ge=1)
    page_size: int = Field(
        settings.CATALOG_DEFAULT_PAGE_SIZE, ge=1, le=settings.CATALOG_MAX_PAGE_SIZE
    )

    @field_validator("name", "sort", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        return _clean_str(v)

    @field_validator("brands", "categories", mode="before")
    @classmethod
    def _names(cls, v):
        return _clean_str_list(v)

    @field_validator("brand_ids", "category_ids", mode="before")
    @classmethod
    def _ids(cls, v):
        if v is None:
            return []
        if isinstance(v, (int, str)):
            v = [v]
        return sorted({int(x) for x in v})

    @field_validator("specs", mode="before")
    @classmethod
    def _specs(cls, v):
        if not v:
            return {}
        out: dict[str, list[str]] = {}
        for key, values in dict(v).items():
            name = _clean_str(key)
            vals = _clean_str_list(values)
            if name is None or not vals:
                continue
            # "Color" e "color" são o mesmo facet
            existing = next((k for k in out if k.lower() == name.lower()), None)
            if existing is not None:
                vals = _clean_str_list(out[existing] + vals)
                name = existing
            out[name] = vals
        return out

    # Helpers -----------------------------------------------------
    def has_invalid_range(self) -> bool:
        pairs = (
            (self.min_price, self.max_price),
            (self.min_discount, self.max_discount),
            (self.min_rating, self.max_rating),
        )
        return any(lo is not None and hi is not None and lo > hi for lo, hi in pairs)

    def has_category_selection(self) -> bool:
        return bool(self.categories or self.category_ids)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


# ----------- LISTAGEM ---------------
class ProductSpecOut(BaseModel):
    id_specification: int | None = None
    name: str
    value: str
    id_category: int | None = None


class ProductListingOut(BaseModel):
    """Linha de listagem já com especificações estruturadas."""

    id: int
    name: str
    sku: str | None = None
    price: Decimal
    discount: Decimal = Decimal("0")
    quantity: int = 0
    description: str | None = None
    id_category: int | None = None
    category_name: str | None = None
    id_brand: int | None = None
    brand_name: str | None = None
    rating: float = 0.0
    # referência opaca; o serviço de media resolve-a
    main_image: str | None = None
    specifications: list[ProductSpecOut] = Field(default_factory=list)
    created_at: datetime | None = None


# ----------- FACETES ---------------
class FacetOptionOut(BaseModel):
    id: int
    name: str
    count: int = 0


class FacetValueOut(BaseModel):
    value: str
    count: int = 0


class SpecFacetOut(BaseModel):
    name: str
    values: list[FacetValueOut] = Field(default_factory=list)


class FacetSetOut(BaseModel):
    """
    Valores disponíveis por dimensão para o contexto de filtros atual.
    Cada dimensão ignora a sua própria seleção e respeita as restantes.
    """

    categories: list[FacetOptionOut] = Field(default_factory=list)
    brands: list[FacetOptionOut] = Field(default_factory=list)
    specifications: list[SpecFacetOut] = Field(default_factory=list)
    min_price: Decimal = Decimal("0")
    max_price: Decimal = Decimal("0")


class ProductListOut(BaseModel):
    items: list[ProductListingOut] = Field(default_factory=list)
    total_items: int = 0
    total_pages: int = 0
    page: int = 1
    page_size: int = settings.CATALOG_DEFAULT_PAGE_SIZE
    facets: FacetSetOut = Field(default_factory=FacetSetOut)
    error_message: str | None = None


# ----------- CACHE ---------------
class CacheInvalidateIn(BaseModel):
    """Chamado pelos mutadores do catálogo após escrita bem-sucedida."""

    reason: str | None = None
    prefix: str | None = None
    id_category: int | None = None


class CacheInvalidateOut(BaseModel):
    removed: int
