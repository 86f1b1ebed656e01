# app/repositories/catalog/read/product_aggregates.py
"""
Agregados por produto (especificações, imagem principal).

São subqueries pré-agregadas por id_product, ligadas à query principal por
LEFT JOIN. Assim as relações 1:N (reviews, specs, imagens) nunca multiplicam
linhas de produto e o COUNT e a listagem partilham exatamente os mesmos filtros.
"""

from __future__ import annotations

from sqlalchemy import String, cast, func, select

from app.domains.catalog.services.row_codec import RECORD_SEP, encode_spec_expr
from app.models.product import Product
from app.models.product_image import ProductImage
from app.models.specification import ProductSpecification, Specification

specs_sq = (
    select(
        ProductSpecification.id_product.label("id_product"),
        func.aggregate_strings(
            encode_spec_expr(
                cast(Specification.id, String),
                Specification.name,
                ProductSpecification.value,
                func.coalesce(cast(ProductSpecification.id_category, String), ""),
            ),
            RECORD_SEP,
        ).label("specs"),
    )
    .join(Specification, Specification.id == ProductSpecification.id_specification)
    .group_by(ProductSpecification.id_product)
    .subquery("product_specs")
)


def main_image_expr():
    """Imagem principal: is_primary primeiro, depois pela posição."""
    return (
        select(ProductImage.image_ref)
        .where(ProductImage.id_product == Product.id)
        .order_by(
            ProductImage.is_primary.desc(),
            ProductImage.position.asc(),
            ProductImage.id.asc(),
        )
        .limit(1)
        .correlate(Product)
        .scalar_subquery()
    )
