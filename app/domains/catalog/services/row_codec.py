# app/domains/catalog/services/row_codec.py
"""
Codec das colunas agregadas em string (fronteira com a BD).

A query de listagem devolve as especificações de cada produto como uma única
string: registos separados por RECORD_SEP e campos por FIELD_SEP
(id, nome, valor, id_categoria). Os separadores são caracteres de controlo
ASCII para que ":" ou "|" nos valores não partam o parsing.
"""

from __future__ import annotations

from typing import Any

FIELD_SEP = "\x1f"
RECORD_SEP = "\x1e"


def encode_spec_expr(id_expr, name_expr, value_expr, category_expr):
    """Expressão SQL (||) que serializa um registo de especificação."""
    return (
        id_expr.concat(FIELD_SEP)
        .concat(name_expr)
        .concat(FIELD_SEP)
        .concat(value_expr)
        .concat(FIELD_SEP)
        .concat(category_expr)
    )


def _to_int(raw: str) -> int | None:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def decode_specs(raw: str | None) -> list[dict[str, Any]]:
    """
    Converte a string agregada em lista de dicts ordenada por nome/valor.
    None ou "" -> []. Registos mal formados são ignorados.
    """
    if not raw:
        return []

    specs: list[dict[str, Any]] = []
    for record in raw.split(RECORD_SEP):
        if not record:
            continue
        parts = record.split(FIELD_SEP)
        if len(parts) != 4:
            continue
        id_spec, name, value, id_category = parts
        if not name:
            continue
        specs.append(
            {
                "id_specification": _to_int(id_spec),
                "name": name,
                "value": value,
                "id_category": _to_int(id_category),
            }
        )

    specs.sort(key=lambda s: (s["name"].lower(), s["value"].lower()))
    return specs
