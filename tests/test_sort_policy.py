"""Tests for sort key parsing and ORDER BY construction."""

from __future__ import annotations

import pytest

from app.domains.catalog.services.sort_policy import SortKey, order_by_for, parse_sort


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, SortKey.NEWEST),
        ("", SortKey.NEWEST),
        ("price-asc", SortKey.PRICE_ASC),
        ("PRICE_DESC", SortKey.PRICE_DESC),
        (" name-desc ", SortKey.NAME_DESC),
        ("popularity", SortKey.POPULARITY),
        ("cheapest", SortKey.PRICE_ASC),
        ("rating", SortKey.POPULARITY),
        ("random", SortKey.NEWEST),
        (SortKey.NAME_ASC, SortKey.NAME_ASC),
    ],
)
def test_parse_sort(raw, expected):
    assert parse_sort(raw) is expected


@pytest.mark.parametrize("key", list(SortKey))
def test_every_sort_has_id_tiebreak(key):
    clauses = order_by_for(key)

    assert len(clauses) == 2
    assert "products.id" in str(clauses[-1])
