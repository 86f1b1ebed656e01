"""Tests for the HTTP binding of the catalog listing."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.core.deps import get_catalog_engine, get_result_cache
from app.infra.session import get_session
from app.repositories.catalog.read.products_read_repo import ProductsReadRepository
from apps.api_main import app


@pytest.fixture()
def client(engine, cache, seeded):
    def _session():
        with seeded() as db:
            yield db

    app.dependency_overrides[get_catalog_engine] = lambda: engine
    app.dependency_overrides[get_result_cache] = lambda: cache
    app.dependency_overrides[get_session] = _session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _ids(response) -> list[int]:
    return [item["id"] for item in response.json()["items"]]


def test_list_products_with_spec_params(client):
    response = client.get(
        "/api/v1/products",
        params={"brand": "Acme", "min_price": "500", "max_price": "1500", "spec_Color": "Black"},
    )

    assert response.status_code == 200
    body = response.json()
    assert _ids(response) == [1]
    assert body["total_items"] == 1
    assert [b["name"] for b in body["facets"]["brands"]] == ["Acme", "Globex"]
    assert body["error_message"] is None


def test_repeated_params_are_combined(client):
    response = client.get(
        "/api/v1/products",
        params=[("brand", "Acme"), ("brand", "Globex"), ("spec_Color", "Red"), ("page_size", "50")],
    )

    assert response.status_code == 200
    assert sorted(_ids(response)) == [2, 6]


def test_category_and_sort_params(client):
    response = client.get(
        "/api/v1/products",
        params={"category": "Electronics", "sort": "price-asc", "page": 2, "page_size": 2},
    )

    body = response.json()
    assert _ids(response) == [3, 1]
    assert body["total_items"] == 6
    assert body["total_pages"] == 3
    assert body["page"] == 2


def test_invalid_range_gives_empty_listing(client):
    response = client.get("/api/v1/products", params={"min_price": "10", "max_price": "5"})

    assert response.status_code == 200
    assert response.json()["items"] == []
    assert response.json()["total_items"] == 0


def test_page_size_above_limit_is_rejected(client):
    response = client.get("/api/v1/products", params={"page_size": 1000})

    assert response.status_code == 422


def test_store_failure_is_reported_in_body(client, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("db exploded")

    monkeypatch.setattr(ProductsReadRepository, "list_products", boom)

    response = client.get("/api/v1/products")

    assert response.status_code == 200
    assert response.json()["error_message"] == "Failed to load products"


def test_request_id_is_propagated(client):
    response = client.get("/api/v1/products", headers={"X-Request-ID": "abc123"})

    assert response.headers["X-Request-ID"] == "abc123"
    assert "X-Response-Time-Ms" in response.headers


def test_cache_invalidation_endpoint(client, cache):
    client.get("/api/v1/products")
    client.get("/api/v1/products", params={"brand": "Acme"})
    assert len(cache) == 2

    response = client.post("/api/v1/products/cache/invalidate", json={"reason": "product updated"})

    assert response.status_code == 200
    assert response.json() == {"removed": 2}
    assert len(cache) == 0


def test_list_categories(client):
    response = client.get("/api/v1/categories")

    assert response.status_code == 200
    assert [c["name"] for c in response.json()] == [
        "Electronics",
        "Home",
        "Laptops",
        "Phones",
        "Smartphones",
    ]


def test_category_closure(client):
    response = client.get("/api/v1/categories/1/closure")

    assert response.status_code == 200
    assert response.json() == {"id": 1, "category_ids": [1, 2, 3, 4]}


def test_unknown_category_closure_is_404(client):
    response = client.get("/api/v1/categories/999/closure")

    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


def test_cache_invalidation_by_category_keeps_catalog_wide_entries(client, cache):
    client.get("/api/v1/products")
    client.get("/api/v1/products", params={"category": "Phones"})
    client.get("/api/v1/products", params={"category": "Laptops"})
    assert len(cache) == 3

    response = client.post("/api/v1/products/cache/invalidate", json={"id_category": 3})

    assert response.status_code == 200
    assert response.json() == {"removed": 1}
    assert len(cache) == 2
