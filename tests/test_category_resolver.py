"""Tests for category closure resolution."""

from __future__ import annotations

from app.repositories.catalog.read.category_read_repo import CategoryReadRepository


def test_closure_includes_active_descendants(db_session):
    repo = CategoryReadRepository(db_session)

    # Refurbished (5) é inativa: corta-se ela e a Budget (6)
    assert repo.resolve_closure(ids=[1]) == {1, 2, 3, 4}


def test_names_match_case_insensitively_after_trim(db_session):
    repo = CategoryReadRepository(db_session)

    assert repo.resolve_closure(names=["  phones "]) == {2, 3}


def test_names_and_ids_are_combined(db_session):
    repo = CategoryReadRepository(db_session)

    assert repo.resolve_closure(names=["Home"], ids=[4]) == {4, 7}


def test_unknown_and_inactive_selections_resolve_to_nothing(db_session):
    repo = CategoryReadRepository(db_session)

    assert repo.resolve_closure(names=["Garden"]) == set()
    assert repo.resolve_closure(ids=[5, 999]) == set()
    assert repo.resolve_closure() == set()


def test_cycle_without_active_root_terminates_empty(db_session):
    from app.models import Category

    db_session.add_all(
        [Category(id=20, name="Loop A", parent_id=21), Category(id=21, name="Loop B", parent_id=20)]
    )
    db_session.commit()
    repo = CategoryReadRepository(db_session)

    # nenhum dos nós é alcançável a partir de uma raiz
    assert repo.resolve_closure(ids=[20]) == set()
    assert 20 not in {c.id for c in repo.list_active()}


def test_active_node_under_inactive_ancestor_is_pruned(db_session):
    repo = CategoryReadRepository(db_session)

    # Budget (6) está ativa mas o pai Refurbished (5) não
    assert repo.resolve_closure(ids=[6]) == set()
    assert repo.resolve_closure(names=["budget"]) == set()
    assert repo.resolve_closure(ids=[6, 4]) == {4}


def test_list_active_skips_pruned_subtrees(db_session):
    names = [c.name for c in CategoryReadRepository(db_session).list_active()]

    assert names == ["Electronics", "Home", "Laptops", "Phones", "Smartphones"]
