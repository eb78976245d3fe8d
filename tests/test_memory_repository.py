"""Tests for passvault.records.memory — repository contract on the in-memory backend."""

from __future__ import annotations

import time

import pytest

from passvault.errors import InvalidFilterField, NotFound
from passvault.records.filters import FilterSpec, resolve_filters
from passvault.records.memory import MemoryRepository
from passvault.records.models import LOGIN, Login
from passvault.records.store import Store


@pytest.fixture
def repo():
    return MemoryRepository(LOGIN)


@pytest.fixture
def seeded(repo):
    for url, username in [
        ("https://delta.example", "dave"),
        ("https://alpha.example", "alice"),
        ("https://charlie.example", "carol"),
        ("https://bravo.example", "bob"),
        ("https://echo.example", "erin"),
    ]:
        repo.save(Login(url=url, username=username, password="cipher"))
    return repo


def _find(repo, **params):
    return repo.find_all(resolve_filters(params, LOGIN))


class TestSave:
    def test_insert_assigns_id_and_timestamps(self, repo):
        saved = repo.save(Login(url="u"))
        assert saved.id == 1
        assert saved.created_at is not None
        assert saved.created_at == saved.updated_at
        assert repo.save(Login(url="v")).id == 2

    def test_update_refreshes_updated_at_only(self, repo):
        created = repo.save(Login(url="u"))
        time.sleep(0.001)
        updated = repo.save(Login(id=created.id, url="v"))
        assert updated.url == "v"
        assert updated.created_at == created.created_at
        assert updated.updated_at > created.updated_at

    def test_update_ignores_caller_created_at(self, repo):
        created = repo.save(Login(url="u"))
        updated = repo.save(Login(id=created.id, url="v", created_at=None))
        assert updated.created_at == created.created_at

    def test_update_missing(self, repo):
        with pytest.raises(NotFound):
            repo.save(Login(id=42, url="u"))

    def test_update_soft_deleted(self, repo):
        created = repo.save(Login(url="u"))
        repo.delete(created.id)
        with pytest.raises(NotFound):
            repo.save(Login(id=created.id, url="v"))

    def test_returned_entity_is_a_copy(self, repo):
        saved = repo.save(Login(url="u", password="cipher"))
        saved.password = "plaintext"
        assert repo.find_by_id(saved.id).password == "cipher"


class TestFind:
    def test_find_all_returns_copies(self, seeded):
        for row in _find(seeded):
            assert row is not seeded._rows[row.id]

    def test_find_all_empty(self, repo):
        assert repo.find_all(FilterSpec()) == []

    def test_find_by_id(self, seeded):
        assert seeded.find_by_id(2).username == "alice"

    def test_find_by_id_missing(self, repo):
        with pytest.raises(NotFound):
            repo.find_by_id(1)

    def test_default_order_is_id(self, seeded):
        assert [r.id for r in _find(seeded)] == [1, 2, 3, 4, 5]

    def test_order_by_field(self, seeded):
        assert [r.username for r in _find(seeded, order="username")] == [
            "alice", "bob", "carol", "dave", "erin"
        ]

    def test_order_desc(self, seeded):
        assert [r.username for r in _find(seeded, order="username", direction="desc")] == [
            "erin", "dave", "carol", "bob", "alice"
        ]

    def test_id_desc(self, seeded):
        assert [r.id for r in _find(seeded, direction="desc")] == [5, 4, 3, 2, 1]

    def test_ties_broken_by_id(self, repo):
        for _ in range(3):
            repo.save(Login(title="same"))
        assert [r.id for r in _find(repo, order="title", direction="desc")] == [1, 2, 3]

    def test_search_case_insensitive(self, seeded):
        assert [r.username for r in _find(seeded, search="ALPHA")] == ["alice"]

    def test_search_does_not_look_at_sensitive_fields(self, seeded):
        assert _find(seeded, search="cipher") == []

    def test_search_field(self, seeded):
        assert _find(seeded, search="example", search_field="username") == []
        assert len(_find(seeded, search="example", search_field="url")) == 5

    def test_invalid_order(self, seeded):
        with pytest.raises(InvalidFilterField):
            seeded.find_all(FilterSpec(strings={"order": "password"}))


class TestPagination:
    def test_pages_are_disjoint_and_concatenate(self, seeded):
        full = _find(seeded, order="username")
        first = _find(seeded, order="username", offset=0, limit=2)
        second = _find(seeded, order="username", offset=2, limit=2)
        assert len(first) == len(second) == 2
        assert not {r.id for r in first} & {r.id for r in second}
        assert [r.id for r in first + second] == [r.id for r in full[:4]]

    def test_all_pages_equal_unpaginated(self, seeded):
        full = [r.id for r in _find(seeded, order="url")]
        pages = []
        for offset in range(0, 6, 2):
            pages += [r.id for r in _find(seeded, order="url", offset=offset, limit=2)]
        assert pages == full

    def test_search_then_sort_then_paginate(self, seeded):
        result = _find(seeded, search="e", search_field="username", order="username", offset=1, limit=2)
        # "e" in username: alice, dave, erin
        assert [r.username for r in result] == ["dave", "erin"]

    def test_offset_past_end(self, seeded):
        assert _find(seeded, offset=10, limit=2) == []

    def test_unset_pagination_returns_everything(self, seeded):
        assert len(_find(seeded, offset="x", limit="2")) == 5


class TestDelete:
    def test_soft_delete_excludes_from_finds(self, seeded):
        seeded.delete(2)
        with pytest.raises(NotFound):
            seeded.find_by_id(2)
        assert 2 not in [r.id for r in _find(seeded)]
        assert 2 not in [r.id for r in _find(seeded, search="alice")]
        assert 2 not in [r.id for r in _find(seeded, order="username", offset=0, limit=10)]

    def test_row_is_kept(self, seeded):
        seeded.delete(2)
        raw = seeded.raw(2)
        assert raw is not None
        assert raw.deleted_at is not None
        assert seeded.count() == 4

    def test_delete_does_not_mutate_shared_rows(self, seeded):
        before = seeded._rows[2]
        seeded.delete(2)
        assert before.deleted_at is None
        assert seeded._rows[2] is not before
        assert seeded._rows[2].deleted_at is not None

    def test_delete_twice(self, seeded):
        seeded.delete(2)
        with pytest.raises(NotFound):
            seeded.delete(2)

    def test_delete_missing(self, repo):
        with pytest.raises(NotFound):
            repo.delete(1)


class TestStore:
    def test_one_repository_per_kind(self):
        store = Store("memory")
        assert store.logins().kind is LOGIN
        assert store.repository("logins") is store.logins()
        assert store.credit_cards().kind.name == "credit_card"
        assert store.servers() is not store.logins()

    def test_postgres_backend(self):
        from passvault.records.repository import PostgresRepository

        assert isinstance(Store("postgres").notes(), PostgresRepository)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            Store("sqlite")
