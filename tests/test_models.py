"""Tests for passvault.records.models — kinds, entities and DTO conversion."""

from datetime import UTC, datetime

import pytest

from passvault.records.models import (
    CREDIT_CARD,
    KINDS,
    LOGIN,
    SERVER,
    Login,
    LoginDTO,
    Note,
    NoteDTO,
    RecordKind,
    get_kind,
)


class TestKinds:
    def test_all_kinds_registered(self):
        assert set(KINDS) == {"login", "credit_card", "bank_account", "note", "email", "server"}

    def test_sensitive_fields(self):
        assert LOGIN.sensitive_fields == {"password"}
        assert CREDIT_CARD.sensitive_fields == {"verification_number"}
        assert SERVER.sensitive_fields == {"password", "hosting_password", "admin_password"}

    @pytest.mark.parametrize("kind", list(KINDS.values()), ids=list(KINDS))
    def test_sensitive_fields_never_searchable_or_sortable(self, kind):
        assert not kind.sensitive_fields & set(kind.search_fields)
        assert not kind.sensitive_fields & set(kind.sort_fields)

    def test_columns_exclude_bookkeeping(self):
        assert LOGIN.columns == ("title", "url", "username", "password")

    def test_sort_fields(self):
        assert LOGIN.sort_fields == ("id", "created_at", "updated_at", "title", "url", "username")

    def test_get_kind_by_name_and_table(self):
        assert get_kind("login") is LOGIN
        assert get_kind("credit_cards") is CREDIT_CARD

    def test_get_kind_unknown(self):
        with pytest.raises(KeyError):
            get_kind("wallets")

    def test_searchable_sensitive_field_rejected(self):
        with pytest.raises(ValueError, match="sensitive"):
            RecordKind(
                name="bad",
                table="bad",
                label="Bad",
                entity_cls=Note,
                dto_cls=NoteDTO,
                sensitive_fields=frozenset({"note"}),
                search_fields=("title", "note"),
            )

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError, match="unknown"):
            RecordKind(
                name="bad",
                table="bad",
                label="Bad",
                entity_cls=Note,
                dto_cls=NoteDTO,
                sensitive_fields=frozenset({"secret"}),
                search_fields=("title",),
            )

    def test_mismatched_dto_rejected(self):
        with pytest.raises(ValueError, match="differ"):
            RecordKind(
                name="bad",
                table="bad",
                label="Bad",
                entity_cls=Note,
                dto_cls=LoginDTO,
                sensitive_fields=frozenset({"note"}),
                search_fields=("title",),
            )


class TestConversion:
    def test_to_entity(self):
        dto = LoginDTO(id=3, url="https://dummywebsite.com", username="DummyUser", password="x")
        entity = LOGIN.to_entity(dto)
        assert isinstance(entity, Login)
        assert entity.id == 3
        assert entity.url == "https://dummywebsite.com"
        assert entity.deleted_at is None

    def test_to_dto_drops_deleted_at(self):
        now = datetime(2026, 1, 1, tzinfo=UTC)
        entity = Login(id=1, created_at=now, updated_at=now, deleted_at=now, url="u")
        dto = LOGIN.to_dto(entity)
        assert isinstance(dto, LoginDTO)
        assert "deleted_at" not in dto.model_dump()
        assert dto.created_at == now

    def test_dto_ignores_unknown_keys(self):
        dto = LoginDTO.model_validate({"url": "u", "deleted_at": "2026-01-01", "bogus": 1})
        assert dto.url == "u"
        assert not hasattr(dto, "bogus")

    def test_entity_from_row(self):
        now = datetime(2026, 1, 1, tzinfo=UTC)
        row = {
            "id": 7,
            "created_at": now,
            "updated_at": now,
            "deleted_at": None,
            "title": None,
            "url": "https://dummywebsite.com",
            "username": "DummyUser",
            "password": "Y2lwaGVy",
        }
        entity = LOGIN.entity_from_row(row)
        assert entity == Login(
            id=7,
            created_at=now,
            updated_at=now,
            deleted_at=None,
            title="",
            url="https://dummywebsite.com",
            username="DummyUser",
            password="Y2lwaGVy",
        )
