"""
Record kinds, storage entities and wire DTOs.

Entities are plain dataclasses mirroring table rows; sensitive fields on an
entity hold base64 ciphertext once it has been through the service layer.
DTOs are pydantic models exchanged with callers; sensitive fields on a DTO are
always plaintext.

A ``RecordKind`` ties the two together with the table name and the field
allowlists used for searching and sorting.

Usage:
    from passvault.records.models import LOGIN, get_kind

    kind = get_kind("logins")
    entity = kind.to_entity(kind.dto_cls(url="https://example.com"))
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

BOOKKEEPING_FIELDS = ("id", "created_at", "updated_at", "deleted_at")


# ─── Entities ────────────────────────────────────────────────────────────


@dataclass
class Record:
    """Columns shared by every record table."""

    id: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None


@dataclass
class Login(Record):
    title: str = ""
    url: str = ""
    username: str = ""
    password: str = ""


@dataclass
class CreditCard(Record):
    card_name: str = ""
    cardholder_name: str = ""
    type: str = ""
    number: str = ""
    expiry_date: str = ""
    verification_number: str = ""


@dataclass
class BankAccount(Record):
    bank_name: str = ""
    bank_code: str = ""
    account_name: str = ""
    account_number: str = ""
    iban: str = ""
    currency: str = ""
    password: str = ""


@dataclass
class Note(Record):
    title: str = ""
    note: str = ""


@dataclass
class Email(Record):
    title: str = ""
    email: str = ""
    password: str = ""


@dataclass
class Server(Record):
    title: str = ""
    ip: str = ""
    username: str = ""
    password: str = ""
    url: str = ""
    hosting_username: str = ""
    hosting_password: str = ""
    admin_username: str = ""
    admin_password: str = ""
    extra: str = ""


# ─── DTOs ────────────────────────────────────────────────────────────────


class RecordDTO(BaseModel):
    """Wire shape shared by every kind. ``deleted_at`` is never exposed."""

    model_config = ConfigDict(extra="ignore")

    id: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class LoginDTO(RecordDTO):
    title: str = ""
    url: str = ""
    username: str = ""
    password: str = ""


class CreditCardDTO(RecordDTO):
    card_name: str = ""
    cardholder_name: str = ""
    type: str = ""
    number: str = ""
    expiry_date: str = ""
    verification_number: str = ""


class BankAccountDTO(RecordDTO):
    bank_name: str = ""
    bank_code: str = ""
    account_name: str = ""
    account_number: str = ""
    iban: str = ""
    currency: str = ""
    password: str = ""


class NoteDTO(RecordDTO):
    title: str = ""
    note: str = ""


class EmailDTO(RecordDTO):
    title: str = ""
    email: str = ""
    password: str = ""


class ServerDTO(RecordDTO):
    title: str = ""
    ip: str = ""
    username: str = ""
    password: str = ""
    url: str = ""
    hosting_username: str = ""
    hosting_password: str = ""
    admin_username: str = ""
    admin_password: str = ""
    extra: str = ""


# ─── Kinds ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RecordKind:
    """Static description of one record type.

    ``sensitive_fields`` is the set of columns that are encrypted at rest.
    Sensitive columns can never be searched or sorted on; a kind that tries
    to allow it is rejected when it is defined.
    """

    name: str
    table: str
    label: str
    entity_cls: type[Record]
    dto_cls: type[RecordDTO]
    sensitive_fields: frozenset[str]
    search_fields: tuple[str, ...]

    def __post_init__(self) -> None:
        columns = set(self.columns)
        unknown = (self.sensitive_fields | set(self.search_fields)) - columns
        if unknown:
            raise ValueError(f"{self.name}: unknown fields {sorted(unknown)}")
        leaked = self.sensitive_fields & set(self.search_fields)
        if leaked:
            raise ValueError(f"{self.name}: sensitive fields cannot be searchable: {sorted(leaked)}")
        dto_fields = set(self.dto_cls.model_fields)
        entity_fields = {f.name for f in dataclasses.fields(self.entity_cls)} - {"deleted_at"}
        if dto_fields != entity_fields:
            raise ValueError(f"{self.name}: DTO and entity fields differ")

    @property
    def columns(self) -> tuple[str, ...]:
        """Kind-specific columns, in declaration order."""
        return tuple(
            f.name for f in dataclasses.fields(self.entity_cls) if f.name not in BOOKKEEPING_FIELDS
        )

    @property
    def sort_fields(self) -> tuple[str, ...]:
        """Fields a caller may order by: bookkeeping plus every plaintext column."""
        plain = tuple(c for c in self.columns if c not in self.sensitive_fields)
        return ("id", "created_at", "updated_at") + plain

    def to_entity(self, dto: RecordDTO) -> Record:
        return self.entity_cls(**dto.model_dump())

    def to_dto(self, entity: Record) -> RecordDTO:
        data = dataclasses.asdict(entity)
        data.pop("deleted_at", None)
        return self.dto_cls(**data)

    def entity_from_row(self, row: dict[str, Any]) -> Record:
        """Build an entity from a RealDictCursor row. NULL text columns become ''."""
        values: dict[str, Any] = {
            "id": row["id"],
            "created_at": row.get("created_at"),
            "updated_at": row.get("updated_at"),
            "deleted_at": row.get("deleted_at"),
        }
        for col in self.columns:
            values[col] = row.get(col) or ""
        return self.entity_cls(**values)


LOGIN = RecordKind(
    name="login",
    table="logins",
    label="Login",
    entity_cls=Login,
    dto_cls=LoginDTO,
    sensitive_fields=frozenset({"password"}),
    search_fields=("title", "url", "username"),
)

CREDIT_CARD = RecordKind(
    name="credit_card",
    table="credit_cards",
    label="CreditCard",
    entity_cls=CreditCard,
    dto_cls=CreditCardDTO,
    sensitive_fields=frozenset({"verification_number"}),
    search_fields=("card_name", "cardholder_name", "type"),
)

BANK_ACCOUNT = RecordKind(
    name="bank_account",
    table="bank_accounts",
    label="BankAccount",
    entity_cls=BankAccount,
    dto_cls=BankAccountDTO,
    sensitive_fields=frozenset({"password"}),
    search_fields=("bank_name", "account_name", "iban"),
)

NOTE = RecordKind(
    name="note",
    table="notes",
    label="Note",
    entity_cls=Note,
    dto_cls=NoteDTO,
    sensitive_fields=frozenset({"note"}),
    search_fields=("title",),
)

EMAIL = RecordKind(
    name="email",
    table="emails",
    label="Email",
    entity_cls=Email,
    dto_cls=EmailDTO,
    sensitive_fields=frozenset({"password"}),
    search_fields=("title", "email"),
)

SERVER = RecordKind(
    name="server",
    table="servers",
    label="Server",
    entity_cls=Server,
    dto_cls=ServerDTO,
    sensitive_fields=frozenset({"password", "hosting_password", "admin_password"}),
    search_fields=("title", "ip", "url", "username"),
)

KINDS: dict[str, RecordKind] = {
    k.name: k for k in (LOGIN, CREDIT_CARD, BANK_ACCOUNT, NOTE, EMAIL, SERVER)
}


def get_kind(name: str) -> RecordKind:
    """Look up a kind by name ("login") or table ("logins")."""
    if name in KINDS:
        return KINDS[name]
    for kind in KINDS.values():
        if kind.table == name:
            return kind
    raise KeyError(f"unknown record kind: {name}")
