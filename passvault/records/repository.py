"""
Record repositories — filtered, paginated, soft-deletable CRUD per kind.

Repositories know nothing about encryption: sensitive columns are opaque
strings here. All reads exclude soft-deleted rows (``deleted_at IS NULL``).

``PostgresRepository`` builds SQL from the kind's allowlisted column names
only; every caller-supplied value is a bound parameter.

Usage:
    from passvault.records.models import LOGIN
    from passvault.records.repository import PostgresRepository

    repo = PostgresRepository(LOGIN)
    login = repo.find_by_id(1)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Generator
from contextlib import contextmanager
from datetime import UTC, datetime

import psycopg2
from psycopg2.extras import RealDictCursor

from passvault.db.connection import get_connection
from passvault.errors import (
    ConstraintViolation,
    InvalidFilterField,
    NotFound,
    StorageUnavailable,
    ValidationError,
    VaultError,
)
from passvault.records.filters import FilterSpec
from passvault.records.models import Record, RecordKind

logger = logging.getLogger(__name__)


class Repository(ABC):
    """CRUD-with-filter contract shared by every storage backend."""

    def __init__(self, kind: RecordKind) -> None:
        self.kind = kind

    @abstractmethod
    def find_all(self, spec: FilterSpec | None = None) -> list[Record]:
        """Active records matching ``spec``: search, then sort, then offset/limit."""

    @abstractmethod
    def find_by_id(self, record_id: int) -> Record:
        """The active record with this id, or ``NotFound``."""

    @abstractmethod
    def save(self, entity: Record) -> Record:
        """Insert when ``entity.id`` is 0, otherwise update the active row."""

    @abstractmethod
    def delete(self, record_id: int) -> None:
        """Soft-delete the active record with this id, or ``NotFound``."""

    @abstractmethod
    def count(self) -> int:
        """Number of active records."""

    def _check_spec(self, spec: FilterSpec) -> None:
        if spec.order and spec.order not in self.kind.sort_fields:
            raise InvalidFilterField(spec.order, self.kind.name)
        if spec.search_field and spec.search_field not in self.kind.search_fields:
            raise InvalidFilterField(spec.search_field, self.kind.name)

    def _search_columns(self, spec: FilterSpec) -> tuple[str, ...]:
        return (spec.search_field,) if spec.search_field else self.kind.search_fields


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class PostgresRepository(Repository):
    """Repository over one PostgreSQL table using the shared connection pool."""

    @contextmanager
    def _storage_errors(self) -> Generator[None, None, None]:
        """Translate driver exceptions into passvault error kinds."""
        try:
            yield
        except psycopg2.IntegrityError as e:
            raise ConstraintViolation(f"{self.kind.label} violates a storage constraint") from e
        except psycopg2.DataError as e:
            raise ValidationError(f"{self.kind.label} value rejected by storage") from e
        except (psycopg2.OperationalError, psycopg2.InterfaceError) as e:
            raise StorageUnavailable(f"storage unavailable while accessing {self.kind.table}") from e
        except psycopg2.Error as e:
            raise VaultError(f"storage error while accessing {self.kind.table}") from e
        except ValueError as e:
            # Raised by psycopg2 while adapting parameters, e.g. NUL bytes in a string.
            raise ValidationError(f"{self.kind.label} value cannot be stored") from e

    def _select_sql(self, spec: FilterSpec) -> tuple[str, list]:
        self._check_spec(spec)
        table = self.kind.table
        sql = f"SELECT * FROM {table} WHERE deleted_at IS NULL"
        params: list = []

        if spec.search:
            columns = self._search_columns(spec)
            sql += " AND (" + " OR ".join(f"{c} ILIKE %s" for c in columns) + ")"
            params.extend([f"%{_escape_like(spec.search)}%"] * len(columns))

        order = spec.order or "id"
        sql += f" ORDER BY {order} {'DESC' if spec.descending else 'ASC'}"
        if order != "id":
            sql += ", id ASC"

        if spec.paginated:
            sql += " LIMIT %s OFFSET %s"
            params.extend([spec.limit, spec.offset])
        return sql, params

    def find_all(self, spec: FilterSpec | None = None) -> list[Record]:
        sql, params = self._select_sql(spec or FilterSpec())
        with self._storage_errors(), get_connection() as conn:
            cur = conn.cursor(cursor_factory=RealDictCursor)
            cur.execute(sql, params)
            return [self.kind.entity_from_row(r) for r in cur.fetchall()]

    def find_by_id(self, record_id: int) -> Record:
        with self._storage_errors(), get_connection() as conn:
            cur = conn.cursor(cursor_factory=RealDictCursor)
            cur.execute(
                f"SELECT * FROM {self.kind.table} "
                "WHERE id = %s AND deleted_at IS NULL ORDER BY id ASC LIMIT 1",
                (record_id,),
            )
            row = cur.fetchone()
        if not row:
            raise NotFound(self.kind.name, record_id)
        return self.kind.entity_from_row(row)

    def save(self, entity: Record) -> Record:
        if entity.id:
            return self._update(entity)
        return self._insert(entity)

    def _insert(self, entity: Record) -> Record:
        columns = self.kind.columns
        now = datetime.now(UTC)
        placeholders = ", ".join(["%s"] * len(columns))
        sql = (
            f"INSERT INTO {self.kind.table} (created_at, updated_at, deleted_at, {', '.join(columns)}) "
            f"VALUES (%s, %s, NULL, {placeholders}) RETURNING *"
        )
        values = [now, now] + [getattr(entity, c) for c in columns]

        with self._storage_errors(), get_connection() as conn:
            cur = conn.cursor(cursor_factory=RealDictCursor)
            cur.execute(sql, values)
            row = cur.fetchone()
        saved = self.kind.entity_from_row(row)
        logger.info("Created %s %d", self.kind.name, saved.id)
        return saved

    def _update(self, entity: Record) -> Record:
        columns = self.kind.columns
        sets = ", ".join(f"{c} = %s" for c in columns)
        sql = (
            f"UPDATE {self.kind.table} SET {sets}, updated_at = %s "
            "WHERE id = %s AND deleted_at IS NULL RETURNING *"
        )
        values = [getattr(entity, c) for c in columns] + [datetime.now(UTC), entity.id]

        with self._storage_errors(), get_connection() as conn:
            cur = conn.cursor(cursor_factory=RealDictCursor)
            cur.execute(sql, values)
            row = cur.fetchone()
        if not row:
            raise NotFound(self.kind.name, entity.id)
        logger.info("Updated %s %d", self.kind.name, entity.id)
        return self.kind.entity_from_row(row)

    def delete(self, record_id: int) -> None:
        with self._storage_errors(), get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                f"UPDATE {self.kind.table} SET deleted_at = %s WHERE id = %s AND deleted_at IS NULL",
                (datetime.now(UTC), record_id),
            )
            deleted = cur.rowcount > 0
        if not deleted:
            raise NotFound(self.kind.name, record_id)
        logger.info("Soft-deleted %s %d", self.kind.name, record_id)

    def count(self) -> int:
        with self._storage_errors(), get_connection() as conn:
            cur = conn.cursor()
            cur.execute(f"SELECT count(*) FROM {self.kind.table} WHERE deleted_at IS NULL")
            row = cur.fetchone()
        return row[0] if row else 0
