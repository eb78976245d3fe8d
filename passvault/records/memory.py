"""
In-memory repository — same contract as PostgresRepository, no database.

Thread-safe and ephemeral. Used with ``PASSVAULT_STORAGE=memory`` for local
development and as the reference backend in behaviour tests. Entities are
copied on the way in and out so callers never share state with the store.
"""

from __future__ import annotations

import dataclasses
import threading
from datetime import UTC, datetime

from passvault.errors import NotFound
from passvault.records.filters import FilterSpec
from passvault.records.models import Record, RecordKind
from passvault.records.repository import Repository


class MemoryRepository(Repository):
    def __init__(self, kind: RecordKind) -> None:
        super().__init__(kind)
        self._lock = threading.RLock()
        self._rows: dict[int, Record] = {}
        self._next_id = 1

    def _active(self) -> list[Record]:
        return [r for r in self._rows.values() if r.deleted_at is None]

    def _matches(self, row: Record, term: str, columns: tuple[str, ...]) -> bool:
        return any(term in str(getattr(row, c) or "").lower() for c in columns)

    def find_all(self, spec: FilterSpec | None = None) -> list[Record]:
        spec = spec or FilterSpec()
        self._check_spec(spec)
        with self._lock:
            rows = [dataclasses.replace(r) for r in self._active()]

        if spec.search:
            term = spec.search.lower()
            columns = self._search_columns(spec)
            rows = [r for r in rows if self._matches(r, term, columns)]

        # Ties on the order column keep id ASC: sort by id first, then stable sort.
        rows.sort(key=lambda r: r.id)
        if spec.order and spec.order != "id":
            rows.sort(key=lambda r: getattr(r, spec.order), reverse=spec.descending)
        elif spec.descending:
            rows.reverse()

        if spec.paginated:
            rows = rows[spec.offset : spec.offset + spec.limit]
        return rows

    def find_by_id(self, record_id: int) -> Record:
        with self._lock:
            row = self._rows.get(record_id)
            if row is None or row.deleted_at is not None:
                raise NotFound(self.kind.name, record_id)
            return dataclasses.replace(row)

    def save(self, entity: Record) -> Record:
        now = datetime.now(UTC)
        with self._lock:
            if not entity.id:
                row = dataclasses.replace(
                    entity, id=self._next_id, created_at=now, updated_at=now, deleted_at=None
                )
                self._next_id += 1
            else:
                existing = self._rows.get(entity.id)
                if existing is None or existing.deleted_at is not None:
                    raise NotFound(self.kind.name, entity.id)
                row = dataclasses.replace(
                    entity, created_at=existing.created_at, updated_at=now, deleted_at=None
                )
            self._rows[row.id] = row
            return dataclasses.replace(row)

    def delete(self, record_id: int) -> None:
        with self._lock:
            row = self._rows.get(record_id)
            if row is None or row.deleted_at is not None:
                raise NotFound(self.kind.name, record_id)
            self._rows[record_id] = dataclasses.replace(row, deleted_at=datetime.now(UTC))

    def count(self) -> int:
        with self._lock:
            return len(self._active())

    def raw(self, record_id: int) -> Record | None:
        """Stored row as-is, including soft-deleted ones (for inspection)."""
        with self._lock:
            row = self._rows.get(record_id)
            return dataclasses.replace(row) if row else None
