"""
Store — one repository per record kind over a single storage backend.

Usage:
    from passvault.records.store import Store

    store = Store.from_config()
    store.logins().find_by_id(1)
"""

from __future__ import annotations

import logging

from passvault.config import Config, get_config
from passvault.records.memory import MemoryRepository
from passvault.records.models import (
    BANK_ACCOUNT,
    CREDIT_CARD,
    EMAIL,
    KINDS,
    LOGIN,
    NOTE,
    SERVER,
    get_kind,
)
from passvault.records.repository import PostgresRepository, Repository

logger = logging.getLogger(__name__)

_BACKENDS: dict[str, type[Repository]] = {
    "postgres": PostgresRepository,
    "memory": MemoryRepository,
}


class Store:
    def __init__(self, backend: str = "postgres") -> None:
        if backend not in _BACKENDS:
            raise ValueError(f"unknown storage backend: {backend}")
        self.backend = backend
        repo_cls = _BACKENDS[backend]
        self._repositories: dict[str, Repository] = {
            name: repo_cls(kind) for name, kind in KINDS.items()
        }

    @classmethod
    def from_config(cls, config: Config | None = None) -> Store:
        cfg = config or get_config()
        logger.info("Using %s storage", cfg.storage)
        return cls(cfg.storage)

    def repository(self, kind: str) -> Repository:
        """Repository by kind name ("login") or table ("logins")."""
        return self._repositories[get_kind(kind).name]

    def logins(self) -> Repository:
        return self._repositories[LOGIN.name]

    def credit_cards(self) -> Repository:
        return self._repositories[CREDIT_CARD.name]

    def bank_accounts(self) -> Repository:
        return self._repositories[BANK_ACCOUNT.name]

    def notes(self) -> Repository:
        return self._repositories[NOTE.name]

    def emails(self) -> Repository:
        return self._repositories[EMAIL.name]

    def servers(self) -> Repository:
        return self._repositories[SERVER.name]
