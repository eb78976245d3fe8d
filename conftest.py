"""
Root-level shared test fixtures.

Inherited by the crypto tests beside the code and by everything in tests/.
No fixture here touches a real database: PostgreSQL access is mocked per test
and behaviour tests run against the in-memory backend.
"""

from __future__ import annotations

import pytest

from passvault.config import reset_config
from passvault.records.models import CREDIT_CARD, LOGIN
from passvault.records.service import RecordService
from passvault.records.store import Store

TEST_PASSPHRASE = "test-passphrase-do-not-use"


@pytest.fixture
def clean_env(monkeypatch):
    """Remove passvault env vars that leak between tests."""
    for key in [
        "PASSVAULT_PASSPHRASE",
        "PASSVAULT_STORAGE",
        "PASSVAULT_DECRYPT_FAILURES",
        "PASSVAULT_DB_HOST",
        "PASSVAULT_DB_PORT",
        "PASSVAULT_DB_NAME",
        "PASSVAULT_DB_USER",
        "PASSVAULT_DB_PASSWORD",
        "PASSVAULT_HOST",
        "PASSVAULT_PORT",
    ]:
        monkeypatch.delenv(key, raising=False)
    reset_config()
    yield monkeypatch
    reset_config()


@pytest.fixture
def passphrase():
    return TEST_PASSPHRASE


@pytest.fixture
def memory_store():
    return Store("memory")


@pytest.fixture
def login_service(memory_store, passphrase):
    return RecordService(LOGIN, memory_store.logins(), passphrase)


@pytest.fixture
def credit_card_service(memory_store, passphrase):
    return RecordService(CREDIT_CARD, memory_store.credit_cards(), passphrase)
