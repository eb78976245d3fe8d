"""
Centralized configuration for passvault.

All configuration is loaded from environment variables with sensible defaults.
The passphrase is read once at startup and never mutated afterwards.

Usage:
    from passvault.config import get_config
    cfg = get_config()
    print(cfg.db.name)       # "passvault"
    print(cfg.storage)       # "postgres" or "memory"
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

STORAGE_BACKENDS = ("postgres", "memory")
DECRYPT_FAILURE_POLICIES = ("raise", "skip")


@dataclass(frozen=True)
class DatabaseConfig:
    """PostgreSQL connection parameters."""

    host: str = ""  # empty = Unix socket (peer auth); set to 127.0.0.1 for TCP
    port: int = 5432
    name: str = "passvault"
    user: str = "passvault"
    password: str = ""

    @property
    def dict(self) -> dict[str, str | int]:
        """Return a psycopg2.connect() kwargs dict."""
        d: dict[str, str | int] = {
            "dbname": self.name,
            "port": self.port,
        }
        if self.host:
            d["host"] = self.host
        if self.user:
            d["user"] = self.user
        if self.password:
            d["password"] = self.password
        return d


@dataclass(frozen=True)
class Config:
    """Top-level passvault configuration."""

    passphrase: str = field(default="", repr=False)
    storage: str = "postgres"
    decrypt_failures: str = "raise"
    db: DatabaseConfig = field(default_factory=DatabaseConfig)

    # HTTP server
    host: str = "127.0.0.1"
    port: int = 3625

    def validate(self) -> list[str]:
        """Return a list of configuration problems (empty when usable)."""
        problems: list[str] = []
        if not self.passphrase:
            problems.append("PASSVAULT_PASSPHRASE is not set")
        if self.storage not in STORAGE_BACKENDS:
            problems.append(
                f"PASSVAULT_STORAGE must be one of {', '.join(STORAGE_BACKENDS)}, got {self.storage!r}"
            )
        if self.decrypt_failures not in DECRYPT_FAILURE_POLICIES:
            problems.append(
                "PASSVAULT_DECRYPT_FAILURES must be one of "
                f"{', '.join(DECRYPT_FAILURE_POLICIES)}, got {self.decrypt_failures!r}"
            )
        return problems


# Singleton
_config: Config | None = None


def get_config() -> Config:
    """Get or create the singleton config from environment variables."""
    global _config
    if _config is not None:
        return _config
    _config = _load_from_env()
    return _config


def _load_from_env() -> Config:
    """Load configuration from environment variables."""
    db = DatabaseConfig(
        host=os.environ.get("PASSVAULT_DB_HOST", ""),
        port=int(os.environ.get("PASSVAULT_DB_PORT", "5432")),
        name=os.environ.get("PASSVAULT_DB_NAME", "passvault"),
        user=os.environ.get("PASSVAULT_DB_USER", os.environ.get("USER", "passvault")),
        password=os.environ.get("PASSVAULT_DB_PASSWORD", ""),
    )

    return Config(
        passphrase=os.environ.get("PASSVAULT_PASSPHRASE", ""),
        storage=os.environ.get("PASSVAULT_STORAGE", "postgres").strip().lower(),
        decrypt_failures=os.environ.get("PASSVAULT_DECRYPT_FAILURES", "raise").strip().lower(),
        db=db,
        host=os.environ.get("PASSVAULT_HOST", "127.0.0.1"),
        port=int(os.environ.get("PASSVAULT_PORT", "3625")),
    )


def reset_config() -> None:
    """Reset the singleton config (for testing)."""
    global _config
    _config = None
