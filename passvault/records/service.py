"""
Record service — the field transformation layer between DTOs and entities.

This is the only place the encryption boundary is crossed:

- writes: caller plaintext is kept aside, each sensitive field is replaced
  with base64(encrypt(plaintext)), the entity is saved, and the kept plaintext
  is put back on the response so the caller gets exactly what they sent;
- reads: each sensitive field is base64-decoded and decrypted before the
  entity becomes a DTO.

The passphrase is injected (a string or a zero-argument callable) rather
than read from global configuration.

Usage:
    from passvault.records.service import RecordService
    from passvault.records.store import Store
    from passvault.records.models import LOGIN

    logins = RecordService(LOGIN, Store("memory").logins(), passphrase="s3cret")
    created = logins.create({"url": "https://example.com", "password": "hunter2"})
"""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Callable, Mapping
from typing import Any

import pydantic

from passvault.config import DECRYPT_FAILURE_POLICIES
from passvault.errors import CryptoError, ValidationError
from passvault.records.filters import FilterSpec, resolve_filters
from passvault.records.models import KINDS, Record, RecordDTO, RecordKind
from passvault.records.repository import Repository
from passvault.records.store import Store
from passvault.vault.crypto import decrypt, encrypt

logger = logging.getLogger(__name__)

PassphraseSource = str | Callable[[], str]


def parse_id(value: Any) -> int:
    """Parse a record identifier from a path segment or int."""
    if isinstance(value, bool):
        raise ValidationError("id must be a positive integer")
    if isinstance(value, int):
        record_id = value
    else:
        try:
            record_id = int(str(value).strip())
        except ValueError as e:
            raise ValidationError(f"id must be a positive integer, got {str(value)[:40]!r}") from e
    if record_id <= 0:
        raise ValidationError("id must be a positive integer")
    return record_id


def seal(plaintext: str, passphrase: str) -> str:
    """Encrypt a field value into its at-rest form (base64 ciphertext)."""
    return base64.b64encode(encrypt(plaintext, passphrase)).decode("ascii")


def unseal(stored: str, passphrase: str) -> str:
    """Recover plaintext from an at-rest field value."""
    if not stored:
        return ""
    try:
        raw = base64.b64decode(stored, validate=True)
    except (binascii.Error, ValueError) as e:
        raise CryptoError("Stored value is not valid base64") from e
    return decrypt(raw, passphrase)


class RecordService:
    """CRUD for one record kind with sensitive fields encrypted at rest."""

    def __init__(
        self,
        kind: RecordKind,
        repository: Repository,
        passphrase: PassphraseSource,
        *,
        decrypt_failures: str = "raise",
    ) -> None:
        if decrypt_failures not in DECRYPT_FAILURE_POLICIES:
            raise ValueError(f"decrypt_failures must be one of {DECRYPT_FAILURE_POLICIES}")
        self.kind = kind
        self.repository = repository
        self.decrypt_failures = decrypt_failures
        self._passphrase_source = passphrase

    def _passphrase(self) -> str:
        source = self._passphrase_source
        passphrase = source() if callable(source) else source
        if not passphrase:
            raise CryptoError("Encryption passphrase is not configured")
        return passphrase

    # ─── Transformations ────────────────────────────────────────────────

    def _parse_payload(self, payload: Any) -> RecordDTO:
        if isinstance(payload, self.kind.dto_cls):
            return payload.model_copy()
        if isinstance(payload, pydantic.BaseModel):
            payload = payload.model_dump()
        if not isinstance(payload, Mapping):
            raise ValidationError(f"{self.kind.label} payload must be an object")
        try:
            return self.kind.dto_cls.model_validate(dict(payload))
        except pydantic.ValidationError as e:
            # Only field locations: pydantic's own message echoes input values.
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise ValidationError(f"invalid {self.kind.label} payload: {fields}") from e

    def _encrypt_fields(self, dto: RecordDTO) -> dict[str, str]:
        """Replace sensitive DTO fields with ciphertext; return the original plaintext."""
        passphrase = self._passphrase()
        plaintext: dict[str, str] = {}
        for name in self.kind.sensitive_fields:
            value = getattr(dto, name)
            plaintext[name] = value
            setattr(dto, name, seal(value, passphrase))
        return plaintext

    def _decrypt_fields(self, entity: Record, passphrase: str) -> None:
        for name in self.kind.sensitive_fields:
            setattr(entity, name, unseal(getattr(entity, name), passphrase))

    def _write(self, dto: RecordDTO, record_id: int) -> RecordDTO:
        plaintext = self._encrypt_fields(dto)
        dto.id = record_id
        dto.created_at = None
        dto.updated_at = None
        entity = self.kind.to_entity(dto)
        entity.id = record_id

        saved = self.repository.save(entity)
        for name, value in plaintext.items():
            setattr(saved, name, value)
        return self.kind.to_dto(saved)

    # ─── Operations ─────────────────────────────────────────────────────

    def find_all(self, params: Mapping[str, Any] | FilterSpec | None = None) -> list[RecordDTO]:
        """List active records, decrypted. ``params`` are raw request parameters."""
        spec = params if isinstance(params, FilterSpec) else resolve_filters(params, self.kind)
        entities = self.repository.find_all(spec)
        if not entities:
            return []

        passphrase = self._passphrase()
        result: list[RecordDTO] = []
        for entity in entities:
            try:
                self._decrypt_fields(entity, passphrase)
            except CryptoError:
                if self.decrypt_failures == "raise":
                    raise
                logger.warning(
                    "Skipping %s %d: sensitive field could not be decrypted",
                    self.kind.name,
                    entity.id,
                )
                continue
            result.append(self.kind.to_dto(entity))
        return result

    def find_by_id(self, record_id: Any) -> RecordDTO:
        entity = self.repository.find_by_id(parse_id(record_id))
        self._decrypt_fields(entity, self._passphrase())
        return self.kind.to_dto(entity)

    def create(self, payload: Any) -> RecordDTO:
        dto = self._parse_payload(payload)
        created = self._write(dto, 0)
        logger.debug("Created %s %d", self.kind.name, created.id)
        return created

    def update(self, record_id: Any, payload: Any) -> RecordDTO:
        rid = parse_id(record_id)
        dto = self._parse_payload(payload)
        self.repository.find_by_id(rid)
        return self._write(dto, rid)

    def delete(self, record_id: Any) -> None:
        rid = parse_id(record_id)
        self.repository.find_by_id(rid)
        self.repository.delete(rid)


def build_services(
    store: Store,
    passphrase: PassphraseSource,
    *,
    decrypt_failures: str = "raise",
) -> dict[str, RecordService]:
    """One RecordService per kind, keyed by kind name."""
    return {
        name: RecordService(
            kind, store.repository(name), passphrase, decrypt_failures=decrypt_failures
        )
        for name, kind in KINDS.items()
    }
