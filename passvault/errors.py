"""
Error kinds raised by the persistence layer.

Every error carries a stable ``code`` and an HTTP ``status_code`` so the API
adapter can map it without inspecting messages. Messages never embed the
passphrase or any plaintext secret.
"""

from __future__ import annotations


class VaultError(Exception):
    """Base class for all passvault errors."""

    code = "INTERNAL"
    status_code = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class ValidationError(VaultError):
    """Malformed input: bad identifier, bad payload, bad filter value."""

    code = "VALIDATION"
    status_code = 400


class InvalidFilterField(ValidationError):
    """Sort or search requested on a field outside the kind's allowlist."""

    code = "INVALID_FILTER_FIELD"

    def __init__(self, field: str, kind: str) -> None:
        super().__init__(f"field {field!r} cannot be used to filter {kind} records")
        self.field = field
        self.kind = kind


class NotFound(VaultError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, kind: str, record_id: int) -> None:
        super().__init__(f"{kind} {record_id} not found")
        self.kind = kind
        self.record_id = record_id


class CryptoError(VaultError):
    """Key unusable or ciphertext unreadable. Retrying with the same key will not help."""

    code = "CRYPTO"
    status_code = 500


class ConstraintViolation(VaultError):
    code = "CONFLICT"
    status_code = 409


class StorageUnavailable(VaultError):
    """Connection or transport failure talking to the storage engine."""

    code = "STORAGE_UNAVAILABLE"
    status_code = 503
