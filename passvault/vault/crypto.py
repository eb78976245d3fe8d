"""
AES-256-GCM encryption for sensitive record fields.

The AES key is the SHA-256 digest of the server passphrase, derived once per
passphrase per process. Each value gets a unique 12-byte nonce prepended to the
ciphertext, so encrypting the same plaintext twice yields different bytes.
"""

from __future__ import annotations

import hashlib
import secrets
from functools import lru_cache

from passvault.errors import CryptoError

NONCE_SIZE = 12
TAG_SIZE = 16


def derive_key(passphrase: str) -> bytes:
    """Derive the 32-byte AES key for a passphrase."""
    if not isinstance(passphrase, str):
        raise CryptoError("Encryption passphrase must be a string")
    if not passphrase:
        raise CryptoError("Encryption passphrase is empty")
    return _sha256_key(passphrase)


@lru_cache(maxsize=8)
def _sha256_key(passphrase: str) -> bytes:
    return hashlib.sha256(passphrase.encode("utf-8")).digest()


def generate_passphrase(nbytes: int = 32) -> str:
    """Return a random URL-safe passphrase suitable for PASSVAULT_PASSPHRASE."""
    return secrets.token_urlsafe(nbytes)


def encrypt(plaintext: str, passphrase: str) -> bytes:
    """Encrypt plaintext with AES-256-GCM. Returns nonce (12 bytes) + ciphertext + tag (16 bytes)."""
    from cryptography.hazmat.primitives.ciphers.aead import AESGCM

    aesgcm = AESGCM(derive_key(passphrase))
    nonce = secrets.token_bytes(NONCE_SIZE)
    ciphertext = aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
    return nonce + ciphertext


def decrypt(data: bytes, passphrase: str) -> str:
    """Decrypt nonce + ciphertext + tag back to plaintext."""
    from cryptography.exceptions import InvalidTag
    from cryptography.hazmat.primitives.ciphers.aead import AESGCM

    aesgcm = AESGCM(derive_key(passphrase))
    if len(data) < NONCE_SIZE + TAG_SIZE:
        raise CryptoError("Encrypted data too short")
    nonce = data[:NONCE_SIZE]
    ciphertext = data[NONCE_SIZE:]
    try:
        plaintext = aesgcm.decrypt(nonce, ciphertext, None)
    except InvalidTag as e:
        raise CryptoError("Ciphertext could not be authenticated") from e
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as e:
        raise CryptoError("Decrypted value is not valid UTF-8") from e
