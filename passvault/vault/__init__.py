"""
Encryption boundary for sensitive record fields.

Public API:
    encrypt(plaintext, passphrase)  → nonce + ciphertext bytes
    decrypt(data, passphrase)       → plaintext
    derive_key(passphrase)          → 32-byte AES key (memoised)
"""

from __future__ import annotations

from passvault.vault.crypto import decrypt, derive_key, encrypt, generate_passphrase

__all__ = ["decrypt", "derive_key", "encrypt", "generate_passphrase"]
