# -*- coding: utf-8 -*-
"""Field-level encryption for journal text.

An envelope is ``base64(iv || ciphertext)`` where *iv* is a fresh 12-byte
nonce and *ciphertext* is the AES-GCM output including its tag. The result
is a single ASCII string that fits a plain text column.
"""
from __future__ import annotations

import base64

from cryptography.exceptions import InvalidTag

from .crypto import NONCE_LEN, aesgcm_decrypt, aesgcm_encrypt
from .errors import DecryptFailure, DecryptionError, EncryptionError, KeyStorageError
from .keystore import KeyStore


def pack_envelope(nonce: bytes, ciphertext: bytes) -> str:
    return base64.b64encode(nonce + ciphertext).decode("ascii")


def unpack_envelope(envelope: str) -> tuple[bytes, bytes]:
    """Split an envelope into (nonce, ciphertext) or raise DecryptionError."""
    try:
        combined = base64.b64decode(envelope, validate=True)
    except ValueError as exc:
        raise DecryptionError(DecryptFailure.INVALID_ENCODING, "Value is not base64") from exc
    if len(combined) < NONCE_LEN:
        raise DecryptionError(
            DecryptFailure.TOO_SHORT,
            f"Decoded value is {len(combined)} bytes, shorter than the {NONCE_LEN}-byte IV",
        )
    return combined[:NONCE_LEN], combined[NONCE_LEN:]


class FieldCipher:
    """Encrypts and decrypts single text fields with the owner's key."""

    def __init__(self, keys: KeyStore) -> None:
        self.keys = keys

    async def encrypt(self, plaintext: str, user_id: str) -> str:
        try:
            key = await self.keys.get_or_create_key(user_id)
            nonce, ct = aesgcm_encrypt(key.material, plaintext.encode("utf-8"))
        except (KeyStorageError, OverflowError, ValueError) as exc:
            raise EncryptionError("Failed to encrypt data") from exc
        return pack_envelope(nonce, ct)

    async def decrypt(self, envelope: str, user_id: str) -> str:
        key = await self.keys.get_or_create_key(user_id)
        nonce, ct = unpack_envelope(envelope)
        try:
            data = aesgcm_decrypt(key.material, nonce, ct)
        except InvalidTag as exc:
            raise DecryptionError(
                DecryptFailure.AUTHENTICATION_FAILED,
                "Data is corrupted or was encrypted with a different key",
            ) from exc
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecryptionError(DecryptFailure.INVALID_ENCODING, "Plaintext is not UTF-8") from exc
