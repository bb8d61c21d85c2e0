# -*- coding: utf-8 -*-
"""Crypto primitives and key material handling for Ember Journal.

This module encapsulates *stateless* AES-GCM helpers and the JSON Web Key
representation used to persist a user's key. It does **not** perform any
storage I/O; see :mod:`emberjournal.keystore` for that.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Tuple
import base64
import json
import secrets

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

# ---------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------

KEY_BITS = 256
KEY_LEN = KEY_BITS // 8
NONCE_LEN = 12

JWK_ALG = "A256GCM"
JWK_KEY_OPS = ["encrypt", "decrypt"]


# ---------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class EncryptionKey:
    """A user's symmetric AES-GCM key."""

    user_id: str
    material: bytes = field(repr=False)


# ---------------------------------------------------------------------
# AEAD helpers
# ---------------------------------------------------------------------

def generate_key_material() -> bytes:
    """Return fresh random key bytes suitable for AES-256-GCM."""
    return AESGCM.generate_key(bit_length=KEY_BITS)

def aesgcm_encrypt(key: bytes, plaintext: bytes) -> Tuple[bytes, bytes]:
    """Encrypt *plaintext* with AES-GCM; return (nonce, ciphertext)."""
    nonce = secrets.token_bytes(NONCE_LEN)
    ct = AESGCM(key).encrypt(nonce, plaintext, None)
    return nonce, ct

def aesgcm_decrypt(key: bytes, nonce: bytes, ciphertext: bytes) -> bytes:
    """Decrypt AES-GCM *ciphertext* with *nonce*; return plaintext."""
    return AESGCM(key).decrypt(nonce, ciphertext, None)


# ---------------------------------------------------------------------
# JWK serialization
# ---------------------------------------------------------------------

def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")

def _b64url_decode(text: str) -> bytes:
    padded = text + "=" * (-len(text) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii"))

def key_to_jwk(material: bytes) -> Dict[str, object]:
    """Return the exportable JWK form of *material*."""
    return {
        "kty": "oct",
        "k": _b64url_encode(material),
        "alg": JWK_ALG,
        "ext": True,
        "key_ops": list(JWK_KEY_OPS),
    }

def serialize_key(material: bytes) -> str:
    """Serialize key bytes to the JSON string kept in key storage."""
    return json.dumps(key_to_jwk(material))

def deserialize_key(blob: str) -> bytes:
    """Parse a stored JWK string back into key bytes.

    Raises ValueError for anything that is not a 256-bit symmetric JWK.
    """
    data = json.loads(blob)
    if not isinstance(data, dict):
        raise ValueError("Key material is not a JSON object")
    if data.get("kty") != "oct":
        raise ValueError("Key material is not a symmetric JWK")
    k = data.get("k")
    if not isinstance(k, str) or not k:
        raise ValueError("Key material has no 'k' member")
    # binascii.Error and UnicodeEncodeError are both ValueErrors
    material = _b64url_decode(k)
    if len(material) != KEY_LEN:
        raise ValueError(f"Key material must be {KEY_LEN} bytes, got {len(material)}")
    return material
