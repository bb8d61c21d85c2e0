# -*- coding: utf-8 -*-
"""Ember Journal package.

Modules:
    crypto:    AES-GCM primitives and JWK key material.
    keystore:  Per-user key lifecycle over durable key-value storage.
    cipher:    Field envelopes (IV + ciphertext, base64).
    codec:     Entry <-> persisted record mapping with legacy fallback.
    db:        SQLite schema + async record store.
    identity:  Current-user provider.
    journal:   Save / list / get / search facade.
    drafts:    Draft generation contract and entry construction.
    config:    JSON config, logging setup and wiring.
"""

__all__ = [
    "cipher",
    "codec",
    "config",
    "crypto",
    "db",
    "drafts",
    "identity",
    "journal",
    "keystore",
]
