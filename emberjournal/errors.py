# -*- coding: utf-8 -*-
"""Error taxonomy for Ember Journal.

Every failure the package raises derives from :class:`JournalError`.
Decryption failures carry a closed :class:`DecryptFailure` kind so callers
branch on the enum rather than on message text.
"""
from __future__ import annotations

from enum import Enum


class JournalError(Exception):
    """Base class for all Ember Journal errors."""


class NotAuthenticatedError(JournalError):
    """No current user could be resolved from the identity provider."""


class EncryptionError(JournalError):
    """A field could not be encrypted; the entry must not be persisted."""


class DecryptFailure(str, Enum):
    INVALID_ENCODING = "invalid_encoding"
    TOO_SHORT = "too_short"
    AUTHENTICATION_FAILED = "authentication_failed"


class DecryptionError(JournalError):
    """A value is not a valid envelope for the user's key."""

    def __init__(self, kind: DecryptFailure, message: str = "") -> None:
        super().__init__(message or kind.value)
        self.kind = kind


class KeyStorageError(JournalError):
    """The durable key-value storage could not be read or written."""


class RecordStoreError(JournalError):
    """Raised by record store implementations when the backend fails."""


class PersistenceError(JournalError):
    """The record store rejected a write."""


class QueryError(JournalError):
    """The record store failed to answer a single-record read."""


class DraftError(JournalError):
    """A draft-generation response was missing fields or malformed."""
