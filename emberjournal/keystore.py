# -*- coding: utf-8 -*-
"""Per-user key lifecycle on top of a durable key-value storage.

The storage is injected. :class:`JsonFileStorage` keeps items in a JSON
document on disk (the local counterpart of a browser's ``localStorage``);
:class:`MemoryStorage` keeps them in a dict.
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Protocol, Union
import asyncio
import json
import logging
import os

from .crypto import EncryptionKey, deserialize_key, generate_key_material, serialize_key
from .errors import KeyStorageError

logger = logging.getLogger(__name__)

KEY_STORAGE_PREFIX = "ember_encryption_key_"


# ---------------------------------------------------------------------
# Storage backends
# ---------------------------------------------------------------------

class KeyValueStorage(Protocol):
    """Durable string-to-string storage."""

    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


class MemoryStorage:
    """In-process storage; contents vanish with the process."""

    def __init__(self, items: Optional[Dict[str, str]] = None) -> None:
        self.items: Dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class JsonFileStorage:
    """Storage persisted as a single JSON object in *path*.

    Every write rewrites the whole document through a temp file and an
    atomic rename so a crash never leaves a half-written file behind.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path).expanduser()

    def _load(self) -> Dict[str, str]:
        """Return the stored items.

        A document that is not a JSON object is treated as corrupted key
        material: it is moved aside and an empty mapping returned, so the
        next write replaces it. OS errors still raise KeyStorageError.
        """
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                raw = f.read()
        except OSError as exc:
            raise KeyStorageError(f"Could not read key storage at {self.path}") from exc
        try:
            data = json.loads(raw)
        except ValueError:
            data = None
        if not isinstance(data, dict):
            self._quarantine()
            return {}
        return data

    def _quarantine(self) -> None:
        backup = self.path.with_name(self.path.name + ".corrupt")
        logger.warning("Key storage at %s is corrupted; moved to %s", self.path, backup)
        try:
            os.replace(self.path, backup)
        except OSError as exc:
            raise KeyStorageError(f"Could not move aside corrupted key storage at {self.path}") from exc

    def _dump(self, data: Dict[str, str]) -> None:
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open("w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp, self.path)
        except OSError as exc:
            raise KeyStorageError(f"Could not write key storage at {self.path}") from exc

    def get_item(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._dump(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._dump(data)


# ---------------------------------------------------------------------
# Key store
# ---------------------------------------------------------------------

class KeyStore:
    """Holds at most one key per user; creates it lazily on first use."""

    def __init__(self, storage: KeyValueStorage, prefix: str = KEY_STORAGE_PREFIX) -> None:
        self._storage = storage
        self._prefix = prefix
        self._locks: Dict[str, asyncio.Lock] = {}

    def storage_key(self, user_id: str) -> str:
        return f"{self._prefix}{user_id}"

    async def get_or_create_key(self, user_id: str) -> EncryptionKey:
        """Return the user's key, generating and persisting one if needed.

        Stored material that fails to parse is replaced by a new key. Anything
        previously encrypted under the old key becomes unreadable.
        """
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        async with lock:
            storage_key = self.storage_key(user_id)
            stored = self._storage.get_item(storage_key)
            if stored is not None:
                try:
                    return EncryptionKey(user_id=user_id, material=deserialize_key(stored))
                except ValueError as exc:
                    logger.warning(
                        "Discarding unreadable key material for user %s (%s); generating a new key",
                        user_id,
                        exc,
                    )

            material = generate_key_material()
            self._storage.set_item(storage_key, serialize_key(material))
            logger.info("Generated encryption key for user %s", user_id)
            return EncryptionKey(user_id=user_id, material=material)

    def clear(self, user_id: str) -> None:
        """Delete the user's key material; a missing key is not an error."""
        self._storage.remove_item(self.storage_key(user_id))
        self._locks.pop(user_id, None)
        logger.info("Cleared encryption key for user %s", user_id)
