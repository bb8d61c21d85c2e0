# -*- coding: utf-8 -*-
"""Journal persistence facade.

This module provides the public API used by front ends. All operations act
on behalf of the currently signed-in user and hand field encryption to
:class:`~emberjournal.codec.EntryCodec`.
"""
from __future__ import annotations

from typing import Iterable, List, Optional
import asyncio
import logging

from .codec import EntryCodec
from .db import RecordStore
from .errors import NotAuthenticatedError, PersistenceError, QueryError, RecordStoreError
from .identity import IdentityProvider, LocalSession
from .keystore import KeyStore
from .models import JournalEntry

logger = logging.getLogger(__name__)


class JournalStore:
    def __init__(self, identity: IdentityProvider, codec: EntryCodec, records: RecordStore) -> None:
        self.identity = identity
        self.codec = codec
        self.records = records

    async def _require_user(self) -> str:
        user_id = await self.identity.current_user_id()
        if not user_id:
            raise NotAuthenticatedError("User not authenticated")
        return user_id

    async def save(self, entry: JournalEntry) -> None:
        """Encrypt and insert *entry* for the current user.

        Raises EncryptionError before anything is written if a field fails to
        encrypt, and PersistenceError if the store rejects the insert.
        """
        user_id = await self._require_user()
        record = await self.codec.to_persisted(entry, user_id)
        try:
            await self.records.insert(record)
        except RecordStoreError as exc:
            logger.error("Failed to save entry %s: %s", entry.id, exc)
            raise PersistenceError("Failed to save entry") from exc
        logger.info("Saved entry %s", entry.id)

    async def list_all(self) -> List[JournalEntry]:
        """Return every entry of the current user, newest first.

        A failed query yields an empty list rather than an error.
        """
        user_id = await self._require_user()
        try:
            rows = await self.records.select_by_owner(user_id)
        except RecordStoreError:
            logger.exception("Failed to load entries")
            return []
        return list(await asyncio.gather(*(self.codec.to_domain(r, user_id) for r in rows)))

    async def get_by_id(self, entry_id: str) -> Optional[JournalEntry]:
        """Return one entry of the current user, or None if there is no such row."""
        user_id = await self._require_user()
        try:
            row = await self.records.select_by_id(user_id, entry_id)
        except RecordStoreError as exc:
            logger.error("Failed to get entry %s: %s", entry_id, exc)
            raise QueryError(f"Failed to get entry {entry_id}") from exc
        if row is None:
            return None
        return await self.codec.to_domain(row, user_id)

    async def search(self, term: str) -> List[JournalEntry]:
        """Return the current user's entries matching *term* (see :func:`matches`)."""
        return search_entries(await self.list_all(), term)


# ---------------------------------------------------------------------
# Search (client-side, over decrypted entries)
# ---------------------------------------------------------------------

def matches(entry: JournalEntry, term: str) -> bool:
    """Case-insensitive keyword match on title/content, or substring on the date."""
    needle = term.lower()
    return (
        needle in entry.title.lower()
        or needle in entry.content.lower()
        or term in entry.date
    )

def search_entries(entries: Iterable[JournalEntry], term: str) -> List[JournalEntry]:
    term = term.strip()
    if not term:
        return list(entries)
    return [e for e in entries if matches(e, term)]


# ---------------------------------------------------------------------
# Sign-out
# ---------------------------------------------------------------------

async def purge_user_key(identity: IdentityProvider, keys: KeyStore) -> Optional[str]:
    """Clear the current user's key; return that user's id, or None if nobody is signed in.

    Entries encrypted under the purged key cannot be read with the key the
    next use creates.
    """
    user_id = await identity.current_user_id()
    if user_id:
        keys.clear(user_id)
    return user_id or None


async def sign_out(session: LocalSession, keys: KeyStore) -> None:
    """Purge the signed-in user's key, then end the local session."""
    await purge_user_key(session, keys)
    session.sign_out()
