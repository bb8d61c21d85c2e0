# -*- coding: utf-8 -*-
"""Mapping between decrypted entries and persisted records.

Title, content, transcript and every insight are encrypted as separate
envelopes. Id, date, duration and mood tags are stored as-is.

Reads are lenient: a sensitive field that does not decrypt, or whose key
cannot be loaded, is returned as stored. Records written before encryption
existed hold plaintext, and no flag tells them apart from a damaged envelope.
"""
from __future__ import annotations

from typing import List, Optional
import asyncio
import logging

from .cipher import FieldCipher
from .errors import DecryptionError, KeyStorageError
from .models import JournalEntry, PersistedRecord

logger = logging.getLogger(__name__)


class EntryCodec:
    def __init__(self, cipher: FieldCipher) -> None:
        self.cipher = cipher

    async def to_persisted(self, entry: JournalEntry, user_id: str) -> PersistedRecord:
        """Encrypt the sensitive fields of *entry* for *user_id*.

        Raises EncryptionError if any field fails; no record is produced then.
        """
        insights = list(entry.insights or [])
        plain: List[str] = [entry.title or "", entry.content or "", *insights]
        if entry.transcript:
            plain.append(entry.transcript)

        sealed = await asyncio.gather(*(self.cipher.encrypt(v, user_id) for v in plain))

        n = len(insights)
        transcript = sealed[2 + n] if entry.transcript else None
        return PersistedRecord(
            id=entry.id,
            user_id=user_id,
            date=entry.date,
            title=sealed[0],
            content=sealed[1],
            insights=list(sealed[2:2 + n]),
            mood_tags=list(entry.mood_tags or []),
            duration=entry.duration or None,
            transcript=transcript,
        )

    async def to_domain(self, record: PersistedRecord, user_id: str) -> JournalEntry:
        """Decrypt *record* field by field, falling back to stored text."""
        insights = list(record.insights or [])
        fields = [record.title, record.content, record.transcript, *insights]
        title, content, transcript, *opened = await asyncio.gather(
            *(self._open(v, user_id) for v in fields)
        )
        return JournalEntry(
            id=record.id,
            date=record.date,
            title=title,
            content=content,
            insights=opened,
            mood_tags=list(record.mood_tags or []),
            duration=record.duration or "",
            transcript=transcript or None,
        )

    async def _open(self, value: Optional[str], user_id: str) -> str:
        if not value:
            return ""
        try:
            return await self.cipher.decrypt(value, user_id)
        except DecryptionError as exc:
            # legacy plaintext or a damaged envelope; the two look the same
            logger.debug("Field not decryptable (%s); using stored text", exc.kind.value)
            return value
        except KeyStorageError as exc:
            logger.warning("Key unavailable for user %s (%s); using stored text", user_id, exc)
            return value
