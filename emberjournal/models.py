# -*- coding: utf-8 -*-
"""Plain data structures shared across the package."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class JournalEntry:
    """A decrypted journal entry as the application sees it."""

    id: str
    date: str
    title: str
    content: str
    insights: List[str] = field(default_factory=list)
    mood_tags: List[str] = field(default_factory=list)
    duration: str = ""
    transcript: Optional[str] = None


@dataclass
class PersistedRecord:
    """A journal row as stored: sensitive fields hold envelopes or legacy plaintext."""

    id: str
    user_id: str
    date: str
    title: str
    content: str
    insights: List[str] = field(default_factory=list)
    mood_tags: List[str] = field(default_factory=list)
    duration: Optional[str] = None
    transcript: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class JournalDraft:
    """Unencrypted candidate fields produced by the draft generator."""

    title: str
    content: str
    insights: List[str]
    mood_tags: List[str]
    transcript: Optional[str] = None
