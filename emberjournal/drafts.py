# -*- coding: utf-8 -*-
"""Turning a session recording or transcript into a journal entry.

The generative model call lives behind :class:`DraftGenerator`. This module
owns the response contract (:data:`RESPONSE_SCHEMA`), parsing of the raw
response, and construction of the new, still unencrypted, entry.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Protocol, Union
import json
import logging
import uuid

from .errors import DraftError
from .models import JournalDraft, JournalEntry

logger = logging.getLogger(__name__)

AUDIO_DURATION_LABEL = "Session"
TEXT_DURATION_LABEL = "10 mins"

INSIGHTS_RANGE = (3, 5)
MOOD_TAG_COUNT = 3

SYSTEM_INSTRUCTION = """
You are Ember, an empathetic AI companion.
Your goal is to listen to a therapy session recording (or read a transcript) and write a
personal journal entry FROM THE PERSPECTIVE OF THE PATIENT/CLIENT.

Guidelines:
- Voice: First-person ("I felt...", "I realized...").
- Tone: Reflective, vulnerable, honest, and constructive.
- Content: Don't just transcribe. Synthesize. Mention what the therapist helped "me" see.
- Avoid: Robotic phrasing like "In this session we discussed."
- Length: 300-500 words.
"""

RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "journalContent": {"type": "string"},
        "insights": {"type": "array", "items": {"type": "string"}},
        "moodTags": {"type": "array", "items": {"type": "string"}},
        "transcript": {"type": "string"},
    },
    "required": ["title", "journalContent", "insights", "moodTags"],
}


class DraftGenerator(Protocol):
    async def from_audio(self, data: bytes, mime_type: str) -> JournalDraft:
        ...

    async def from_text(self, transcript: str) -> JournalDraft:
        ...


def _string_list(payload: Mapping[str, Any], key: str) -> List[str]:
    value = payload.get(key)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise DraftError(f"'{key}' must be a list of strings")
    return list(value)


def parse_draft(payload: Union[str, Mapping[str, Any]]) -> JournalDraft:
    """Validate a generator response and return it as a JournalDraft.

    Item counts outside the requested ranges are accepted with a warning;
    missing keys and wrong types raise DraftError.
    """
    if isinstance(payload, str):
        if not payload.strip():
            raise DraftError("No response generated")
        try:
            payload = json.loads(payload)
        except ValueError as exc:
            raise DraftError("Response is not valid JSON") from exc
    if not isinstance(payload, Mapping):
        raise DraftError("Response is not a JSON object")

    for key in ("title", "journalContent"):
        if not isinstance(payload.get(key), str):
            raise DraftError(f"'{key}' must be a string")
    insights = _string_list(payload, "insights")
    mood_tags = _string_list(payload, "moodTags")

    lo, hi = INSIGHTS_RANGE
    if not lo <= len(insights) <= hi:
        logger.warning("Draft has %d insights, expected %d-%d", len(insights), lo, hi)
    if len(mood_tags) != MOOD_TAG_COUNT:
        logger.warning("Draft has %d mood tags, expected %d", len(mood_tags), MOOD_TAG_COUNT)

    transcript = payload.get("transcript")
    return JournalDraft(
        title=payload["title"],
        content=payload["journalContent"],
        insights=insights,
        mood_tags=mood_tags,
        transcript=transcript if isinstance(transcript, str) and transcript else None,
    )


def draft_to_entry(
    draft: JournalDraft,
    *,
    duration: str,
    transcript: Optional[str] = None,
    now: Optional[datetime] = None,
) -> JournalEntry:
    """Create a new entry from *draft* with a fresh id and timestamp.

    An explicit *transcript* takes precedence over the one in the draft.
    """
    stamp = (now or datetime.now(timezone.utc)).isoformat()
    return JournalEntry(
        id=str(uuid.uuid4()),
        date=stamp,
        title=draft.title,
        content=draft.content,
        insights=list(draft.insights),
        mood_tags=list(draft.mood_tags),
        duration=duration,
        transcript=transcript if transcript is not None else draft.transcript,
    )


async def process_audio(generator: DraftGenerator, data: bytes, mime_type: str) -> JournalEntry:
    draft = await generator.from_audio(data, mime_type)
    return draft_to_entry(draft, duration=AUDIO_DURATION_LABEL)


async def process_text(generator: DraftGenerator, transcript: str) -> JournalEntry:
    """Build an entry from a transcript; the transcript itself is kept on the entry."""
    if not transcript.strip():
        raise DraftError("Transcript is empty")
    draft = await generator.from_text(transcript)
    return draft_to_entry(draft, duration=TEXT_DURATION_LABEL, transcript=transcript)
