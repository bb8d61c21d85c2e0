"""
Pytest configuration for the Ember Journal test suite.

Shared fixtures build each layer on top of the previous one so a test can
ask for exactly the piece it exercises:
- `storage` / `keys`: in-memory key storage and the KeyStore over it.
- `cipher` / `codec`: field encryption and entry mapping for those keys.
- `records`: a SQLite record store in a temporary directory, already initialized.
- `session` / `journal`: a signed-in session and the JournalStore facade.
"""
import asyncio

import pytest

from emberjournal.cipher import FieldCipher
from emberjournal.codec import EntryCodec
from emberjournal.db import SqliteRecordStore
from emberjournal.identity import LocalSession
from emberjournal.journal import JournalStore
from emberjournal.keystore import KeyStore, MemoryStorage
from emberjournal.models import JournalEntry


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def keys(storage):
    return KeyStore(storage)


@pytest.fixture
def cipher(keys):
    return FieldCipher(keys)


@pytest.fixture
def codec(cipher):
    return EntryCodec(cipher)


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "journal.sqlite3")


@pytest.fixture
def records(db_path):
    store = SqliteRecordStore(db_path)
    asyncio.run(store.init())
    return store


@pytest.fixture
def session():
    return LocalSession("u1")


@pytest.fixture
def journal(session, codec, records):
    return JournalStore(session, codec, records)


@pytest.fixture
def sample_entry():
    """The entry used by the save-then-list scenario."""
    return JournalEntry(
        id="entry-1",
        date="2024-05-01T10:00:00+00:00",
        title="Session 1",
        content="I felt heard today.",
        insights=["Noticed a pattern"],
        mood_tags=["hopeful"],
        duration="45 mins",
    )
