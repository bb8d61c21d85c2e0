# -*- coding: utf-8 -*-
"""Configuration, logging setup and wiring for Ember Journal.

Configuration is a JSON file in the platform config directory, merged over
:data:`DEFAULT_CONFIG`. ``EMBERJOURNAL_DB`` and ``EMBERJOURNAL_LOG_LEVEL``
override the file.
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional
import json
import logging
import os

from .cipher import FieldCipher
from .codec import EntryCodec
from .db import SqliteRecordStore
from .identity import IdentityProvider
from .journal import JournalStore
from .keystore import JsonFileStorage, KeyStore

APP_NAME = "emberjournal"

DEFAULT_CONFIG: Dict[str, object] = {
    "db_path": "ember_journal.sqlite3",
    "key_storage_file": "keys.json",
    "log_level": "INFO",
}

ENV_OVERRIDES = {
    "db_path": "EMBERJOURNAL_DB",
    "log_level": "EMBERJOURNAL_LOG_LEVEL",
}


# ---------------------------------------------------------------------
# Config management (JSON on disk)
# ---------------------------------------------------------------------

def config_dir() -> Path:
    """Return the config directory path for this platform."""
    if os.name == "nt":
        base = os.environ.get("APPDATA", os.path.expanduser("~\\AppData\\Roaming"))
        return Path(base) / APP_NAME
    base = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return Path(base) / APP_NAME

def _config_path() -> Path:
    return config_dir() / "config.json"

def load_config() -> Dict[str, object]:
    """Load the merged configuration (defaults + file + environment)."""
    path = _config_path()
    merged = dict(DEFAULT_CONFIG)
    if path.exists():
        with path.open("r", encoding="utf-8") as f:
            merged.update(json.load(f))
    else:
        save_config(DEFAULT_CONFIG)
    for key, var in ENV_OVERRIDES.items():
        if os.environ.get(var):
            merged[key] = os.environ[var]
    return merged

def save_config(cfg: Dict[str, object]) -> None:
    """Persist *cfg* to the JSON config file."""
    config_dir().mkdir(parents=True, exist_ok=True)
    with _config_path().open("w", encoding="utf-8") as f:
        json.dump(cfg, f, indent=2)


# ---------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------

def setup_logging(cfg: Optional[Dict[str, object]] = None) -> None:
    level = str((cfg or DEFAULT_CONFIG).get("log_level", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------

def resolve_path(path_value: object) -> Path:
    """Relative paths are taken relative to the config directory."""
    path = Path(str(path_value)).expanduser()
    return path if path.is_absolute() else config_dir() / path

def build_key_store(cfg: Dict[str, object]) -> KeyStore:
    return KeyStore(JsonFileStorage(resolve_path(cfg["key_storage_file"])))

async def open_journal(
    identity: IdentityProvider,
    cfg: Optional[Dict[str, object]] = None,
    keys: Optional[KeyStore] = None,
) -> JournalStore:
    """Build a ready-to-use JournalStore, creating the database if needed."""
    cfg = cfg if cfg is not None else load_config()
    keys = keys or build_key_store(cfg)
    db_path = resolve_path(cfg["db_path"])
    db_path.parent.mkdir(parents=True, exist_ok=True)
    records = SqliteRecordStore(str(db_path))
    await records.init()
    return JournalStore(identity, EntryCodec(FieldCipher(keys)), records)
