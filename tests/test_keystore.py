"""
Unit tests for key material handling: JWK serialization and the KeyStore.
"""
import asyncio
import base64
import json

import pytest

from emberjournal.crypto import KEY_LEN, deserialize_key, generate_key_material, serialize_key
from emberjournal.errors import KeyStorageError
from emberjournal.keystore import KEY_STORAGE_PREFIX, JsonFileStorage, KeyStore, MemoryStorage


class CountingStorage(MemoryStorage):
    """MemoryStorage that records how many times each key is written."""

    def __init__(self):
        super().__init__()
        self.writes = 0

    def set_item(self, key, value):
        self.writes += 1
        super().set_item(key, value)


def test_serialized_key_is_a_symmetric_jwk():
    material = generate_key_material()
    jwk = json.loads(serialize_key(material))

    assert jwk["kty"] == "oct"
    assert jwk["alg"] == "A256GCM"
    assert jwk["key_ops"] == ["encrypt", "decrypt"]
    assert "=" not in jwk["k"]
    assert deserialize_key(serialize_key(material)) == material


@pytest.mark.parametrize(
    "blob",
    [
        "not json",
        "[]",
        json.dumps({"kty": "RSA", "k": "abc"}),
        json.dumps({"kty": "oct"}),
        json.dumps({"kty": "oct", "k": base64.urlsafe_b64encode(b"short").decode()}),
    ],
)
def test_deserialize_rejects_bad_material(blob):
    with pytest.raises(ValueError):
        deserialize_key(blob)


def test_get_or_create_key_persists_under_prefixed_name(keys, storage):
    key = asyncio.run(keys.get_or_create_key("u1"))

    stored = storage.get_item(f"{KEY_STORAGE_PREFIX}u1")
    assert stored is not None
    assert len(key.material) == KEY_LEN
    assert deserialize_key(stored) == key.material


def test_key_is_stable_between_calls(keys):
    first = asyncio.run(keys.get_or_create_key("u1"))
    second = asyncio.run(keys.get_or_create_key("u1"))
    assert first.material == second.material


def test_users_get_distinct_keys(keys, storage):
    a = asyncio.run(keys.get_or_create_key("alice"))
    b = asyncio.run(keys.get_or_create_key("bob"))

    assert a.material != b.material
    assert set(storage.items) == {f"{KEY_STORAGE_PREFIX}alice", f"{KEY_STORAGE_PREFIX}bob"}


def test_corrupt_material_is_replaced(storage, keys):
    storage.set_item(f"{KEY_STORAGE_PREFIX}u1", "{corrupted")

    key = asyncio.run(keys.get_or_create_key("u1"))

    assert deserialize_key(storage.get_item(f"{KEY_STORAGE_PREFIX}u1")) == key.material


def test_concurrent_first_use_creates_one_key():
    storage = CountingStorage()
    keys = KeyStore(storage)

    async def grab():
        return await asyncio.gather(*(keys.get_or_create_key("new-user") for _ in range(10)))

    results = asyncio.run(grab())

    assert len({k.material for k in results}) == 1
    assert storage.writes == 1


def test_clear_removes_key_and_is_idempotent(keys, storage):
    old = asyncio.run(keys.get_or_create_key("u1"))

    keys.clear("u1")
    keys.clear("u1")
    assert storage.get_item(f"{KEY_STORAGE_PREFIX}u1") is None

    new = asyncio.run(keys.get_or_create_key("u1"))
    assert new.material != old.material


def test_clear_absent_user_is_not_an_error(keys):
    keys.clear("nobody")


def test_json_file_storage_survives_reopen(tmp_path):
    path = tmp_path / "nested" / "keys.json"
    first = KeyStore(JsonFileStorage(path))
    key = asyncio.run(first.get_or_create_key("u1"))

    second = KeyStore(JsonFileStorage(path))
    assert asyncio.run(second.get_or_create_key("u1")).material == key.material

    second.clear("u1")
    assert JsonFileStorage(path).get_item(f"{KEY_STORAGE_PREFIX}u1") is None


def test_clear_drops_the_user_lock(keys):
    asyncio.run(keys.get_or_create_key("u1"))
    asyncio.run(keys.get_or_create_key("u2"))

    keys.clear("u1")

    assert "u1" not in keys._locks
    assert "u2" in keys._locks


@pytest.mark.parametrize("content", ["{truncated", "not json", "[1, 2]", "\"a string\""])
def test_corrupt_key_file_is_moved_aside_and_regenerated(tmp_path, content):
    path = tmp_path / "keys.json"
    path.write_text(content, encoding="utf-8")
    keys = KeyStore(JsonFileStorage(path))

    key = asyncio.run(keys.get_or_create_key("u1"))

    assert (tmp_path / "keys.json.corrupt").read_text(encoding="utf-8") == content
    stored = JsonFileStorage(path).get_item(f"{KEY_STORAGE_PREFIX}u1")
    assert deserialize_key(stored) == key.material
    assert asyncio.run(keys.get_or_create_key("u1")).material == key.material


def test_json_file_storage_reports_os_errors(tmp_path):
    path = tmp_path / "keys.json"
    path.mkdir()

    with pytest.raises(KeyStorageError):
        JsonFileStorage(path).get_item("anything")
