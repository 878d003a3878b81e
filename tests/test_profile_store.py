"""
ProfileStore 单元测试：store / retrieve / lastAccessed 刷新 / 元数据损坏 / 无存储介质
"""

import json
import re

import pytest

from src.profiles import InMemoryStorage, ProfileStore, StorageUnavailableError
from src.profiles.profile_store import meta_key, parse_metadata, record_key
from src.profiles.short_hash import generate_short_hash
from src.profiles.errors import CorruptedMetadataError


class TestStore:
    def test_returns_six_char_base36_hash(self, store):
        h = store.store('{"name":"Ann"}')
        assert re.fullmatch(r"[0-9a-z]{1,6}", h)

    def test_hash_input_is_payload_plus_timestamp(self, store, clock):
        payload = '{"name":"Ann"}'
        h = store.store(payload)
        assert h == generate_short_hash(payload + str(clock.now))

    def test_writes_record_and_metadata(self, store, storage, clock):
        h = store.store('{"name":"Ann"}')
        assert storage.get(record_key(h)) == '{"name":"Ann"}'
        meta = json.loads(storage.get(meta_key(h)))
        assert meta == {"created": str(clock.now), "lastAccessed": str(clock.now), "hash": h}

    def test_same_payload_different_time_gives_different_keys(self, store, clock):
        h1 = store.store('{"name":"Ann"}')
        clock.advance(1)
        h2 = store.store('{"name":"Ann"}')
        assert h1 != h2

    def test_collision_overwrites(self, storage, clock):
        store = ProfileStore(storage, clock=clock)
        h1 = store.store("first")
        # 同一时刻、同一输入 → 同一哈希，后写覆盖
        h2 = store.store("first")
        assert h1 == h2
        assert storage.keys().count(record_key(h1)) == 1

    def test_without_storage_raises(self, clock):
        store = ProfileStore(None, clock=clock)
        assert store.available is False
        with pytest.raises(StorageUnavailableError):
            store.store("{}")


class TestRetrieve:
    def test_round_trip(self, store, sample_profile_json):
        h = store.store(sample_profile_json)
        assert store.retrieve(h) == sample_profile_json

    def test_ann_scenario(self, store):
        h = store.store('{"name":"Ann"}')
        assert len(h) <= 6
        assert store.retrieve(h) == '{"name":"Ann"}'

    def test_unknown_hash_returns_none(self, store):
        assert store.retrieve("zzzzzz") is None

    def test_bumps_last_accessed(self, store, clock):
        h = store.store("{}")
        before = store.get_metadata(h).last_accessed
        clock.advance(5000)
        store.retrieve(h)
        meta = store.get_metadata(h)
        assert meta.last_accessed == before + 5000
        assert meta.created == before

    def test_last_accessed_never_moves_backwards(self, store, clock):
        h = store.store("{}")
        created = store.get_metadata(h).last_accessed
        clock.advance(-10_000)
        store.retrieve(h)
        assert store.get_metadata(h).last_accessed == created

    def test_corrupt_metadata_still_returns_payload(self, store, storage):
        h = store.store('{"name":"Ann"}')
        storage.set(meta_key(h), "not json{")
        assert store.retrieve(h) == '{"name":"Ann"}'
        # 损坏的元数据保持原样，不被改写
        assert storage.get(meta_key(h)) == "not json{"

    def test_missing_metadata_still_returns_payload(self, store, storage):
        h = store.store('{"name":"Ann"}')
        storage.remove(meta_key(h))
        assert store.retrieve(h) == '{"name":"Ann"}'
        assert storage.get(meta_key(h)) is None

    def test_non_object_metadata_is_skipped(self, store, storage):
        h = store.store("{}")
        storage.set(meta_key(h), "[1, 2]")
        assert store.retrieve(h) == "{}"
        assert storage.get(meta_key(h)) == "[1, 2]"

    def test_touch_keeps_unknown_metadata_fields(self, store, storage, clock):
        h = store.store("{}")
        data = json.loads(storage.get(meta_key(h)))
        data["source"] = "form"
        storage.set(meta_key(h), json.dumps(data))
        clock.advance(5000)
        store.retrieve(h)
        updated = json.loads(storage.get(meta_key(h)))
        assert updated["source"] == "form"
        assert updated["created"] == data["created"]
        assert updated["lastAccessed"] == str(clock.now)
        assert updated["hash"] == h

    def test_metadata_read_error_still_returns_payload(self, clock):
        class FlakyMetaStorage(InMemoryStorage):
            def get(self, key):
                if key.startswith("profile_meta_"):
                    raise OSError("disk I/O error")
                return super().get(key)

        store = ProfileStore(FlakyMetaStorage(), clock=clock)
        h = store.store('{"name":"Ann"}')
        assert store.retrieve(h) == '{"name":"Ann"}'

    def test_without_storage_raises(self, clock):
        with pytest.raises(StorageUnavailableError):
            ProfileStore(None, clock=clock).retrieve("abc")


class TestParseMetadata:
    def test_hash_comes_from_key(self):
        meta = parse_metadata("profile_meta_abc123", json.dumps({"created": "1", "lastAccessed": "2", "hash": "zzz"}))
        assert meta.hash == "abc123"
        assert (meta.created, meta.last_accessed) == (1, 2)

    def test_numeric_fields_accepted(self):
        meta = parse_metadata("profile_meta_x", json.dumps({"created": 10, "lastAccessed": 20}))
        assert (meta.created, meta.last_accessed) == (10, 20)

    def test_missing_last_accessed_is_zero(self):
        meta = parse_metadata("profile_meta_x", json.dumps({"hash": "x"}))
        assert meta.last_accessed == 0

    @pytest.mark.parametrize("raw", [None, "", "{oops", "42", '"text"', '{"lastAccessed": "soon"}', '{"lastAccessed": true}'])
    def test_corrupt_values_raise(self, raw):
        with pytest.raises(CorruptedMetadataError):
            parse_metadata("profile_meta_x", raw)


def test_store_works_with_any_storage_port(clock):
    storage = InMemoryStorage({"unrelated": "value"})
    store = ProfileStore(storage, clock=clock)
    h = store.store("payload")
    assert store.retrieve(h) == "payload"
    assert storage.get("unrelated") == "value"
