"""
存储端口测试：InMemoryStorage / SqliteStorage / open_storage 能力检查
"""

import pytest

from config.settings import StorageSettings
from src.profiles import InMemoryStorage, ProfileStore, SqliteStorage, open_storage


@pytest.fixture(params=["memory", "sqlite"])
def kv(request, tmp_path):
    if request.param == "memory":
        s = InMemoryStorage()
    else:
        s = SqliteStorage(tmp_path / "kv" / "profiles.db")
    yield s
    s.close()


class TestStoragePort:
    def test_get_missing(self, kv):
        assert kv.get("nope") is None

    def test_set_overwrites(self, kv):
        kv.set("k", "1")
        kv.set("k", "2")
        assert kv.get("k") == "2"
        assert kv.keys() == ["k"]

    def test_remove_missing_is_silent(self, kv):
        kv.remove("nope")
        kv.set("k", "v")
        kv.remove("k")
        assert kv.get("k") is None

    def test_keys_is_snapshot(self, kv):
        for k in ("a", "b", "c"):
            kv.set(k, k)
        keys = kv.keys()
        for k in keys:
            kv.remove(k)
        assert keys == ["a", "b", "c"]
        assert kv.keys() == []


def test_sqlite_persists_across_reopen(tmp_path, clock):
    db = tmp_path / "profiles.db"
    first = SqliteStorage(db)
    h = ProfileStore(first, clock=clock).store('{"name":"Ann"}')
    first.close()

    second = SqliteStorage(db)
    try:
        assert ProfileStore(second, clock=clock).retrieve(h) == '{"name":"Ann"}'
    finally:
        second.close()


class TestOpenStorage:
    def test_disabled(self):
        assert open_storage(StorageSettings(enabled=False)) is None

    def test_memory(self):
        assert isinstance(open_storage(StorageSettings(backend="memory")), InMemoryStorage)

    def test_sqlite(self, tmp_path):
        s = open_storage(StorageSettings(backend="sqlite", db_path=str(tmp_path / "p.db")))
        try:
            assert isinstance(s, SqliteStorage)
        finally:
            s.close()

    def test_unknown_backend(self):
        assert open_storage(StorageSettings(backend="localstorage")) is None

    def test_unopenable_sqlite(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        # 父路径是文件，无法创建目录
        assert open_storage(StorageSettings(backend="sqlite", db_path=str(blocker / "p.db"))) is None
