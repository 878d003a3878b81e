"""
Key-value 存储端口

KeyValueStorage — get/set/remove/keys 四个操作的抽象接口，ProfileStore 只依赖它。
InMemoryStorage — 进程内 dict，测试与 memory 后端使用。
SqliteStorage   — SQLite 持久化 KV，跨进程/重启复用。
"""

from __future__ import annotations

import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from threading import RLock
from typing import TYPE_CHECKING, Optional

from src.log import get_logger

if TYPE_CHECKING:
    from config.settings import StorageSettings

logger = get_logger(__name__)


class KeyValueStorage(ABC):
    """字符串 key → 字符串 value 的同步存储介质。"""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """返回 value；不存在返回 None。"""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """写入（覆盖）。"""

    @abstractmethod
    def remove(self, key: str) -> None:
        """删除；不存在时不报错。"""

    @abstractmethod
    def keys(self) -> list[str]:
        """当前所有 key 的快照，遍历期间删除不影响结果。"""

    def close(self) -> None:
        pass


class InMemoryStorage(KeyValueStorage):
    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})
        self._lock = RLock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._data)

    def __len__(self) -> int:
        return len(self._data)


class SqliteStorage(KeyValueStorage):
    """
    SQLite 持久化 KV。

    - 父目录不存在时自动创建。
    - 线程安全（check_same_thread=False + RLock）。
    - WAL 模式：并发写不阻塞读。
    """

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self._lock = RLock()

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA synchronous=NORMAL")
        self._conn.execute(
            "CREATE TABLE IF NOT EXISTS kv ("
            "  key   TEXT PRIMARY KEY,"
            "  value TEXT NOT NULL"
            ")"
        )
        self._conn.commit()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT INTO kv (key, value) VALUES (?, ?)"
                " ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )
            self._conn.commit()

    def remove(self, key: str) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            self._conn.commit()

    def keys(self) -> list[str]:
        with self._lock:
            return [row[0] for row in self._conn.execute("SELECT key FROM kv ORDER BY rowid")]

    def close(self) -> None:
        with self._lock:
            self._conn.close()


def open_storage(storage_settings: "StorageSettings") -> Optional[KeyValueStorage]:
    """
    按配置打开存储介质（能力检查在组合根完成）。
    返回 None 表示当前环境没有可用的持久化介质。
    """
    if not storage_settings.enabled:
        logger.info("[profiles] storage disabled by config")
        return None
    backend = storage_settings.backend
    if backend == "memory":
        return InMemoryStorage()
    if backend == "sqlite":
        try:
            return SqliteStorage(storage_settings.db_file)
        except (sqlite3.Error, OSError) as e:
            logger.warning("[profiles] cannot open sqlite storage %s: %s", storage_settings.db_file, e)
            return None
    logger.warning("[profiles] unknown storage backend %r, storage unavailable", backend)
    return None
