"""
Profile 过期清理：超过保留期未访问的 profile 连同元数据一起删除。

先完整扫描、再统一删除，避免边遍历边删除导致 key 枚举失效。
元数据损坏（无法解析）时只删除该元数据 key，不推导记录 key。
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

from src.log import get_logger
from src.profiles.backends import KeyValueStorage
from src.profiles.errors import CorruptedMetadataError
from src.profiles.profile_store import META_PREFIX, Clock, now_ms, parse_metadata, record_key

logger = get_logger(__name__)

DEFAULT_RETENTION = timedelta(days=30)


def _to_millis(delta: timedelta) -> int:
    return int(delta.total_seconds() * 1000)


class ExpiryPolicy:
    """按 lastAccessed 判断过期，sweep() 永不抛异常。"""

    def __init__(
        self,
        storage: Optional[KeyValueStorage],
        clock: Clock = now_ms,
        retention: timedelta = DEFAULT_RETENTION,
    ):
        self._storage = storage
        self._clock = clock
        self.retention = retention

    def collect_expired(self, retention: Optional[timedelta] = None) -> list[str]:
        """扫描并返回待删除的 key 列表（不删除）。"""
        storage = self._storage
        if storage is None:
            return []
        window_ms = _to_millis(retention if retention is not None else self.retention)
        now = self._clock()

        try:
            keys = storage.keys()
        except Exception as e:
            logger.warning("[profiles] sweep: cannot enumerate keys: %s", e)
            return []

        marked: list[str] = []
        for key in keys:
            if not key.startswith(META_PREFIX):
                continue
            try:
                meta = parse_metadata(key, storage.get(key))
            except CorruptedMetadataError as e:
                logger.info("[profiles] sweep: dropping %s", e)
                marked.append(key)
                continue
            except Exception as e:
                logger.warning("[profiles] sweep: read failed for %s: %s", key, e)
                marked.append(key)
                continue

            if now - meta.last_accessed > window_ms:
                marked.append(record_key(meta.hash))
                marked.append(key)
        return marked

    def sweep(self, retention: Optional[timedelta] = None) -> int:
        """
        清理过期 profile，返回实际删除的 key 数量。
        storage 为 None 时不做任何事。
        """
        marked = self.collect_expired(retention)
        removed = 0
        for key in marked:
            try:
                self._storage.remove(key)
                removed += 1
            except Exception as e:
                logger.warning("[profiles] sweep: failed to remove %s: %s", key, e)
        if removed:
            logger.info(
                "[profiles] sweep removed %d key(s) (retention=%s)",
                removed, retention if retention is not None else self.retention,
            )
        return removed


def cleanup_old_profiles(
    storage: Optional[KeyValueStorage],
    retention_days: int = 30,
    clock: Clock = now_ms,
) -> int:
    """清理 retention_days 天内未被访问的 profile。"""
    return ExpiryPolicy(storage, clock=clock, retention=timedelta(days=retention_days)).sweep()
