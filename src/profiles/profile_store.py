"""
ProfileStore：按短哈希保存/读取 profile JSON。

存储布局（字符串 key → 字符串 value）：
    profile_<hash>       → profile JSON 原文（不解析、不修改）
    profile_meta_<hash>  → {"created": "<epoch-ms>", "lastAccessed": "<epoch-ms>", "hash": "<hash>"}

retrieve() 命中时会更新 lastAccessed：这是有意的写副作用，
ExpiryPolicy 依据它判断条目是否仍在使用（LRU 式存活跟踪）。
"""

from __future__ import annotations

import json
import re
import time
from dataclasses import dataclass
from typing import Callable, Optional

from src.log import get_logger
from src.profiles.backends import KeyValueStorage
from src.profiles.errors import CorruptedMetadataError, StorageUnavailableError
from src.profiles.short_hash import generate_short_hash

logger = get_logger(__name__)

PROFILE_PREFIX = "profile_"
META_PREFIX = "profile_meta_"

Clock = Callable[[], int]

_MILLIS_RE = re.compile(r"-?[0-9]+")


def now_ms() -> int:
    return int(time.time() * 1000)


def record_key(short_hash: str) -> str:
    return f"{PROFILE_PREFIX}{short_hash}"


def meta_key(short_hash: str) -> str:
    return f"{META_PREFIX}{short_hash}"


@dataclass
class ProfileMetadata:
    hash: str
    created: int
    last_accessed: int

    def to_json(self) -> str:
        return json.dumps({
            "created": str(self.created),
            "lastAccessed": str(self.last_accessed),
            "hash": self.hash,
        })


def _parse_millis(raw, field_name: str, key: str) -> int:
    if isinstance(raw, bool):
        raise CorruptedMetadataError(key, f"{field_name} is not a timestamp")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and _MILLIS_RE.fullmatch(raw.strip()):
        return int(raw.strip())
    raise CorruptedMetadataError(key, f"{field_name} is not a timestamp: {raw!r}")


def parse_metadata(key: str, raw: Optional[str]) -> ProfileMetadata:
    """
    解析 profile_meta_<hash> 的值。
    hash 以 key 后缀为准（value 中的 hash 可能缺失或被篡改）。
    """
    if raw is None:
        raise CorruptedMetadataError(key, "missing value")
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise CorruptedMetadataError(key, f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise CorruptedMetadataError(key, "not a JSON object")
    # 缺少 lastAccessed 视为 0（最早），会被下一次 sweep 清理
    last_accessed = _parse_millis(data.get("lastAccessed", 0), "lastAccessed", key)
    created_raw = data.get("created")
    created = last_accessed if created_raw is None else _parse_millis(created_raw, "created", key)
    return ProfileMetadata(hash=key[len(META_PREFIX):], created=created, last_accessed=last_accessed)


class ProfileStore:
    """
    短哈希 profile 存储。

    - storage 为 None 表示没有持久化介质：store()/retrieve() 抛 StorageUnavailableError。
    - 无锁；哈希冲突时后写覆盖，不做去重或重试。
    """

    def __init__(self, storage: Optional[KeyValueStorage], clock: Clock = now_ms):
        self._storage = storage
        self._clock = clock

    @property
    def available(self) -> bool:
        return self._storage is not None

    @property
    def storage(self) -> Optional[KeyValueStorage]:
        return self._storage

    def _require_storage(self) -> KeyValueStorage:
        if self._storage is None:
            raise StorageUnavailableError()
        return self._storage

    def store(self, payload: str) -> str:
        """保存 payload，返回短哈希。哈希输入 = payload + 当前毫秒时间戳。"""
        storage = self._require_storage()
        now = self._clock()
        short_hash = generate_short_hash(payload + str(now))

        if storage.get(record_key(short_hash)) is not None:
            logger.debug("[profiles] hash %s already in use, overwriting", short_hash)
        storage.set(record_key(short_hash), payload)
        meta = ProfileMetadata(hash=short_hash, created=now, last_accessed=now)
        storage.set(meta_key(short_hash), meta.to_json())
        logger.info("[profiles] stored profile %s (%d chars)", short_hash, len(payload))
        return short_hash

    def retrieve(self, short_hash: str) -> Optional[str]:
        """返回 payload；未找到返回 None（不抛异常）。命中时刷新 lastAccessed。"""
        storage = self._require_storage()
        payload = storage.get(record_key(short_hash))
        if payload is None:
            return None
        self._touch(storage, short_hash)
        return payload

    def get_metadata(self, short_hash: str) -> Optional[ProfileMetadata]:
        storage = self._require_storage()
        key = meta_key(short_hash)
        try:
            return parse_metadata(key, storage.get(key))
        except CorruptedMetadataError:
            return None

    def _touch(self, storage: KeyValueStorage, short_hash: str) -> None:
        key = meta_key(short_hash)
        try:
            raw = storage.get(key)
        except Exception as e:
            logger.warning("[profiles] cannot read metadata for %s: %s", short_hash, e)
            return
        if raw is None:
            return
        try:
            meta = parse_metadata(key, raw)
        except CorruptedMetadataError as e:
            logger.debug("[profiles] skip lastAccessed update: %s", e)
            return
        # 只改 lastAccessed / hash，保留其余字段
        data = json.loads(raw)
        # 时钟回拨时不倒退，且不早于 created
        data["lastAccessed"] = str(max(self._clock(), meta.last_accessed, meta.created))
        data["hash"] = short_hash
        try:
            storage.set(key, json.dumps(data))
        except Exception as e:
            logger.warning("[profiles] failed to update lastAccessed for %s: %s", short_hash, e)
