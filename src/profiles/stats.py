"""Profile 存储用量统计（诊断用）。"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from src.profiles.backends import KeyValueStorage
from src.profiles.profile_store import META_PREFIX, PROFILE_PREFIX


@dataclass
class StorageStats:
    total_profiles: int
    storage_size: str

    def to_dict(self) -> dict:
        return {"totalProfiles": self.total_profiles, "storageSize": self.storage_size}


def _utf16_len(text: str) -> int:
    return len(text.encode("utf-16-le", "surrogatepass")) // 2


def format_kb(size: int) -> str:
    """字节数 → "<n> KB"，保留两位小数（四舍五入），整数不带小数点。"""
    kb = math.floor(size / 1024 * 100 + 0.5) / 100
    if kb.is_integer():
        return f"{int(kb)} KB"
    return f"{kb} KB"


def get_storage_stats(storage: Optional[KeyValueStorage]) -> StorageStats:
    """统计 profile_ 前缀下的条目：元数据条数 = profile 数，key+value 长度之和 = 占用。"""
    if storage is None:
        return StorageStats(total_profiles=0, storage_size="0 KB")

    total_profiles = 0
    total_size = 0
    for key in storage.keys():
        if not key.startswith(PROFILE_PREFIX):
            continue
        value = storage.get(key) or ""
        total_size += _utf16_len(key) + _utf16_len(value)
        if key.startswith(META_PREFIX):
            total_profiles += 1

    return StorageStats(total_profiles=total_profiles, storage_size=format_kb(total_size))
