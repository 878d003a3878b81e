"""
文件发布：把 profile JSON 写到 <users_dir>/<username>.json，供 /users/<username> 读取。
username 仅允许小写字母、数字和连字符，校验失败时不写任何文件。
"""

from __future__ import annotations

import json
import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from src.log import get_logger

logger = get_logger(__name__)

USERNAME_RE = re.compile(r"^[a-z0-9-]+$")
DEFAULT_USERNAME = "your-name"


@dataclass
class PublishResult:
    success: bool
    message: str


def slugify(text: str) -> str:
    """姓名 → 用户名：小写、空白转连字符、去掉 [a-z0-9-] 以外字符、合并连字符。"""
    slug = re.sub(r"\s+", "-", str(text).lower().strip())
    slug = re.sub(r"[^a-z0-9-]+", "", slug)
    slug = re.sub(r"-{2,}", "-", slug)
    return slug or DEFAULT_USERNAME


def is_valid_username(username: str) -> bool:
    return bool(username) and USERNAME_RE.match(username) is not None


class ProfilePublisher:
    def __init__(self, users_dir: str | Path):
        self.users_dir = Path(users_dir)

    def _path(self, username: str) -> Path:
        return self.users_dir / f"{username}.json"

    def publish(self, username: str, payload: str) -> PublishResult:
        if not is_valid_username(username):
            return PublishResult(False, "Invalid username. Use lowercase letters, numbers and hyphens only.")
        try:
            json.loads(payload)
        except (TypeError, ValueError) as e:
            return PublishResult(False, f"Invalid profile JSON: {e}")

        path = self._path(username)
        try:
            self.users_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=str(self.users_dir), suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp, path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.error("[publish] failed to write %s: %s", path, e)
            return PublishResult(False, f"Failed to save profile: {e}")

        logger.info("[publish] published profile %s", username)
        return PublishResult(True, "Profile published successfully.")

    def load(self, username: str) -> Optional[dict[str, Any]]:
        """读取已发布的 profile；用户名非法、文件缺失或损坏时返回 None。"""
        if not is_valid_username(username):
            return None
        path = self._path(username)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("[publish] unreadable profile %s: %s", path, e)
            return None
        return data if isinstance(data, dict) else None
