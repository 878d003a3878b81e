"""
头像兜底生成

AvatarGenerator.generate(): 头像 URL 以 http 开头时原样返回；否则调用
OpenAI 兼容的 /images/generations 接口生成一张抽象头像，返回 data URI。
任何失败都抛 AvatarGenerationError。

resolve_avatar(): 表单提交侧的兜底，生成失败时返回占位图地址。
"""

from __future__ import annotations

import time
from typing import Any, Optional

import requests

from config.settings import AvatarSettings, settings
from src.log import get_logger

logger = get_logger(__name__)

INVALID_AVATAR_MARKER = "invalid"
AVATAR_PROMPT = (
    "Generate a simple, colorful, and abstract avatar image that can be used as a "
    "profile picture. The image should be in PNG format."
)
_RETRY_STATUS = (429, 500, 503)


class AvatarGenerationError(Exception):
    """Avatar URL invalid and the generated fallback failed."""


def _request_with_retry(
    session: requests.Session,
    method: str,
    url: str,
    timeout: int,
    max_retries: int,
    backoff: float,
    **kwargs: Any,
) -> requests.Response:
    last_err: Optional[Exception] = None
    for attempt in range(max_retries + 1):
        try:
            resp = session.request(method, url, timeout=timeout, **kwargs)
            if resp.status_code in _RETRY_STATUS and attempt < max_retries:
                time.sleep(backoff ** attempt)
                continue
            resp.raise_for_status()
            return resp
        except requests.exceptions.HTTPError as e:
            last_err = e
            if e.response is None or e.response.status_code not in _RETRY_STATUS or attempt >= max_retries:
                raise
            time.sleep(backoff ** attempt)
        except requests.exceptions.RequestException as e:
            last_err = e
            if attempt >= max_retries:
                raise
            time.sleep(backoff ** attempt)
    if last_err:
        raise last_err
    raise RuntimeError("request_with_retry failed")


class AvatarGenerator:
    """AI 头像生成（requests.Session 复用连接，可配置超时与重试）。"""

    def __init__(self, config: Optional[AvatarSettings] = None, session: Optional[requests.Session] = None):
        self.config = config or settings.avatar
        self._session = session or requests.Session()

    def generate(self, avatar_url: str) -> str:
        if avatar_url.startswith("http"):
            return avatar_url

        logger.info("[avatar] invalid avatar URL, generating fallback avatar")
        try:
            return self._generate_image()
        except AvatarGenerationError:
            raise
        except Exception as e:
            logger.error("[avatar] error during avatar generation: %s", e)
            raise AvatarGenerationError(f"Avatar URL invalid and fallback failed: {e}") from e

    def _generate_image(self) -> str:
        cfg = self.config
        if not cfg.enabled:
            raise AvatarGenerationError("Avatar URL invalid and fallback failed: generation disabled")
        if not cfg.api_key:
            raise AvatarGenerationError("Avatar URL invalid and fallback failed: no API key configured")

        url = f"{cfg.base_url.rstrip('/')}/images/generations"
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {cfg.api_key}",
        }
        payload = {"model": cfg.model, "prompt": AVATAR_PROMPT, "n": 1, "size": cfg.size}
        resp = _request_with_retry(
            self._session, "POST", url, cfg.timeout_seconds,
            cfg.max_retries, cfg.retry_backoff,
            headers=headers, json=payload,
        )
        data = (resp.json() or {}).get("data") or []
        media = data[0] if data else {}
        if media.get("b64_json"):
            return f"data:image/png;base64,{media['b64_json']}"
        if media.get("url"):
            return media["url"]
        raise AvatarGenerationError("Avatar URL invalid and fallback failed: Failed to generate fallback avatar.")


_generator: Optional[AvatarGenerator] = None


def get_avatar_generator() -> AvatarGenerator:
    global _generator
    if _generator is None:
        _generator = AvatarGenerator()
    return _generator


def resolve_avatar(
    avatar_url: str,
    generator: Optional[AvatarGenerator] = None,
    placeholder_url: Optional[str] = None,
) -> str:
    """返回最终头像地址；空串按无效 URL 处理，生成失败时退回占位图。"""
    generator = generator or get_avatar_generator()
    try:
        return generator.generate(avatar_url or INVALID_AVATAR_MARKER)
    except AvatarGenerationError as e:
        logger.error("[avatar] generation failed, using placeholder: %s", e)
        return placeholder_url or generator.config.placeholder_url
