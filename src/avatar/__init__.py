"""头像兜底：无效 URL 时调用 AI 生成，失败退回占位图。"""
from .generator import (
    AvatarGenerationError,
    AvatarGenerator,
    get_avatar_generator,
    resolve_avatar,
)

__all__ = ["AvatarGenerationError", "AvatarGenerator", "get_avatar_generator", "resolve_avatar"]
