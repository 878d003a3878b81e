"""
API 请求/响应 Pydantic 模型
"""

from typing import List
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator


def _is_url(value: str) -> bool:
    parsed = urlparse(value)
    return bool(parsed.scheme) and bool(parsed.netloc)


class LinkItem(BaseModel):
    """单个链接"""

    label: str = Field(..., min_length=1, description="链接标题")
    url: str = Field(..., description="链接地址")

    @field_validator("url")
    @classmethod
    def _check_url(cls, v: str) -> str:
        if not _is_url(v):
            raise ValueError("Please enter a valid URL.")
        return v


class ProfileData(BaseModel):
    """表单提交的 profile"""

    name: str = Field(..., min_length=1, description="显示名，同时用于生成 username")
    bio: str = Field("", max_length=160, description="简介，最多 160 字符")
    avatar: str = Field("", description="头像 URL；留空或无效时由 AI 生成兜底头像")
    links: List[LinkItem] = Field(..., min_length=1, description="至少一个链接")

    @field_validator("avatar")
    @classmethod
    def _check_avatar(cls, v: str) -> str:
        if v and not _is_url(v):
            raise ValueError("Please enter a valid image URL.")
        return v


class StoredProfileResponse(BaseModel):
    hash: str = Field(..., description="短哈希")
    share_path: str = Field(..., description="短链接路径 /p/<hash>")


class StorageStatsResponse(BaseModel):
    totalProfiles: int
    storageSize: str


class CleanupResponse(BaseModel):
    removed: int = Field(..., description="删除的 key 数量（记录 + 元数据）")
    stats: StorageStatsResponse


class PublishResponse(BaseModel):
    success: bool
    message: str
    username: str
    url: str = Field("", description="发布成功时的访问路径 /users/<username>")
