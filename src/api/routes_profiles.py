"""
短链 profile API：创建、按短哈希读取、统计、清理。
"""

import json
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from src.api.deps import get_avatar_generator, get_expiry_policy, get_profile_store
from src.api.schemas import CleanupResponse, ProfileData, StorageStatsResponse, StoredProfileResponse
from src.avatar import AvatarGenerator, resolve_avatar
from src.log import get_logger
from src.profiles import ExpiryPolicy, ProfileStore, StorageUnavailableError, get_storage_stats

logger = get_logger(__name__)

router = APIRouter(tags=["profiles"])


def build_profile_json(body: ProfileData, generator: AvatarGenerator) -> str:
    """补全头像后序列化为 JSON（2 空格缩进）。"""
    data = body.model_dump()
    data["avatar"] = resolve_avatar(body.avatar, generator=generator)
    return json.dumps(data, indent=2, ensure_ascii=False)


@router.post("/profiles", response_model=StoredProfileResponse)
def create_profile(
    body: ProfileData,
    store: ProfileStore = Depends(get_profile_store),
    generator: AvatarGenerator = Depends(get_avatar_generator),
) -> StoredProfileResponse:
    """保存 profile，返回短哈希与短链接路径。"""
    if not store.available:
        raise HTTPException(status_code=503, detail=str(StorageUnavailableError()))
    payload = build_profile_json(body, generator)
    try:
        short_hash = store.store(payload)
    except StorageUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return StoredProfileResponse(hash=short_hash, share_path=f"/p/{short_hash}")


@router.get("/p/{short_hash}")
def resolve_short_link(
    short_hash: str,
    store: ProfileStore = Depends(get_profile_store),
) -> Response:
    """按短哈希返回 profile JSON 原文。"""
    try:
        payload = store.retrieve(short_hash)
    except StorageUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    if payload is None:
        logger.info("[profiles] short link miss: %s", short_hash)
        raise HTTPException(status_code=404, detail="Profile not found or expired")
    return Response(content=payload, media_type="application/json")


@router.get("/profiles/stats", response_model=StorageStatsResponse)
def profile_stats(store: ProfileStore = Depends(get_profile_store)) -> StorageStatsResponse:
    """获取存储统计信息"""
    return StorageStatsResponse(**get_storage_stats(store.storage).to_dict())


@router.post("/profiles/cleanup", response_model=CleanupResponse)
def cleanup_profiles(
    retention_days: Optional[int] = Query(None, ge=0, description="保留天数，None 使用配置默认值"),
    store: ProfileStore = Depends(get_profile_store),
    policy: ExpiryPolicy = Depends(get_expiry_policy),
) -> CleanupResponse:
    """立即执行一次过期清理。"""
    retention = timedelta(days=retention_days) if retention_days is not None else None
    removed = policy.sweep(retention)
    stats = get_storage_stats(store.storage)
    return CleanupResponse(removed=removed, stats=StorageStatsResponse(**stats.to_dict()))
