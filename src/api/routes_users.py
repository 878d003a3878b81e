"""
文件发布 API：/users/<username> 发布与读取。
"""

from fastapi import APIRouter, Depends, HTTPException

from src.api.deps import get_avatar_generator, get_publisher
from src.api.routes_profiles import build_profile_json
from src.api.schemas import ProfileData, PublishResponse
from src.avatar import AvatarGenerator
from src.publish import ProfilePublisher, is_valid_username, slugify

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/{username}", response_model=PublishResponse)
def publish_profile(
    username: str,
    body: ProfileData,
    publisher: ProfilePublisher = Depends(get_publisher),
    generator: AvatarGenerator = Depends(get_avatar_generator),
) -> PublishResponse:
    """发布 profile 到 /users/<username>。username 不合法时在生成头像前即拒绝。"""
    if not is_valid_username(username):
        raise HTTPException(
            status_code=400,
            detail="Invalid username. Use lowercase letters, numbers and hyphens only.",
        )
    result = publisher.publish(username, build_profile_json(body, generator))
    if not result.success:
        raise HTTPException(status_code=400, detail=result.message)
    return PublishResponse(
        success=True,
        message=result.message,
        username=username,
        url=f"/users/{username}",
    )


@router.post("", response_model=PublishResponse)
def publish_profile_by_name(
    body: ProfileData,
    publisher: ProfilePublisher = Depends(get_publisher),
    generator: AvatarGenerator = Depends(get_avatar_generator),
) -> PublishResponse:
    """按姓名生成 username 后发布。"""
    return publish_profile(slugify(body.name), body, publisher, generator)


@router.get("/{username}")
def get_published_profile(
    username: str,
    publisher: ProfilePublisher = Depends(get_publisher),
) -> dict:
    data = publisher.load(username)
    if data is None:
        raise HTTPException(status_code=404, detail="User not found")
    return data
