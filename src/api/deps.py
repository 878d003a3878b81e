"""
路由依赖：从 app.state 取启动时构建的对象（见 server.lifespan）。
测试中通过 app.dependency_overrides 替换。
"""

from fastapi import Request

from src.avatar import AvatarGenerator
from src.profiles import ExpiryPolicy, ProfileStore
from src.publish import ProfilePublisher


def get_profile_store(request: Request) -> ProfileStore:
    return request.app.state.profile_store


def get_expiry_policy(request: Request) -> ExpiryPolicy:
    return request.app.state.expiry_policy


def get_publisher(request: Request) -> ProfilePublisher:
    return request.app.state.publisher


def get_avatar_generator(request: Request) -> AvatarGenerator:
    return request.app.state.avatar_generator
