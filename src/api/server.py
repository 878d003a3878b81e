"""
FastAPI 应用入口 - LinkBio profile API
"""

from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import settings
from src.api.routes_profiles import router as profiles_router
from src.api.routes_users import router as users_router
from src.avatar import AvatarGenerator
from src.log import cleanup_logs, get_logger
from src.profiles import ExpiryPolicy, ProfileStore, get_storage_stats, open_storage
from src.publish import ProfilePublisher

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期：打开存储 → 构建 store/policy/publisher → 启动清理"""

    # 1. 能力检查：没有可用介质时 storage 为 None，store() 返回 503
    storage = open_storage(settings.storage)
    if storage is None:
        logger.warning("[startup] profile storage unavailable; /profiles will return 503")

    app.state.profile_store = ProfileStore(storage)
    app.state.expiry_policy = ExpiryPolicy(
        storage, retention=timedelta(days=settings.storage.retention_days)
    )
    app.state.publisher = ProfilePublisher(settings.publish.users_path)
    app.state.avatar_generator = AvatarGenerator(settings.avatar)

    # 2. 过期清理
    if storage is not None and settings.storage.cleanup_on_startup:
        removed = app.state.expiry_policy.sweep()
        stats = get_storage_stats(storage)
        logger.info("[startup] profile cleanup done: removed=%d, current=%s", removed, stats.to_dict())

    # 3. 日志清理（按配置的保留天数与总大小）
    try:
        report = cleanup_logs()
        if report["deleted_by_age"] or report["deleted_by_size"]:
            logger.info("[startup] log cleanup done: %s", report)
    except OSError as e:
        logger.warning("[startup] log cleanup failed: %s", e)

    yield

    if storage is not None:
        storage.close()


app = FastAPI(
    title="LinkBio Profile API",
    description="Link-in-bio profile 短链存储与发布",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(profiles_router)
app.include_router(users_router)


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
