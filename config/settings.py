"""
统一配置模块
- 配置文件: config/linkbio_config.json（存储、头像生成等可调参数）
- 本地覆盖: config/linkbio_config.local.json（本地私密配置）
- 环境变量优先于配置文件：AVATAR_API_KEY、API_HOST/API_PORT、PROFILE_STORAGE_BACKEND、PROFILE_DB_PATH、PUBLISH_USERS_DIR
"""

import os
import json
from pathlib import Path
from dataclasses import dataclass
from typing import Dict, Any
from dotenv import load_dotenv

load_dotenv()

# 加载 config/linkbio_config.json + config/linkbio_config.local.json（本地覆盖）
_CONFIG_PATH = Path(__file__).parent / "linkbio_config.json"
_LOCAL_CONFIG_PATH = Path(__file__).parent / "linkbio_config.local.json"
_PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _load_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


_RAW_CONFIG: Dict[str, Any] = _load_json(_CONFIG_PATH)
if _LOCAL_CONFIG_PATH.exists():
    _RAW_CONFIG = _deep_merge(_RAW_CONFIG, _load_json(_LOCAL_CONFIG_PATH))


def _resolve_path(raw: str) -> Path:
    """相对路径按项目根目录解析。"""
    p = Path(os.path.expanduser(raw))
    return p if p.is_absolute() else _PROJECT_ROOT / p


@dataclass
class ApiSettings:
    host: str = "127.0.0.1"
    port: int = 9002


@dataclass
class StorageSettings:
    """短链 profile 存储：后端与生命周期"""
    enabled: bool = True             # False 时视为无持久化介质，store() 返回 503
    backend: str = "sqlite"          # sqlite | memory
    db_path: str = "data/profiles.db"
    retention_days: int = 30         # 超过该天数未访问的 profile 被清理
    cleanup_on_startup: bool = True  # 启动时是否自动清理

    @property
    def db_file(self) -> Path:
        return _resolve_path(self.db_path)


@dataclass
class AvatarSettings:
    """AI 头像生成（OpenAI 兼容 images 接口），失败时回退到占位图"""
    enabled: bool = True
    base_url: str = "https://api.openai.com/v1"
    api_key: str = ""
    model: str = "gpt-image-1"
    size: str = "256x256"
    timeout_seconds: int = 60
    max_retries: int = 2
    retry_backoff: float = 1.5
    placeholder_url: str = "https://picsum.photos/200"


@dataclass
class PublishSettings:
    """文件发布：/users/<username>.json"""
    users_dir: str = "public/users"

    @property
    def users_path(self) -> Path:
        return _resolve_path(self.users_dir)


def _section(name: str) -> Dict[str, Any]:
    return (_RAW_CONFIG.get(name) or {})


class Settings:
    def __init__(self):
        self.env = os.getenv("LINKBIO_ENV", "dev")
        a = _section("api")
        self.api = ApiSettings(
            host=str(os.getenv("API_HOST") or a.get("host", "127.0.0.1")),
            port=int(os.getenv("API_PORT") or a.get("port", 9002)),
        )
        st = _section("storage")
        self.storage = StorageSettings(
            enabled=bool(st.get("enabled", True)),
            backend=str(os.getenv("PROFILE_STORAGE_BACKEND") or st.get("backend", "sqlite")).strip().lower(),
            db_path=str(os.getenv("PROFILE_DB_PATH") or st.get("db_path", "data/profiles.db")),
            retention_days=int(st.get("retention_days", 30)),
            cleanup_on_startup=bool(st.get("cleanup_on_startup", True)),
        )
        av = _section("avatar")
        self.avatar = AvatarSettings(
            enabled=bool(av.get("enabled", True)),
            base_url=(av.get("base_url") or "https://api.openai.com/v1").strip(),
            api_key=(os.getenv("AVATAR_API_KEY") or av.get("api_key") or "").strip(),
            model=(av.get("model") or "gpt-image-1").strip(),
            size=(av.get("size") or "256x256").strip(),
            timeout_seconds=int(av.get("timeout_seconds", 60)),
            max_retries=int(av.get("max_retries", 2)),
            retry_backoff=float(av.get("retry_backoff", 1.5)),
            placeholder_url=(av.get("placeholder_url") or "https://picsum.photos/200").strip(),
        )
        pb = _section("publish")
        self.publish = PublishSettings(
            users_dir=str(os.getenv("PUBLISH_USERS_DIR") or pb.get("users_dir", "public/users")),
        )

    def print_info(self):
        print(f"""
========================================
  LinkBio profile service
========================================
  环境: {self.env}
  API: {self.api.host}:{self.api.port}
  存储: {self.storage.backend} ({self.storage.db_file})
  保留天数: {self.storage.retention_days}
  发布目录: {self.publish.users_path}
========================================
        """)


# 全局单例
settings = Settings()
