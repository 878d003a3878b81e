"""
日志管理模块：分级日志、按运行实例命名、自动清理。
"""
import json
import logging
import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

# 默认配置
DEFAULT_LEVEL = "INFO"
DEFAULT_MAX_SIZE_MB = 100
DEFAULT_MAX_AGE_DAYS = 30
DEFAULT_MIN_KEEP_MB = 20
DEFAULT_CONSOLE_OUTPUT = True
DEFAULT_FILE_OUTPUT = True
LOG_DIR_NAME = "linkbio"
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class LogManager:
    """
    统一日志管理：分级（DEBUG/INFO/WARNING/ERROR）、按服务启动时间命名文件、
    控制台+文件双输出、按配置自动清理（上限 100MB，低于 20MB 不删）。

    环境变量 LINKBIO_LOG_LEVEL / LINKBIO_LOG_DIR 优先于配置文件。
    """

    def __init__(self, config: dict[str, Any] | None = None):
        config = config or {}
        log_dir = os.getenv("LINKBIO_LOG_DIR") or config.get("log_dir")
        self.log_dir = Path(log_dir) if log_dir else _PROJECT_ROOT / "logs" / LOG_DIR_NAME

        self.max_size_mb = int(config.get("max_size_mb", DEFAULT_MAX_SIZE_MB))
        self.max_age_days = int(config.get("max_age_days", DEFAULT_MAX_AGE_DAYS))
        self.min_keep_mb = int(config.get("min_keep_mb", DEFAULT_MIN_KEEP_MB))
        self.console_output = config.get("console_output", DEFAULT_CONSOLE_OUTPUT)
        self.file_output = config.get("file_output", DEFAULT_FILE_OUTPUT)
        level_name = (os.getenv("LINKBIO_LOG_LEVEL") or config.get("level") or DEFAULT_LEVEL).upper()
        self.level = getattr(logging, level_name, logging.INFO)

        if self.file_output:
            self.log_dir.mkdir(parents=True, exist_ok=True)

        self._run_log_path: Path | None = None
        self._formatter = logging.Formatter(
            "%(asctime)s.%(msecs)03d | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def _run_file(self) -> Path:
        """当前运行的日志文件路径（按启动时间命名，进程内复用）."""
        if self._run_log_path is None:
            self._run_log_path = self.log_dir / datetime.now().strftime("%Y-%m-%d_%H-%M-%S.log")
        return self._run_log_path

    def get_logger(self, name: str) -> logging.Logger:
        """获取具名 logger，自动绑定当前运行日志文件与控制台."""
        logger = logging.getLogger(name)
        if logger.handlers:
            return logger

        logger.setLevel(self.level)
        # 保留向 root 传播，pytest caplog 依赖 root handler
        logger.propagate = True

        if self.console_output:
            ch = logging.StreamHandler()
            ch.setLevel(self.level)
            ch.setFormatter(self._formatter)
            logger.addHandler(ch)

        if self.file_output:
            fh = logging.FileHandler(self._run_file(), encoding="utf-8")
            fh.setLevel(self.level)
            fh.setFormatter(self._formatter)
            logger.addHandler(fh)

        if not logger.handlers:
            logger.addHandler(logging.NullHandler())
        return logger

    def cleanup(self) -> dict[str, Any]:
        """
        按配置清理日志文件。
        - 总大小 < min_keep_mb 时不删除。
        - 先删超过 max_age_days 的文件，再按最旧优先删至不超过 max_size_mb。
        - 当前运行的日志文件永不删除。
        """
        report: dict[str, Any] = {"deleted_by_age": [], "deleted_by_size": [], "remaining_mb": 0.0}
        if not self.log_dir.exists():
            return report

        log_files = sorted(
            (
                f for f in self.log_dir.iterdir()
                if f.is_file() and f.suffix == ".log" and f != self._run_log_path
            ),
            key=lambda p: p.stat().st_mtime,
        )
        min_bytes = self.min_keep_mb * 1024 * 1024
        total = sum(f.stat().st_size for f in log_files)
        if total < min_bytes:
            report["remaining_mb"] = total / (1024 * 1024)
            return report

        cutoff = datetime.now() - timedelta(days=self.max_age_days)
        remaining: list[Path] = []
        for f in log_files:
            if datetime.fromtimestamp(f.stat().st_mtime) < cutoff:
                report["deleted_by_age"].append(f.name)
                f.unlink()
            else:
                remaining.append(f)

        max_bytes = self.max_size_mb * 1024 * 1024
        while remaining and sum(f.stat().st_size for f in remaining) > max_bytes:
            oldest = remaining.pop(0)
            report["deleted_by_size"].append(oldest.name)
            oldest.unlink()

        report["remaining_mb"] = sum(f.stat().st_size for f in remaining) / (1024 * 1024)
        return report


# 模块级单例，便于 get_logger 使用
_manager: LogManager | None = None


def _load_logging_config(path: Path) -> dict[str, Any]:
    """读取配置文件 logging 段，同名 .local.json 覆盖。"""
    if not path.exists():
        return {}
    cfg = json.loads(path.read_text(encoding="utf-8")).get("logging") or {}
    local_path = path.with_name(f"{path.stem}.local{path.suffix}")
    if local_path.exists():
        local_cfg = json.loads(local_path.read_text(encoding="utf-8")).get("logging") or {}
        cfg = {**cfg, **local_cfg}
    return cfg


def init_logging(config: dict[str, Any] | None = None, config_path: str | Path | None = None) -> LogManager:
    """初始化日志（可选从配置文件加载）. 显式调用时可传入 config 或 config_path."""
    cfg = config
    if cfg is None:
        path = Path(config_path) if config_path is not None else _PROJECT_ROOT / "config" / "linkbio_config.json"
        cfg = _load_logging_config(path)
    global _manager
    _manager = LogManager(cfg)
    return _manager


def get_logger(name: str, config: dict[str, Any] | None = None) -> logging.Logger:
    """获取 logger。若尚未初始化则用 config 或 linkbio_config.json 的 logging 段初始化."""
    if _manager is None:
        init_logging(config=config)
    return _manager.get_logger(name)


def cleanup_logs(config: dict[str, Any] | None = None) -> dict[str, Any]:
    """执行日志清理，返回清理报告。若未初始化则用默认或 config 初始化 LogManager 再清理."""
    if _manager is None:
        init_logging(config=config)
    return _manager.cleanup()
