# Log: console + per-run file logging, config-driven level and cleanup
from src.log.log_manager import (
    LogManager,
    cleanup_logs,
    get_logger,
    init_logging,
)

__all__ = ["LogManager", "cleanup_logs", "get_logger", "init_logging"]
