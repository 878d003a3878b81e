#!/usr/bin/env python3
"""
Profile 清理脚本：删除超过保留期未访问的短链 profile。

用法：
    python scripts/cleanup_profiles.py                       # 使用配置默认值
    python scripts/cleanup_profiles.py --retention-days 7    # 清理 7 天未访问的 profile
    python scripts/cleanup_profiles.py --stats               # 仅显示统计，不清理
    python scripts/cleanup_profiles.py --logs                # 同时清理过期日志文件
"""

import argparse
import sys
from datetime import timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from config.settings import settings
from src.log import cleanup_logs
from src.profiles import ExpiryPolicy, get_storage_stats, open_storage


def main():
    parser = argparse.ArgumentParser(description="短链 profile 清理工具")
    parser.add_argument(
        "--retention-days",
        type=int,
        default=None,
        help=f"保留天数（默认 {settings.storage.retention_days}）",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="仅显示统计信息，不执行清理",
    )
    parser.add_argument(
        "--logs",
        action="store_true",
        help="同时按 logging 配置清理日志文件",
    )
    args = parser.parse_args()

    storage = open_storage(settings.storage)
    if storage is None:
        print("profile 存储不可用（检查 config/linkbio_config.json 的 storage 段）")
        sys.exit(1)

    try:
        stats_before = get_storage_stats(storage)
        print(f"当前存储状态: {stats_before.total_profiles} 个 profile, {stats_before.storage_size}")
        if args.stats:
            return

        retention_days = args.retention_days if args.retention_days is not None else settings.storage.retention_days
        print(f"\n执行清理: retention={retention_days}天")
        removed = ExpiryPolicy(storage).sweep(timedelta(days=retention_days))

        stats_after = get_storage_stats(storage)
        print("\n清理结果:")
        print(f"  - 删除 key: {removed}")
        print(f"  - 剩余: {stats_after.total_profiles} 个 profile, {stats_after.storage_size}")

        if args.logs:
            report = cleanup_logs()
            print("\n日志清理:")
            print(f"  - 按时间删除: {len(report['deleted_by_age'])} 个文件")
            print(f"  - 按大小删除: {len(report['deleted_by_size'])} 个文件")
            print(f"  - 剩余: {report['remaining_mb']:.2f} MB")
    finally:
        storage.close()


if __name__ == "__main__":
    main()
