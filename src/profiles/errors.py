"""
Profile 存储异常。

- StorageUnavailableError: 没有可用的持久化介质，直接抛给调用方，不重试。
- CorruptedMetadataError: 元数据无法解析；仅在模块内部使用，
  retrieve 时跳过更新、sweep 时直接删除，不会抛出到调用方。
"""


class ProfileStorageError(Exception):
    """Base class for profile storage errors."""


class StorageUnavailableError(ProfileStorageError):
    """No persistent key-value medium is available in this context."""

    def __init__(self, message: str = "Profile storage is not available in this context"):
        super().__init__(message)


class CorruptedMetadataError(ProfileStorageError):
    """A profile_meta_<hash> entry could not be parsed."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"corrupted metadata {key}: {reason}")
        self.key = key
        self.reason = reason
