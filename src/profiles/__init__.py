# Profiles: short hash, key-value backends, store, expiry, stats
from src.profiles.backends import InMemoryStorage, KeyValueStorage, SqliteStorage, open_storage
from src.profiles.errors import CorruptedMetadataError, ProfileStorageError, StorageUnavailableError
from src.profiles.expiry import ExpiryPolicy, cleanup_old_profiles
from src.profiles.profile_store import ProfileMetadata, ProfileStore
from src.profiles.short_hash import generate_short_hash
from src.profiles.stats import StorageStats, get_storage_stats

__all__ = [
    "InMemoryStorage",
    "KeyValueStorage",
    "SqliteStorage",
    "open_storage",
    "CorruptedMetadataError",
    "ProfileStorageError",
    "StorageUnavailableError",
    "ExpiryPolicy",
    "cleanup_old_profiles",
    "ProfileMetadata",
    "ProfileStore",
    "generate_short_hash",
    "StorageStats",
    "get_storage_stats",
]
