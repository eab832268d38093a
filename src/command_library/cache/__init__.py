from command_library.cache.capabilities import (
    RefreshableRegistryCache,
    RegistryCache,
    RepositoryCache,
)
from command_library.cache.refresh import BackgroundRefresher
from command_library.cache.snapshots import CachedValue, CacheKind, CacheStats
from command_library.cache.store import CacheStore

__all__ = [
    "BackgroundRefresher",
    "CacheKind",
    "CacheStats",
    "CacheStore",
    "CachedValue",
    "RefreshableRegistryCache",
    "RegistryCache",
    "RepositoryCache",
]
