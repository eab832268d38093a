"""Narrow cache interfaces injected into the registry loader, the fetcher and the refresher.

Consumers depend on exactly the capability they use. ``CacheStore``
implements all of them.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from command_library.cache.snapshots import CachedValue


class RegistryCache(ABC):
    """Read-through/write-back access to the bundled catalog snapshot."""

    @abstractmethod
    def is_enabled(self) -> bool: ...

    @abstractmethod
    def get_registry(self) -> CachedValue | None:
        """Return the registry snapshot, or None on a miss (including corruption)."""
        ...

    @abstractmethod
    def put_registry(self, payload: dict[str, Any], validator: str = "") -> None:
        """Store the registry snapshot.

        Raises:
            CacheError: If the snapshot could not be written
        """
        ...

    @abstractmethod
    def registry_needs_refresh(self) -> bool:
        """True when the snapshot is missing, expired, or unchecked for half the TTL."""
        ...


class RepositoryCache(ABC):
    """Per-repository command listing snapshots."""

    @abstractmethod
    def is_enabled(self) -> bool: ...

    @abstractmethod
    def repository_key(self, owner: str, repo: str, branch: str, path: str) -> str: ...

    @abstractmethod
    def get_repository(self, key: str) -> CachedValue | None: ...

    @abstractmethod
    def put_repository(self, key: str, payload: dict[str, Any], validator: str = "") -> None:
        """Store a repository snapshot.

        Raises:
            CacheError: If the snapshot could not be written
        """
        ...

    @abstractmethod
    def evict_repository(self, key: str) -> None: ...


class RefreshableRegistryCache(RegistryCache):
    """What the background refresher needs on top of registry access."""

    @abstractmethod
    def background_refresh_enabled(self) -> bool: ...

    @abstractmethod
    def mark_registry_checked(self) -> None:
        """Move the snapshot's last_checked to now without extending its expiry."""
        ...

    @abstractmethod
    def record_refresh(self, started: datetime, finished: datetime) -> None: ...
