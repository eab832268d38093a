"""On-disk cache records and the values the store hands back."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Any

from pydantic import AwareDatetime, BaseModel, ConfigDict

STORE_VERSION = "1.0"


class CacheKind(StrEnum):
    """The two record shapes the cache holds."""

    REGISTRY = "registry"
    REPOSITORY = "repository"


class Snapshot(BaseModel):
    """A cached payload with its freshness timestamps.

    ``expires_at`` is always ``cached_at + ttl``; ``last_checked`` moves
    forward on every re-validation without touching the other two.
    """

    model_config = ConfigDict(frozen=True)

    payload: dict[str, Any]
    cached_at: AwareDatetime
    expires_at: AwareDatetime
    last_checked: AwareDatetime
    validator: str = ""

    @property
    def ttl(self) -> timedelta:
        return self.expires_at - self.cached_at

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def should_refresh(self, now: datetime) -> bool:
        """True once expired, or when the last check is older than half the TTL."""
        if self.is_expired(now):
            return True
        return now - self.last_checked > self.ttl / 2


class RegistrySnapshot(Snapshot):
    """Snapshot of the bundled catalog (``registry.json``)."""


class RepositorySnapshot(Snapshot):
    """Snapshot of one remote repository's command listing."""

    key: str


class CacheMetadata(BaseModel):
    """Contents of ``metadata.json``."""

    model_config = ConfigDict(frozen=True)

    version: str = STORE_VERSION
    created_at: AwareDatetime


@dataclass(frozen=True)
class CachedValue:
    """Result of a cache hit."""

    payload: dict[str, Any]
    cached_at: datetime
    is_expired: bool
    validator: str


@dataclass(frozen=True)
class CacheStats:
    """Counters and disk usage for observability."""

    registry_hits: int
    registry_misses: int
    repository_hits: int
    repository_misses: int
    entry_count: int
    total_size_bytes: int
    last_refresh: datetime | None
    last_refresh_duration: timedelta | None

    @property
    def hits(self) -> int:
        return self.registry_hits + self.repository_hits

    @property
    def misses(self) -> int:
        return self.registry_misses + self.repository_misses

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total

    @staticmethod
    def empty() -> "CacheStats":
        return CacheStats(
            registry_hits=0,
            registry_misses=0,
            repository_hits=0,
            repository_misses=0,
            entry_count=0,
            total_size_bytes=0,
            last_refresh=None,
            last_refresh_duration=None,
        )
