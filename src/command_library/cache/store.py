"""File-backed TTL cache for the registry snapshot and repository listings.

Layout under the cache directory::

    registry.json
    repositories/<sanitised key>.json
    metadata.json

A record that cannot be decoded is a miss, never an error. Any other I/O
failure is raised as ``CacheError`` with the offending path.
"""

import hashlib
import logging
import shutil
import threading
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from command_library.cache.capabilities import RefreshableRegistryCache, RepositoryCache
from command_library.cache.lock import ReadWriteLock
from command_library.cache.snapshots import (
    CachedValue,
    CacheKind,
    CacheMetadata,
    CacheStats,
    RegistrySnapshot,
    RepositorySnapshot,
    Snapshot,
)
from command_library.core.config import CacheSettings
from command_library.core.time.abc import Time
from command_library.errors import CacheError

logger = logging.getLogger(__name__)

REGISTRY_FILE = "registry.json"
METADATA_FILE = "metadata.json"
REPOSITORIES_DIR = "repositories"
REGISTRY_KEY = "bundled"
MAX_KEY_LENGTH = 200

_UNSAFE_KEY_CHARS = ("/", "\\", ":", "*", "?", '"', "<", ">", "|")


def sanitize_key(key: str) -> str:
    """Make a repository key safe to use as a file name.

    Keys longer than 200 characters after substitution are replaced by their
    md5 hex digest.
    """
    for ch in _UNSAFE_KEY_CHARS:
        key = key.replace(ch, "_")
    if len(key) > MAX_KEY_LENGTH:
        key = hashlib.md5(key.encode("utf-8")).hexdigest()
    return key


class CacheStore(RefreshableRegistryCache, RepositoryCache):
    """TTL cache with hit/miss accounting.

    When the settings disable caching every read is a miss and every write
    is a no-op; the directory is never created.
    """

    def __init__(self, settings: CacheSettings, directory: Path, time: Time) -> None:
        self._settings = settings
        self._directory = directory
        self._time = time
        self._lock = ReadWriteLock()
        self._stats_lock = threading.Lock()
        self._hits = {CacheKind.REGISTRY: 0, CacheKind.REPOSITORY: 0}
        self._misses = {CacheKind.REGISTRY: 0, CacheKind.REPOSITORY: 0}
        self._last_refresh: datetime | None = None
        self._last_refresh_duration: timedelta | None = None

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def settings(self) -> CacheSettings:
        return self._settings

    def is_enabled(self) -> bool:
        return self._settings.enabled

    # Generic contract

    def get(self, kind: CacheKind | str, key: str) -> CachedValue | None:
        """Return the cached payload for (kind, key), or None on a miss.

        For the registry kind the key is ignored; there is one registry
        snapshot.

        Raises:
            CacheError: If the record exists but cannot be read
        """
        kind = CacheKind(kind)
        if not self.is_enabled():
            return None

        with self._lock.read_locked():
            snapshot = self._read_snapshot(kind, key)

        if snapshot is None:
            self._count(kind, hit=False)
            return None

        self._count(kind, hit=True)
        return CachedValue(
            payload=snapshot.payload,
            cached_at=snapshot.cached_at,
            is_expired=snapshot.is_expired(self._time.now()),
            validator=snapshot.validator,
        )

    def put(
        self, kind: CacheKind | str, key: str, payload: dict[str, Any], validator: str = ""
    ) -> None:
        """Store a payload, stamping cached_at, expires_at and last_checked.

        Raises:
            CacheError: If the record could not be written
        """
        kind = CacheKind(kind)
        if not self.is_enabled():
            return

        now = self._time.now()
        expires_at = now + self._settings.ttl
        with self._lock.write_locked():
            self._ensure_initialized()
            if kind is CacheKind.REGISTRY:
                snapshot: Snapshot = RegistrySnapshot(
                    payload=payload,
                    cached_at=now,
                    expires_at=expires_at,
                    last_checked=now,
                    validator=validator,
                )
            else:
                snapshot = RepositorySnapshot(
                    key=key,
                    payload=payload,
                    cached_at=now,
                    expires_at=expires_at,
                    last_checked=now,
                    validator=validator,
                )
            self._write_json(self._record_path(kind, key), snapshot.model_dump_json(indent=2))
            if kind is CacheKind.REPOSITORY:
                self._enforce_size_limit(keep=self._record_path(kind, key))

        logger.debug("Cached %s snapshot %s (expires %s)", kind.value, key, expires_at)

    def evict(self, kind: CacheKind | str, key: str) -> None:
        kind = CacheKind(kind)
        if not self.is_enabled():
            return
        path = self._record_path(kind, key)
        with self._lock.write_locked():
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                raise CacheError(path, "Failed to remove cache record") from e
        logger.debug("Evicted %s snapshot %s", kind.value, key)

    def needs_refresh(self, kind: CacheKind | str, key: str) -> bool:
        """True when the record is missing, corrupt, expired, or stale by half the TTL."""
        kind = CacheKind(kind)
        if not self.is_enabled():
            return False
        with self._lock.read_locked():
            snapshot = self._read_snapshot(kind, key)
        if snapshot is None:
            return True
        return snapshot.should_refresh(self._time.now())

    def mark_checked(self, kind: CacheKind | str, key: str) -> None:
        """Move last_checked to now without changing cached_at or expires_at."""
        kind = CacheKind(kind)
        if not self.is_enabled():
            return
        with self._lock.write_locked():
            snapshot = self._read_snapshot(kind, key)
            if snapshot is None:
                return
            updated = snapshot.model_copy(update={"last_checked": self._time.now()})
            self._write_json(self._record_path(kind, key), updated.model_dump_json(indent=2))

    def record_refresh(self, started: datetime, finished: datetime) -> None:
        with self._stats_lock:
            self._last_refresh = finished
            self._last_refresh_duration = finished - started

    def clear(self) -> None:
        """Remove the whole cache directory. Counters are kept."""
        if not self.is_enabled():
            return
        with self._lock.write_locked():
            if not self._directory.exists():
                return
            try:
                shutil.rmtree(self._directory)
            except OSError as e:
                raise CacheError(self._directory, "Failed to clear cache directory") from e
        logger.debug("Cleared cache directory %s", self._directory)

    def get_stats(self) -> CacheStats:
        entry_count = 0
        total_size = 0
        if self.is_enabled():
            with self._lock.read_locked():
                for path in self._record_files():
                    entry_count += 1
                    total_size += path.stat().st_size

        with self._stats_lock:
            return CacheStats(
                registry_hits=self._hits[CacheKind.REGISTRY],
                registry_misses=self._misses[CacheKind.REGISTRY],
                repository_hits=self._hits[CacheKind.REPOSITORY],
                repository_misses=self._misses[CacheKind.REPOSITORY],
                entry_count=entry_count,
                total_size_bytes=total_size,
                last_refresh=self._last_refresh,
                last_refresh_duration=self._last_refresh_duration,
            )

    # RegistryCache

    def get_registry(self) -> CachedValue | None:
        return self.get(CacheKind.REGISTRY, REGISTRY_KEY)

    def put_registry(self, payload: dict[str, Any], validator: str = "") -> None:
        self.put(CacheKind.REGISTRY, REGISTRY_KEY, payload, validator)

    def registry_needs_refresh(self) -> bool:
        return self.needs_refresh(CacheKind.REGISTRY, REGISTRY_KEY)

    # RefreshableRegistryCache

    def background_refresh_enabled(self) -> bool:
        return self.is_enabled() and self._settings.background_refresh

    def mark_registry_checked(self) -> None:
        self.mark_checked(CacheKind.REGISTRY, REGISTRY_KEY)

    # RepositoryCache

    def repository_key(self, owner: str, repo: str, branch: str, path: str) -> str:
        return f"{owner}_{repo}_{branch}_{path.replace('/', '_')}"

    def get_repository(self, key: str) -> CachedValue | None:
        return self.get(CacheKind.REPOSITORY, key)

    def put_repository(self, key: str, payload: dict[str, Any], validator: str = "") -> None:
        self.put(CacheKind.REPOSITORY, key, payload, validator)

    def evict_repository(self, key: str) -> None:
        self.evict(CacheKind.REPOSITORY, key)

    # Internals; callers hold the lock

    def _record_path(self, kind: CacheKind, key: str) -> Path:
        if kind is CacheKind.REGISTRY:
            return self._directory / REGISTRY_FILE
        return self._directory / REPOSITORIES_DIR / f"{sanitize_key(key)}.json"

    def _read_snapshot(self, kind: CacheKind, key: str) -> Snapshot | None:
        path = self._record_path(kind, key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("Cache miss: %s", path)
            return None
        except UnicodeDecodeError:
            logger.debug("Undecodable cache record treated as miss: %s", path)
            return None
        except OSError as e:
            raise CacheError(path, "Failed to read cache record") from e

        model = RegistrySnapshot if kind is CacheKind.REGISTRY else RepositorySnapshot
        try:
            return model.model_validate_json(raw)
        except ValidationError as e:
            logger.debug("Corrupt cache record treated as miss: %s (%s)", path, e.error_count())
            return None

    def _write_json(self, path: Path, content: str) -> None:
        temp_path = path.with_suffix(".json.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(content + "\n", encoding="utf-8")
            temp_path.replace(path)
        except OSError as e:
            raise CacheError(path, "Failed to write cache record") from e

    def _ensure_initialized(self) -> None:
        metadata_path = self._directory / METADATA_FILE
        if metadata_path.exists():
            try:
                CacheMetadata.model_validate_json(metadata_path.read_text(encoding="utf-8"))
                return
            except (ValidationError, UnicodeDecodeError):
                logger.debug("Rewriting corrupt cache metadata: %s", metadata_path)
            except OSError as e:
                raise CacheError(metadata_path, "Failed to read cache metadata") from e

        metadata = CacheMetadata(created_at=self._time.now())
        self._write_json(metadata_path, metadata.model_dump_json(indent=2))

    def _record_files(self) -> list[Path]:
        files: list[Path] = []
        registry_path = self._directory / REGISTRY_FILE
        if registry_path.is_file():
            files.append(registry_path)
        repositories_dir = self._directory / REPOSITORIES_DIR
        if repositories_dir.is_dir():
            files.extend(sorted(repositories_dir.glob("*.json")))
        return files

    def _enforce_size_limit(self, keep: Path) -> None:
        """Evict the oldest repository snapshots until the directory fits max_size_mb."""
        files = self._record_files()
        total = sum(p.stat().st_size for p in files)
        limit = self._settings.max_size_bytes
        if total <= limit:
            return

        candidates: list[tuple[datetime, Path]] = []
        for path in files:
            if path.parent.name != REPOSITORIES_DIR or path == keep:
                continue
            try:
                snapshot = RepositorySnapshot.model_validate_json(path.read_text(encoding="utf-8"))
                candidates.append((snapshot.cached_at, path))
            except (ValidationError, UnicodeDecodeError):
                # Corrupt records go first
                candidates.append((datetime.min.replace(tzinfo=self._time.now().tzinfo), path))

        for _, path in sorted(candidates, key=lambda item: item[0]):
            if total <= limit:
                break
            size = path.stat().st_size
            try:
                path.unlink()
            except OSError as e:
                raise CacheError(path, "Failed to evict cache record") from e
            total -= size
            logger.debug("Evicted %s to stay under %d MB", path.name, self._settings.max_size_mb)

    def _count(self, kind: CacheKind, *, hit: bool) -> None:
        with self._stats_lock:
            if hit:
                self._hits[kind] += 1
            else:
                self._misses[kind] += 1
