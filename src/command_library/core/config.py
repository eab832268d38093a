"""Configuration data structures and loading.

Cache settings live in the ``[cache]`` table of
``~/.config/command_library/config.toml``. Settings are loaded once at the
CLI entry point and stored on the context; nothing re-reads them lazily.
"""

import os
import tomllib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError


@dataclass(frozen=True)
class AppPaths:
    """Per-user locations for configuration, the user registry and the cache."""

    config_dir: Path

    @property
    def config_path(self) -> Path:
        return self.config_dir / "config.toml"

    @property
    def user_registry_path(self) -> Path:
        return self.config_dir / "slash_repos.yaml"

    @property
    def default_cache_dir(self) -> Path:
        return self.config_dir / "cache"

    @staticmethod
    def default() -> "AppPaths":
        return AppPaths(config_dir=Path.home() / ".config" / "command_library")


class CacheSettings(BaseModel):
    """Immutable cache configuration."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    directory: Path | None = None  # None means <config_dir>/cache
    ttl_hours: int = Field(default=24, ge=1)
    max_size_mb: int = Field(default=100, ge=1)
    background_refresh: bool = True

    @property
    def ttl(self) -> timedelta:
        return timedelta(hours=self.ttl_hours)

    @property
    def refresh_interval(self) -> timedelta:
        return self.ttl / 2

    @property
    def max_size_bytes(self) -> int:
        return self.max_size_mb * 1024 * 1024

    def resolve_directory(self, paths: AppPaths) -> Path:
        if self.directory is None:
            return paths.default_cache_dir
        return self.directory.expanduser()


class ConfigStore(ABC):
    """Abstract interface for reading and writing cache settings.

    Provides dependency injection for config access, enabling in-memory
    implementations for tests without touching the filesystem.
    """

    @abstractmethod
    def exists(self) -> bool:
        """Check if the config file exists."""
        ...

    @abstractmethod
    def load(self) -> CacheSettings:
        """Load cache settings.

        Returns:
            CacheSettings from the config file, or defaults when it doesn't exist

        Raises:
            ValueError: If the config file is malformed
        """
        ...

    @abstractmethod
    def save(self, settings: CacheSettings) -> None:
        """Save cache settings.

        Args:
            settings: CacheSettings instance to save
        """
        ...

    @abstractmethod
    def path(self) -> Path:
        """Get the path to the config file (for error messages and debugging)."""
        ...


class FilesystemConfigStore(ConfigStore):
    """Production implementation that reads/writes config.toml."""

    def __init__(self, paths: AppPaths) -> None:
        self._paths = paths

    def exists(self) -> bool:
        return self.path().exists()

    def load(self) -> CacheSettings:
        config_path = self.path()
        if not config_path.exists():
            return CacheSettings()

        try:
            data = tomllib.loads(config_path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {config_path}: {e}") from e

        cache_table = data.get("cache", {})
        if not isinstance(cache_table, dict):
            raise ValueError(f"Expected a [cache] table in {config_path}")

        try:
            return CacheSettings.model_validate(cache_table)
        except ValidationError as e:
            raise ValueError(f"Invalid cache settings in {config_path}: {e}") from e

    def save(self, settings: CacheSettings) -> None:
        config_path = self.path()
        parent = config_path.parent

        if parent.exists() and not os.access(parent, os.W_OK):
            raise PermissionError(
                f"Cannot write to directory: {parent}\n"
                f"The directory exists but is not writable."
            )
        parent.mkdir(parents=True, exist_ok=True)

        cache_table = settings.model_dump(mode="json", exclude_none=True)
        with config_path.open("wb") as f:
            tomli_w.dump({"cache": cache_table}, f)

    def path(self) -> Path:
        return self._paths.config_path


class InMemoryConfigStore(ConfigStore):
    """Test implementation that stores settings in memory without touching filesystem."""

    def __init__(self, settings: CacheSettings | None = None) -> None:
        """Initialize in-memory config store.

        Args:
            settings: Initial settings (None = config file doesn't exist)
        """
        self._settings = settings

    def exists(self) -> bool:
        return self._settings is not None

    def load(self) -> CacheSettings:
        if self._settings is None:
            return CacheSettings()
        return self._settings

    def save(self, settings: CacheSettings) -> None:
        self._settings = settings

    def path(self) -> Path:
        return Path("/fake/command_library/config.toml")
