"""Application context with dependency injection."""

import logging
from dataclasses import dataclass
from pathlib import Path

from command_library.cache.refresh import BackgroundRefresher
from command_library.cache.store import CacheStore
from command_library.core.config import (
    AppPaths,
    CacheSettings,
    ConfigStore,
    FilesystemConfigStore,
    InMemoryConfigStore,
)
from command_library.core.time.abc import Time
from command_library.core.time.real import RealTime
from command_library.registry.bundled import BundledRegistryLoader, packaged_catalog_path
from command_library.registry.service import RegistryService
from command_library.registry.user_store import UserRegistryStore
from command_library.remote.fetcher import RemoteContentFetcher
from command_library.remote.github.abc import GitHubContents
from command_library.remote.github.real import RealGitHubContents
from command_library.remote.importer import ImportPipeline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandLibraryContext:
    """Immutable context holding all dependencies for command-library operations.

    Created at CLI entry point and threaded through the application.
    Frozen to prevent accidental modification at runtime.
    """

    time: Time
    github: GitHubContents
    config_store: ConfigStore
    settings: CacheSettings
    paths: AppPaths
    cache: CacheStore
    registry: RegistryService
    fetcher: RemoteContentFetcher
    importer: ImportPipeline
    cwd: Path
    debug: bool

    def background_refresher(self) -> BackgroundRefresher:
        """Refresher that reloads the bundled catalog whenever its snapshot goes stale."""
        return BackgroundRefresher(
            self.cache,
            self.registry.refresh_bundled,
            self.time,
            interval=self.settings.refresh_interval,
        )

    @staticmethod
    def for_test(
        *,
        config_dir: Path,
        cwd: Path | None = None,
        github: GitHubContents | None = None,
        time: Time | None = None,
        settings: CacheSettings | None = None,
        packaged_catalog: Path | None = None,
        debug: bool = False,
    ) -> "CommandLibraryContext":
        """Create test context with optional pre-configured gateways.

        Args:
            config_dir: Directory standing in for ~/.config/command_library
                (usually tmp_path)
            cwd: Working directory for catalog and .claude discovery.
                If None, uses config_dir.
            github: Optional GitHubContents. If None, creates empty FakeGitHubContents.
            time: Optional Time. If None, creates FakeTime.
            settings: Optional CacheSettings. If None, uses defaults.
            packaged_catalog: Catalog used when none is found walking up from cwd
            debug: Whether debug mode is on

        Returns:
            CommandLibraryContext wired with fakes and in-memory config
        """
        from command_library.core.time.fake import FakeTime
        from command_library.remote.github.fake import FakeGitHubContents

        if github is None:
            github = FakeGitHubContents()

        if time is None:
            time = FakeTime()

        if settings is None:
            settings = CacheSettings()

        return _assemble(
            time=time,
            github=github,
            config_store=InMemoryConfigStore(settings),
            settings=settings,
            paths=AppPaths(config_dir=config_dir),
            cwd=cwd if cwd is not None else config_dir,
            packaged_catalog=packaged_catalog,
            debug=debug,
        )


def _assemble(
    *,
    time: Time,
    github: GitHubContents,
    config_store: ConfigStore,
    settings: CacheSettings,
    paths: AppPaths,
    cwd: Path,
    packaged_catalog: Path | None,
    debug: bool,
) -> CommandLibraryContext:
    cache = CacheStore(settings, settings.resolve_directory(paths), time)
    bundled = BundledRegistryLoader(cwd, time, cache=cache, packaged_path=packaged_catalog)
    user_store = UserRegistryStore(paths.user_registry_path, time)
    registry = RegistryService(bundled, user_store, repository_cache=cache)
    fetcher = RemoteContentFetcher(github, time, cache=cache)
    importer = ImportPipeline(fetcher, time)

    return CommandLibraryContext(
        time=time,
        github=github,
        config_store=config_store,
        settings=settings,
        paths=paths,
        cache=cache,
        registry=registry,
        fetcher=fetcher,
        importer=importer,
        cwd=cwd,
        debug=debug,
    )


def create_context(*, debug: bool) -> CommandLibraryContext:
    """Create production context with real implementations.

    Called at CLI entry point to create the context for the entire
    command execution. Settings are read once here.

    Raises:
        ValueError: If config.toml is malformed
    """
    paths = AppPaths.default()
    config_store = FilesystemConfigStore(paths)
    settings = config_store.load()
    logger.debug("Loaded cache settings from %s: %s", config_store.path(), settings)

    return _assemble(
        time=RealTime(),
        github=RealGitHubContents(),
        config_store=config_store,
        settings=settings,
        paths=paths,
        cwd=Path.cwd(),
        packaged_catalog=packaged_catalog_path(),
        debug=debug,
    )
