"""Listing and downloading command files from GitHub repositories."""

import base64
import binascii
import logging
from dataclasses import replace
from typing import Any

from command_library.cache.capabilities import RepositoryCache
from command_library.core.time.abc import Time
from command_library.errors import (
    CacheError,
    CommandsPathNotFoundError,
    GitHubCliError,
    GitHubCliNotInstalledError,
    RemoteFetchError,
    RepositoryNotFoundError,
)
from command_library.remote.description import extract_description
from command_library.remote.github.abc import GitHubContents
from command_library.remote.types import RemoteCommand, RemoteRepository

logger = logging.getLogger(__name__)

COMMAND_SUFFIX = ".md"


def file_api_path(repository: RemoteRepository, file_path: str) -> str:
    owner, repo, branch = repository.owner, repository.repo, repository.branch
    return f"repos/{owner}/{repo}/contents/{file_path}?ref={branch}"


def is_command_file(name: str) -> bool:
    """Markdown files whose stem differs from its uppercase form (not README.md or 123.md)."""
    if not name.endswith(COMMAND_SUFFIX):
        return False
    stem = name[: -len(COMMAND_SUFFIX)]
    return bool(stem) and stem != stem.upper()


class RemoteContentFetcher:
    """Walks a repository's commands directory and downloads command bodies.

    Nothing here retries or times out; a failed call surfaces immediately.
    """

    def __init__(
        self,
        github: GitHubContents,
        time: Time,
        *,
        cache: RepositoryCache | None = None,
    ) -> None:
        self._github = github
        self._time = time
        self._cache = cache

    def validate_repository(self, repository: RemoteRepository) -> None:
        """Check that gh is installed, the repository exists and the commands path exists.

        Raises:
            GitHubCliNotInstalledError: If gh is not installed
            RepositoryNotFoundError: If the repository is missing or inaccessible
            CommandsPathNotFoundError: If the commands path does not exist
        """
        if not self._github.is_available():
            raise GitHubCliNotInstalledError()

        if not self._github.repository_exists(repository.owner, repository.repo):
            raise RepositoryNotFoundError(repository.owner, repository.repo)

        if not self._github.path_exists(repository.contents_api_path()):
            raise CommandsPathNotFoundError(
                repository.owner, repository.repo, repository.path, repository.branch
            )

    def fetch_tree(
        self, repository: RemoteRepository, *, use_cache: bool = True
    ) -> list[RemoteCommand]:
        """List every command file under the repository's commands path.

        A fresh cached listing is returned without calling gh. A successful
        walk is written back to the cache.

        Raises:
            RemoteFetchError: If any directory listing fails
        """
        key = self._cache_key(repository)
        if use_cache and self._cache is not None and key is not None:
            cached = self._read_cached_listing(self._cache, key)
            if cached is not None:
                return cached

        commands = self._walk(repository, "")
        logger.debug("Found %d commands in %s", len(commands), repository.full_name)

        if self._cache is not None and key is not None:
            self._write_cached_listing(self._cache, key, repository, commands)
        return commands

    def fetch_repository(
        self, repository: RemoteRepository, *, use_cache: bool = True
    ) -> RemoteRepository:
        commands = self.fetch_tree(repository, use_cache=use_cache)
        return repository.with_commands(tuple(commands), self._time.now())

    def fetch_body(self, repository: RemoteRepository, command: RemoteCommand) -> RemoteCommand:
        """Download a command's content and derive its description.

        Raises:
            RemoteFetchError: If neither the inline content nor the download URL works
        """
        api_path = file_api_path(repository, command.path)
        try:
            file_content = self._github.get_file(api_path)
        except GitHubCliNotInstalledError:
            raise
        except GitHubCliError as e:
            raise RemoteFetchError(api_path, f"Failed to fetch {command.path}: {e}") from e

        if file_content.content:
            try:
                raw = base64.b64decode(file_content.content.replace("\n", ""), validate=True)
            except binascii.Error as e:
                raise RemoteFetchError(api_path, f"Failed to decode base64 content: {e}") from e
            content = raw.decode("utf-8", errors="replace")
        elif file_content.download_url:
            try:
                content = self._github.download(file_content.download_url)
            except GitHubCliError as e:
                raise RemoteFetchError(
                    file_content.download_url, f"Failed to download {command.path}: {e}"
                ) from e
        else:
            raise RemoteFetchError(api_path, f"No content available for file: {command.path}")

        return replace(
            command,
            content=content,
            description=extract_description(content),
            size=command.size or len(content.encode("utf-8")),
        )

    def _walk(self, repository: RemoteRepository, relative_path: str) -> list[RemoteCommand]:
        api_path = repository.contents_api_path(relative_path)
        try:
            items = self._github.list_directory(api_path)
        except GitHubCliNotInstalledError:
            raise
        except GitHubCliError as e:
            location = relative_path or repository.path
            raise RemoteFetchError(api_path, f"Failed to list {location}: {e}") from e

        commands: list[RemoteCommand] = []
        prefix = f"{repository.path}/"
        for item in items:
            if item.is_dir:
                child = item.path[len(prefix) :] if item.path.startswith(prefix) else item.path
                commands.extend(self._walk(repository, child))
            elif item.is_file and is_command_file(item.name):
                commands.append(
                    RemoteCommand(
                        name=item.name[: -len(COMMAND_SUFFIX)],
                        path=item.path,
                        size=item.size,
                    )
                )
        return commands

    def _cache_key(self, repository: RemoteRepository) -> str | None:
        if self._cache is None or not self._cache.is_enabled():
            return None
        return self._cache.repository_key(
            repository.owner, repository.repo, repository.branch, repository.path
        )

    def _read_cached_listing(
        self, cache: RepositoryCache, key: str
    ) -> list[RemoteCommand] | None:
        cached = cache.get_repository(key)
        if cached is None or cached.is_expired:
            return None
        try:
            return [RemoteCommand.from_payload(item) for item in cached.payload["commands"]]
        except (KeyError, TypeError, ValueError) as e:
            logger.debug("Ignoring undecodable repository snapshot %s: %s", key, e)
            return None

    def _write_cached_listing(
        self,
        cache: RepositoryCache,
        key: str,
        repository: RemoteRepository,
        commands: list[RemoteCommand],
    ) -> None:
        payload: dict[str, Any] = {
            "owner": repository.owner,
            "repo": repository.repo,
            "branch": repository.branch,
            "path": repository.path,
            "url": repository.url,
            "last_fetched": self._time.now().isoformat(),
            "commands": [command.to_payload() for command in commands],
        }
        try:
            cache.put_repository(key, payload)
        except CacheError as e:
            logger.warning("Failed to cache listing for %s: %s", repository.full_name, e)
