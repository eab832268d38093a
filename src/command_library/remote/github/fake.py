"""Fake GitHubContents for testing.

FakeGitHubContents serves an in-memory contents tree supplied to its
constructor. Construct instances directly with keyword arguments.
"""

from command_library.errors import GitHubCliError, GitHubCliNotInstalledError
from command_library.remote.github.abc import GitHubContents
from command_library.remote.github.types import ContentItem, FileContent


class FakeGitHubContents(GitHubContents):
    """In-memory fake implementation of the contents gateway.

    This class has NO public setup methods. All state is provided via constructor
    using keyword arguments with sensible defaults (empty dicts).
    """

    def __init__(
        self,
        *,
        available: bool = True,
        repositories: set[str] | None = None,
        directories: dict[str, list[ContentItem]] | None = None,
        files: dict[str, FileContent] | None = None,
        downloads: dict[str, str] | None = None,
        failing_paths: set[str] | None = None,
    ) -> None:
        """Create FakeGitHubContents with pre-configured state.

        Args:
            available: Whether gh is "installed"
            repositories: Existing repositories as "owner/repo"
            directories: Mapping of contents API path -> directory listing
            files: Mapping of contents API path -> file payload
            downloads: Mapping of download URL -> raw content
            failing_paths: API paths and URLs that fail as if gh returned an error
        """
        self._available = available
        self._repositories = repositories or set()
        self._directories = directories or {}
        self._files = files or {}
        self._downloads = downloads or {}
        self._failing_paths = failing_paths or set()
        self._listed_paths: list[str] = []
        self._fetched_files: list[str] = []
        self._downloaded_urls: list[str] = []

    @property
    def listed_paths(self) -> list[str]:
        """Read-only access to directory listings requested, for test assertions."""
        return list(self._listed_paths)

    @property
    def fetched_files(self) -> list[str]:
        return list(self._fetched_files)

    @property
    def downloaded_urls(self) -> list[str]:
        return list(self._downloaded_urls)

    def is_available(self) -> bool:
        return self._available

    def repository_exists(self, owner: str, repo: str) -> bool:
        self._require_available()
        return f"{owner}/{repo}" in self._repositories

    def path_exists(self, api_path: str) -> bool:
        self._require_available()
        if api_path in self._failing_paths:
            return False
        return api_path in self._directories or api_path in self._files

    def list_directory(self, api_path: str) -> list[ContentItem]:
        self._require_available()
        self._listed_paths.append(api_path)
        if api_path in self._failing_paths or api_path not in self._directories:
            raise GitHubCliError(["gh", "api", api_path], "HTTP 404: Not Found")
        return list(self._directories[api_path])

    def get_file(self, api_path: str) -> FileContent:
        self._require_available()
        self._fetched_files.append(api_path)
        if api_path in self._failing_paths or api_path not in self._files:
            raise GitHubCliError(["gh", "api", api_path], "HTTP 404: Not Found")
        return self._files[api_path]

    def download(self, url: str) -> str:
        self._downloaded_urls.append(url)
        if url in self._failing_paths or url not in self._downloads:
            raise GitHubCliError(["curl", "-sL", "--fail", url], "curl exited with status 22")
        return self._downloads[url]

    def _require_available(self) -> None:
        if not self._available:
            raise GitHubCliNotInstalledError()
