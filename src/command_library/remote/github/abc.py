"""GitHub contents gateway interface."""

from abc import ABC, abstractmethod

from command_library.remote.github.types import ContentItem, FileContent


class GitHubContents(ABC):
    """Read-only access to repository contents through the gh CLI.

    All failures other than "does not exist" probes raise GitHubCliError.
    """

    @abstractmethod
    def is_available(self) -> bool:
        """Check whether the gh CLI is installed."""
        ...

    @abstractmethod
    def repository_exists(self, owner: str, repo: str) -> bool:
        """Check whether a repository exists and is accessible.

        Raises:
            GitHubCliNotInstalledError: If gh is not installed
        """
        ...

    @abstractmethod
    def path_exists(self, api_path: str) -> bool:
        """Check whether a contents API path resolves.

        Raises:
            GitHubCliNotInstalledError: If gh is not installed
        """
        ...

    @abstractmethod
    def list_directory(self, api_path: str) -> list[ContentItem]:
        """List a directory through the contents API.

        Args:
            api_path: ``repos/<owner>/<repo>/contents/<path>?ref=<branch>``

        Returns:
            Directory entries in API order

        Raises:
            GitHubCliError: If the call fails or the path is not a directory
        """
        ...

    @abstractmethod
    def get_file(self, api_path: str) -> FileContent:
        """Fetch one file through the contents API.

        Raises:
            GitHubCliError: If the call fails or the path is not a file
        """
        ...

    @abstractmethod
    def download(self, url: str) -> str:
        """Download raw file content from a download URL.

        Raises:
            GitHubCliError: If the download fails
        """
        ...
