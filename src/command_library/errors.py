"""Exception types for command-library.

Misses and advisories are never exceptions; these types cover I/O failures,
malformed user input, and the validation probes that callers must see.
"""

from pathlib import Path


class CommandLibraryError(Exception):
    """Base class for errors raised by command-library."""


class CacheError(CommandLibraryError):
    """Reading or writing the cache directory failed for a reason other than a miss."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"{message}: {path}")


class BundledCatalogNotFoundError(CommandLibraryError):
    """No bundled catalog file could be located."""

    def __init__(self, searched_from: Path) -> None:
        self.searched_from = searched_from
        super().__init__(f"Bundled catalog not found (searched upward from {searched_from})")


class CatalogFormatError(ValueError):
    """A catalog document could not be parsed into categories and entries."""

    def __init__(self, path: Path | None, reason: str) -> None:
        self.path = path
        self.reason = reason
        location = f" in {path}" if path is not None else ""
        super().__init__(f"Malformed catalog{location}: {reason}")


class UserRegistryError(ValueError):
    """A user registry mutation was rejected (duplicate or unknown key/URL)."""


class UserRegistryCorruptError(CommandLibraryError):
    """The user registry file exists but cannot be parsed.

    The file is left untouched; the user has to repair or move it.
    """

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(
            f"User registry at {path} could not be parsed: {reason}\n"
            f"Fix the file by hand or move it aside to start with an empty registry."
        )


class InvalidRepositoryUrlError(ValueError):
    """A repository URL could not be parsed into owner, repo, branch and path."""


class GitHubCliError(CommandLibraryError):
    """A gh (or curl) invocation failed."""

    def __init__(self, cmd: list[str], message: str, stderr: str | None = None) -> None:
        self.cmd = cmd
        self.stderr = stderr
        detail = f"{message}\nCommand: {' '.join(cmd)}"
        if stderr:
            detail += f"\nstderr: {stderr.strip()}"
        super().__init__(detail)


class GitHubCliNotInstalledError(GitHubCliError):
    """The gh executable is not on PATH."""

    def __init__(self) -> None:
        super().__init__(
            ["gh", "--version"],
            "gh command not found - please install GitHub CLI: https://cli.github.com/",
        )


class RepositoryNotFoundError(CommandLibraryError):
    """The remote repository does not exist or is not accessible."""

    def __init__(self, owner: str, repo: str) -> None:
        self.owner = owner
        self.repo = repo
        super().__init__(f"Repository not found or not accessible: {owner}/{repo}")


class CommandsPathNotFoundError(CommandLibraryError):
    """The commands directory does not exist in the remote repository."""

    def __init__(self, owner: str, repo: str, path: str, branch: str) -> None:
        self.path = path
        super().__init__(f"Commands directory not found at path: {path} ({owner}/{repo}@{branch})")


class RemoteFetchError(CommandLibraryError):
    """Listing or downloading remote content failed."""

    def __init__(self, api_path: str, message: str) -> None:
        self.api_path = api_path
        super().__init__(f"{message} ({api_path})")


class ContentValidationError(ValueError):
    """Command content failed the import safety and shape checks."""
