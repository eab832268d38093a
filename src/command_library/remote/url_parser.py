"""Parsing of GitHub repository URLs into owner, repo, branch and path."""

import re
from urllib.parse import urlparse

from command_library.errors import InvalidRepositoryUrlError
from command_library.remote.types import DEFAULT_BRANCH, DEFAULT_COMMANDS_PATH, RemoteRepository

SUPPORTED_HOSTS = ("github.com", "www.github.com")
MAX_NAME_LENGTH = 100

_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9]([a-zA-Z0-9._-]*[a-zA-Z0-9])?$")


def validate_github_name(name: str, kind: str) -> None:
    """Check an owner or repository name against GitHub's naming rules.

    Raises:
        InvalidRepositoryUrlError: If the name is not acceptable
    """
    if not name:
        raise InvalidRepositoryUrlError(f"Invalid {kind} name: name cannot be empty")
    if not _NAME_PATTERN.match(name):
        raise InvalidRepositoryUrlError(
            f"Invalid {kind} name '{name}': must be alphanumeric with . _ - allowed"
        )
    if "--" in name:
        raise InvalidRepositoryUrlError(
            f"Invalid {kind} name '{name}': consecutive hyphens not allowed"
        )
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidRepositoryUrlError(
            f"Invalid {kind} name '{name}': too long (max {MAX_NAME_LENGTH} characters)"
        )


def parse_repository_url(raw_url: str) -> RemoteRepository:
    """Parse a GitHub URL.

    Accepted forms::

        github.com/owner/repo
        https://github.com/owner/repo/tree/<branch>/<path>
        https://github.com/owner/repo/<path>

    The branch defaults to ``main`` and the path to ``.claude/commands``.

    Raises:
        InvalidRepositoryUrlError: If the URL is not a usable GitHub URL
    """
    url = raw_url.strip()
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"

    parsed = urlparse(url)
    if parsed.hostname not in SUPPORTED_HOSTS:
        raise InvalidRepositoryUrlError(
            f"Only GitHub URLs are supported, got: {parsed.hostname or raw_url}"
        )

    parts = [part for part in parsed.path.strip("/").split("/") if part]
    if len(parts) < 2:
        raise InvalidRepositoryUrlError(f"Invalid GitHub URL, missing owner/repo: {raw_url}")

    owner, repo = parts[0], parts[1]
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]

    branch = DEFAULT_BRANCH
    path = ""
    rest = parts[2:]
    if rest and rest[0] == "tree" and len(rest) > 1:
        branch = rest[1]
        path = "/".join(rest[2:])
    elif rest:
        path = "/".join(rest)

    validate_github_name(owner, "owner")
    validate_github_name(repo, "repository")

    return RemoteRepository(
        owner=owner,
        repo=repo,
        branch=branch,
        path=path or DEFAULT_COMMANDS_PATH,
        url=url,
    )
