"""Tests for listing and downloading remote command files."""

from pathlib import Path

import pytest

from command_library.cache.store import CacheStore
from command_library.core.config import CacheSettings
from command_library.core.time.fake import FakeTime
from command_library.errors import (
    CommandsPathNotFoundError,
    GitHubCliNotInstalledError,
    RemoteFetchError,
    RepositoryNotFoundError,
)
from command_library.remote.fetcher import RemoteContentFetcher, is_command_file
from command_library.remote.github.fake import FakeGitHubContents
from command_library.remote.github.types import FileContent
from command_library.remote.types import RemoteCommand
from command_library.remote.url_parser import parse_repository_url
from tests.test_utils.builders import VALID_COMMAND, api_path, fake_github_with_commands

REPOSITORY = parse_repository_url("github.com/acme/prompts")


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("review.md", True),
        ("git-commit.md", True),
        ("README.md", False),
        ("CLAUDE.md", False),
        ("notes.txt", False),
        (".md", False),
        ("123.md", False),
        ("2024-notes.md", True),
    ],
)
def test_is_command_file(name: str, expected: bool) -> None:
    """Test markdown files count unless the stem equals its own uppercase form."""
    assert is_command_file(name) is expected


def test_fetch_tree_walks_subdirectories() -> None:
    """Test nested directories are walked and README files skipped."""
    github = fake_github_with_commands(
        {
            "review.md": VALID_COMMAND,
            "README.md": "# Docs\n",
            "git/commit.md": VALID_COMMAND,
        }
    )
    fetcher = RemoteContentFetcher(github, FakeTime())

    commands = fetcher.fetch_tree(REPOSITORY)

    assert [c.name for c in commands] == ["review", "commit"]
    assert commands[1].path == ".claude/commands/git/commit.md"
    assert github.listed_paths == [
        api_path("acme", "prompts", ".claude/commands"),
        api_path("acme", "prompts", ".claude/commands/git"),
    ]


def test_fetch_tree_failure_raises_fetch_error() -> None:
    """Test a failing directory listing surfaces as RemoteFetchError."""
    github = fake_github_with_commands(
        {"git/commit.md": VALID_COMMAND},
        failing_paths={api_path("acme", "prompts", ".claude/commands/git")},
    )
    fetcher = RemoteContentFetcher(github, FakeTime())

    with pytest.raises(RemoteFetchError, match="Failed to list"):
        fetcher.fetch_tree(REPOSITORY)


def test_fetch_tree_without_gh_propagates() -> None:
    """Test a missing gh binary is not disguised as a fetch error."""
    fetcher = RemoteContentFetcher(FakeGitHubContents(available=False), FakeTime())

    with pytest.raises(GitHubCliNotInstalledError):
        fetcher.fetch_tree(REPOSITORY)


def test_fetch_tree_uses_cached_listing(tmp_path: Path) -> None:
    """Test a fresh cached listing is served without listing again."""
    time = FakeTime()
    cache = CacheStore(CacheSettings(), tmp_path / "cache", time)
    github = fake_github_with_commands({"review.md": VALID_COMMAND})
    fetcher = RemoteContentFetcher(github, time, cache=cache)

    first = fetcher.fetch_tree(REPOSITORY)
    second = fetcher.fetch_tree(REPOSITORY)

    assert [c.name for c in second] == [c.name for c in first] == ["review"]
    assert len(github.listed_paths) == 1


def test_fetch_tree_bypasses_cache_on_request(tmp_path: Path) -> None:
    """Test use_cache=False always walks the repository."""
    time = FakeTime()
    cache = CacheStore(CacheSettings(), tmp_path / "cache", time)
    github = fake_github_with_commands({"review.md": VALID_COMMAND})
    fetcher = RemoteContentFetcher(github, time, cache=cache)

    fetcher.fetch_tree(REPOSITORY)
    fetcher.fetch_tree(REPOSITORY, use_cache=False)

    assert len(github.listed_paths) == 2


def test_fetch_tree_ignores_expired_listing(tmp_path: Path) -> None:
    """Test an expired listing triggers a new walk."""
    time = FakeTime()
    cache = CacheStore(CacheSettings(ttl_hours=1), tmp_path / "cache", time)
    github = fake_github_with_commands({"review.md": VALID_COMMAND})
    fetcher = RemoteContentFetcher(github, time, cache=cache)

    fetcher.fetch_tree(REPOSITORY)
    time.sleep(3600)
    fetcher.fetch_tree(REPOSITORY)

    assert len(github.listed_paths) == 2


def test_fetch_repository_stamps_last_fetched() -> None:
    """Test fetch_repository attaches the commands and fetch time."""
    time = FakeTime()
    github = fake_github_with_commands({"review.md": VALID_COMMAND})
    fetcher = RemoteContentFetcher(github, time)

    repository = fetcher.fetch_repository(REPOSITORY)

    assert [c.name for c in repository.commands] == ["review"]
    assert repository.last_fetched == time.now()


def test_fetch_body_decodes_base64() -> None:
    """Test wrapped base64 content is decoded and described."""
    github = fake_github_with_commands({"review.md": VALID_COMMAND})
    fetcher = RemoteContentFetcher(github, FakeTime())
    command = fetcher.fetch_tree(REPOSITORY)[0]

    fetched = fetcher.fetch_body(REPOSITORY, command)

    assert fetched.content == VALID_COMMAND
    assert fetched.description == "Review the staged diff"


def test_fetch_body_falls_back_to_download_url() -> None:
    """Test files without inline content are downloaded from download_url."""
    path = ".claude/commands/big.md"
    url = "https://raw.githubusercontent.com/acme/prompts/main/.claude/commands/big.md"
    github = FakeGitHubContents(
        files={api_path("acme", "prompts", path): FileContent(path=path, download_url=url)},
        downloads={url: "# Big\n\nA large command body.\n"},
    )
    fetcher = RemoteContentFetcher(github, FakeTime())

    fetched = fetcher.fetch_body(REPOSITORY, RemoteCommand(name="big", path=path))

    assert fetched.content.startswith("# Big")
    assert fetched.description == "A large command body."
    assert github.downloaded_urls == [url]


def test_fetch_body_without_any_content() -> None:
    """Test a file with neither content nor download URL fails."""
    path = ".claude/commands/empty.md"
    github = FakeGitHubContents(files={api_path("acme", "prompts", path): FileContent(path=path)})
    fetcher = RemoteContentFetcher(github, FakeTime())

    with pytest.raises(RemoteFetchError, match="No content available"):
        fetcher.fetch_body(REPOSITORY, RemoteCommand(name="empty", path=path))


def test_fetch_body_invalid_base64() -> None:
    """Test undecodable inline content is a fetch error."""
    path = ".claude/commands/bad.md"
    github = FakeGitHubContents(
        files={api_path("acme", "prompts", path): FileContent(path=path, content="!!not-b64!!")}
    )
    fetcher = RemoteContentFetcher(github, FakeTime())

    with pytest.raises(RemoteFetchError, match="base64"):
        fetcher.fetch_body(REPOSITORY, RemoteCommand(name="bad", path=path))


def test_validate_repository() -> None:
    """Test validation checks gh, the repository and the commands path in turn."""
    github = fake_github_with_commands({"review.md": VALID_COMMAND})
    RemoteContentFetcher(github, FakeTime()).validate_repository(REPOSITORY)

    with pytest.raises(GitHubCliNotInstalledError):
        RemoteContentFetcher(FakeGitHubContents(available=False), FakeTime()).validate_repository(
            REPOSITORY
        )

    with pytest.raises(RepositoryNotFoundError):
        RemoteContentFetcher(FakeGitHubContents(), FakeTime()).validate_repository(REPOSITORY)

    no_path = FakeGitHubContents(repositories={"acme/prompts"})
    with pytest.raises(CommandsPathNotFoundError, match=".claude/commands"):
        RemoteContentFetcher(no_path, FakeTime()).validate_repository(REPOSITORY)
