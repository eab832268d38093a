"""Production GitHubContents implementation using gh api and curl."""

import json
from typing import Any

from command_library.core.subprocess_utils import execute_gh_command, is_executable_available
from command_library.errors import GitHubCliError, GitHubCliNotInstalledError
from command_library.remote.github.abc import GitHubContents
from command_library.remote.github.types import ContentItem, FileContent


def _parse_json(cmd: list[str], output: str) -> Any:
    try:
        return json.loads(output)
    except json.JSONDecodeError as e:
        raise GitHubCliError(cmd, f"Failed to parse GitHub API response: {e}") from e


def _content_item(cmd: list[str], item: Any) -> ContentItem:
    if not isinstance(item, dict):
        raise GitHubCliError(cmd, f"Unexpected directory listing item: {item!r}")
    try:
        return ContentItem(
            name=item["name"],
            path=item["path"],
            type=item["type"],
            size=item.get("size", 0),
            download_url=item.get("download_url"),
        )
    except KeyError as e:
        raise GitHubCliError(cmd, f"Directory listing item is missing {e}") from e


class RealGitHubContents(GitHubContents):
    def is_available(self) -> bool:
        return is_executable_available("gh")

    def repository_exists(self, owner: str, repo: str) -> bool:
        return self._probe(f"repos/{owner}/{repo}")

    def path_exists(self, api_path: str) -> bool:
        return self._probe(api_path)

    def list_directory(self, api_path: str) -> list[ContentItem]:
        cmd = ["gh", "api", api_path]
        data = _parse_json(cmd, execute_gh_command(cmd))
        if not isinstance(data, list):
            raise GitHubCliError(cmd, "Expected a directory listing")

        return [_content_item(cmd, item) for item in data]

    def get_file(self, api_path: str) -> FileContent:
        cmd = ["gh", "api", api_path]
        data = _parse_json(cmd, execute_gh_command(cmd))
        if not isinstance(data, dict):
            raise GitHubCliError(cmd, "Expected a file, got a directory listing")

        return FileContent(
            path=data.get("path", ""),
            content=data.get("content") or "",
            encoding=data.get("encoding") or "base64",
            download_url=data.get("download_url"),
        )

    def download(self, url: str) -> str:
        return execute_gh_command(["curl", "-sL", "--fail", url])

    def _probe(self, api_path: str) -> bool:
        try:
            execute_gh_command(["gh", "api", api_path])
        except GitHubCliNotInstalledError:
            raise
        except GitHubCliError:
            return False
        return True
