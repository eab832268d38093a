"""Remote repository and import records."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Any

DEFAULT_BRANCH = "main"
DEFAULT_COMMANDS_PATH = ".claude/commands"


@dataclass(frozen=True)
class RemoteCommand:
    """A command file found in a remote repository.

    `content` stays empty until the body is fetched. `selected` is for
    front ends only and is never persisted.
    """

    name: str
    path: str
    description: str = ""
    content: str = ""
    size: int = 0
    local_exists: bool = False
    selected: bool = False

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "description": self.description,
            "size": self.size,
        }

    @staticmethod
    def from_payload(data: dict[str, Any]) -> "RemoteCommand":
        return RemoteCommand(
            name=str(data["name"]),
            path=str(data["path"]),
            description=str(data.get("description", "")),
            size=int(data.get("size", 0)),
        )


@dataclass(frozen=True)
class RemoteRepository:
    owner: str
    repo: str
    branch: str = DEFAULT_BRANCH
    path: str = DEFAULT_COMMANDS_PATH
    url: str = ""
    commands: tuple[RemoteCommand, ...] = ()
    last_fetched: datetime | None = None

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def contents_api_path(self, sub_path: str = "") -> str:
        """`gh api` path of the contents endpoint for the commands path or a child of it."""
        path = self.path
        if sub_path:
            path = f"{path}/{sub_path.lstrip('/')}"
        return f"repos/{self.owner}/{self.repo}/contents/{path}?ref={self.branch}"

    def web_url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repo}/tree/{self.branch}/{self.path}"

    def with_commands(
        self, commands: tuple[RemoteCommand, ...], last_fetched: datetime | None
    ) -> "RemoteRepository":
        return replace(self, commands=commands, last_fetched=last_fetched)


@dataclass(frozen=True)
class ImportOptions:
    target_directory: Path
    overwrite_existing: bool = False
    create_backups: bool = True
    validate_content: bool = True


@dataclass(frozen=True)
class ImportResult:
    """Outcome of an import batch. Each command name appears in exactly one of
    `imported`, `skipped` or `failed`; `errors` is parallel to `failed`."""

    imported: tuple[str, ...] = ()
    skipped: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()
    errors: tuple[str, ...] = field(default=())

    @property
    def total(self) -> int:
        return len(self.imported) + len(self.skipped) + len(self.failed)
