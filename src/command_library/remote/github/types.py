"""Records returned by the GitHub contents API."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ContentItem:
    """One entry of a directory listing."""

    name: str
    path: str
    type: str  # "file" or "dir"
    size: int = 0
    download_url: str | None = None

    @property
    def is_dir(self) -> bool:
        return self.type == "dir"

    @property
    def is_file(self) -> bool:
        return self.type == "file"


@dataclass(frozen=True)
class FileContent:
    """A single file as returned by the contents API.

    `content` is base64 (possibly wrapped with newlines) or empty for large
    files, in which case `download_url` is set.
    """

    path: str
    content: str = ""
    encoding: str = "base64"
    download_url: str | None = None
