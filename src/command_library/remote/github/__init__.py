from command_library.remote.github.abc import GitHubContents
from command_library.remote.github.fake import FakeGitHubContents
from command_library.remote.github.real import RealGitHubContents
from command_library.remote.github.types import ContentItem, FileContent

__all__ = [
    "ContentItem",
    "FakeGitHubContents",
    "FileContent",
    "GitHubContents",
    "RealGitHubContents",
]
