"""Local target directory discovery.

Imported commands land in ``<project>/.claude/command_library/commands`` where
``<project>`` is the nearest ancestor of the working directory that holds a
``.claude`` directory.
"""

from pathlib import Path

CLAUDE_DIR_NAME = ".claude"
COMMANDS_SUBPATH = Path("command_library") / "commands"


def find_claude_directory(start: Path) -> Path | None:
    """Walk up from `start` to find a `.claude` directory.

    Args:
        start: Directory to start the search from

    Returns:
        Path to the `.claude` directory, or None if no ancestor has one
    """
    cur = start.resolve()
    for parent in [cur, *cur.parents]:
        candidate = parent / CLAUDE_DIR_NAME
        if candidate.is_dir():
            return candidate
    return None


def resolve_commands_directory(start: Path) -> Path:
    """Return the commands directory under the nearest `.claude` directory.

    The directory itself is not created; the import pipeline creates it on
    demand.

    Raises:
        FileNotFoundError: If no `.claude` directory exists up the tree
    """
    claude_dir = find_claude_directory(start)
    if claude_dir is None:
        raise FileNotFoundError(
            f"No {CLAUDE_DIR_NAME} directory found in {start} or any parent directory.\n"
            f"Create one in your project root or pass --target explicitly."
        )
    return claude_dir / COMMANDS_SUBPATH
