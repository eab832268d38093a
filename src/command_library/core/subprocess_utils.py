"""Subprocess helpers for the gh and curl invocations.

Every external process the library runs goes through ``execute_gh_command`` so
that failures surface as ``GitHubCliError`` with the command and stderr.
"""

import logging
import shutil
import subprocess
from pathlib import Path

from command_library.errors import GitHubCliError, GitHubCliNotInstalledError

logger = logging.getLogger(__name__)


def execute_gh_command(cmd: list[str], cwd: Path | None = None) -> str:
    """Execute a gh (or curl) command and return stdout.

    Args:
        cmd: Command and arguments to execute
        cwd: Working directory for command execution

    Returns:
        stdout from the command

    Raises:
        GitHubCliNotInstalledError: If the gh binary is not found
        GitHubCliError: If the command exits non-zero or its binary is missing
    """
    logger.debug("Running: %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            check=True,
        )
        return result.stdout
    except subprocess.CalledProcessError as e:
        raise GitHubCliError(
            cmd, f"Command exited with status {e.returncode}", stderr=e.stderr
        ) from e
    except FileNotFoundError as e:
        if cmd and cmd[0] == "gh":
            raise GitHubCliNotInstalledError() from e
        raise GitHubCliError(cmd, f"Command not found: {cmd[0]}") from e


def is_executable_available(name: str) -> bool:
    """Check whether `name` resolves to an executable on PATH."""
    return shutil.which(name) is not None
