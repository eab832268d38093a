"""Tests for the gh/curl subprocess wrapper."""

import subprocess
from unittest.mock import Mock, patch

import pytest

from command_library.core.subprocess_utils import execute_gh_command, is_executable_available
from command_library.errors import GitHubCliError, GitHubCliNotInstalledError


def test_returns_stdout() -> None:
    """Test a successful command returns its stdout."""
    with patch("command_library.core.subprocess_utils.subprocess.run") as mock_run:
        mock_result = Mock(spec=subprocess.CompletedProcess)
        mock_result.stdout = '{"ok": true}'
        mock_run.return_value = mock_result

        output = execute_gh_command(["gh", "api", "repos/acme/prompts"])

        assert output == '{"ok": true}'
        mock_run.assert_called_once_with(
            ["gh", "api", "repos/acme/prompts"],
            cwd=None,
            capture_output=True,
            text=True,
            encoding="utf-8",
            check=True,
        )


def test_failure_includes_stderr() -> None:
    """Test a non-zero exit becomes GitHubCliError carrying stderr."""
    with patch("command_library.core.subprocess_utils.subprocess.run") as mock_run:
        mock_run.side_effect = subprocess.CalledProcessError(
            returncode=1,
            cmd=["gh", "api", "repos/acme/missing"],
            stderr="HTTP 404: Not Found",
        )

        with pytest.raises(GitHubCliError) as exc_info:
            execute_gh_command(["gh", "api", "repos/acme/missing"])

        assert exc_info.value.stderr == "HTTP 404: Not Found"
        assert "exited with status 1" in str(exc_info.value)
        assert "HTTP 404" in str(exc_info.value)


def test_missing_gh_binary() -> None:
    """Test a missing gh executable raises GitHubCliNotInstalledError."""
    with patch("command_library.core.subprocess_utils.subprocess.run") as mock_run:
        mock_run.side_effect = FileNotFoundError("gh")

        with pytest.raises(GitHubCliNotInstalledError):
            execute_gh_command(["gh", "api", "user"])


def test_missing_other_binary() -> None:
    """Test a missing non-gh executable is a plain GitHubCliError."""
    with patch("command_library.core.subprocess_utils.subprocess.run") as mock_run:
        mock_run.side_effect = FileNotFoundError("curl")

        with pytest.raises(GitHubCliError) as exc_info:
            execute_gh_command(["curl", "-sL", "https://example.com"])

        assert not isinstance(exc_info.value, GitHubCliNotInstalledError)
        assert "Command not found: curl" in str(exc_info.value)


def test_is_executable_available() -> None:
    """Test executable lookup defers to PATH resolution."""
    with patch("command_library.core.subprocess_utils.shutil.which") as mock_which:
        mock_which.return_value = None
        assert is_executable_available("gh") is False

        mock_which.return_value = "/usr/bin/gh"
        assert is_executable_available("gh") is True
