"""Error boundary handling for CLI commands.

Catches well-known exceptions at CLI entry points and displays clean error
messages without stack traces. With ``--debug`` the exception propagates so
the full traceback is shown.
"""

import functools
from collections.abc import Callable
from typing import Any, TypeVar

import click

from command_library.errors import CommandLibraryError

T = TypeVar("T", bound=Callable[..., Any])

DEBUG_META_KEY = "command_library.debug"

HANDLED_ERRORS = (
    CommandLibraryError,
    FileExistsError,
    FileNotFoundError,
    ValueError,
    PermissionError,
)


def _debug_enabled() -> bool:
    ctx = click.get_current_context(silent=True)
    if ctx is None:
        return False
    root = ctx.find_root()
    return bool(root.meta.get(DEBUG_META_KEY, False))


def cli_error_boundary(func: T) -> T:
    """Decorator that turns well-known exceptions into ``Error: ...`` and exit status 1.

    Catches:
        - CommandLibraryError: Cache, registry, gh and fetch failures
        - FileExistsError: File/directory conflicts
        - FileNotFoundError: Missing files/directories (e.g. no .claude directory)
        - ValueError: Invalid input or configuration
        - PermissionError: Permission denied errors

    All other exceptions bubble up normally with full stack traces.

    Example:
        @click.command()
        @cli_error_boundary
        def my_command():
            ...
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except HANDLED_ERRORS as e:
            if _debug_enabled():
                raise
            click.echo(f"Error: {e}", err=True)
            raise SystemExit(1) from None

    return wrapper  # type: ignore[return-value]
