"""`cmdlib browse` and `cmdlib import`."""

from pathlib import Path

import click
from rich.table import Table

from command_library.cli.error_boundary import cli_error_boundary
from command_library.cli.output import format_size, print_table, user_output
from command_library.core.context import CommandLibraryContext
from command_library.core.paths import (
    COMMANDS_SUBPATH,
    find_claude_directory,
    resolve_commands_directory,
)
from command_library.remote.importer import check_local_exists
from command_library.remote.types import ImportOptions, RemoteCommand
from command_library.remote.url_parser import parse_repository_url


@click.command("browse")
@click.argument("url")
@click.option("--refresh", is_flag=True, help="Ignore the cached listing.")
@click.pass_obj
@cli_error_boundary
def browse_cmd(ctx: CommandLibraryContext, url: str, refresh: bool) -> None:
    """List the commands available in a GitHub repository."""
    repository = parse_repository_url(url)
    repository = ctx.fetcher.fetch_repository(repository, use_cache=not refresh)

    commands = list(repository.commands)
    if not commands:
        user_output(f"No commands found in {repository.web_url()}")
        return

    claude_dir = find_claude_directory(ctx.cwd)
    if claude_dir is not None:
        commands = check_local_exists(commands, claude_dir / COMMANDS_SUBPATH)

    table = Table(show_header=True, header_style="bold")
    table.add_column("name", style="cyan", no_wrap=True)
    table.add_column("path", no_wrap=True)
    table.add_column("size", justify="right")
    table.add_column("local", no_wrap=True)
    for command in commands:
        table.add_row(
            command.name,
            command.path,
            format_size(command.size),
            "exists" if command.local_exists else "",
        )

    user_output(f"{repository.full_name}@{repository.branch}: {repository.path}")
    print_table(table)


def _select_commands(
    available: list[RemoteCommand], names: tuple[str, ...], select_all: bool
) -> list[RemoteCommand]:
    if select_all:
        return available

    if not names:
        raise click.UsageError("Name at least one command or pass --all")

    by_name = {command.name: command for command in available}
    missing = [name for name in names if name not in by_name]
    if missing:
        raise click.UsageError(
            f"Unknown command(s): {', '.join(missing)}\n"
            f"Available: {', '.join(sorted(by_name))}"
        )
    return [by_name[name] for name in names]


@click.command("import")
@click.argument("url")
@click.argument("names", nargs=-1)
@click.option("--all", "select_all", is_flag=True, help="Import every command in the repository.")
@click.option("--overwrite", is_flag=True, help="Replace commands that already exist locally.")
@click.option("--no-backup", is_flag=True, help="Do not back up files before overwriting.")
@click.option("--no-validate", is_flag=True, help="Skip content safety checks.")
@click.option(
    "--target",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory to write into (defaults to .claude/command_library/commands).",
)
@click.pass_obj
@cli_error_boundary
def import_cmd(
    ctx: CommandLibraryContext,
    url: str,
    names: tuple[str, ...],
    select_all: bool,
    overwrite: bool,
    no_backup: bool,
    no_validate: bool,
    target: Path | None,
) -> None:
    """Import commands from a GitHub repository.

    Examples:
        cmdlib import github.com/acme/prompts review commit
        cmdlib import github.com/acme/prompts --all --overwrite
    """
    repository = parse_repository_url(url)
    available = ctx.fetcher.fetch_tree(repository)
    selected = _select_commands(available, names, select_all)

    target_directory = target if target is not None else resolve_commands_directory(ctx.cwd)
    options = ImportOptions(
        target_directory=target_directory,
        overwrite_existing=overwrite,
        create_backups=not no_backup,
        validate_content=not no_validate,
    )
    result = ctx.importer.import_commands(repository, selected, options)

    for name in result.imported:
        user_output(click.style("✓ ", fg="green") + f"Imported {name}")
    for name in result.skipped:
        user_output(click.style("- ", fg="yellow") + f"Skipped {name} (already exists)")
    for error in result.errors:
        user_output(click.style("✗ ", fg="red") + error)

    user_output(
        f"\n{len(result.imported)} imported, {len(result.skipped)} skipped, "
        f"{len(result.failed)} failed → {target_directory}"
    )
    if result.failed:
        raise SystemExit(1)
