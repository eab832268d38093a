"""`cmdlib cache` commands."""

import click
from rich.table import Table

from command_library.cli.error_boundary import cli_error_boundary
from command_library.cli.output import format_size, print_table, user_output
from command_library.core.context import CommandLibraryContext


@click.group("cache")
def cache_group() -> None:
    """Inspect and manage the local cache."""


@cache_group.command("stats")
@click.pass_obj
@cli_error_boundary
def stats_cmd(ctx: CommandLibraryContext) -> None:
    """Show cache location, size and hit rate."""
    if not ctx.cache.is_enabled():
        user_output("Cache is disabled.")
        return

    stats = ctx.cache.get_stats()
    table = Table(show_header=False)
    table.add_column("field", style="cyan", no_wrap=True)
    table.add_column("value")
    table.add_row("directory", str(ctx.cache.directory))
    table.add_row("ttl", f"{ctx.settings.ttl_hours}h")
    table.add_row("entries", str(stats.entry_count))
    table.add_row("size", format_size(stats.total_size_bytes))
    table.add_row("registry hits/misses", f"{stats.registry_hits}/{stats.registry_misses}")
    table.add_row("repository hits/misses", f"{stats.repository_hits}/{stats.repository_misses}")
    table.add_row("hit rate", f"{stats.hit_rate:.0%}")
    if stats.last_refresh is not None:
        table.add_row("last refresh", stats.last_refresh.isoformat(timespec="seconds"))
    print_table(table)


@cache_group.command("clear")
@click.pass_obj
@cli_error_boundary
def clear_cmd(ctx: CommandLibraryContext) -> None:
    """Delete every cached record."""
    if not ctx.cache.is_enabled():
        user_output("Cache is disabled.")
        return

    ctx.cache.clear()
    user_output(click.style("✓ ", fg="green") + f"Cleared {ctx.cache.directory}")


@cache_group.command("refresh")
@click.option(
    "--force", is_flag=True, help="Reload the bundled catalog even if the cache is fresh."
)
@click.pass_obj
@cli_error_boundary
def refresh_cmd(ctx: CommandLibraryContext, force: bool) -> None:
    """Re-validate the cached bundled catalog."""
    if force:
        ctx.registry.refresh_bundled()
        user_output(click.style("✓ ", fg="green") + "Bundled catalog reloaded")
        return

    if not ctx.cache.registry_needs_refresh():
        user_output("Cached bundled catalog is fresh; nothing to do.")
        return

    if not ctx.background_refresher().run_once():
        click.echo("Error: Bundled catalog refresh failed (see warnings above)", err=True)
        raise SystemExit(1)
    user_output(click.style("✓ ", fg="green") + "Bundled catalog reloaded")
