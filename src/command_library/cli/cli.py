import logging

import click

from command_library import __version__
from command_library.cli.commands.cache import cache_group
from command_library.cli.commands.registry import registry_group
from command_library.cli.commands.remote import browse_cmd, import_cmd
from command_library.cli.error_boundary import DEBUG_META_KEY, cli_error_boundary
from command_library.core.context import create_context

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(version=__version__, prog_name="cmdlib")
@click.option("--debug", is_flag=True, help="Show debug logging and full tracebacks.")
@click.pass_context
@cli_error_boundary
def cli(ctx: click.Context, debug: bool) -> None:
    """Curate and import reusable slash commands from GitHub repositories."""
    ctx.meta[DEBUG_META_KEY] = debug
    if debug:
        logging.basicConfig(
            level=logging.DEBUG, format="[DEBUG %(name)s:%(lineno)d] %(message)s"
        )
    else:
        logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")

    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        ctx.obj = create_context(debug=debug)


cli.add_command(registry_group)
cli.add_command(browse_cmd)
cli.add_command(import_cmd)
cli.add_command(cache_group)


def main() -> None:
    """CLI entry point used by the `cmdlib` console script."""
    cli()
