"""`cmdlib registry` commands: browse and edit the combined catalog."""

import click
from rich.table import Table

from command_library.cli.error_boundary import cli_error_boundary
from command_library.cli.output import print_table, user_output, warning_output
from command_library.core.context import CommandLibraryContext
from command_library.registry.types import CatalogEntry, CategoryInput, RepositoryInput
from command_library.remote.url_parser import parse_repository_url


def _entries_table(ctx: CommandLibraryContext, entries: list[CatalogEntry]) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("category", style="cyan", no_wrap=True)
    table.add_column("name", no_wrap=True)
    table.add_column("author", no_wrap=True)
    table.add_column("tags")
    table.add_column("source", no_wrap=True)
    table.add_column("url", no_wrap=True)

    for entry in entries:
        source = "user" if ctx.registry.is_custom_repository(entry.url) else "bundled"
        name = f"{entry.name} ✓" if entry.verified else entry.name
        table.add_row(
            entry.category_key,
            name,
            entry.author,
            ", ".join(entry.tags),
            source,
            entry.url,
        )
    return table


@click.group("registry")
def registry_group() -> None:
    """Browse and edit the repository catalog."""


@registry_group.command("list")
@click.option("--category", "category_key", help="Only list repositories in this category.")
@click.pass_obj
@cli_error_boundary
def list_cmd(ctx: CommandLibraryContext, category_key: str | None) -> None:
    """List repositories from the bundled and user catalogs."""
    ctx.registry.load_registries()

    if category_key is not None:
        entries = ctx.registry.category_entries(category_key)
    else:
        entries = ctx.registry.all_entries()

    if not entries:
        user_output("No repositories found.")
        return

    print_table(_entries_table(ctx, entries))


@registry_group.command("search")
@click.argument("query")
@click.pass_obj
@cli_error_boundary
def search_cmd(ctx: CommandLibraryContext, query: str) -> None:
    """Search names, descriptions, authors, tags and category names."""
    ctx.registry.load_registries()
    entries = ctx.registry.search(query)

    if not entries:
        user_output(f"No repositories match '{query}'.")
        return

    print_table(_entries_table(ctx, entries))


@registry_group.command("categories")
@click.pass_obj
@cli_error_boundary
def categories_cmd(ctx: CommandLibraryContext) -> None:
    """List categories with their repository counts."""
    ctx.registry.load_registries()
    merged = ctx.registry.merged
    if merged is None or not merged.categories:
        user_output("No categories found.")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("key", style="cyan", no_wrap=True)
    table.add_column("name", no_wrap=True)
    table.add_column("repos", justify="right")
    table.add_column("source", no_wrap=True)
    for category in merged.categories:
        table.add_row(
            category.key,
            f"{category.icon} {category.name}".strip(),
            str(len(category.entries)),
            "user" if category.user_created else "bundled",
        )
    print_table(table)


@registry_group.command("validate")
@click.pass_obj
@cli_error_boundary
def validate_cmd(ctx: CommandLibraryContext) -> None:
    """Report problems with the bundled and user catalogs."""
    warnings = ctx.registry.load_registries()
    if not warnings:
        user_output(click.style("✓ ", fg="green") + "No registry issues found.")
        return

    for warning in warnings:
        warning_output(warning)


@registry_group.command("add")
@click.argument("url")
@click.option("--category", "category_key", required=True, help="Category key to add to.")
@click.option("--new-category", is_flag=True, help="Create the category first.")
@click.option("--category-name", default="", help="Display name for a new category.")
@click.option("--category-description", default="", help="Description for a new category.")
@click.option("--category-icon", default="", help="Icon for a new category.")
@click.option("--name", default=None, help="Repository display name (defaults to repo name).")
@click.option("--description", default="", help="Repository description.")
@click.option("--author", default=None, help="Repository author (defaults to owner).")
@click.option("--tag", "tags", multiple=True, help="Tag; repeat for several.")
@click.option("--check", is_flag=True, help="Verify the repository on GitHub before saving.")
@click.pass_obj
@cli_error_boundary
def add_cmd(
    ctx: CommandLibraryContext,
    url: str,
    category_key: str,
    new_category: bool,
    category_name: str,
    category_description: str,
    category_icon: str,
    name: str | None,
    description: str,
    author: str | None,
    tags: tuple[str, ...],
    check: bool,
) -> None:
    """Add a repository to your personal catalog.

    Examples:
        cmdlib registry add github.com/acme/prompts --category productivity
        cmdlib registry add github.com/acme/prompts --category mine --new-category
    """
    repository = parse_repository_url(url)
    if check:
        ctx.fetcher.validate_repository(repository)

    ctx.registry.load_registries()
    stored = ctx.registry.add_custom_repository(
        RepositoryInput(
            url=url,
            name=name or repository.repo,
            description=description,
            author=author or repository.owner,
            tags=tags,
            category=CategoryInput(
                key=category_key,
                is_new=new_category,
                name=category_name,
                description=category_description,
                icon=category_icon,
            ),
        )
    )
    user_output(
        click.style("✓ ", fg="green") + f"Added {stored.name} to category '{stored.category_key}'"
    )


@registry_group.command("remove")
@click.argument("url")
@click.pass_obj
@cli_error_boundary
def remove_cmd(ctx: CommandLibraryContext, url: str) -> None:
    """Remove a repository from your personal catalog."""
    ctx.registry.load_registries()
    ctx.registry.remove_custom_repository(url)
    user_output(click.style("✓ ", fg="green") + f"Removed {url}")
