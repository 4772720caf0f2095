"""Category CLI commands."""

from __future__ import annotations

import click

from fintrack.cli.common import CLIENT_ERRORS, get_client
from fintrack.models import CategoryDTO
from fintrack.schema import CATEGORY_KINDS


@click.group()
def category() -> None:
    """Category commands."""


@category.command("add")
@click.option("--name", required=True, help="Category name.")
@click.option("--kind", required=True, type=click.Choice(CATEGORY_KINDS), help="Category kind.")
@click.pass_context
def add_category(ctx: click.Context, name: str, kind: str) -> None:
    """Add an income or expense category."""
    with get_client(ctx) as client:
        try:
            record = client.add_category(CategoryDTO(name=name, kind=kind))
        except CLIENT_ERRORS as e:
            raise click.ClickException(str(e))
    click.echo(f"Added category {record.key}")


@category.command("list")
@click.option("--kind", default=None, type=click.Choice(CATEGORY_KINDS), help="Filter by kind.")
@click.pass_context
def list_categories(ctx: click.Context, kind: str | None) -> None:
    """List categories."""
    with get_client(ctx) as client:
        categories = client.list_categories(kind)

    if not categories:
        click.echo("No categories found.")
        return

    for record in categories:
        click.echo(f"{record.key}\t{record.kind}\t{record.name}")


@category.command("delete")
@click.argument("key", type=int)
@click.pass_context
def delete_category(ctx: click.Context, key: int) -> None:
    """Delete a category; its transactions become uncategorized."""
    with get_client(ctx) as client:
        try:
            client.delete_category(key)
        except CLIENT_ERRORS as e:
            raise click.ClickException(str(e))
    click.echo(f"Deleted category {key}")
