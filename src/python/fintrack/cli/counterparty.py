"""Counterparty CLI commands."""

from __future__ import annotations

import click

from fintrack.cli.common import CLIENT_ERRORS, get_client
from fintrack.models import CounterpartyDTO
from fintrack.schema import COUNTERPARTY_ROLES


@click.group()
def counterparty() -> None:
    """Counterparty commands."""


@counterparty.command("add")
@click.option("--name", required=True, help="Counterparty name.")
@click.option("--role", required=True, type=click.Choice(COUNTERPARTY_ROLES), help="Client or contractor.")
@click.pass_context
def add_counterparty(ctx: click.Context, name: str, role: str) -> None:
    """Add a client or contractor."""
    with get_client(ctx) as client:
        try:
            record = client.add_counterparty(CounterpartyDTO(name=name, role=role))
        except CLIENT_ERRORS as e:
            raise click.ClickException(str(e))
    click.echo(f"Added counterparty {record.key}")


@counterparty.command("list")
@click.option("--role", default=None, type=click.Choice(COUNTERPARTY_ROLES), help="Filter by role.")
@click.pass_context
def list_counterparties(ctx: click.Context, role: str | None) -> None:
    """List counterparties."""
    with get_client(ctx) as client:
        records = client.list_counterparties(role)

    if not records:
        click.echo("No counterparties found.")
        return

    for record in records:
        click.echo(f"{record.key}\t{record.role}\t{record.name}")


@counterparty.command("delete")
@click.argument("key", type=int)
@click.pass_context
def delete_counterparty(ctx: click.Context, key: int) -> None:
    """Delete a counterparty; linked projects and transactions are kept."""
    with get_client(ctx) as client:
        try:
            client.delete_counterparty(key)
        except CLIENT_ERRORS as e:
            raise click.ClickException(str(e))
    click.echo(f"Deleted counterparty {key}")
