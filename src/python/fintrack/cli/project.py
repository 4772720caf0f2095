"""Project CLI commands."""

from __future__ import annotations

import click

from fintrack.cli.common import CLIENT_ERRORS, format_amount, get_client, parse_decimal
from fintrack.models import ProjectDTO
from fintrack.schema import SUPPORTED_CURRENCIES


@click.group()
def project() -> None:
    """Project commands."""


@project.command("add")
@click.option("--title", required=True, help="Project title.")
@click.option("--budget", "budget_value", default=None, help="Committed budget.")
@click.option(
    "--currency",
    default=None,
    type=click.Choice(SUPPORTED_CURRENCIES, case_sensitive=False),
    help="Budget currency (required with --budget).",
)
@click.option("--exchange-rate", default=None, help="Project rate, RUB per USD.")
@click.option("--counterparty", default=None, help="Client or contractor name.")
@click.pass_context
def add_project(
    ctx: click.Context,
    title: str,
    budget_value: str | None,
    currency: str | None,
    exchange_rate: str | None,
    counterparty: str | None,
) -> None:
    """Add a project.

    Examples:
        fintrack project add --title "Website" --budget 1000 --currency USD --exchange-rate 95
    """
    budget = parse_decimal(budget_value, "--budget")
    rate = parse_decimal(exchange_rate, "--exchange-rate")
    with get_client(ctx) as client:
        try:
            record = client.add_project(
                ProjectDTO(
                    title=title,
                    budget=budget,
                    currency=currency,
                    exchange_rate=rate,
                    counterparty=counterparty,
                )
            )
        except CLIENT_ERRORS as e:
            raise click.ClickException(str(e))
    click.echo(f"Added project {record.key}")


@project.command("list")
@click.option("--counterparty", default=None, help="Filter by counterparty name.")
@click.pass_context
def list_projects(ctx: click.Context, counterparty: str | None) -> None:
    """List projects with budgets."""
    with get_client(ctx) as client:
        try:
            records = client.list_projects(counterparty=counterparty)
        except CLIENT_ERRORS as e:
            raise click.ClickException(str(e))

    if not records:
        click.echo("No projects found.")
        return

    for record in records:
        budget = (
            format_amount(record.budget, record.currency)
            if record.budget is not None and record.currency
            else "-"
        )
        status = "done" if record.is_completed else "open"
        click.echo(
            f"{record.key}\t{record.title}\t{budget}\t{record.counterparty or ''}\t{status}"
        )


@project.command("complete")
@click.argument("key", type=int)
@click.pass_context
def complete_project(ctx: click.Context, key: int) -> None:
    """Mark a project as completed."""
    with get_client(ctx) as client:
        try:
            record = client.get_project(key)
            client.update_project(
                key,
                ProjectDTO(
                    title=record.title,
                    budget=record.budget,
                    currency=record.currency,
                    exchange_rate=record.exchange_rate,
                    counterparty=record.counterparty,
                    is_completed=True,
                ),
            )
        except CLIENT_ERRORS as e:
            raise click.ClickException(str(e))
    click.echo(f"Completed project {key}")


@project.command("delete")
@click.argument("key", type=int)
@click.pass_context
def delete_project(ctx: click.Context, key: int) -> None:
    """Delete a project; its transactions are kept without a project."""
    with get_client(ctx) as client:
        try:
            client.delete_project(key)
        except CLIENT_ERRORS as e:
            raise click.ClickException(str(e))
    click.echo(f"Deleted project {key}")
