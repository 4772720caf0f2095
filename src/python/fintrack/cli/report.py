"""Report CLI commands."""

from __future__ import annotations

import click

from fintrack.cli.common import CLIENT_ERRORS, echo_summary, format_amount, get_client


@click.group()
def report() -> None:
    """Summary reports."""


@report.command("dashboard")
@click.pass_context
def dashboard(ctx: click.Context) -> None:
    """Total balance and ledger totals in the primary currency."""
    with get_client(ctx) as client:
        summary = client.get_dashboard_summary()
    click.echo(
        f"Total balance ({summary.account_count} accounts): "
        f"{format_amount(summary.total_balance, summary.currency)}"
    )
    echo_summary("Dashboard", summary.ledger)


@report.command("project")
@click.argument("key", type=int)
@click.pass_context
def project_report(ctx: click.Context, key: int) -> None:
    """Project totals in the project currency."""
    with get_client(ctx) as client:
        try:
            record = client.get_project(key)
            summary = client.get_project_summary(key)
        except CLIENT_ERRORS as e:
            raise click.ClickException(str(e))
    echo_summary(f"Project: {record.title}", summary)


@report.command("counterparty")
@click.argument("key", type=int)
@click.pass_context
def counterparty_report(ctx: click.Context, key: int) -> None:
    """Counterparty totals in the primary currency."""
    with get_client(ctx) as client:
        try:
            record = client.get_counterparty(key)
            summary = client.get_counterparty_summary(key)
        except CLIENT_ERRORS as e:
            raise click.ClickException(str(e))
    echo_summary(f"Counterparty: {record.name}", summary)


@report.command("projects")
@click.pass_context
def projects_report(ctx: click.Context) -> None:
    """Profit per project in the primary currency."""
    with get_client(ctx) as client:
        summaries = client.get_summaries_by_project()
        titles = {record.key: record.title for record in client.list_projects()}

    if not summaries:
        click.echo("No transactions found.")
        return

    for key, summary in summaries.items():
        title = titles.get(key, "(no project)")
        click.echo(
            f"{title:<30} {format_amount(summary.income, summary.currency):>18}"
            f" {format_amount(summary.expense, summary.currency):>18}"
            f" {format_amount(summary.profit, summary.currency):>18}"
        )
