"""Account CLI commands."""

from __future__ import annotations

import click

from fintrack.cli.common import (
    CLIENT_ERRORS,
    echo_summary,
    format_amount,
    get_client,
    parse_decimal,
)
from fintrack.models import AccountDTO
from fintrack.schema import SUPPORTED_CURRENCIES


@click.group()
def account() -> None:
    """Account commands."""


@account.command("add")
@click.option("--name", required=True, help="Account name.")
@click.option(
    "--currency",
    required=True,
    type=click.Choice(SUPPORTED_CURRENCIES, case_sensitive=False),
    help="Account currency.",
)
@click.option("--balance", "balance_value", default="0", help="Opening balance.")
@click.pass_context
def add_account(ctx: click.Context, name: str, currency: str, balance_value: str) -> None:
    """Add an account.

    Examples:
        fintrack account add --name "Card" --currency RUB --balance 1500
    """
    balance = parse_decimal(balance_value, "--balance")
    with get_client(ctx) as client:
        try:
            record = client.add_account(AccountDTO(name=name, currency=currency, balance=balance))
        except CLIENT_ERRORS as e:
            raise click.ClickException(str(e))
    click.echo(f"Added account {record.key}")


@account.command("list")
@click.option("--currency", default=None, help="Filter by currency code (USD or RUB).")
@click.pass_context
def list_accounts(ctx: click.Context, currency: str | None) -> None:
    """List all accounts with current balances."""
    with get_client(ctx) as client:
        accounts = client.list_accounts(currency=currency)

    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 60)
    click.echo(f"{'Key':<5} {'Name':<30} {'Balance':>22}")
    click.echo("-" * 60)
    for record in accounts:
        click.echo(
            f"{record.key:<5} {record.name:<30} {format_amount(record.balance, record.currency):>22}"
        )
    click.echo("-" * 60)


@account.command("summary")
@click.argument("key", type=int)
@click.pass_context
def account_summary(ctx: click.Context, key: int) -> None:
    """Show income, expense and outstanding amounts of an account."""
    with get_client(ctx) as client:
        try:
            record = client.get_account(key)
            summary = client.get_account_summary(key)
        except CLIENT_ERRORS as e:
            raise click.ClickException(str(e))
    click.echo(f"Balance: {format_amount(record.balance, record.currency)}")
    echo_summary(f"Account: {record.name}", summary)


@account.command("delete")
@click.argument("key", type=int)
@click.option("--yes", is_flag=True, help="Skip delete confirmation.")
@click.pass_context
def delete_account(ctx: click.Context, key: int, yes: bool) -> None:
    """Delete an account and all of its transactions."""
    if not yes:
        confirm = click.confirm("Delete account and its transactions?", default=False)
        if not confirm:
            click.echo("Delete cancelled.")
            return
    with get_client(ctx) as client:
        try:
            client.delete_account(key)
        except CLIENT_ERRORS as e:
            raise click.ClickException(str(e))
    click.echo(f"Deleted account {key}")
