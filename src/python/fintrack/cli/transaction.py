"""Transaction CLI commands."""

from __future__ import annotations

import click

from fintrack.cli.common import CLIENT_ERRORS, get_client, parse_date, parse_decimal
from fintrack.models import TransactionDTO, TransactionRecord
from fintrack.schema import SUPPORTED_CURRENCIES, TRANSACTION_KINDS


def _echo_record(record: TransactionRecord) -> None:
    date = record.transaction_date.isoformat() if record.transaction_date else ""
    status = "scheduled" if record.is_scheduled else "posted"
    click.echo(
        f"{record.key}\t{date}\t{record.kind}\t{record.amount} {record.currency}"
        f"\t{record.account}\t{record.project or ''}\t{record.counterparty or ''}"
        f"\t{status}\t{record.description or ''}"
    )


@click.group()
def transaction() -> None:
    """Transaction commands."""


@transaction.command("add")
@click.option("--account", required=True, help="Account name.")
@click.option("--amount", "amount_value", required=True, help="Amount in the transaction currency.")
@click.option("--kind", required=True, type=click.Choice(TRANSACTION_KINDS), help="Transaction kind.")
@click.option(
    "--currency",
    default=None,
    type=click.Choice(SUPPORTED_CURRENCIES, case_sensitive=False),
    help="Transaction currency (defaults from the account and rate).",
)
@click.option("--exchange-rate", default="1", help="Rate from transaction to account currency.")
@click.option("--category", default=None, help="Category name.")
@click.option("--project", default=None, help="Project title.")
@click.option("--counterparty", default=None, help="Counterparty name.")
@click.option("--tag", "tags", multiple=True, help="Tag, may be repeated.")
@click.option("--description", default=None, help="Free text description.")
@click.option("--scheduled", is_flag=True, help="Record as a planned transaction.")
@click.option("--scheduled-date", default=None, help="Planned date in YYYY-MM-DD.")
@click.option("--date", "date_value", default=None, help="Transaction date in YYYY-MM-DD.")
@click.pass_context
def add_transaction(
    ctx: click.Context,
    account: str,
    amount_value: str,
    kind: str,
    currency: str | None,
    exchange_rate: str,
    category: str | None,
    project: str | None,
    counterparty: str | None,
    tags: tuple[str, ...],
    description: str | None,
    scheduled: bool,
    scheduled_date: str | None,
    date_value: str | None,
) -> None:
    """Add an income, expense or transfer.

    Examples:
        fintrack transaction add --account Card --amount 500 --kind income
        fintrack transaction add --account Card --amount 10 --kind expense --currency USD --exchange-rate 95
    """
    amount = parse_decimal(amount_value, "--amount")
    rate = parse_decimal(exchange_rate, "--exchange-rate")
    with get_client(ctx) as client:
        try:
            record = client.add_transaction(
                TransactionDTO(
                    account=account,
                    amount=amount,
                    kind=kind,
                    currency=currency,
                    exchange_rate=rate,
                    category=category,
                    project=project,
                    counterparty=counterparty,
                    tags=tags,
                    description=description,
                    is_scheduled=scheduled,
                    scheduled_date=parse_date(scheduled_date, "--scheduled-date"),
                    transaction_date=parse_date(date_value, "--date"),
                )
            )
        except CLIENT_ERRORS as e:
            raise click.ClickException(str(e))
    click.echo(f"Added transaction {record.key}")


@transaction.command("list")
@click.option("--kind", default=None, type=click.Choice(TRANSACTION_KINDS), help="Filter by kind.")
@click.option("--account", default=None, help="Filter by account name.")
@click.option("--project", default=None, help="Filter by project title.")
@click.option("--counterparty", default=None, help="Filter by counterparty name.")
@click.option("--scheduled/--posted", "scheduled", default=None, help="Filter by status.")
@click.option("--limit", type=int, default=None, help="Limit results.")
@click.pass_context
def list_transactions(
    ctx: click.Context,
    kind: str | None,
    account: str | None,
    project: str | None,
    counterparty: str | None,
    scheduled: bool | None,
    limit: int | None,
) -> None:
    """List transactions, newest first."""
    with get_client(ctx) as client:
        try:
            records = client.list_transactions(
                kind=kind,
                account=account,
                project=project,
                counterparty=counterparty,
                is_scheduled=scheduled,
            )
        except CLIENT_ERRORS as e:
            raise click.ClickException(str(e))
    if limit is not None:
        records = records[:limit]
    for record in records:
        _echo_record(record)


@transaction.command("get")
@click.argument("key", type=int)
@click.pass_context
def get_transaction(ctx: click.Context, key: int) -> None:
    """Get a transaction by key."""
    with get_client(ctx) as client:
        try:
            record = client.get_transaction(key)
        except CLIENT_ERRORS as e:
            raise click.ClickException(str(e))
    _echo_record(record)


@transaction.command("confirm")
@click.argument("key", type=int)
@click.pass_context
def confirm_transaction(ctx: click.Context, key: int) -> None:
    """Confirm a scheduled transaction and post it to its account."""
    with get_client(ctx) as client:
        try:
            record = client.confirm_transaction(key)
        except CLIENT_ERRORS as e:
            raise click.ClickException(str(e))
    click.echo(f"Confirmed transaction {record.key}")


@transaction.command("delete")
@click.argument("key", type=int)
@click.option("--yes", is_flag=True, help="Skip delete confirmation.")
@click.pass_context
def delete_transaction(ctx: click.Context, key: int, yes: bool) -> None:
    """Delete a transaction."""
    if not yes:
        confirm = click.confirm("Delete transaction?", default=False)
        if not confirm:
            click.echo("Delete cancelled.")
            return
    with get_client(ctx) as client:
        try:
            client.delete_transaction(key)
        except CLIENT_ERRORS as e:
            raise click.ClickException(str(e))
    click.echo(f"Deleted transaction {key}")
