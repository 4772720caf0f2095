"""Settings CLI commands."""

from __future__ import annotations

import click

from fintrack.cli.common import CLIENT_ERRORS, get_client, parse_decimal
from fintrack.schema import SUPPORTED_CURRENCIES


@click.group()
def settings() -> None:
    """Profile settings commands."""


@settings.command("show")
@click.pass_context
def show_settings(ctx: click.Context) -> None:
    """Show the primary currency and default exchange rate."""
    with get_client(ctx) as client:
        record = client.get_settings()
    click.echo(f"Primary currency: {record.primary_currency}")
    click.echo(f"Default exchange rate: {record.default_exchange_rate} RUB per USD")


@settings.command("set")
@click.option(
    "--primary-currency",
    default=None,
    type=click.Choice(SUPPORTED_CURRENCIES, case_sensitive=False),
    help="Currency used for dashboard totals.",
)
@click.option("--rate", "rate_value", default=None, help="Default exchange rate, RUB per USD.")
@click.pass_context
def set_settings(ctx: click.Context, primary_currency: str | None, rate_value: str | None) -> None:
    """Update profile settings."""
    if primary_currency is None and rate_value is None:
        raise click.UsageError("Provide --primary-currency or --rate.")
    rate = parse_decimal(rate_value, "--rate")
    with get_client(ctx) as client:
        try:
            record = client.update_settings(
                primary_currency=primary_currency, default_exchange_rate=rate
            )
        except CLIENT_ERRORS as e:
            raise click.ClickException(str(e))
    click.echo(
        f"Settings saved: {record.primary_currency}, {record.default_exchange_rate} RUB per USD"
    )


@settings.command("refresh-rate")
@click.pass_context
def refresh_rate(ctx: click.Context) -> None:
    """Fetch the current USD/RUB rate and store it as the default rate."""
    with get_client(ctx) as client:
        try:
            record = client.refresh_default_rate()
        except (RuntimeError, *CLIENT_ERRORS) as e:
            raise click.ClickException(str(e))
    click.echo(f"Default exchange rate: {record.default_exchange_rate} RUB per USD")
