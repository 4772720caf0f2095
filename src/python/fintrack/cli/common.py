"""Shared CLI helpers."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

import click

from fintrack.client import FinanceClient
from fintrack.exceptions import DuplicateError, InvalidInputError, NotFoundError
from fintrack.models import LedgerSummary

CLIENT_ERRORS = (InvalidInputError, NotFoundError, DuplicateError)


def parse_date(value: str | None, field_name: str) -> dt.date | None:
    """Parse an ISO date string into a date."""
    if value is None:
        return None
    try:
        return dt.date.fromisoformat(value)
    except ValueError as exc:
        raise click.BadParameter("Use YYYY-MM-DD format.", param_hint=field_name) from exc


def parse_decimal(value: str | None, field_name: str) -> Decimal | None:
    """Parse a decimal string into a Decimal."""
    if value is None:
        return None
    try:
        return Decimal(value)
    except Exception as exc:
        raise click.BadParameter("Use a valid decimal value.", param_hint=field_name) from exc


def format_amount(amount: Decimal, currency: str) -> str:
    """Format an amount with two decimals and its currency code."""
    return f"{amount:,.2f} {currency}"


def echo_summary(title: str, summary: LedgerSummary) -> None:
    """Print a ledger summary as a small table."""
    click.echo(f"\n{title}")
    click.echo("-" * 40)
    for label, value in (
        ("Income", summary.income),
        ("Expense", summary.expense),
        ("Profit", summary.profit),
        ("Receivables", summary.receivables),
        ("Payables", summary.payables),
    ):
        click.echo(f"{label:<14} {format_amount(value, summary.currency):>25}")
    click.echo("-" * 40)


def get_client(ctx: click.Context) -> FinanceClient:
    """Build a fintrack client from Click context."""
    payload = ctx.obj or {}
    return FinanceClient(
        db_path=payload.get("db_path"),
        config_path=payload.get("config_path"),
        enable_forex_rates=True,
    )
