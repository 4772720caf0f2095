"""fintrack CLI entry point."""

from __future__ import annotations

from pathlib import Path

import click

from fintrack.__version__ import __version__
from fintrack.cli.account import account
from fintrack.cli.category import category
from fintrack.cli.common import get_client
from fintrack.cli.counterparty import counterparty
from fintrack.cli.project import project
from fintrack.cli.report import report
from fintrack.cli.settings import settings
from fintrack.cli.transaction import transaction


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="fintrack")
@click.option(
    "--db",
    "db_path",
    type=click.Path(path_type=Path),
    help="Path to the fintrack database.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    help="Path to a JSON config file.",
)
@click.pass_context
def main(ctx: click.Context, db_path: Path | None, config_path: Path | None) -> None:
    """fintrack CLI entry point."""
    ctx.obj = {
        "db_path": db_path,
        "config_path": config_path,
    }


@main.command("init")
@click.pass_context
def init_db(ctx: click.Context) -> None:
    """Create the database schema if it does not exist."""
    with get_client(ctx) as client:
        settings_record = client.get_settings()
        click.echo(f"Initialized database at {client.db_path}")
    click.echo(
        f"Primary currency: {settings_record.primary_currency}, "
        f"default rate: {settings_record.default_exchange_rate}"
    )


main.add_command(account)
main.add_command(category)
main.add_command(counterparty)
main.add_command(project)
main.add_command(transaction)
main.add_command(settings)
main.add_command(report)


if __name__ == "__main__":
    main()
