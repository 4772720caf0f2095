"""Integration tests for the fintrack CLI."""

from __future__ import annotations

from decimal import Decimal
import json

import pytest
from click.testing import CliRunner

import fintrack.client
from fintrack.cli.main import main
from tests.utils.database import fetch_balance


def _invoke(db_path, *args: str):
    runner = CliRunner()
    return runner.invoke(main, ["--db", str(db_path), *args])


@pytest.mark.sit
def test_cli_init_creates_database(tmp_path) -> None:
    db_path = tmp_path / "new.db"

    result = _invoke(db_path, "init")

    assert result.exit_code == 0
    assert db_path.exists()
    assert "Primary currency: RUB" in result.output


@pytest.mark.sit
def test_cli_init_creates_default_directory(tmp_path, monkeypatch) -> None:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("FINTRACK_CONFIG")
    monkeypatch.setattr(
        fintrack.client, "DEFAULT_CONFIG_PATH", home / ".fintrack" / "config.json"
    )

    result = CliRunner().invoke(main, ["init"])

    assert result.exit_code == 0, result.output
    assert (home / ".fintrack" / "fintrack.db").exists()
    assert "Primary currency: RUB" in result.output


@pytest.mark.sit
def test_cli_init_creates_configured_directory(tmp_path) -> None:
    db_path = tmp_path / "nested" / "books" / "fintrack.db"
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"db_path": str(db_path)}), encoding="utf-8")

    result = CliRunner().invoke(main, ["--config", str(config_path), "init"])

    assert result.exit_code == 0, result.output
    assert db_path.exists()


@pytest.mark.sit
def test_cli_account_list(test_db_path) -> None:
    result = _invoke(test_db_path, "account", "list")

    assert result.exit_code == 0
    assert "Card RUB" in result.output
    assert "10,000.00 RUB" in result.output
    assert "200.00 USD" in result.output


@pytest.mark.sit
def test_cli_account_add_duplicate(test_db_path) -> None:
    result = _invoke(test_db_path, "account", "add", "--name", "Card RUB", "--currency", "RUB")

    assert result.exit_code != 0
    assert "Duplicate account" in result.output


@pytest.mark.sit
def test_cli_transaction_add_and_list(test_db_path) -> None:
    result = _invoke(
        test_db_path,
        "transaction",
        "add",
        "--account",
        "Card RUB",
        "--amount",
        "10",
        "--kind",
        "expense",
        "--exchange-rate",
        "95",
        "--category",
        "Software",
        "--tag",
        "tools",
        "--date",
        "2026-03-05",
    )

    assert result.exit_code == 0
    assert "Added transaction" in result.output
    assert Decimal(fetch_balance(test_db_path, "Card RUB")) == Decimal("9050")

    listed = _invoke(test_db_path, "transaction", "list", "--kind", "expense")
    assert listed.exit_code == 0
    assert "2026-03-05\texpense\t10 USD\tCard RUB" in listed.output


@pytest.mark.sit
def test_cli_transaction_rejects_bad_amount(test_db_path) -> None:
    result = _invoke(
        test_db_path, "transaction", "add", "--account", "Card RUB", "--amount", "abc", "--kind", "income"
    )

    assert result.exit_code != 0
    assert "--amount" in result.output


@pytest.mark.sit
def test_cli_transaction_unknown_account(test_db_path) -> None:
    result = _invoke(
        test_db_path, "transaction", "add", "--account", "Missing", "--amount", "5", "--kind", "income"
    )

    assert result.exit_code == 1
    assert "Account not found: Missing" in result.output


@pytest.mark.sit
def test_cli_scheduled_confirm(test_db_path) -> None:
    added = _invoke(
        test_db_path,
        "transaction",
        "add",
        "--account",
        "Wallet USD",
        "--amount",
        "300",
        "--kind",
        "income",
        "--project",
        "Website",
        "--scheduled",
        "--scheduled-date",
        "2026-05-01",
    )
    assert added.exit_code == 0
    key = added.output.strip().split()[-1]
    assert Decimal(fetch_balance(test_db_path, "Wallet USD")) == Decimal("200")

    listed = _invoke(test_db_path, "transaction", "list", "--scheduled")
    assert "scheduled" in listed.output

    confirmed = _invoke(test_db_path, "transaction", "confirm", key)
    assert confirmed.exit_code == 0
    assert Decimal(fetch_balance(test_db_path, "Wallet USD")) == Decimal("500")

    again = _invoke(test_db_path, "transaction", "confirm", key)
    assert again.exit_code == 1
    assert "is_scheduled" in again.output


@pytest.mark.sit
def test_cli_dashboard_report(test_db_path) -> None:
    result = _invoke(test_db_path, "report", "dashboard")

    assert result.exit_code == 0
    assert "Total balance (2 accounts): 30,000.00 RUB" in result.output
    assert "80,000.00 RUB" in result.output


@pytest.mark.sit
def test_cli_settings_set_and_show(test_db_path) -> None:
    result = _invoke(test_db_path, "settings", "set", "--rate", "80")
    assert result.exit_code == 0

    shown = _invoke(test_db_path, "settings", "show")
    assert "Default exchange rate: 80 RUB per USD" in shown.output


@pytest.mark.sit
def test_cli_settings_set_requires_option(test_db_path) -> None:
    result = _invoke(test_db_path, "settings", "set")

    assert result.exit_code == 2


@pytest.mark.sit
def test_cli_project_list(test_db_path) -> None:
    result = _invoke(test_db_path, "project", "list", "--counterparty", "Acme")

    assert result.exit_code == 0
    assert "Website" in result.output


@pytest.mark.sit
def test_cli_reference_lists(test_db_path) -> None:
    added = _invoke(test_db_path, "counterparty", "add", "--name", "Printshop", "--role", "contractor")
    assert added.exit_code == 0

    categories = _invoke(test_db_path, "category", "list", "--kind", "expense")
    counterparties = _invoke(test_db_path, "counterparty", "list", "--role", "contractor")

    assert "expense\tSoftware" in categories.output
    assert "Design" not in categories.output
    assert "contractor\tPrintshop" in counterparties.output
    assert "Acme" not in counterparties.output
