"""Pytest configuration and fixtures.

Integration fixtures create a fresh SQLite database per test with the
fintrack schema and default settings.
"""
from __future__ import annotations

from pathlib import Path
import sys

import pytest

SRC_DIR = Path(__file__).resolve().parents[1] / "src" / "python"

if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point FINTRACK_CONFIG at a file that does not exist."""
    path = tmp_path / "missing-config.json"
    monkeypatch.setenv("FINTRACK_CONFIG", str(path))
    return path


@pytest.fixture()
def empty_db_path(tmp_path: Path) -> Path:
    """Database file with the schema only."""
    from fintrack.repository import Repository

    path = tmp_path / "fintrack.db"
    repository = Repository(path)
    repository.connect()
    repository.initialize_schema()
    repository.close()
    return path


@pytest.fixture()
def test_db_path(empty_db_path: Path) -> Path:
    """Database with two accounts, categories, a client and a USD project."""
    from fintrack.client import FinanceClient
    from fintrack.models import AccountDTO, CategoryDTO, CounterpartyDTO, ProjectDTO

    with FinanceClient(db_path=empty_db_path) as client:
        client.add_account(AccountDTO(name="Card RUB", currency="RUB", balance="10000"))
        client.add_account(AccountDTO(name="Wallet USD", currency="USD", balance="200"))
        client.add_category(CategoryDTO(name="Design", kind="income"))
        client.add_category(CategoryDTO(name="Software", kind="expense"))
        client.add_counterparty(CounterpartyDTO(name="Acme", role="client"))
        client.add_project(
            ProjectDTO(
                title="Website",
                budget="1000",
                currency="USD",
                exchange_rate="80",
                counterparty="Acme",
            )
        )
    return empty_db_path
