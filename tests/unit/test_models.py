from __future__ import annotations

import datetime as dt
from decimal import Decimal

import pytest

from fintrack.exceptions import InvalidInputError
from fintrack.models import (
    AccountDTO,
    BudgetTarget,
    LedgerEntry,
    LedgerSummary,
    ProjectDTO,
    ProjectRecord,
    Settings,
    TransactionDTO,
    TransactionRecord,
    other_currency,
)


def _make_record(**overrides) -> TransactionRecord:
    values = dict(
        key=7,
        account_key=1,
        account="Card RUB",
        settlement_currency="RUB",
        amount=Decimal("10"),
        currency="USD",
        exchange_rate=Decimal("95"),
        project_exchange_rate=None,
        kind="expense",
        category_key=None,
        category=None,
        project_key=3,
        project="Website",
        counterparty_key=None,
        counterparty=None,
        tags=(),
        description=None,
        is_scheduled=False,
        scheduled_date=None,
        transaction_date=dt.date(2026, 3, 1),
        time_stamp=None,
    )
    values.update(overrides)
    return TransactionRecord(**values)


def test_ledger_entry_normalizes_fields() -> None:
    entry = LedgerEntry(
        key="a",
        amount="12.50",
        native_currency="usd",
        settlement_currency="RUB",
        kind="Income",
        rate=95,
    )

    assert entry.amount == Decimal("12.50")
    assert entry.native_currency == "USD"
    assert entry.kind == "income"
    assert entry.rate == Decimal("95")
    assert entry.is_pending is False


@pytest.mark.parametrize(
    ("overrides", "field"),
    [
        ({"amount": "0"}, "amount"),
        ({"amount": "-5"}, "amount"),
        ({"amount": "abc"}, "amount"),
        ({"native_currency": "EUR"}, "native_currency"),
        ({"settlement_currency": ""}, "settlement_currency"),
        ({"rate": "0"}, "rate"),
        ({"kind": "refund"}, "kind"),
        ({"is_pending": "yes"}, "is_pending"),
        ({"project_rate": "-1"}, "project_rate"),
    ],
)
def test_ledger_entry_rejects_invalid_fields(overrides: dict, field: str) -> None:
    values = dict(
        key=1,
        amount="10",
        native_currency="RUB",
        settlement_currency="RUB",
        kind="expense",
    )
    values.update(overrides)

    with pytest.raises(InvalidInputError) as excinfo:
        LedgerEntry(**values)

    assert excinfo.value.field == field


def test_from_settlement_infers_native_currency() -> None:
    same = LedgerEntry.from_settlement(1, "500", "RUB", "1", "income")
    other = LedgerEntry.from_settlement(2, "10", "RUB", "0.01", "expense")

    assert same.native_currency == "RUB"
    assert other.native_currency == "USD"
    assert other.settlement_currency == "RUB"


def test_other_currency() -> None:
    assert other_currency("USD") == "RUB"
    assert other_currency("RUB") == "USD"
    with pytest.raises(InvalidInputError):
        other_currency("EUR")


def test_summary_profit() -> None:
    summary = LedgerSummary(currency="RUB", income=Decimal("500"), expense=Decimal("1000"))

    assert summary.profit == Decimal("-500")
    assert summary.as_dict()["profit"] == Decimal("-500")


def test_account_dto_allows_negative_balance() -> None:
    account = AccountDTO(name="  Credit  ", currency="rub", balance="-150.25")

    assert account.name == "Credit"
    assert account.currency == "RUB"
    assert account.balance == Decimal("-150.25")


def test_project_dto_requires_budget_and_currency_together() -> None:
    with pytest.raises(InvalidInputError):
        ProjectDTO(title="Website", budget="1000")
    with pytest.raises(InvalidInputError):
        ProjectDTO(title="Website", currency="USD")

    project = ProjectDTO(title="Website", budget="1000", currency="USD", exchange_rate="")
    assert project.exchange_rate is None


def test_project_record_budget_target() -> None:
    record = ProjectRecord(
        key=3,
        title="Website",
        budget=Decimal("1000"),
        currency="USD",
        exchange_rate=Decimal("90"),
        counterparty_key=None,
        counterparty=None,
        is_completed=False,
    )

    assert record.budget_target() == BudgetTarget(
        amount=Decimal("1000"), currency="USD", group_key=3, rate=Decimal("90")
    )
    without_budget = ProjectRecord(
        key=4,
        title="Internal",
        budget=None,
        currency=None,
        exchange_rate=None,
        counterparty_key=None,
        counterparty=None,
        is_completed=False,
    )
    assert without_budget.budget_target() is None


def test_settings_validation() -> None:
    with pytest.raises(InvalidInputError):
        Settings(primary_currency="RUB", default_exchange_rate="0")
    with pytest.raises(InvalidInputError):
        Settings(primary_currency="GBP", default_exchange_rate="100")


def test_transaction_dto_defaults_and_cleanup() -> None:
    transaction = TransactionDTO(
        account="Card RUB",
        amount="10",
        kind="expense",
        tags=("client", " ", "tools "),
        description="  ",
        transaction_date="2026-03-01",
    )

    assert transaction.currency is None
    assert transaction.exchange_rate == Decimal("1")
    assert transaction.tags == ("client", "tools")
    assert transaction.description is None
    assert transaction.transaction_date == dt.date(2026, 3, 1)


def test_transaction_dto_rejects_bad_date() -> None:
    with pytest.raises(InvalidInputError) as excinfo:
        TransactionDTO(account="Card", amount="1", kind="income", scheduled_date="03/01/2026")

    assert excinfo.value.field == "scheduled_date"


def test_transaction_record_balance_effect() -> None:
    expense = _make_record()
    income = _make_record(kind="income")
    scheduled = _make_record(is_scheduled=True)

    assert expense.converted_amount == Decimal("950")
    assert expense.balance_effect() == Decimal("-950")
    assert income.balance_effect() == Decimal("950")
    assert scheduled.balance_effect() == Decimal("0")


def test_transaction_record_to_entry() -> None:
    entry = _make_record(is_scheduled=True, project_exchange_rate=Decimal("0.0125")).to_entry()

    assert entry.key == 7
    assert entry.native_currency == "USD"
    assert entry.settlement_currency == "RUB"
    assert entry.is_pending is True
    assert entry.project_key == 3
    assert entry.project_rate == Decimal("0.0125")
