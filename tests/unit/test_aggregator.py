from __future__ import annotations

from decimal import Decimal
import itertools

import pytest

from fintrack.aggregator import (
    convert_entry,
    counterparty_summary,
    project_summary,
    summarize,
    summarize_by,
    total_balance,
)
from fintrack.exceptions import InvalidInputError
from fintrack.models import AccountRecord, BudgetTarget, LedgerEntry, ProjectRecord

RATE = Decimal("100")


def _entry(key, amount, currency, kind, pending=False, settlement=None, **kwargs) -> LedgerEntry:
    return LedgerEntry(
        key=key,
        amount=Decimal(amount),
        native_currency=currency,
        settlement_currency=settlement or currency,
        kind=kind,
        is_pending=pending,
        **kwargs,
    )


def _project(**overrides) -> ProjectRecord:
    values = dict(
        key=1,
        title="Website",
        budget=None,
        currency=None,
        exchange_rate=None,
        counterparty_key=None,
        counterparty=None,
        is_completed=False,
    )
    values.update(overrides)
    return ProjectRecord(**values)


def test_example_scenario_rub_display() -> None:
    entries = [
        LedgerEntry.from_settlement("a", "500", "RUB", "1", "income"),
        LedgerEntry.from_settlement("b", "10", "RUB", "0.01", "expense"),
    ]

    summary = summarize(entries, "RUB", RATE)

    assert summary.income == Decimal("500")
    assert summary.expense == Decimal("1000")
    assert summary.profit == Decimal("-500")
    assert summary.receivables == Decimal("0")
    assert summary.payables == Decimal("0")


def test_usd_display_divides_rub_amounts() -> None:
    entries = [_entry(1, "2500", "RUB", "income"), _entry(2, "5", "USD", "expense")]

    summary = summarize(entries, "USD", RATE)

    assert summary.income == Decimal("25")
    assert summary.expense == Decimal("5")
    assert summary.currency == "USD"


def test_order_independence() -> None:
    entries = [
        _entry(1, "500", "RUB", "income"),
        _entry(2, "10", "USD", "expense"),
        _entry(3, "7.25", "USD", "income", pending=True),
        _entry(4, "1200", "RUB", "expense", pending=True),
        _entry(5, "300", "RUB", "transfer"),
    ]
    budgets = [BudgetTarget(amount="50", currency="USD", group_key=9)]
    expected = summarize(entries, "RUB", RATE, budgets=budgets)

    for permutation in itertools.permutations(entries):
        assert summarize(permutation, "RUB", RATE, budgets=budgets) == expected


@pytest.mark.parametrize("rate", [Decimal("1"), Decimal("55.5"), Decimal("1000")])
def test_identity_conversion_is_rate_independent(rate: Decimal) -> None:
    entry = _entry(1, "42.42", "USD", "income", settlement="RUB", rate=Decimal("90"))

    assert convert_entry(entry, "USD", rate) == Decimal("42.42")
    assert summarize([entry], "USD", rate).income == Decimal("42.42")


def test_pending_entries_only_feed_outstanding_totals() -> None:
    entries = [
        _entry(1, "100", "RUB", "income", pending=True),
        _entry(2, "3", "USD", "expense", pending=True),
    ]

    summary = summarize(entries, "RUB", RATE)

    assert summary.income == Decimal("0")
    assert summary.expense == Decimal("0")
    assert summary.receivables == Decimal("100")
    assert summary.payables == Decimal("300")


def test_transfers_are_ignored() -> None:
    entries = [
        _entry(1, "100", "RUB", "transfer"),
        _entry(2, "5", "USD", "transfer", pending=True),
    ]

    summary = summarize(entries, "RUB", RATE)

    assert summary.income == summary.expense == Decimal("0")
    assert summary.receivables == summary.payables == Decimal("0")
    assert summary.profit == Decimal("0")


def test_budget_shortfall_added_to_receivables() -> None:
    entries = [
        _entry(1, "300", "USD", "income", project_key=7),
        _entry(2, "10000", "RUB", "income", project_key=7),
        _entry(3, "200", "USD", "income", pending=True, project_key=7),
        _entry(4, "999", "USD", "income", project_key=8),
    ]
    budget = BudgetTarget(amount="1000", currency="USD", group_key=7)

    summary = summarize(entries, "USD", RATE, budgets=[budget])

    # confirmed project income is 300 + 100 USD, shortfall 600, plus 200 pending
    assert summary.receivables == Decimal("800")


def test_budget_shortfall_uses_budget_rate() -> None:
    budget = BudgetTarget(amount="100", currency="USD", group_key=1, rate=Decimal("80"))

    summary = summarize([], "RUB", RATE, budgets=[budget])

    assert summary.receivables == Decimal("8000")


def test_budget_met_adds_nothing() -> None:
    entries = [_entry(1, "1500", "USD", "income", project_key=1)]
    budget = BudgetTarget(amount="1000", currency="USD", group_key=1)

    assert summarize(entries, "USD", RATE, budgets=[budget]).receivables == Decimal("0")


def test_budget_shortfall_monotonic() -> None:
    entries = [_entry(1, "250", "USD", "income", project_key=1)]
    previous = None
    for amount in ("100", "250", "251", "400", "10000"):
        budget = BudgetTarget(amount=amount, currency="USD", group_key=1)
        receivables = summarize(entries, "RUB", RATE, budgets=[budget]).receivables
        if previous is not None:
            assert receivables >= previous
        previous = receivables


def test_inputs_are_validated() -> None:
    with pytest.raises(InvalidInputError) as excinfo:
        summarize([], "EUR", RATE)
    assert excinfo.value.field == "display_currency"

    with pytest.raises(InvalidInputError) as excinfo:
        summarize([], "RUB", Decimal("0"))
    assert excinfo.value.field == "fallback_rate"


def test_inputs_are_not_mutated() -> None:
    entries = [_entry(1, "10", "USD", "income")]
    snapshot = list(entries)

    summarize(entries, "RUB", RATE)

    assert entries == snapshot


def test_summarize_by_project() -> None:
    entries = [
        _entry(1, "100", "RUB", "income", project_key=1),
        _entry(2, "40", "RUB", "expense", project_key=1),
        _entry(3, "1", "USD", "income"),
    ]

    summaries = summarize_by(entries, lambda entry: entry.project_key, "RUB", RATE)

    assert set(summaries) == {1, None}
    assert summaries[1].profit == Decimal("60")
    assert summaries[None].income == Decimal("100")


def test_total_balance() -> None:
    accounts = [
        AccountRecord(key=1, name="Card", currency="RUB", balance=Decimal("1500")),
        AccountRecord(key=2, name="Wallet", currency="USD", balance=Decimal("20")),
        AccountRecord(key=3, name="Credit", currency="RUB", balance=Decimal("-500")),
    ]

    assert total_balance(accounts, "RUB", RATE) == Decimal("3000")
    assert total_balance(accounts, "USD", RATE) == Decimal("30")


def test_project_summary_uses_project_currency_and_rate() -> None:
    project = _project(budget=Decimal("100"), currency="USD", exchange_rate=Decimal("80"))
    entries = [
        _entry(1, "4000", "RUB", "income", project_key=1),
        _entry(2, "2000", "RUB", "income", project_key=1, project_rate=Decimal("0.0125")),
        _entry(3, "10", "USD", "expense", project_key=1),
    ]

    summary = project_summary(project, entries, RATE, "RUB")

    assert summary.currency == "USD"
    assert summary.income == Decimal("75")
    assert summary.expense == Decimal("10")
    assert summary.receivables == Decimal("25")


def test_project_summary_without_currency_uses_first_entry() -> None:
    entries = [_entry(1, "5", "USD", "income", settlement="RUB", rate=Decimal("100"))]

    summary = project_summary(_project(), entries, RATE, "USD")

    assert summary.currency == "RUB"
    assert summary.income == Decimal("500")
    assert project_summary(_project(), [], RATE, "USD").currency == "USD"


def test_counterparty_summary_includes_project_budgets() -> None:
    projects = [
        _project(key=1, budget=Decimal("10"), currency="USD"),
        _project(key=2, title="Logo"),
    ]
    entries = [_entry(1, "400", "RUB", "income", project_key=1, counterparty_key=5)]

    summary = counterparty_summary(entries, "RUB", RATE, projects=projects)

    assert summary.income == Decimal("400")
    assert summary.receivables == Decimal("600")
