"""Currency-aware ledger aggregation.

All functions here are pure: they read immutable snapshots of entries,
budgets and accounts and return new values. Amounts are summed as
``Decimal`` so the totals do not depend on the order of the inputs.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Sequence
from decimal import Decimal
import logging
from typing import Protocol

from fintrack.exceptions import InvalidInputError
from fintrack.forex import convert
from fintrack.models import (
    ZERO,
    BudgetTarget,
    LedgerEntry,
    LedgerSummary,
    ProjectRecord,
)
from fintrack.schema import KIND_EXPENSE, KIND_INCOME, KIND_TRANSFER, SUPPORTED_CURRENCIES

logger = logging.getLogger(__name__)


class BalanceHolder(Protocol):
    currency: str
    balance: Decimal


def _check_display_currency(display_currency: str) -> str:
    if display_currency not in SUPPORTED_CURRENCIES:
        raise InvalidInputError(
            "display_currency", f"unsupported currency {display_currency!r}"
        )
    return display_currency


def _check_fallback_rate(fallback_rate: Decimal | str | int) -> Decimal:
    try:
        rate = fallback_rate if isinstance(fallback_rate, Decimal) else Decimal(str(fallback_rate))
    except Exception as exc:
        raise InvalidInputError("fallback_rate", "must be a decimal") from exc
    if not rate.is_finite() or rate <= ZERO:
        raise InvalidInputError("fallback_rate", "must be greater than zero")
    return rate


def convert_entry(
    entry: LedgerEntry,
    display_currency: str,
    fallback_rate: Decimal,
    use_project_rate: bool = False,
) -> Decimal:
    """Return the entry amount expressed in ``display_currency``.

    When ``use_project_rate`` is set, a rate snapshot stored on the entry
    is applied as a multiplier in place of the fallback pair rate.
    """
    if entry.native_currency == display_currency:
        return entry.amount
    if use_project_rate and entry.project_rate is not None:
        return entry.amount * entry.project_rate
    return convert(entry.amount, entry.native_currency, display_currency, fallback_rate)


def _budget_shortfall(
    entries: Sequence[LedgerEntry],
    budget: BudgetTarget,
    display_currency: str,
    fallback_rate: Decimal,
    use_project_rate: bool,
) -> Decimal:
    rate = budget.rate or fallback_rate
    confirmed = sum(
        (
            convert_entry(entry, budget.currency, rate, use_project_rate)
            for entry in entries
            if entry.project_key == budget.group_key
            and entry.kind == KIND_INCOME
            and not entry.is_pending
        ),
        ZERO,
    )
    shortfall = budget.amount - confirmed
    if shortfall <= ZERO:
        return ZERO
    return convert(shortfall, budget.currency, display_currency, rate)


def summarize(
    entries: Iterable[LedgerEntry],
    display_currency: str,
    fallback_rate: Decimal,
    budgets: Iterable[BudgetTarget] | None = None,
    use_project_rate: bool = False,
) -> LedgerSummary:
    """Reduce ledger entries to income, expense, receivables and payables.

    Confirmed income and expense feed ``income`` and ``expense``; pending
    ones feed ``receivables`` and ``payables``; transfers are skipped. Each
    budget whose confirmed income falls short of its amount adds the
    shortfall to ``receivables``.
    """
    display_currency = _check_display_currency(display_currency)
    fallback_rate = _check_fallback_rate(fallback_rate)
    entries = tuple(entries)

    income = expense = receivables = payables = ZERO
    for entry in entries:
        if entry.kind == KIND_TRANSFER:
            continue
        value = convert_entry(entry, display_currency, fallback_rate, use_project_rate)
        if entry.kind == KIND_INCOME:
            if entry.is_pending:
                receivables += value
            else:
                income += value
        elif entry.kind == KIND_EXPENSE:
            if entry.is_pending:
                payables += value
            else:
                expense += value

    for budget in budgets or ():
        receivables += _budget_shortfall(
            entries, budget, display_currency, fallback_rate, use_project_rate
        )

    logger.debug(
        "Summarized %d entries in %s: income=%s expense=%s receivables=%s payables=%s",
        len(entries),
        display_currency,
        income,
        expense,
        receivables,
        payables,
    )
    return LedgerSummary(
        currency=display_currency,
        income=income,
        expense=expense,
        receivables=receivables,
        payables=payables,
    )


def summarize_by(
    entries: Iterable[LedgerEntry],
    key: Callable[[LedgerEntry], Hashable],
    display_currency: str,
    fallback_rate: Decimal,
) -> dict[Hashable, LedgerSummary]:
    """Summarize entries per group key."""
    groups: dict[Hashable, list[LedgerEntry]] = {}
    for entry in entries:
        groups.setdefault(key(entry), []).append(entry)
    return {
        group: summarize(members, display_currency, fallback_rate)
        for group, members in groups.items()
    }


def total_balance(
    accounts: Iterable[BalanceHolder],
    display_currency: str,
    fallback_rate: Decimal,
) -> Decimal:
    """Sum account balances in ``display_currency``."""
    display_currency = _check_display_currency(display_currency)
    fallback_rate = _check_fallback_rate(fallback_rate)
    return sum(
        (
            convert(account.balance, account.currency, display_currency, fallback_rate)
            for account in accounts
        ),
        ZERO,
    )


def project_summary(
    project: ProjectRecord,
    entries: Sequence[LedgerEntry],
    fallback_rate: Decimal,
    default_currency: str,
) -> LedgerSummary:
    """Summarize a project's entries in the project's own currency.

    Without a project currency the first entry's settlement currency is
    used, then ``default_currency``. The project override rate replaces
    the fallback rate, and rate snapshots stored on entries win over both.
    """
    if project.currency:
        display_currency = project.currency
    elif entries:
        display_currency = entries[0].settlement_currency
    else:
        display_currency = default_currency
    rate = project.exchange_rate or fallback_rate
    target = project.budget_target()
    return summarize(
        entries,
        display_currency,
        rate,
        budgets=[target] if target is not None else None,
        use_project_rate=True,
    )


def counterparty_summary(
    entries: Iterable[LedgerEntry],
    primary_currency: str,
    fallback_rate: Decimal,
    projects: Iterable[ProjectRecord] = (),
) -> LedgerSummary:
    """Summarize a counterparty's entries in the primary currency.

    Budgets of the counterparty's projects contribute their outstanding
    shortfall to receivables.
    """
    budgets = [
        target for target in (project.budget_target() for project in projects)
        if target is not None
    ]
    return summarize(entries, primary_currency, fallback_rate, budgets=budgets)
