"""Domain models and data transfer objects."""

from __future__ import annotations

from dataclasses import dataclass, field
import datetime as dt
from decimal import Decimal
from typing import Any, Hashable

from fintrack.exceptions import InvalidInputError
from fintrack.schema import (
    CATEGORY_KINDS,
    COUNTERPARTY_ROLES,
    KIND_INCOME,
    SUPPORTED_CURRENCIES,
    TRANSACTION_KINDS,
)

ONE = Decimal("1")
ZERO = Decimal("0")


def _ensure_date(value: dt.date | dt.datetime | str, field_name: str) -> dt.date:
    """Normalize a date, datetime or ISO string to a date."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        try:
            return dt.date.fromisoformat(value)
        except ValueError as exc:
            raise InvalidInputError(field_name, "must be a YYYY-MM-DD date") from exc
    raise InvalidInputError(field_name, "must be a date")


def _ensure_optional_date(
    value: dt.date | dt.datetime | str | None, field_name: str
) -> dt.date | None:
    if value is None or value == "":
        return None
    return _ensure_date(value, field_name)


def _ensure_non_empty(value: str | None, field_name: str) -> str:
    """Validate required text fields."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(field_name, "is required")
    return value.strip()


def _optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _to_decimal(value: Decimal | str | int | float, field_name: str) -> Decimal:
    if isinstance(value, bool):
        raise InvalidInputError(field_name, "must be a decimal")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except Exception as exc:
        raise InvalidInputError(field_name, "must be a decimal") from exc
    if not amount.is_finite():
        raise InvalidInputError(field_name, "must be a finite decimal")
    return amount


def _ensure_decimal(value: Decimal | str | int | float, field_name: str) -> Decimal:
    """Parse and validate positive decimal values."""
    amount = _to_decimal(value, field_name)
    if amount <= ZERO:
        raise InvalidInputError(field_name, "must be greater than zero")
    return amount


def _ensure_optional_decimal(
    value: Decimal | str | int | float | None, field_name: str
) -> Decimal | None:
    if value is None or value == "":
        return None
    return _ensure_decimal(value, field_name)


def _ensure_currency(value: str | None, field_name: str = "currency") -> str:
    """Validate a currency code against the supported pair."""
    if not isinstance(value, str):
        raise InvalidInputError(field_name, "is required")
    code = value.strip().upper()
    if code not in SUPPORTED_CURRENCIES:
        supported = ", ".join(SUPPORTED_CURRENCIES)
        raise InvalidInputError(field_name, f"must be one of {supported}, got {value!r}")
    return code


def _ensure_optional_currency(value: str | None, field_name: str = "currency") -> str | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return _ensure_currency(value, field_name)


def _ensure_choice(value: str | None, choices: tuple[str, ...], field_name: str) -> str:
    if not isinstance(value, str) or value.strip().lower() not in choices:
        raise InvalidInputError(field_name, f"must be one of {', '.join(choices)}")
    return value.strip().lower()


def _ensure_flag(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise InvalidInputError(field_name, "must be a boolean")
    return value


def other_currency(code: str) -> str:
    """Return the other member of the supported currency pair."""
    code = _ensure_currency(code)
    first, second = SUPPORTED_CURRENCIES
    return second if code == first else first


@dataclass(frozen=True)
class LedgerEntry:
    """A single financial movement as seen by the aggregator.

    Attributes:
        key: Opaque identifier of the movement
        amount: Positive amount in ``native_currency``
        native_currency: Currency the amount is denominated in
        settlement_currency: Currency of the account the entry posts against
        rate: Native to settlement conversion factor
        kind: ``income``, ``expense`` or ``transfer``
        is_pending: Planned movement that has not been confirmed yet
        counterparty_key: Optional owning counterparty
        project_key: Optional owning project
        project_rate: Project conversion multiplier captured when saved
    """

    key: Hashable
    amount: Decimal
    native_currency: str
    settlement_currency: str
    kind: str
    rate: Decimal = ONE
    is_pending: bool = False
    counterparty_key: Hashable | None = None
    project_key: Hashable | None = None
    project_rate: Decimal | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", _ensure_decimal(self.amount, "amount"))
        object.__setattr__(
            self, "native_currency", _ensure_currency(self.native_currency, "native_currency")
        )
        object.__setattr__(
            self,
            "settlement_currency",
            _ensure_currency(self.settlement_currency, "settlement_currency"),
        )
        object.__setattr__(self, "rate", _ensure_decimal(self.rate, "rate"))
        object.__setattr__(self, "kind", _ensure_choice(self.kind, TRANSACTION_KINDS, "kind"))
        object.__setattr__(self, "is_pending", _ensure_flag(self.is_pending, "is_pending"))
        object.__setattr__(
            self, "project_rate", _ensure_optional_decimal(self.project_rate, "project_rate")
        )

    @classmethod
    def from_settlement(
        cls,
        key: Hashable,
        amount: Decimal | str | int | float,
        settlement_currency: str,
        rate: Decimal | str | int | float,
        kind: str,
        **kwargs: Any,
    ) -> "LedgerEntry":
        """Build an entry whose native currency is implied by its rate.

        A rate of exactly 1 means the amount is in the settlement currency;
        any other rate means it is in the other supported currency.
        """
        rate_value = _ensure_decimal(rate, "rate")
        settlement = _ensure_currency(settlement_currency, "settlement_currency")
        native = settlement if rate_value == ONE else other_currency(settlement)
        return cls(
            key=key,
            amount=amount,
            native_currency=native,
            settlement_currency=settlement,
            rate=rate_value,
            kind=kind,
            **kwargs,
        )


@dataclass(frozen=True)
class BudgetTarget:
    """Committed budget attached to a project."""

    amount: Decimal
    currency: str
    group_key: Hashable
    rate: Decimal | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", _ensure_decimal(self.amount, "budget"))
        object.__setattr__(self, "currency", _ensure_currency(self.currency))
        object.__setattr__(self, "rate", _ensure_optional_decimal(self.rate, "rate"))


@dataclass(frozen=True)
class LedgerSummary:
    """Aggregated totals expressed in one display currency."""

    currency: str
    income: Decimal = ZERO
    expense: Decimal = ZERO
    receivables: Decimal = ZERO
    payables: Decimal = ZERO

    @property
    def profit(self) -> Decimal:
        return self.income - self.expense

    def as_dict(self) -> dict[str, Any]:
        return {
            "currency": self.currency,
            "income": self.income,
            "expense": self.expense,
            "profit": self.profit,
            "receivables": self.receivables,
            "payables": self.payables,
        }


@dataclass(frozen=True)
class DashboardSummary:
    """Total balance across accounts plus the ledger totals."""

    currency: str
    total_balance: Decimal
    ledger: LedgerSummary
    account_count: int


@dataclass(frozen=True)
class Settings:
    """User profile settings used for conversions."""

    primary_currency: str
    default_exchange_rate: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "primary_currency", _ensure_currency(self.primary_currency, "primary_currency")
        )
        object.__setattr__(
            self,
            "default_exchange_rate",
            _ensure_decimal(self.default_exchange_rate, "default_exchange_rate"),
        )


@dataclass(frozen=True)
class AccountDTO:
    """Validated account input for persistence."""
    name: str
    currency: str
    balance: Decimal = ZERO

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _ensure_non_empty(self.name, "name"))
        object.__setattr__(self, "currency", _ensure_currency(self.currency))
        object.__setattr__(self, "balance", _to_decimal(self.balance, "balance"))


@dataclass(frozen=True)
class AccountRecord:
    """Persisted account record from storage."""
    key: int
    name: str
    currency: str
    balance: Decimal
    time_stamp: str | None = None


@dataclass(frozen=True)
class CategoryDTO:
    """Validated category input for persistence."""
    name: str
    kind: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _ensure_non_empty(self.name, "name"))
        object.__setattr__(self, "kind", _ensure_choice(self.kind, CATEGORY_KINDS, "kind"))


@dataclass(frozen=True)
class CategoryRecord:
    """Persisted category record from storage."""
    key: int
    name: str
    kind: str


@dataclass(frozen=True)
class CounterpartyDTO:
    """Validated counterparty input for persistence."""
    name: str
    role: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _ensure_non_empty(self.name, "name"))
        object.__setattr__(self, "role", _ensure_choice(self.role, COUNTERPARTY_ROLES, "role"))


@dataclass(frozen=True)
class CounterpartyRecord:
    """Persisted counterparty record from storage."""
    key: int
    name: str
    role: str
    time_stamp: str | None = None


@dataclass(frozen=True)
class ProjectDTO:
    """Validated project input for persistence.

    A budget and its currency are given together or not at all.
    """
    title: str
    budget: Decimal | None = None
    currency: str | None = None
    exchange_rate: Decimal | None = None
    counterparty: str | None = None
    is_completed: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "title", _ensure_non_empty(self.title, "title"))
        object.__setattr__(self, "budget", _ensure_optional_decimal(self.budget, "budget"))
        object.__setattr__(self, "currency", _ensure_optional_currency(self.currency))
        object.__setattr__(
            self, "exchange_rate", _ensure_optional_decimal(self.exchange_rate, "exchange_rate")
        )
        object.__setattr__(self, "counterparty", _optional_text(self.counterparty))
        object.__setattr__(
            self, "is_completed", _ensure_flag(self.is_completed, "is_completed")
        )
        if self.budget is not None and self.currency is None:
            raise InvalidInputError("currency", "is required when a budget is set")
        if self.currency is not None and self.budget is None:
            raise InvalidInputError("budget", "is required when a currency is set")


@dataclass(frozen=True)
class ProjectRecord:
    """Persisted project record from storage."""
    key: int
    title: str
    budget: Decimal | None
    currency: str | None
    exchange_rate: Decimal | None
    counterparty_key: int | None
    counterparty: str | None
    is_completed: bool
    time_stamp: str | None = None

    def budget_target(self) -> BudgetTarget | None:
        """Return the project budget as an aggregation target."""
        if self.budget is None or self.currency is None:
            return None
        return BudgetTarget(
            amount=self.budget,
            currency=self.currency,
            group_key=self.key,
            rate=self.exchange_rate,
        )


@dataclass(frozen=True)
class TransactionDTO:
    """Validated transaction input for persistence.

    ``currency`` is the currency the amount is denominated in. When it is
    omitted the client resolves it from the account: a rate of 1 keeps the
    account currency, any other rate selects the other supported currency.
    """
    account: str
    amount: Decimal
    kind: str
    currency: str | None = None
    exchange_rate: Decimal = ONE
    category: str | None = None
    project: str | None = None
    counterparty: str | None = None
    tags: tuple[str, ...] = field(default_factory=tuple)
    description: str | None = None
    is_scheduled: bool = False
    scheduled_date: dt.date | None = None
    transaction_date: dt.date | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "account", _ensure_non_empty(self.account, "account"))
        object.__setattr__(self, "amount", _ensure_decimal(self.amount, "amount"))
        object.__setattr__(self, "kind", _ensure_choice(self.kind, TRANSACTION_KINDS, "kind"))
        object.__setattr__(self, "currency", _ensure_optional_currency(self.currency))
        object.__setattr__(
            self, "exchange_rate", _ensure_decimal(self.exchange_rate, "exchange_rate")
        )
        object.__setattr__(self, "category", _optional_text(self.category))
        object.__setattr__(self, "project", _optional_text(self.project))
        object.__setattr__(self, "counterparty", _optional_text(self.counterparty))
        object.__setattr__(
            self, "tags", tuple(tag.strip() for tag in self.tags if tag and tag.strip())
        )
        object.__setattr__(self, "description", _optional_text(self.description))
        object.__setattr__(
            self, "is_scheduled", _ensure_flag(self.is_scheduled, "is_scheduled")
        )
        object.__setattr__(
            self, "scheduled_date", _ensure_optional_date(self.scheduled_date, "scheduled_date")
        )
        object.__setattr__(
            self,
            "transaction_date",
            _ensure_optional_date(self.transaction_date, "transaction_date"),
        )


@dataclass(frozen=True)
class TransactionRecord:
    """Persisted transaction record from storage."""
    key: int
    account_key: int
    account: str
    settlement_currency: str
    amount: Decimal
    currency: str
    exchange_rate: Decimal
    project_exchange_rate: Decimal | None
    kind: str
    category_key: int | None
    category: str | None
    project_key: int | None
    project: str | None
    counterparty_key: int | None
    counterparty: str | None
    tags: tuple[str, ...]
    description: str | None
    is_scheduled: bool
    scheduled_date: dt.date | None
    transaction_date: dt.date | None
    time_stamp: str | None

    @property
    def converted_amount(self) -> Decimal:
        """Amount in the account currency."""
        return self.amount * self.exchange_rate

    def balance_effect(self) -> Decimal:
        """Signed change this transaction applies to its account balance."""
        if self.is_scheduled:
            return ZERO
        if self.kind == KIND_INCOME:
            return self.converted_amount
        return -self.converted_amount

    def to_entry(self) -> LedgerEntry:
        return LedgerEntry(
            key=self.key,
            amount=self.amount,
            native_currency=self.currency,
            settlement_currency=self.settlement_currency,
            rate=self.exchange_rate,
            kind=self.kind,
            is_pending=self.is_scheduled,
            counterparty_key=self.counterparty_key,
            project_key=self.project_key,
            project_rate=self.project_exchange_rate,
        )
