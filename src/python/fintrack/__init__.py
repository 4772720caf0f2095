"""Public fintrack package exports."""

from __future__ import annotations

from fintrack.__version__ import __version__
from fintrack.aggregator import (
    convert_entry,
    counterparty_summary,
    project_summary,
    summarize,
    summarize_by,
    total_balance,
)
from fintrack.client import FinanceClient
from fintrack.exceptions import DuplicateError, InvalidInputError, NotFoundError
from fintrack.forex import ConversionDescriptor, conversion_for, convert
from fintrack.models import (
    AccountDTO,
    AccountRecord,
    BudgetTarget,
    CategoryDTO,
    CategoryRecord,
    CounterpartyDTO,
    CounterpartyRecord,
    DashboardSummary,
    LedgerEntry,
    LedgerSummary,
    ProjectDTO,
    ProjectRecord,
    Settings,
    TransactionDTO,
    TransactionRecord,
)
from fintrack.persistence import PersistenceBackend
from fintrack.repository import Repository

__all__ = [
    "__version__",
    "FinanceClient",
    "DuplicateError",
    "InvalidInputError",
    "NotFoundError",
    "ConversionDescriptor",
    "conversion_for",
    "convert",
    "convert_entry",
    "counterparty_summary",
    "project_summary",
    "summarize",
    "summarize_by",
    "total_balance",
    "AccountDTO",
    "AccountRecord",
    "BudgetTarget",
    "CategoryDTO",
    "CategoryRecord",
    "CounterpartyDTO",
    "CounterpartyRecord",
    "DashboardSummary",
    "LedgerEntry",
    "LedgerSummary",
    "ProjectDTO",
    "ProjectRecord",
    "Settings",
    "TransactionDTO",
    "TransactionRecord",
    "PersistenceBackend",
    "Repository",
]
