"""Persistence interfaces for fintrack storage backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
import datetime as dt
from decimal import Decimal
from pathlib import Path

from fintrack.models import (
    AccountDTO,
    AccountRecord,
    CategoryDTO,
    CategoryRecord,
    CounterpartyDTO,
    CounterpartyRecord,
    ProjectDTO,
    ProjectRecord,
    Settings,
    TransactionDTO,
    TransactionRecord,
)


class PersistenceBackend(ABC):
    """Abstract interface for repository backends."""

    @abstractmethod
    def __init__(self, db_path: str | Path) -> None:
        """Initialize the backend with a storage path."""

    @abstractmethod
    def connect(self) -> None:
        """Establish a backend connection."""

    @abstractmethod
    def close(self) -> None:
        """Close the backend connection."""

    @abstractmethod
    def initialize_schema(self) -> None:
        """Create missing tables."""

    @abstractmethod
    def begin_transaction(self) -> None:
        """Start a transaction."""

    @abstractmethod
    def commit(self) -> None:
        """Commit the active transaction."""

    @abstractmethod
    def rollback(self) -> None:
        """Rollback the active transaction."""

    @abstractmethod
    def get_settings(self) -> Settings:
        """Return profile settings, defaults when none are stored."""

    @abstractmethod
    def save_settings(self, settings: Settings) -> Settings:
        """Persist profile settings."""

    @abstractmethod
    def insert_account(self, account: AccountDTO) -> AccountRecord:
        """Insert an account."""

    @abstractmethod
    def get_account(self, key: int) -> AccountRecord:
        """Return an account by key."""

    @abstractmethod
    def get_account_by_name(self, name: str) -> AccountRecord:
        """Return an account by name."""

    @abstractmethod
    def list_accounts(self) -> list[AccountRecord]:
        """Return accounts ordered by name."""

    @abstractmethod
    def update_account(self, key: int, account: AccountDTO) -> AccountRecord:
        """Replace account fields."""

    @abstractmethod
    def adjust_account_balance(self, key: int, delta: Decimal) -> AccountRecord:
        """Add a signed delta to an account balance."""

    @abstractmethod
    def delete_account(self, key: int) -> None:
        """Delete an account and its transactions."""

    @abstractmethod
    def insert_category(self, category: CategoryDTO) -> CategoryRecord:
        """Insert a category."""

    @abstractmethod
    def get_category(self, key: int) -> CategoryRecord:
        """Return a category by key."""

    @abstractmethod
    def list_categories(self, kind: str | None = None) -> list[CategoryRecord]:
        """Return categories ordered by name."""

    @abstractmethod
    def update_category(self, key: int, category: CategoryDTO) -> CategoryRecord:
        """Replace category fields."""

    @abstractmethod
    def delete_category(self, key: int) -> None:
        """Delete a category and clear references to it."""

    @abstractmethod
    def insert_counterparty(self, counterparty: CounterpartyDTO) -> CounterpartyRecord:
        """Insert a counterparty."""

    @abstractmethod
    def get_counterparty(self, key: int) -> CounterpartyRecord:
        """Return a counterparty by key."""

    @abstractmethod
    def get_counterparty_by_name(self, name: str) -> CounterpartyRecord:
        """Return a counterparty by name."""

    @abstractmethod
    def list_counterparties(self, role: str | None = None) -> list[CounterpartyRecord]:
        """Return counterparties ordered by name."""

    @abstractmethod
    def update_counterparty(
        self, key: int, counterparty: CounterpartyDTO
    ) -> CounterpartyRecord:
        """Replace counterparty fields."""

    @abstractmethod
    def delete_counterparty(self, key: int) -> None:
        """Delete a counterparty and clear references to it."""

    @abstractmethod
    def insert_project(self, project: ProjectDTO) -> ProjectRecord:
        """Insert a project."""

    @abstractmethod
    def get_project(self, key: int) -> ProjectRecord:
        """Return a project by key."""

    @abstractmethod
    def get_project_by_title(self, title: str) -> ProjectRecord:
        """Return a project by title."""

    @abstractmethod
    def list_projects(self, counterparty_key: int | None = None) -> list[ProjectRecord]:
        """Return projects ordered by title."""

    @abstractmethod
    def update_project(self, key: int, project: ProjectDTO) -> ProjectRecord:
        """Replace project fields."""

    @abstractmethod
    def delete_project(self, key: int) -> None:
        """Delete a project and clear references to it."""

    @abstractmethod
    def insert_transaction(
        self,
        transaction: TransactionDTO,
        currency: str,
        project_exchange_rate: Decimal | None,
        transaction_date: dt.date | None,
    ) -> TransactionRecord:
        """Insert a transaction with resolved currency and rate snapshot."""

    @abstractmethod
    def get_transaction(self, key: int) -> TransactionRecord:
        """Return a transaction by key."""

    @abstractmethod
    def list_transactions(
        self,
        kind: str | None = None,
        account_key: int | None = None,
        project_key: int | None = None,
        counterparty_key: int | None = None,
        is_scheduled: bool | None = None,
    ) -> list[TransactionRecord]:
        """Return transactions, newest first."""

    @abstractmethod
    def update_transaction(
        self,
        key: int,
        transaction: TransactionDTO,
        currency: str,
        project_exchange_rate: Decimal | None,
        transaction_date: dt.date | None,
    ) -> TransactionRecord:
        """Replace transaction fields."""

    @abstractmethod
    def set_transaction_schedule(
        self, key: int, is_scheduled: bool, transaction_date: dt.date | None
    ) -> TransactionRecord:
        """Change the scheduled flag and date of a transaction."""

    @abstractmethod
    def delete_transaction(self, key: int) -> None:
        """Delete a transaction."""
