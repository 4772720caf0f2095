"""Client orchestration layer for fintrack."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Hashable, TypeVar
import datetime as dt
from decimal import Decimal
import json
import logging
import os

from fintrack import aggregator
from fintrack.exceptions import InvalidInputError
from fintrack.forex import ForexRateManager, conversion_for
from fintrack.models import (
    AccountDTO,
    AccountRecord,
    CategoryDTO,
    CategoryRecord,
    CounterpartyDTO,
    CounterpartyRecord,
    DashboardSummary,
    LedgerSummary,
    ProjectDTO,
    ProjectRecord,
    Settings,
    TransactionDTO,
    TransactionRecord,
    other_currency,
)
from fintrack.persistence import PersistenceBackend
from fintrack.repository import Repository

T = TypeVar("T")

# Configure logging
logger = logging.getLogger(__name__)
log_level = os.environ.get('LOGGING_LEVEL', 'INFO').upper()
logger.setLevel(getattr(logging, log_level, logging.INFO))
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter('%(levelname)s - %(name)s - %(message)s'))
    logger.addHandler(handler)

CONFIG_ENV_VAR = "FINTRACK_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".fintrack" / "config.json"
DEFAULT_DB_NAME = "fintrack.db"
DEFAULT_FOREX_TTL_HOURS = 1
DEFAULT_FOREX_CACHE_NAME = "forex-rates.json"


class FinanceClient:
    """Coordinate repository operations, balances and summaries."""

    def __init__(
        self,
        db_path: str | Path | None = None,
        repository: PersistenceBackend | None = None,
        enable_forex_rates: bool = False,
        config_path: str | Path | None = None,
    ) -> None:
        """Initialize the client with a repository backend.

        Args:
            db_path: Path to the SQLite database
            repository: Optional custom persistence backend
            enable_forex_rates: Whether live forex lookups are available
            config_path: Optional JSON config file, overrides FINTRACK_CONFIG
        """
        self.config = self._load_config(config_path)
        self.db_path = self._resolve_db_path(db_path, repository)
        self.repository = repository or Repository(self.db_path)
        self.enable_forex_rates = enable_forex_rates
        self._forex_manager: ForexRateManager | None = None
        if self.enable_forex_rates:
            self._forex_manager = ForexRateManager(
                config=self.config.get("forex", {"cache_ttl_hours": DEFAULT_FOREX_TTL_HOURS}),
                cache_path=self._derive_cache_path(),
            )

    def __enter__(self) -> "FinanceClient":
        """Open the repository connection and ensure the schema exists."""
        self.repository.connect()
        self.repository.initialize_schema()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        """Close the repository connection."""
        self.close()

    def close(self) -> None:
        """Close the repository connection."""
        self.repository.close()

    @staticmethod
    def _config_path(config_path: str | Path | None) -> Path:
        if config_path is not None:
            return Path(config_path)
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            return Path(env_path)
        return DEFAULT_CONFIG_PATH

    def _load_config(self, config_path: str | Path | None) -> dict:
        """Load config file if present, else return empty config."""
        path = self._config_path(config_path)
        if not path.exists():
            return {}
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
        if not isinstance(payload, dict):
            return {}
        return payload

    def _resolve_db_path(
        self,
        db_path: str | Path | None,
        repository: PersistenceBackend | None,
    ) -> Path:
        """Resolve the database path from arguments or config."""
        if repository is not None and db_path is None:
            return Path("")
        if db_path is not None:
            return Path(db_path)
        resolved = self.config.get("db_path")
        if resolved:
            return Path(resolved).expanduser()
        return DEFAULT_CONFIG_PATH.parent / DEFAULT_DB_NAME

    def _derive_cache_path(self) -> Path:
        """Place the forex cache next to the database."""
        if not str(self.db_path):
            return Path(DEFAULT_FOREX_CACHE_NAME)
        return Path(self.db_path).parent / DEFAULT_FOREX_CACHE_NAME

    def _run_transaction(self, action: Callable[[], T]) -> T:
        """Run repository work inside a transaction, rolling back on error."""
        self.repository.begin_transaction()
        try:
            result = action()
            self.repository.commit()
            return result
        except Exception:
            self.repository.rollback()
            raise

    # Settings

    def get_settings(self) -> Settings:
        return self.repository.get_settings()

    def update_settings(
        self,
        primary_currency: str | None = None,
        default_exchange_rate: Decimal | str | None = None,
    ) -> Settings:
        """Update the primary currency and/or the fallback rate."""
        current = self.repository.get_settings()
        settings = Settings(
            primary_currency=primary_currency or current.primary_currency,
            default_exchange_rate=(
                default_exchange_rate
                if default_exchange_rate is not None
                else current.default_exchange_rate
            ),
        )
        saved = self._run_transaction(lambda: self.repository.save_settings(settings))
        logger.info(
            f"Settings updated: primary_currency={saved.primary_currency}, "
            f"default_exchange_rate={saved.default_exchange_rate}"
        )
        return saved

    def refresh_default_rate(self) -> Settings:
        """Set the fallback rate from the live forex rate (RUB per USD)."""
        if self._forex_manager is None:
            raise RuntimeError("Forex rates are disabled for this client")
        rate = self._forex_manager.get_pair_rate()
        if rate is None:
            raise RuntimeError("Forex rate is unavailable and no cached rate exists")
        return self.update_settings(default_exchange_rate=rate)

    # Accounts

    def add_account(self, account: AccountDTO) -> AccountRecord:
        record = self._run_transaction(lambda: self.repository.insert_account(account))
        logger.info(f"Added account {record.key} ({record.name}, {record.currency})")
        return record

    def get_account(self, key: int) -> AccountRecord:
        return self.repository.get_account(key)

    def get_account_by_name(self, name: str) -> AccountRecord:
        return self.repository.get_account_by_name(name)

    def list_accounts(self, currency: str | None = None) -> list[AccountRecord]:
        accounts = self.repository.list_accounts()
        if currency:
            accounts = [account for account in accounts if account.currency == currency.upper()]
        return accounts

    def update_account(self, key: int, account: AccountDTO) -> AccountRecord:
        return self._run_transaction(lambda: self.repository.update_account(key, account))

    def delete_account(self, key: int) -> None:
        self._run_transaction(lambda: self.repository.delete_account(key))
        logger.info(f"Deleted account {key}")

    # Categories

    def add_category(self, category: CategoryDTO) -> CategoryRecord:
        return self._run_transaction(lambda: self.repository.insert_category(category))

    def list_categories(self, kind: str | None = None) -> list[CategoryRecord]:
        return self.repository.list_categories(kind)

    def update_category(self, key: int, category: CategoryDTO) -> CategoryRecord:
        return self._run_transaction(lambda: self.repository.update_category(key, category))

    def delete_category(self, key: int) -> None:
        self._run_transaction(lambda: self.repository.delete_category(key))

    # Counterparties

    def add_counterparty(self, counterparty: CounterpartyDTO) -> CounterpartyRecord:
        return self._run_transaction(lambda: self.repository.insert_counterparty(counterparty))

    def get_counterparty(self, key: int) -> CounterpartyRecord:
        return self.repository.get_counterparty(key)

    def get_counterparty_by_name(self, name: str) -> CounterpartyRecord:
        return self.repository.get_counterparty_by_name(name)

    def list_counterparties(self, role: str | None = None) -> list[CounterpartyRecord]:
        return self.repository.list_counterparties(role)

    def update_counterparty(
        self, key: int, counterparty: CounterpartyDTO
    ) -> CounterpartyRecord:
        return self._run_transaction(
            lambda: self.repository.update_counterparty(key, counterparty)
        )

    def delete_counterparty(self, key: int) -> None:
        self._run_transaction(lambda: self.repository.delete_counterparty(key))

    # Projects

    def add_project(self, project: ProjectDTO) -> ProjectRecord:
        record = self._run_transaction(lambda: self.repository.insert_project(project))
        logger.info(f"Added project {record.key} ({record.title})")
        return record

    def get_project(self, key: int) -> ProjectRecord:
        return self.repository.get_project(key)

    def get_project_by_title(self, title: str) -> ProjectRecord:
        return self.repository.get_project_by_title(title)

    def list_projects(self, counterparty: str | None = None) -> list[ProjectRecord]:
        if counterparty is None:
            return self.repository.list_projects()
        key = self.repository.get_counterparty_by_name(counterparty).key
        return self.repository.list_projects(counterparty_key=key)

    def update_project(self, key: int, project: ProjectDTO) -> ProjectRecord:
        return self._run_transaction(lambda: self.repository.update_project(key, project))

    def delete_project(self, key: int) -> None:
        self._run_transaction(lambda: self.repository.delete_project(key))

    # Transactions

    def _resolve_currency(self, transaction: TransactionDTO, account: AccountRecord) -> str:
        """Resolve the currency the transaction amount is denominated in."""
        if transaction.currency is None:
            if transaction.exchange_rate == 1:
                return account.currency
            return other_currency(account.currency)
        if transaction.currency == account.currency and transaction.exchange_rate != 1:
            raise InvalidInputError(
                "exchange_rate", "must be 1 when the amount is in the account currency"
            )
        return transaction.currency

    def _resolve_project_rate(
        self,
        transaction: TransactionDTO,
        account: AccountRecord,
        currency: str,
        settings: Settings,
    ) -> Decimal | None:
        """Snapshot the primary to project currency multiplier when one is needed."""
        if transaction.project is None:
            return None
        project = self.repository.get_project_by_title(transaction.project)
        if project.currency is None or project.currency in (
            currency,
            account.currency,
            settings.primary_currency,
        ):
            return None
        rate = project.exchange_rate or settings.default_exchange_rate
        multiplier = conversion_for(settings.primary_currency, project.currency, rate).multiplier
        logger.debug(
            f"Project rate snapshot for {project.title}: "
            f"{settings.primary_currency}->{project.currency} x{multiplier}"
        )
        return multiplier

    def _apply_balance(self, account_key: int, delta: Decimal) -> None:
        if delta:
            self.repository.adjust_account_balance(account_key, delta)

    def add_transaction(self, transaction: TransactionDTO) -> TransactionRecord:
        """Add a transaction and apply its effect on the account balance."""

        def action() -> TransactionRecord:
            account = self.repository.get_account_by_name(transaction.account)
            settings = self.repository.get_settings()
            currency = self._resolve_currency(transaction, account)
            project_rate = self._resolve_project_rate(transaction, account, currency, settings)
            record = self.repository.insert_transaction(
                transaction,
                currency,
                project_rate,
                transaction.transaction_date or dt.date.today(),
            )
            self._apply_balance(record.account_key, record.balance_effect())
            return record

        record = self._run_transaction(action)
        logger.info(
            f"Added {record.kind} {record.key}: {record.amount} {record.currency} "
            f"on {record.account}{' (scheduled)' if record.is_scheduled else ''}"
        )
        return record

    def get_transaction(self, key: int) -> TransactionRecord:
        return self.repository.get_transaction(key)

    def list_transactions(
        self,
        kind: str | None = None,
        account: str | None = None,
        project: str | None = None,
        counterparty: str | None = None,
        is_scheduled: bool | None = None,
    ) -> list[TransactionRecord]:
        """List transactions, filtering by names where given."""
        return self.repository.list_transactions(
            kind=kind,
            account_key=self.repository.get_account_by_name(account).key if account else None,
            project_key=self.repository.get_project_by_title(project).key if project else None,
            counterparty_key=(
                self.repository.get_counterparty_by_name(counterparty).key
                if counterparty
                else None
            ),
            is_scheduled=is_scheduled,
        )

    def update_transaction(self, key: int, transaction: TransactionDTO) -> TransactionRecord:
        """Replace a transaction, moving its balance effect if needed.

        A scheduled transaction that becomes confirmed without a date is
        dated today; otherwise the previous date is kept.
        """

        def action() -> TransactionRecord:
            old = self.repository.get_transaction(key)
            account = self.repository.get_account_by_name(transaction.account)
            settings = self.repository.get_settings()
            currency = self._resolve_currency(transaction, account)
            project_rate = self._resolve_project_rate(transaction, account, currency, settings)
            transaction_date = transaction.transaction_date
            if transaction_date is None:
                if old.is_scheduled and not transaction.is_scheduled and old.transaction_date is None:
                    transaction_date = dt.date.today()
                else:
                    transaction_date = old.transaction_date or dt.date.today()
            self._apply_balance(old.account_key, -old.balance_effect())
            record = self.repository.update_transaction(
                key, transaction, currency, project_rate, transaction_date
            )
            self._apply_balance(record.account_key, record.balance_effect())
            return record

        record = self._run_transaction(action)
        logger.info(f"Updated transaction {key}")
        return record

    def confirm_transaction(self, key: int) -> TransactionRecord:
        """Confirm a scheduled transaction and post it to its account."""

        def action() -> TransactionRecord:
            record = self.repository.get_transaction(key)
            if not record.is_scheduled:
                raise InvalidInputError("is_scheduled", f"transaction {key} is not scheduled")
            confirmed = self.repository.set_transaction_schedule(
                key, False, record.transaction_date or dt.date.today()
            )
            self._apply_balance(confirmed.account_key, confirmed.balance_effect())
            return confirmed

        record = self._run_transaction(action)
        logger.info(f"Confirmed scheduled transaction {key}")
        return record

    def delete_transaction(self, key: int) -> None:
        """Delete a transaction and reverse its balance effect."""

        def action() -> None:
            record = self.repository.get_transaction(key)
            self.repository.delete_transaction(key)
            self._apply_balance(record.account_key, -record.balance_effect())

        self._run_transaction(action)
        logger.info(f"Deleted transaction {key}")

    # Summaries

    def get_dashboard_summary(self) -> DashboardSummary:
        """Total balance and ledger totals in the primary currency."""
        settings = self.repository.get_settings()
        accounts = self.repository.list_accounts()
        entries = [record.to_entry() for record in self.repository.list_transactions()]
        budgets = [
            target
            for target in (project.budget_target() for project in self.repository.list_projects())
            if target is not None
        ]
        return DashboardSummary(
            currency=settings.primary_currency,
            total_balance=aggregator.total_balance(
                accounts, settings.primary_currency, settings.default_exchange_rate
            ),
            ledger=aggregator.summarize(
                entries,
                settings.primary_currency,
                settings.default_exchange_rate,
                budgets=budgets,
            ),
            account_count=len(accounts),
        )

    def get_account_summary(self, key: int) -> LedgerSummary:
        """Ledger totals of one account in the account currency."""
        settings = self.repository.get_settings()
        account = self.repository.get_account(key)
        entries = [
            record.to_entry() for record in self.repository.list_transactions(account_key=key)
        ]
        return aggregator.summarize(entries, account.currency, settings.default_exchange_rate)

    def get_project_summary(self, key: int) -> LedgerSummary:
        """Ledger totals of one project in the project currency."""
        settings = self.repository.get_settings()
        project = self.repository.get_project(key)
        entries = [
            record.to_entry() for record in self.repository.list_transactions(project_key=key)
        ]
        return aggregator.project_summary(
            project, entries, settings.default_exchange_rate, settings.primary_currency
        )

    def get_counterparty_summary(self, key: int) -> LedgerSummary:
        """Ledger totals of one counterparty in the primary currency."""
        settings = self.repository.get_settings()
        self.repository.get_counterparty(key)
        entries = [
            record.to_entry()
            for record in self.repository.list_transactions(counterparty_key=key)
        ]
        return aggregator.counterparty_summary(
            entries,
            settings.primary_currency,
            settings.default_exchange_rate,
            projects=self.repository.list_projects(counterparty_key=key),
        )

    def get_summaries_by_project(self) -> dict[Hashable, LedgerSummary]:
        """Ledger totals per project key (``None`` for unassigned)."""
        settings = self.repository.get_settings()
        entries = [record.to_entry() for record in self.repository.list_transactions()]
        return aggregator.summarize_by(
            entries,
            lambda entry: entry.project_key,
            settings.primary_currency,
            settings.default_exchange_rate,
        )
