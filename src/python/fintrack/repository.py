"""SQLite repository implementation for fintrack."""

from __future__ import annotations

from pathlib import Path
import datetime as dt
from decimal import Decimal
import json
import logging
import sqlite3

from fintrack.exceptions import DuplicateError, NotFoundError
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
from fintrack.persistence import PersistenceBackend
from fintrack.schema import (
    CATEGORY_KINDS,
    DEFAULT_EXCHANGE_RATE,
    DEFAULT_PRIMARY_CURRENCY,
    FLAG_N,
    FLAG_Y,
    LEDGER_COLUMNS,
    SCHEMA_STATEMENTS,
)

logger = logging.getLogger(__name__)

TRANSACTION_SELECT = """
    SELECT
        l.*,
        a.name AS accountName,
        a.currency AS accountCurrency,
        c.name AS categoryName,
        p.title AS projectTitle,
        cp.name AS counterpartyName
    FROM Ledger l
    JOIN Account a ON a.key = l.accountKey
    LEFT JOIN Category c ON c.key = l.categoryKey
    LEFT JOIN Project p ON p.key = l.projectKey
    LEFT JOIN Counterparty cp ON cp.key = l.counterpartyKey
"""

LEDGER_WRITE_COLUMNS = [column for column in LEDGER_COLUMNS if column != "key"]

LEDGER_INSERT = (
    f"INSERT INTO Ledger ({', '.join(LEDGER_WRITE_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in LEDGER_WRITE_COLUMNS)})"
)

LEDGER_UPDATE = (
    f"UPDATE Ledger SET {', '.join(f'{column} = ?' for column in LEDGER_WRITE_COLUMNS)} "
    "WHERE key = ?"
)

PROJECT_SELECT = """
    SELECT p.*, c.name AS counterpartyName
    FROM Project p
    LEFT JOIN Counterparty c ON c.key = p.counterpartyKey
"""


def _timestamp() -> str:
    return dt.datetime.now().replace(microsecond=0).strftime("%Y-%m-%d %H:%M:%S")


def _flag(value: bool) -> str:
    return FLAG_Y if value else FLAG_N


def _optional_decimal(value: str | None) -> Decimal | None:
    if value is None or value == "":
        return None
    return Decimal(value)


def _optional_str(value: object | None) -> str | None:
    if value is None:
        return None
    return str(value)


def _optional_date(value: str | None) -> dt.date | None:
    if not value:
        return None
    return dt.date.fromisoformat(value)


class Repository(PersistenceBackend):
    """SQLite-backed persistence implementation."""

    def __init__(self, db_path: str | Path) -> None:
        """Create a repository for the given database path."""
        self.db_path = Path(db_path)
        self.connection: sqlite3.Connection | None = None

    def connect(self) -> None:
        """Open the database connection."""
        if self.connection is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.connection = sqlite3.connect(self.db_path)
            self.connection.row_factory = sqlite3.Row
            self.connection.execute("PRAGMA foreign_keys = ON")

    def close(self) -> None:
        """Close the database connection."""
        if self.connection is not None:
            self.connection.close()
            self.connection = None

    def initialize_schema(self) -> None:
        """Create tables and indexes that do not exist yet."""
        self._ensure_connection()
        for statement in SCHEMA_STATEMENTS:
            self.connection.execute(statement)
        self.connection.commit()
        logger.debug("Schema initialized at %s", self.db_path)

    def begin_transaction(self) -> None:
        """Begin a database transaction."""
        self._ensure_connection()
        self.connection.execute("BEGIN")

    def commit(self) -> None:
        """Commit the current transaction."""
        self._ensure_connection()
        self.connection.commit()

    def rollback(self) -> None:
        """Rollback the current transaction."""
        self._ensure_connection()
        self.connection.rollback()

    # Settings

    def get_settings(self) -> Settings:
        """Return stored settings or the defaults."""
        self._ensure_connection()
        row = self.connection.execute(
            "SELECT primaryCurrency, defaultExchangeRate FROM Settings WHERE key = 1"
        ).fetchone()
        if row is None:
            return Settings(
                primary_currency=DEFAULT_PRIMARY_CURRENCY,
                default_exchange_rate=Decimal(DEFAULT_EXCHANGE_RATE),
            )
        return Settings(
            primary_currency=row["primaryCurrency"],
            default_exchange_rate=Decimal(row["defaultExchangeRate"]),
        )

    def save_settings(self, settings: Settings) -> Settings:
        """Insert or replace the single settings row."""
        self._ensure_connection()
        self.connection.execute(
            """
            INSERT INTO Settings (key, primaryCurrency, defaultExchangeRate, timeStamp)
            VALUES (1, ?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                primaryCurrency = excluded.primaryCurrency,
                defaultExchangeRate = excluded.defaultExchangeRate,
                timeStamp = excluded.timeStamp
            """,
            (settings.primary_currency, str(settings.default_exchange_rate), _timestamp()),
        )
        return self.get_settings()

    # Accounts

    def insert_account(self, account: AccountDTO) -> AccountRecord:
        """Insert a new account and return the record."""
        self._ensure_connection()
        self._check_unique("Account", "name", account.name, "Duplicate account")
        cursor = self.connection.execute(
            "INSERT INTO Account (name, currency, balance, timeStamp) VALUES (?, ?, ?, ?)",
            (account.name, account.currency, str(account.balance), _timestamp()),
        )
        return self.get_account(int(cursor.lastrowid))

    def get_account(self, key: int) -> AccountRecord:
        self._ensure_connection()
        row = self.connection.execute("SELECT * FROM Account WHERE key = ?", (key,)).fetchone()
        if row is None:
            raise NotFoundError(f"Account not found: {key}")
        return self._row_to_account(row)

    def get_account_by_name(self, name: str) -> AccountRecord:
        self._ensure_connection()
        row = self.connection.execute("SELECT * FROM Account WHERE name = ?", (name,)).fetchone()
        if row is None:
            raise NotFoundError(f"Account not found: {name}")
        return self._row_to_account(row)

    def list_accounts(self) -> list[AccountRecord]:
        """Return accounts ordered by name."""
        self._ensure_connection()
        rows = self.connection.execute("SELECT * FROM Account ORDER BY name").fetchall()
        return [self._row_to_account(row) for row in rows]

    def update_account(self, key: int, account: AccountDTO) -> AccountRecord:
        self._ensure_connection()
        self.get_account(key)
        self._check_unique("Account", "name", account.name, "Duplicate account", exclude_key=key)
        self.connection.execute(
            "UPDATE Account SET name = ?, currency = ?, balance = ?, timeStamp = ? WHERE key = ?",
            (account.name, account.currency, str(account.balance), _timestamp(), key),
        )
        return self.get_account(key)

    def adjust_account_balance(self, key: int, delta: Decimal) -> AccountRecord:
        """Add a signed delta to the stored balance."""
        account = self.get_account(key)
        balance = account.balance + delta
        self.connection.execute(
            "UPDATE Account SET balance = ?, timeStamp = ? WHERE key = ?",
            (str(balance), _timestamp(), key),
        )
        return self.get_account(key)

    def delete_account(self, key: int) -> None:
        self._ensure_connection()
        self.get_account(key)
        self.connection.execute("DELETE FROM Ledger WHERE accountKey = ?", (key,))
        self.connection.execute("DELETE FROM Account WHERE key = ?", (key,))

    # Categories

    def insert_category(self, category: CategoryDTO) -> CategoryRecord:
        self._ensure_connection()
        duplicate = self.connection.execute(
            "SELECT key FROM Category WHERE name = ? AND kind = ?",
            (category.name, category.kind),
        ).fetchone()
        if duplicate is not None:
            raise DuplicateError(
                "Duplicate category", {"name": category.name, "kind": category.kind}
            )
        cursor = self.connection.execute(
            "INSERT INTO Category (name, kind) VALUES (?, ?)",
            (category.name, category.kind),
        )
        return self.get_category(int(cursor.lastrowid))

    def get_category(self, key: int) -> CategoryRecord:
        self._ensure_connection()
        row = self.connection.execute("SELECT * FROM Category WHERE key = ?", (key,)).fetchone()
        if row is None:
            raise NotFoundError(f"Category not found: {key}")
        return CategoryRecord(key=int(row["key"]), name=row["name"], kind=row["kind"])

    def list_categories(self, kind: str | None = None) -> list[CategoryRecord]:
        self._ensure_connection()
        if kind is None:
            rows = self.connection.execute("SELECT * FROM Category ORDER BY name").fetchall()
        else:
            rows = self.connection.execute(
                "SELECT * FROM Category WHERE kind = ? ORDER BY name", (kind,)
            ).fetchall()
        return [
            CategoryRecord(key=int(row["key"]), name=row["name"], kind=row["kind"])
            for row in rows
        ]

    def update_category(self, key: int, category: CategoryDTO) -> CategoryRecord:
        self._ensure_connection()
        self.get_category(key)
        duplicate = self.connection.execute(
            "SELECT key FROM Category WHERE name = ? AND kind = ? AND key != ?",
            (category.name, category.kind, key),
        ).fetchone()
        if duplicate is not None:
            raise DuplicateError(
                "Duplicate category", {"name": category.name, "kind": category.kind}
            )
        self.connection.execute(
            "UPDATE Category SET name = ?, kind = ? WHERE key = ?",
            (category.name, category.kind, key),
        )
        return self.get_category(key)

    def delete_category(self, key: int) -> None:
        self._ensure_connection()
        self.get_category(key)
        self.connection.execute("UPDATE Ledger SET categoryKey = NULL WHERE categoryKey = ?", (key,))
        self.connection.execute("DELETE FROM Category WHERE key = ?", (key,))

    # Counterparties

    def insert_counterparty(self, counterparty: CounterpartyDTO) -> CounterpartyRecord:
        self._ensure_connection()
        self._check_unique("Counterparty", "name", counterparty.name, "Duplicate counterparty")
        cursor = self.connection.execute(
            "INSERT INTO Counterparty (name, role, timeStamp) VALUES (?, ?, ?)",
            (counterparty.name, counterparty.role, _timestamp()),
        )
        return self.get_counterparty(int(cursor.lastrowid))

    def get_counterparty(self, key: int) -> CounterpartyRecord:
        self._ensure_connection()
        row = self.connection.execute(
            "SELECT * FROM Counterparty WHERE key = ?", (key,)
        ).fetchone()
        if row is None:
            raise NotFoundError(f"Counterparty not found: {key}")
        return self._row_to_counterparty(row)

    def get_counterparty_by_name(self, name: str) -> CounterpartyRecord:
        self._ensure_connection()
        row = self.connection.execute(
            "SELECT * FROM Counterparty WHERE name = ?", (name,)
        ).fetchone()
        if row is None:
            raise NotFoundError(f"Counterparty not found: {name}")
        return self._row_to_counterparty(row)

    def list_counterparties(self, role: str | None = None) -> list[CounterpartyRecord]:
        self._ensure_connection()
        if role is None:
            rows = self.connection.execute("SELECT * FROM Counterparty ORDER BY name").fetchall()
        else:
            rows = self.connection.execute(
                "SELECT * FROM Counterparty WHERE role = ? ORDER BY name", (role,)
            ).fetchall()
        return [self._row_to_counterparty(row) for row in rows]

    def update_counterparty(
        self, key: int, counterparty: CounterpartyDTO
    ) -> CounterpartyRecord:
        self._ensure_connection()
        self.get_counterparty(key)
        self._check_unique(
            "Counterparty", "name", counterparty.name, "Duplicate counterparty", exclude_key=key
        )
        self.connection.execute(
            "UPDATE Counterparty SET name = ?, role = ?, timeStamp = ? WHERE key = ?",
            (counterparty.name, counterparty.role, _timestamp(), key),
        )
        return self.get_counterparty(key)

    def delete_counterparty(self, key: int) -> None:
        self._ensure_connection()
        self.get_counterparty(key)
        self.connection.execute(
            "UPDATE Ledger SET counterpartyKey = NULL WHERE counterpartyKey = ?", (key,)
        )
        self.connection.execute(
            "UPDATE Project SET counterpartyKey = NULL WHERE counterpartyKey = ?", (key,)
        )
        self.connection.execute("DELETE FROM Counterparty WHERE key = ?", (key,))

    # Projects

    def insert_project(self, project: ProjectDTO) -> ProjectRecord:
        self._ensure_connection()
        self._check_unique("Project", "title", project.title, "Duplicate project")
        counterparty_key = self._resolve_counterparty_key(project.counterparty)
        cursor = self.connection.execute(
            """
            INSERT INTO Project (
                title,
                budget,
                currency,
                exchangeRate,
                counterpartyKey,
                isCompleted,
                timeStamp
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                project.title,
                _optional_str(project.budget),
                project.currency,
                _optional_str(project.exchange_rate),
                counterparty_key,
                _flag(project.is_completed),
                _timestamp(),
            ),
        )
        return self.get_project(int(cursor.lastrowid))

    def get_project(self, key: int) -> ProjectRecord:
        self._ensure_connection()
        row = self.connection.execute(f"{PROJECT_SELECT} WHERE p.key = ?", (key,)).fetchone()
        if row is None:
            raise NotFoundError(f"Project not found: {key}")
        return self._row_to_project(row)

    def get_project_by_title(self, title: str) -> ProjectRecord:
        self._ensure_connection()
        row = self.connection.execute(f"{PROJECT_SELECT} WHERE p.title = ?", (title,)).fetchone()
        if row is None:
            raise NotFoundError(f"Project not found: {title}")
        return self._row_to_project(row)

    def list_projects(self, counterparty_key: int | None = None) -> list[ProjectRecord]:
        self._ensure_connection()
        if counterparty_key is None:
            rows = self.connection.execute(f"{PROJECT_SELECT} ORDER BY p.title").fetchall()
        else:
            rows = self.connection.execute(
                f"{PROJECT_SELECT} WHERE p.counterpartyKey = ? ORDER BY p.title",
                (counterparty_key,),
            ).fetchall()
        return [self._row_to_project(row) for row in rows]

    def update_project(self, key: int, project: ProjectDTO) -> ProjectRecord:
        self._ensure_connection()
        self.get_project(key)
        self._check_unique(
            "Project", "title", project.title, "Duplicate project", exclude_key=key
        )
        counterparty_key = self._resolve_counterparty_key(project.counterparty)
        self.connection.execute(
            """
            UPDATE Project SET
                title = ?,
                budget = ?,
                currency = ?,
                exchangeRate = ?,
                counterpartyKey = ?,
                isCompleted = ?,
                timeStamp = ?
            WHERE key = ?
            """,
            (
                project.title,
                _optional_str(project.budget),
                project.currency,
                _optional_str(project.exchange_rate),
                counterparty_key,
                _flag(project.is_completed),
                _timestamp(),
                key,
            ),
        )
        return self.get_project(key)

    def delete_project(self, key: int) -> None:
        self._ensure_connection()
        self.get_project(key)
        self.connection.execute(
            """
            UPDATE Ledger SET projectKey = NULL, projectExchangeRate = NULL
            WHERE projectKey = ?
            """,
            (key,),
        )
        self.connection.execute("DELETE FROM Project WHERE key = ?", (key,))

    # Transactions

    def insert_transaction(
        self,
        transaction: TransactionDTO,
        currency: str,
        project_exchange_rate: Decimal | None,
        transaction_date: dt.date | None,
    ) -> TransactionRecord:
        """Insert a new ledger row and return the record."""
        self._ensure_connection()
        cursor = self.connection.execute(
            LEDGER_INSERT,
            self._ledger_values(transaction, currency, project_exchange_rate, transaction_date),
        )
        return self.get_transaction(int(cursor.lastrowid))

    def get_transaction(self, key: int) -> TransactionRecord:
        self._ensure_connection()
        row = self.connection.execute(
            f"{TRANSACTION_SELECT} WHERE l.key = ?", (key,)
        ).fetchone()
        if row is None:
            raise NotFoundError(f"Transaction not found: {key}")
        return self._row_to_transaction(row)

    def list_transactions(
        self,
        kind: str | None = None,
        account_key: int | None = None,
        project_key: int | None = None,
        counterparty_key: int | None = None,
        is_scheduled: bool | None = None,
    ) -> list[TransactionRecord]:
        """Return transactions matching the filters, newest first."""
        self._ensure_connection()
        clauses: list[str] = []
        params: list[object] = []
        for column, value in (
            ("l.kind", kind),
            ("l.accountKey", account_key),
            ("l.projectKey", project_key),
            ("l.counterpartyKey", counterparty_key),
        ):
            if value is not None:
                clauses.append(f"{column} = ?")
                params.append(value)
        if is_scheduled is not None:
            clauses.append("l.isScheduled = ?")
            params.append(_flag(is_scheduled))
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self.connection.execute(
            f"{TRANSACTION_SELECT}{where} ORDER BY l.transactionDate DESC, l.key DESC",
            params,
        ).fetchall()
        return [self._row_to_transaction(row) for row in rows]

    def update_transaction(
        self,
        key: int,
        transaction: TransactionDTO,
        currency: str,
        project_exchange_rate: Decimal | None,
        transaction_date: dt.date | None,
    ) -> TransactionRecord:
        self._ensure_connection()
        self.get_transaction(key)
        values = self._ledger_values(
            transaction, currency, project_exchange_rate, transaction_date
        )
        self.connection.execute(LEDGER_UPDATE, (*values, key))
        return self.get_transaction(key)

    def set_transaction_schedule(
        self, key: int, is_scheduled: bool, transaction_date: dt.date | None
    ) -> TransactionRecord:
        self._ensure_connection()
        self.get_transaction(key)
        self.connection.execute(
            "UPDATE Ledger SET isScheduled = ?, transactionDate = ?, timeStamp = ? WHERE key = ?",
            (
                _flag(is_scheduled),
                transaction_date.isoformat() if transaction_date else None,
                _timestamp(),
                key,
            ),
        )
        return self.get_transaction(key)

    def delete_transaction(self, key: int) -> None:
        self._ensure_connection()
        self.get_transaction(key)
        self.connection.execute("DELETE FROM Ledger WHERE key = ?", (key,))

    # Helpers

    def _ensure_connection(self) -> None:
        if self.connection is None:
            raise RuntimeError("Repository connection is not open")

    def _check_unique(
        self,
        table: str,
        column: str,
        value: str,
        message: str,
        exclude_key: int | None = None,
    ) -> None:
        query = f"SELECT key FROM {table} WHERE {column} = ?"
        params: list[object] = [value]
        if exclude_key is not None:
            query += " AND key != ?"
            params.append(exclude_key)
        if self.connection.execute(query, params).fetchone() is not None:
            raise DuplicateError(message, {column: value})

    def _resolve_counterparty_key(self, name: str | None) -> int | None:
        if name is None:
            return None
        return self.get_counterparty_by_name(name).key

    def _resolve_category_key(self, name: str | None, kind: str) -> int | None:
        if name is None:
            return None
        if kind in CATEGORY_KINDS:
            row = self.connection.execute(
                "SELECT key FROM Category WHERE name = ? AND kind = ?", (name, kind)
            ).fetchone()
        else:
            row = self.connection.execute(
                "SELECT key FROM Category WHERE name = ? ORDER BY key LIMIT 1", (name,)
            ).fetchone()
        if row is None:
            raise NotFoundError(f"Category not found: {name}")
        return int(row["key"])

    def _resolve_transaction_keys(self, transaction: TransactionDTO) -> dict[str, int | None]:
        return {
            "account": self.get_account_by_name(transaction.account).key,
            "category": self._resolve_category_key(transaction.category, transaction.kind),
            "project": (
                self.get_project_by_title(transaction.project).key
                if transaction.project is not None
                else None
            ),
            "counterparty": self._resolve_counterparty_key(transaction.counterparty),
        }

    def _ledger_values(
        self,
        transaction: TransactionDTO,
        currency: str,
        project_exchange_rate: Decimal | None,
        transaction_date: dt.date | None,
    ) -> tuple[object, ...]:
        """Row values in LEDGER_WRITE_COLUMNS order."""
        keys = self._resolve_transaction_keys(transaction)
        return (
            keys["account"],
            keys["category"],
            keys["project"],
            keys["counterparty"],
            str(transaction.amount),
            currency,
            str(transaction.exchange_rate),
            _optional_str(project_exchange_rate),
            transaction.kind,
            json.dumps(list(transaction.tags)),
            transaction.description,
            _flag(transaction.is_scheduled),
            transaction.scheduled_date.isoformat() if transaction.scheduled_date else None,
            transaction_date.isoformat() if transaction_date else None,
            _timestamp(),
        )

    @staticmethod
    def _row_to_account(row: sqlite3.Row) -> AccountRecord:
        return AccountRecord(
            key=int(row["key"]),
            name=row["name"],
            currency=row["currency"],
            balance=Decimal(row["balance"]),
            time_stamp=row["timeStamp"],
        )

    @staticmethod
    def _row_to_counterparty(row: sqlite3.Row) -> CounterpartyRecord:
        return CounterpartyRecord(
            key=int(row["key"]),
            name=row["name"],
            role=row["role"],
            time_stamp=row["timeStamp"],
        )

    @staticmethod
    def _row_to_project(row: sqlite3.Row) -> ProjectRecord:
        return ProjectRecord(
            key=int(row["key"]),
            title=row["title"],
            budget=_optional_decimal(row["budget"]),
            currency=row["currency"],
            exchange_rate=_optional_decimal(row["exchangeRate"]),
            counterparty_key=row["counterpartyKey"],
            counterparty=row["counterpartyName"],
            is_completed=row["isCompleted"] == FLAG_Y,
            time_stamp=row["timeStamp"],
        )

    @staticmethod
    def _row_to_transaction(row: sqlite3.Row) -> TransactionRecord:
        return TransactionRecord(
            key=int(row["key"]),
            account_key=int(row["accountKey"]),
            account=row["accountName"],
            settlement_currency=row["accountCurrency"],
            amount=Decimal(row["amount"]),
            currency=row["currency"],
            exchange_rate=Decimal(row["exchangeRate"]),
            project_exchange_rate=_optional_decimal(row["projectExchangeRate"]),
            kind=row["kind"],
            category_key=row["categoryKey"],
            category=row["categoryName"],
            project_key=row["projectKey"],
            project=row["projectTitle"],
            counterparty_key=row["counterpartyKey"],
            counterparty=row["counterpartyName"],
            tags=tuple(json.loads(row["tags"] or "[]")),
            description=row["description"],
            is_scheduled=row["isScheduled"] == FLAG_Y,
            scheduled_date=_optional_date(row["scheduledDate"]),
            transaction_date=_optional_date(row["transactionDate"]),
            time_stamp=row["timeStamp"],
        )
