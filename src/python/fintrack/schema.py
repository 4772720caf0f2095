"""Database schema constants."""

from __future__ import annotations

FLAG_Y = "Y"
FLAG_N = "N"

CURRENCY_USD = "USD"
CURRENCY_RUB = "RUB"
SUPPORTED_CURRENCIES = (CURRENCY_USD, CURRENCY_RUB)

DEFAULT_PRIMARY_CURRENCY = CURRENCY_RUB
DEFAULT_EXCHANGE_RATE = "100"

KIND_INCOME = "income"
KIND_EXPENSE = "expense"
KIND_TRANSFER = "transfer"
TRANSACTION_KINDS = (KIND_INCOME, KIND_EXPENSE, KIND_TRANSFER)
CATEGORY_KINDS = (KIND_INCOME, KIND_EXPENSE)

ROLE_CLIENT = "client"
ROLE_CONTRACTOR = "contractor"
COUNTERPARTY_ROLES = (ROLE_CLIENT, ROLE_CONTRACTOR)

LEDGER_COLUMNS = [
    "key",
    "accountKey",
    "categoryKey",
    "projectKey",
    "counterpartyKey",
    "amount",
    "currency",
    "exchangeRate",
    "projectExchangeRate",
    "kind",
    "tags",
    "description",
    "isScheduled",
    "scheduledDate",
    "transactionDate",
    "timeStamp",
]

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS Settings (
        key INTEGER PRIMARY KEY CHECK (key = 1),
        primaryCurrency TEXT NOT NULL,
        defaultExchangeRate TEXT NOT NULL,
        timeStamp TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS Account (
        key INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE,
        currency TEXT NOT NULL,
        balance TEXT NOT NULL DEFAULT '0',
        timeStamp TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS Category (
        key INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        kind TEXT NOT NULL,
        UNIQUE (name, kind)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS Counterparty (
        key INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE,
        role TEXT NOT NULL,
        timeStamp TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS Project (
        key INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL UNIQUE,
        budget TEXT,
        currency TEXT,
        exchangeRate TEXT,
        counterpartyKey INTEGER REFERENCES Counterparty(key),
        isCompleted TEXT NOT NULL DEFAULT 'N',
        timeStamp TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS Ledger (
        key INTEGER PRIMARY KEY AUTOINCREMENT,
        accountKey INTEGER NOT NULL REFERENCES Account(key),
        categoryKey INTEGER REFERENCES Category(key),
        projectKey INTEGER REFERENCES Project(key),
        counterpartyKey INTEGER REFERENCES Counterparty(key),
        amount TEXT NOT NULL,
        currency TEXT NOT NULL,
        exchangeRate TEXT NOT NULL DEFAULT '1',
        projectExchangeRate TEXT,
        kind TEXT NOT NULL,
        tags TEXT NOT NULL DEFAULT '[]',
        description TEXT,
        isScheduled TEXT NOT NULL DEFAULT 'N',
        scheduledDate TEXT,
        transactionDate TEXT,
        timeStamp TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_ledger_account ON Ledger(accountKey)",
    "CREATE INDEX IF NOT EXISTS idx_ledger_project ON Ledger(projectKey)",
    "CREATE INDEX IF NOT EXISTS idx_ledger_counterparty ON Ledger(counterpartyKey)",
]
