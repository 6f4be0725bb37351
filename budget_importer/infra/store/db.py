from __future__ import annotations

import sqlite3
from pathlib import Path

SCHEMA_VERSION = 1

DB_FILE_NAME = "budgets.sqlite3"


def openStoreDb(dbPath: str) -> sqlite3.Connection:
    """
    Открывает/создаёт SQLite БД смет с нужными PRAGMA/timeout.
    Транзакции открываются явно (SqliteEngine.transaction).
    """
    if dbPath != ":memory:":
        Path(dbPath).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(dbPath, timeout=5.0, isolation_level=None)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    if dbPath != ":memory:":
        conn.execute("PRAGMA journal_mode = WAL")
    conn.execute("PRAGMA synchronous = NORMAL")
    conn.execute("PRAGMA busy_timeout = 5000")
    return conn


def ensureSchema(conn: sqlite3.Connection) -> int:
    """
    Создаёт таблицу budgets при первом запуске и записывает schema_version.
    """
    conn.execute("CREATE TABLE IF NOT EXISTS meta (key TEXT PRIMARY KEY, value TEXT NOT NULL)")
    row = conn.execute("SELECT value FROM meta WHERE key = 'schema_version'").fetchone()
    if row is not None and int(row["value"]) >= SCHEMA_VERSION:
        return int(row["value"])

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS budgets (
            id TEXT PRIMARY KEY,
            owner_id TEXT NOT NULL,
            device_type TEXT NOT NULL,
            device_model TEXT NOT NULL,
            part_quality TEXT,
            notes TEXT,
            total_price INTEGER NOT NULL CHECK (total_price > 0),
            cash_price INTEGER NOT NULL CHECK (cash_price > 0),
            installment_price INTEGER NOT NULL CHECK (installment_price > 0),
            installments INTEGER NOT NULL CHECK (installments BETWEEN 1 AND 24),
            payment_condition TEXT NOT NULL,
            warranty_months INTEGER NOT NULL,
            validity_days INTEGER NOT NULL,
            includes_delivery INTEGER NOT NULL DEFAULT 0,
            includes_screen_protector INTEGER NOT NULL DEFAULT 0,
            valid_until TEXT NOT NULL,
            status TEXT NOT NULL,
            created_at TEXT NOT NULL
        )
        """
    )
    conn.execute("CREATE INDEX IF NOT EXISTS idx_budgets_owner ON budgets(owner_id)")
    conn.execute(
        "INSERT OR REPLACE INTO meta(key, value) VALUES ('schema_version', ?)",
        (str(SCHEMA_VERSION),),
    )
    return SCHEMA_VERSION
