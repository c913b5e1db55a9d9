"""Database connection and schema management."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .config import get_settings

SCHEMA = """
-- Rate per kWh for each subscribed power tier (VA)
CREATE TABLE IF NOT EXISTS tariffs (
    id INTEGER PRIMARY KEY,
    power_tier INTEGER NOT NULL UNIQUE,
    rate_per_kwh REAL NOT NULL
);

CREATE TABLE IF NOT EXISTS customers (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    meter_number TEXT NOT NULL UNIQUE,
    address TEXT,
    power_tier INTEGER NOT NULL,
    FOREIGN KEY (power_tier) REFERENCES tariffs(power_tier)
);

-- Monthly meter readings, one per customer and period
CREATE TABLE IF NOT EXISTS usage (
    id INTEGER PRIMARY KEY,
    customer_id INTEGER NOT NULL,
    period_month INTEGER NOT NULL,
    period_year INTEGER NOT NULL,
    meter_start REAL NOT NULL,
    meter_end REAL NOT NULL,
    UNIQUE(customer_id, period_month, period_year),
    FOREIGN KEY (customer_id) REFERENCES customers(id)
);

CREATE TABLE IF NOT EXISTS bills (
    id INTEGER PRIMARY KEY,
    customer_id INTEGER NOT NULL,
    usage_id INTEGER NOT NULL UNIQUE,
    period_month INTEGER NOT NULL,
    period_year INTEGER NOT NULL,
    usage_kwh REAL NOT NULL,
    energy_cost INTEGER NOT NULL,
    admin_fee INTEGER NOT NULL,
    total_due INTEGER NOT NULL,
    status TEXT NOT NULL DEFAULT 'unpaid',
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (customer_id) REFERENCES customers(id),
    FOREIGN KEY (usage_id) REFERENCES usage(id)
);

CREATE TABLE IF NOT EXISTS payments (
    id INTEGER PRIMARY KEY,
    bill_id INTEGER NOT NULL UNIQUE,
    customer_id INTEGER NOT NULL,
    paid_on TEXT NOT NULL,
    months_late INTEGER NOT NULL DEFAULT 0,
    admin_fee INTEGER NOT NULL,
    late_penalty INTEGER NOT NULL DEFAULT 0,
    total_paid INTEGER NOT NULL,
    FOREIGN KEY (bill_id) REFERENCES bills(id),
    FOREIGN KEY (customer_id) REFERENCES customers(id)
);

CREATE INDEX IF NOT EXISTS idx_usage_period ON usage(period_year, period_month);
CREATE INDEX IF NOT EXISTS idx_bills_period ON bills(period_year, period_month);
CREATE INDEX IF NOT EXISTS idx_bills_status ON bills(status);
"""


def get_db_path() -> Path:
    """Get the database path, creating parent directories if needed."""
    db_path = get_settings().db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return db_path


@contextmanager
def get_connection(db_path: Path | None = None) -> Iterator[sqlite3.Connection]:
    """Get a database connection with row factory and foreign keys enabled."""
    path = db_path or get_db_path()
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()


def init_db(db_path: Path | None = None) -> None:
    """Initialize the database schema."""
    with get_connection(db_path) as conn:
        conn.executescript(SCHEMA)
        conn.commit()


def get_stats(db_path: Path | None = None) -> dict:
    """Row counts per table, plus bills by status."""
    with get_connection(db_path) as conn:
        stats = {}
        for table in ("tariffs", "customers", "usage", "bills", "payments"):
            row = conn.execute(f"SELECT COUNT(*) as count FROM {table}").fetchone()
            stats[table] = row["count"]

        rows = conn.execute(
            "SELECT status, COUNT(*) as count FROM bills GROUP BY status"
        ).fetchall()
        stats["bills_by_status"] = {row["status"]: row["count"] for row in rows}

        return stats
