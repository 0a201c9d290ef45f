"""
Database schema for the promo tracking record store.
Mirrors the hosted backend's tables so the SQLite store can stand in for it.
"""

import logging

from .connection import DatabaseConnection

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
-- 1. ACCOUNTS (never deleted by rollover)
CREATE TABLE IF NOT EXISTS accounts (
    id TEXT PRIMARY KEY,
    account_name TEXT NOT NULL,
    account_number TEXT,
    territory TEXT,                      -- legacy comma-joined territories
    notes TEXT,                          -- legacy notes fallback
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS account_territories (
    id TEXT PRIMARY KEY,
    account_id TEXT NOT NULL,
    territory TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (account_id, territory),
    FOREIGN KEY (account_id) REFERENCES accounts(id) ON DELETE CASCADE
);

-- 2. REPS
CREATE TABLE IF NOT EXISTS reps (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    email TEXT,
    password_hash TEXT,
    is_admin BOOLEAN DEFAULT 0,
    notify_territory_alerts BOOLEAN DEFAULT 0,
    notify_weekly_summary BOOLEAN DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS rep_territories (
    id TEXT PRIMARY KEY,
    rep_id TEXT NOT NULL,
    territory TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (rep_id, territory),
    FOREIGN KEY (rep_id) REFERENCES reps(id) ON DELETE CASCADE
);

-- 3. PROMOS
CREATE TABLE IF NOT EXISTS promos (
    id TEXT PRIMARY KEY,
    promo_name TEXT NOT NULL,
    promo_code TEXT,
    discount REAL,
    terms TEXT,
    start_date DATE,
    end_date DATE,
    is_active BOOLEAN DEFAULT 1,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- 4. ACCOUNT_PROMOS (current assignment = latest assigned_date per account)
CREATE TABLE IF NOT EXISTS account_promos (
    id TEXT PRIMARY KEY,
    account_id TEXT NOT NULL,
    promo_id TEXT NOT NULL,
    target_units INTEGER NOT NULL CHECK (target_units > 0),
    terms TEXT,
    assigned_date TIMESTAMP NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (account_id) REFERENCES accounts(id),
    FOREIGN KEY (promo_id) REFERENCES promos(id)
);

CREATE INDEX IF NOT EXISTS idx_account_promos_account
    ON account_promos(account_id, assigned_date);

-- 5. TRANSACTIONS (immutable)
CREATE TABLE IF NOT EXISTS transactions (
    id TEXT PRIMARY KEY,
    account_id TEXT NOT NULL,
    promo_id TEXT NOT NULL,
    rep_id TEXT,
    units_sold INTEGER NOT NULL CHECK (units_sold > 0),
    transaction_date DATE NOT NULL,
    notes TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (account_id) REFERENCES accounts(id),
    FOREIGN KEY (promo_id) REFERENCES promos(id)
);

CREATE INDEX IF NOT EXISTS idx_transactions_account
    ON transactions(account_id, promo_id);

-- 6. QUARTERS (at most one active)
CREATE TABLE IF NOT EXISTS quarters (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    start_date DATE NOT NULL,
    end_date DATE NOT NULL,
    is_active BOOLEAN DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- 7. ARCHIVES (append-only, written by rollover)
CREATE TABLE IF NOT EXISTS archived_account_promos (
    id TEXT PRIMARY KEY,
    original_id TEXT,
    account_id TEXT,
    promo_id TEXT,
    target_units INTEGER,
    terms TEXT,
    assigned_date TIMESTAMP,
    quarter_name TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS archived_transactions (
    id TEXT PRIMARY KEY,
    original_id TEXT,
    rep_id TEXT,
    account_id TEXT,
    promo_id TEXT,
    units_sold INTEGER,
    transaction_date DATE,
    notes TEXT,
    quarter_name TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- 8. NOTES, ACTIVITY, NOTIFICATIONS (append-only)
CREATE TABLE IF NOT EXISTS account_notes (
    id TEXT PRIMARY KEY,
    account_id TEXT NOT NULL,
    note TEXT NOT NULL,
    created_by TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (account_id) REFERENCES accounts(id)
);

CREATE TABLE IF NOT EXISTS activity_log (
    id TEXT PRIMARY KEY,
    action_type TEXT NOT NULL,
    account_id TEXT,
    rep_id TEXT,
    details TEXT,                        -- JSON
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS notification_log (
    id TEXT PRIMARY KEY,
    rep_id TEXT,
    notification_type TEXT NOT NULL,
    subject TEXT,
    status TEXT NOT NULL,
    details TEXT,                        -- JSON
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""


def initialize_schema(db: DatabaseConnection) -> None:
    """Create all tables and indexes if they do not already exist."""
    with db.connection() as conn:
        conn.executescript(SCHEMA_SQL)
    logger.info(f"Schema initialized at {db.db_path}")
