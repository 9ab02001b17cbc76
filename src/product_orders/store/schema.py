"""SQLite schema for product orders, participants, submissions and influencers.

``open_database`` returns a connection in autocommit mode: statements issued
outside a repository transaction commit on their own, and multi-step
operations open an explicit ``BEGIN IMMEDIATE`` scope through
``SqliteRepository.transaction``.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path


def open_database(db_path: Path | str) -> sqlite3.Connection:
    """Open (creating if needed) the lifecycle database.

    Args:
        db_path: Path to the SQLite database file, or ``":memory:"``.

    Returns:
        An open sqlite3.Connection with foreign keys enforced and the
        lifecycle tables created.
    """
    in_memory = str(db_path) == ":memory:"
    if not in_memory:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path), isolation_level=None, check_same_thread=False)
    if not in_memory:
        conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    init_lifecycle_tables(conn)
    return conn


def init_lifecycle_tables(conn: sqlite3.Connection) -> None:
    """Create the lifecycle tables and indexes if they do not already exist.

    ``product_order_influencer`` carries the unique
    ``(product_order_id, influencer_id)`` pair that backs upsert semantics
    and turns a racing duplicate insert into an ``IntegrityError``.

    Args:
        conn: An open sqlite3.Connection.
    """
    conn.execute("""
        CREATE TABLE IF NOT EXISTS product_order (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            kind TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'in_preparation',
            post_type TEXT,
            client_id INTEGER,
            instructions TEXT,
            created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
            updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS influencer (
            id INTEGER PRIMARY KEY,
            currency TEXT NOT NULL
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS influencer_desired_amount (
            influencer_id INTEGER NOT NULL REFERENCES influencer (id),
            order_kind TEXT NOT NULL,
            post_type TEXT NOT NULL,
            desired_amount TEXT NOT NULL,
            PRIMARY KEY (influencer_id, order_kind, post_type)
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS product_order_influencer (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            product_order_id INTEGER NOT NULL REFERENCES product_order (id),
            influencer_id INTEGER NOT NULL REFERENCES influencer (id),
            status TEXT NOT NULL DEFAULT 'added',
            agreed_amount TEXT NOT NULL,
            currency TEXT NOT NULL,
            created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
            updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
            UNIQUE (product_order_id, influencer_id)
        )
    """)
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_participant_status "
        "ON product_order_influencer (product_order_id, status)"
    )

    conn.execute("""
        CREATE TABLE IF NOT EXISTS submission (
            product_order_id INTEGER NOT NULL REFERENCES product_order (id),
            influencer_id INTEGER NOT NULL REFERENCES influencer (id),
            submission_link TEXT,
            question_id INTEGER,
            option_id INTEGER,
            response_text TEXT,
            submitted_at TEXT NOT NULL,
            PRIMARY KEY (product_order_id, influencer_id)
        )
    """)
