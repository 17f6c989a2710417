"""Schema creation for the mirror store.

One ``shipments`` row per tracking id plus an append-only
``shipment_notes`` table.  Note order is insertion order (``id``).
"""

from __future__ import annotations

import sqlite3

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS shipments (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        tracking_id TEXT NOT NULL UNIQUE,
        medicine_id TEXT,
        sender TEXT,
        receiver TEXT,
        status TEXT NOT NULL DEFAULT 'Pending',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS shipment_notes (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        shipment_id INTEGER NOT NULL REFERENCES shipments(id) ON DELETE CASCADE,
        text TEXT NOT NULL,
        author TEXT NOT NULL,
        timestamp TEXT NOT NULL,
        transaction_hash TEXT NOT NULL DEFAULT ''
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_shipment_notes_shipment_id ON shipment_notes(shipment_id, id)",
)

# Notes are never edited or deleted once written.
APPEND_ONLY_TRIGGERS = (
    """
    CREATE TRIGGER IF NOT EXISTS trg_shipment_notes_no_update
    BEFORE UPDATE ON shipment_notes
    BEGIN
        SELECT RAISE(ABORT, 'shipment_notes is append-only');
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS trg_shipment_notes_no_delete
    BEFORE DELETE ON shipment_notes
    BEGIN
        SELECT RAISE(ABORT, 'shipment_notes is append-only');
    END
    """,
)


def create_schema(conn: sqlite3.Connection) -> None:
    """Create mirror tables, indexes and triggers if they do not exist."""
    cursor = conn.cursor()
    for statement in SCHEMA_STATEMENTS:
        cursor.execute(statement)
    for statement in APPEND_ONLY_TRIGGERS:
        cursor.execute(statement)
