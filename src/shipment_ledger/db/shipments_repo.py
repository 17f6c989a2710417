"""Shipment repository queries for the mirror store.

Functions here take an open cursor and leave transaction control to the
caller (:class:`~shipment_ledger.db.mirror.MirrorStore`).
"""

from __future__ import annotations

import sqlite3

from shipment_ledger.db.types import Annotation, MirrorRecord

_SHIPMENT_COLUMNS = (
    "id, tracking_id, medicine_id, sender, receiver, status, created_at, updated_at"
)


def _row_to_record(row: sqlite3.Row, notes: list[Annotation]) -> MirrorRecord:
    return MirrorRecord(
        id=int(row["id"]),
        tracking_id=row["tracking_id"],
        medicine_id=row["medicine_id"],
        sender=row["sender"],
        receiver=row["receiver"],
        status=row["status"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        notes=notes,
    )


def get_shipment_id(cursor: sqlite3.Cursor, tracking_id: str) -> int | None:
    """Return the mirror row id for ``tracking_id``, or None."""
    cursor.execute("SELECT id FROM shipments WHERE tracking_id = ?", (tracking_id,))
    row = cursor.fetchone()
    return int(row[0]) if row else None


def insert_shipment(
    cursor: sqlite3.Cursor,
    *,
    tracking_id: str,
    medicine_id: str,
    sender: str,
    receiver: str,
    status: str,
    now: str,
) -> int:
    """Insert a shipment row and return its id."""
    cursor.execute(
        """
        INSERT INTO shipments (
            tracking_id, medicine_id, sender, receiver, status, created_at, updated_at
        )
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (tracking_id, medicine_id, sender, receiver, status, now, now),
    )
    shipment_id = cursor.lastrowid
    if shipment_id is None:
        raise ValueError("Failed to create shipment row.")
    return int(shipment_id)


def insert_note(cursor: sqlite3.Cursor, shipment_id: int, annotation: Annotation) -> None:
    """Append one note row."""
    cursor.execute(
        """
        INSERT INTO shipment_notes (shipment_id, text, author, timestamp, transaction_hash)
        VALUES (?, ?, ?, ?, ?)
        """,
        (
            shipment_id,
            annotation.text,
            annotation.author,
            annotation.timestamp,
            annotation.transaction_hash,
        ),
    )


def touch_shipment(cursor: sqlite3.Cursor, shipment_id: int, now: str) -> None:
    cursor.execute("UPDATE shipments SET updated_at = ? WHERE id = ?", (now, shipment_id))


def set_status(cursor: sqlite3.Cursor, shipment_id: int, status: str, now: str) -> None:
    cursor.execute(
        "UPDATE shipments SET status = ?, updated_at = ? WHERE id = ?",
        (status, now, shipment_id),
    )


def list_notes(cursor: sqlite3.Cursor, shipment_id: int) -> list[Annotation]:
    """Return notes for a shipment in append order."""
    cursor.execute(
        """
        SELECT text, author, timestamp, transaction_hash
        FROM shipment_notes
        WHERE shipment_id = ?
        ORDER BY id ASC
        """,
        (shipment_id,),
    )
    return [
        Annotation(
            text=row["text"],
            author=row["author"],
            timestamp=row["timestamp"],
            transaction_hash=row["transaction_hash"] or "",
        )
        for row in cursor.fetchall()
    ]


def get_shipment(cursor: sqlite3.Cursor, tracking_id: str) -> MirrorRecord | None:
    """Return the full mirror record for ``tracking_id``, notes included."""
    cursor.execute(
        f"SELECT {_SHIPMENT_COLUMNS} FROM shipments WHERE tracking_id = ?",  # nosec B608
        (tracking_id,),
    )
    row = cursor.fetchone()
    if row is None:
        return None
    return _row_to_record(row, list_notes(cursor, int(row["id"])))


def list_shipments(cursor: sqlite3.Cursor) -> list[MirrorRecord]:
    """Return all mirror records, newest first."""
    cursor.execute(
        f"SELECT {_SHIPMENT_COLUMNS} FROM shipments ORDER BY created_at DESC, id DESC"  # nosec B608
    )
    rows = cursor.fetchall()
    return [_row_to_record(row, list_notes(cursor, int(row["id"]))) for row in rows]
