"""SQLite connection primitives for the mirror store.

Connections are opened per operation, so one :class:`MirrorStore` can be
shared by every request thread without locking.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path


def configure_connection(connection: sqlite3.Connection) -> sqlite3.Connection:
    """Apply connection-level SQLite pragmas required by the mirror.

    Notes:
        - ``foreign_keys=ON`` is required because SQLite does not enforce
          foreign-key constraints by default.
        - Rows are returned as ``sqlite3.Row`` so repository code can read
          columns by name.
    """
    connection.execute("PRAGMA foreign_keys = ON")
    connection.row_factory = sqlite3.Row
    return connection


def get_connection(db_path: Path, *, timeout: float) -> sqlite3.Connection:
    """Create and configure a new SQLite connection.

    ``timeout`` bounds how long a statement waits on a locked database, which
    caps how long a slow mirror can hold up a request.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    connection = sqlite3.connect(str(db_path), timeout=timeout)
    return configure_connection(connection)


@contextmanager
def connection_scope(
    db_path: Path, *, timeout: float, write: bool = False
) -> Iterator[sqlite3.Connection]:
    """Yield a configured connection with guaranteed cleanup semantics.

    Args:
        db_path: Mirror database file.
        timeout: Lock wait bound in seconds.
        write: When True, commit on success and rollback on exceptions.

    Behavior:
        - Always closes the connection in ``finally``.
        - For write scopes, commits at the end of a successful block.
        - For write scopes, attempts rollback before re-raising failures.
    """
    connection = get_connection(db_path, timeout=timeout)
    try:
        yield connection
        if write:
            connection.commit()
    except Exception:
        if write:
            try:
                connection.rollback()
            except sqlite3.Error:
                # Preserve the original exception while best-effort rolling back.
                pass
        raise
    finally:
        connection.close()
