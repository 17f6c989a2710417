"""Mirror store: best-effort SQLite copy of ledger shipments.

The mirror is a cache with history.  It is never consulted to decide whether
a ledger operation is valid, and its absence or failure never changes a
ledger result:

- :meth:`MirrorStore.append_annotation` and :meth:`MirrorStore.fetch` are the
  operations used by the reconciliation core.  Callers catch
  :exc:`~shipment_ledger.db.errors.MirrorError`, log it and carry on.
- :meth:`MirrorStore.create_shipment`, :meth:`MirrorStore.update_status` and
  :meth:`MirrorStore.list_shipments` back the mirror-only endpoints, where a
  failure is reported to the client.

Writes are last-write-wins.  Concurrent appends for one tracking id land in
commit order and are not deduplicated against transaction hashes.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import NoReturn

from shipment_ledger.config import MirrorSettings
from shipment_ledger.db import shipments_repo
from shipment_ledger.db.connection import connection_scope
from shipment_ledger.db.errors import (
    MirrorError,
    MirrorOperationContext,
    MirrorReadError,
    MirrorWriteError,
    ShipmentAlreadyExistsError,
)
from shipment_ledger.db.schema import create_schema
from shipment_ledger.db.types import Annotation, MirrorRecord

logger = logging.getLogger(__name__)


def _raise_read_error(operation: str, exc: Exception, *, details: str | None = None) -> NoReturn:
    """Raise a typed mirror read error while preserving chained cause."""
    if isinstance(exc, MirrorError):
        raise exc
    raise MirrorReadError(
        context=MirrorOperationContext(operation=operation, details=details),
        cause=exc,
    ) from exc


def _raise_write_error(operation: str, exc: Exception, *, details: str | None = None) -> NoReturn:
    """Raise a typed mirror write error while preserving chained cause."""
    if isinstance(exc, MirrorError):
        raise exc
    raise MirrorWriteError(
        context=MirrorOperationContext(operation=operation, details=details),
        cause=exc,
    ) from exc


def utc_now() -> str:
    """Current UTC instant as an ISO-8601 string."""
    return datetime.now(UTC).isoformat()


class MirrorStore:
    """SQLite-backed mirror keyed by tracking id.

    Args:
        db_path: Database file; created on first use.
        timeout: Lock wait bound in seconds for every statement.
    """

    def __init__(self, db_path: Path | str, *, timeout: float = 2.0) -> None:
        self.db_path = Path(db_path)
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: MirrorSettings) -> MirrorStore:
        return cls(settings.absolute_path, timeout=settings.timeout_seconds)

    def _scope(self, *, write: bool = False):
        return connection_scope(self.db_path, timeout=self.timeout, write=write)

    def init_schema(self) -> None:
        """Create the mirror schema if it does not exist."""
        try:
            with self._scope(write=True) as conn:
                create_schema(conn)
        except Exception as exc:
            _raise_write_error("mirror.init_schema", exc, details=str(self.db_path))
        logger.info("Mirror schema ready at %s", self.db_path)

    def ping(self) -> bool:
        """Return True when the mirror database answers a trivial query."""
        try:
            with self._scope() as conn:
                conn.execute("SELECT 1").fetchone()
        except (sqlite3.Error, OSError):
            return False
        return True

    # ── Reconciliation operations ──────────────────────────────────────────

    def append_annotation(self, tracking_id: str, annotation: Annotation) -> bool:
        """Append a note to the mirrored shipment.

        Returns:
            ``True`` when the note was written, ``False`` when no mirror
            record exists for ``tracking_id``.

        Raises:
            MirrorWriteError: On any storage failure.
        """
        try:
            with self._scope(write=True) as conn:
                cursor = conn.cursor()
                shipment_id = shipments_repo.get_shipment_id(cursor, tracking_id)
                if shipment_id is None:
                    return False
                shipments_repo.insert_note(cursor, shipment_id, annotation)
                shipments_repo.touch_shipment(cursor, shipment_id, utc_now())
                return True
        except Exception as exc:
            _raise_write_error("shipments.append_annotation", exc, details=tracking_id)

    def fetch(self, tracking_id: str) -> MirrorRecord | None:
        """Return the mirror record for ``tracking_id``, or ``None`` if absent.

        Raises:
            MirrorReadError: On any storage failure.
        """
        try:
            with self._scope() as conn:
                return shipments_repo.get_shipment(conn.cursor(), tracking_id)
        except Exception as exc:
            _raise_read_error("shipments.fetch", exc, details=tracking_id)

    # ── Mirror-only operations ─────────────────────────────────────────────

    def create_shipment(
        self,
        *,
        tracking_id: str,
        medicine_id: str,
        sender: str,
        receiver: str,
        status: str = "Pending",
    ) -> MirrorRecord:
        """Insert a new mirror record.

        Raises:
            ShipmentAlreadyExistsError: ``tracking_id`` is already mirrored.
            MirrorWriteError: On any other storage failure.
        """
        now = utc_now()
        try:
            with self._scope(write=True) as conn:
                cursor = conn.cursor()
                if shipments_repo.get_shipment_id(cursor, tracking_id) is not None:
                    raise ShipmentAlreadyExistsError(tracking_id)
                shipments_repo.insert_shipment(
                    cursor,
                    tracking_id=tracking_id,
                    medicine_id=medicine_id,
                    sender=sender,
                    receiver=receiver,
                    status=status,
                    now=now,
                )
                record = shipments_repo.get_shipment(cursor, tracking_id)
        except sqlite3.IntegrityError as exc:
            raise ShipmentAlreadyExistsError(tracking_id) from exc
        except Exception as exc:
            _raise_write_error("shipments.create_shipment", exc, details=tracking_id)
        if record is None:
            raise MirrorWriteError(
                context=MirrorOperationContext(
                    operation="shipments.create_shipment",
                    details="row missing after insert",
                )
            )
        return record

    def update_status(self, tracking_id: str, status: str) -> MirrorRecord | None:
        """Overwrite the mirrored status label.

        Returns:
            The updated record, or ``None`` when ``tracking_id`` is not mirrored.
        """
        try:
            with self._scope(write=True) as conn:
                cursor = conn.cursor()
                shipment_id = shipments_repo.get_shipment_id(cursor, tracking_id)
                if shipment_id is None:
                    return None
                shipments_repo.set_status(cursor, shipment_id, status, utc_now())
                return shipments_repo.get_shipment(cursor, tracking_id)
        except Exception as exc:
            _raise_write_error("shipments.update_status", exc, details=tracking_id)

    def list_shipments(self) -> list[MirrorRecord]:
        """Return every mirror record, newest first."""
        try:
            with self._scope() as conn:
                return shipments_repo.list_shipments(conn.cursor())
        except Exception as exc:
            _raise_read_error("shipments.list_shipments", exc)
