"""Write path: submit a status note to the ledger, then mirror it.

``ReconciliationWriter.update_status`` is the single entry point.  The steps
are fixed:

1. Validate the request.  A failure raises
   :exc:`~shipment_ledger.core.errors.ValidationError` before any I/O.
2. Submit the note to the ledger.  A failure is classified and raised as a
   :exc:`~shipment_ledger.core.errors.ShipmentOperationError`; nothing else
   is attempted.
3. Append an annotation to the mirror.  Any failure here (store unreachable,
   shipment not mirrored) is logged and discarded.
4. Return an :class:`UpdateResult` built from the receipt and the input.

Once the ledger has accepted the transaction there is no rollback: the
mirror step is always attempted and the result is always a success.

Writes are not idempotent.  Two identical calls submit two transactions and
append two annotations.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from shipment_ledger.core.classifier import classify_exception
from shipment_ledger.core.validation import validate_update_request
from shipment_ledger.db.mirror import MirrorStore
from shipment_ledger.db.types import Annotation
from shipment_ledger.ledger.client import LedgerClient, TxReceipt
from shipment_ledger.ledger.errors import LedgerError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpdateResult:
    """Outward result of a successful status update."""

    tracking_id: str
    transaction_hash: str
    block_number: int
    gas_used: int
    notes: str
    timestamp: str

    @classmethod
    def from_receipt(
        cls, tracking_id: str, notes: str, receipt: TxReceipt, timestamp: str
    ) -> UpdateResult:
        return cls(
            tracking_id=tracking_id,
            transaction_hash=receipt.transaction_hash,
            block_number=receipt.block_number,
            gas_used=receipt.gas_used,
            notes=notes,
            timestamp=timestamp,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "trackingId": self.tracking_id,
            "transactionHash": self.transaction_hash,
            "blockNumber": self.block_number,
            "gasUsed": self.gas_used,
            "notes": self.notes,
            "timestamp": self.timestamp,
        }


def _utc_now() -> datetime:
    return datetime.now(UTC)


class ReconciliationWriter:
    """Orchestrates ledger submission and best-effort mirroring.

    Args:
        ledger: Process-wide ledger client.
        mirror: Process-wide mirror store, or ``None`` to skip mirroring.
        clock: Source of the annotation/result timestamp.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        mirror: MirrorStore | None,
        *,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._ledger = ledger
        self._mirror = mirror
        self._clock = clock

    def update_status(self, tracking_id: str, notes: str, from_address: str) -> UpdateResult:
        """Submit a status note and mirror it.

        Raises:
            ValidationError: Request failed syntactic checks (no I/O done).
            ShipmentOperationError: Ledger call failed; kind and severity come
                from the classifier.
        """
        validate_update_request(tracking_id, notes, from_address)
        # Tracking ids are opaque and forwarded exactly as given.
        from_address = from_address.strip()
        trimmed_notes = notes.strip()

        try:
            receipt = self._ledger.submit_status_note(tracking_id, trimmed_notes, from_address)
        except LedgerError as exc:
            classified = classify_exception(exc)
            logger.warning(
                "Status update for %s failed: %s (%s)",
                tracking_id,
                classified.kind.value,
                classified.message,
            )
            raise classified.to_exception() from exc

        timestamp = self._clock().isoformat()
        self._mirror_annotation(
            tracking_id,
            Annotation(
                text=trimmed_notes,
                author=from_address,
                timestamp=timestamp,
                transaction_hash=receipt.transaction_hash,
            ),
        )
        return UpdateResult.from_receipt(tracking_id, trimmed_notes, receipt, timestamp)

    def _mirror_annotation(self, tracking_id: str, annotation: Annotation) -> None:
        """Append the annotation to the mirror; never raises."""
        if self._mirror is None:
            return
        try:
            written = self._mirror.append_annotation(tracking_id, annotation)
        except Exception:
            logger.warning(
                "Mirror update failed for %s (ledger update succeeded, tx=%s)",
                tracking_id,
                annotation.transaction_hash,
                exc_info=True,
            )
            return
        if written:
            logger.info("Mirror updated with note for %s", tracking_id)
        else:
            logger.warning("Shipment %s has no mirror record; note not mirrored", tracking_id)
