"""Read path: ledger record merged with the optional mirror record."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from shipment_ledger.core.classifier import ClassifiedError, classify_exception
from shipment_ledger.core.errors import ErrorKind, Severity, ValidationError
from shipment_ledger.core.status import status_name
from shipment_ledger.db.mirror import MirrorStore
from shipment_ledger.db.types import MirrorRecord
from shipment_ledger.ledger.client import LedgerClient, LedgerRecord
from shipment_ledger.ledger.errors import LedgerError

logger = logging.getLogger(__name__)

EMPTY_NOTES_PLACEHOLDER = "No updates yet"

# Kinds that keep their own severity on the read path; every other ledger
# failure is reported as a bad request.
_READ_PASSTHROUGH_KINDS = frozenset({ErrorKind.NOT_FOUND, ErrorKind.LEDGER_UNAVAILABLE})


@dataclass(frozen=True)
class CombinedView:
    """Ledger data (authoritative) plus the mirror record, if any."""

    ledger: LedgerRecord
    mirror: MirrorRecord | None

    @property
    def status(self) -> str:
        return status_name(self.ledger.status)

    def to_dict(self) -> dict[str, Any]:
        return {
            "blockchain": {
                "medicineId": str(self.ledger.medicine_id),
                "sender": self.ledger.sender,
                "receiver": self.ledger.receiver,
                "trackingId": self.ledger.tracking_id,
                "status": self.status,
                "statusCode": self.ledger.status,
                "notes": self.ledger.notes or EMPTY_NOTES_PLACEHOLDER,
            },
            "database": self.mirror.to_dict() if self.mirror is not None else None,
        }


class ReadMerger:
    """Builds the combined shipment view.

    The ledger read is required; the mirror read is optional and its failure
    only yields ``database: null``.
    """

    def __init__(self, ledger: LedgerClient, mirror: MirrorStore | None) -> None:
        self._ledger = ledger
        self._mirror = mirror

    def get_details(self, tracking_id: str) -> CombinedView:
        """Return the combined view for ``tracking_id``.

        Raises:
            ValidationError: Empty tracking id.
            ShipmentOperationError: Ledger read failed.
        """
        if not tracking_id or not tracking_id.strip():
            raise ValidationError("trackingId", "missing", "Tracking ID is required")

        try:
            record = self._ledger.fetch_details(tracking_id)
        except LedgerError as exc:
            classified = classify_exception(exc)
            if classified.kind not in _READ_PASSTHROUGH_KINDS:
                classified = ClassifiedError(
                    classified.kind, Severity.BAD_REQUEST, classified.message
                )
            logger.warning(
                "Ledger read for %s failed: %s (%s)",
                tracking_id,
                classified.kind.value,
                classified.message,
            )
            raise classified.to_exception() from exc

        return CombinedView(ledger=record, mirror=self._fetch_mirror(tracking_id))

    def _fetch_mirror(self, tracking_id: str) -> MirrorRecord | None:
        if self._mirror is None:
            return None
        try:
            mirror_record = self._mirror.fetch(tracking_id)
        except Exception:
            logger.warning("Mirror read failed for %s", tracking_id, exc_info=True)
            return None
        if mirror_record is not None:
            logger.debug("Found matching mirror record for %s", tracking_id)
        return mirror_record
