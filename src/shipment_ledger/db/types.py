"""Mirror-store dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Annotation:
    """One append-only status note attached to a mirrored shipment.

    ``transaction_hash`` is non-empty only for notes written after an
    accepted ledger transaction.
    """

    text: str
    author: str
    timestamp: str
    transaction_hash: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "author": self.author,
            "timestamp": self.timestamp,
            "transactionHash": self.transaction_hash,
        }


@dataclass(slots=True)
class MirrorRecord:
    """Denormalized, possibly stale copy of a shipment.

    Never authoritative for status; ``status`` is whatever the mirror last
    recorded.
    """

    id: int
    tracking_id: str
    medicine_id: str | None
    sender: str | None
    receiver: str | None
    status: str
    created_at: str
    updated_at: str
    notes: list[Annotation] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "trackingId": self.tracking_id,
            "medicineId": self.medicine_id,
            "sender": self.sender,
            "receiver": self.receiver,
            "status": self.status,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "notes": [note.to_dict() for note in self.notes],
        }
