"""Ledger client: the only component that talks to the shipment contract.

``LedgerClient`` wraps an injected :class:`ContractBinding` (normally the
web3-backed binding from :mod:`shipment_ledger.ledger.binding`) and turns
its results into plain Python values:

- ``submit_status_note`` issues one state-changing
  ``updateShipmentStatusWithNote`` call and returns a :class:`TxReceipt`.
- ``fetch_details`` issues one read-only ``getShipmentDetails`` call and
  returns a :class:`LedgerRecord`.

Binding presence is checked on every call.  A client built without a binding
(no contract address configured) stays usable: each call raises
:exc:`LedgerUnavailableError`, which the API reports as 503.

Nothing here retries.  Retrying (for example after a nonce conflict) is a
caller policy.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from shipment_ledger.ledger.errors import LedgerCallError, LedgerError, LedgerUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_GAS_LIMIT = 500_000

# Positional order of getShipmentDetails outputs when the call result is a
# tuple instead of a name-keyed mapping.
RECORD_FIELDS = ("medicineId", "sender", "receiver", "trackingId", "status", "notes")


@dataclass(frozen=True)
class TxReceipt:
    """Proof of acceptance for one ledger transaction."""

    transaction_hash: str
    block_number: int
    gas_used: int


@dataclass(frozen=True)
class LedgerRecord:
    """Authoritative shipment state as returned by the contract."""

    medicine_id: int
    sender: str
    receiver: str
    tracking_id: str
    status: int | None
    notes: str


class ContractBinding(Protocol):
    """Transport-level binding to the deployed shipment contract."""

    def send_status_note(
        self, tracking_id: str, notes: str, *, from_address: str, gas: int
    ) -> Mapping[str, Any]:
        """Transact ``updateShipmentStatusWithNote`` and return the mined receipt."""
        ...

    def get_shipment_details(self, tracking_id: str) -> Any:
        """Call ``getShipmentDetails`` and return the raw call result."""
        ...


def _to_hex(value: Any) -> str:
    """Render a transaction hash as a 0x-prefixed lowercase hex string."""
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    text = str(value)
    return text if text.startswith("0x") else f"0x{text}"


def _failure_text(exc: Exception) -> str:
    """Human-readable failure text.

    web3 errors carry their message in ``.message``; their ``str()`` also
    includes the raw revert data.
    """
    message = getattr(exc, "message", None)
    return message if isinstance(message, str) and message else str(exc)


def receipt_from_mapping(receipt: Mapping[str, Any]) -> TxReceipt:
    """Build a :class:`TxReceipt` from a node receipt, normalising big numbers."""
    return TxReceipt(
        transaction_hash=_to_hex(receipt["transactionHash"]),
        block_number=int(receipt["blockNumber"]),
        gas_used=int(receipt["gasUsed"]),
    )


def record_from_result(result: Any) -> LedgerRecord:
    """Build a :class:`LedgerRecord` from a mapping or positional call result."""
    if isinstance(result, Mapping):
        values = {name: result.get(name) for name in RECORD_FIELDS}
    else:
        values = dict(zip(RECORD_FIELDS, result, strict=False))

    # A missing status stays None so it reads back as "Unknown", not "Pending".
    status = values.get("status")

    return LedgerRecord(
        medicine_id=int(values.get("medicineId") or 0),
        sender=str(values.get("sender") or ""),
        receiver=str(values.get("receiver") or ""),
        tracking_id=str(values.get("trackingId") or ""),
        status=None if status is None else int(status),
        notes=str(values.get("notes") or ""),
    )


class LedgerClient:
    """Structured access to the shipment contract.

    Attributes:
        binding: Contract binding, or ``None`` when the deployment is not
            configured.
        gas_limit: Gas ceiling bound to every state-changing call.
    """

    def __init__(self, binding: ContractBinding | None, *, gas_limit: int = DEFAULT_GAS_LIMIT):
        self.binding = binding
        self.gas_limit = gas_limit

    @property
    def is_available(self) -> bool:
        """True when a contract binding is present."""
        return self.binding is not None

    def _require_binding(self) -> ContractBinding:
        if self.binding is None:
            raise LedgerUnavailableError(
                "Ledger contract not initialized. Check the contract address configuration."
            )
        return self.binding

    def submit_status_note(self, tracking_id: str, notes: str, from_address: str) -> TxReceipt:
        """Submit one status note transaction and wait for it to be mined.

        Args:
            tracking_id: Shipment tracking id.
            notes: Already-trimmed note text.
            from_address: Submitting account (must be unlocked on the node).

        Returns:
            The transaction receipt.

        Raises:
            LedgerUnavailableError: No binding, or the node timed out.
            LedgerCallError: The node or contract rejected the call.
        """
        binding = self._require_binding()
        logger.info(
            "Submitting status note for %s from %s (gas=%d)",
            tracking_id,
            from_address,
            self.gas_limit,
        )
        try:
            raw_receipt = binding.send_status_note(
                tracking_id, notes, from_address=from_address, gas=self.gas_limit
            )
        except LedgerError:
            raise
        except Exception as exc:
            raise LedgerCallError(_failure_text(exc), cause=exc) from exc

        receipt = receipt_from_mapping(raw_receipt)
        logger.info(
            "Status note for %s mined: tx=%s block=%d gas_used=%d",
            tracking_id,
            receipt.transaction_hash,
            receipt.block_number,
            receipt.gas_used,
        )
        return receipt

    def fetch_details(self, tracking_id: str) -> LedgerRecord:
        """Read the current shipment record from the contract.

        Raises:
            LedgerUnavailableError: No binding, or the node timed out.
            LedgerCallError: The call reverted (e.g. unknown tracking id).
        """
        binding = self._require_binding()
        logger.debug("Fetching ledger details for %s", tracking_id)
        try:
            result = binding.get_shipment_details(tracking_id)
        except LedgerError:
            raise
        except Exception as exc:
            raise LedgerCallError(_failure_text(exc), cause=exc) from exc
        return record_from_result(result)
