"""Classification of raw ledger failures into domain error kinds.

The ledger does not return structured error codes for rejected
transactions, only revert strings such as::

    VM Exception while processing transaction: revert Shipment not found
    execution reverted: Only shipment participants can update

All pattern matching lives here.  Callers only ever see a
:class:`ClassifiedError`, so swapping this matcher for a structured mapping
leaves the rest of the service untouched.

Rules (first match wins)
------------------------
1. Revert marker present: extract the revert reason, then map known reasons
   to ``NOT_FOUND`` / ``FORBIDDEN`` / ``INVALID_ARGUMENT``; anything else is
   ``CONTRACT_REJECTED`` carrying the extracted reason.
2. ``insufficient funds``  → ``INSUFFICIENT_FUNDS``
3. ``nonce``               → ``SEQUENCE_CONFLICT``
4. ``gas``                 → ``GAS_ESTIMATION_FAILED``
5. Otherwise               → ``UNKNOWN`` with the raw text as message.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from shipment_ledger.core.errors import ErrorKind, Severity, ShipmentOperationError
from shipment_ledger.ledger.errors import LedgerCallError, LedgerUnavailableError

DEFAULT_REVERT_REASON = "Transaction reverted by smart contract"
GENERIC_FAILURE_MESSAGE = "Failed to complete ledger operation"
UNAVAILABLE_MESSAGE = (
    "Ledger contract not initialized. Check the contract address configuration."
)

# "revert Foo", "reverted: Foo", "execution reverted: Foo" -> "Foo".
# The reason stops at the next double quote or end of string.
_REVERT_REASON_PATTERN = re.compile(r"revert(?:ed)?:?\s+(.+?)(?:\"|$)", re.IGNORECASE)

# Known revert reasons, checked against the full failure text.
_REVERT_RULES: tuple[tuple[str, ErrorKind, Severity, str], ...] = (
    (
        "shipment not found",
        ErrorKind.NOT_FOUND,
        Severity.NOT_FOUND,
        "Shipment not found on ledger. Please check the tracking ID.",
    ),
    (
        "only shipment participants",
        ErrorKind.FORBIDDEN,
        Severity.FORBIDDEN,
        "Only the sender or receiver can update this shipment.",
    ),
    (
        "notes cannot be empty",
        ErrorKind.INVALID_ARGUMENT,
        Severity.BAD_REQUEST,
        "Notes cannot be empty.",
    ),
)

# Non-revert failures, in priority order.
_TEXT_RULES: tuple[tuple[str, ErrorKind, str], ...] = (
    (
        "insufficient funds",
        ErrorKind.INSUFFICIENT_FUNDS,
        "Insufficient funds to complete the transaction.",
    ),
    ("nonce", ErrorKind.SEQUENCE_CONFLICT, "Transaction nonce error. Please try again."),
    ("gas", ErrorKind.GAS_ESTIMATION_FAILED, "Gas estimation failed. The transaction may fail."),
)


@dataclass(frozen=True)
class ClassifiedError:
    """Result of classifying one raw ledger failure."""

    kind: ErrorKind
    severity: Severity
    message: str

    def to_exception(self) -> ShipmentOperationError:
        """Build the operation error carried back to the caller."""
        return ShipmentOperationError(self.kind, self.severity, self.message)


def extract_revert_reason(raw: str) -> str | None:
    """Return the revert reason embedded in ``raw``.

    Returns ``None`` when ``raw`` carries no revert marker and
    ``DEFAULT_REVERT_REASON`` when the marker is present but nothing usable
    follows it.
    """
    if "revert" not in raw.lower():
        return None
    match = _REVERT_REASON_PATTERN.search(raw)
    if match:
        reason = match.group(1).strip()
        if reason:
            return reason
    return DEFAULT_REVERT_REASON


def classify(raw_error: str | None) -> ClassifiedError:
    """Map raw ledger failure text onto the closed error taxonomy."""
    raw = (raw_error or "").strip()
    lowered = raw.lower()

    reason = extract_revert_reason(raw)
    if reason is not None:
        for needle, kind, severity, message in _REVERT_RULES:
            if needle in lowered:
                return ClassifiedError(kind, severity, message)
        return ClassifiedError(ErrorKind.CONTRACT_REJECTED, Severity.BAD_REQUEST, reason)

    for needle, kind, message in _TEXT_RULES:
        if needle in lowered:
            return ClassifiedError(kind, Severity.BAD_REQUEST, message)

    return ClassifiedError(ErrorKind.UNKNOWN, Severity.BAD_REQUEST, raw or GENERIC_FAILURE_MESSAGE)


def classify_exception(exc: Exception) -> ClassifiedError:
    """Classify an exception raised by :class:`~shipment_ledger.ledger.client.LedgerClient`."""
    if isinstance(exc, LedgerUnavailableError):
        message = str(exc) or UNAVAILABLE_MESSAGE
        return ClassifiedError(ErrorKind.LEDGER_UNAVAILABLE, Severity.UNAVAILABLE, message)
    if isinstance(exc, LedgerCallError):
        return classify(exc.raw)
    return classify(str(exc))
