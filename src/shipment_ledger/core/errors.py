"""Closed error taxonomy for shipment status operations.

Every failure that leaves the reconciliation core is a
:class:`ShipmentOperationError` carrying an :class:`ErrorKind`, a
:class:`Severity` and one human-readable message.  The HTTP layer renders it
into the ``{"success": false, "error": ...}`` envelope using ``severity`` as
the status code.

Mirror-store failures are deliberately absent from this taxonomy: they are
logged and swallowed at the point of use and never reach a caller of the
reconciliation paths.
"""

from __future__ import annotations

from enum import Enum, IntEnum


class ErrorKind(str, Enum):
    """Domain error kinds a status operation can fail with."""

    VALIDATION_ERROR = "validation_error"
    LEDGER_UNAVAILABLE = "ledger_unavailable"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    INVALID_ARGUMENT = "invalid_argument"
    CONTRACT_REJECTED = "contract_rejected"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    SEQUENCE_CONFLICT = "sequence_conflict"
    GAS_ESTIMATION_FAILED = "gas_estimation_failed"
    UNKNOWN = "unknown"


class Severity(IntEnum):
    """Externally visible severity; values double as HTTP status codes."""

    BAD_REQUEST = 400
    FORBIDDEN = 403
    NOT_FOUND = 404
    UNAVAILABLE = 503


class ShipmentOperationError(Exception):
    """Classified failure of a write or read operation.

    Attributes:
        kind: Closed-set error kind.
        severity: Externally visible severity.
        message: Single human-readable message for the caller.
    """

    def __init__(self, kind: ErrorKind, severity: Severity, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.severity = severity
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, severity={int(self.severity)})"


class ValidationError(ShipmentOperationError):
    """Syntactic precondition failure detected before any network call.

    Attributes:
        field: Request field that failed (``trackingId``, ``notes`` or
            ``fromAddress``).
        reason: Machine-readable reason (``missing``, ``malformed`` or
            ``too_short``).
    """

    def __init__(self, field: str, reason: str, message: str) -> None:
        super().__init__(ErrorKind.VALIDATION_ERROR, Severity.BAD_REQUEST, message)
        self.field = field
        self.reason = reason
