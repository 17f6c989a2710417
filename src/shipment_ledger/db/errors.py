"""Typed exceptions for the mirror store.

Repository code signals infrastructure failures (SQLite connection or query
errors) with these types instead of boolean return values.

Design intent:
    - Domain outcomes like "shipment not mirrored" stay ``None``/``False``.
    - Infrastructure failures raise typed exceptions.  On the reconciliation
      paths the caller logs and discards them; on the mirror-only API paths
      they become HTTP 500 responses.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class MirrorOperationContext:
    """Structured operation metadata carried by mirror exceptions.

    Attributes:
        operation: Stable operation identifier (for example
            ``"shipments.append_annotation"``).
        details: Optional human-readable context for logs and debugging.
    """

    operation: str
    details: str | None = None


class MirrorError(RuntimeError):
    """Base exception for mirror-store failures."""


class MirrorOperationError(MirrorError):
    """Base exception for mirror operation failures.

    Args:
        context: Structured operation metadata.
        cause: Optional underlying exception.
    """

    def __init__(
        self,
        *,
        context: MirrorOperationContext,
        cause: Exception | None = None,
    ) -> None:
        message = context.operation
        if context.details:
            message = f"{message}: {context.details}"
        super().__init__(message)
        self.context = context
        self.cause = cause


class MirrorReadError(MirrorOperationError):
    """Mirror read/query failure."""


class MirrorWriteError(MirrorOperationError):
    """Mirror mutation/transaction failure."""


class ShipmentAlreadyExistsError(MirrorError):
    """A mirror record with the same tracking id already exists."""
