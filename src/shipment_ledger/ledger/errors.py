"""Typed exceptions raised by the ledger layer.

Hierarchy::

    LedgerError
    ├── LedgerUnavailableError      no binding, node unreachable
    │   └── LedgerTimeoutError      request or receipt wait expired
    └── LedgerCallError             node/contract rejected the call

    LedgerConfigurationError        binding cannot be constructed at startup

``LedgerCallError`` keeps the raw failure text because rejected transactions
only carry a human-readable revert string; the classifier works on that text.
"""

from __future__ import annotations


class LedgerError(RuntimeError):
    """Base exception for ledger call failures."""


class LedgerUnavailableError(LedgerError):
    """No usable ledger binding (misconfigured or unreachable)."""


class LedgerTimeoutError(LedgerUnavailableError):
    """The node did not answer or confirm within the configured timeout."""


class LedgerCallError(LedgerError):
    """A ledger call was rejected or failed with a textual error.

    Args:
        raw: Raw failure text reported by the node or client library.
        cause: Optional underlying exception.
    """

    def __init__(self, raw: str, *, cause: Exception | None = None) -> None:
        super().__init__(raw)
        self.raw = raw
        self.cause = cause


class LedgerConfigurationError(RuntimeError):
    """Raised at startup when the contract binding configuration is invalid."""
