"""Ledger package: access to the authoritative shipment contract.

Public surface
--------------
- :class:`LedgerClient`           submit status notes, fetch shipment details.
- :class:`TxReceipt`              receipt of an accepted transaction.
- :class:`LedgerRecord`           shipment state as stored on the ledger.
- :func:`build_contract_binding`  construct the web3 binding at startup
  (import from :mod:`shipment_ledger.ledger.binding`).

Errors live in :mod:`shipment_ledger.ledger.errors`.
"""

from shipment_ledger.ledger.client import ContractBinding, LedgerClient, LedgerRecord, TxReceipt
from shipment_ledger.ledger.errors import (
    LedgerCallError,
    LedgerConfigurationError,
    LedgerError,
    LedgerTimeoutError,
    LedgerUnavailableError,
)

__all__ = [
    "ContractBinding",
    "LedgerCallError",
    "LedgerClient",
    "LedgerConfigurationError",
    "LedgerError",
    "LedgerRecord",
    "LedgerTimeoutError",
    "LedgerUnavailableError",
    "TxReceipt",
]
