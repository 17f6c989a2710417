"""Shipment ledger sync service.

Tracks medicine shipments whose authoritative status lives in a ledger smart
contract, while a local SQLite mirror keeps a denormalized copy and the
append-only history of status notes.

Version Management
------------------
``__version__`` is read from the installed package metadata at import time.
The single source of truth is the ``version`` field in ``pyproject.toml``.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__: str = version("shipment-ledger")
except PackageNotFoundError:
    __version__ = "0.1.0"
