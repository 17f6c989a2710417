"""
Route registration entry point for the FastAPI application.

Keeps the public ``register_routes`` API in one place while splitting the
implementation into focused router modules.
"""

from fastapi import FastAPI

from shipment_ledger.api.routes import health, shipments
from shipment_ledger.db.mirror import MirrorStore
from shipment_ledger.ledger.client import LedgerClient
from shipment_ledger.services.read_merger import ReadMerger
from shipment_ledger.services.reconciliation import ReconciliationWriter


def register_routes(app: FastAPI, ledger: LedgerClient, mirror: MirrorStore) -> None:
    """Register all API routes with the FastAPI app."""
    writer = ReconciliationWriter(ledger, mirror)
    merger = ReadMerger(ledger, mirror)

    app.include_router(health.router(ledger, mirror))
    app.include_router(shipments.router(writer, merger, mirror))
