"""Shipment endpoints.

Ledger-backed:
    POST /shipments/update-status      submit a status note (ledger + mirror)
    GET  /shipments/{trackingId}/details  ledger record merged with mirror

Mirror-only (never touch the ledger):
    POST /shipments/add                create a mirror record
    POST /shipments/update             overwrite the mirrored status label
    GET  /shipments                    list mirror records
    GET  /shipments/{trackingId}       one mirror record

Handlers are plain ``def`` functions: ledger calls block until the node
answers, and FastAPI runs sync handlers in its thread pool.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from shipment_ledger.api.models import (
    CreateShipmentRequest,
    MirrorStatusRequest,
    UpdateStatusRequest,
    error_envelope,
    success_envelope,
)
from shipment_ledger.core.status import STATUS_NAMES
from shipment_ledger.db.errors import MirrorError, ShipmentAlreadyExistsError
from shipment_ledger.db.mirror import MirrorStore
from shipment_ledger.services.read_merger import ReadMerger
from shipment_ledger.services.reconciliation import ReconciliationWriter

logger = logging.getLogger(__name__)


def router(
    writer: ReconciliationWriter,
    merger: ReadMerger,
    mirror: MirrorStore,
) -> APIRouter:
    """Build the shipment router around the process-wide services."""
    api = APIRouter(prefix="/shipments", tags=["shipments"])

    # ── Ledger-backed ──────────────────────────────────────────────────────

    @api.post("/update-status")
    def update_status_with_note(request: UpdateStatusRequest):
        """
        Record a status note on the ledger and mirror it.

        Errors are raised as ``ShipmentOperationError`` and rendered by the
        app-level exception handler (400/403/404/503).
        """
        result = writer.update_status(request.trackingId, request.notes, request.fromAddress)
        return success_envelope(
            result.to_dict(),
            message="Shipment status updated successfully on ledger",
        )

    @api.get("/{tracking_id}/details")
    def get_shipment_details(tracking_id: str):
        """Ledger record (source of truth) plus the mirror record, if any."""
        view = merger.get_details(tracking_id)
        return success_envelope(view.to_dict())

    # ── Mirror-only ────────────────────────────────────────────────────────

    @api.post("/add", status_code=201)
    def create_shipment(request: CreateShipmentRequest):
        """Create a mirror record with status Pending."""
        medicine_id = "" if request.medicineId is None else str(request.medicineId).strip()
        sender = (request.sender or "").strip()
        receiver = (request.receiver or "").strip()
        tracking_id = (request.trackingId or "").strip()
        if not (medicine_id and sender and receiver and tracking_id):
            return JSONResponse(status_code=400, content=error_envelope("All fields are required"))

        try:
            record = mirror.create_shipment(
                tracking_id=tracking_id,
                medicine_id=medicine_id,
                sender=sender,
                receiver=receiver,
            )
        except ShipmentAlreadyExistsError:
            return JSONResponse(
                status_code=409, content=error_envelope("Shipment already exists")
            )
        except MirrorError:
            logger.exception("Error creating shipment %s", tracking_id)
            return JSONResponse(status_code=500, content=error_envelope("Error creating shipment"))

        return {"success": True, "message": "Shipment created", "shipment": record.to_dict()}

    @api.post("/update")
    def update_mirror_status(request: MirrorStatusRequest):
        """Overwrite the mirrored status label (does not touch the ledger)."""
        tracking_id = (request.trackingId or "").strip()
        status = (request.status or "").strip()
        if not tracking_id or not status:
            return JSONResponse(
                status_code=400, content=error_envelope("trackingId and status are required")
            )
        if status not in STATUS_NAMES:
            allowed = ", ".join(STATUS_NAMES)
            return JSONResponse(
                status_code=400, content=error_envelope(f"status must be one of: {allowed}")
            )

        try:
            record = mirror.update_status(tracking_id, status)
        except MirrorError:
            logger.exception("Error updating mirrored status for %s", tracking_id)
            return JSONResponse(
                status_code=500, content=error_envelope("Error updating shipment status")
            )
        if record is None:
            return JSONResponse(status_code=404, content=error_envelope("Shipment not found"))

        return success_envelope(
            record.to_dict(), message="Shipment status updated successfully"
        )

    @api.get("")
    def list_shipments():
        """All mirror records, newest first."""
        try:
            records = mirror.list_shipments()
        except MirrorError:
            logger.exception("Error listing shipments")
            return JSONResponse(status_code=500, content=error_envelope("Error fetching shipments"))
        return success_envelope([record.to_dict() for record in records])

    @api.get("/{tracking_id}")
    def get_shipment(tracking_id: str):
        """One mirror record by tracking id."""
        try:
            record = mirror.fetch(tracking_id)
        except MirrorError:
            logger.exception("Error fetching shipment %s", tracking_id)
            return JSONResponse(status_code=500, content=error_envelope("Error fetching shipment"))
        if record is None:
            return JSONResponse(
                status_code=404, content=error_envelope("Shipment not found in database")
            )
        return success_envelope(record.to_dict())

    return api
