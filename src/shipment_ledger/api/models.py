"""
Pydantic models for API requests.

Request fields are optional at the schema level so that missing values reach
the service validators and come back as the usual 400 envelope, rather than
FastAPI's default 422 response.

Responses use the envelope format shared by every endpoint::

    {"success": true,  "data": {...}}
    {"success": false, "error": "human-readable message"}
"""

from typing import Any

from pydantic import BaseModel, ConfigDict

# ============================================================================
# REQUEST MODELS (Client → Server)
# ============================================================================


class UpdateStatusRequest(BaseModel):
    """
    Status-note update submitted to the ledger.

    Attributes:
        trackingId: Shipment tracking id (ledger key)
        notes: Free-text note, at least 5 characters after trimming
        fromAddress: Submitting account address (0x + 40 hex characters)
    """

    model_config = ConfigDict(extra="ignore")

    trackingId: str | None = None
    notes: str | None = None
    fromAddress: str | None = None


class CreateShipmentRequest(BaseModel):
    """
    Mirror-only shipment creation.

    Attributes:
        medicineId: Ledger medicine id the shipment carries
        sender: Sender account address
        receiver: Receiver account address
        trackingId: Unique tracking id
    """

    model_config = ConfigDict(extra="ignore")

    medicineId: str | int | None = None
    sender: str | None = None
    receiver: str | None = None
    trackingId: str | None = None


class MirrorStatusRequest(BaseModel):
    """
    Mirror-only status label update.

    Attributes:
        trackingId: Shipment tracking id
        status: One of "Pending", "InTransit", "Delivered"
    """

    model_config = ConfigDict(extra="ignore")

    trackingId: str | None = None
    status: str | None = None


# ============================================================================
# RESPONSE HELPERS (Server → Client)
# ============================================================================


def success_envelope(data: Any, message: str | None = None) -> dict[str, Any]:
    """Wrap ``data`` in the success envelope."""
    envelope: dict[str, Any] = {"success": True}
    if message:
        envelope["message"] = message
    envelope["data"] = data
    return envelope


def error_envelope(message: str) -> dict[str, Any]:
    """Build the failure envelope."""
    return {"success": False, "error": message}
