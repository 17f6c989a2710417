"""Syntactic preconditions for status-note updates.

Runs before any ledger or mirror call.  Checks are applied in a fixed order
(required fields, address format, notes length) so the first failing field
is always the one reported.
"""

from __future__ import annotations

import re

from shipment_ledger.core.errors import ValidationError

MIN_NOTES_LENGTH = 5

# 20-byte account address, hex encoded.  Case-insensitive: mixed-case
# checksums are accepted without being verified.
_ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_address(value: str) -> bool:
    """Return True when ``value`` looks like a ledger account address."""
    return bool(_ADDRESS_PATTERN.match(value))


def validate_update_request(
    tracking_id: str | None,
    notes: str | None,
    from_address: str | None,
) -> None:
    """Validate a status-note update request.

    Args:
        tracking_id: Shipment tracking id (presence only).
        notes: Free-text note; trimmed length must be at least
            ``MIN_NOTES_LENGTH``.
        from_address: Submitting account address.

    Raises:
        ValidationError: On the first failing field.
    """
    if not tracking_id or not tracking_id.strip():
        raise ValidationError("trackingId", "missing", "trackingId is required")
    if not notes:
        raise ValidationError("notes", "missing", "notes is required")
    if not from_address:
        raise ValidationError("fromAddress", "missing", "fromAddress is required")

    if not is_address(from_address.strip()):
        raise ValidationError("fromAddress", "malformed", "Invalid address format")

    if len(notes.strip()) < MIN_NOTES_LENGTH:
        raise ValidationError(
            "notes",
            "too_short",
            f"Notes must be at least {MIN_NOTES_LENGTH} characters long",
        )
