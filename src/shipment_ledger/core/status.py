"""Ledger status codes and their names."""

from __future__ import annotations

from typing import Any

# Index = ledger status value.
STATUS_NAMES: tuple[str, ...] = ("Pending", "InTransit", "Delivered")
UNKNOWN_STATUS = "Unknown"


def status_name(code: Any) -> str:
    """Return the name for a ledger status code.

    Values outside the table (including negatives and non-integers) map to
    ``"Unknown"`` so a contract that grows new states cannot break reads.
    """
    if isinstance(code, bool):
        return UNKNOWN_STATUS
    try:
        index = int(code)
    except (TypeError, ValueError):
        return UNKNOWN_STATUS
    if isinstance(code, float) and code != index:
        return UNKNOWN_STATUS
    if 0 <= index < len(STATUS_NAMES):
        return STATUS_NAMES[index]
    return UNKNOWN_STATUS
