"""
Shared pytest fixtures for the shipment ledger test suite.

This module provides fixtures that are automatically available to all test files:
- Temporary mirror databases (schema only, or with a seeded shipment)
- A scripted in-memory contract binding standing in for the web3 binding
- Ledger clients wired to that binding (or to no binding at all)
- FastAPI TestClient instances built around the fakes
"""

from __future__ import annotations

import shutil
import tempfile
from collections.abc import Generator, Mapping
from itertools import count
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from shipment_ledger.api.server import create_app
from shipment_ledger.config import ServiceConfig, use_test_database
from shipment_ledger.db.mirror import MirrorStore
from shipment_ledger.ledger.client import LedgerClient
from tests.constants import RECEIVER, SENDER, TRACKING_ID


# ============================================================================
# FAKE CONTRACT BINDING
# ============================================================================


class FakeBinding:
    """
    In-memory stand-in for the shipment contract.

    Holds shipments keyed by tracking id and reproduces the contract's revert
    strings for unknown shipments, non-participants and empty notes.  Tests
    can force a failure for the next calls by setting ``send_error`` or
    ``read_error`` to an exception instance.

    Attributes:
        shipments: Tracking id -> ledger fields.
        sent: Every accepted ``(tracking_id, notes, from_address, gas)`` call.
        reads: Number of ``get_shipment_details`` calls.
    """

    def __init__(self) -> None:
        self.shipments: dict[str, dict[str, Any]] = {}
        self.sent: list[tuple[str, str, str, int]] = []
        self.reads = 0
        self.send_error: Exception | None = None
        self.read_error: Exception | None = None
        self._blocks = count(100)

    def add_shipment(
        self,
        tracking_id: str,
        *,
        medicine_id: int = 7,
        sender: str = SENDER,
        receiver: str = RECEIVER,
        status: int = 0,
        notes: str = "",
    ) -> None:
        self.shipments[tracking_id] = {
            "medicineId": medicine_id,
            "sender": sender,
            "receiver": receiver,
            "trackingId": tracking_id,
            "status": status,
            "notes": notes,
        }

    def send_status_note(
        self, tracking_id: str, notes: str, *, from_address: str, gas: int
    ) -> Mapping[str, Any]:
        if self.send_error is not None:
            raise self.send_error
        shipment = self.shipments.get(tracking_id)
        if shipment is None:
            raise ValueError(
                "VM Exception while processing transaction: revert Shipment not found"
            )
        participants = {shipment["sender"].lower(), shipment["receiver"].lower()}
        if from_address.lower() not in participants:
            raise ValueError(
                "VM Exception while processing transaction: "
                "revert Only shipment participants can update"
            )
        if not notes:
            raise ValueError("execution reverted: Notes cannot be empty")

        shipment["notes"] = notes
        self.sent.append((tracking_id, notes, from_address, gas))
        block = next(self._blocks)
        return {
            "transactionHash": bytes([len(self.sent)]) * 32,
            "blockNumber": block,
            "gasUsed": 41_000 + len(notes),
        }

    def get_shipment_details(self, tracking_id: str) -> Any:
        self.reads += 1
        if self.read_error is not None:
            raise self.read_error
        shipment = self.shipments.get(tracking_id)
        if shipment is None:
            raise ValueError("execution reverted: Shipment not found")
        return tuple(
            shipment[name]
            for name in ("medicineId", "sender", "receiver", "trackingId", "status", "notes")
        )


# ============================================================================
# MIRROR FIXTURES
# ============================================================================


@pytest.fixture(scope="function")
def temp_db_path() -> Generator[Path, None, None]:
    """
    Create a temporary mirror database path for testing.

    Each test function gets its own directory, and the config singleton is
    pointed at it through ``use_test_database`` for the duration of the test.

    Yields:
        Path to temporary database file
    """
    temp_dir = tempfile.mkdtemp()
    temp_db = Path(temp_dir) / "test_shipments.db"

    with use_test_database(temp_db):
        yield temp_db

    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture(scope="function")
def mirror(temp_db_path: Path) -> MirrorStore:
    """Mirror store with schema created and no rows."""
    store = MirrorStore(temp_db_path, timeout=1.0)
    store.init_schema()
    return store


@pytest.fixture(scope="function")
def seeded_mirror(mirror: MirrorStore) -> MirrorStore:
    """Mirror store holding one shipment for ``TRACKING_ID``."""
    mirror.create_shipment(
        tracking_id=TRACKING_ID,
        medicine_id="7",
        sender=SENDER,
        receiver=RECEIVER,
    )
    return mirror


# ============================================================================
# LEDGER FIXTURES
# ============================================================================


@pytest.fixture
def binding() -> FakeBinding:
    """Fake contract binding holding one shipment for ``TRACKING_ID``."""
    fake = FakeBinding()
    fake.add_shipment(TRACKING_ID)
    return fake


@pytest.fixture
def ledger(binding: FakeBinding) -> LedgerClient:
    """Ledger client bound to the fake contract."""
    return LedgerClient(binding, gas_limit=500_000)


@pytest.fixture
def unbound_ledger() -> LedgerClient:
    """Ledger client with no contract binding (deployment not configured)."""
    return LedgerClient(None)


# ============================================================================
# API FIXTURES
# ============================================================================


@pytest.fixture(scope="function")
def test_client(ledger: LedgerClient, seeded_mirror: MirrorStore) -> TestClient:
    """
    FastAPI TestClient around the fake ledger and a seeded mirror.

    Usage:
        def test_details(test_client):
            response = test_client.get("/shipments/TRK-1001/details")
            assert response.status_code == 200
    """
    app = create_app(ledger=ledger, mirror=seeded_mirror, cfg=ServiceConfig())
    return TestClient(app)


@pytest.fixture(scope="function")
def unbound_client(unbound_ledger: LedgerClient, seeded_mirror: MirrorStore) -> TestClient:
    """TestClient for a service started without a contract binding."""
    app = create_app(ledger=unbound_ledger, mirror=seeded_mirror, cfg=ServiceConfig())
    return TestClient(app)
