"""Tests for app construction and logging setup (shipment_ledger/api/server.py)."""

import json
import logging

import pytest
import structlog
from fastapi.testclient import TestClient

from shipment_ledger.api.server import _json_formatter, configure_logging, create_app
from shipment_ledger.config import LoggingSettings, ServiceConfig
from tests.constants import SENDER, TRACKING_ID


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.unit
def test_configure_logging_detailed(restore_root_logger):
    configure_logging(LoggingSettings(level="DEBUG", format="detailed"))

    root = restore_root_logger
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert "%(name)s" in root.handlers[0].formatter._fmt


@pytest.mark.unit
def test_configure_logging_json(restore_root_logger):
    configure_logging(LoggingSettings(level="INFO", format="json"))

    assert isinstance(
        restore_root_logger.handlers[0].formatter, structlog.stdlib.ProcessorFormatter
    )


@pytest.mark.unit
def test_json_formatter_output():
    record = logging.LogRecord(
        "shipment_ledger.test", logging.WARNING, __file__, 1, "tx %s failed", ("0x01",), None
    )
    payload = json.loads(_json_formatter().format(record))
    assert payload["level"] == "warning"
    assert payload["logger"] == "shipment_ledger.test"
    assert payload["event"] == "tx 0x01 failed"
    assert "timestamp" in payload


@pytest.mark.api
def test_docs_disabled_in_production(ledger, mirror):
    cfg = ServiceConfig()
    cfg.security.production = True

    client = TestClient(create_app(ledger=ledger, mirror=mirror, cfg=cfg))

    assert client.get("/docs").status_code == 404


@pytest.mark.api
def test_docs_enabled_by_default(ledger, mirror):
    client = TestClient(create_app(ledger=ledger, mirror=mirror, cfg=ServiceConfig()))
    assert client.get("/docs").status_code == 200


@pytest.mark.api
def test_create_app_builds_mirror_from_config(ledger, tmp_path):
    cfg = ServiceConfig()
    cfg.mirror.path = str(tmp_path / "built.db")

    client = TestClient(create_app(ledger=ledger, cfg=cfg))

    assert (tmp_path / "built.db").exists()
    assert client.get("/health").json()["mirror"] == "ok"


@pytest.mark.api
def test_create_app_without_contract_address_starts_unbound(tmp_path):
    cfg = ServiceConfig()
    cfg.mirror.path = str(tmp_path / "built.db")

    client = TestClient(create_app(cfg=cfg))

    assert client.get("/health").json()["ledger"] == "unavailable"


@pytest.mark.api
def test_unwritable_mirror_does_not_block_startup(ledger, binding, tmp_path, caplog):
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")
    cfg = ServiceConfig()
    cfg.mirror.path = str(blocker / "sub" / "shipments.db")

    with caplog.at_level("WARNING"):
        client = TestClient(create_app(ledger=ledger, cfg=cfg))
    assert "Mirror unavailable" in caplog.text

    details = client.get(f"/shipments/{TRACKING_ID}/details")
    assert details.status_code == 200
    assert details.json()["data"]["database"] is None

    update = client.post(
        "/shipments/update-status",
        json={"trackingId": TRACKING_ID, "notes": "Picked up", "fromAddress": SENDER},
    )
    assert update.status_code == 200
    assert len(binding.sent) == 1
    assert client.get("/health").json()["mirror"] == "unreachable"
