"""Tests for the web3-backed contract binding and its construction."""

import json
from unittest.mock import MagicMock

import pytest
import requests
from web3.exceptions import ContractLogicError, TimeExhausted

from shipment_ledger.config import LedgerSettings
from shipment_ledger.ledger.binding import (
    Web3ContractBinding,
    build_contract_binding,
    load_contract_abi,
)
from shipment_ledger.ledger.errors import (
    LedgerCallError,
    LedgerConfigurationError,
    LedgerTimeoutError,
    LedgerUnavailableError,
)
from tests.constants import SENDER, TRACKING_ID

CONTRACT_ADDRESS = "0x" + "5f" * 20

ABI = [
    {
        "type": "function",
        "name": "getShipmentDetails",
        "stateMutability": "view",
        "inputs": [{"name": "trackingId", "type": "string"}],
        "outputs": [
            {"name": "medicineId", "type": "uint256"},
            {"name": "sender", "type": "address"},
            {"name": "receiver", "type": "address"},
            {"name": "trackingId", "type": "string"},
            {"name": "status", "type": "uint8"},
            {"name": "notes", "type": "string"},
        ],
    },
    {
        "type": "function",
        "name": "updateShipmentStatusWithNote",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "trackingId", "type": "string"},
            {"name": "notes", "type": "string"},
        ],
        "outputs": [],
    },
]


@pytest.fixture
def abi_file(tmp_path):
    path = tmp_path / "SupplyChain.json"
    path.write_text(json.dumps({"contractName": "SupplyChain", "abi": ABI}), encoding="utf-8")
    return path


def _binding(receipt=None):
    w3 = MagicMock()
    w3.eth.wait_for_transaction_receipt.return_value = receipt or {
        "transactionHash": b"\x11" * 32,
        "blockNumber": 8,
        "gasUsed": 50_000,
        "status": 1,
    }
    contract = MagicMock()
    contract.functions.updateShipmentStatusWithNote.return_value.transact.return_value = (
        b"\x11" * 32
    )
    return Web3ContractBinding(w3, contract, tx_timeout=3.0, poll_interval=0.1), w3, contract


# ============================================================================
# ABI LOADING
# ============================================================================


@pytest.mark.unit
def test_load_abi_from_truffle_artifact(abi_file):
    assert load_contract_abi(abi_file) == ABI


@pytest.mark.unit
def test_load_abi_from_bare_list(tmp_path):
    path = tmp_path / "abi.json"
    path.write_text(json.dumps(ABI), encoding="utf-8")
    assert load_contract_abi(path) == ABI


@pytest.mark.unit
def test_load_abi_rejects_artifact_without_abi(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text(json.dumps({"bytecode": "0x00"}), encoding="utf-8")
    with pytest.raises(LedgerConfigurationError):
        load_contract_abi(path)


@pytest.mark.unit
def test_load_abi_rejects_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(LedgerConfigurationError):
        load_contract_abi(path)


# ============================================================================
# BINDING CONSTRUCTION
# ============================================================================


@pytest.mark.unit
def test_build_without_address_returns_none(abi_file):
    settings = LedgerSettings(contract_address="", abi_path=str(abi_file))
    assert build_contract_binding(settings) is None


@pytest.mark.unit
def test_build_without_abi_file_returns_none(tmp_path):
    settings = LedgerSettings(
        contract_address=CONTRACT_ADDRESS, abi_path=str(tmp_path / "missing.json")
    )
    assert build_contract_binding(settings) is None


@pytest.mark.unit
def test_build_with_malformed_address_raises(abi_file):
    settings = LedgerSettings(contract_address="0x1234", abi_path=str(abi_file))
    with pytest.raises(LedgerConfigurationError):
        build_contract_binding(settings)


@pytest.mark.unit
def test_build_with_valid_settings(abi_file):
    settings = LedgerSettings(
        contract_address=CONTRACT_ADDRESS,
        abi_path=str(abi_file),
        tx_timeout_seconds=12.0,
        poll_interval_seconds=0.25,
    )

    binding = build_contract_binding(settings)

    assert isinstance(binding, Web3ContractBinding)
    assert binding.tx_timeout == 12.0
    assert binding.poll_interval == 0.25
    assert binding.contract.address.lower() == CONTRACT_ADDRESS


# ============================================================================
# CONTRACT CALLS
# ============================================================================


@pytest.mark.unit
def test_send_status_note_transacts_and_waits():
    binding, w3, contract = _binding()

    receipt = binding.send_status_note(TRACKING_ID, "Picked up", from_address=SENDER, gas=500_000)

    contract.functions.updateShipmentStatusWithNote.assert_called_once_with(
        TRACKING_ID, "Picked up"
    )
    tx_params = contract.functions.updateShipmentStatusWithNote.return_value.transact.call_args
    assert tx_params.args[0]["gas"] == 500_000
    assert tx_params.args[0]["from"].lower() == SENDER
    w3.eth.wait_for_transaction_receipt.assert_called_once_with(
        b"\x11" * 32, timeout=3.0, poll_latency=0.1
    )
    assert receipt == {
        "transactionHash": "0x" + "11" * 32,
        "blockNumber": 8,
        "gasUsed": 50_000,
    }


@pytest.mark.unit
def test_failed_receipt_raises_call_error():
    binding, _, _ = _binding(
        {"transactionHash": b"\x22" * 32, "blockNumber": 9, "gasUsed": 1, "status": 0}
    )
    with pytest.raises(LedgerCallError) as exc_info:
        binding.send_status_note(TRACKING_ID, "Picked up", from_address=SENDER, gas=1)
    assert "revert" in exc_info.value.raw


@pytest.mark.unit
def test_receipt_wait_timeout_raises_timeout():
    binding, w3, _ = _binding()
    w3.eth.wait_for_transaction_receipt.side_effect = TimeExhausted("slow")

    with pytest.raises(LedgerTimeoutError, match="within 3s"):
        binding.send_status_note(TRACKING_ID, "Picked up", from_address=SENDER, gas=1)


@pytest.mark.unit
def test_node_timeout_raises_timeout():
    binding, _, contract = _binding()
    contract.functions.getShipmentDetails.return_value.call.side_effect = (
        requests.exceptions.ReadTimeout("read timed out")
    )
    with pytest.raises(LedgerTimeoutError):
        binding.get_shipment_details(TRACKING_ID)


@pytest.mark.unit
def test_unreachable_node_raises_unavailable():
    binding, _, contract = _binding()
    contract.functions.updateShipmentStatusWithNote.return_value.transact.side_effect = (
        requests.exceptions.ConnectionError("refused")
    )
    with pytest.raises(LedgerUnavailableError) as exc_info:
        binding.send_status_note(TRACKING_ID, "Picked up", from_address=SENDER, gas=1)
    assert not isinstance(exc_info.value, LedgerTimeoutError)


@pytest.mark.unit
def test_contract_revert_propagates_as_raised():
    binding, _, contract = _binding()
    contract.functions.getShipmentDetails.return_value.call.side_effect = ValueError(
        "execution reverted: Shipment not found"
    )
    with pytest.raises(ValueError):
        binding.get_shipment_details(TRACKING_ID)


@pytest.mark.unit
def test_contract_revert_drops_revert_data():
    binding, _, contract = _binding()
    contract.functions.updateShipmentStatusWithNote.return_value.transact.side_effect = (
        ContractLogicError("execution reverted: Shipment already delivered", data="0x08c379a0")
    )

    with pytest.raises(LedgerCallError) as exc_info:
        binding.send_status_note(TRACKING_ID, "Picked up", from_address=SENDER, gas=1)

    assert exc_info.value.raw == "execution reverted: Shipment already delivered"
    assert isinstance(exc_info.value.cause, ContractLogicError)


@pytest.mark.unit
def test_read_revert_raises_call_error():
    binding, _, contract = _binding()
    contract.functions.getShipmentDetails.return_value.call.side_effect = ContractLogicError(
        "execution reverted: Shipment not found", data="0x08c379a0"
    )
    with pytest.raises(LedgerCallError) as exc_info:
        binding.get_shipment_details(TRACKING_ID)
    assert exc_info.value.raw == "execution reverted: Shipment not found"
