"""web3-backed binding to the deployed shipment contract.

``build_contract_binding`` is called once at process start.  It returns:

- a :class:`Web3ContractBinding` when the contract address and ABI artifact
  are both configured;
- ``None`` (with a warning) when either is missing, so the service can still
  start and answer 503 on ledger-backed endpoints;

and raises :exc:`LedgerConfigurationError` when the configuration is present
but unusable (unreadable ABI, malformed address).

Timeouts
--------
Two bounds keep a request from hanging on the node:

- ``request_timeout_seconds`` is passed to the HTTP provider and applies to
  each JSON-RPC round trip;
- ``tx_timeout_seconds`` bounds the wait for the transaction receipt.

Either expiring raises :exc:`LedgerTimeoutError`.  A transaction that timed
out while waiting for its receipt may still be mined later; the caller only
learns that confirmation did not arrive in time.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import requests
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted

from shipment_ledger.config import LedgerSettings
from shipment_ledger.ledger.errors import (
    LedgerCallError,
    LedgerConfigurationError,
    LedgerTimeoutError,
    LedgerUnavailableError,
)

logger = logging.getLogger(__name__)


def load_contract_abi(path: Path) -> list[dict[str, Any]]:
    """Load a contract ABI from a Truffle artifact or a bare ABI file.

    Raises:
        LedgerConfigurationError: If the file cannot be read or has no ABI.
    """
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise LedgerConfigurationError(f"Could not load contract ABI from {path}: {exc}") from exc

    abi = payload.get("abi") if isinstance(payload, dict) else payload
    if not isinstance(abi, list):
        raise LedgerConfigurationError(f"Contract artifact {path} does not contain an ABI list")
    return abi


def _revert_text(exc: ContractLogicError) -> str:
    """Revert message without the ABI-encoded revert data web3 attaches."""
    return exc.message or str(exc)


class Web3ContractBinding:
    """Contract binding over a web3 HTTP provider.

    One instance is shared by all requests.  web3 contract objects hold no
    per-call state, and transaction ordering is left to the node (per-sender
    nonces).
    """

    def __init__(self, w3: Web3, contract: Any, *, tx_timeout: float, poll_interval: float):
        self.w3 = w3
        self.contract = contract
        self.tx_timeout = tx_timeout
        self.poll_interval = poll_interval

    def send_status_note(
        self, tracking_id: str, notes: str, *, from_address: str, gas: int
    ) -> Mapping[str, Any]:
        """Transact ``updateShipmentStatusWithNote`` and wait for the receipt."""
        sender = Web3.to_checksum_address(from_address)
        try:
            tx_hash = self.contract.functions.updateShipmentStatusWithNote(
                tracking_id, notes
            ).transact({"from": sender, "gas": gas})
            receipt = self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.tx_timeout, poll_latency=self.poll_interval
            )
        except ContractLogicError as exc:
            raise LedgerCallError(_revert_text(exc), cause=exc) from exc
        except TimeExhausted as exc:
            raise LedgerTimeoutError(
                f"Ledger did not confirm the transaction within {self.tx_timeout:g}s"
            ) from exc
        except requests.exceptions.Timeout as exc:
            raise LedgerTimeoutError("Ledger node did not respond in time") from exc
        except requests.exceptions.ConnectionError as exc:
            raise LedgerUnavailableError("Ledger node unreachable") from exc

        if receipt.get("status") == 0:
            raise LedgerCallError(
                f"revert Transaction {Web3.to_hex(receipt['transactionHash'])} failed on-chain"
            )
        return {
            "transactionHash": Web3.to_hex(receipt["transactionHash"]),
            "blockNumber": receipt["blockNumber"],
            "gasUsed": receipt["gasUsed"],
        }

    def get_shipment_details(self, tracking_id: str) -> Any:
        """Call ``getShipmentDetails`` (read-only)."""
        try:
            return self.contract.functions.getShipmentDetails(tracking_id).call()
        except ContractLogicError as exc:
            raise LedgerCallError(_revert_text(exc), cause=exc) from exc
        except requests.exceptions.Timeout as exc:
            raise LedgerTimeoutError("Ledger node did not respond in time") from exc
        except requests.exceptions.ConnectionError as exc:
            raise LedgerUnavailableError("Ledger node unreachable") from exc


def build_contract_binding(settings: LedgerSettings) -> Web3ContractBinding | None:
    """Construct the process-wide contract binding from ledger settings."""
    if not settings.contract_address:
        logger.warning(
            "Contract not initialized - set SHIP_CONTRACT_ADDRESS or [ledger] contract_address"
        )
        return None

    abi_path = settings.absolute_abi_path
    if not abi_path.exists():
        logger.warning("Contract ABI not found at %s - compile the contract first", abi_path)
        return None

    if not Web3.is_address(settings.contract_address.lower()):
        raise LedgerConfigurationError(
            f"Configured contract address is not valid: {settings.contract_address!r}"
        )

    abi = load_contract_abi(abi_path)
    w3 = Web3(
        Web3.HTTPProvider(
            settings.node_url,
            request_kwargs={"timeout": settings.request_timeout_seconds},
        )
    )
    address = Web3.to_checksum_address(settings.contract_address)
    contract = w3.eth.contract(address=address, abi=abi)
    logger.info(
        "Shipment contract initialized at %s via %s",
        settings.contract_address,
        settings.node_url,
    )
    return Web3ContractBinding(
        w3,
        contract,
        tx_timeout=settings.tx_timeout_seconds,
        poll_interval=settings.poll_interval_seconds,
    )
