"""Orchestration of the write (reconciliation) and read (merge) paths."""

from shipment_ledger.services.read_merger import CombinedView, ReadMerger
from shipment_ledger.services.reconciliation import ReconciliationWriter, UpdateResult

__all__ = ["CombinedView", "ReadMerger", "ReconciliationWriter", "UpdateResult"]
