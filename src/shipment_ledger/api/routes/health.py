"""Health and root endpoints.

Provides the root ``/`` endpoint (API identity and version) and the
``/health`` endpoint, which reports whether a ledger binding is configured
and whether the mirror database answers.  Neither check calls the ledger
node.
"""

from fastapi import APIRouter

from shipment_ledger import __version__
from shipment_ledger.db.mirror import MirrorStore
from shipment_ledger.ledger.client import LedgerClient


def router(ledger: LedgerClient, mirror: MirrorStore) -> APIRouter:
    """Build the health router."""
    api = APIRouter()

    @api.get("/")
    async def root():
        """API identity and current version."""
        return {"message": "Shipment Ledger API", "version": __version__}

    @api.get("/health")
    def health_check():
        """Report ledger binding presence and mirror reachability."""
        ledger_ok = ledger.is_available
        mirror_ok = mirror.ping()
        return {
            "status": "ok" if ledger_ok and mirror_ok else "degraded",
            "ledger": "configured" if ledger_ok else "unavailable",
            "mirror": "ok" if mirror_ok else "unreachable",
        }

    return api
