"""Mirror store package: SQLite copy of ledger shipments.

Public surface
--------------
- :class:`MirrorStore`   best-effort append/fetch plus mirror-only CRUD.
- :class:`Annotation`    one append-only status note.
- :class:`MirrorRecord`  one mirrored shipment with its notes.

Errors live in :mod:`shipment_ledger.db.errors`.
"""

from shipment_ledger.db.mirror import MirrorStore
from shipment_ledger.db.types import Annotation, MirrorRecord

__all__ = ["Annotation", "MirrorRecord", "MirrorStore"]
