"""ORM Models - persisted ledger event log and ledger snapshots.

Invariants:
    - All models inherit from Base (db/base.py)
    - All models imported here so Base.metadata is complete for create_all / alembic
"""

from invoice_ledger.models.ledger_event import LedgerEventRecord  # noqa: F401
from invoice_ledger.models.ledger_snapshot import LedgerSnapshotRecord  # noqa: F401
