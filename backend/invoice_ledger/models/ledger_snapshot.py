"""Ledger Snapshot ORM - latest serialized ledger state, one row per ledger name.

Invariants:
    - snapshot holds {"ledger": <ledger snapshot without events>, "registry": <holders>}
    - last_sequence is the sequence of the newest event already in ledger_events
"""

from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column

from invoice_ledger.db.base import Base


class LedgerSnapshotRecord(Base):
    __tablename__ = "ledger_snapshots"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    snapshot: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    last_sequence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
