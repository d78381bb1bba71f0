"""Ledger Event ORM - append-only copy of the engine's event log.

Invariants:
    - (ledger_name, sequence) is unique; rows are inserted, never updated
    - payload is the event's JSON payload exactly as emitted
"""

from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from invoice_ledger.db.base import Base


class LedgerEventRecord(Base):
    __tablename__ = "ledger_events"
    __table_args__ = (
        UniqueConstraint("ledger_name", "sequence", name="uq_ledger_events_sequence"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ledger_name: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    event_type: Mapped[str] = mapped_column(String(40), nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def to_event_dict(self) -> dict:
        return {
            "sequence": self.sequence,
            "event_type": self.event_type,
            "payload": self.payload,
        }
