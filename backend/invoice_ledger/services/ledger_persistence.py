"""Ledger Persistence - appends the event log, checkpoints snapshots, restores on startup.

Invariants:
    - persist_ledger appends only events newer than the highest stored sequence
    - A snapshot checkpoint is written when at least `checkpoint_interval`
      events accumulated since the previous one; its last_sequence is the
      sequence the snapshot reflects
    - Event rows and the checkpoint are committed together
    - restore_runtime = newest checkpoint + replay of the events stored after it;
      no checkpoint and no events yields an empty ledger

Design Decisions:
    - Called by routes while holding the runtime's write lock, never by the
      engine: the core stays synchronous and IO-free
    - Per-request cost is the new event rows only; the full ledger and holder
      map are serialized once per checkpoint
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from invoice_ledger.core.boundary_protocols import Clock
from invoice_ledger.core.events import LedgerEvent
from invoice_ledger.core.ledger_replay import replay_events
from invoice_ledger.core.ledger_snapshot import ledger_from_snapshot
from invoice_ledger.core.ledger_state import LedgerState
from invoice_ledger.infrastructure.asset_registry import InMemoryAssetRegistry
from invoice_ledger.models.ledger_event import LedgerEventRecord
from invoice_ledger.models.ledger_snapshot import LedgerSnapshotRecord
from invoice_ledger.services.ledger_runtime import LedgerRuntime, build_runtime

logger = logging.getLogger(__name__)

DEFAULT_CHECKPOINT_INTERVAL = 100


async def stored_sequence(db: AsyncSession, ledger_name: str) -> int:
    """Highest event sequence already stored for the ledger (0 if none)."""
    result = await db.scalar(
        select(func.max(LedgerEventRecord.sequence))
        .where(LedgerEventRecord.ledger_name == ledger_name),
    )
    return result or 0


async def persist_ledger(
    db: AsyncSession,
    runtime: LedgerRuntime,
    ledger_name: str,
    checkpoint_interval: int = DEFAULT_CHECKPOINT_INTERVAL,
) -> int:
    """Append new events and checkpoint when due. Returns number of events written."""
    engine = runtime.engine
    new_events = engine.events(since=await stored_sequence(db, ledger_name))
    for event in new_events:
        db.add(LedgerEventRecord(
            ledger_name=ledger_name,
            sequence=event.sequence,
            event_type=event.event_type.value,
            payload=dict(event.payload),
        ))

    record = await db.get(LedgerSnapshotRecord, ledger_name)
    checkpointed = record.last_sequence if record else 0
    if engine.last_sequence - checkpointed >= checkpoint_interval:
        snapshot = {
            "ledger": engine.snapshot(include_events=False),
            "registry": runtime.registry.to_snapshot(),
        }
        if record is None:
            db.add(LedgerSnapshotRecord(
                name=ledger_name,
                snapshot=snapshot,
                last_sequence=engine.last_sequence,
            ))
        else:
            record.snapshot = snapshot
            record.last_sequence = engine.last_sequence
            record.updated_at = datetime.now(timezone.utc)
        logger.info(
            f"Checkpointed ledger '{ledger_name}'",
            extra={"sequence": engine.last_sequence},
        )

    await db.commit()
    if new_events:
        logger.debug(
            f"Persisted {len(new_events)} ledger event(s)",
            extra={"sequence": engine.last_sequence},
        )
    return len(new_events)


async def load_events(
    db: AsyncSession, ledger_name: str, since: int = 0,
) -> list[dict]:
    result = await db.execute(
        select(LedgerEventRecord)
        .where(
            LedgerEventRecord.ledger_name == ledger_name,
            LedgerEventRecord.sequence > since,
        )
        .order_by(LedgerEventRecord.sequence),
    )
    return [row.to_event_dict() for row in result.scalars().all()]


async def restore_runtime(
    db: AsyncSession, ledger_name: str, clock: Clock | None = None,
) -> LedgerRuntime:
    """Rebuild the runtime from the newest checkpoint plus later events."""
    record = await db.get(LedgerSnapshotRecord, ledger_name)
    events = [LedgerEvent.from_dict(e) for e in await load_events(db, ledger_name)]
    if record is None and not events:
        logger.info(f"No stored ledger '{ledger_name}', starting empty")
        return build_runtime(clock=clock)

    if record is None:
        checkpointed = 0
        state = LedgerState()
        registry = InMemoryAssetRegistry()
    else:
        checkpointed = record.last_sequence
        state = ledger_from_snapshot(record.snapshot.get("ledger", {}))
        registry = InMemoryAssetRegistry.from_snapshot(record.snapshot.get("registry"))

    state.events = events[:checkpointed]
    replayed = replay_events(state, registry, events[checkpointed:])
    logger.info(
        f"Restored ledger '{ledger_name}' ({replayed} event(s) replayed)",
        extra={"sequence": state.last_sequence},
    )
    return build_runtime(clock=clock, state=state, registry=registry)
