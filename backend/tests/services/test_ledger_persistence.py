"""Ledger persistence - event rows, checkpoints and restore.

Tests cover:
    - persist_ledger writes only events newer than the highest stored sequence
    - checkpoints are written once checkpoint_interval events accumulated
    - restore_runtime rebuilds balances, invoices, pools and token holders
      from pure replay and from checkpoint + replay
    - a gap in the stored log fails the restore
    - an absent ledger restores empty
"""

import pytest
from sqlalchemy import func, select

from invoice_ledger.core.errors import LedgerReplayError
from invoice_ledger.models.ledger_event import LedgerEventRecord
from invoice_ledger.models.ledger_snapshot import LedgerSnapshotRecord
from invoice_ledger.services.ledger_persistence import (
    load_events, persist_ledger, restore_runtime, stored_sequence,
)
from tests.ledger_fixtures import BUYER, ISSUER, OTHER_BUYER, FakeClock


async def _event_rows(db, name: str) -> int:
    return await db.scalar(
        select(func.count()).select_from(LedgerEventRecord)
        .where(LedgerEventRecord.ledger_name == name),
    )


def _assert_same_ledger(restored, original):
    engine = restored.engine
    assert engine.total_collateral(ISSUER) == original.engine.total_collateral(ISSUER)
    assert engine.locked_collateral(ISSUER) == original.engine.locked_collateral(ISSUER)
    assert engine.get_invoice(1) == original.engine.get_invoice(1)
    assert engine.free_tokens(1) == original.engine.free_tokens(1)
    assert engine.vault_cash == original.engine.vault_cash
    assert engine.last_sequence == original.engine.last_sequence
    assert restored.registry.to_snapshot() == original.registry.to_snapshot()


async def test_persist_writes_new_events_only(test_db, runtime, issued_invoice):
    assert await persist_ledger(test_db, runtime, "test") == 2
    assert await persist_ledger(test_db, runtime, "test") == 0

    runtime.engine.purchase_token(BUYER, 1, 1, 1000)
    assert await persist_ledger(test_db, runtime, "test") == 1

    assert await _event_rows(test_db, "test") == 3
    assert await stored_sequence(test_db, "test") == 3
    # Below the checkpoint interval nothing but events is written
    assert await test_db.get(LedgerSnapshotRecord, "test") is None


async def test_checkpoint_written_when_interval_reached(test_db, runtime, issued_invoice):
    await persist_ledger(test_db, runtime, "test", checkpoint_interval=3)
    assert await test_db.get(LedgerSnapshotRecord, "test") is None

    runtime.engine.purchase_token(BUYER, 1, 1, 1000)
    await persist_ledger(test_db, runtime, "test", checkpoint_interval=3)
    record = await test_db.get(LedgerSnapshotRecord, "test")
    assert record.last_sequence == 3
    assert "events" not in record.snapshot["ledger"]

    runtime.engine.purchase_token(BUYER, 1, 1, 1000)
    await persist_ledger(test_db, runtime, "test", checkpoint_interval=3)
    await test_db.refresh(record)
    assert record.last_sequence == 3


async def test_load_events_in_order(test_db, runtime, issued_invoice):
    runtime.engine.purchase_token(BUYER, 1, 2, 2000)
    await persist_ledger(test_db, runtime, "test")
    events = await load_events(test_db, "test")
    assert [e["sequence"] for e in events] == [1, 2, 3]
    assert events[2]["event_type"] == "InvoiceTokenPurchased"
    assert events[2]["payload"]["buyer"] == BUYER
    assert [e["sequence"] for e in await load_events(test_db, "test", since=2)] == [3]


async def test_restore_by_replay_only(test_db, runtime, issued_invoice):
    runtime.engine.purchase_token(BUYER, 1, 2, 2000)
    await persist_ledger(test_db, runtime, "test")

    restored = await restore_runtime(test_db, "test", clock=FakeClock())
    _assert_same_ledger(restored, runtime)
    assert restored.engine.owner_of(1_000_009) == BUYER
    assert restored.engine.locked_collateral(ISSUER) == 8000

    # The restored ledger keeps selling from the same stack position
    receipt = restored.engine.purchase_token(BUYER, 1, 1, 1000)
    assert receipt.token_ids == (1_000_007,)
    assert receipt.event.sequence == 4


async def test_restore_checkpoint_then_replay(test_db, runtime, issued_invoice):
    runtime.engine.purchase_token(BUYER, 1, 1, 1000)
    await persist_ledger(test_db, runtime, "test", checkpoint_interval=3)
    runtime.engine.purchase_token(OTHER_BUYER, 1, 2, 2000)
    runtime.engine.fund_redemption_pool(ISSUER, 500)
    await persist_ledger(test_db, runtime, "test", checkpoint_interval=3)

    record = await test_db.get(LedgerSnapshotRecord, "test")
    assert record.last_sequence == 3

    restored = await restore_runtime(test_db, "test", clock=FakeClock())
    _assert_same_ledger(restored, runtime)
    assert restored.engine.owner_of(1_000_007) == OTHER_BUYER
    assert [e.sequence for e in restored.engine.events()] == [1, 2, 3, 4, 5]


async def test_restore_rejects_gap(test_db, runtime, issued_invoice):
    runtime.engine.purchase_token(BUYER, 1, 1, 1000)
    await persist_ledger(test_db, runtime, "test")
    row = await test_db.scalar(
        select(LedgerEventRecord).where(
            LedgerEventRecord.ledger_name == "test",
            LedgerEventRecord.sequence == 2,
        ),
    )
    await test_db.delete(row)
    await test_db.commit()

    with pytest.raises(LedgerReplayError) as exc_info:
        await restore_runtime(test_db, "test")
    assert exc_info.value.details["sequence"] == 3


async def test_restore_missing_ledger_is_empty(test_db):
    restored = await restore_runtime(test_db, "nothing-here")
    assert restored.engine.last_sequence == 0
    assert restored.engine.vault_cash == 0
    assert len(restored.registry) == 0


async def test_ledgers_are_isolated_by_name(test_db, runtime, issued_invoice):
    await persist_ledger(test_db, runtime, "a")
    restored = await restore_runtime(test_db, "b")
    assert restored.engine.last_sequence == 0
    assert await stored_sequence(test_db, "b") == 0
