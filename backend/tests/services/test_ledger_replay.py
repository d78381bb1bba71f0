"""Ledger replay - committed events rebuild the same ledger.

Tests cover:
    - replaying a full issue -> purchase -> redeem history onto an empty ledger
    - replay continues a partial ledger without gaps
    - out-of-order events are rejected before they are applied
"""

import pytest

from invoice_ledger.core.errors import LedgerReplayError
from invoice_ledger.core.ledger_replay import apply_event, replay_events
from invoice_ledger.core.ledger_snapshot import ledger_to_snapshot
from invoice_ledger.core.ledger_state import LedgerState
from invoice_ledger.infrastructure.asset_registry import InMemoryAssetRegistry
from tests.ledger_fixtures import BUYER, ISSUER, MATURITY, OTHER_BUYER


def _replayed(engine):
    state = LedgerState()
    registry = InMemoryAssetRegistry()
    assert replay_events(state, registry, engine.events()) == engine.last_sequence
    return state, registry


def test_replay_matches_engine(engine, registry, clock, issued_invoice, funded_pool):
    engine.purchase_token(BUYER, 1, 3, 3000)
    engine.purchase_token(OTHER_BUYER, 1, 2, 2000)
    engine.withdraw_collateral(ISSUER, 1000)

    state, replayed_registry = _replayed(engine)
    assert ledger_to_snapshot(state) == engine.snapshot()
    assert replayed_registry.to_snapshot() == registry.to_snapshot()

    clock.move_to(MATURITY)
    engine.redeem_tokens(BUYER, 1)
    state, replayed_registry = _replayed(engine)
    assert ledger_to_snapshot(state) == engine.snapshot()
    assert replayed_registry.to_snapshot() == registry.to_snapshot()
    assert replayed_registry.owner_of(1_000_009) == ISSUER


def test_replay_continues_partial_ledger(engine, issued_invoice):
    engine.purchase_token(BUYER, 1, 1, 1000)
    history = engine.events()

    state = LedgerState()
    registry = InMemoryAssetRegistry()
    replay_events(state, registry, history[:2])
    assert state.invoices.get(1).tokens_remaining == 10
    replay_events(state, registry, history[2:])
    assert state.invoices.get(1).tokens_remaining == 9
    assert registry.owner_of(1_000_009) == BUYER


def test_out_of_order_event_rejected(engine, issued_invoice):
    state = LedgerState()
    registry = InMemoryAssetRegistry()
    with pytest.raises(LedgerReplayError) as exc_info:
        apply_event(state, registry, engine.events()[1])
    assert exc_info.value.sequence == 2
    assert state.events == []
    assert len(registry) == 0
