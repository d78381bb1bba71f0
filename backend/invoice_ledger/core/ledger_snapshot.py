"""Ledger Snapshot - serialization / deserialization for LedgerState.

Invariants:
    - ledger_to_snapshot produces a JSON-safe dict (str keys, no dataclasses, no Enums)
    - ledger_from_snapshot reconstructs an equivalent LedgerState
    - Missing keys fall back to LedgerState defaults (forward-compatible)
    - A restored state never shares mutable containers with its snapshot
    - Snapshots are checkpoints; events after a checkpoint are replayed on top
      (core/ledger_replay.py)

Design Decisions:
    - JSON object keys are strings: invoice ids are stringified on the way out
      and converted back to int on the way in
"""

from invoice_ledger.core.collateral_ledger import CollateralLedger
from invoice_ledger.core.domain_types import CompanyAddress, InvoiceId, TokenId
from invoice_ledger.core.events import LedgerEvent
from invoice_ledger.core.free_token_pool import FreeTokenPool
from invoice_ledger.core.invoice_registry import Invoice, InvoiceRegistry
from invoice_ledger.core.ledger_state import LedgerState

SNAPSHOT_VERSION = 1


def _serialize_collateral(collateral: CollateralLedger) -> dict:
    return {
        "total_collateral": dict(collateral.total_collateral),
        "active_invoices": {
            company: list(ids) for company, ids in collateral.active_invoices.items()
        },
    }


def _deserialize_collateral(data: dict) -> CollateralLedger:
    return CollateralLedger(
        total_collateral={
            CompanyAddress(k): int(v)
            for k, v in data.get("total_collateral", {}).items()
        },
        active_invoices={
            CompanyAddress(k): [InvoiceId(int(i)) for i in ids]
            for k, ids in data.get("active_invoices", {}).items()
        },
    )


def ledger_to_snapshot(state: LedgerState, include_events: bool = True) -> dict:
    """Serialize LedgerState to a JSON-safe dict. Pure, no IO.

    include_events=False leaves the event log out: the shell stores events
    in their own table and the engine restores them by truncation.
    """
    snapshot = {
        "version": SNAPSHOT_VERSION,
        "vault_cash": state.vault_cash,
        "collateral": _serialize_collateral(state.collateral),
        "invoices": {
            str(invoice_id): invoice.to_dict()
            for invoice_id, invoice in state.invoices.invoices.items()
        },
        "pools": {
            str(invoice_id): list(ids)
            for invoice_id, ids in state.pool.pools.items()
        },
    }
    if include_events:
        snapshot["events"] = [event.to_dict() for event in state.events]
    return snapshot


def ledger_from_snapshot(data: dict) -> LedgerState:
    """Reconstruct LedgerState from a snapshot dict. Pure, no IO."""
    state = LedgerState()
    if not data:
        return state

    state.vault_cash = int(data.get("vault_cash", 0))
    state.collateral = _deserialize_collateral(data.get("collateral", {}))
    state.invoices = InvoiceRegistry(invoices={
        InvoiceId(int(k)): Invoice(**v) for k, v in data.get("invoices", {}).items()
    })
    state.pool = FreeTokenPool(pools={
        InvoiceId(int(k)): [TokenId(int(t)) for t in ids]
        for k, ids in data.get("pools", {}).items()
    })
    state.events = [LedgerEvent.from_dict(e) for e in data.get("events", [])]
    return state
