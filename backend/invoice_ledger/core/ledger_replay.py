"""Ledger Replay - rebuild LedgerState and token holders from committed events.

Invariants:
    - Pure with respect to IO: mutates only the given state and registry
    - Replaying events 1..N onto an empty ledger reproduces the engine's state
      after event N (balances, invoices, pools, vault cash, holders)
    - Events must continue the state's sequence without gaps; otherwise
      LedgerReplayError is raised before the offending event is applied
    - No outbound transfers: payouts already happened when the event was committed

Design Decisions:
    - Token ids are not stored in events: pool pops are deterministic, so the
      same ids come off the stack on replay
    - Used on startup to bring a checkpoint snapshot up to date
"""

from typing import Callable, Iterable

from invoice_ledger.core.boundary_protocols import AssetRegistry
from invoice_ledger.core.domain_types import (
    EventType, InvoiceId, required_collateral, token_id_for,
)
from invoice_ledger.core.errors import LedgerReplayError
from invoice_ledger.core.events import LedgerEvent
from invoice_ledger.core.invoice_registry import Invoice
from invoice_ledger.core.ledger_state import LedgerState

Handler = Callable[[LedgerState, AssetRegistry, dict], None]


def _collateral_deposited(state: LedgerState, registry: AssetRegistry, p: dict) -> None:
    state.collateral.deposit(p["company"], p["amount"])
    state.vault_cash += p["amount"]


def _collateral_withdrawn(state: LedgerState, registry: AssetRegistry, p: dict) -> None:
    state.collateral.debit(p["company"], p["amount"], state.invoices.collateral_lookup)
    state.vault_cash -= p["amount"]


def _invoice_token_created(state: LedgerState, registry: AssetRegistry, p: dict) -> None:
    invoice_id = InvoiceId(p["invoice_id"])
    company = p["company"]
    state.invoices.register(Invoice(
        invoice_id=invoice_id,
        total_invoice_amount=p["total_amount"],
        token_price=p["token_price"],
        tokens_total=p["tokens_total"],
        tokens_remaining=p["tokens_total"],
        maturity_date=p["maturity_date"],
        company_wallet=company,
        collateral_deposited=required_collateral(p["token_price"], p["tokens_total"]),
        ipfs_document_hash=p["ipfs_hash"],
    ))
    for sequence in range(p["tokens_total"]):
        token_id = token_id_for(invoice_id, sequence)
        registry.mint(company, token_id)
        state.pool.push(invoice_id, token_id)
    state.collateral.register_invoice(company, invoice_id)


def _invoice_token_purchased(state: LedgerState, registry: AssetRegistry, p: dict) -> None:
    invoice = state.invoices.get(p["invoice_id"])
    state.invoices.consume_tokens(invoice.invoice_id, p["token_amount"])
    for _ in range(p["token_amount"]):
        token_id = state.pool.pop(invoice.invoice_id)
        registry.transfer(invoice.company_wallet, p["buyer"], token_id)


def _tokens_redeemed(state: LedgerState, registry: AssetRegistry, p: dict) -> None:
    invoice = state.invoices.get(p["invoice_id"])
    company = invoice.company_wallet
    unsold = set(state.pool.tokens(invoice.invoice_id))
    state.invoices.deactivate(invoice.invoice_id)
    state.collateral.unregister_invoice(company, invoice.invoice_id)
    for token_id in invoice.token_ids():
        if token_id in unsold:
            continue
        holder = registry.owner_of(token_id)
        if holder != company:
            registry.transfer(holder, company, token_id)
    state.vault_cash -= p["redemption_amount"]


def _redemption_pool_funded(state: LedgerState, registry: AssetRegistry, p: dict) -> None:
    state.vault_cash += p["amount"]


_HANDLERS: dict[EventType, Handler] = {
    EventType.COLLATERAL_DEPOSITED: _collateral_deposited,
    EventType.COLLATERAL_WITHDRAWN: _collateral_withdrawn,
    EventType.INVOICE_TOKEN_CREATED: _invoice_token_created,
    EventType.INVOICE_TOKEN_PURCHASED: _invoice_token_purchased,
    EventType.TOKENS_REDEEMED: _tokens_redeemed,
    EventType.REDEMPTION_POOL_FUNDED: _redemption_pool_funded,
}


def apply_event(state: LedgerState, registry: AssetRegistry, event: LedgerEvent) -> None:
    """Apply one committed event and append it to the state's log."""
    if event.sequence != state.last_sequence + 1:
        raise LedgerReplayError(
            f"expected sequence {state.last_sequence + 1}, got {event.sequence}",
            event.sequence,
        )
    _HANDLERS[event.event_type](state, registry, event.payload)
    state.events.append(event)


def replay_events(
    state: LedgerState, registry: AssetRegistry, events: Iterable[LedgerEvent],
) -> int:
    """Apply events in order. Returns the number applied."""
    applied = 0
    for event in events:
        apply_event(state, registry, event)
        applied += 1
    return applied
