"""Unit of Work - journaled inverses for state, events and registry calls.

Tests cover:
    - success keeps every change
    - an exception undoes collateral, vault, index, invoice, pool, registry and
      event changes in reverse order
    - engine operations never serialize the whole ledger
"""

import pytest

from invoice_ledger.core import events
from invoice_ledger.core.errors import InvalidAmountError, TokenPaymentTransferFailedError
from invoice_ledger.core.invoice_registry import Invoice
from invoice_ledger.core.ledger_state import LedgerState
from invoice_ledger.infrastructure.asset_registry import InMemoryAssetRegistry
from invoice_ledger.services.unit_of_work import UnitOfWork
from tests.ledger_fixtures import BUYER, DOC_HASH, ISSUER, MATURITY


def _invoice(invoice_id: int = 1) -> Invoice:
    return Invoice(
        invoice_id=invoice_id, total_invoice_amount=3000, token_price=1000,
        tokens_total=3, tokens_remaining=3, maturity_date=MATURITY,
        company_wallet="0xA", collateral_deposited=2400,
        ipfs_document_hash=DOC_HASH,
    )


def test_success_keeps_changes():
    state = LedgerState()
    registry = InMemoryAssetRegistry()
    with UnitOfWork(state, registry, "op") as uow:
        uow.credit_collateral("0xA", 10)
        uow.adjust_vault(10)
        uow.mint("0xA", 1)
        uow.emit(events.collateral_deposited("0xA", 10))
    assert state.collateral.total_of("0xA") == 10
    assert state.vault_cash == 10
    assert registry.owner_of(1) == "0xA"
    assert state.last_sequence == 1


def test_exception_restores_everything():
    state = LedgerState()
    registry = InMemoryAssetRegistry({5: "0xA"})
    state.collateral.deposit("0xA", 10_000)
    state.vault_cash = 10_000
    state.emit(events.collateral_deposited("0xA", 10_000))
    events_before = list(state.events)

    with pytest.raises(InvalidAmountError):
        with UnitOfWork(state, registry, "op") as uow:
            uow.credit_collateral("0xA", 90)
            uow.debit_collateral("0xA", 50)
            uow.adjust_vault(40)
            uow.register_invoice(_invoice())
            for token_id in (1_000_000, 1_000_001, 1_000_002):
                uow.mint("0xA", token_id)
                uow.push_token(1, token_id)
            uow.index_invoice("0xA", 1)
            uow.consume_tokens(1, 1)
            uow.transfer("0xA", "0xB", uow.pop_token(1))
            uow.transfer("0xA", "0xB", 5)
            uow.transfer("0xB", "0xC", 5)
            uow.emit(events.collateral_deposited("0xA", 90))
            uow.credit_collateral("0xA", 0)

    assert state.collateral.total_of("0xA") == 10_000
    assert state.vault_cash == 10_000
    assert state.events == events_before
    assert not state.invoices.exists(1)
    assert state.pool.size(1) == 0
    assert state.collateral.invoices_of("0xA") == []
    assert registry.owner_of(5) == "0xA"
    assert len(registry) == 1


def test_redemption_steps_undone():
    state = LedgerState()
    registry = InMemoryAssetRegistry()
    state.invoices.register(_invoice(1))
    state.invoices.register(_invoice(2))
    state.collateral.register_invoice("0xA", 1)
    state.collateral.register_invoice("0xA", 2)

    with pytest.raises(RuntimeError):
        with UnitOfWork(state, registry, "op") as uow:
            uow.deactivate(1)
            uow.unindex_invoice("0xA", 1)
            raise RuntimeError("payout failed")

    assert state.invoices.get(1).is_active
    assert state.collateral.invoices_of("0xA") == [1, 2]


def test_operations_do_not_copy_the_ledger(engine, gateway, issued_invoice, monkeypatch):
    def refuse(*args, **kwargs):
        raise AssertionError("whole-ledger serialization inside an operation")

    monkeypatch.setattr("invoice_ledger.core.ledger_snapshot.ledger_to_snapshot", refuse)
    monkeypatch.setattr("invoice_ledger.services.tokenization_engine.ledger_to_snapshot", refuse)

    engine.purchase_token(BUYER, 1, 1, 1000)
    gateway.reject(ISSUER)
    with pytest.raises(TokenPaymentTransferFailedError):
        engine.purchase_token(BUYER, 1, 1, 1000)
    assert engine.get_invoice(1).tokens_remaining == 9
    assert engine.free_tokens(1)[-1] == 1_000_008
