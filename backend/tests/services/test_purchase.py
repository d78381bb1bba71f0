"""Token purchase - exact payment, stack order, issuer payout.

Tests cover:
    - first buyer receives the highest-sequence token
    - payment forwarded to the issuer, vault cash unchanged
    - incorrect payment / over-supply / unknown invoice change nothing
    - purchases stop at maturity
    - rejected issuer payout rolls the whole purchase back
"""

import pytest

from invoice_ledger.core.domain_types import EventType
from invoice_ledger.core.errors import (
    IncorrectPaymentAmountError, InsufficientTokensError, InvalidAmountError,
    InvoiceNotActiveError, InvoiceNotFoundError, TokenPaymentTransferFailedError,
)
from tests.ledger_fixtures import BUYER, ISSUER, MATURITY, OTHER_BUYER


def test_purchase_two_tokens(engine, registry, gateway, issued_invoice):
    vault_before = engine.vault_cash
    receipt = engine.purchase_token(BUYER, 1, 2, 2000)

    assert receipt.token_ids == (1_000_009, 1_000_008)
    assert receipt.payment_amount == 2000
    assert registry.owner_of(1_000_009) == BUYER
    assert registry.owner_of(1_000_008) == BUYER
    assert engine.get_invoice(1).tokens_remaining == 8
    assert len(engine.free_tokens(1)) == 8
    assert gateway.total_received(ISSUER) == 2000
    assert engine.vault_cash == vault_before


def test_first_buyer_gets_last_minted_token(engine, registry, issued_invoice):
    receipt = engine.purchase_token(BUYER, 1, 1, 1000)
    assert receipt.token_ids == (1 * 10**6 + 9,)
    second = engine.purchase_token(OTHER_BUYER, 1, 1, 1000)
    assert second.token_ids == (1_000_008,)


def test_purchase_event(engine, issued_invoice):
    receipt = engine.purchase_token(BUYER, 1, 3, 3000)
    assert receipt.event.event_type == EventType.INVOICE_TOKEN_PURCHASED
    assert receipt.event.payload == {
        "invoice_id": 1, "buyer": BUYER, "token_amount": 3, "payment_amount": 3000,
    }
    assert engine.events()[-1] == receipt.event


@pytest.mark.parametrize("payment", [1999, 2001])
def test_incorrect_payment(engine, gateway, issued_invoice, payment):
    with pytest.raises(IncorrectPaymentAmountError):
        engine.purchase_token(BUYER, 1, 2, payment)
    assert engine.get_invoice(1).tokens_remaining == 10
    assert gateway.transfers == []


def test_over_supply_changes_nothing(engine, registry, issued_invoice):
    engine.purchase_token(BUYER, 1, 8, 8000)
    sequence = engine.last_sequence
    with pytest.raises(InsufficientTokensError):
        engine.purchase_token(OTHER_BUYER, 1, 3, 3000)
    assert engine.get_invoice(1).tokens_remaining == 2
    assert registry.tokens_of(OTHER_BUYER) == []
    assert engine.last_sequence == sequence


def test_sell_out(engine, registry, issued_invoice):
    engine.purchase_token(BUYER, 1, 10, 10_000)
    assert engine.free_tokens(1) == []
    assert registry.tokens_of(BUYER) == [1_000_000 + i for i in range(10)]
    with pytest.raises(InsufficientTokensError):
        engine.purchase_token(OTHER_BUYER, 1, 1, 1000)


def test_zero_tokens_rejected(engine, issued_invoice):
    with pytest.raises(InvalidAmountError):
        engine.purchase_token(BUYER, 1, 0, 0)


def test_unknown_invoice(engine):
    with pytest.raises(InvoiceNotFoundError):
        engine.purchase_token(BUYER, 99, 1, 1000)


def test_purchase_closed_at_maturity(engine, clock, issued_invoice):
    clock.move_to(MATURITY)
    with pytest.raises(InvoiceNotActiveError):
        engine.purchase_token(BUYER, 1, 1, 1000)


def test_rejected_payout_rolls_back(engine, registry, gateway, issued_invoice):
    sequence = engine.last_sequence
    vault_before = engine.vault_cash
    gateway.reject(ISSUER)

    with pytest.raises(TokenPaymentTransferFailedError) as exc:
        engine.purchase_token(BUYER, 1, 2, 2000)

    assert exc.value.recipient == ISSUER
    assert engine.get_invoice(1).tokens_remaining == 10
    assert engine.free_tokens(1) == [1_000_000 + i for i in range(10)]
    assert registry.tokens_of(BUYER) == []
    assert registry.owner_of(1_000_009) == ISSUER
    assert engine.vault_cash == vault_before
    assert engine.last_sequence == sequence

    gateway.accept(ISSUER)
    receipt = engine.purchase_token(BUYER, 1, 2, 2000)
    assert receipt.token_ids == (1_000_009, 1_000_008)
