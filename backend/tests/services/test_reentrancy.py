"""Reentrancy - recipients calling back into the engine during a payout.

Tests cover:
    - a nested withdraw from inside the payout is rejected with ReentrantCallError
    - the outer call still completes exactly once
    - an escaping reentrant error rolls the outer call back
    - the guard is released after both success and failure
    - other threads wait instead of failing
    - errors leaving an operation carry its name, caller and invoice id
"""

import threading

import pytest

from invoice_ledger.core.errors import (
    CollateralTransferFailedError, IncorrectPaymentAmountError, ReentrantCallError,
)
from tests.ledger_fixtures import BUYER, ISSUER


def test_nested_withdraw_rejected(engine, gateway):
    engine.deposit_collateral(ISSUER, 1000)
    attempts = []

    def hook(amount):
        try:
            engine.withdraw_collateral(ISSUER, amount)
        except ReentrantCallError as exc:
            attempts.append(exc)
        return True

    gateway.on_receive(ISSUER, hook)
    engine.withdraw_collateral(ISSUER, 600)

    assert len(attempts) == 1
    assert attempts[0].active_operation == "withdraw_collateral"
    assert engine.total_collateral(ISSUER) == 400
    assert gateway.total_received(ISSUER) == 600


def test_escaping_reentrant_error_rolls_back(engine, gateway):
    engine.deposit_collateral(ISSUER, 1000)
    gateway.on_receive(ISSUER, lambda amount: engine.withdraw_collateral(ISSUER, amount))

    with pytest.raises(ReentrantCallError):
        engine.withdraw_collateral(ISSUER, 600)

    assert engine.total_collateral(ISSUER) == 1000
    assert engine.vault_cash == 1000
    assert gateway.total_received(ISSUER) == 0


def test_nested_purchase_rejected(engine, registry, gateway, issued_invoice):
    def hook(amount):
        engine.purchase_token(BUYER, 1, 1, 1000)
        return True

    gateway.on_receive(ISSUER, hook)
    with pytest.raises(ReentrantCallError):
        engine.purchase_token(BUYER, 1, 1, 1000)
    assert registry.tokens_of(BUYER) == []
    assert engine.get_invoice(1).tokens_remaining == 10


def test_guard_released_after_failure(engine, gateway):
    engine.deposit_collateral(ISSUER, 1000)
    gateway.reject(ISSUER)
    with pytest.raises(CollateralTransferFailedError):
        engine.withdraw_collateral(ISSUER, 10)
    gateway.accept(ISSUER)
    engine.withdraw_collateral(ISSUER, 10)
    assert engine.total_collateral(ISSUER) == 990


def test_other_threads_are_serialized(engine):
    errors = []

    def deposit():
        try:
            for _ in range(50):
                engine.deposit_collateral(ISSUER, 1)
        except ReentrantCallError as exc:
            errors.append(exc)

    threads = [threading.Thread(target=deposit) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert engine.total_collateral(ISSUER) == 200
    assert [e.sequence for e in engine.events()] == list(range(1, 201))


def test_error_context_names_operation(engine, issued_invoice):
    with pytest.raises(IncorrectPaymentAmountError) as exc_info:
        engine.purchase_token(BUYER, 1, 2, 1999)
    context = exc_info.value.context
    assert context.operation == "purchase_token"
    assert context.company == BUYER
    assert context.invoice_id == 1


def test_error_context_keeps_innermost_operation(engine, gateway, issued_invoice):
    gateway.on_receive(ISSUER, lambda amount: engine.purchase_token(BUYER, 1, 1, 1000))

    with pytest.raises(ReentrantCallError) as exc_info:
        engine.withdraw_collateral(ISSUER, 100)
    context = exc_info.value.context
    assert context.operation == "purchase_token"
    assert context.company == BUYER
    assert context.invoice_id == 1
