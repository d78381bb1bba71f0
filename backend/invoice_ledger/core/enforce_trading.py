"""Trading Enforcement - purchase and redemption preconditions.

Invariants:
    - All functions are PURE: they read an Invoice copy and raise, never mutate
    - Purchase window is [creation, maturity); redemption window is [maturity, ∞)
      so no instant allows both
    - Redemption always requires the full face value in pooled cash
"""

from invoice_ledger.core.domain_types import invoice_id_of
from invoice_ledger.core.errors import (
    IncorrectPaymentAmountError, InsufficientFundsToRedeemError,
    InsufficientTokensError, InvalidAmountError, InvalidMaturityDateError,
    InvoiceNotActiveError, NotTokenHolderError,
)
from invoice_ledger.core.invoice_registry import Invoice


def check_purchasable(invoice: Invoice, now: int) -> None:
    if not invoice.is_active:
        raise InvoiceNotActiveError(invoice.invoice_id, "already redeemed")
    if now >= invoice.maturity_date:
        raise InvoiceNotActiveError(invoice.invoice_id, "maturity date has passed")


def check_token_amount(token_amount: int) -> None:
    if token_amount <= 0:
        raise InvalidAmountError("token_amount")


def check_exact_payment(invoice: Invoice, token_amount: int, payment: int) -> None:
    expected = token_amount * invoice.token_price
    if payment != expected:
        raise IncorrectPaymentAmountError(payment, expected)


def check_supply(invoice: Invoice, token_amount: int) -> None:
    if token_amount > invoice.tokens_remaining:
        raise InsufficientTokensError(token_amount, invoice.tokens_remaining)


def validate_purchase(
    invoice: Invoice, token_amount: int, payment: int, now: int,
) -> None:
    """Chain all purchase checks. Raises the first violation."""
    check_purchasable(invoice, now)
    check_token_amount(token_amount)
    check_exact_payment(invoice, token_amount, payment)
    check_supply(invoice, token_amount)


def check_redeemable(invoice: Invoice, now: int) -> None:
    if not invoice.is_active:
        raise InvoiceNotActiveError(invoice.invoice_id, "already redeemed")
    if now < invoice.maturity_date:
        raise InvalidMaturityDateError(
            f"invoice {invoice.invoice_id} matures at {invoice.maturity_date} (now {now})",
        )


def check_requester_token(
    invoice: Invoice, token_id: int, holder: str | None, requester: str,
) -> None:
    """requester must currently hold token_id and it must belong to this invoice."""
    if invoice_id_of(token_id) != invoice.invoice_id or holder != requester:
        raise NotTokenHolderError(token_id, requester)


def check_redemption_funds(available_pool_cash: int, redemption_amount: int) -> None:
    if available_pool_cash < redemption_amount:
        raise InsufficientFundsToRedeemError(available_pool_cash, redemption_amount)
