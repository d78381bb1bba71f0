"""Issuance Enforcement - validates invoice parameters before any state change.

Invariants:
    - All functions are PURE: no IO, no state mutation
    - Each violation raises a distinct error naming the offending field
    - validate_issuance chains all checks in a fixed order; first error wins
"""

from invoice_ledger.core.domain_types import MAX_TOKENS_PER_INVOICE
from invoice_ledger.core.errors import (
    InvalidDocumentHashError, InvalidInvoiceAmountError, InvalidInvoiceIdError,
    InvalidMaturityDateError, InvalidTokenAmountError, InvalidTokenPriceError,
)


def check_invoice_id(invoice_id: int) -> None:
    if invoice_id < 0:
        raise InvalidInvoiceIdError(invoice_id)


def check_invoice_amount(total_invoice_amount: int) -> None:
    if total_invoice_amount <= 0:
        raise InvalidInvoiceAmountError()


def check_token_price(token_price: int) -> None:
    if token_price <= 0:
        raise InvalidTokenPriceError()


def check_tokens_total(tokens_total: int) -> None:
    """Sequence numbers must fit below the token id multiplier."""
    if tokens_total <= 0 or tokens_total > MAX_TOKENS_PER_INVOICE:
        raise InvalidTokenAmountError(MAX_TOKENS_PER_INVOICE)


def check_maturity_in_future(maturity_date: int, now: int) -> None:
    if maturity_date <= now:
        raise InvalidMaturityDateError(
            f"maturity_date {maturity_date} must be in the future (now {now})",
        )


def check_document_hash(ipfs_document_hash: str) -> None:
    if not ipfs_document_hash or not ipfs_document_hash.strip():
        raise InvalidDocumentHashError()


def validate_issuance(
    invoice_id: int,
    total_invoice_amount: int,
    token_price: int,
    tokens_total: int,
    maturity_date: int,
    ipfs_document_hash: str,
    now: int,
) -> None:
    """Run every issuance check. Raises the first violation."""
    check_invoice_id(invoice_id)
    check_invoice_amount(total_invoice_amount)
    check_token_price(token_price)
    check_tokens_total(tokens_total)
    check_maturity_in_future(maturity_date, now)
    check_document_hash(ipfs_document_hash)
