"""Invoice Registry - invoice records and their lifecycle state.

Invariants:
    - invoice_id is unique; registering an existing id raises InvoiceAlreadyExistsError
    - company_wallet, token_price, tokens_total, collateral_deposited never change
    - tokens_remaining only decreases, never below zero
    - is_active goes True -> False exactly once (redemption); records are never removed
    - Reads return copies; callers cannot mutate registry state through them
"""

from dataclasses import dataclass, field, replace

from invoice_ledger.core.domain_types import (
    CompanyAddress, InvoiceId, InvoiceStatus, TokenId, token_id_for,
)
from invoice_ledger.core.errors import (
    InvoiceAlreadyExistsError, InvoiceNotActiveError, InvoiceNotFoundError,
    InsufficientTokensError,
)


@dataclass
class Invoice:
    invoice_id: InvoiceId
    total_invoice_amount: int
    token_price: int
    tokens_total: int
    tokens_remaining: int
    maturity_date: int
    company_wallet: CompanyAddress
    collateral_deposited: int
    ipfs_document_hash: str
    is_active: bool = True

    @property
    def status(self) -> InvoiceStatus:
        return InvoiceStatus.ACTIVE if self.is_active else InvoiceStatus.REDEEMED

    @property
    def tokens_sold(self) -> int:
        return self.tokens_total - self.tokens_remaining

    @property
    def face_value(self) -> int:
        """Full notional paid out at redemption."""
        return self.tokens_total * self.token_price

    def token_ids(self) -> list[TokenId]:
        return [token_id_for(self.invoice_id, i) for i in range(self.tokens_total)]

    def to_dict(self) -> dict:
        return {
            "invoice_id": self.invoice_id,
            "total_invoice_amount": self.total_invoice_amount,
            "token_price": self.token_price,
            "tokens_total": self.tokens_total,
            "tokens_remaining": self.tokens_remaining,
            "maturity_date": self.maturity_date,
            "company_wallet": self.company_wallet,
            "collateral_deposited": self.collateral_deposited,
            "ipfs_document_hash": self.ipfs_document_hash,
            "is_active": self.is_active,
        }


@dataclass
class InvoiceRegistry:
    invoices: dict[InvoiceId, Invoice] = field(default_factory=dict)

    def exists(self, invoice_id: InvoiceId) -> bool:
        return invoice_id in self.invoices

    def get(self, invoice_id: InvoiceId) -> Invoice:
        """Copy of the invoice record."""
        return replace(self._require(invoice_id))

    def collateral_lookup(self, invoice_id: InvoiceId) -> tuple[int, bool]:
        """(collateral_deposited, is_active); unknown ids lock nothing."""
        invoice = self.invoices.get(invoice_id)
        if invoice is None:
            return 0, False
        return invoice.collateral_deposited, invoice.is_active

    def register(self, invoice: Invoice) -> None:
        if invoice.invoice_id in self.invoices:
            raise InvoiceAlreadyExistsError(invoice.invoice_id)
        self.invoices[invoice.invoice_id] = replace(invoice)

    def consume_tokens(self, invoice_id: InvoiceId, amount: int) -> None:
        invoice = self._require(invoice_id)
        if amount > invoice.tokens_remaining:
            raise InsufficientTokensError(amount, invoice.tokens_remaining)
        invoice.tokens_remaining -= amount

    def deactivate(self, invoice_id: InvoiceId) -> None:
        invoice = self._require(invoice_id)
        if not invoice.is_active:
            raise InvoiceNotActiveError(invoice_id, "already redeemed")
        invoice.is_active = False

    def by_company(self, company: CompanyAddress) -> list[Invoice]:
        return [
            replace(inv) for inv in self.invoices.values()
            if inv.company_wallet == company
        ]

    def _require(self, invoice_id: InvoiceId) -> Invoice:
        invoice = self.invoices.get(invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id)
        return invoice
