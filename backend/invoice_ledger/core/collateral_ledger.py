"""Collateral Ledger - per-company collateral balances and the active-invoice index.

Invariants:
    - total_collateral changes only through deposit / debit (deposit, withdraw)
    - locked(company) = Σ collateral_deposited of the company's still-active invoices
    - free(company) = total - locked >= 0 after every committed operation
    - Unknown companies read as zero total, zero locked, no invoices

Design Decisions:
    - Locking is expressed by index membership, not by moving balances:
      registering an invoice moves its collateral from free to locked,
      unregistering (redemption) moves it back
    - Invoice lookup is passed in, so this module stays independent of the registry
"""

from dataclasses import dataclass, field
from typing import Callable

from invoice_ledger.core.domain_types import CompanyAddress, InvoiceId
from invoice_ledger.core.errors import InvalidAmountError, InsufficientCollateralError

# Returns (collateral_deposited, is_active) for an invoice id
InvoiceLookup = Callable[[InvoiceId], tuple[int, bool]]


@dataclass
class CollateralLedger:
    """Company balances plus the ids of invoices holding collateral locked."""

    total_collateral: dict[CompanyAddress, int] = field(default_factory=dict)
    active_invoices: dict[CompanyAddress, list[InvoiceId]] = field(default_factory=dict)

    # --- Reads ----------------------------------------------------------------

    def total_of(self, company: CompanyAddress) -> int:
        return self.total_collateral.get(company, 0)

    def locked_collateral(
        self, company: CompanyAddress, lookup: InvoiceLookup,
    ) -> int:
        """Sum collateral of the company's indexed invoices that are still active."""
        locked = 0
        for invoice_id in self.active_invoices.get(company, []):
            deposited, is_active = lookup(invoice_id)
            if is_active:
                locked += deposited
        return locked

    def free_collateral(
        self, company: CompanyAddress, lookup: InvoiceLookup,
    ) -> int:
        return self.total_of(company) - self.locked_collateral(company, lookup)

    def invoices_of(self, company: CompanyAddress) -> list[InvoiceId]:
        return list(self.active_invoices.get(company, []))

    @property
    def outstanding_total(self) -> int:
        """Collateral owed back to all companies combined."""
        return sum(self.total_collateral.values())

    # --- Mutations ------------------------------------------------------------

    def deposit(self, company: CompanyAddress, amount: int) -> None:
        if amount <= 0:
            raise InvalidAmountError("amount")
        self.total_collateral[company] = self.total_of(company) + amount

    def debit(
        self, company: CompanyAddress, amount: int, lookup: InvoiceLookup,
    ) -> None:
        """Remove free collateral (withdrawal). Fails if it would dip into locked."""
        if amount <= 0:
            raise InvalidAmountError("amount")
        available = self.free_collateral(company, lookup)
        if available < amount:
            raise InsufficientCollateralError(available, amount)
        self.total_collateral[company] = self.total_of(company) - amount

    def ensure_free(
        self, company: CompanyAddress, required: int, lookup: InvoiceLookup,
    ) -> None:
        available = self.free_collateral(company, lookup)
        if available < required:
            raise InsufficientCollateralError(available, required)

    def register_invoice(self, company: CompanyAddress, invoice_id: InvoiceId) -> None:
        self.active_invoices.setdefault(company, []).append(invoice_id)

    def unregister_invoice(self, company: CompanyAddress, invoice_id: InvoiceId) -> None:
        invoices = self.active_invoices.get(company, [])
        if invoice_id in invoices:
            invoices.remove(invoice_id)
