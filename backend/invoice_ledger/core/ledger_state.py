"""Ledger State - the single aggregate owning every mutable ledger collection.

Invariants:
    - vault_cash >= collateral.outstanding_total (collateral is always payable back)
    - available_pool_cash = vault_cash - collateral.outstanding_total
    - events is append-only; events[i].sequence == i + 1 (no gaps)
    - Pure dataclass, no IO, no locking: the engine serializes access

Design Decisions:
    - In-memory aggregate, persisted as a snapshot by the shell after each commit
    - Vault cash is tracked explicitly so redemption solvency is checkable
      without an external balance query
"""

from dataclasses import dataclass, field

from invoice_ledger.core.collateral_ledger import CollateralLedger
from invoice_ledger.core.domain_types import CompanyAddress, EventType
from invoice_ledger.core.events import LedgerEvent
from invoice_ledger.core.free_token_pool import FreeTokenPool
from invoice_ledger.core.invoice_registry import InvoiceRegistry


@dataclass
class LedgerState:
    collateral: CollateralLedger = field(default_factory=CollateralLedger)
    invoices: InvoiceRegistry = field(default_factory=InvoiceRegistry)
    pool: FreeTokenPool = field(default_factory=FreeTokenPool)
    vault_cash: int = 0
    events: list[LedgerEvent] = field(default_factory=list)

    # --- Computed properties ---------------------------------------------------

    @property
    def last_sequence(self) -> int:
        return self.events[-1].sequence if self.events else 0

    @property
    def available_pool_cash(self) -> int:
        """Cash held beyond what is owed back to companies as collateral."""
        return self.vault_cash - self.collateral.outstanding_total

    def locked_collateral(self, company: CompanyAddress) -> int:
        return self.collateral.locked_collateral(
            company, self.invoices.collateral_lookup,
        )

    def free_collateral(self, company: CompanyAddress) -> int:
        return self.collateral.free_collateral(
            company, self.invoices.collateral_lookup,
        )

    # --- Mutation methods --------------------------------------------------------

    def emit(self, event: tuple[EventType, dict]) -> LedgerEvent:
        event_type, payload = event
        record = LedgerEvent(self.last_sequence + 1, event_type, payload)
        self.events.append(record)
        return record

    def events_since(self, sequence: int) -> list[LedgerEvent]:
        # events[i].sequence == i + 1
        return self.events[max(sequence, 0):]
