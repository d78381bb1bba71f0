"""Unit of Work - all-or-nothing execution of one engine operation.

Invariants:
    - Every state mutation inside an operation goes through the unit, which
      records its inverse before returning
    - Asset registry calls are journaled the same way (mint -> burn,
      transfer -> reverse transfer)
    - On any exception: inverses run in reverse order, events appended since
      entry are dropped, and the exception propagates unchanged
    - On success nothing is undone
    - Cost is proportional to the operation's own mutations, never to ledger size

Design Decisions:
    - Undo closures instead of a state snapshot: a one-token purchase journals
      a handful of entries whatever the number of invoices and pools
    - Inverses write the aggregate's fields directly; they restore values
      captured at mutation time and skip the business checks
"""

import logging
from typing import Callable

from invoice_ledger.core.boundary_protocols import AssetRegistry
from invoice_ledger.core.domain_types import CompanyAddress, EventType, InvoiceId, TokenId
from invoice_ledger.core.errors import LedgerError
from invoice_ledger.core.events import LedgerEvent
from invoice_ledger.core.invoice_registry import Invoice
from invoice_ledger.core.ledger_state import LedgerState

logger = logging.getLogger(__name__)

Undo = Callable[[], None]


class UnitOfWork:

    def __init__(self, state: LedgerState, registry: AssetRegistry, operation: str):
        self._state = state
        self._registry = registry
        self.operation = operation
        self._event_count = 0
        self._journal: list[Undo] = []

    def __enter__(self) -> "UnitOfWork":
        self._event_count = len(self._state.events)
        self._journal = []
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self.rollback(exc)
        return False

    # --- Collateral and vault --------------------------------------------------

    def credit_collateral(self, company: CompanyAddress, amount: int) -> None:
        self._state.collateral.deposit(company, amount)
        self._journal.append(lambda: self._restore_total(company, -amount))

    def debit_collateral(self, company: CompanyAddress, amount: int) -> None:
        self._state.collateral.debit(
            company, amount, self._state.invoices.collateral_lookup,
        )
        self._journal.append(lambda: self._restore_total(company, amount))

    def adjust_vault(self, delta: int) -> None:
        self._state.vault_cash += delta
        self._journal.append(lambda: setattr(
            self._state, "vault_cash", self._state.vault_cash - delta,
        ))

    def index_invoice(self, company: CompanyAddress, invoice_id: InvoiceId) -> None:
        self._state.collateral.register_invoice(company, invoice_id)
        self._journal.append(
            lambda: self._state.collateral.unregister_invoice(company, invoice_id),
        )

    def unindex_invoice(self, company: CompanyAddress, invoice_id: InvoiceId) -> None:
        ids = self._state.collateral.active_invoices.get(company, [])
        position = ids.index(invoice_id) if invoice_id in ids else None
        self._state.collateral.unregister_invoice(company, invoice_id)
        if position is not None:
            self._journal.append(
                lambda: self._reindex(company, invoice_id, position),
            )

    # --- Invoices and pools ------------------------------------------------------

    def register_invoice(self, invoice: Invoice) -> None:
        self._state.invoices.register(invoice)
        self._journal.append(
            lambda: self._state.invoices.invoices.pop(invoice.invoice_id, None),
        )

    def consume_tokens(self, invoice_id: InvoiceId, amount: int) -> None:
        self._state.invoices.consume_tokens(invoice_id, amount)
        self._journal.append(lambda: self._restock(invoice_id, amount))

    def deactivate(self, invoice_id: InvoiceId) -> None:
        self._state.invoices.deactivate(invoice_id)
        self._journal.append(
            lambda: setattr(self._record(invoice_id), "is_active", True),
        )

    def push_token(self, invoice_id: InvoiceId, token_id: TokenId) -> None:
        self._state.pool.push(invoice_id, token_id)
        self._journal.append(lambda: self._state.pool.pop(invoice_id))

    def pop_token(self, invoice_id: InvoiceId) -> TokenId:
        token_id = self._state.pool.pop(invoice_id)
        self._journal.append(lambda: self._state.pool.push(invoice_id, token_id))
        return token_id

    # --- Registry -------------------------------------------------------------------

    def mint(self, owner: CompanyAddress, token_id: TokenId) -> None:
        self._registry.mint(owner, token_id)
        self._journal.append(lambda: self._registry.burn(token_id))

    def transfer(
        self, sender: CompanyAddress, recipient: CompanyAddress, token_id: TokenId,
    ) -> None:
        self._registry.transfer(sender, recipient, token_id)
        self._journal.append(
            lambda: self._registry.transfer(recipient, sender, token_id),
        )

    # --- Events ---------------------------------------------------------------------

    def emit(self, event: tuple[EventType, dict]) -> LedgerEvent:
        return self._state.emit(event)

    # --- Rollback -------------------------------------------------------------------

    def rollback(self, exc: BaseException | None = None) -> None:
        for undo in reversed(self._journal):
            undo()
        self._journal = []
        del self._state.events[self._event_count:]

        code = exc.code if isinstance(exc, LedgerError) else type(exc).__name__
        logger.warning(
            f"Rolled back {self.operation}",
            extra={"operation": self.operation, "error_code": code},
        )

    def _record(self, invoice_id: InvoiceId) -> Invoice:
        return self._state.invoices.invoices[invoice_id]

    def _reindex(
        self, company: CompanyAddress, invoice_id: InvoiceId, position: int,
    ) -> None:
        self._state.collateral.active_invoices.setdefault(company, []).insert(
            position, invoice_id,
        )

    def _restock(self, invoice_id: InvoiceId, amount: int) -> None:
        self._record(invoice_id).tokens_remaining += amount

    def _restore_total(self, company: CompanyAddress, delta: int) -> None:
        totals = self._state.collateral.total_collateral
        restored = totals.get(company, 0) + delta
        if restored:
            totals[company] = restored
        else:
            totals.pop(company, None)
