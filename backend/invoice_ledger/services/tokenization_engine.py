"""Tokenization Engine - issuance, purchase and redemption over the collateral ledger.

Invariants:
    - Every mutating operation runs under the reentrancy guard and inside a UnitOfWork
    - Checks first, then state effects, then the single outbound transfer last
    - A rejected outbound transfer raises a *TransferFailedError and leaves no
      visible trace: balances, counters, pools, token ownership and events restored
    - free(company) >= 0, |pool(invoice)| == tokens_remaining(invoice) and
      vault_cash >= Σ total_collateral hold after every call
    - Reads return copies

Design Decisions:
    - Caller identity (`sender`) and attached value (`payment` / `amount`) are
      explicit arguments; there is no ambient request context in the core
    - Collaborators injected: AssetRegistry, TransferGateway, Clock
"""

import logging
import time
from dataclasses import dataclass

from invoice_ledger.core.boundary_protocols import AssetRegistry, Clock, TransferGateway
from invoice_ledger.core.domain_types import (
    CompanyAddress, InvoiceId, LedgerOperation, TokenId,
    invoice_id_of, required_collateral, token_id_for,
)
from invoice_ledger.core.enforce_issuance import validate_issuance
from invoice_ledger.core.enforce_trading import (
    check_redeemable, check_redemption_funds, check_requester_token, validate_purchase,
)
from invoice_ledger.core.errors import (
    CollateralTransferFailedError, InvalidAmountError, InvoiceAlreadyExistsError,
    RedemptionPaymentTransferFailedError, TokenPaymentTransferFailedError,
    TransferFailedError,
)
from invoice_ledger.core import events
from invoice_ledger.core.events import LedgerEvent
from invoice_ledger.core.invoice_registry import Invoice
from invoice_ledger.core.ledger_snapshot import ledger_to_snapshot
from invoice_ledger.core.ledger_state import LedgerState
from invoice_ledger.services.reentrancy_guard import ReentrancyGuard, nonreentrant
from invoice_ledger.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


def wall_clock() -> int:
    return int(time.time())


@dataclass(frozen=True)
class PurchaseReceipt:
    invoice_id: InvoiceId
    buyer: CompanyAddress
    token_ids: tuple[TokenId, ...]
    payment_amount: int
    event: LedgerEvent


@dataclass(frozen=True)
class RedemptionReceipt:
    invoice_id: InvoiceId
    user: CompanyAddress
    token_amount: int
    redemption_amount: int
    event: LedgerEvent


class TokenizationEngine:
    """Single entry point for every ledger mutation."""

    def __init__(
        self,
        registry: AssetRegistry,
        gateway: TransferGateway,
        clock: Clock | None = None,
        state: LedgerState | None = None,
    ):
        self._registry = registry
        self._gateway = gateway
        self._clock = clock or wall_clock
        self._state = state or LedgerState()
        self._guard = ReentrancyGuard()

    # --- Reads ------------------------------------------------------------------

    def total_collateral(self, company: CompanyAddress) -> int:
        return self._state.collateral.total_of(company)

    def locked_collateral(self, company: CompanyAddress) -> int:
        return self._state.locked_collateral(company)

    def free_collateral(self, company: CompanyAddress) -> int:
        return self._state.free_collateral(company)

    def company_invoices(self, company: CompanyAddress) -> list[InvoiceId]:
        """Ids in the company's active-invoice index."""
        return self._state.collateral.invoices_of(company)

    def get_invoice(self, invoice_id: InvoiceId) -> Invoice:
        return self._state.invoices.get(invoice_id)

    def invoices_by_company(self, company: CompanyAddress) -> list[Invoice]:
        """Every invoice the company issued, redeemed ones included."""
        return self._state.invoices.by_company(company)

    def free_tokens(self, invoice_id: InvoiceId) -> list[TokenId]:
        self._state.invoices.get(invoice_id)
        return self._state.pool.tokens(invoice_id)

    def owner_of(self, token_id: TokenId) -> CompanyAddress:
        return self._registry.owner_of(token_id)

    def events(self, since: int = 0) -> list[LedgerEvent]:
        return self._state.events_since(since)

    @property
    def last_sequence(self) -> int:
        return self._state.last_sequence

    @property
    def vault_cash(self) -> int:
        return self._state.vault_cash

    @property
    def available_pool_cash(self) -> int:
        return self._state.available_pool_cash

    @property
    def outstanding_collateral(self) -> int:
        return self._state.collateral.outstanding_total

    def snapshot(self, include_events: bool = True) -> dict:
        return ledger_to_snapshot(self._state, include_events=include_events)

    # --- Collateral -------------------------------------------------------------

    @nonreentrant(LedgerOperation.DEPOSIT_COLLATERAL)
    def deposit_collateral(self, sender: CompanyAddress, amount: int) -> LedgerEvent:
        """Lock `amount` of attached value as collateral for `sender`."""
        with self._unit(LedgerOperation.DEPOSIT_COLLATERAL) as uow:
            uow.credit_collateral(sender, amount)
            uow.adjust_vault(amount)
            event = uow.emit(events.collateral_deposited(sender, amount))
        logger.info(
            f"Collateral deposited: {amount}",
            extra={"operation": "deposit_collateral", "company": sender},
        )
        return event

    @nonreentrant(LedgerOperation.WITHDRAW_COLLATERAL)
    def withdraw_collateral(self, sender: CompanyAddress, amount: int) -> LedgerEvent:
        """Return free collateral to `sender`. Balance is debited before paying out."""
        with self._unit(LedgerOperation.WITHDRAW_COLLATERAL) as uow:
            uow.debit_collateral(sender, amount)
            uow.adjust_vault(-amount)
            event = uow.emit(events.collateral_withdrawn(sender, amount))
            self._pay(sender, amount, CollateralTransferFailedError)
        logger.info(
            f"Collateral withdrawn: {amount}",
            extra={"operation": "withdraw_collateral", "company": sender},
        )
        return event

    @nonreentrant(LedgerOperation.FUND_REDEMPTION_POOL)
    def fund_redemption_pool(self, sender: CompanyAddress, amount: int) -> LedgerEvent:
        """Accept cash that is not collateral; it backs future redemptions."""
        if amount <= 0:
            raise InvalidAmountError("amount")
        with self._unit(LedgerOperation.FUND_REDEMPTION_POOL) as uow:
            uow.adjust_vault(amount)
            event = uow.emit(events.redemption_pool_funded(sender, amount))
        logger.info(
            f"Redemption pool funded: {amount}",
            extra={"operation": "fund_redemption_pool", "company": sender},
        )
        return event

    # --- Issuance -----------------------------------------------------------------

    @nonreentrant(LedgerOperation.CREATE_INVOICE_TOKEN)
    def create_invoice_token(
        self,
        sender: CompanyAddress,
        invoice_id: InvoiceId,
        total_invoice_amount: int,
        token_price: int,
        tokens_total: int,
        maturity_date: int,
        ipfs_document_hash: str,
    ) -> Invoice:
        """Lock 80% of face value and mint `tokens_total` claims to the issuer."""
        validate_issuance(
            invoice_id, total_invoice_amount, token_price, tokens_total,
            maturity_date, ipfs_document_hash, self._clock(),
        )
        if self._state.invoices.exists(invoice_id):
            raise InvoiceAlreadyExistsError(invoice_id)
        required = required_collateral(token_price, tokens_total)
        self._state.collateral.ensure_free(
            sender, required, self._state.invoices.collateral_lookup,
        )

        with self._unit(LedgerOperation.CREATE_INVOICE_TOKEN) as uow:
            uow.register_invoice(Invoice(
                invoice_id=invoice_id,
                total_invoice_amount=total_invoice_amount,
                token_price=token_price,
                tokens_total=tokens_total,
                tokens_remaining=tokens_total,
                maturity_date=maturity_date,
                company_wallet=sender,
                collateral_deposited=required,
                ipfs_document_hash=ipfs_document_hash,
            ))
            for sequence in range(tokens_total):
                token_id = token_id_for(invoice_id, sequence)
                uow.mint(sender, token_id)
                uow.push_token(invoice_id, token_id)
            uow.index_invoice(sender, invoice_id)
            uow.emit(events.invoice_token_created(
                invoice_id, total_invoice_amount, token_price, tokens_total,
                ipfs_document_hash, sender, maturity_date,
            ))
        logger.info(
            f"Invoice {invoice_id} tokenized: {tokens_total} x {token_price}",
            extra={
                "operation": "create_invoice_token",
                "company": sender, "invoice_id": invoice_id,
            },
        )
        return self._state.invoices.get(invoice_id)

    # --- Purchase -------------------------------------------------------------------

    @nonreentrant(LedgerOperation.PURCHASE_TOKEN)
    def purchase_token(
        self,
        sender: CompanyAddress,
        invoice_id: InvoiceId,
        token_amount: int,
        payment: int,
    ) -> PurchaseReceipt:
        """Sell `token_amount` claims for exactly token_amount * token_price."""
        invoice = self._state.invoices.get(invoice_id)
        validate_purchase(invoice, token_amount, payment, self._clock())

        with self._unit(LedgerOperation.PURCHASE_TOKEN) as uow:
            uow.adjust_vault(payment)
            uow.consume_tokens(invoice_id, token_amount)
            bought = []
            for _ in range(token_amount):
                token_id = uow.pop_token(invoice_id)
                uow.transfer(invoice.company_wallet, sender, token_id)
                bought.append(token_id)
            uow.adjust_vault(-payment)
            event = uow.emit(events.invoice_token_purchased(
                invoice_id, sender, token_amount, payment,
            ))
            self._pay(invoice.company_wallet, payment, TokenPaymentTransferFailedError)
        logger.info(
            f"Invoice {invoice_id}: {token_amount} token(s) sold to {sender}",
            extra={"operation": "purchase_token", "invoice_id": invoice_id},
        )
        return PurchaseReceipt(invoice_id, sender, tuple(bought), payment, event)

    # --- Redemption -------------------------------------------------------------------

    @nonreentrant(LedgerOperation.REDEEM_TOKENS)
    def redeem_tokens(
        self,
        sender: CompanyAddress,
        invoice_id: InvoiceId,
        requester_token_id: TokenId | None = None,
    ) -> RedemptionReceipt:
        """Retire a matured invoice: release collateral, recall tokens, pay face value."""
        invoice = self._state.invoices.get(invoice_id)
        check_redeemable(invoice, self._clock())
        if requester_token_id is not None:
            check_requester_token(
                invoice, requester_token_id,
                self._holder_within(invoice, requester_token_id), sender,
            )
        redemption_amount = invoice.face_value
        check_redemption_funds(self._state.available_pool_cash, redemption_amount)

        company = invoice.company_wallet
        with self._unit(LedgerOperation.REDEEM_TOKENS) as uow:
            unsold = set(self._state.pool.tokens(invoice_id))
            uow.deactivate(invoice_id)
            uow.unindex_invoice(company, invoice_id)
            for token_id in invoice.token_ids():
                if token_id in unsold:
                    continue
                holder = self._registry.owner_of(token_id)
                if holder != company:
                    uow.transfer(holder, company, token_id)
            uow.adjust_vault(-redemption_amount)
            event = uow.emit(events.tokens_redeemed(
                invoice_id, sender, invoice.tokens_sold, redemption_amount,
            ))
            self._pay(company, redemption_amount, RedemptionPaymentTransferFailedError)
        logger.info(
            f"Invoice {invoice_id} redeemed for {redemption_amount}",
            extra={"operation": "redeem_tokens", "invoice_id": invoice_id},
        )
        return RedemptionReceipt(
            invoice_id, sender, invoice.tokens_sold, redemption_amount, event,
        )

    # --- Internals ------------------------------------------------------------------

    def _unit(self, operation: LedgerOperation) -> UnitOfWork:
        return UnitOfWork(self._state, self._registry, operation.value)

    def _pay(
        self, recipient: CompanyAddress, amount: int,
        error_cls: type[TransferFailedError],
    ) -> None:
        if not self._gateway.send(recipient, amount):
            raise error_cls(recipient, amount)

    def _holder_within(self, invoice: Invoice, token_id: TokenId) -> CompanyAddress | None:
        """Holder of token_id if it is one of this invoice's tokens, else None."""
        if invoice_id_of(token_id) != invoice.invoice_id:
            return None
        if token_id - token_id_for(invoice.invoice_id, 0) >= invoice.tokens_total:
            return None
        return self._registry.owner_of(token_id)
