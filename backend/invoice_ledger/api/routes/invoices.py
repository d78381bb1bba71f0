"""Invoice Routes - tokenize, inspect, purchase and redeem invoices.

Invariants:
    - POST /invoices issues on behalf of the caller (X-Account is the issuer)
    - Purchase payment is the `payment` field; it must equal token_amount * token_price
    - Every rule lives in the engine; domain errors reach the client via the
      global LedgerError handler
"""

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from invoice_ledger.api.dependencies import get_caller, ledger_write
from invoice_ledger.core.domain_types import CompanyAddress, InvoiceId, TokenId
from invoice_ledger.infrastructure.database import get_db
from invoice_ledger.schemas.invoice import (
    FreeTokensResponse, InvoiceCreate, InvoiceResponse, PurchaseRequest,
    PurchaseResponse, RedeemRequest, RedemptionResponse,
)
from invoice_ledger.services.ledger_runtime import LedgerRuntime, get_runtime

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/invoices", tags=["invoices"])


@router.post(
    "", response_model=InvoiceResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_invoice_token(
    body: InvoiceCreate,
    caller: CompanyAddress = Depends(get_caller),
    runtime: LedgerRuntime = Depends(get_runtime),
    db: AsyncSession = Depends(get_db),
):
    async with ledger_write(db, runtime):
        invoice = runtime.engine.create_invoice_token(
            caller,
            InvoiceId(body.invoice_id),
            body.total_invoice_amount,
            body.token_price,
            body.tokens_total,
            body.maturity_date,
            body.ipfs_document_hash,
        )
    return InvoiceResponse.from_invoice(invoice)


@router.get("", response_model=list[InvoiceResponse])
async def list_company_invoices(
    company: str = Query(min_length=1, max_length=128),
    runtime: LedgerRuntime = Depends(get_runtime),
):
    """Every invoice issued by `company`, redeemed ones included."""
    return [
        InvoiceResponse.from_invoice(invoice)
        for invoice in runtime.engine.invoices_by_company(CompanyAddress(company))
    ]


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: int, runtime: LedgerRuntime = Depends(get_runtime),
):
    return InvoiceResponse.from_invoice(
        runtime.engine.get_invoice(InvoiceId(invoice_id)),
    )


@router.get("/{invoice_id}/free-tokens", response_model=FreeTokensResponse)
async def get_free_tokens(
    invoice_id: int, runtime: LedgerRuntime = Depends(get_runtime),
):
    token_ids = runtime.engine.free_tokens(InvoiceId(invoice_id))
    return FreeTokensResponse(
        invoice_id=invoice_id,
        tokens_remaining=len(token_ids),
        token_ids=token_ids,
    )


@router.post("/{invoice_id}/purchase", response_model=PurchaseResponse)
async def purchase_token(
    invoice_id: int,
    body: PurchaseRequest,
    caller: CompanyAddress = Depends(get_caller),
    runtime: LedgerRuntime = Depends(get_runtime),
    db: AsyncSession = Depends(get_db),
):
    async with ledger_write(db, runtime):
        receipt = runtime.engine.purchase_token(
            caller, InvoiceId(invoice_id), body.token_amount, body.payment,
        )
    return PurchaseResponse(
        invoice_id=receipt.invoice_id,
        buyer=receipt.buyer,
        token_ids=list(receipt.token_ids),
        payment_amount=receipt.payment_amount,
        event_sequence=receipt.event.sequence,
    )


@router.post("/{invoice_id}/redeem", response_model=RedemptionResponse)
async def redeem_tokens(
    invoice_id: int,
    body: RedeemRequest | None = None,
    caller: CompanyAddress = Depends(get_caller),
    runtime: LedgerRuntime = Depends(get_runtime),
    db: AsyncSession = Depends(get_db),
):
    requester_token_id = body.requester_token_id if body else None
    async with ledger_write(db, runtime):
        receipt = runtime.engine.redeem_tokens(
            caller, InvoiceId(invoice_id),
            TokenId(requester_token_id) if requester_token_id is not None else None,
        )
    return RedemptionResponse(
        invoice_id=receipt.invoice_id,
        user=receipt.user,
        token_amount=receipt.token_amount,
        redemption_amount=receipt.redemption_amount,
        event_sequence=receipt.event.sequence,
    )
