"""Collateral Routes - deposit, withdraw and balance lookup.

Invariants:
    - The caller (X-Account) is always the company whose balance changes
    - Balances are read from the engine, never cached per request
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from invoice_ledger.api.dependencies import get_caller, ledger_write
from invoice_ledger.core.domain_types import CompanyAddress
from invoice_ledger.infrastructure.database import get_db
from invoice_ledger.schemas.collateral import CollateralAmount, CollateralBalanceResponse
from invoice_ledger.schemas.ledger import EventResponse
from invoice_ledger.services.ledger_runtime import LedgerRuntime, get_runtime

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/collateral", tags=["collateral"])


def _balance(runtime: LedgerRuntime, company: CompanyAddress) -> CollateralBalanceResponse:
    engine = runtime.engine
    return CollateralBalanceResponse(
        company=company,
        total_collateral=engine.total_collateral(company),
        locked_collateral=engine.locked_collateral(company),
        free_collateral=engine.free_collateral(company),
        active_invoices=engine.company_invoices(company),
    )


@router.post(
    "/deposit", response_model=EventResponse,
    status_code=status.HTTP_201_CREATED,
)
async def deposit_collateral(
    body: CollateralAmount,
    caller: CompanyAddress = Depends(get_caller),
    runtime: LedgerRuntime = Depends(get_runtime),
    db: AsyncSession = Depends(get_db),
):
    async with ledger_write(db, runtime):
        event = runtime.engine.deposit_collateral(caller, body.amount)
    return EventResponse(**event.to_dict())


@router.post("/withdraw", response_model=EventResponse)
async def withdraw_collateral(
    body: CollateralAmount,
    caller: CompanyAddress = Depends(get_caller),
    runtime: LedgerRuntime = Depends(get_runtime),
    db: AsyncSession = Depends(get_db),
):
    async with ledger_write(db, runtime):
        event = runtime.engine.withdraw_collateral(caller, body.amount)
    return EventResponse(**event.to_dict())


@router.get("/{company}", response_model=CollateralBalanceResponse)
async def get_collateral(
    company: str, runtime: LedgerRuntime = Depends(get_runtime),
):
    return _balance(runtime, CompanyAddress(company))
