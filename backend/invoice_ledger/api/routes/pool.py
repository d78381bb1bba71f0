"""Redemption Pool Routes - fund and inspect the cash that backs redemptions.

Invariants:
    - available_pool_cash excludes every company's collateral
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from invoice_ledger.api.dependencies import get_caller, ledger_write
from invoice_ledger.core.domain_types import CompanyAddress
from invoice_ledger.infrastructure.database import get_db
from invoice_ledger.schemas.ledger import EventResponse, PoolFundRequest, PoolResponse
from invoice_ledger.services.ledger_runtime import LedgerRuntime, get_runtime

router = APIRouter(prefix="/api/v1/pool", tags=["pool"])


@router.get("", response_model=PoolResponse)
async def get_pool(runtime: LedgerRuntime = Depends(get_runtime)):
    engine = runtime.engine
    return PoolResponse(
        vault_cash=engine.vault_cash,
        outstanding_collateral=engine.outstanding_collateral,
        available_pool_cash=engine.available_pool_cash,
    )


@router.post(
    "/fund", response_model=EventResponse,
    status_code=status.HTTP_201_CREATED,
)
async def fund_pool(
    body: PoolFundRequest,
    caller: CompanyAddress = Depends(get_caller),
    runtime: LedgerRuntime = Depends(get_runtime),
    db: AsyncSession = Depends(get_db),
):
    async with ledger_write(db, runtime):
        event = runtime.engine.fund_redemption_pool(caller, body.amount)
    return EventResponse(**event.to_dict())
