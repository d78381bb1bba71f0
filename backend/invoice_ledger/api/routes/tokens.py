"""Token Routes - ownership lookup through the asset registry."""

from fastapi import APIRouter, Depends

from invoice_ledger.core.domain_types import TokenId, invoice_id_of
from invoice_ledger.schemas.ledger import TokenOwnerResponse
from invoice_ledger.services.ledger_runtime import LedgerRuntime, get_runtime

router = APIRouter(prefix="/api/v1/tokens", tags=["tokens"])


@router.get("/{token_id}/owner", response_model=TokenOwnerResponse)
async def get_token_owner(
    token_id: int, runtime: LedgerRuntime = Depends(get_runtime),
):
    owner = runtime.engine.owner_of(TokenId(token_id))
    return TokenOwnerResponse(
        token_id=token_id,
        invoice_id=invoice_id_of(TokenId(token_id)),
        owner=owner,
    )
