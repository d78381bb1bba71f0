"""Event Routes - read the append-only ledger event log."""

from fastapi import APIRouter, Depends, Query

from invoice_ledger.schemas.ledger import EventResponse
from invoice_ledger.services.ledger_runtime import LedgerRuntime, get_runtime

router = APIRouter(prefix="/api/v1/events", tags=["events"])


@router.get("", response_model=list[EventResponse])
async def list_events(
    since: int = Query(0, ge=0),
    limit: int = Query(500, ge=1, le=5000),
    runtime: LedgerRuntime = Depends(get_runtime),
):
    """Events with sequence > since, oldest first."""
    return [
        EventResponse(**event.to_dict())
        for event in runtime.engine.events(since=since)[:limit]
    ]
