"""Health & Readiness Checks - process liveness, database reachability, ledger position.

Invariants:
    - GET /health/ always returns 200 while the process is up, with the
      in-memory ledger's last sequence
    - GET /health/ready returns 503 when the database is unreachable, or when
      storage holds events the in-memory ledger does not have (a stale
      runtime must not serve writes)
    - unpersisted_events > 0 is reported but stays ready: the next write
      stores the pending events
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from invoice_ledger.config import get_settings
from invoice_ledger.infrastructure import database
from invoice_ledger.services.ledger_persistence import stored_sequence
from invoice_ledger.services.ledger_runtime import LedgerRuntime, get_runtime

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


def _not_ready(reason: str, **details) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "not_ready", "reason": reason, **details},
    )


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check(runtime: LedgerRuntime = Depends(get_runtime)):
    return {
        "status": "healthy",
        "service": "invoice-ledger-api",
        "version": "1.0.0",
        "last_sequence": runtime.engine.last_sequence,
    }


@router.get("/ready")
async def readiness_check(runtime: LedgerRuntime = Depends(get_runtime)):
    manager = database.db_manager
    if manager is None or not await manager.health_check():
        return _not_ready("database_unavailable")

    ledger_name = get_settings().ledger_name
    async with manager.session() as db:
        stored = await stored_sequence(db, ledger_name)
    in_memory = runtime.engine.last_sequence
    if stored > in_memory:
        logger.error(
            f"Ledger '{ledger_name}' is behind storage",
            extra={"sequence": in_memory},
        )
        return _not_ready(
            "ledger_behind_storage",
            last_sequence=in_memory, stored_sequence=stored,
        )
    return {
        "status": "ready",
        "checks": {
            "database": "healthy",
            "ledger": {
                "name": ledger_name,
                "last_sequence": in_memory,
                "stored_sequence": stored,
                "unpersisted_events": in_memory - stored,
            },
        },
    }
