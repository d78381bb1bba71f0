"""Route Dependencies - caller identity and serialized ledger writes.

Invariants:
    - Every mutating route identifies its caller through the X-Account header
    - Every mutating route runs its engine call and persistence inside
      ledger_write: one request at a time per runtime
    - Persistence runs only after the engine call returned successfully
    - A persistence failure after a committed engine call is reported as
      LedgerNotPersistedError (503, details.committed = true), never as a
      plain failure; the next successful write stores the pending events
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Header
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from invoice_ledger.config import get_settings
from invoice_ledger.core.domain_types import CompanyAddress
from invoice_ledger.core.errors import DatabaseError, LedgerNotPersistedError
from invoice_ledger.services.ledger_persistence import persist_ledger
from invoice_ledger.services.ledger_runtime import LedgerRuntime

logger = logging.getLogger(__name__)


async def get_caller(
    x_account: str = Header(min_length=1, max_length=128),
) -> CompanyAddress:
    return CompanyAddress(x_account.strip())


async def commit_ledger(db: AsyncSession, runtime: LedgerRuntime) -> None:
    settings = get_settings()
    if not settings.persist_ledger:
        return
    try:
        await persist_ledger(
            db, runtime, settings.ledger_name, settings.checkpoint_interval,
        )
    except (SQLAlchemyError, DatabaseError) as e:
        await db.rollback()
        sequence = runtime.engine.last_sequence
        logger.error(
            f"Ledger committed but not persisted: {e}",
            extra={"sequence": sequence, "error_code": "LEDGER_NOT_PERSISTED"},
        )
        raise LedgerNotPersistedError(sequence) from e


@asynccontextmanager
async def ledger_write(
    db: AsyncSession, runtime: LedgerRuntime,
) -> AsyncIterator[None]:
    """Serialize one mutating request: engine call in the body, then persist."""
    async with runtime.write_lock:
        yield
        await commit_ledger(db, runtime)
