"""Invoice Ledger API - FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map LedgerError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - On startup the database is initialized and the ledger restored from its
      latest stored snapshot when persistence is enabled
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from invoice_ledger.api.error_handlers import register_error_handlers
from invoice_ledger.api.routes import collateral, events, health, invoices, pool, tokens
from invoice_ledger.config import get_settings
from invoice_ledger.infrastructure.database import init_db
from invoice_ledger.infrastructure.observability import setup_logging
from invoice_ledger.services.ledger_persistence import restore_runtime
from invoice_ledger.services.ledger_runtime import set_runtime

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.persist_ledger:
        async with manager.session() as db:
            set_runtime(await restore_runtime(db, settings.ledger_name))
    logger.info("Invoice Ledger API started")
    yield
    await manager.dispose()
    logger.info("Invoice Ledger API shutting down")


app = FastAPI(
    title="Invoice Ledger API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(collateral.router)
app.include_router(invoices.router)
app.include_router(tokens.router)
app.include_router(pool.router)
app.include_router(events.router)

register_error_handlers(app)
