"""Ledger Runtime - the process-wide engine together with its in-memory collaborators.

Invariants:
    - One runtime per process; routes obtain it through get_runtime()
    - registry / gateway are the same objects the engine was built with
    - Mutating requests run engine call and persistence under write_lock, so
      stored events follow the in-memory order exactly

Design Decisions:
    - Module-level singleton, replaced wholesale on restore (startup) and in tests
    - Single-process uvicorn: the engine's guard serializes writers within the process
"""

import asyncio
from dataclasses import dataclass, field

from invoice_ledger.core.boundary_protocols import Clock
from invoice_ledger.core.ledger_state import LedgerState
from invoice_ledger.infrastructure.asset_registry import InMemoryAssetRegistry
from invoice_ledger.infrastructure.transfer_gateway import InMemoryTransferGateway
from invoice_ledger.services.tokenization_engine import TokenizationEngine


@dataclass
class LedgerRuntime:
    engine: TokenizationEngine
    registry: InMemoryAssetRegistry
    gateway: InMemoryTransferGateway
    # Held across engine call + persistence by every mutating request
    write_lock: asyncio.Lock = field(default_factory=asyncio.Lock)


def build_runtime(
    clock: Clock | None = None,
    state: LedgerState | None = None,
    registry: InMemoryAssetRegistry | None = None,
) -> LedgerRuntime:
    registry = registry or InMemoryAssetRegistry()
    gateway = InMemoryTransferGateway()
    engine = TokenizationEngine(registry, gateway, clock=clock, state=state)
    return LedgerRuntime(engine=engine, registry=registry, gateway=gateway)


_runtime: LedgerRuntime | None = None


def get_runtime() -> LedgerRuntime:
    """FastAPI dependency; builds an empty ledger on first use."""
    global _runtime
    if _runtime is None:
        _runtime = build_runtime()
    return _runtime


def set_runtime(runtime: LedgerRuntime | None) -> None:
    global _runtime
    _runtime = runtime
