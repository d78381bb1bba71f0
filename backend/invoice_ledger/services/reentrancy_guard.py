"""Reentrancy Guard - per-engine mutual exclusion for mutating operations.

Invariants:
    - At most one mutating operation runs per engine at any time
    - Re-entry from the thread already inside the guard raises ReentrantCallError
      (a transfer recipient calling back in during an outbound payment)
    - Other threads block until the running operation commits or rolls back
"""

import functools
import inspect
import threading
from contextlib import contextmanager
from typing import Iterator

from invoice_ledger.core.domain_types import LedgerOperation
from invoice_ledger.core.errors import LedgerError, ReentrantCallError


class ReentrancyGuard:

    def __init__(self):
        self._lock = threading.Lock()
        self._owner: int | None = None
        self._operation: str | None = None

    @property
    def active_operation(self) -> str | None:
        return self._operation

    @contextmanager
    def enter(self, operation: str) -> Iterator[None]:
        # Only the owning thread can have written its own ident here
        if self._owner == threading.get_ident():
            raise ReentrantCallError(operation, self._operation)
        with self._lock:
            self._owner = threading.get_ident()
            self._operation = operation
            try:
                yield
            finally:
                self._owner = None
                self._operation = None


def nonreentrant(operation: LedgerOperation):
    """Method decorator: run the body inside the instance's `_guard`.

    LedgerErrors leaving the method carry the operation, the caller (`sender`)
    and the `invoice_id` argument, when present, in their ErrorContext.
    """
    def decorator(method):
        signature = inspect.signature(method)

        @functools.wraps(method)
        def wrapper(self, *args, **kwargs):
            try:
                with self._guard.enter(operation.value):
                    return method(self, *args, **kwargs)
            except LedgerError as exc:
                arguments = signature.bind(self, *args, **kwargs).arguments
                exc.annotate(
                    operation.value,
                    arguments.get("sender"),
                    arguments.get("invoice_id"),
                )
                raise
        return wrapper
    return decorator
