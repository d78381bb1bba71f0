"""In-Memory Transfer Gateway - records outbound value transfers per recipient.

Invariants:
    - send() returns False, and credits nothing, when the recipient rejects
    - A rejecting recipient is either registered via reject() or has a
      receive hook that returns False
    - Receive hooks run before the credit and may call back into the engine

Design Decisions:
    - Receive hooks model recipient code executing during the transfer,
      which is how reentrancy is exercised deterministically in tests
"""

import logging
from typing import Callable

from invoice_ledger.core.domain_types import CompanyAddress

logger = logging.getLogger(__name__)

ReceiveHook = Callable[[int], bool]


class InMemoryTransferGateway:

    def __init__(self):
        self.received: dict[CompanyAddress, int] = {}
        self.transfers: list[tuple[CompanyAddress, int]] = []
        self._rejecting: set[CompanyAddress] = set()
        self._hooks: dict[CompanyAddress, ReceiveHook] = {}

    def reject(self, recipient: CompanyAddress) -> None:
        self._rejecting.add(recipient)

    def accept(self, recipient: CompanyAddress) -> None:
        self._rejecting.discard(recipient)

    def on_receive(self, recipient: CompanyAddress, hook: ReceiveHook | None) -> None:
        if hook is None:
            self._hooks.pop(recipient, None)
        else:
            self._hooks[recipient] = hook

    def send(self, recipient: CompanyAddress, amount: int) -> bool:
        if recipient in self._rejecting:
            logger.warning(
                f"Transfer of {amount} rejected by {recipient}",
                extra={"company": recipient},
            )
            return False
        hook = self._hooks.get(recipient)
        if hook is not None and not hook(amount):
            logger.warning(
                f"Transfer of {amount} refused by receive hook of {recipient}",
                extra={"company": recipient},
            )
            return False
        self.received[recipient] = self.received.get(recipient, 0) + amount
        self.transfers.append((recipient, amount))
        return True

    def total_received(self, recipient: CompanyAddress) -> int:
        return self.received.get(recipient, 0)
