"""Free-Token Pool - per-invoice stack of token ids not yet sold.

Invariants:
    - Ids are pushed in ascending sequence at issuance
    - pop() returns the last-inserted id: buyers receive tokens in reverse mint order
    - len(pool) == tokens_remaining of the invoice (maintained by the engine)
"""

from dataclasses import dataclass, field

from invoice_ledger.core.domain_types import InvoiceId, TokenId
from invoice_ledger.core.errors import InsufficientTokensError


@dataclass
class FreeTokenPool:
    pools: dict[InvoiceId, list[TokenId]] = field(default_factory=dict)

    def push(self, invoice_id: InvoiceId, token_id: TokenId) -> None:
        self.pools.setdefault(invoice_id, []).append(token_id)

    def pop(self, invoice_id: InvoiceId) -> TokenId:
        stack = self.pools.get(invoice_id)
        if not stack:
            raise InsufficientTokensError(requested=1, available=0)
        return stack.pop()

    def size(self, invoice_id: InvoiceId) -> int:
        return len(self.pools.get(invoice_id, []))

    def tokens(self, invoice_id: InvoiceId) -> list[TokenId]:
        """Copy of the pool, bottom of the stack first."""
        return list(self.pools.get(invoice_id, []))
