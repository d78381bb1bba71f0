"""Boundary Protocols - contracts between the ledger core and its collaborators.

Invariants:
    - Core NEVER imports from infrastructure: implementations are injected
    - AssetRegistry raises AssetRegistryError / TokenNotFoundError on refusal
    - TransferGateway.send returns False when the recipient rejects the value;
      it never raises for a rejection
    - Clock returns integer unix seconds

Design Decisions:
    - Protocol over ABC: structural subtyping, test doubles need no inheritance
    - IssuancePort is the surface a marketplace/listing layer calls; the
      engine satisfies it structurally and no marketplace ships here
"""

from typing import Callable, Protocol

from invoice_ledger.core.domain_types import CompanyAddress, InvoiceId, TokenId


class AssetRegistry(Protocol):
    """Unique-identity token registry (holder per token id)."""
    def mint(self, owner: CompanyAddress, token_id: TokenId) -> None: ...
    def transfer(
        self, sender: CompanyAddress, recipient: CompanyAddress, token_id: TokenId,
    ) -> None: ...
    def owner_of(self, token_id: TokenId) -> CompanyAddress: ...
    def burn(self, token_id: TokenId) -> None: ...


class TransferGateway(Protocol):
    """Outbound value transfer. May call back into the engine (reentrancy)."""
    def send(self, recipient: CompanyAddress, amount: int) -> bool: ...


Clock = Callable[[], int]


class IssuancePort(Protocol):
    """Entry points a marketplace uses on behalf of its listings."""
    def create_invoice_token(
        self,
        sender: CompanyAddress,
        invoice_id: InvoiceId,
        total_invoice_amount: int,
        token_price: int,
        tokens_total: int,
        maturity_date: int,
        ipfs_document_hash: str,
    ) -> object: ...

    def purchase_token(
        self,
        sender: CompanyAddress,
        invoice_id: InvoiceId,
        token_amount: int,
        payment: int,
    ) -> object: ...
