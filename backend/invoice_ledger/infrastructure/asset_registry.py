"""In-Memory Asset Registry - token id -> holder map implementing AssetRegistry.

Invariants:
    - A token id is minted at most once until burned
    - transfer requires `sender` to be the current holder
    - owner_of / transfer on an unknown id raise TokenNotFoundError

Design Decisions:
    - Serves the HTTP service and the tests; a chain-backed registry would
      implement the same Protocol
    - to_snapshot / from_snapshot let the shell persist holders next to the ledger
"""

import logging

from invoice_ledger.core.domain_types import CompanyAddress, TokenId
from invoice_ledger.core.errors import AssetRegistryError, TokenNotFoundError

logger = logging.getLogger(__name__)


class InMemoryAssetRegistry:

    def __init__(self, owners: dict[TokenId, CompanyAddress] | None = None):
        self._owners: dict[TokenId, CompanyAddress] = dict(owners or {})

    def mint(self, owner: CompanyAddress, token_id: TokenId) -> None:
        if token_id in self._owners:
            raise AssetRegistryError(f"Token {token_id} already minted", token_id)
        self._owners[token_id] = owner

    def transfer(
        self, sender: CompanyAddress, recipient: CompanyAddress, token_id: TokenId,
    ) -> None:
        holder = self.owner_of(token_id)
        if holder != sender:
            raise AssetRegistryError(
                f"Token {token_id} is held by {holder}, not {sender}", token_id,
            )
        self._owners[token_id] = recipient
        logger.debug(f"Token {token_id}: {sender} -> {recipient}")

    def owner_of(self, token_id: TokenId) -> CompanyAddress:
        holder = self._owners.get(token_id)
        if holder is None:
            raise TokenNotFoundError(token_id)
        return holder

    def burn(self, token_id: TokenId) -> None:
        if self._owners.pop(token_id, None) is None:
            raise TokenNotFoundError(token_id)

    def tokens_of(self, owner: CompanyAddress) -> list[TokenId]:
        return sorted(t for t, holder in self._owners.items() if holder == owner)

    def __len__(self) -> int:
        return len(self._owners)

    # --- Snapshot ---------------------------------------------------------------

    def to_snapshot(self) -> dict:
        return {"owners": {str(t): holder for t, holder in self._owners.items()}}

    @classmethod
    def from_snapshot(cls, data: dict | None) -> "InMemoryAssetRegistry":
        owners = (data or {}).get("owners", {})
        return cls({TokenId(int(t)): CompanyAddress(h) for t, h in owners.items()})
