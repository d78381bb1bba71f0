"""Domain Types - identity aliases, ledger constants and lifecycle enums.

Invariants:
    - CompanyAddress, InvoiceId, TokenId wrap primitives; domain logic never mixes them
    - Token ids are derived, never assigned: invoice_id * TOKEN_ID_MULTIPLIER + sequence
    - All amounts are non-negative ints in the smallest currency unit
    - All valid states encoded as Enums, no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (snapshots, API, event log)
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

CompanyAddress = NewType("CompanyAddress", str)
InvoiceId = NewType("InvoiceId", int)
TokenId = NewType("TokenId", int)


# ─── Ledger Constants ────────────────────────────────────────────

COLLATERAL_RATIO_PERCENT = 80
TOKEN_ID_MULTIPLIER = 10**6
MAX_TOKENS_PER_INVOICE = TOKEN_ID_MULTIPLIER


# ─── Enums ───────────────────────────────────────────────────────

class InvoiceStatus(str, Enum):
    """Invoice lifecycle. REDEEMED is terminal."""
    ACTIVE = "active"
    REDEEMED = "redeemed"


class EventType(str, Enum):
    """Names of the append-only ledger events."""
    COLLATERAL_DEPOSITED = "CollateralDeposited"
    COLLATERAL_WITHDRAWN = "CollateralWithdrawn"
    INVOICE_TOKEN_CREATED = "InvoiceTokenCreated"
    INVOICE_TOKEN_PURCHASED = "InvoiceTokenPurchased"
    TOKENS_REDEEMED = "TokensRedeemed"
    REDEMPTION_POOL_FUNDED = "RedemptionPoolFunded"


class LedgerOperation(str, Enum):
    """Mutating entry points, used for logging and guard diagnostics."""
    DEPOSIT_COLLATERAL = "deposit_collateral"
    WITHDRAW_COLLATERAL = "withdraw_collateral"
    CREATE_INVOICE_TOKEN = "create_invoice_token"
    PURCHASE_TOKEN = "purchase_token"
    REDEEM_TOKENS = "redeem_tokens"
    FUND_REDEMPTION_POOL = "fund_redemption_pool"


# ─── Derivations ─────────────────────────────────────────────────

def token_id_for(invoice_id: InvoiceId, sequence: int) -> TokenId:
    """Token id of the sequence-th claim of an invoice."""
    return TokenId(invoice_id * TOKEN_ID_MULTIPLIER + sequence)


def invoice_id_of(token_id: TokenId) -> InvoiceId:
    """Owning invoice of a token id."""
    return InvoiceId(token_id // TOKEN_ID_MULTIPLIER)


def required_collateral(token_price: int, tokens_total: int) -> int:
    """Collateral backing an issuance: 80% of face value, truncated."""
    return token_price * tokens_total * COLLATERAL_RATIO_PERCENT // 100
