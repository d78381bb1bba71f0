"""Invoice Schemas - issuance, purchase and redemption bodies and responses.

Invariants:
    - Negative numbers rejected by Pydantic; zero / past-maturity / blank hash
      reach the ledger so the named domain error is returned
    - ipfs_document_hash is opaque; only its length is bounded here
"""

from pydantic import BaseModel, Field

from invoice_ledger.core.invoice_registry import Invoice


class InvoiceCreate(BaseModel):
    invoice_id: int = Field(ge=0)
    total_invoice_amount: int = Field(ge=0)
    token_price: int = Field(ge=0)
    tokens_total: int = Field(ge=0)
    maturity_date: int = Field(ge=0, description="unix seconds")
    ipfs_document_hash: str = Field(max_length=512)


class InvoiceResponse(BaseModel):
    invoice_id: int
    total_invoice_amount: int
    token_price: int
    tokens_total: int
    tokens_remaining: int
    tokens_sold: int
    maturity_date: int
    company_wallet: str
    collateral_deposited: int
    ipfs_document_hash: str
    is_active: bool
    status: str

    @classmethod
    def from_invoice(cls, invoice: Invoice) -> "InvoiceResponse":
        return cls(
            **invoice.to_dict(),
            tokens_sold=invoice.tokens_sold,
            status=invoice.status.value,
        )


class FreeTokensResponse(BaseModel):
    invoice_id: int
    tokens_remaining: int
    token_ids: list[int]


class PurchaseRequest(BaseModel):
    token_amount: int = Field(ge=0)
    payment: int = Field(ge=0)


class PurchaseResponse(BaseModel):
    invoice_id: int
    buyer: str
    token_ids: list[int]
    payment_amount: int
    event_sequence: int


class RedeemRequest(BaseModel):
    requester_token_id: int | None = Field(None, ge=0)


class RedemptionResponse(BaseModel):
    invoice_id: int
    user: str
    token_amount: int
    redemption_amount: int
    event_sequence: int
