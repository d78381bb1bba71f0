"""Collateral Schemas - deposit/withdraw bodies and balance responses.

Invariants:
    - Amounts are integers in the smallest currency unit; negatives rejected here,
      zero left to the ledger (InvalidAmountError)
"""

from pydantic import BaseModel, Field


class CollateralAmount(BaseModel):
    amount: int = Field(ge=0)


class CollateralBalanceResponse(BaseModel):
    company: str
    total_collateral: int
    locked_collateral: int
    free_collateral: int
    active_invoices: list[int]
