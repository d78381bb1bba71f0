"""Ledger Schemas - events, pool cash and token ownership."""

from pydantic import BaseModel, Field


class EventResponse(BaseModel):
    sequence: int
    event_type: str
    payload: dict


class PoolFundRequest(BaseModel):
    amount: int = Field(ge=0)


class PoolResponse(BaseModel):
    vault_cash: int
    outstanding_collateral: int
    available_pool_cash: int


class TokenOwnerResponse(BaseModel):
    token_id: int
    invoice_id: int
    owner: str
