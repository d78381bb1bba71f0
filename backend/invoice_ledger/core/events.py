"""Ledger Events - the observable, ordered, append-only record of committed operations.

Invariants:
    - sequence is assigned by LedgerState.emit and strictly increases by 1
    - payload values are JSON-safe (str / int)
    - Events emitted inside a rolled-back operation never become visible

Design Decisions:
    - One frozen dataclass plus named builders instead of a class per event:
      the log, the snapshot and the DB row all store (type, payload) pairs
"""

from dataclasses import dataclass, field

from invoice_ledger.core.domain_types import EventType


@dataclass(frozen=True)
class LedgerEvent:
    sequence: int
    event_type: EventType
    payload: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "sequence": self.sequence,
            "event_type": self.event_type.value,
            "payload": dict(self.payload),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LedgerEvent":
        return cls(
            sequence=data["sequence"],
            event_type=EventType(data["event_type"]),
            payload=dict(data.get("payload", {})),
        )


# ─── Payload builders ────────────────────────────────────────────

def collateral_deposited(company: str, amount: int) -> tuple[EventType, dict]:
    return EventType.COLLATERAL_DEPOSITED, {"company": company, "amount": amount}


def collateral_withdrawn(company: str, amount: int) -> tuple[EventType, dict]:
    return EventType.COLLATERAL_WITHDRAWN, {"company": company, "amount": amount}


def invoice_token_created(
    invoice_id: int, total_amount: int, token_price: int, tokens_total: int,
    ipfs_hash: str, company: str, maturity_date: int,
) -> tuple[EventType, dict]:
    return EventType.INVOICE_TOKEN_CREATED, {
        "invoice_id": invoice_id,
        "total_amount": total_amount,
        "token_price": token_price,
        "tokens_total": tokens_total,
        "ipfs_hash": ipfs_hash,
        "company": company,
        "maturity_date": maturity_date,
    }


def invoice_token_purchased(
    invoice_id: int, buyer: str, token_amount: int, payment_amount: int,
) -> tuple[EventType, dict]:
    return EventType.INVOICE_TOKEN_PURCHASED, {
        "invoice_id": invoice_id,
        "buyer": buyer,
        "token_amount": token_amount,
        "payment_amount": payment_amount,
    }


def tokens_redeemed(
    invoice_id: int, user: str, token_amount: int, redemption_amount: int,
) -> tuple[EventType, dict]:
    return EventType.TOKENS_REDEEMED, {
        "invoice_id": invoice_id,
        "user": user,
        "token_amount": token_amount,
        "redemption_amount": redemption_amount,
    }


def redemption_pool_funded(funder: str, amount: int) -> tuple[EventType, dict]:
    return EventType.REDEMPTION_POOL_FUNDED, {"funder": funder, "amount": amount}
