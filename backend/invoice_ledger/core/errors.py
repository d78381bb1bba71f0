"""Error Hierarchy - typed, categorized exceptions for every ledger failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Validation errors are raised before any state change
    - Insufficient-resource errors carry the available/required figures as attributes
      and in `details`
    - Transfer failures mean the whole operation was rolled back
    - to_response() produces the REST envelope

Design Decisions:
    - Single hierarchy with LedgerError base: FastAPI global handler catches all
    - ErrorContext as dataclass: observability fields without coupling to logging
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    EXTERNAL_TRANSFER = "external_transfer"
    CONFLICT = "conflict"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    operation: str | None = None
    company: str | None = None
    invoice_id: int | None = None
    debug_info: dict[str, Any] | None = None


class LedgerError(Exception):
    """Base exception for all ledger errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status
        self.details = details or {}

    def annotate(
        self, operation: str, company: str | None = None, invoice_id: int | None = None,
    ) -> "LedgerError":
        """Fill empty context fields; the innermost operation to annotate wins."""
        self.context.operation = self.context.operation or operation
        self.context.company = self.context.company or company
        if self.context.invoice_id is None:
            self.context.invoice_id = invoice_id
        return self

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "details": self.details,
            }
        }


# ─── Validation Errors (400) ─────────────────────────────────────

class LedgerValidationError(LedgerError):
    """An input field is out of range. `field` names the offender."""
    def __init__(
        self, message: str, code: str, field: str,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400, {"field": field},
        )
        self.field = field


class InvalidAmountError(LedgerValidationError):
    def __init__(self, field: str = "amount", context: ErrorContext | None = None):
        super().__init__(
            f"{field} must be greater than zero", "INVALID_AMOUNT", field, context,
        )


class InvalidInvoiceIdError(LedgerValidationError):
    def __init__(self, invoice_id: int, context: ErrorContext | None = None):
        super().__init__(
            f"invoice_id must be a non-negative integer, got {invoice_id}",
            "INVALID_INVOICE_ID", "invoice_id", context,
        )


class InvalidInvoiceAmountError(LedgerValidationError):
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "total_invoice_amount must be greater than zero",
            "INVALID_INVOICE_AMOUNT", "total_invoice_amount", context,
        )


class InvalidTokenPriceError(LedgerValidationError):
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "token_price must be greater than zero",
            "INVALID_TOKEN_PRICE", "token_price", context,
        )


class InvalidTokenAmountError(LedgerValidationError):
    def __init__(self, limit: int, context: ErrorContext | None = None):
        super().__init__(
            f"tokens_total must be between 1 and {limit}",
            "INVALID_TOKEN_AMOUNT", "tokens_total", context,
        )


class InvalidMaturityDateError(LedgerValidationError):
    """Maturity in the past at issuance, or not yet reached at redemption."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(message, "INVALID_MATURITY_DATE", "maturity_date", context)


class InvalidDocumentHashError(LedgerValidationError):
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "ipfs_document_hash must not be empty",
            "INVALID_DOCUMENT_HASH", "ipfs_document_hash", context,
        )


# ─── Not Found (404) ─────────────────────────────────────────────

class ResourceNotFoundError(LedgerError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, code: str = "RESOURCE_NOT_FOUND",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            code, ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class InvoiceNotFoundError(ResourceNotFoundError):
    def __init__(self, invoice_id: int, context: ErrorContext | None = None):
        super().__init__("Invoice", str(invoice_id), "INVOICE_NOT_FOUND", context)
        self.invoice_id = invoice_id


class TokenNotFoundError(ResourceNotFoundError):
    def __init__(self, token_id: int, context: ErrorContext | None = None):
        super().__init__("Token", str(token_id), "TOKEN_NOT_FOUND", context)
        self.token_id = token_id


# ─── Business Rule Errors (409) ──────────────────────────────────

class InvoiceAlreadyExistsError(LedgerError):
    def __init__(self, invoice_id: int, context: ErrorContext | None = None):
        super().__init__(
            f"Invoice {invoice_id} already exists",
            "INVOICE_ALREADY_EXISTS", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 409, {"invoice_id": invoice_id},
        )
        self.invoice_id = invoice_id


class InvoiceNotActiveError(LedgerError):
    """Invoice redeemed, or past maturity for purchases."""
    def __init__(self, invoice_id: int, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Invoice {invoice_id} is not active: {reason}",
            "INVOICE_NOT_ACTIVE", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 409,
            {"invoice_id": invoice_id, "reason": reason},
        )
        self.invoice_id = invoice_id
        self.reason = reason


class InsufficientCollateralError(LedgerError):
    def __init__(self, available: int, required: int, context: ErrorContext | None = None):
        super().__init__(
            f"Insufficient collateral: available {available}, required {required}",
            "INSUFFICIENT_COLLATERAL", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 409,
            {"available": available, "required": required},
        )
        self.available = available
        self.required = required


class InsufficientTokensError(LedgerError):
    def __init__(self, requested: int, available: int, context: ErrorContext | None = None):
        super().__init__(
            f"Insufficient tokens: requested {requested}, available {available}",
            "INSUFFICIENT_TOKENS", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 409,
            {"requested": requested, "available": available},
        )
        self.requested = requested
        self.available = available


class IncorrectPaymentAmountError(LedgerError):
    def __init__(self, sent: int, expected: int, context: ErrorContext | None = None):
        super().__init__(
            f"Incorrect payment amount: sent {sent}, expected {expected}",
            "INCORRECT_PAYMENT_AMOUNT", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 409,
            {"sent": sent, "expected": expected},
        )
        self.sent = sent
        self.expected = expected


class InsufficientFundsToRedeemError(LedgerError):
    def __init__(self, available: int, required: int, context: ErrorContext | None = None):
        super().__init__(
            f"Insufficient pooled funds to redeem: available {available}, required {required}",
            "INSUFFICIENT_FUNDS_TO_REDEEM", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 409,
            {"available": available, "required": required},
        )
        self.available = available
        self.required = required


class NotTokenHolderError(LedgerError):
    def __init__(
        self, token_id: int, account: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Account {account} does not hold token {token_id} of this invoice",
            "NOT_TOKEN_HOLDER", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 409,
            {"token_id": token_id, "account": account},
        )
        self.token_id = token_id
        self.account = account


# ─── Transfer Failures (502) ─────────────────────────────────────

class TransferFailedError(LedgerError):
    """Outbound value transfer rejected by the recipient. State rolled back."""
    def __init__(
        self, message: str, code: str, recipient: str, amount: int,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, ErrorCategory.EXTERNAL_TRANSFER,
            ErrorSeverity.ERROR, context, 502,
            {"recipient": recipient, "amount": amount},
        )
        self.recipient = recipient
        self.amount = amount


class CollateralTransferFailedError(TransferFailedError):
    def __init__(self, recipient: str, amount: int, context: ErrorContext | None = None):
        super().__init__(
            f"Collateral withdrawal of {amount} to {recipient} failed",
            "COLLATERAL_TRANSFER_FAILED", recipient, amount, context,
        )


class TokenPaymentTransferFailedError(TransferFailedError):
    def __init__(self, recipient: str, amount: int, context: ErrorContext | None = None):
        super().__init__(
            f"Token payment of {amount} to {recipient} failed",
            "TOKEN_PAYMENT_TRANSFER_FAILED", recipient, amount, context,
        )


class RedemptionPaymentTransferFailedError(TransferFailedError):
    def __init__(self, recipient: str, amount: int, context: ErrorContext | None = None):
        super().__init__(
            f"Redemption payment of {amount} to {recipient} failed",
            "REDEMPTION_PAYMENT_TRANSFER_FAILED", recipient, amount, context,
        )


# ─── Concurrency / Infrastructure ────────────────────────────────

class ReentrantCallError(LedgerError):
    """A mutating operation was entered while another one is still running."""
    def __init__(self, operation: str, active_operation: str | None):
        super().__init__(
            f"Reentrant call to {operation} rejected while {active_operation} is in progress",
            "REENTRANT_CALL", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, None, 409,
            {"operation": operation, "active_operation": active_operation},
        )
        self.operation = operation
        self.active_operation = active_operation


class AssetRegistryError(LedgerError):
    """Asset registry refused a mint/transfer/burn."""
    def __init__(self, message: str, token_id: int, context: ErrorContext | None = None):
        super().__init__(
            message, "ASSET_REGISTRY_ERROR", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 409, {"token_id": token_id},
        )
        self.token_id = token_id


class LedgerReplayError(LedgerError):
    """Stored events do not continue the restored ledger."""
    def __init__(self, message: str, sequence: int):
        super().__init__(
            f"Ledger replay failed: {message}",
            "LEDGER_REPLAY_FAILED", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, None, 500, {"sequence": sequence},
        )
        self.sequence = sequence


class LedgerNotPersistedError(LedgerError):
    """The ledger committed the operation but storing it failed.

    The in-memory ledger holds the result; the next successful write stores it.
    Clients must not retry the operation.
    """
    def __init__(self, sequence: int, context: ErrorContext | None = None):
        super().__init__(
            f"Operation committed at sequence {sequence} but not yet persisted",
            "LEDGER_NOT_PERSISTED", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
            {"committed": True, "sequence": sequence},
        )
        self.sequence = sequence


class DatabaseError(LedgerError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
