"""Error Hierarchy — typed, categorized exceptions for every BlockEstate failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Provider errors split into retryable (TransientProviderError) and terminal
      (QuotaExhaustedError, MissingCredentialError)
    - ConfirmationTimeoutError and TransactionRevertedError are distinct types:
      callers wait longer on the first, abandon on the second
    - to_response() produces the REST envelope; no internal details leaked
    - retry_after_ms is set only where waiting can change the outcome
      (a pending transaction); the API turns it into a Retry-After header

Design Decisions:
    - Single hierarchy with BlockEstateError base: FastAPI global handler catches all
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
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    LEDGER = "ledger"
    INTERNAL = "internal"
    CONFLICT = "conflict"
    TIMEOUT = "timeout"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    request_id: str | None = None
    attempt: int | None = None
    tx_hash: str | None = None
    asset_id: int | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class BlockEstateError(Exception):
    """Base exception for all BlockEstate errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "request_id": self.context.request_id,
                "context": {
                    "tx_hash": self.context.tx_hash,
                    "asset_id": self.context.asset_id,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Caller Input Errors (400-level) ────────────────────────────

class ValidationError(BlockEstateError):
    """Caller input rejected before any network call."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class ResourceNotFoundError(BlockEstateError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


# ─── Inference Provider Errors ──────────────────────────────────

class TransientProviderError(BlockEstateError):
    """Image provider failed in a way that may succeed on retry."""
    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Image provider transient failure: {message}",
            "PROVIDER_TRANSIENT", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, context, 503,
        )
        self.status_code = status_code


class InvalidResponseError(TransientProviderError):
    """Provider answered 2xx but the payload is empty, too small, or not an image."""
    def __init__(self, size: int, context: ErrorContext | None = None):
        super().__init__(
            f"invalid image payload ({size} bytes)", context=context,
        )
        self.code = "PROVIDER_INVALID_RESPONSE"
        self.size = size


class QuotaExhaustedError(BlockEstateError):
    """Provider reported quota/payment exhaustion. Fatal for the process lifetime."""
    def __init__(self, status_code: int, context: ErrorContext | None = None):
        super().__init__(
            f"Image provider quota exhausted (HTTP {status_code})",
            "PROVIDER_QUOTA_EXHAUSTED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 402,
        )
        self.status_code = status_code


class MissingCredentialError(BlockEstateError):
    """No credential configured (or credential rejected) for an external provider."""
    def __init__(self, provider: str, context: ErrorContext | None = None):
        super().__init__(
            f"Missing or rejected credential for {provider}",
            "MISSING_CREDENTIAL", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, context, 401,
        )
        self.provider = provider


# ─── Ledger Errors ──────────────────────────────────────────────

class LedgerRpcError(BlockEstateError):
    """Ledger RPC transport or protocol failure."""
    def __init__(
        self,
        message: str,
        method: str,
        rpc_code: int | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Ledger RPC {method} failed: {message}",
            "LEDGER_RPC_ERROR", ErrorCategory.LEDGER,
            ErrorSeverity.ERROR, context, 502,
        )
        self.method = method
        self.rpc_code = rpc_code


class ConfirmationTimeoutError(BlockEstateError):
    """Transaction not confirmed to the required depth before the deadline."""
    def __init__(
        self,
        tx_hash: str,
        timeout_seconds: float,
        confirmations: int = 0,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.tx_hash = tx_hash
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"Transaction {tx_hash} not confirmed within {timeout_seconds}s "
            f"({confirmations} confirmations observed)",
            "CONFIRMATION_TIMEOUT", ErrorCategory.TIMEOUT,
            ErrorSeverity.WARNING, ctx, 504,
        )
        self.tx_hash = tx_hash
        self.confirmations = confirmations


class TransactionRevertedError(BlockEstateError):
    """Transaction was mined but reverted by the contract."""
    def __init__(self, tx_hash: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.tx_hash = tx_hash
        super().__init__(
            f"Transaction {tx_hash} reverted",
            "TRANSACTION_REVERTED", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, ctx, 409,
        )
        self.tx_hash = tx_hash


class EventNotFoundError(BlockEstateError):
    """Confirmed receipt lacks the creation event. Signals a contract/client mismatch."""
    def __init__(
        self, tx_hash: str, event_name: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.tx_hash = tx_hash
        super().__init__(
            f"Event '{event_name}' not found in confirmed receipt {tx_hash}",
            "EVENT_NOT_FOUND", ErrorCategory.LEDGER,
            ErrorSeverity.CRITICAL, ctx, 502,
        )
        self.tx_hash = tx_hash
        self.event_name = event_name


class MetadataPinningError(BlockEstateError):
    """Uploading token metadata to the pinning service failed."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Metadata pinning failed: {message}",
            "METADATA_PINNING_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, context, 502,
        )


class ShareDerivationError(BlockEstateError):
    """Share derivation could not produce a valid split."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "SHARE_DERIVATION_FAILED", ErrorCategory.INTERNAL,
            ErrorSeverity.WARNING, context, 500,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(BlockEstateError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
