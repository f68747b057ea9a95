"""
Shared error handling for the BaaS client.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Dict, Optional

from pydantic import BaseModel

from shared.logging import operation_id_var, request_id_var


class ErrorKind(str, Enum):
    """Error categories surfaced to callers in tagged results."""

    NETWORK = "network"
    HTTP_STATUS = "http_status"
    TRANSPORT_DECRYPT = "transport_decrypt"
    DECODE = "decode"
    UNKNOWN_OPERATION = "unknown_operation"
    VALIDATION = "validation"


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    operation_id: Optional[str] = None
    kind: ErrorKind
    code: str
    message: str
    retryable: bool = False
    details: Dict[str, Any] = {}


class BaasClientError(Exception):
    """Base exception for the BaaS client."""

    kind: ErrorKind = ErrorKind.NETWORK
    retryable: bool = False

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            operation_id=self.details.get("operation_id") or operation_id_var.get(),
            kind=self.kind,
            code=self.code,
            message=self.message,
            retryable=self.retryable,
            details=self.details,
        )


class NetworkError(BaasClientError):
    """Connection failures and timeouts. Safe for the caller to retry."""

    kind = ErrorKind.NETWORK
    retryable = True

    def __init__(
        self,
        message: str = "Network request failed",
        details: Optional[Dict[str, Any]] = None,
        timed_out: bool = False,
    ):
        self.timed_out = timed_out
        details = dict(details or {})
        details["timed_out"] = timed_out
        super().__init__("NETWORK_ERROR", message, details)


class HttpStatusError(BaasClientError):
    """Non-2xx response from the backend. Never retried automatically."""

    kind = ErrorKind.HTTP_STATUS

    def __init__(self, status: int, body: str, details: Optional[Dict[str, Any]] = None):
        self.status = status
        self.body = body
        details = dict(details or {})
        details.update({"status": status, "body": body})
        super().__init__("HTTP_STATUS_ERROR", f"Unexpected status {status}", details)


class DecodeError(BaasClientError):
    """Ciphertext could not be decoded or decrypted."""

    kind = ErrorKind.DECODE

    def __init__(self, message: str = "Malformed ciphertext", details: Optional[Dict[str, Any]] = None):
        super().__init__("DECODE_ERROR", message, details)


class TransportDecryptError(BaasClientError):
    """An encrypted response body failed to decrypt."""

    kind = ErrorKind.TRANSPORT_DECRYPT

    def __init__(self, message: str = "Response decryption failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("TRANSPORT_DECRYPT_ERROR", message, details)


class UnknownOperation(BaasClientError):
    """Operation id is not present in the contract table."""

    kind = ErrorKind.UNKNOWN_OPERATION

    def __init__(self, operation_id: str, details: Optional[Dict[str, Any]] = None):
        self.operation_id = operation_id
        details = dict(details or {})
        details["operation_id"] = operation_id
        super().__init__("UNKNOWN_OPERATION", f"Unknown operation: {operation_id}", details)


class ValidationError(BaasClientError):
    """Validation-related errors."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


@dataclass(frozen=True)
class CallResult:
    """Tagged result handed to presentation layers: either a value or an error."""

    value: Any = None
    error: Optional[BaasClientError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error is not None else None

    @classmethod
    def success(cls, value: Any) -> "CallResult":
        return cls(value=value)

    @classmethod
    def failure(cls, error: BaasClientError) -> "CallResult":
        return cls(error=error)

    def unwrap(self) -> Any:
        """Return the value or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        if self.error is None:
            return {"ok": self.value}
        return {"error": self.error.kind.value, "detail": self.error.to_response().model_dump(mode="json")}


async def settle(awaitable: Awaitable[Any]) -> CallResult:
    """
    Await a client call and fold client errors into a CallResult.

    UnknownOperation is a programming error and propagates unchanged.
    """
    try:
        value = await awaitable
    except UnknownOperation:
        raise
    except BaasClientError as exc:
        return CallResult.failure(exc)
    return CallResult.success(value)
