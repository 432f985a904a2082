"""Exception hierarchy for MonkeyMiner.

This module defines the structured exceptions raised by the mining engine,
the chain state and the Verification Service client.
"""

import time
import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories."""

    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    CLIENT = "client"
    PROTOCOL = "protocol"
    CHAIN = "chain"
    MINING = "mining"
    SYSTEM = "system"


@dataclass
class ErrorContext:
    """Context information for an error."""

    timestamp: float = field(default_factory=time.time)
    component: Optional[str] = None
    operation: Optional[str] = None
    session_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary."""
        return {
            "timestamp": self.timestamp,
            "component": self.component,
            "operation": self.operation,
            "session_id": self.session_id,
            "metadata": self.metadata,
        }


class MinerError(Exception):
    """Base exception for all MonkeyMiner errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        retryable: bool = False,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.severity = severity
        self.category = category
        self.context = context or ErrorContext()
        self.cause = cause
        self.retryable = retryable
        self.metadata = metadata or {}
        self.timestamp = time.time()
        self.traceback = traceback.format_exc()

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "severity": self.severity.value,
            "category": self.category.value,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
            "retryable": self.retryable,
            "metadata": self.metadata,
            "timestamp": self.timestamp,
        }

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]

        if self.error_code:
            parts.append(f"Code: {self.error_code}")

        if self.severity != ErrorSeverity.MEDIUM:
            parts.append(f"Severity: {self.severity.value}")

        if self.retryable:
            parts.append("Retryable: Yes")

        return " | ".join(parts)


class ValidationError(MinerError):
    """Validation error."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        expected: Optional[Any] = None,
        **kwargs,
    ):
        super().__init__(message, category=ErrorCategory.VALIDATION, **kwargs)
        self.field = field
        self.value = value
        self.expected = expected

    def to_dict(self) -> Dict[str, Any]:
        """Convert validation error to dictionary."""
        data = super().to_dict()
        data.update(
            {
                "field": self.field,
                "value": str(self.value) if self.value is not None else None,
                "expected": str(self.expected) if self.expected is not None else None,
            }
        )
        return data


class ChainLinkError(ValidationError):
    """A block does not link onto the current chain tail."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("error_code", "CHAIN_LINK")
        super().__init__(message, **kwargs)


class ConfigurationError(MinerError):
    """Configuration error."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        **kwargs,
    ):
        super().__init__(message, category=ErrorCategory.CONFIGURATION, **kwargs)
        self.config_key = config_key
        self.config_value = config_value

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration error to dictionary."""
        data = super().to_dict()
        data.update(
            {
                "config_key": self.config_key,
                "config_value": str(self.config_value)
                if self.config_value is not None
                else None,
            }
        )
        return data


class AuthenticationRequiredError(ConfigurationError):
    """An authenticated route was requested without configured credentials."""

    def __init__(self, path: str, **kwargs):
        kwargs.setdefault("error_code", "AUTH_REQUIRED")
        super().__init__(
            f"Authentication options must be set to request '{path}'",
            config_key="auth",
            **kwargs,
        )
        self.path = path


class ClientError(MinerError):
    """Programming error on the caller's side of the client."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, category=ErrorCategory.CLIENT, **kwargs)


class InvalidPathError(ClientError):
    """Unknown Verification Service path."""

    def __init__(self, path: str, **kwargs):
        kwargs.setdefault("error_code", "INVALID_PATH")
        super().__init__(f"Invalid request path: {path}", **kwargs)
        self.path = path


class ProtocolError(MinerError):
    """The Verification Service answered outside of its contract."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(message, category=ErrorCategory.PROTOCOL, **kwargs)
        self.endpoint = endpoint
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"endpoint": self.endpoint, "status_code": self.status_code})
        return data


class ProtocolEnvelopeError(ProtocolError):
    """Response envelope tag does not match the requested operation."""

    def __init__(
        self,
        expected_type: str,
        received_type: Optional[str] = None,
        detail: Optional[str] = None,
        **kwargs,
    ):
        kwargs.setdefault("error_code", "ENVELOPE_MISMATCH")
        message = detail or (
            f"Invalid response type: expected '{expected_type}', "
            f"got '{received_type}'"
        )
        super().__init__(message, **kwargs)
        self.expected_type = expected_type
        self.received_type = received_type
        self.detail = detail

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "expected_type": self.expected_type,
                "received_type": self.received_type,
                "detail": self.detail,
            }
        )
        return data


class ChainError(MinerError):
    """Chain state error."""

    def __init__(self, message: str, block_index: Optional[int] = None, **kwargs):
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        super().__init__(message, category=ErrorCategory.CHAIN, **kwargs)
        self.block_index = block_index


class EmptyChainError(ChainError):
    """The chain has no genesis block yet."""

    def __init__(self, message: str = "Chain has not been seeded with a genesis block", **kwargs):
        kwargs.setdefault("error_code", "EMPTY_CHAIN")
        super().__init__(message, **kwargs)


class GenesisMismatchError(ChainError):
    """Recomputed genesis hash disagrees with the server-reported hash."""

    def __init__(self, expected_hash: str, computed_hash: str, **kwargs):
        kwargs.setdefault("error_code", "GENESIS_MISMATCH")
        kwargs.setdefault("severity", ErrorSeverity.CRITICAL)
        super().__init__(
            f"Failed to recreate genesis block: expected {expected_hash}, "
            f"computed {computed_hash}",
            block_index=0,
            **kwargs,
        )
        self.expected_hash = expected_hash
        self.computed_hash = computed_hash

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {"expected_hash": self.expected_hash, "computed_hash": self.computed_hash}
        )
        return data


class FatalError(MinerError):
    """Fatal error that cannot be recovered from."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message, severity=ErrorSeverity.CRITICAL, retryable=False, **kwargs
        )


class InvariantViolation(FatalError):
    """An internal ordering invariant was broken."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("error_code", "INVARIANT_VIOLATION")
        super().__init__(message, **kwargs)


class MiningError(MinerError):
    """Mining session error."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, category=ErrorCategory.MINING, **kwargs)


class MiningCancelledError(MiningError):
    """A mining session or proof-of-work search was cancelled."""

    def __init__(self, message: str = "Mining cancelled", **kwargs):
        kwargs.setdefault("error_code", "CANCELLED")
        super().__init__(message, **kwargs)


class SearchSpaceExhaustedError(MiningError):
    """Every candidate timestamp offset of an iteration was rejected."""

    def __init__(self, low: int, high: int, **kwargs):
        kwargs.setdefault("error_code", "SEARCH_SPACE_EXHAUSTED")
        super().__init__(
            f"All candidate offsets in [{low}, {high}] were rejected", **kwargs
        )
        self.low = low
        self.high = high

