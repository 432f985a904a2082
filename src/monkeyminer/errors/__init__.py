"""MonkeyMiner error handling.

Structured exceptions raised by the mining engine, the chain state and the
Verification Service client.
"""

from .exceptions import (
    AuthenticationRequiredError,
    ChainError,
    ChainLinkError,
    ClientError,
    ConfigurationError,
    EmptyChainError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    FatalError,
    GenesisMismatchError,
    InvalidPathError,
    InvariantViolation,
    MinerError,
    MiningCancelledError,
    MiningError,
    ProtocolEnvelopeError,
    ProtocolError,
    SearchSpaceExhaustedError,
    ValidationError,
)

__all__ = [
    "MinerError",
    "ErrorCategory",
    "ErrorContext",
    "ErrorSeverity",
    "ValidationError",
    "ChainLinkError",
    "ConfigurationError",
    "AuthenticationRequiredError",
    "ClientError",
    "InvalidPathError",
    "ProtocolError",
    "ProtocolEnvelopeError",
    "ChainError",
    "EmptyChainError",
    "GenesisMismatchError",
    "FatalError",
    "InvariantViolation",
    "MiningError",
    "MiningCancelledError",
    "SearchSpaceExhaustedError",
]
