"""
Verification Service client for MonkeyMiner.
"""

from .client import VerificationClient
from .protocol import (
    ROUTES,
    ChainInfo,
    GenesisDescriptor,
    MessageType,
    RequestRoute,
    VerificationResult,
    parse_timestamp,
    resolve_route,
)

__all__ = [
    "VerificationClient",
    "ROUTES",
    "ChainInfo",
    "GenesisDescriptor",
    "MessageType",
    "RequestRoute",
    "VerificationResult",
    "parse_timestamp",
    "resolve_route",
]
