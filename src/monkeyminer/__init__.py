"""MonkeyMiner: a speculative proof-of-work mining client."""

from .config import AuthConfig, MinerConfig, load_config
from .core import Block, CancellationToken, ChainState, EventType, Miner, SessionResult
from .network import VerificationClient

__version__ = "0.1.0"

__all__ = [
    "AuthConfig",
    "MinerConfig",
    "load_config",
    "Block",
    "CancellationToken",
    "ChainState",
    "EventType",
    "Miner",
    "SessionResult",
    "VerificationClient",
]
