"""
Core mining components for MonkeyMiner.

This module provides the speculative mining engine:
- Block and its proof-of-work search
- Difficulty self-adjustment
- In-memory chain state with rollback
- The mining orchestrator and its events
"""

from .block import GENESIS_DATA, Block, format_utc_timestamp
from .cancellation import CancellationToken
from .chain import ChainState
from .consensus import ConsensusConfig, ProofOfWork, adjust_difficulty
from .events import EventType, MinerEvents
from .miner import Miner, SessionResult

__all__ = [
    "GENESIS_DATA",
    "Block",
    "format_utc_timestamp",
    "CancellationToken",
    "ChainState",
    "ConsensusConfig",
    "ProofOfWork",
    "adjust_difficulty",
    "EventType",
    "MinerEvents",
    "Miner",
    "SessionResult",
]
