"""
Proof of work and difficulty rules for MonkeyMiner.

The local difficulty is a heuristic between resynchronizations with the
Verification Service: after every append it drifts by the time gap (in
milliseconds) between the new block and its predecessor, modulo 63.
"""

import time
from dataclasses import dataclass
from typing import Optional

from ..crypto.hashing import HASH_HEX_LENGTH, SHA256Hasher
from ..logging import get_logger
from .block import Block, millis_between
from .cancellation import CancellationToken

logger = get_logger(__name__)


@dataclass
class ConsensusConfig:
    """Configuration for proof of work and difficulty adjustment."""

    initial_difficulty: int = 4
    difficulty_modulus: int = 63
    # Upper bound applied to the difficulty handed to a proof-of-work search.
    max_difficulty: int = HASH_HEX_LENGTH

    def __post_init__(self) -> None:
        if self.initial_difficulty < 0:
            raise ValueError("Initial difficulty must be non-negative")
        if self.difficulty_modulus <= 0:
            raise ValueError("Difficulty modulus must be positive")
        if not 0 <= self.max_difficulty <= HASH_HEX_LENGTH:
            raise ValueError(f"Max difficulty must be within [0, {HASH_HEX_LENGTH}]")


def adjust_difficulty(
    difficulty: int, preceding: Block, block: Block, modulus: int = 63
) -> int:
    """Difficulty after appending ``block`` on top of ``preceding``."""
    return (difficulty + millis_between(preceding.timestamp, block.timestamp)) % modulus


class ProofOfWork:
    """Proof of work search driver."""

    def __init__(self, config: Optional[ConsensusConfig] = None):
        self.config = config or ConsensusConfig()

    def effective_difficulty(self, difficulty: int) -> int:
        """Difficulty actually searched for: clamped to the hash length and the configured cap."""
        return min(SHA256Hasher.clamp_difficulty(difficulty), self.config.max_difficulty)

    def mine_block(
        self,
        block: Block,
        difficulty: int,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Block:
        """
        Run the nonce search on ``block`` in place.

        Args:
            block: Block to mine
            difficulty: Requested difficulty (see :meth:`effective_difficulty`)
            cancel_token: Optional cancellation token polled between nonces

        Returns:
            The same block, with a hash satisfying the difficulty
        """
        target = self.effective_difficulty(difficulty)
        start_time = time.time()
        attempts = block.proof_of_work(target, cancel_token)
        mining_time = time.time() - start_time
        logger.debug(
            f"Mined block {block.index} at difficulty {target} "
            f"in {mining_time:.3f} seconds ({attempts} hashes)"
        )
        return block

    def verify_block(self, block: Block, difficulty: int) -> bool:
        """Verify that a block's hash is current and meets ``difficulty``."""
        return block.hash == block.compute_hash() and block.meets_difficulty(
            self.effective_difficulty(difficulty)
        )

    def next_difficulty(self, difficulty: int, preceding: Block, block: Block) -> int:
        """Apply the self-adjustment rule with the configured modulus."""
        return adjust_difficulty(
            difficulty, preceding, block, self.config.difficulty_modulus
        )
