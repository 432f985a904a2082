"""
In-memory chain state for a mining session.

The chain is a private scratch structure: it holds the validated genesis
block, the blocks accepted by the Verification Service, and at most one
speculative block waiting for a verdict at its tail.
"""

from datetime import datetime
from typing import Iterator, List, Optional, Tuple

from ..errors.exceptions import (
    ChainError,
    ChainLinkError,
    EmptyChainError,
    GenesisMismatchError,
    InvariantViolation,
)
from ..logging import get_logger
from .block import GENESIS_PRECEDING_HASH, Block

logger = get_logger(__name__)


class ChainState:
    """Ordered sequence of blocks with append and rollback-of-last."""

    def __init__(self) -> None:
        self._blocks: List[Block] = []

    @property
    def is_seeded(self) -> bool:
        return bool(self._blocks)

    @property
    def blocks(self) -> Tuple[Block, ...]:
        return tuple(self._blocks)

    @property
    def genesis(self) -> Block:
        if not self._blocks:
            raise EmptyChainError()
        return self._blocks[0]

    def __len__(self) -> int:
        return len(self._blocks)

    def __iter__(self) -> Iterator[Block]:
        return iter(list(self._blocks))

    def latest(self) -> Block:
        """Return the tail block."""
        if not self._blocks:
            raise EmptyChainError()
        return self._blocks[-1]

    def seed_genesis(
        self,
        index: int,
        timestamp: datetime,
        payload: str,
        preceding_hash: str = GENESIS_PRECEDING_HASH,
        expected_hash: Optional[str] = None,
    ) -> Block:
        """
        Build the genesis block and make it the first element of the chain.

        Args:
            index: Genesis index reported by the server
            timestamp: Genesis timestamp reported by the server
            payload: Genesis payload
            preceding_hash: Preceding hash of the genesis block
            expected_hash: Authoritative hash; the chain stays empty if it differs

        Raises:
            ChainError: If the chain is already seeded
            GenesisMismatchError: If the recomputed hash differs from ``expected_hash``
        """
        if self._blocks:
            raise ChainError("Genesis block already seeded", block_index=index)

        block = Block.genesis(index, timestamp, payload, preceding_hash)
        if expected_hash is not None and block.hash != expected_hash:
            raise GenesisMismatchError(expected_hash, block.hash)

        self._blocks.append(block)
        logger.debug(f"Seeded genesis block {block.index} ({block.hash})")
        return block

    def append(self, block: Block) -> None:
        """Append ``block`` after checking that it links onto the tail."""
        tail = self.latest()

        if block.index != tail.index + 1:
            raise ChainLinkError(
                f"Block index {block.index} does not follow tail index {tail.index}",
                field="index",
                value=block.index,
                expected=tail.index + 1,
            )
        if block.preceding_hash != tail.hash:
            raise ChainLinkError(
                f"Block {block.index} does not reference the tail hash",
                field="preceding_hash",
                value=block.preceding_hash,
                expected=tail.hash,
            )

        self._blocks.append(block)

    def rollback_last(self, block: Block) -> None:
        """
        Remove ``block``, which must be the current tail.

        Raises:
            InvariantViolation: If ``block`` is not the tail element
        """
        if len(self._blocks) < 2 or self._blocks[-1] is not block:
            raise InvariantViolation(
                f"Cannot roll back block {block.index}: it is not the chain tail"
            )
        self._blocks.pop()
        logger.debug(f"Rolled back block {block.index} ({block.hash})")

    def __repr__(self) -> str:
        return f"ChainState(length={len(self._blocks)})"
