"""
Mining orchestrator for MonkeyMiner.

The miner keeps a private chain seeded from the Verification Service's
genesis block and runs sessions of speculative mining: each candidate block
is proof-of-worked locally, appended optimistically, and submitted. Accepted
candidates stay on the chain; rejected ones are rolled back and a new
timestamp offset is drawn.
"""

import random
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from ..config import MinerConfig
from ..errors.exceptions import (
    EmptyChainError,
    GenesisMismatchError,
    SearchSpaceExhaustedError,
)
from ..logging import LogContext, get_logger
from ..network.client import VerificationClient
from ..network.protocol import ChainInfo
from .block import GENESIS_DATA, Block, epoch_millis
from .cancellation import CancellationToken
from .chain import ChainState
from .consensus import ConsensusConfig, ProofOfWork
from .events import EventType, MinerEvents

logger = get_logger(__name__)


@dataclass(frozen=True)
class SessionResult:
    """Outcome of one :meth:`Miner.mine` call."""

    found: int
    failed: int
    total: int
    started_at: datetime
    finished_at: datetime
    elapsed: float
    blocks: Tuple[Block, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "found": self.found,
            "failed": self.failed,
            "total": self.total,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
            "elapsed": round(self.elapsed, 6),
            "blocks": [block.to_dict() for block in self.blocks],
        }


class Miner:
    """Speculative mining orchestrator.

    One miner owns one chain; it is not safe to drive the same instance from
    several threads. Call :meth:`init` once, then :meth:`mine` any number of
    times.
    """

    def __init__(
        self,
        config: Optional[MinerConfig] = None,
        client: Optional[VerificationClient] = None,
        events: Optional[MinerEvents] = None,
        rng: Optional[random.Random] = None,
    ):
        self.config = config or MinerConfig()
        self.client = client or VerificationClient(self.config)
        self.events = events or MinerEvents()
        self.rng = rng or random.Random(self.config.seed)
        self.chain = ChainState()
        self.proof_of_work = ProofOfWork(
            ConsensusConfig(
                initial_difficulty=self.config.initial_difficulty,
                max_difficulty=self.config.max_difficulty,
            )
        )
        self._difficulty = self.config.initial_difficulty
        # Difficulty before each speculative append, restored on rollback.
        self._pending: Dict[int, int] = {}
        self._context = LogContext(component="miner", instance=self.config.instance)

    @property
    def difficulty(self) -> int:
        return self._difficulty

    def add_listener(self, event: EventType, listener: Callable[[Any], None]) -> None:
        self.events.add_event_listener(event, listener)

    def init(self) -> Block:
        """
        Recreate and validate the genesis block from server metadata.

        Raises:
            GenesisMismatchError: If the local genesis hash differs from the server's
        """
        info = self.client.get_info()
        descriptor = info.first_block
        try:
            genesis = self.chain.seed_genesis(
                descriptor.index,
                descriptor.timestamp,
                GENESIS_DATA,
                expected_hash=descriptor.hash,
            )
        except GenesisMismatchError as e:
            logger.error(f"Genesis validation failed: {e.message}", context=self._context)
            raise

        self.sync_difficulty(info)
        logger.info(
            f"Chain initialized from genesis block {genesis.index}",
            context=self._context,
            extra={"hash": genesis.hash, "difficulty": self._difficulty},
        )
        return genesis

    def sync_difficulty(self, info: Optional[ChainInfo] = None) -> int:
        """Overwrite the local difficulty with the server's value."""
        if info is None:
            info = self.client.get_info()
        if info.difficulty != self._difficulty:
            logger.debug(
                f"Difficulty resynchronized {self._difficulty} -> {info.difficulty}",
                context=self._context,
            )
        self._difficulty = info.difficulty
        return self._difficulty

    def candidate_range(self, total_blocks: int) -> Tuple[int, int]:
        """Inclusive range of millisecond offsets for candidate timestamps."""
        low = self._difficulty
        return low, low + total_blocks ** 2

    def add_block(
        self, timestamp: datetime, cancel_token: Optional[CancellationToken] = None
    ) -> Block:
        """
        Build, proof-of-work and append a speculative block.

        The block carries the current difficulty as its payload. After the
        append the local difficulty drifts by the time gap to the preceding
        block.
        """
        latest = self.chain.latest()
        block = Block(
            latest.index + 1, timestamp, str(self._difficulty), latest.hash
        )
        self.proof_of_work.mine_block(block, self._difficulty, cancel_token)

        self.chain.append(block)
        self._pending[id(block)] = self._difficulty
        self._difficulty = self.proof_of_work.next_difficulty(
            self._difficulty, latest, block
        )
        return block

    def _discard(self, block: Block) -> None:
        self.chain.rollback_last(block)
        self._difficulty = self._pending.pop(id(block), self._difficulty)

    def _draw_offset(
        self, base_ms: int, low: int, high: int, tried: Set[int]
    ) -> Tuple[int, int]:
        """
        Draw an offset in ``[low, high]`` whose UTC second has not been tried.

        Timestamps reach the hash at one-second resolution, so a second is
        drawn first and then a millisecond offset inside it.
        """
        first, last = (base_ms + low) // 1000, (base_ms + high) // 1000
        while True:
            second = self.rng.randint(first, last)
            if second not in tried:
                break
        start = max(low, second * 1000 - base_ms)
        end = min(high, second * 1000 + 999 - base_ms)
        return second, self.rng.randint(start, end)

    def _mine_one(self, info: ChainInfo, cancel_token: CancellationToken) -> Tuple[Block, int]:
        """Submit candidates until one is accepted; returns it and the rejection count."""
        low, high = self.candidate_range(info.total_blocks)
        base = info.last_claimed_timestamp or self.chain.latest().timestamp
        base_ms = epoch_millis(base)
        seconds = (base_ms + high) // 1000 - (base_ms + low) // 1000 + 1
        tried: Set[int] = set()
        rejected = 0

        while True:
            cancel_token.raise_if_cancelled()
            if len(tried) >= seconds:
                raise SearchSpaceExhaustedError(low, high)

            second, offset = self._draw_offset(base_ms, low, high, tried)
            tried.add(second)

            block = self.add_block(base + timedelta(milliseconds=offset), cancel_token)
            try:
                result = self.client.submit_block(block.hash)
            except BaseException:
                self._discard(block)
                raise

            if result.accepted:
                self._pending.pop(id(block), None)
                return block, rejected

            self._discard(block)
            rejected += 1
            logger.debug(
                f"Block {block.index} rejected at offset {offset}: {result.detail}",
                context=self._context,
            )
            self.events.emit_event(EventType.BLOCK_REJECTED, block)

    def mine(
        self, count: int = 1, cancel_token: Optional[CancellationToken] = None
    ) -> SessionResult:
        """
        Run a mining session until ``count`` blocks have been accepted.

        Args:
            count: Number of accepted blocks to obtain
            cancel_token: Optional token to abort the session

        Returns:
            The session result, also delivered as a ``mining:sequence`` event

        Raises:
            EmptyChainError: If :meth:`init` has not succeeded
            MiningCancelledError: If ``cancel_token`` is cancelled
        """
        if count < 0:
            raise ValueError("Count must be non-negative")
        if not self.chain.is_seeded:
            raise EmptyChainError("Miner.init() must succeed before mining")

        cancel_token = cancel_token or CancellationToken()
        started_at = datetime.now(timezone.utc)
        start = time.monotonic()

        self.sync_difficulty()
        found: List[Block] = []
        failed = 0

        for iteration in range(count):
            cancel_token.raise_if_cancelled()
            info = self.client.get_info()
            block, rejected = self._mine_one(info, cancel_token)
            failed += rejected
            found.append(block)
            logger.info(
                f"Found block {block.index} ({iteration + 1}/{count})",
                context=self._context,
                extra={"hash": block.hash, "rejected": rejected},
            )
            self.events.emit_event(EventType.BLOCK_FOUND, block)

        result = SessionResult(
            found=len(found),
            failed=failed,
            total=count,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            elapsed=time.monotonic() - start,
            blocks=tuple(found),
        )
        logger.info(
            f"Mining session finished: {result.found}/{result.total} blocks",
            context=self._context,
            extra={"failed": result.failed, "elapsed": round(result.elapsed, 3)},
        )
        self.events.emit_event(EventType.MINING_SEQUENCE, result)
        return result

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "Miner":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
