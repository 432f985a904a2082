"""
Block implementation for MonkeyMiner.

A block is hashed from its index, the preceding hash, the UTC timestamp, the
JSON-encoded payload and the nonce. The timestamp is rendered the way the
Verification Service renders it (US-English, 12-hour clock, UTC), since the
genesis hash it publishes must be reproducible locally.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..crypto.hashing import SHA256Hasher
from ..logging import get_logger
from .cancellation import CancellationToken

logger = get_logger(__name__)

GENESIS_DATA = "Initial block in chain"
GENESIS_PRECEDING_HASH = "0"

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_utc(timestamp: datetime) -> datetime:
    """Normalize a datetime to UTC; naive values are taken to be UTC already."""
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)


def format_utc_timestamp(timestamp: datetime) -> str:
    """Render ``timestamp`` as ``M/D/YYYY, h:MM:SS AM`` in UTC."""
    ts = to_utc(timestamp)
    hour = ts.hour % 12 or 12
    meridiem = "AM" if ts.hour < 12 else "PM"
    return f"{ts.month}/{ts.day}/{ts.year}, {hour}:{ts.minute:02d}:{ts.second:02d} {meridiem}"


def millis_between(earlier: datetime, later: datetime) -> int:
    """Whole milliseconds from ``earlier`` to ``later`` (negative if reversed)."""
    delta = to_utc(later) - to_utc(earlier)
    return (delta.days * 86_400_000) + (delta.seconds * 1000) + (delta.microseconds // 1000)


def epoch_millis(timestamp: datetime) -> int:
    """Whole milliseconds since the Unix epoch."""
    return millis_between(EPOCH, timestamp)


class Block:
    """A speculative or accepted block of the local chain.

    ``hash`` is derived from the other fields. Any code that changes a hashed
    field must call :meth:`rehash` before handing the block to anyone else;
    :meth:`proof_of_work` keeps the two in step on its own.
    """

    def __init__(
        self,
        index: int,
        timestamp: datetime,
        data: str,
        preceding_hash: str,
        nonce: int = 0,
    ):
        if index < 0:
            raise ValueError("Index must be non-negative")
        if nonce < 0:
            raise ValueError("Nonce must be non-negative")

        self.index = index
        self.timestamp = to_utc(timestamp)
        self.data = data
        self.preceding_hash = preceding_hash
        self.nonce = nonce
        self.hash = self.compute_hash()

    def compute_hash(self) -> str:
        """Compute the hash of this block from its current fields."""
        payload = (
            str(self.index)
            + self.preceding_hash
            + format_utc_timestamp(self.timestamp)
            + json.dumps(self.data, ensure_ascii=False)
            + str(self.nonce)
        )
        return SHA256Hasher.hash(payload)

    def rehash(self) -> str:
        self.hash = self.compute_hash()
        return self.hash

    def meets_difficulty(self, difficulty: int) -> bool:
        """Check if the current hash has ``difficulty`` leading zero hex digits."""
        return SHA256Hasher.verify_proof_of_work(self.hash, difficulty)

    def proof_of_work(
        self, difficulty: int, cancel_token: Optional[CancellationToken] = None
    ) -> int:
        """
        Increment the nonce until the hash meets ``difficulty``.

        Args:
            difficulty: Required leading zero hex digits, clamped to the hash length
            cancel_token: Checked before every increment

        Returns:
            Number of hashes computed during the search

        Raises:
            MiningCancelledError: If ``cancel_token`` is cancelled mid-search
        """
        difficulty = SHA256Hasher.clamp_difficulty(difficulty)
        target = "0" * difficulty
        attempts = 0

        while not self.hash.startswith(target):
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            self.nonce += 1
            self.hash = self.compute_hash()
            attempts += 1

        logger.debug(
            f"Block {self.index} met difficulty {difficulty} "
            f"with nonce {self.nonce} after {attempts} hashes"
        )
        return attempts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "timestamp": self.timestamp.isoformat().replace("+00:00", "Z"),
            "data": self.data,
            "preceding_hash": self.preceding_hash,
            "nonce": self.nonce,
            "hash": self.hash,
        }

    @classmethod
    def genesis(
        cls,
        index: int,
        timestamp: datetime,
        data: str = GENESIS_DATA,
        preceding_hash: str = GENESIS_PRECEDING_HASH,
    ) -> "Block":
        """Recreate the genesis block from its public inputs."""
        return cls(index, timestamp, data, preceding_hash)

    def __str__(self) -> str:
        return f"Block(index={self.index}, hash={self.hash[:16]}...)"

    def __repr__(self) -> str:
        return f"Block(index={self.index}, nonce={self.nonce}, hash={self.hash!r})"
