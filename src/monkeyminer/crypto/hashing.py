"""
Hash functions and utilities for MonkeyMiner.

Implements SHA-256 hex digests and the leading-zero difficulty predicate used
by the proof-of-work search.
"""

import hashlib
from typing import Union

# Number of hexadecimal characters in a SHA-256 digest.
HASH_HEX_LENGTH = 64


class SHA256Hasher:
    """SHA-256 hasher with proof-of-work utilities."""

    @staticmethod
    def hash(data: Union[bytes, str]) -> str:
        """
        Hash data using SHA-256.

        Args:
            data: Data to hash (bytes or string, strings are UTF-8 encoded)

        Returns:
            Lowercase hexadecimal digest
        """
        if isinstance(data, str):
            data = data.encode("utf-8")

        return hashlib.sha256(data).hexdigest()

    @staticmethod
    def clamp_difficulty(difficulty: int) -> int:
        """Clamp a difficulty into ``[0, HASH_HEX_LENGTH]``."""
        return max(0, min(int(difficulty), HASH_HEX_LENGTH))

    @staticmethod
    def verify_proof_of_work(hash_hex: str, difficulty: int) -> bool:
        """
        Verify that a hash meets the proof of work difficulty requirement.

        Args:
            hash_hex: Hexadecimal digest to verify
            difficulty: Required number of leading ``'0'`` hex characters

        Returns:
            True if the hash meets the difficulty requirement
        """
        if difficulty <= 0:
            return True
        return hash_hex[:difficulty] == "0" * difficulty
