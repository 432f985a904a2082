"""
Cryptographic primitives for MonkeyMiner.
"""

from .hashing import HASH_HEX_LENGTH, SHA256Hasher

__all__ = [
    "HASH_HEX_LENGTH",
    "SHA256Hasher",
]
