"""Cooperative cancellation for mining sessions."""

import threading

from ..errors.exceptions import MiningCancelledError


class CancellationToken:
    """Flag that a long-running search polls to stop early.

    The token may be set from any thread (or a signal handler); the mining
    loop checks it between nonce increments and between retry attempts.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason = "Mining cancelled"

    def cancel(self, reason: str = "Mining cancelled") -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise MiningCancelledError(self.reason)

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"
