"""Event system for mining sessions."""

from enum import Enum
from typing import Any, Callable, Dict, List

from ..logging import get_logger

logger = get_logger(__name__)


class EventType(Enum):
    """Events emitted by the miner."""

    BLOCK_FOUND = "block:found"
    BLOCK_REJECTED = "block:rejected"
    MINING_SEQUENCE = "mining:sequence"


Listener = Callable[[Any], None]


class MinerEvents:
    """Synchronous listener registry.

    Listeners run in registration order on the miner's own thread, so every
    ``block:found`` of a session is delivered before its ``mining:sequence``.
    """

    def __init__(self) -> None:
        self.event_listeners: Dict[EventType, List[Listener]] = {}

    def add_event_listener(self, event_type: EventType, listener: Listener) -> None:
        """Add an event listener."""
        if event_type not in self.event_listeners:
            self.event_listeners[event_type] = []
        self.event_listeners[event_type].append(listener)

    def remove_event_listener(self, event_type: EventType, listener: Listener) -> None:
        """Remove an event listener."""
        listeners = self.event_listeners.get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)

    def emit_event(self, event_type: EventType, payload: Any) -> None:
        """Deliver ``payload`` to every listener of ``event_type``."""
        for listener in list(self.event_listeners.get(event_type, [])):
            try:
                listener(payload)
            except Exception as e:
                logger.warning(
                    f"Error in {event_type.value} listener: {e}",
                    exception=e,
                    extra={"event": event_type.value},
                )
