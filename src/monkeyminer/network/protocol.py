"""
Verification Service protocol definitions.

Routes, envelope tags, and typed views of the payloads the service returns.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union

from ..errors.exceptions import InvalidPathError, ProtocolError


class MessageType(Enum):
    """Envelope ``type`` tags returned by the service."""

    GENERAL_INFO = "general:info"
    USER_MINE = "user:mine"


@dataclass(frozen=True)
class RequestRoute:
    """A known service path and how to call it."""

    path: str
    method: str
    auth: bool
    response_type: MessageType


ROUTES: Dict[str, RequestRoute] = {
    "mine": RequestRoute("mine", "POST", auth=True, response_type=MessageType.USER_MINE),
    "info": RequestRoute("info", "GET", auth=False, response_type=MessageType.GENERAL_INFO),
}


def resolve_route(path: str) -> RequestRoute:
    """Look up ``path`` (a leading slash is ignored)."""
    route = ROUTES.get(path.lstrip("/"))
    if route is None:
        raise InvalidPathError(path)
    return route


def parse_timestamp(value: Union[str, int, float, datetime]) -> datetime:
    """
    Parse a service timestamp into an aware UTC datetime.

    Accepts ISO-8601 strings (``Z`` suffix allowed) and epoch milliseconds,
    either as numbers or as digit strings.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, bool):
        raise ProtocolError(f"Invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            return datetime.fromtimestamp(int(text) / 1000, tz=timezone.utc)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise ProtocolError(f"Invalid timestamp: {value!r}", cause=e) from e
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    raise ProtocolError(f"Invalid timestamp: {value!r}")


def unwrap_payload(body: Dict[str, Any]) -> Dict[str, Any]:
    """Return the object under ``data`` when present, otherwise the envelope."""
    data = body.get("data")
    if isinstance(data, dict):
        return data
    return body


def _require(payload: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in payload:
            return payload[key]
    raise ProtocolError(f"Malformed info payload: missing '{keys[0]}'", endpoint="info")


@dataclass(frozen=True)
class GenesisDescriptor:
    """Public inputs and authoritative hash of the genesis block."""

    index: int
    hash: str
    timestamp: datetime

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "GenesisDescriptor":
        if not isinstance(payload, dict):
            raise ProtocolError("Malformed info payload: 'firstBlock' is not an object", endpoint="info")
        return cls(
            index=int(_require(payload, "index")),
            hash=str(_require(payload, "hash")),
            timestamp=parse_timestamp(_require(payload, "timestamp")),
        )


@dataclass(frozen=True)
class ChainInfo:
    """Chain metadata reported by the ``info`` route."""

    free_blocks: int
    total_blocks: int
    owned_blocks: int
    difficulty: int
    first_block: GenesisDescriptor
    last_claimed_timestamp: Optional[datetime] = None

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ChainInfo":
        last_claimed = payload.get("lastClaimedTimestamp")
        try:
            return cls(
                free_blocks=int(payload.get("freeBlocks", 0)),
                total_blocks=int(_require(payload, "totalBlocks")),
                owned_blocks=int(payload.get("ownedBlocks", payload.get("ownerBlocks", 0))),
                difficulty=int(_require(payload, "difficulty")),
                first_block=GenesisDescriptor.from_dict(_require(payload, "firstBlock")),
                last_claimed_timestamp=(
                    parse_timestamp(last_claimed) if last_claimed is not None else None
                ),
            )
        except (TypeError, ValueError) as e:
            raise ProtocolError(f"Malformed info payload: {e}", endpoint="info", cause=e) from e


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of submitting a candidate hash to the ``mine`` route."""

    accepted: bool
    block_hash: str
    detail: Optional[str] = None
    data: Any = None
    status_code: Optional[int] = None
