"""Unit tests for monkeyminer.network.protocol module."""

from datetime import datetime, timezone

import pytest

from monkeyminer.errors import InvalidPathError, ProtocolError
from monkeyminer.network.protocol import (
    ChainInfo,
    GenesisDescriptor,
    MessageType,
    parse_timestamp,
    resolve_route,
    unwrap_payload,
)

UTC = timezone.utc

INFO_PAYLOAD = {
    "freeBlocks": 10,
    "totalBlocks": 5,
    "ownedBlocks": 2,
    "difficulty": 3,
    "firstBlock": {"index": 0, "hash": "abc", "timestamp": "2020-01-01T00:00:00.000Z"},
    "lastClaimedTimestamp": 1577923200000,
}


class TestRoutes:
    """Test the route table."""

    def test_info_route(self):
        """Test the unauthenticated info route."""
        route = resolve_route("info")

        assert route.method == "GET"
        assert not route.auth
        assert route.response_type is MessageType.GENERAL_INFO

    def test_mine_route(self):
        """Test the authenticated mine route."""
        route = resolve_route("/mine")

        assert route.method == "POST"
        assert route.auth
        assert route.response_type.value == "user:mine"

    def test_unknown_route(self):
        """Test unknown paths are rejected."""
        with pytest.raises(InvalidPathError, match="Invalid request path: blocks"):
            resolve_route("blocks")


class TestTimestamps:
    """Test service timestamp parsing."""

    def test_iso_with_z(self):
        """Test ISO strings with a Z suffix."""
        assert parse_timestamp("2020-01-01T00:00:00.000Z") == datetime(2020, 1, 1, tzinfo=UTC)

    def test_iso_with_offset(self):
        """Test ISO strings with an explicit offset are converted to UTC."""
        parsed = parse_timestamp("2020-01-01T02:00:00+02:00")

        assert parsed == datetime(2020, 1, 1, tzinfo=UTC)
        assert parsed.tzinfo == UTC

    def test_epoch_milliseconds(self):
        """Test numeric and digit-string epoch milliseconds."""
        expected = datetime(2020, 1, 2, tzinfo=UTC)

        assert parse_timestamp(1577923200000) == expected
        assert parse_timestamp("1577923200000") == expected

    def test_datetime_passthrough(self):
        """Test datetimes are accepted and made aware."""
        assert parse_timestamp(datetime(2020, 1, 1)).tzinfo == UTC

    @pytest.mark.parametrize("value", ["yesterday", True, None, [2020]])
    def test_invalid(self, value):
        """Test unparseable values raise ProtocolError."""
        with pytest.raises(ProtocolError):
            parse_timestamp(value)


class TestPayloads:
    """Test typed payload views."""

    def test_unwrap_payload(self):
        """Test both wrapped and flat envelopes."""
        assert unwrap_payload({"type": "general:info", "data": {"a": 1}}) == {"a": 1}
        flat = {"type": "general:info", "a": 1}
        assert unwrap_payload(flat) is flat

    def test_chain_info_from_dict(self):
        """Test parsing a complete info payload."""
        info = ChainInfo.from_dict(INFO_PAYLOAD)

        assert info.free_blocks == 10
        assert info.total_blocks == 5
        assert info.owned_blocks == 2
        assert info.difficulty == 3
        assert info.first_block == GenesisDescriptor(
            index=0, hash="abc", timestamp=datetime(2020, 1, 1, tzinfo=UTC)
        )
        assert info.last_claimed_timestamp == datetime(2020, 1, 2, tzinfo=UTC)

    def test_chain_info_owner_blocks_alias(self):
        """Test the alternate spelling of the owned block count."""
        payload = dict(INFO_PAYLOAD)
        del payload["ownedBlocks"]
        payload["ownerBlocks"] = 4

        assert ChainInfo.from_dict(payload).owned_blocks == 4

    def test_chain_info_optional_fields(self):
        """Test optional fields fall back to defaults."""
        payload = {k: v for k, v in INFO_PAYLOAD.items() if k in ("totalBlocks", "difficulty", "firstBlock")}
        info = ChainInfo.from_dict(payload)

        assert info.free_blocks == 0
        assert info.owned_blocks == 0
        assert info.last_claimed_timestamp is None

    @pytest.mark.parametrize("missing", ["totalBlocks", "difficulty", "firstBlock"])
    def test_chain_info_missing_field(self, missing):
        """Test required fields."""
        payload = dict(INFO_PAYLOAD)
        del payload[missing]

        with pytest.raises(ProtocolError, match=missing):
            ChainInfo.from_dict(payload)

    def test_chain_info_bad_types(self):
        """Test non-numeric values are reported as protocol errors."""
        payload = dict(INFO_PAYLOAD, difficulty="hard")

        with pytest.raises(ProtocolError):
            ChainInfo.from_dict(payload)

    def test_genesis_descriptor_not_an_object(self):
        """Test a malformed firstBlock."""
        with pytest.raises(ProtocolError):
            ChainInfo.from_dict(dict(INFO_PAYLOAD, firstBlock="abc"))
