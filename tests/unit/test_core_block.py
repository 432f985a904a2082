"""Unit tests for monkeyminer.core.block module."""

import json
import threading
from datetime import datetime, timedelta, timezone

import pytest

from monkeyminer.core.block import (
    GENESIS_DATA,
    Block,
    format_utc_timestamp,
    millis_between,
    to_utc,
)
from monkeyminer.core.cancellation import CancellationToken
from monkeyminer.errors import MiningCancelledError

UTC = timezone.utc


class TestTimestampFormatting:
    """Test the UTC timestamp rendering used in block hashes."""

    def test_midnight_is_twelve_am(self):
        """Test that hour zero renders as 12 AM."""
        assert format_utc_timestamp(datetime(2020, 1, 1, tzinfo=UTC)) == "1/1/2020, 12:00:00 AM"

    def test_afternoon_uses_twelve_hour_clock(self):
        """Test afternoon hours with unpadded month, day and hour."""
        ts = datetime(2021, 3, 14, 15, 9, 26, tzinfo=UTC)
        assert format_utc_timestamp(ts) == "3/14/2021, 3:09:26 PM"

    def test_noon_is_twelve_pm(self):
        """Test that hour twelve renders as 12 PM."""
        ts = datetime(2022, 7, 4, 12, 0, 5, tzinfo=UTC)
        assert format_utc_timestamp(ts) == "7/4/2022, 12:00:05 PM"

    def test_milliseconds_are_not_rendered(self):
        """Test that sub-second precision is dropped."""
        ts = datetime(2020, 1, 1, 0, 0, 0, 999000, tzinfo=UTC)
        assert format_utc_timestamp(ts) == "1/1/2020, 12:00:00 AM"

    def test_other_timezones_are_converted(self):
        """Test that aware datetimes are rendered in UTC."""
        plus_two = timezone(timedelta(hours=2))
        ts = datetime(2020, 1, 1, 2, 0, 0, tzinfo=plus_two)
        assert format_utc_timestamp(ts) == "1/1/2020, 12:00:00 AM"

    def test_naive_datetimes_are_treated_as_utc(self):
        """Test that naive datetimes are taken to be UTC."""
        assert to_utc(datetime(2020, 1, 1)).tzinfo == UTC

    def test_millis_between(self):
        """Test millisecond differences, including negative ones."""
        start = datetime(2020, 1, 1, tzinfo=UTC)
        later = start + timedelta(days=1, seconds=2, milliseconds=345)

        assert millis_between(start, later) == 86_402_345
        assert millis_between(later, start) == -86_402_345
        assert millis_between(start, start) == 0


class TestBlockHash:
    """Test block hash computation against known digests."""

    def test_genesis_hash(self):
        """Test the genesis block hash for 2020-01-01T00:00:00Z."""
        block = Block.genesis(0, datetime(2020, 1, 1, tzinfo=UTC))

        assert block.data == GENESIS_DATA
        assert block.preceding_hash == "0"
        assert block.nonce == 0
        assert block.hash == "d0c98585e602a553f5546c379c5c32b8a23b52cdc77f7efd75ba5f5fc35d8ee1"

    def test_genesis_hash_afternoon(self):
        """Test a genesis hash whose timestamp falls in the afternoon."""
        block = Block.genesis(0, datetime(2021, 3, 14, 15, 9, 26, tzinfo=UTC))
        assert block.hash == "f9b14da360cbcef36af787c3a7c80a2acba8d13f3722faef452197b11db3311c"

    def test_regular_block_hash(self):
        """Test the hash of a non-genesis block with a nonce."""
        block = Block(5, datetime(2019, 12, 31, 23, 59, 59, tzinfo=UTC), "4", "abc", nonce=7)
        assert block.hash == "48906ea0b9cb2f65918e580f2d7757395e73b0104792319645fc057419d0cbee"

    def test_hash_changes_with_nonce(self):
        """Test that changing the nonce changes the hash after rehash."""
        block = Block(1, datetime(2020, 1, 1, tzinfo=UTC), "4", "0" * 64)
        original = block.hash

        block.nonce = 1
        assert block.hash == original
        assert block.rehash() != original
        assert block.hash == block.compute_hash()

    def test_negative_index_rejected(self):
        """Test that negative indices are rejected."""
        with pytest.raises(ValueError):
            Block(-1, datetime(2020, 1, 1, tzinfo=UTC), "x", "0")

    def test_negative_nonce_rejected(self):
        """Test that negative nonces are rejected."""
        with pytest.raises(ValueError):
            Block(0, datetime(2020, 1, 1, tzinfo=UTC), "x", "0", nonce=-1)


class TestProofOfWork:
    """Test the nonce search."""

    def test_difficulty_zero_keeps_nonce(self):
        """Test that difficulty zero is satisfied without any search."""
        block = Block(1, datetime(2020, 1, 1, tzinfo=UTC), "0", "a" * 64)

        attempts = block.proof_of_work(0)

        assert attempts == 0
        assert block.nonce == 0

    def test_difficulty_is_met(self):
        """Test that the search stops on a hash with enough leading zeros."""
        block = Block(1, datetime(2020, 1, 1, tzinfo=UTC), "2", "a" * 64)

        attempts = block.proof_of_work(2)

        assert block.hash.startswith("00")
        assert block.hash == block.compute_hash()
        assert block.nonce == attempts
        assert block.meets_difficulty(2)

    def test_negative_difficulty_is_clamped(self):
        """Test that negative difficulties behave like zero."""
        block = Block(1, datetime(2020, 1, 1, tzinfo=UTC), "0", "a" * 64)
        assert block.proof_of_work(-5) == 0

    def test_cancelled_token_stops_search(self):
        """Test that a cancelled token aborts an unsatisfiable search."""
        block = Block(1, datetime(2020, 1, 1, tzinfo=UTC), "64", "a" * 64)
        token = CancellationToken()
        token.cancel("stop")

        with pytest.raises(MiningCancelledError, match="stop"):
            block.proof_of_work(64, cancel_token=token)

    def test_cancel_from_another_thread(self):
        """Test cancelling an unsatisfiable search while it runs."""
        block = Block(1, datetime(2020, 1, 1, tzinfo=UTC), "64", "a" * 64)
        token = CancellationToken()
        timer = threading.Timer(0.05, token.cancel, args=("Interrupted by user",))
        timer.start()

        try:
            with pytest.raises(MiningCancelledError, match="Interrupted by user"):
                block.proof_of_work(64, cancel_token=token)
        finally:
            timer.cancel()

        assert block.nonce > 0
        assert block.hash == block.compute_hash()

    def test_search_is_logged(self, log_manager):
        """Test the search outcome reaches the configured log handlers."""
        block = Block(1, datetime(2020, 1, 1, tzinfo=UTC), "1", "a" * 64)

        attempts = block.proof_of_work(1)

        messages = [log["message"] for log in log_manager.handlers["memory"].get_logs()]
        assert f"Block 1 met difficulty 1 with nonce {block.nonce} after {attempts} hashes" in messages


class TestBlockSerialization:
    """Test block representations."""

    def test_to_dict(self):
        """Test dictionary view of a block."""
        block = Block(5, datetime(2019, 12, 31, 23, 59, 59, tzinfo=UTC), "4", "abc", nonce=7)
        data = block.to_dict()

        assert data["index"] == 5
        assert data["timestamp"] == "2019-12-31T23:59:59Z"
        assert data["data"] == "4"
        assert data["preceding_hash"] == "abc"
        assert data["nonce"] == 7
        assert data["hash"] == block.hash
        json.dumps(data)

    def test_str_and_repr(self):
        """Test string representations mention the index."""
        block = Block.genesis(0, datetime(2020, 1, 1, tzinfo=UTC))

        assert "index=0" in str(block)
        assert block.hash in repr(block)
