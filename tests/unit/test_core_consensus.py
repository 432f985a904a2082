"""Unit tests for monkeyminer.core.consensus module."""

from datetime import datetime, timedelta, timezone

import pytest

from monkeyminer.core.block import Block
from monkeyminer.core.consensus import ConsensusConfig, ProofOfWork, adjust_difficulty

UTC = timezone.utc


def pair(gap_ms: int):
    preceding = Block(0, datetime(2020, 1, 1, tzinfo=UTC), "x", "0")
    block = Block(1, preceding.timestamp + timedelta(milliseconds=gap_ms), "4", preceding.hash)
    return preceding, block


class TestConsensusConfig:
    """Test consensus configuration validation."""

    def test_defaults(self):
        """Test default values."""
        config = ConsensusConfig()

        assert config.initial_difficulty == 4
        assert config.difficulty_modulus == 63
        assert config.max_difficulty == 64

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"initial_difficulty": -1},
            {"difficulty_modulus": 0},
            {"max_difficulty": 65},
            {"max_difficulty": -1},
        ],
    )
    def test_invalid_values(self, kwargs):
        """Test that invalid values are rejected."""
        with pytest.raises(ValueError):
            ConsensusConfig(**kwargs)


class TestDifficultyAdjustment:
    """Test the self-adjustment rule."""

    def test_one_second_gap(self):
        """Test a one second gap from difficulty 4."""
        preceding, block = pair(1000)
        assert adjust_difficulty(4, preceding, block) == (4 + 1000) % 63 == 59

    def test_zero_gap_keeps_difficulty(self):
        """Test that identical timestamps leave the difficulty unchanged."""
        preceding, block = pair(0)
        assert adjust_difficulty(17, preceding, block) == 17

    def test_result_stays_below_modulus(self):
        """Test that large gaps wrap around the modulus."""
        preceding, block = pair(86_400_000 + 123)
        result = adjust_difficulty(62, preceding, block)

        assert 0 <= result < 63
        assert result == (62 + 86_400_123) % 63

    def test_custom_modulus(self):
        """Test the rule through ProofOfWork with a custom modulus."""
        pow_ = ProofOfWork(ConsensusConfig(difficulty_modulus=10))
        preceding, block = pair(1234)
        assert pow_.next_difficulty(3, preceding, block) == (3 + 1234) % 10


class TestProofOfWorkDriver:
    """Test the proof-of-work driver."""

    def test_effective_difficulty_is_capped(self):
        """Test clamping to the hash length and the configured cap."""
        pow_ = ProofOfWork(ConsensusConfig(max_difficulty=2))

        assert pow_.effective_difficulty(40) == 2
        assert pow_.effective_difficulty(1) == 1
        assert pow_.effective_difficulty(-3) == 0
        assert ProofOfWork().effective_difficulty(100) == 64

    def test_mine_and_verify(self):
        """Test mining a block and verifying it."""
        pow_ = ProofOfWork(ConsensusConfig(max_difficulty=2))
        _, block = pair(1000)

        mined = pow_.mine_block(block, 2)

        assert mined is block
        assert block.hash.startswith("00")
        assert pow_.verify_block(block, 2)

    def test_verify_detects_stale_hash(self):
        """Test that a block whose fields changed after mining fails verification."""
        pow_ = ProofOfWork(ConsensusConfig(max_difficulty=1))
        _, block = pair(1000)
        pow_.mine_block(block, 1)

        block.data = "tampered"

        assert not pow_.verify_block(block, 1)
