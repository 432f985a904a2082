"""Shared fixtures for the MonkeyMiner test suite."""

from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

import pytest

from monkeyminer.config import MinerConfig
from monkeyminer.logging import LogConfig, LogLevel, setup_logging, shutdown_logging
from monkeyminer.network.protocol import ChainInfo, GenesisDescriptor, VerificationResult

GENESIS_TIMESTAMP = datetime(2020, 1, 1, tzinfo=timezone.utc)
# sha256('0' + '0' + '1/1/2020, 12:00:00 AM' + '"Initial block in chain"' + '0')
GENESIS_HASH = "d0c98585e602a553f5546c379c5c32b8a23b52cdc77f7efd75ba5f5fc35d8ee1"

_ENV_VARS = [
    "MONKEYMINER_INSTANCE",
    "MONKEYMINER_ENV",
    "MONKEYMINER_LOG_LEVEL",
    "MONKEYMINER_LOG_FORMAT",
    "MONKEYMINER_TIMEOUT",
    "MONKEYMINER_MAX_DIFFICULTY",
    "MONKEYMINER_SEED",
    "MONKEYMINER_AUTH_ID",
    "MONKEYMINER_AUTH_KEY",
]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep the developer's MONKEYMINER_* variables out of the tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def log_manager():
    """Route log output to memory for the duration of a test."""
    manager = setup_logging(LogConfig(level=LogLevel.DEBUG, handlers=["memory"]))
    yield manager
    shutdown_logging()


def make_info(
    total_blocks: int = 5,
    difficulty: int = 1,
    last_claimed: Optional[datetime] = GENESIS_TIMESTAMP + timedelta(days=1),
    genesis_hash: str = GENESIS_HASH,
) -> ChainInfo:
    return ChainInfo(
        free_blocks=100,
        total_blocks=total_blocks,
        owned_blocks=0,
        difficulty=difficulty,
        first_block=GenesisDescriptor(
            index=0, hash=genesis_hash, timestamp=GENESIS_TIMESTAMP
        ),
        last_claimed_timestamp=last_claimed,
    )


class StubVerificationClient:
    """In-memory stand-in for :class:`VerificationClient`.

    ``verdicts`` is consumed one per submission; once exhausted every
    candidate is accepted.
    """

    def __init__(self, info: ChainInfo, verdicts: Iterable[bool] = ()):
        self.info = info
        self._verdicts = iter(verdicts)
        self.submitted: List[str] = []
        self.info_calls = 0
        self.closed = False
        self.submit_error: Optional[BaseException] = None

    def get_info(self) -> ChainInfo:
        self.info_calls += 1
        return self.info

    def submit_block(self, block_hash: str) -> VerificationResult:
        self.submitted.append(block_hash)
        if self.submit_error is not None:
            raise self.submit_error
        accepted = next(self._verdicts, True)
        return VerificationResult(
            accepted=accepted,
            block_hash=block_hash,
            detail=None if accepted else "Block already claimed",
        )

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def miner_config():
    return MinerConfig(
        instance="https://verify.example.test",
        environment="test",
        max_difficulty=1,
        seed=1234,
    )


@pytest.fixture
def genesis_timestamp():
    return GENESIS_TIMESTAMP


@pytest.fixture
def genesis_hash():
    return GENESIS_HASH


@pytest.fixture
def chain_info():
    """Factory for :class:`ChainInfo` values around the known genesis block."""
    return make_info


@pytest.fixture
def stub_client():
    """Factory for :class:`StubVerificationClient` instances."""

    def factory(info: Optional[ChainInfo] = None, verdicts: Iterable[bool] = ()):
        return StubVerificationClient(info or make_info(), verdicts)

    return factory
