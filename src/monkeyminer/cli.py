"""
Command line interface for MonkeyMiner.

Usage:

    monkeyminer info
    monkeyminer --id ID --key KEY mine -n 3
"""

import argparse
import json
import signal
import sys
from dataclasses import asdict
from typing import List, Optional

import requests

from .config import MinerConfig, load_config
from .core import CancellationToken, EventType, Miner
from .errors import ErrorSeverity, MinerError, MiningCancelledError
from .logging import LogContext, get_logger, setup_logging
from .network import VerificationClient

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="monkeyminer", description="Speculative proof-of-work mining client"
    )
    parser.add_argument("--config", help="Path to a JSON configuration file")
    parser.add_argument("--instance", help="Verification Service base URL")
    parser.add_argument("--id", dest="auth_id", help="Credential id")
    parser.add_argument("--key", dest="auth_key", help="Credential secret")
    parser.add_argument("--log-level", help="trace, debug, info, warning, error or critical")
    parser.add_argument("--log-format", choices=["text", "json"], help="Log output format")
    parser.add_argument("--timeout", type=float, help="Per-request timeout in seconds")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("info", help="Print chain metadata")
    mine_parser = subparsers.add_parser("mine", help="Mine blocks")
    mine_parser.add_argument(
        "-n", "--count", type=int, default=1, help="Number of blocks to mine"
    )
    mine_parser.add_argument("--seed", type=int, help="Seed for the offset generator")
    return parser


def build_config(args: argparse.Namespace) -> MinerConfig:
    """Merge the config file, environment and command line options."""
    overrides = {
        "instance": args.instance,
        "log_level": args.log_level,
        "log_format": args.log_format,
        "timeout": args.timeout,
        "seed": getattr(args, "seed", None),
    }
    if args.config:
        config = load_config(args.config, **overrides)
    else:
        config = MinerConfig.from_dict({}, **overrides)

    if args.auth_id is not None or args.auth_key is not None:
        config.update_auth(args.auth_id, args.auth_key)
    return config


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, default=str))


def run_info(config: MinerConfig) -> int:
    with VerificationClient(config) as client:
        info = client.get_info()
    _print_json(asdict(info))
    return 0


def run_mine(config: MinerConfig, count: int) -> int:
    token = CancellationToken()
    previous_handler = signal.signal(
        signal.SIGINT, lambda signum, frame: token.cancel("Interrupted by user")
    )
    try:
        with Miner(config) as miner:
            miner.add_listener(
                EventType.BLOCK_FOUND,
                lambda block: logger.info(
                    f"block:found index={block.index} hash={block.hash}"
                ),
            )
            miner.init()
            result = miner.mine(count, cancel_token=token)
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    _print_json(result.to_dict())
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "mine" and args.count < 0:
        parser.error("--count must be non-negative")

    try:
        config = build_config(args)
        manager = setup_logging(config.to_log_config())
        manager.set_context(LogContext(operation=args.command, instance=config.instance))

        if args.command == "info":
            return run_info(config)
        return run_mine(config, args.count)
    except MiningCancelledError as e:
        print(f"cancelled: {e.message}", file=sys.stderr)
        return 130
    except MinerError as e:
        if e.severity is ErrorSeverity.CRITICAL:
            logger.critical(str(e), extra=e.metadata)
        print(f"error: {e.message}", file=sys.stderr)
        return 1
    except requests.RequestException as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
