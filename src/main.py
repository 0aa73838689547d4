import argparse
import logging
import sys
from typing import List, Optional

from config import LOG_LEVELS, EngineConfig
from errors import DecodeError
from exporter import write_accounts
from payments_engine import PaymentsEngine

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="payments-engine",
        description="Replay a CSV of transactions and print the resulting client accounts.",
    )
    parser.add_argument("input", help="Transactions CSV file")
    parser.add_argument("--shards", type=int, default=None, help="Number of shard consumer threads")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=None,
        help="Logging level for stderr diagnostics",
    )
    return parser


def load_config(args: argparse.Namespace, parser: argparse.ArgumentParser) -> EngineConfig:
    try:
        config = EngineConfig.from_env()
        if args.shards is not None:
            config = EngineConfig(num_shards=args.shards, log_level=config.log_level)
        if args.log_level is not None:
            config = EngineConfig(num_shards=config.num_shards, log_level=args.log_level)
    except ValueError as e:
        parser.error(str(e))
    return config


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    config = load_config(args, parser)

    logging.basicConfig(
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger().setLevel(config.log_level_value)

    engine = PaymentsEngine(num_shards=config.num_shards)
    try:
        accounts = engine.process_file(args.input)
    except OSError as e:
        logger.error(f"Cannot read {args.input}: {e}")
        return 1
    except DecodeError as e:
        logger.error(f"Cannot process {args.input}: {e}")
        return 1

    write_accounts(accounts, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
