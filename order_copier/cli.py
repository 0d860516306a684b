"""
Command-line entry point: order-copier / python -m order_copier.

Exit codes: 0 after a requested shutdown, 1 when the source stream could not
be started or ended by itself, 2 for configuration errors.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Sequence

from order_copier import __version__
from order_copier.app import install_signal_handlers, run_replication
from order_copier.config import LOG_LEVEL_ENV, ReplicatorConfig, load_config
from order_copier.errors import (
    ConfigurationError,
    StreamConnectionError,
    StreamTerminatedError,
    SubscriptionError,
)

logger = logging.getLogger("order_copier")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="order-copier",
        description="Copy new orders from a source exchange account to a destination account.",
    )
    parser.add_argument("--env-file", default=None, help="Path to a .env file with account credentials")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Record translated orders locally instead of placing them on the destination account",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Logging level (default: ${LOG_LEVEL_ENV} or INFO)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def configure_logging(level: str | None) -> None:
    level = (level or os.environ.get(LOG_LEVEL_ENV) or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def _run(config: ReplicatorConfig) -> None:
    cancel = asyncio.Event()
    install_signal_handlers(cancel)
    await run_replication(config, cancel=cancel)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    logger.info("Starting order copier %s", __version__)

    try:
        config = load_config(dotenv_path=args.env_file, dry_run=args.dry_run)
    except ConfigurationError as e:
        logger.error("%s", e)
        return EXIT_CONFIG

    try:
        asyncio.run(_run(config))
    except (StreamConnectionError, SubscriptionError) as e:
        logger.error("Failed to start monitoring: %s", e)
        return EXIT_FAILURE
    except StreamTerminatedError as e:
        logger.error("%s; no automatic reconnect, exiting", e)
        return EXIT_FAILURE

    logger.info("Order copier stopped")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
