"""Command-line interface for the price relay."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .config import AppConfig, load_config, load_tokens
from .errors import BindError, ConfigError, ResolutionError
from .feeders import FeederPool
from .logging_setup import configure_logging
from .oracles import LlamaPriceFetcher
from .relay import RelayServer
from .resolvers import CoinGeckoResolver

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="price-relay",
        description="Sui token price relay over WebSocket",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: ./config.yaml if present)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("server", help="Run the relay server")

    feeders_parser = sub.add_parser("feeders", help="Run one feeder per configured token")
    feeders_parser.add_argument(
        "--tokens",
        default=None,
        help="Path to tokens.json (overrides feeders.tokens_file)",
    )

    return parser


async def run_server(config: AppConfig) -> None:
    server = RelayServer(config.relay)
    await server.run()


async def run_feeders(config: AppConfig, tokens_path: str | None = None) -> None:
    tokens = load_tokens(tokens_path or config.feeders.tokens_file)
    pool = await FeederPool.build(
        tokens,
        resolver=CoinGeckoResolver(config.lookup),
        fetcher=LlamaPriceFetcher(config.pricing),
        relay_url=f"ws://{config.relay.host}/",
        trigger=config.relay.trigger,
    )
    logger.info("Starting %d feeders", len(pool))
    await pool.run_all()


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    config = load_config(args.config)

    if args.command == "server":
        await run_server(config)
    elif args.command == "feeders":
        await run_feeders(config, args.tokens)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging(args.log_level)

    try:
        asyncio.run(_run(args))
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except (BindError, ConfigError, ResolutionError) as e:
        logger.error("Fatal error: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
