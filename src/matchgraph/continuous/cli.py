#!/usr/bin/env python
"""
Command-line interface for the match-history crawler.

Usage:
    matchgraph-crawl [options] [SEED_ID ...]

Examples:
    # Crawl forever, starting from two known players
    matchgraph-crawl p-123 p-456

    # Run one cycle against the players already in the database
    matchgraph-crawl --once

    # Stop after ten cycles, with a custom config file
    matchgraph-crawl --config prod.yaml --max-cycles 10

    # Show database status only
    matchgraph-crawl --status
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from matchgraph.continuous.manager import MatchHistoryCrawler
from matchgraph.core.config import load_config
from matchgraph.core.errors import ConfigError, FatalStorageError
from matchgraph.core.logging import setup_logging
from matchgraph.core.sentry import init_sentry
from matchgraph.scraping.api import HttpSessionProvider
from matchgraph.sql.engine import create_engine
from matchgraph.sql.store import MatchStore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="matchgraph-crawl",
        description="Continuous match-history crawler and Elo rater",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "seeds",
        nargs="*",
        metavar="SEED_ID",
        help="Player ids to crawl first (default: refill from the database)",
    )

    # Operation mode
    mode_group = parser.add_mutually_exclusive_group()
    mode_group.add_argument(
        "--once",
        action="store_true",
        help="Run a single crawl cycle and exit",
    )
    mode_group.add_argument(
        "--status",
        action="store_true",
        help="Show database status and exit",
    )
    mode_group.add_argument(
        "--max-cycles",
        type=int,
        help="Maximum number of cycles to run (default: unlimited)",
    )

    parser.add_argument(
        "--config",
        default="crawler.yaml",
        help="YAML configuration file (default: crawler.yaml)",
    )
    parser.add_argument(
        "--database-url",
        help="SQLAlchemy database URL (overrides config and environment)",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Enable verbose logging"
    )
    parser.add_argument("--log-file", help="Also write logs to this file")
    return parser


def _print_status(store: MatchStore) -> None:
    summary = store.summary()
    print("\n=== Crawler Status ===")
    print(f"Players: {summary['players']}")
    print(f"Games: {summary['games']}")
    print(f"Player-game edges: {summary['edges']}")
    print(f"Rated edges: {summary['rated_edges']}")
    print("\nTop players:")
    print(store.load_leaderboard(10))


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the crawler CLI."""
    args = build_parser().parse_args(argv)

    setup_logging(
        "DEBUG" if args.verbose else "INFO", log_file=args.log_file
    )
    init_sentry(context="matchgraph_crawl")

    try:
        config = load_config(args.config)
        if args.database_url:
            config.database_url = args.database_url
        if not config.database_url:
            raise ConfigError(
                "No database URL configured; set database_url, "
                "MATCHGRAPH_DATABASE_URL or --database-url"
            )
        if config.debug:
            setup_logging("DEBUG", log_file=args.log_file)
            config.strategy.progress_every = config.debug_rate

        engine = create_engine(config.database_url)

        if args.status:
            store = MatchStore(engine)
            try:
                store.ensure_schema()
                _print_status(store)
            finally:
                store.close()
            return 0

        config.validate()
        provider = HttpSessionProvider(
            config.api_base_url,
            config.username,
            config.password,
            burst=config.ratelimit_burst,
            per_second=config.ratelimit_per_second,
            max_workers=config.strategy.max_concurrency,
            timeout=config.request_timeout,
        )
        crawler = MatchHistoryCrawler(
            provider, engine, seed_ids=args.seeds, strategy=config.strategy
        )

        if args.once:
            logger.info("Running single crawl cycle")
            try:
                results = crawler.run_once()
            finally:
                crawler.close()
            print(f"\nCycle complete: {results}")
        else:
            crawler.run_continuous(max_cycles=args.max_cycles)
        return 0

    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 2
    except FatalStorageError as e:
        logger.error(f"Stopping on fatal storage error: {e}", exc_info=True)
        return 1
    except KeyboardInterrupt:
        logger.info("Crawl stopped by user")
        return 0


if __name__ == "__main__":
    sys.exit(main())
