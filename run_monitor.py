#!/usr/bin/env python3
"""
Arbitrage monitor CLI.

Finds the most profitable three-token cycles (cached per network) and keeps
re-quoting the selected cycle.

Usage:
    python3 run_monitor.py
    python3 run_monitor.py --config configs/ethereum.yaml --tokens WETH,USDC,DAI
    python3 run_monitor.py --suggestions --refresh-cache
    python3 run_monitor.py --once
"""

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

import logging_config
from arb_monitor.config import load_config
from arb_monitor.exceptions import ArbMonitorError
from arb_monitor.report import format_suggestions
from arb_monitor.runner import MonitorRunner
from arb_monitor.version import get_version


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Three-hop Uniswap V3 arbitrage monitor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Monitor the default triple (first three catalog tokens)
  python3 run_monitor.py

  # Monitor a specific cycle
  python3 run_monitor.py --tokens WETH,USDC,DAI

  # Rescan and print the suggestion list only
  python3 run_monitor.py --suggestions --refresh-cache
        """,
    )

    parser.add_argument(
        "--config",
        default="configs/ethereum.yaml",
        help="Path to config YAML file (default: configs/ethereum.yaml)",
    )
    parser.add_argument(
        "--tokens",
        help="Comma-separated cycle, e.g. WETH,USDC,DAI (symbols or addresses)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Evaluate the selection once and exit",
    )
    parser.add_argument(
        "--suggestions",
        action="store_true",
        help="Print the suggestion list and exit",
    )
    parser.add_argument(
        "--refresh-cache",
        action="store_true",
        help="Discard cached suggestions and rescan",
    )
    parser.add_argument(
        "--use-suggestion",
        type=int,
        metavar="N",
        help="Monitor the N-th suggestion (1-based) instead of --tokens",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {get_version()}"
    )

    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    config = load_config(args.config)

    runner = MonitorRunner(config)
    runner.connect()
    runner.build_catalog()
    suggestions = await runner.load_suggestions(refresh=args.refresh_cache)

    if args.suggestions:
        print(format_suggestions(suggestions))
        return 0

    if args.use_suggestion:
        if not 1 <= args.use_suggestion <= len(suggestions):
            print(
                f"❌ No suggestion #{args.use_suggestion} ({len(suggestions)} available)",
                file=sys.stderr,
            )
            return 1
        selection = suggestions[args.use_suggestion - 1].triple
    else:
        symbols = args.tokens.split(",") if args.tokens else None
        selection = runner.resolve_selection(symbols)

    state = await runner.run_async(selection, once=args.once)
    return 1 if state.has_error else 0


def main(argv=None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = parse_args(argv)
    load_dotenv()
    logging_config.setup(logging.DEBUG if args.debug else logging.INFO)

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        print("\n\n⏸ Stopped by user")
        return 0
    except ArbMonitorError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
