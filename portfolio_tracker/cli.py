"""Command-line interface for the Solana portfolio tracker."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime

from .config import load_config
from .formatters import format_currency
from .logging_setup import configure_logging
from .models import PortfolioSnapshot, PortfolioStats
from .services import TIME_RANGES, PortfolioTracker

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="solana-portfolio-tracker",
        description="Track Solana token holdings across wallets",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--token",
        action="append",
        default=[],
        metavar="MINT",
        help="Track an extra token mint (repeatable)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("value", help="Load all tokens and print the portfolio summary")
    sub.add_parser("report", help="Send the portfolio summary to the notifiers")

    monitor_parser = sub.add_parser("monitor", help="Continuous refresh loop")
    monitor_parser.add_argument(
        "interval",
        nargs="?",
        type=int,
        default=None,
        help="Refresh interval in seconds (overrides config)",
    )
    monitor_parser.add_argument(
        "--snapshot-every",
        type=int,
        default=None,
        help="Save a snapshot every N refresh cycles (0 disables)",
    )

    snapshot_parser = sub.add_parser("snapshot", help="Portfolio snapshot history")
    snapshot_sub = snapshot_parser.add_subparsers(dest="snapshot_command")
    snapshot_sub.required = True
    snapshot_sub.add_parser("save", help="Load all tokens and save a snapshot")
    history_parser = snapshot_sub.add_parser("history", help="List recent snapshots")
    history_parser.add_argument("--limit", type=int, default=100)
    delete_parser = snapshot_sub.add_parser("delete", help="Delete a snapshot by id")
    delete_parser.add_argument("snapshot_id")
    range_parser = snapshot_sub.add_parser(
        "range", help="List snapshots created between two ISO timestamps"
    )
    range_parser.add_argument("start", type=datetime.fromisoformat)
    range_parser.add_argument("end", type=datetime.fromisoformat)
    stats_parser = snapshot_sub.add_parser(
        "stats", help="Value change and volatility over recent snapshots"
    )
    stats_parser.add_argument(
        "--range",
        dest="time_range",
        choices=list(TIME_RANGES),
        default="30d",
        help="Look-back window (default: 30d)",
    )

    return parser


def _print_snapshots(snapshots: list[PortfolioSnapshot]) -> None:
    if not snapshots:
        print("No snapshots found.")
        return
    for snap in snapshots:
        print(
            f"{snap.id or '-':>8}  {snap.created_at or snap.timestamp}  "
            f"value {format_currency(snap.total_value)}  "
            f"sell {format_currency(snap.sell_simulation_value)}  "
            f"tokens {snap.token_count}  wallets {snap.wallet_count}"
        )


def _print_stats(time_range: str, stats: PortfolioStats) -> None:
    if not stats.snapshot_count:
        print(f"No snapshots in range {time_range}.")
        return
    print(
        f"Snapshots ({time_range}): {stats.snapshot_count}\n"
        f"Change: {stats.change:+,.2f} USD ({stats.change_pct:+.2f}%)\n"
        f"Sell simulation change: {stats.sell_simulation_change:+,.2f} USD"
        f" ({stats.sell_simulation_change_pct:+.2f}%)\n"
        f"Average: {format_currency(stats.average_value)}"
        f"  max {format_currency(stats.max_value)}"
        f"  min {format_currency(stats.min_value)}\n"
        f"Volatility: {format_currency(stats.volatility)}"
    )


async def _run_snapshot(tracker: PortfolioTracker, args: argparse.Namespace) -> int:
    if args.snapshot_command == "save":
        await tracker.load_all()
        saved = await tracker.save_snapshot()
        if saved is None:
            return 1
        _print_snapshots([saved])
    elif args.snapshot_command == "history":
        _print_snapshots(await tracker.snapshot_history(args.limit))
    elif args.snapshot_command == "delete":
        await tracker.delete_snapshot(args.snapshot_id)
        print(f"Deleted snapshot {args.snapshot_id}")
    elif args.snapshot_command == "range":
        _print_snapshots(await tracker.snapshots_between(args.start, args.end))
    elif args.snapshot_command == "stats":
        _print_stats(args.time_range, await tracker.portfolio_stats(args.time_range))
    return 0


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    tracker = PortfolioTracker(config)
    for mint in args.token:
        tracker.add_token(mint)

    if args.command == "value":
        results = await tracker.load_all()
        print(tracker.format_summary(results))
    elif args.command == "report":
        print(await tracker.generate_report())
    elif args.command == "monitor":
        await tracker.run_continuous(args.interval, args.snapshot_every)
    elif args.command == "snapshot":
        return await _run_snapshot(tracker, args)
    else:
        build_parser().print_help()
        return 1
    return 0


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        exit_code = asyncio.run(_run(args))
    except KeyboardInterrupt:
        exit_code = 0
    except Exception as e:
        logger.error("%s failed: %s", args.command, e)
        exit_code = 1
    sys.exit(exit_code)
