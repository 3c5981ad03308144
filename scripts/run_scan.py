#!/usr/bin/env python3
"""Main CLI entry point for enumerating and validating ticker symbols."""

import argparse
import logging
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config.settings_pydantic import settings
from src.data.checkpoint import CheckpointStore
from src.data.fetchers.base_fetcher import BaseFetcher
from src.data.fetchers.chart_fetcher import YahooChartFetcher
from src.data.fetchers.yfinance_fetcher import YFinanceFetcher
from src.data.ledger import TickerLedger
from src.data.models.ticker_status import TickerStatus
from src.data.models.verdict import ActiveVerdict
from src.exceptions import AllTickersError, StorageError, TransportError
from src.output.exporter import EXPORT_FORMATS, LedgerExporter
from src.runner.batch_runner import BatchRunner
from src.runner.config import RunnerConfig
from src.runner.generator import TickerGenerator
from src.runner.models import RunSummary
from src.runner.revalidation import RevalidationRunner
from src.utils.date_utils import format_duration
from src.utils.logging_config import setup_logging
from src.validation.validator import RemoteValidator

logger = setup_logging(settings.log_level, settings.log_file, settings.log_max_bytes, settings.log_backup_count)


def create_fetcher(provider: str) -> BaseFetcher:
    """Factory function to get a quote fetcher.

    Args:
        provider: Provider name ('chart' or 'yfinance').

    Returns:
        Fetcher instance.

    Raises:
        ValueError: If provider is not supported.
    """
    if provider == "chart":
        return YahooChartFetcher()
    if provider == "yfinance":
        return YFinanceFetcher()

    raise ValueError(f"Unsupported provider: {provider}")


def log_summary(summary: RunSummary) -> None:
    logger.info("=" * 80)
    logger.info(f"State:            {summary.state.value}{' (dry run)' if summary.dry_run else ''}")
    if summary.total:
        logger.info(f"Processed:        {summary.processed}/{summary.total}")
    if summary.dry_run:
        logger.info(f"Pending:          {summary.pending}")
    logger.info(f"Validated:        {summary.validated} (active {summary.active}, delisted {summary.delisted})")
    logger.info(f"Skipped:          {summary.skipped}")
    if summary.newly_active or summary.newly_delisted:
        logger.info(f"Flipped:          +{summary.newly_active} active, +{summary.newly_delisted} delisted")
    logger.info(f"Transport errors: {summary.transport_errors} ({summary.escalations} escalations)")
    if summary.unresolved:
        logger.info(f"Unresolved:       {summary.unresolved}")
    logger.info(f"Elapsed:          {format_duration(summary.elapsed_seconds)}")
    logger.info("=" * 80)


def checkpoint_store(args: argparse.Namespace) -> CheckpointStore:
    """Checkpoint belonging to the selected ledger.

    ``--checkpoint`` wins; otherwise a ``--ledger`` database keeps its
    checkpoint beside it (``tickers.db`` -> ``tickers.checkpoint.json``),
    and the default ledger uses the configured checkpoint path.
    """
    if args.checkpoint is not None:
        return CheckpointStore(args.checkpoint)
    if args.ledger is not None:
        return CheckpointStore(args.ledger.with_suffix(".checkpoint.json"))
    return CheckpointStore()


def run_scan(args: argparse.Namespace, ledger: TickerLedger) -> int:
    config = RunnerConfig.from_settings(
        max_length=args.max_length,
        include_length5=args.include_length5 or None,
        batch_size=args.batch_size,
        concurrent_requests=args.concurrent,
        request_delay_ms=args.delay_ms,
    )
    checkpoints = checkpoint_store(args)
    if args.reset_checkpoint:
        logger.info(f"Removing checkpoint {checkpoints.path}")
        checkpoints.clear()

    exporter = LedgerExporter(ledger)
    fetcher = create_fetcher(args.provider)
    try:
        runner = BatchRunner(
            ledger,
            RemoteValidator(fetcher),
            checkpoints,
            config=config,
            on_checkpoint=lambda: exporter.export("json"),
        )
        summary = runner.run(limit=args.limit, dry_run=args.dry_run)
    finally:
        fetcher.close()

    log_summary(summary)
    return summary.exit_code


def run_revalidate(args: argparse.Namespace, ledger: TickerLedger) -> int:
    config = RunnerConfig.from_settings(
        freshness_window_hours=args.freshness_hours,
        concurrent_requests=args.concurrent,
        request_delay_ms=args.delay_ms,
    )
    fetcher = create_fetcher(args.provider)
    try:
        runner = RevalidationRunner(ledger, RemoteValidator(fetcher), status=args.status, config=config)
        summary = runner.run(limit=args.limit, dry_run=args.dry_run)
    finally:
        fetcher.close()

    log_summary(summary)
    return summary.exit_code


def run_check(args: argparse.Namespace, ledger: TickerLedger) -> int:
    """Look up individual symbols; the ledger is only written with --record."""
    fetcher = create_fetcher(args.provider)
    validator = RemoteValidator(fetcher)
    failed = 0
    try:
        for symbol in (s.strip().upper() for s in args.symbols):
            logger.info(f"Checking {symbol}...")
            try:
                verdict = validator.validate(symbol)
            except TransportError as e:
                logger.error(f"{symbol}: {type(e).__name__}: {e}")
                failed += 1
                continue

            if isinstance(verdict, ActiveVerdict):
                logger.info(f"{symbol}: ACTIVE | price {verdict.price} | {verdict.exchange} | {verdict.currency}")
            else:
                detail = f" ({verdict.detail})" if verdict.detail else ""
                logger.info(f"{symbol}: DELISTED | {verdict.reason.value}{detail}")

            if args.record:
                ledger.record(verdict)
                logger.info(f"{symbol}: recorded in {ledger.db_path}")
    finally:
        fetcher.close()

    return 1 if failed else 0


def run_generate(args: argparse.Namespace, ledger: TickerLedger) -> int:
    if args.reset_ledger and not args.dry_run:
        logger.warning(f"Clearing ledger {ledger.db_path} and the scan checkpoint")
        ledger.reset()
        checkpoint_store(args).clear()

    result = TickerGenerator(ledger).populate(
        max_length=args.max_length,
        include_length5=args.include_length5,
        include_existing=args.include_existing,
        dry_run=args.dry_run,
    )
    return 1 if result.refused else 0


def run_export(args: argparse.Namespace, ledger: TickerLedger) -> int:
    exporter = LedgerExporter(ledger, args.output_dir)
    for path in exporter.export(args.format):
        logger.info(f"Exported {path}")
    return 0


def run_stats(args: argparse.Namespace, ledger: TickerLedger) -> int:
    stats = ledger.stats()
    logger.info(f"Ledger: {ledger.db_path}")
    logger.info(f"Total:       {stats.total}")
    logger.info(f"Active:      {stats.active}")
    logger.info(f"Delisted:    {stats.delisted}")
    logger.info(f"Unvalidated: {stats.unvalidated}")
    logger.info(f"Validated:   {stats.validated}")

    checkpoint = checkpoint_store(args).load()
    if checkpoint is not None:
        logger.info(
            f"Checkpoint:  index {checkpoint.current_index}/{checkpoint.total}, "
            f"processed {checkpoint.processed} ({checkpoint.timestamp:%Y-%m-%d %H:%M:%S} UTC)"
        )

    for entry in ledger.recent_activity(args.recent):
        logger.info(f"  {entry.symbol:<6} {entry.status.value:<11} {entry.exchange or '-'}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Enumerate every A-Z ticker symbol and classify it as active or delisted",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Walk the whole 1-4 letter domain (resumes from the last checkpoint)
  python scripts/run_scan.py scan

  # Validate 500 symbols, 4 at a time, then stop
  python scripts/run_scan.py scan --limit 500 --concurrent 4

  # Show what a scan would do without calling the provider
  python scripts/run_scan.py scan --dry-run

  # Re-check active tickers not checked in the last 24 hours
  python scripts/run_scan.py revalidate --status active

  # Look up one ticker without touching the ledger
  python scripts/run_scan.py check AAPL

  # Seed every symbol as unvalidated, then export the results
  python scripts/run_scan.py generate
  python scripts/run_scan.py export --format all
        """,
    )
    parser.add_argument(
        "--ledger",
        type=Path,
        default=None,
        help=f"Path to the ledger database (default: {settings.ledger_path})",
    )
    parser.add_argument(
        "--checkpoint",
        type=Path,
        default=None,
        help=f"Path to the scan checkpoint (default: beside --ledger, else {settings.checkpoint_path})",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    scan = subparsers.add_parser("scan", help="Walk the symbol domain and validate every symbol")
    scan.add_argument("--max-length", type=int, default=None, help=f"Longest symbol (default: {settings.max_length})")
    scan.add_argument("--include-length5", action="store_true", help="Allow 5-letter symbols")
    scan.add_argument("--limit", type=_positive_int, default=None, help="Stop after this many lookups")
    scan.add_argument("--dry-run", action="store_true", help="Report pending symbols without validating")
    scan.add_argument(
        "--batch-size",
        type=_positive_int,
        default=None,
        help=f"Verdicts between checkpoints (default: {settings.batch_size})",
    )
    scan.add_argument("--reset-checkpoint", action="store_true", help="Discard the checkpoint and start at index 0")
    _add_request_arguments(scan)

    revalidate = subparsers.add_parser("revalidate", help="Re-check ledger rows of one status")
    revalidate.add_argument(
        "--status",
        choices=[status.value for status in TickerStatus],
        default=TickerStatus.ACTIVE.value,
        help="Status to re-check (default: active)",
    )
    revalidate.add_argument(
        "--freshness-hours",
        type=int,
        default=None,
        help=f"Skip rows checked within this many hours (default: {settings.freshness_window_hours})",
    )
    revalidate.add_argument("--limit", type=_positive_int, default=None, help="Stop after this many lookups")
    revalidate.add_argument("--dry-run", action="store_true", help="Report due symbols without validating")
    _add_request_arguments(revalidate)

    check = subparsers.add_parser("check", help="Look up individual symbols and show the verdict")
    check.add_argument("symbols", nargs="+", metavar="SYMBOL", help="Ticker symbol(s) to look up")
    check.add_argument("--record", action="store_true", help="Write the verdicts to the ledger")
    check.add_argument(
        "--provider",
        choices=settings.supported_providers,
        default=settings.provider,
        help=f"Quote provider (default: {settings.provider})",
    )

    generate = subparsers.add_parser("generate", help="Seed every symbol as unvalidated")
    generate.add_argument("--max-length", type=int, default=settings.max_length, help="Longest symbol")
    generate.add_argument("--include-length5", action="store_true", help="Allow 5-letter symbols")
    generate.add_argument("--include-existing", action="store_true", help="Seed even if the ledger has entries")
    generate.add_argument(
        "--reset-ledger",
        action="store_true",
        help="Delete every ledger row and the scan checkpoint before seeding",
    )
    generate.add_argument("--dry-run", action="store_true", help="Report the count without writing")

    export = subparsers.add_parser("export", help="Export ledger contents")
    export.add_argument("--format", choices=EXPORT_FORMATS, default="all", help="Export format (default: all)")
    export.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help=f"Output directory (default: {settings.output_dir})",
    )

    stats = subparsers.add_parser("stats", help="Show ledger and checkpoint statistics")
    stats.add_argument("--recent", type=int, default=10, help="Recently updated rows to show (default: 10)")

    return parser


def _add_request_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--provider",
        choices=settings.supported_providers,
        default=settings.provider,
        help=f"Quote provider (default: {settings.provider})",
    )
    parser.add_argument(
        "--concurrent",
        type=_positive_int,
        default=None,
        help=f"Lookups in flight at once (default: {settings.concurrent_requests})",
    )
    parser.add_argument(
        "--delay-ms",
        type=int,
        default=None,
        help=f"Pause after each chunk in milliseconds (default: {settings.request_delay_ms})",
    )


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


COMMANDS = {
    "scan": run_scan,
    "revalidate": run_revalidate,
    "check": run_check,
    "generate": run_generate,
    "export": run_export,
    "stats": run_stats,
}


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    if args.verbose:
        logger.setLevel(logging.DEBUG)

    logger.info("=" * 80)
    logger.info(f"All Tickers - {args.command}")
    logger.info("=" * 80)

    try:
        ledger = TickerLedger(args.ledger)
        return COMMANDS[args.command](args, ledger)
    except StorageError as e:
        logger.error(f"Storage failure: {e}")
        return 1
    except (AllTickersError, ValueError) as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
