"""Command-line entry point."""
import sys
import json
import argparse
import sqlite3
from pathlib import Path
from typing import Optional

from spendscan.config.settings import AppSettings, get_settings
from spendscan.llm.merchant_cache import MerchantCache
from spendscan.llm.merchant_service import (
    GeminiMerchantService,
    MerchantService,
    PassthroughMerchantService,
)
from spendscan.orchestrator.processor import AnalysisOrchestrator, AnalysisResult
from spendscan.parsing.models import LineShape
from spendscan.utils.exceptions import SpendScanError
from spendscan.utils.logger import configure_logger, get_data_dir, get_logger, set_run_context
from spendscan.utils.run_registry import RunRegistry

logger = get_logger()


def _format_cents(cents: int) -> str:
    sign = "-" if cents < 0 else ""
    return f"{sign}{abs(cents) / 100:,.2f}"


def _build_merchant_service(settings: AppSettings, offline: bool, cache: MerchantCache) -> MerchantService:
    if offline:
        logger.info("Offline mode: merchant names kept as parsed")
        return PassthroughMerchantService(cache)
    return GeminiMerchantService(settings, cache=cache)


def _print_result(result: AnalysisResult) -> None:
    """Print human-readable analysis output."""
    print(f"\nTransactions: {len(result.categorized)}   Warnings: {len(result.warnings)}")
    for warning in result.warnings:
        print(f"  ! {warning}")

    print(f"\nTotal spend: {_format_cents(result.summary.total_cents)}")
    print(f"{'Category':<16} {'Amount':>12}")
    print("-" * 29)
    for category, cents in result.summary.by_category_cents.items():
        if cents:
            print(f"{category.value:<16} {_format_cents(cents):>12}")

    print("\nTop merchants:")
    for entry in result.summary.top_merchants:
        print(f"  {entry.merchant:<30} {_format_cents(entry.cents):>12}")

    if result.subscriptions:
        print("\nPossible subscriptions:")
        print(f"{'Merchant':<24} {'Cadence':<9} {'Typical':>10} {'Count':>6} {'Last':<10} {'Gap':>6}")
        print("-" * 70)
        for sub in result.subscriptions:
            print(
                f"{sub.merchant:<24} {sub.cadence.value:<9} {_format_cents(sub.average_cents):>10} "
                f"{sub.count:>6} {sub.last_date:<10} {sub.avg_gap_days:>6}"
            )


def analyze_command(
    file_path: str,
    csv_mode: bool = False,
    offline: bool = False,
    as_json: bool = False,
    registry: Optional[RunRegistry] = None,
    settings: Optional[AppSettings] = None
) -> int:
    """Analyze a statement file, recording the run in the registry."""
    settings = settings or get_settings()
    registry = registry or RunRegistry(get_data_dir() / settings.database_file)

    text = Path(file_path).read_text(encoding="utf-8")
    shape = LineShape.BANK_CSV if csv_mode else LineShape(settings.line_shape)

    run_id = registry.create_run(text)
    set_run_context(run_id)
    cache = None
    try:
        registry.mark_running(run_id)
        cache = MerchantCache(
            get_data_dir() / settings.merchant_cache_file,
            fuzzy_threshold=settings.merchant_cache_fuzzy_threshold
        )
        service = _build_merchant_service(settings, offline, cache)
        orchestrator = AnalysisOrchestrator(service, max_concurrency=settings.llm_max_concurrency)
        result = orchestrator.analyze(text, shape)
        registry.mark_completed(run_id, result.to_dict())
    except (SpendScanError, OSError, sqlite3.Error) as e:
        logger.error(f"Run {run_id} failed: {e}")
        registry.mark_failed(run_id, str(e))
        return 1
    finally:
        if cache is not None:
            cache.close()
        set_run_context(None)

    logger.info(f"Run {run_id} completed")
    if as_json:
        print(json.dumps({"runId": run_id, **result.to_dict()}, ensure_ascii=False, indent=2))
    else:
        print(f"Run: {run_id}")
        _print_result(result)
    return 0


def list_runs_command(registry: RunRegistry, limit: int = 20) -> None:
    """List recent runs."""
    runs = registry.list_runs(limit)
    if not runs:
        print("No runs found.")
        return

    print(f"\nTotal: {len(runs)} runs")
    print(f"{'Run ID':<34} {'Status':<10} {'Created At':<20}")
    print("-" * 66)
    for run in runs:
        print(f"{run.id:<34} {run.status:<10} {run.created_at.strftime('%Y-%m-%d %H:%M:%S')}")


def show_run_command(registry: RunRegistry, run_id: str) -> int:
    """Print a stored run as JSON."""
    run = registry.get_run(run_id)
    if run is None:
        print(f"Run not found: {run_id}")
        return 1

    print(json.dumps({
        "id": run.id,
        "status": run.status,
        "createdAt": run.created_at.isoformat(),
        "data": run.result,
    }, ensure_ascii=False, indent=2))
    return 0


def clear_cache_command(settings: AppSettings) -> None:
    """Clear the merchant normalization/category cache."""
    with MerchantCache(get_data_dir() / settings.merchant_cache_file) as cache:
        deleted = cache.clear()
    print(f"✓ Cleared {deleted} cached merchant entries")


def main(argv=None):
    """Main entry point for SpendScan."""
    parser = argparse.ArgumentParser(description="SpendScan statement analyzer")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Analyze a statement text file")
    analyze.add_argument("file", help="Path to statement text")
    analyze.add_argument("--csv", action="store_true", help="Parse lines as a bank CSV export")
    analyze.add_argument("--offline", action="store_true", help="Skip Gemini merchant normalization")
    analyze.add_argument("--json", action="store_true", help="Print the full result as JSON")

    list_runs = subparsers.add_parser("list-runs", help="List recent runs")
    list_runs.add_argument("--limit", type=int, default=20)

    show_run = subparsers.add_parser("show-run", help="Show a stored run")
    show_run.add_argument("run_id")

    subparsers.add_parser("clear-cache", help="Clear the merchant cache")

    args = parser.parse_args(argv)

    try:
        settings = get_settings()
        configure_logger(settings.log_level, settings.log_max_file_size_mb, settings.log_backup_count)
        registry = RunRegistry(get_data_dir() / settings.database_file)

        if args.command == "analyze":
            sys.exit(analyze_command(
                args.file,
                csv_mode=args.csv,
                offline=args.offline,
                as_json=args.json,
                registry=registry,
                settings=settings
            ))
        if args.command == "list-runs":
            list_runs_command(registry, args.limit)
        elif args.command == "show-run":
            sys.exit(show_run_command(registry, args.run_id))
        elif args.command == "clear-cache":
            clear_cache_command(settings)
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
    except (SpendScanError, OSError, sqlite3.Error, UnicodeDecodeError) as e:
        logger.critical(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
