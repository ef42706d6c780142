"""
Migrate legacy product stock into batches

Products with stock but no batch get one MIGRATION batch each (godown/store
split preserved, expiry one year out, product price as purchase and selling
price) plus an activity log row.

Runs as a dry run by default and only prints what it would do.

Usage:
    python scripts/migrate_stock_to_batches.py                   # preview
    python scripts/migrate_stock_to_batches.py --execute
    python scripts/migrate_stock_to_batches.py --execute --chunk-size 100 --delay 0.5
"""
import argparse
import sys
from pathlib import Path

# Add backend directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.db.session import SessionLocal
from app.logging_config import setup_logging
from app.services.stock_migration import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_DELAY_SECONDS,
    MIGRATION_EXPIRY,
    run_migration,
)

PREVIEW_SAMPLE = 3


def print_preview(report) -> None:
    print(f"Found {report.products_found} products with stock and no batch")
    if not report.plans:
        print("All products already have batch data or no stock to migrate")
        return

    total_qty = sum(plan.total for plan in report.plans)
    print(f"  - Products to migrate: {len(report.plans)}")
    print(f"  - Total quantity: {total_qty}")
    print(f"  - Batch expiry: {MIGRATION_EXPIRY.days} days from migration")

    print("\nSample:")
    for plan in report.plans[:PREVIEW_SAMPLE]:
        print(f"  {plan.name} (#{plan.product_id})")
        print(f"    current total={plan.original_total}")
        print(f"    batch: godown={plan.godown}, store={plan.store}")

    print("\nTo perform the migration, re-run with --execute")


def print_result(report) -> None:
    print(f"Processed {report.chunks} chunks")
    print(f"  - Migrated: {report.migrated} products, {report.total_quantity} units")
    print(f"  - Skipped (nothing to move): {report.skipped}")
    if report.errors:
        print(f"  - Product errors: {len(report.errors)}")
        for product_id, message in report.errors:
            print(f"      #{product_id}: {message}")
    if report.failed_chunks:
        print(f"  - Aborted chunks: {', '.join(str(i + 1) for i in report.failed_chunks)}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Migrate legacy product stock into batches")
    parser.add_argument("--execute", action="store_true", help="Write batches (default is a dry run)")
    parser.add_argument(
        "--chunk-size", type=int, default=DEFAULT_CHUNK_SIZE,
        help=f"Products per transaction (default {DEFAULT_CHUNK_SIZE})",
    )
    parser.add_argument(
        "--delay", type=float, default=DEFAULT_DELAY_SECONDS,
        help=f"Seconds to pause between chunks (default {DEFAULT_DELAY_SECONDS})",
    )
    args = parser.parse_args(argv)
    if args.chunk_size < 1:
        parser.error("--chunk-size must be at least 1")
    if args.delay < 0:
        parser.error("--delay cannot be negative")

    setup_logging(log_format="text")

    print("=" * 60)
    print("Stock to Batch Migration" + ("" if args.execute else " (dry run)"))
    print("=" * 60)

    report = run_migration(
        SessionLocal,
        execute=args.execute,
        chunk_size=args.chunk_size,
        delay=args.delay,
    )

    if args.execute:
        print_result(report)
    else:
        print_preview(report)

    return 1 if report.failed_chunks else 0


if __name__ == "__main__":
    sys.exit(main())
