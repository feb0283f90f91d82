#!/usr/bin/env python3
"""Recompute variant-derived product fields from the command line.

Repairs product price, stock, sizes, images and active flag after bulk
imports or manual database edits.

Usage:
    python scripts/recompute_aggregates.py                      # every product
    python scripts/recompute_aggregates.py --product-id <uuid>  # one product
"""
import argparse
import asyncio
import sys
from pathlib import Path
from uuid import UUID

# Allow running from a source checkout without installing
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from storefront.config import get_settings
from storefront.db.connection import DatabaseManager, close_database, init_database
from storefront.services.aggregation import (
    recompute_all_product_aggregates,
    recompute_product_aggregates,
)
from storefront.utils.errors import StorefrontError
from storefront.utils.logger import configure_logging


async def run(product_id: UUID | None, dry_run: bool) -> int:
    """Run the recompute; returns the process exit code."""
    settings = get_settings()
    await init_database(settings)

    exit_code = 0
    try:
        async with DatabaseManager.get_session() as session:
            if product_id is not None:
                try:
                    aggregates = await recompute_product_aggregates(session, product_id, trigger="cli")
                except StorefrontError as e:
                    print(f"❌ {e.message}: {product_id}")
                    return 1
                print(f"✅ {product_id}")
                print(f"   price:      {aggregates.price}")
                print(f"   stock:      {aggregates.total_stock}")
                print(f"   active:     {aggregates.is_active}")
                print(f"   sizes:      {', '.join(aggregates.available_sizes) or '-'}")
                print(f"   main image: {aggregates.main_image or '-'}")
            else:
                outcome = await recompute_all_product_aggregates(session, trigger="cli")
                print(f"✅ Updated: {outcome.success_count}")
                if outcome.failed:
                    print(f"❌ Failed:  {outcome.error_count}")
                    for failure in outcome.failed:
                        print(f"   {failure['product_id']}: {failure['message']}")
                    exit_code = 2

            if dry_run:
                print("🔍 DRY RUN - rolling back")
                await session.rollback()

        return exit_code
    finally:
        await close_database()


def main():
    parser = argparse.ArgumentParser(
        description="Recompute product aggregate fields from active variants",
    )
    parser.add_argument(
        "--product-id",
        type=UUID,
        help="Recompute a single product (default: all products)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Compute and report without committing",
    )
    args = parser.parse_args()

    configure_logging()
    sys.exit(asyncio.run(run(args.product_id, args.dry_run)))


if __name__ == "__main__":
    main()
