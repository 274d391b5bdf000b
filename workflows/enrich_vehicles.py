"""Vehicle enrichment workflow - find who is really behind listed vehicles.

USAGE:
    # Enrich the next pending listings
    uv run python workflows/enrich_vehicles.py run --limit 5
    uv run python workflows/enrich_vehicles.py run --limit 20 --seller-kind dealer

    # Learn registered owner names for dealers that have none yet
    uv run python workflows/enrich_vehicles.py backfill-dealers --limit 10

    # Show enrichment status
    uv run python workflows/enrich_vehicles.py status
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import asyncio
import argparse
from typing import Optional

from loguru import logger

from db.client import init_db, close_db
from services.enrichment import EnrichmentConfig, EnrichRunResult, Service


def _report(title: str, result: EnrichRunResult) -> None:
    if result.aborted:
        logger.error(f"{title} aborted: {result.error}")
        return
    if result.total == 0:
        return
    kinds = result.owner_kinds
    logger.info(
        f"\n{title} Complete:\n"
        f"  Vehicles:        {result.total}\n"
        f"  Saved:           {result.saved}\n"
        f"  No data:         {result.no_data}\n"
        f"  Failed:          {result.failed} ({result.persist_failures} not saved)\n"
        f"  Rate limited:    {result.rate_limited}\n"
        f"  Skipped:         {result.skipped}{' (circuit breaker)' if result.circuit_opened else ''}\n"
        f"  ---\n"
        f"  Private/company: {kinds.get('private', 0) + kinds.get('company', 0)}\n"
        f"  Dealer:          {kinds.get('dealer', 0)}\n"
        f"  Broker:          {kinds.get('broker', 0)}\n"
        f"  Leads in chain:  {result.leads_found}\n"
        f"  Duration:        {result.duration_s:.0f}s"
    )


async def run_enrichment(limit: Optional[int] = None, seller_kind: Optional[str] = None) -> None:
    """Enrich pending listings."""
    await init_db()
    try:
        config = EnrichmentConfig.from_env()
        logger.info(
            f"Vehicle enrichment: limit={limit or config.batch_size}, "
            f"seller_kind={seller_kind or 'all'}, api={config.api_url}"
        )
        service = Service(config=config)
        result = await service.enrich_pending(limit=limit, seller_kind=seller_kind)
        _report("Vehicle Enrichment", result)
    except Exception as e:
        logger.error(f"Vehicle enrichment failed: {e}")
        raise
    finally:
        await close_db()


async def run_backfill(limit: int = 10) -> None:
    """Backfill dealer aliases."""
    await init_db()
    try:
        service = Service(config=EnrichmentConfig.from_env())
        result = await service.backfill_dealer_aliases(limit=limit)
        _report("Dealer Backfill", result)
    except Exception as e:
        logger.error(f"Dealer backfill failed: {e}")
        raise
    finally:
        await close_db()


async def show_status() -> None:
    """Show vehicle enrichment statistics."""
    await init_db()
    try:
        stats = await Service(config=EnrichmentConfig.from_env()).get_stats()

        print("\n=== Vehicle Enrichment Status ===")
        print(f"  Vehicles resolved:  {stats.get('total', 0):,}")
        print(f"  Private:            {stats.get('private', 0):,}")
        print(f"  Company:            {stats.get('company', 0):,}")
        print(f"  Dealer:             {stats.get('dealer', 0):,}")
        print(f"  Broker:             {stats.get('broker', 0):,}")
        print(f"  No data:            {stats.get('no_data', 0):,}")
        print(f"  ---")
        print(f"  With chain lead:    {stats.get('with_lead', 0):,}")
        print(f"  Known dealers:      {stats.get('known_dealers', 0):,}")
        print()

    finally:
        await close_db()


def main():
    parser = argparse.ArgumentParser(description="Vehicle provenance enrichment (Biluppgifter)")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    run_parser = subparsers.add_parser("run", help="Enrich pending listings")
    run_parser.add_argument("--limit", type=int, default=None, help="Max vehicles (default: ENRICH_BATCH_SIZE)")
    run_parser.add_argument(
        "--seller-kind", choices=["dealer", "private"], default=None,
        help="Only listings from this kind of seller",
    )

    backfill_parser = subparsers.add_parser("backfill-dealers", help="Learn aliases for known dealers")
    backfill_parser.add_argument("--limit", type=int, default=10, help="Max dealers to look up")

    subparsers.add_parser("status", help="Show enrichment status")

    args = parser.parse_args()

    logger.remove()
    logger.add(sys.stderr, level="INFO", format="<level>{level: <8}</level> | {message}")

    if args.command == "run":
        asyncio.run(run_enrichment(limit=args.limit, seller_kind=args.seller_kind))
    elif args.command == "backfill-dealers":
        asyncio.run(run_backfill(limit=args.limit))
    elif args.command == "status":
        asyncio.run(show_status())
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
