#!/usr/bin/env python3
"""
Check leads for duplicates against the lead history and each other.

Match fields (at least one):
  --plate    registration number of the lead's vehicle
  --chassis  chassis number of the lead's vehicle
  --phone    phone number (digits only, 8+ digits)
  --name     normalized owner name

Usage:
    uv run python -m workflows.check_duplicates --lead-ids <uuid> <uuid> --plate --phone
    uv run python -m workflows.check_duplicates --lead-ids-file ids.txt --plate --chassis --name
"""

import argparse
import asyncio
import os
import sys
from typing import List

from loguru import logger

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from db.client import init_db, close_db
from services.dedupe import MatchOptions, Service


def _read_ids(args) -> List[str]:
    ids = list(args.lead_ids or [])
    if args.lead_ids_file:
        with open(args.lead_ids_file) as f:
            ids.extend(line.strip() for line in f if line.strip())
    return ids


async def check(lead_ids: List[str], options: MatchOptions) -> bool:
    await init_db()
    try:
        result = await Service().check_duplicates(lead_ids, options)
    finally:
        await close_db()

    if not result.success:
        logger.error(result.error)
        return False

    logger.info(
        f"{result.total_checked} checked: {result.unique_count} unique, "
        f"{result.duplicate_count} duplicates"
    )
    for match in result.duplicates:
        where = "same batch" if match.in_batch else "history"
        logger.info(
            f"  {match.lead_id} = {match.matched_lead_id} "
            f"({match.match_field.value}: {match.match_value}, {where})"
        )
    return True


def main():
    parser = argparse.ArgumentParser(description="Check leads for duplicates")
    parser.add_argument("--lead-ids", nargs="*", help="Lead ids to check")
    parser.add_argument("--lead-ids-file", help="File with one lead id per line")
    parser.add_argument("--plate", action="store_true", help="Match on registration number")
    parser.add_argument("--chassis", action="store_true", help="Match on chassis number")
    parser.add_argument("--phone", action="store_true", help="Match on phone number")
    parser.add_argument("--name", action="store_true", help="Match on owner name")
    args = parser.parse_args()

    logger.remove()
    logger.add(sys.stderr, level="INFO", format="<level>{level: <8}</level> | {message}")

    options = MatchOptions(plate=args.plate, chassis=args.chassis, phone=args.phone, name=args.name)
    ok = asyncio.run(check(_read_ids(args), options))
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
