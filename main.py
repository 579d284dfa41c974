import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from lightbnb.config import get_settings
from lightbnb.db import PropertyRepository, ReservationRepository, SQLiteExecutor, create_pool
from lightbnb.db.models import SearchCriteria
from lightbnb.log import configure_logging
from lightbnb.utils.formatters import format_listing, format_reservation


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Search LightBnB properties.")
    parser.add_argument("--city", help="Substring of the city name")
    parser.add_argument("--owner-id", type=int)
    parser.add_argument("--min-price", type=float, help="Minimum price per night")
    parser.add_argument("--max-price", type=float, help="Maximum price per night")
    parser.add_argument("--min-rating", type=float)
    parser.add_argument("--limit", type=int, default=None)
    parser.add_argument("--guest-id", type=int, help="List past reservations of this guest instead")
    return parser.parse_args(argv)


async def main(argv: Optional[List[str]] = None) -> int:
    """Run one search (or reservation listing) and print the results."""
    args = parse_args(argv)
    settings = get_settings()

    configure_logging(settings.log_level_value)
    logger = logging.getLogger(__name__)

    async with create_pool(settings.db) as pool:
        executor = SQLiteExecutor(pool)

        if args.guest_id is not None:
            limit = args.limit if args.limit is not None else settings.reservation_limit
            reservations = await ReservationRepository(executor).list_past_for_guest(
                args.guest_id, limit=limit
            )
            for reservation in reservations:
                print(format_reservation(reservation))
            return 0

        criteria = SearchCriteria(
            city=args.city,
            owner_id=args.owner_id,
            minimum_price_per_night=args.min_price,
            maximum_price_per_night=args.max_price,
            minimum_rating=args.min_rating,
        )
        limit = args.limit if args.limit is not None else settings.search_limit
        result = await PropertyRepository(executor).search(criteria, limit=limit)
        if not result.ok:
            logger.error("Search did not complete: %s", result.error)
            return 1
        for listing in result.rows:
            print(format_listing(listing))
        logger.info("Found %d properties", len(result.rows))
    return 0


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logging.info("Search interrupted.")
