"""Command-line launcher for the listing engine.

Fetches one page of offices or packages through the default container
and prints it, either as a table or as JSON lines.

    python start.py packages --search umrah --sort price_asc --page 2
    python start.py offices --near "Makkah" --sort distance_asc
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import asdict
from typing import Optional, Sequence

from listing_engine.config import get_config
from listing_engine.container import get_container
from listing_engine.domain.models import (
    FilterState,
    ListingKind,
    NumericRange,
    SortKey,
    ViewStatus,
)
from listing_engine.logs import configure_logging
from listing_engine.services import ListingQueryService

KINDS = {"offices": ListingKind.OFFICE, "packages": ListingKind.PACKAGE}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Browse travel listings")
    parser.add_argument("kind", choices=sorted(KINDS))
    parser.add_argument("--search", default=None)
    parser.add_argument("--city", default=None)
    parser.add_argument("--min-price", type=float, default=None)
    parser.add_argument("--max-price", type=float, default=None)
    parser.add_argument("--min-rating", type=float, default=None)
    parser.add_argument(
        "--sort", choices=[key.value for key in SortKey], default=SortKey.NAME_ASC.value
    )
    parser.add_argument("--page", type=int, default=1)
    parser.add_argument("--page-size", type=int, default=None)
    parser.add_argument("--near", default=None, help="Place name used for distance sorting")
    parser.add_argument("--json", action="store_true", help="Print JSON lines")
    return parser


def _price_range(minimum: Optional[float], maximum: Optional[float]) -> Optional[NumericRange]:
    if minimum is None and maximum is None:
        return None
    return NumericRange(
        minimum=float("-inf") if minimum is None else minimum,
        maximum=float("inf") if maximum is None else maximum,
    )


async def run(args: argparse.Namespace) -> int:
    if args.near:
        get_config().geocoding.place = args.near

    service: ListingQueryService = get_container().listing_service(KINDS[args.kind])
    if args.page_size:
        service.set_page_size(args.page_size)
    service.set_filters(
        FilterState(
            search_text=args.search,
            price_range=_price_range(args.min_price, args.max_price),
            min_rating=args.min_rating,
            city=args.city,
        )
    )
    service.set_sort(SortKey(args.sort))
    if args.near:
        await service.locate()

    # Filter and sort changes reset to page 1, so pick the page last.
    service.set_page(args.page)
    await service.refresh()

    if service.status is ViewStatus.ERROR:
        print(f"Error: {service.last_error}", file=sys.stderr)
        return 1

    page = service.page
    ranker = service.ranker
    for item in page.items:
        distance = ranker.distance_to(item) if ranker.available else None
        if args.json:
            row = asdict(item)
            row["kind"] = item.kind.value
            row["distance_km"] = distance
            print(json.dumps(row, ensure_ascii=False))
        else:
            price = "-" if item.price is None else f"{item.price:.2f}"
            rating = "-" if item.rating is None else f"{item.rating:.1f}"
            suffix = "" if distance is None else f"  {distance:.1f} km"
            print(f"{item.id:>8}  {item.name[:40]:<40}  {price:>10}  {rating:>4}{suffix}")

    if not args.json:
        print(
            f"Page {page.current_page}/{max(page.total_pages, 1)}"
            f" - {page.total_items} result(s)"
        )
    return 0


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
