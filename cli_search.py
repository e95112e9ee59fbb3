"""Terminal client that reuses the in-process search logic."""
from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Dict, Iterable

from storefront.config import settings
from storefront.results import SearchPage
from storefront.services import Services, build_services

GREEN = "\033[92m"
RED = "\033[91m"
RESET = "\033[0m"

FILTER_ARGS = ("category", "brand", "gender", "size", "color", "price_min", "price_max", "rating_min")


def build_params(args: argparse.Namespace) -> Dict[str, str]:
    params: Dict[str, str] = {}
    if args.query:
        params["q"] = args.query
    for name in FILTER_ARGS:
        value = getattr(args, name)
        if value is not None:
            params[name] = str(value)
    if args.sort:
        params["sort"] = args.sort
    params["page"] = str(args.page)
    params["limit"] = str(args.limit)
    return params


def pretty_print_page(services: Services, page: SearchPage) -> None:
    color = GREEN if services.availability.search_engine else RED
    print(
        f"Backend: {color}{page.backend}{RESET} | total: {page.total} | "
        f"page {page.page}/{page.total_pages}"
    )
    for idx, hit in enumerate(page.hits, start=page.page_size * (page.page - 1) + 1):
        score = f"{hit.relevanceScore:.2f}" if hit.relevanceScore is not None else "-"
        print(f"  {idx:03d}. score={score} | {hit.brand} | {hit.name} | {hit.price}")


def pretty_print_suggestions(prefix: str, suggestions: list[str]) -> None:
    print(f"Suggestions for {prefix!r}: {len(suggestions)}")
    for item in suggestions:
        print(f"  - {item}")


async def run(services: Services, args: argparse.Namespace) -> None:
    if args.suggest:
        pretty_print_suggestions(args.query or "", await services.suggest(args.query))
        return
    page = await services.search(build_params(args))
    pretty_print_page(services, page)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="CLI client for the storefront product search")
    parser.add_argument("query", nargs="?", help="Free-text query")
    parser.add_argument("--suggest", action="store_true", help="Autocomplete the query instead of searching")
    parser.add_argument("--category")
    parser.add_argument("--brand")
    parser.add_argument("--gender")
    parser.add_argument("--size")
    parser.add_argument("--color")
    parser.add_argument("--price-min", dest="price_min", type=float)
    parser.add_argument("--price-max", dest="price_max", type=float)
    parser.add_argument("--rating-min", dest="rating_min", type=float)
    parser.add_argument(
        "--sort", choices=["relevance", "price_low", "price_high", "rating", "newest"]
    )
    parser.add_argument("--page", type=int, default=1)
    parser.add_argument("--limit", type=int, default=settings.default_page_size)
    return parser.parse_args(list(argv) if argv is not None else None)


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.WARNING)
    services = build_services(settings)
    asyncio.run(run(services, args))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
