"""Directory search: command-line entry point.

Usage:
  dirsearch led-bulbs --state delhi --city new-delhi
  dirsearch led-bulbs-in-noida-uttar-pradesh --min-rating 4
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime

from dirsearch.config import LOG_DIR
from dirsearch.pipeline import SearchEngine
from dirsearch.result_filters import ResultFilters, price_bounds
from dirsearch.routing import build_seo_path, parse_seo_slug


def setup_logging() -> None:
    """Logging setup: stderr plus a dated file in LOG_DIR."""
    log_file = LOG_DIR / f"dirsearch_{datetime.now().strftime('%Y%m%d')}.log"
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr),
            logging.FileHandler(log_file, encoding="utf-8"),
        ],
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Search directory products by category or keyword")
    parser.add_argument("query", help="service slug, or SEO slug such as led-bulbs-in-noida-uttar-pradesh")
    parser.add_argument("--state", help="state slug")
    parser.add_argument("--city", help="city slug")
    parser.add_argument("--min-price", type=float)
    parser.add_argument("--max-price", type=float)
    parser.add_argument("--min-rating", type=float, default=0)
    parser.add_argument("--verified", action="store_true", help="verified vendors only")
    parser.add_argument("--in-stock", action="store_true", help="hide out-of-stock products")
    parser.add_argument("--limit", type=int, help="print at most this many results")
    parser.add_argument("--summary", action="store_true", help="finish with a count / price range / SEO path line")
    return parser


def run(argv: list[str] | None = None) -> int:
    """CLI main. Prints one JSON object per result, or the redirect."""
    args = build_parser().parse_args(argv)
    setup_logging()
    logger = logging.getLogger(__name__)

    service, state, city = args.query, args.state, args.city
    if not state and not city:
        service, state, city = parse_seo_slug(args.query) or (args.query, None, None)

    filters = ResultFilters(
        price_min=args.min_price,
        price_max=args.max_price,
        min_rating=args.min_rating,
        verified_only=args.verified,
        in_stock_only=args.in_stock,
    )

    logger.info("=== search start: service=%s, state=%s, city=%s ===", service, state, city)
    outcome = SearchEngine().search(service, state, city, filters=filters)

    if outcome.correction:
        print(json.dumps({
            "redirect": outcome.correction.path,
            "seo_path": build_seo_path(outcome.correction.slug, state, city),
            "slug": outcome.correction.slug,
            "message": outcome.correction.message,
        }, ensure_ascii=False))
        return 0

    results = outcome.results[: args.limit] if args.limit else outcome.results
    for product in results:
        print(json.dumps(product.to_record(), ensure_ascii=False, default=str))
    if args.summary:
        print(json.dumps({
            "total": len(outcome.results),
            "price_bounds": list(price_bounds(outcome.results)),
            "seo_path": build_seo_path(service, state, city),
        }))
    logger.info("=== search done: %d results ===", len(outcome.results))
    return 1 if outcome.error else 0


if __name__ == "__main__":
    sys.exit(run())
