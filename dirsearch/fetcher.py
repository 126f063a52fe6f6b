"""Candidate product retrieval.

Category contexts are a single equality query on the matching hierarchy
column. Free-text contexts try a list of filter strategies, widest first:

  1. category_slug = slug OR name/category/description contains phrase
  2. ... without description
  3. ... without category
  4. category_slug = slug only

A strategy the store rejects structurally (see ``db.is_structural_rejection``)
moves on to the next one; when every strategy fails the last error is raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from dirsearch.config import RESULT_LIMIT
from dirsearch.db import fetch_products_by_column, fetch_products_matching_any, is_structural_rejection
from dirsearch.models import Product, SearchContext

logger = logging.getLogger(__name__)

CATEGORY_COLUMNS = {
    "micro": "micro_category_id",
    "sub": "sub_category_id",
    "head": "head_category_id",
}


@dataclass(frozen=True)
class FilterStrategy:
    """One ``or`` filter shape for keyword search."""

    name: str
    clauses: tuple[str, ...]

    def render(self, service_slug: str, service_phrase: str) -> str:
        return ",".join(c.format(slug=service_slug, phrase=service_phrase) for c in self.clauses)


_SLUG_EQ = "category_slug.eq.{slug}"
_NAME = "name.ilike.%{phrase}%"
_CATEGORY = "category.ilike.%{phrase}%"
_DESCRIPTION = "description.ilike.%{phrase}%"

KEYWORD_STRATEGIES = (
    FilterStrategy("slug+name+category+description", (_SLUG_EQ, _NAME, _CATEGORY, _DESCRIPTION)),
    FilterStrategy("slug+name+category", (_SLUG_EQ, _NAME, _CATEGORY)),
    FilterStrategy("slug+name", (_SLUG_EQ, _NAME)),
    FilterStrategy("slug", (_SLUG_EQ,)),
)


def fetch_keyword_rows(
    service_slug: str,
    service_phrase: str,
    strategies=KEYWORD_STRATEGIES,
    limit: int = RESULT_LIMIT,
) -> list[dict]:
    """Run ``strategies`` in order until the store accepts one."""
    last_error: BaseException | None = None
    for strategy in strategies:
        try:
            rows = fetch_products_matching_any(strategy.render(service_slug, service_phrase), limit)
        except Exception as e:
            if not is_structural_rejection(e):
                raise
            logger.warning("Keyword strategy %s rejected, narrowing: %s", strategy.name, e)
            last_error = e
            continue
        logger.info("Keyword strategy %s: %d rows", strategy.name, len(rows))
        return rows

    if last_error is not None:
        raise last_error
    return []


def fetch_candidates(context: SearchContext, service_slug: str, service_phrase: str) -> list[Product]:
    """Fetch ACTIVE products for a resolved context, newest first, capped at ``RESULT_LIMIT``."""
    column = CATEGORY_COLUMNS.get(context.kind)
    if column and context.category_id:
        rows = fetch_products_by_column(column, context.category_id, RESULT_LIMIT)
        logger.info("Category fetch: %s=%s, %d rows", column, context.category_id, len(rows))
    else:
        rows = fetch_keyword_rows(service_slug, service_phrase)
    return [Product.from_row(row) for row in rows]
