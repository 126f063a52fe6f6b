"""Category context resolution (micro → sub → head → free text)."""

from __future__ import annotations

import logging

from postgrest.exceptions import APIError

from dirsearch.config import HEAD_CATEGORIES_TABLE, MICRO_CATEGORIES_TABLE, SUB_CATEGORIES_TABLE
from dirsearch.db import find_by_slug
from dirsearch.models import Location, SearchContext

logger = logging.getLogger(__name__)

# (kind, table, parent column) in precedence order: most specific first.
CATEGORY_LEVELS = (
    ("micro", MICRO_CATEGORIES_TABLE, "sub_category_id"),
    ("sub", SUB_CATEGORIES_TABLE, "head_category_id"),
    ("head", HEAD_CATEGORIES_TABLE, None),
)


def resolve_context(slug: str | None, location: Location | None = None) -> SearchContext:
    """Classify ``slug`` as a micro/sub/head category, or fall back to free text.

    Args:
        slug: service slug from the request path
        location: resolved location scope, copied into the context

    Returns:
        SearchContext. ``kind == "text"`` when no category table has the slug.
    """
    location = location or Location()
    context = SearchContext(kind="text", state_id=location.state_id, city_id=location.city_id)

    s = str(slug or "").strip()
    if not s:
        return context

    for kind, table, parent_column in CATEGORY_LEVELS:
        columns = f"id, {parent_column}" if parent_column else "id"
        try:
            row = find_by_slug(table, s, columns)
        except APIError as e:
            logger.warning("Category lookup failed, trying next level: table=%s, slug=%s, error=%s", table, s, e)
            continue
        if row and row.get("id") is not None:
            parent = row.get(parent_column) if parent_column else None
            context.kind = kind
            context.category_id = str(row["id"])
            context.parent_id = str(parent) if parent is not None else None
            logger.info("Resolved category: slug=%s kind=%s id=%s", s, kind, context.category_id)
            return context

    logger.info("No category for slug, using keyword search: %s", s)
    return context
