"""Final result ordering."""

from __future__ import annotations

from dirsearch.models import Product
from dirsearch.normalizer import normalize

EXACT_NAME_SCORE = 1000
CONTAINS_NAME_SCORE = 200


def relevance_score(name: str | None, service_phrase: str) -> int:
    """Keyword relevance of a product name against the normalized service phrase."""
    nm = normalize(name)
    if not service_phrase:
        return 0
    if nm == service_phrase:
        return EXACT_NAME_SCORE
    if service_phrase in nm:
        return CONTAINS_NAME_SCORE
    return 0


def _sort_key(product: Product) -> tuple:
    return (
        -product.plan_priority,
        -product.relevance,
        -product.vendor_rating,
        -product.created_timestamp,
    )


def rank(products: list[Product], service_phrase: str) -> list[Product]:
    """Order by plan tier, relevance, vendor rating, then recency (all descending).

    The sort is stable: products with equal keys keep their input order.
    """
    for p in products:
        p.relevance = relevance_score(p.name, service_phrase)
    return sorted(products, key=_sort_key)
