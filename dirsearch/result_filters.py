"""Post-ranking filters (price, rating, verified vendor, stock)."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from dirsearch.models import Product

DEFAULT_PRICE_BOUNDS = (0, 100000)
_NON_NUMERIC = re.compile(r"[^0-9.]")


def to_finite_number(value) -> float | None:
    """Coerce numbers or text such as ``"₹1,250.00"`` to a float; None if impossible."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    cleaned = _NON_NUMERIC.sub("", str(value))
    if not cleaned:
        return None
    try:
        number = float(cleaned)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


@dataclass
class ResultFilters:
    price_min: float | None = None
    price_max: float | None = None
    min_rating: float = 0
    verified_only: bool = False
    in_stock_only: bool = False


def price_bounds(products: list[Product]) -> tuple[int, int]:
    """(floor of lowest, ceil of highest) parseable non-negative price; max is always > min."""
    prices = [p for p in (to_finite_number(x.price) for x in products) if p is not None and p >= 0]
    if not prices:
        return DEFAULT_PRICE_BOUNDS
    low = math.floor(min(prices))
    high = math.ceil(max(prices))
    return low, high if high > low else low + 1


def _rating(product: Product) -> float:
    rating = to_finite_number(product.raw.get("rating"))
    if rating is None:
        rating = to_finite_number(product.vendor.seller_rating) if product.vendor else None
    return rating or 0


def _in_stock(product: Product) -> bool:
    stock = to_finite_number(product.raw.get("stock"))
    if stock is None:
        stock = to_finite_number(product.raw.get("available_quantity"))
    return stock is None or stock > 0


def apply_result_filters(products: list[Product], filters: ResultFilters | None) -> list[Product]:
    """Drop products outside ``filters``; order is preserved. Unknown price/stock passes."""
    if filters is None:
        return list(products)

    out = []
    for p in products:
        price = to_finite_number(p.price)
        if price is not None:
            if filters.price_min is not None and price < filters.price_min:
                continue
            if filters.price_max is not None and price > filters.price_max:
                continue
        if filters.min_rating and _rating(p) < filters.min_rating:
            continue
        if filters.verified_only and not (p.vendor and p.vendor.verified):
            continue
        if filters.in_stock_only and not _in_stock(p):
            continue
        out.append(p)
    return out
