"""Location targeting evaluation for products."""

from __future__ import annotations

import re

from dirsearch.models import LegacyTargets, Product, StructuredTargets

_WHITESPACE = re.compile(r"\s+")
_PAN_INDIA_FLAGS = ('"pan_india":true', '"panindia":true')


def _vendor_match(product: Product, state_id: str | None, city_id: str | None) -> bool:
    """Fallback on the vendor's own location when the product carries no usable targets."""
    vendor = product.vendor
    if vendor is None:
        return False
    if city_id:
        if vendor.city_id == city_id:
            return True
        # a vendor without a city still counts inside the queried state
        return bool(state_id and not vendor.city_id and vendor.state_id == state_id)
    return bool(state_id and vendor.state_id == state_id)


def _legacy_match(targets: LegacyTargets, product: Product, state_id, city_id) -> bool:
    compact = _WHITESPACE.sub("", targets.raw).lower()
    if any(flag in compact for flag in _PAN_INDIA_FLAGS):
        return True
    if city_id and city_id in targets.raw:
        return True
    if state_id and state_id in targets.raw:
        return True
    return _vendor_match(product, state_id, city_id)


def _structured_match(
    targets: StructuredTargets,
    product: Product,
    state_id,
    city_id,
    state_city_ids,
) -> bool:
    if targets.pan_india:
        return True
    if not targets.has_targets:
        return _vendor_match(product, state_id, city_id)

    if city_id:
        # only the product's own lists count once a city is requested
        if city_id in targets.city_ids:
            return True
        return bool(state_id and state_id in targets.state_ids)

    if state_id in targets.state_ids:
        return True
    # cities inside the queried state also place the product in that state
    if state_city_ids:
        return any(cid in state_city_ids for cid in targets.city_ids)
    return False


def matches_location(
    product: Product,
    state_id: str | None,
    city_id: str | None,
    state_city_ids: set[str] | None = None,
) -> bool:
    """Decide whether ``product`` should appear for a state/city scoped query.

    Args:
        product: product with decoded ``target_locations`` and embedded vendor
        state_id: queried state id, or None
        city_id: queried city id, or None
        state_city_ids: every city id of the queried state (hierarchical match)

    Returns:
        True when the product targets the location. Unscoped queries match
        everything. Never raises.
    """
    state_id = str(state_id) if state_id else None
    city_id = str(city_id) if city_id else None
    if not state_id and not city_id:
        return True

    targets = product.target_locations
    if isinstance(targets, StructuredTargets):
        return _structured_match(targets, product, state_id, city_id, state_city_ids)
    if isinstance(targets, LegacyTargets):
        return _legacy_match(targets, product, state_id, city_id)
    return _vendor_match(product, state_id, city_id)
