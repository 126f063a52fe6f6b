"""Vendor plan lookup and plan-tier priorities.

The tier is the primary ranking key. Lookup failures never block a search:
they produce an empty map and every vendor ranks as tier 0.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from postgrest.exceptions import APIError

from dirsearch.config import ACTIVE_STATUS, SUBSCRIPTION_TABLES
from dirsearch.db import fetch_plans, fetch_subscriptions

logger = logging.getLogger(__name__)

# (substrings, priority), checked in order; "dimond" is a misspelling found in stored plan names.
PLAN_PRIORITIES = (
    (("diamond", "dimond"), 600),
    (("gold",), 500),
    (("silver",), 400),
    (("certified",), 300),
    (("booster",), 200),
    (("startup",), 100),
    (("trial",), 0),
)
UNKNOWN_PLAN_PRIORITY = 10


def plan_priority(plan_name: str | None) -> int:
    """Map a plan name to its tier (case-insensitive substring, first match wins)."""
    p = str(plan_name or "").lower().strip()
    if not p:
        return 0
    for needles, priority in PLAN_PRIORITIES:
        if any(n in p for n in needles):
            return priority
    return UNKNOWN_PLAN_PRIORITY


def _is_active_subscription(row: dict, now: datetime) -> bool:
    status = row.get("status")
    if status and str(status).upper() != ACTIVE_STATUS:
        return False
    end_date = row.get("end_date")
    if not end_date:
        return True
    try:
        end = datetime.fromisoformat(str(end_date).replace("Z", "+00:00"))
    except ValueError:
        return True
    if end.tzinfo is None:
        end = end.replace(tzinfo=timezone.utc)
    return end > now


def _load_subscriptions(vendor_ids: list[str]) -> list[dict] | None:
    for table in SUBSCRIPTION_TABLES:
        try:
            return fetch_subscriptions(table, vendor_ids)
        except APIError as e:
            logger.warning("Subscription lookup failed: table=%s, error=%s", table, e)
    return None


def resolve_plan_names(vendor_ids, now: datetime | None = None) -> dict[str, str]:
    """Map vendor id -> name of its active plan.

    Args:
        vendor_ids: vendor ids (duplicates and empty values are ignored)
        now: reference time for ``end_date`` checks (defaults to UTC now)

    Returns:
        {vendor_id: plan_name}. Vendors without an active plan are absent;
        the map is empty when the lookups fail.
    """
    ids = sorted({str(v) for v in vendor_ids if v})
    if not ids:
        return {}
    now = now or datetime.now(timezone.utc)

    subs = _load_subscriptions(ids)
    if subs is None:
        return {}
    subs = [s for s in subs if s.get("plan_id") and _is_active_subscription(s, now)]

    plan_ids = sorted({str(s["plan_id"]) for s in subs})
    if not plan_ids:
        return {}
    try:
        plans = fetch_plans(plan_ids)
    except APIError as e:
        logger.warning("Plan lookup failed: %s", e)
        return {}
    plan_names = {str(p["id"]): p.get("name") or "" for p in plans}

    vendor_plans: dict[str, str] = {}
    for s in subs:
        name = plan_names.get(str(s["plan_id"]))
        if not name:
            continue
        vendor_id = str(s.get("vendor_id"))
        current = vendor_plans.get(vendor_id)
        # several active plans: keep the highest tier
        if current is None or plan_priority(name) > plan_priority(current):
            vendor_plans[vendor_id] = name
    return vendor_plans


def resolve_plan_priorities(vendor_ids, now: datetime | None = None) -> dict[str, int]:
    """Map vendor id -> plan tier for every vendor with an active plan."""
    return {vid: plan_priority(name) for vid, name in resolve_plan_names(vendor_ids, now).items()}
