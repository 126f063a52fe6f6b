"""Supabase read-only store access.

Every table the engine reads lives in one schema (``SUPABASE_SCHEMA``).
The client is created on first use; nothing here writes.
"""

from __future__ import annotations

import logging

from postgrest.exceptions import APIError
from supabase import Client, create_client

from dirsearch.config import (
    ACTIVE_STATUS,
    CITIES_TABLE,
    PLANS_TABLE,
    PRODUCTS_TABLE,
    STATES_TABLE,
    SUPABASE_SCHEMA,
    SUPABASE_SECRET_KEY,
    SUPABASE_URL,
)

logger = logging.getLogger(__name__)

# Products are always read with their vendor embedded; "!inner" lets the
# vendors.is_active filter drop the product row itself.
PRODUCT_SELECT = (
    "*, "
    "vendors!inner(id, company_name, city, state, state_id, city_id, "
    "seller_rating, kyc_status, verification_badge, trust_score, "
    "gst_verified, year_of_establishment, years_in_business, response_rate, "
    "is_active)"
)

# PostgREST parse / schema-cache codes and PostgreSQL undefined column/function.
_STRUCTURAL_ERROR_CODES = frozenset({"PGRST100", "PGRST200", "PGRST204", "42703", "42883"})

_client_instance: Client | None = None


def _client() -> Client:
    global _client_instance
    if _client_instance is None:
        if not SUPABASE_URL or not SUPABASE_SECRET_KEY:
            raise RuntimeError("SUPABASE_URL and SUPABASE_SECRET_KEY must be set")
        _client_instance = create_client(SUPABASE_URL, SUPABASE_SECRET_KEY)
    return _client_instance


def _table(name: str):
    """Reference a table in the configured schema."""
    return _client().schema(SUPABASE_SCHEMA).table(name)


def is_structural_rejection(err: BaseException) -> bool:
    """True when the store refused the *shape* of a query (unknown column, bad filter).

    Such failures are worth retrying with a narrower filter; anything else
    (network, auth, timeouts) is not.
    """
    if not isinstance(err, APIError):
        return False
    return str(err.code or "") in _STRUCTURAL_ERROR_CODES


def _first(resp) -> dict | None:
    rows = resp.data or []
    return rows[0] if rows else None


def find_by_slug(table: str, slug: str, columns: str = "*", **filters) -> dict | None:
    """Fetch the first row of ``table`` whose slug equals ``slug``.

    Extra keyword arguments are applied as equality filters.
    """
    query = _table(table).select(columns).eq("slug", slug)
    for column, value in filters.items():
        query = query.eq(column, value)
    return _first(query.limit(1).execute())


def list_cities(state_id: str, active_only: bool = True) -> list[dict]:
    """Cities that belong to ``state_id``."""
    query = _table(CITIES_TABLE).select("id, slug, name, state_id").eq("state_id", state_id)
    if active_only:
        query = query.eq("is_active", True)
    return query.order("name").execute().data or []


def find_state(slug: str) -> dict | None:
    return find_by_slug(STATES_TABLE, slug)


def find_city(slug: str, state_id: str | None = None) -> dict | None:
    if state_id is None:
        return find_by_slug(CITIES_TABLE, slug)
    return find_by_slug(CITIES_TABLE, slug, state_id=state_id)


def fetch_products_by_column(column: str, value: str, limit: int) -> list[dict]:
    """ACTIVE products of active vendors where ``column`` equals ``value``, newest first."""
    resp = (
        _table(PRODUCTS_TABLE)
        .select(PRODUCT_SELECT)
        .eq("status", ACTIVE_STATUS)
        .eq("vendors.is_active", True)
        .eq(column, value)
        .order("created_at", desc=True)
        .limit(limit)
        .execute()
    )
    return resp.data or []


def fetch_products_matching_any(or_filter: str, limit: int) -> list[dict]:
    """ACTIVE products of active vendors matching any clause of a PostgREST ``or`` filter."""
    resp = (
        _table(PRODUCTS_TABLE)
        .select(PRODUCT_SELECT)
        .eq("status", ACTIVE_STATUS)
        .eq("vendors.is_active", True)
        .or_(or_filter)
        .order("created_at", desc=True)
        .limit(limit)
        .execute()
    )
    return resp.data or []


def search_slug_rows(table: str, token: str, limit: int) -> list[dict]:
    """Rows of a category table whose slug or name contains ``token``."""
    resp = (
        _table(table)
        .select("id, name, slug")
        .or_(f"slug.ilike.%{token}%,name.ilike.%{token}%")
        .limit(limit)
        .execute()
    )
    return resp.data or []


def search_product_category_rows(token: str, limit: int) -> list[dict]:
    """ACTIVE products whose category slug, category or name contains ``token``."""
    resp = (
        _table(PRODUCTS_TABLE)
        .select("id, name, category, category_slug")
        .eq("status", ACTIVE_STATUS)
        .or_(f"category_slug.ilike.%{token}%,category.ilike.%{token}%,name.ilike.%{token}%")
        .limit(limit)
        .execute()
    )
    return resp.data or []


def fetch_subscriptions(table: str, vendor_ids: list[str]) -> list[dict]:
    """Subscription rows for the given vendors from ``table``."""
    return _table(table).select("*").in_("vendor_id", vendor_ids).execute().data or []


def fetch_plans(plan_ids: list[str]) -> list[dict]:
    """``vendor_plans`` rows (id, name) for the given plan ids."""
    return _table(PLANS_TABLE).select("id, name").in_("id", plan_ids).execute().data or []
