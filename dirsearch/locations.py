"""State/city resolution.

An unresolvable slug, or a store error, degrades to "no scoping" for that
level; nothing here raises to the caller.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from postgrest.exceptions import APIError

from dirsearch.config import LOCATION_CACHE_TTL_SECONDS
from dirsearch.db import find_city, find_state, list_cities
from dirsearch.models import City, Location, State

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass
class LocationCache:
    """Memoized lookups shared by one resolver; dropped wholesale after ``ttl_seconds``."""

    ttl_seconds: float = LOCATION_CACHE_TTL_SECONDS
    clock: Callable[[], float] = time.monotonic
    data: dict = field(default_factory=dict)
    last_refreshed_at: float | None = None

    def _expire(self) -> None:
        now = self.clock()
        if self.last_refreshed_at is None or now - self.last_refreshed_at >= self.ttl_seconds:
            self.data.clear()
            self.last_refreshed_at = now

    def get(self, key, default=None):
        self._expire()
        return self.data.get(key, default)

    def put(self, key, value) -> None:
        self._expire()
        self.data[key] = value

    def clear(self) -> None:
        self.data.clear()
        self.last_refreshed_at = None


class LocationResolver:
    """Maps state/city slugs to ids and states to their city-id roster."""

    def __init__(self, cache: LocationCache | None = None):
        self.cache = cache if cache is not None else LocationCache()

    def _cached(self, key, loader):
        value = self.cache.get(key, _MISSING)
        if value is _MISSING:
            value = loader()
            self.cache.put(key, value)
        return value

    def _lookup_state(self, slug: str) -> State | None:
        try:
            row = find_state(slug)
        except APIError as e:
            logger.warning("State lookup failed: slug=%s, error=%s", slug, e)
            return None
        if not row:
            logger.info("Unknown state slug, searching without state scope: %s", slug)
            return None
        return State(id=str(row["id"]), slug=row.get("slug") or slug, name=row.get("name") or "")

    def _lookup_city(self, slug: str, state_id: str | None) -> City | None:
        try:
            row = find_city(slug, state_id)
        except APIError as e:
            logger.warning("City lookup failed: slug=%s, state_id=%s, error=%s", slug, state_id, e)
            return None
        if not row:
            logger.info("Unknown city slug, searching without city scope: %s", slug)
            return None
        state = row.get("state_id")
        return City(
            id=str(row["id"]),
            slug=row.get("slug") or slug,
            state_id=str(state) if state is not None else None,
            name=row.get("name") or "",
        )

    def resolve(self, state_slug: str | None, city_slug: str | None) -> Location:
        """Resolve both slugs; the city is scoped to the state when the state resolved."""
        state = None
        if state_slug:
            state = self._cached(("state", state_slug), lambda: self._lookup_state(state_slug))

        city = None
        if city_slug:
            state_id = state.id if state else None
            city = self._cached(
                ("city", state_id, city_slug),
                lambda: self._lookup_city(city_slug, state_id),
            )

        return Location(state=state, city=city)

    def _load_city_ids(self, state_id: str) -> set[str]:
        for active_only in (True, False):
            try:
                rows = list_cities(state_id, active_only=active_only)
            except APIError as e:
                logger.warning(
                    "City list failed: state_id=%s, active_only=%s, error=%s",
                    state_id, active_only, e,
                )
                continue
            if rows:
                return {str(r["id"]) for r in rows if r.get("id") is not None}
        return set()

    def expand_state(self, state_id: str | None) -> set[str]:
        """All city ids of ``state_id`` (active cities, or every city if none are flagged active)."""
        if not state_id:
            return set()
        return set(self._cached(("cities", state_id), lambda: self._load_city_ids(state_id)))
