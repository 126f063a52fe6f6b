"""Search request pipeline.

Flow:
  1. Resolve the state/city slugs (and the state's city roster)
  2. Classify the service slug (micro / sub / head category, or free text)
  3. Fetch candidate products
  4. Keep products that target the requested location
  5. Attach vendor plans and rank
  6. Apply the post-ranking result filters

When step 4 leaves nothing, or any step fails, a single auto-correct
attempt may turn the request into a redirect.
"""

from __future__ import annotations

import logging
import threading

from dirsearch.autocorrect import try_autocorrect
from dirsearch.categories import resolve_context
from dirsearch.fetcher import fetch_candidates
from dirsearch.location_match import matches_location
from dirsearch.locations import LocationResolver
from dirsearch.models import AttemptBudget, GenerationToken, Product, SearchOutcome
from dirsearch.normalizer import phrase_from_slug
from dirsearch.plans import plan_priority, resolve_plan_names
from dirsearch.ranking import rank
from dirsearch.result_filters import ResultFilters, apply_result_filters

logger = logging.getLogger(__name__)


def enrich_with_plans(products: list[Product]) -> None:
    """Set ``plan_name`` / ``plan_priority`` from each product's vendor subscription."""
    plan_names = resolve_plan_names(p.vendor_id for p in products)
    for p in products:
        name = plan_names.get(p.vendor_id, "") if p.vendor_id else ""
        p.plan_name = name
        p.plan_priority = plan_priority(name)


class SearchEngine:
    """Runs searches; owns the location cache and the request generation counter."""

    def __init__(self, locations: LocationResolver | None = None):
        self.locations = locations if locations is not None else LocationResolver()
        self._generation = 0
        self._lock = threading.Lock()

    def _current_generation(self) -> int:
        return self._generation

    def begin(self) -> GenerationToken:
        """Start a request. Any token issued earlier becomes superseded."""
        with self._lock:
            self._generation += 1
            return GenerationToken(self._generation, self._current_generation)

    def search(
        self,
        service_slug: str | None,
        state_slug: str | None = None,
        city_slug: str | None = None,
        filters: ResultFilters | None = None,
        token: GenerationToken | None = None,
    ) -> SearchOutcome:
        """Run one search request. Never raises; failures end as an empty outcome."""
        if not service_slug:
            return SearchOutcome()
        token = token if token is not None else self.begin()
        budget = AttemptBudget()

        try:
            return self._run(service_slug, state_slug, city_slug, filters, token, budget)
        except Exception as e:
            logger.exception(
                "Search failed: service=%s, state=%s, city=%s", service_slug, state_slug, city_slug,
            )
            if not token.is_current():
                return SearchOutcome(superseded=True, error=e)
            correction = self._autocorrect_last_resort(service_slug, state_slug, city_slug, budget)
            return SearchOutcome(correction=correction, error=e)

    def _autocorrect_last_resort(self, service_slug, state_slug, city_slug, budget):
        try:
            return try_autocorrect(service_slug, state_slug, city_slug, budget)
        except Exception as e:
            logger.warning("Auto-correct failed after search error: %s", e)
            return None

    def _run(self, service_slug, state_slug, city_slug, filters, token, budget) -> SearchOutcome:
        phrase = phrase_from_slug(service_slug)

        location = self.locations.resolve(state_slug, city_slug)
        context = resolve_context(service_slug, location)
        if context.state_id:
            context.state_city_ids = self.locations.expand_state(context.state_id)
        if not token.is_current():
            return SearchOutcome(superseded=True)

        products = fetch_candidates(context, service_slug, phrase)
        if not token.is_current():
            return SearchOutcome(superseded=True)

        matched = [
            p for p in products
            if matches_location(p, context.state_id, context.city_id, context.state_city_ids)
        ]
        logger.info(
            "Location filter: %d/%d products (state=%s, city=%s)",
            len(matched), len(products), context.state_id, context.city_id,
        )
        if not matched:
            correction = try_autocorrect(service_slug, state_slug, city_slug, budget)
            return SearchOutcome(correction=correction)

        enrich_with_plans(matched)
        if not token.is_current():
            return SearchOutcome(superseded=True)

        ranked = rank(matched, phrase)
        return SearchOutcome(results=apply_result_filters(ranked, filters))
