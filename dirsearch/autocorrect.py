"""Edit-distance auto-correction for search slugs that found nothing.

Flow:
  1. Fuzzy-normalize the wrong slug; give up below MIN_CORRECTABLE_LENGTH
  2. Split it into up to MAX_TOKENS tokens
  3. Per token, collect slug/name candidates from the three category tables
     and from product categories
  4. Pick the candidate with the smallest Levenshtein distance (slug or name)
  5. Accept it when it is within the allowed distance and differs from the input
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor

from postgrest.exceptions import APIError
from rapidfuzz.distance import Levenshtein

from dirsearch.config import (
    AUTOCORRECT_WORKERS,
    CATEGORY_CANDIDATE_LIMIT,
    HEAD_CATEGORIES_TABLE,
    MAX_TOKENS,
    MICRO_CATEGORIES_TABLE,
    MIN_CORRECTABLE_LENGTH,
    MIN_TOKEN_LENGTH,
    PRODUCT_CANDIDATE_LIMIT,
    SUB_CATEGORIES_TABLE,
)
from dirsearch.db import search_product_category_rows, search_slug_rows
from dirsearch.models import AttemptBudget, Candidate, Correction
from dirsearch.normalizer import normalize_fuzzy, slugify, tokenize
from dirsearch.routing import build_search_path

logger = logging.getLogger(__name__)

CATEGORY_TABLES = (MICRO_CATEGORIES_TABLE, SUB_CATEGORIES_TABLE, HEAD_CATEGORIES_TABLE)


def levenshtein(a: str, b: str) -> int:
    """Unit-cost edit distance (insert, delete, substitute)."""
    return Levenshtein.distance(str(a or ""), str(b or ""))


def allowed_distance(fuzzy_text: str) -> int:
    """Largest distance accepted for a correction of ``fuzzy_text``."""
    return max(2, min(6, math.ceil(len(fuzzy_text) * 0.3)))


def _category_candidates(table: str, token: str) -> list[Candidate]:
    try:
        rows = search_slug_rows(table, token, CATEGORY_CANDIDATE_LIMIT)
    except APIError as e:
        logger.warning("Candidate source skipped: table=%s, token=%s, error=%s", table, token, e)
        return []
    return [Candidate(slug=str(r["slug"]), name=r.get("name") or str(r["slug"])) for r in rows if r.get("slug")]


def _product_candidates(token: str) -> list[Candidate]:
    try:
        rows = search_product_category_rows(token, PRODUCT_CANDIDATE_LIMIT)
    except APIError as e:
        logger.warning("Candidate source skipped: table=products, token=%s, error=%s", token, e)
        return []
    candidates = []
    for r in rows:
        slug = r.get("category_slug") or slugify(r.get("category"))
        if slug:
            name = r.get("category") or r.get("category_slug") or r.get("name") or slug
            candidates.append(Candidate(slug=str(slug), name=name))
    return candidates


def collect_candidates(tokens: list[str], workers: int = AUTOCORRECT_WORKERS) -> list[Candidate]:
    """Candidate pool for ``tokens``, deduplicated by slug (first occurrence wins).

    The lookups are independent reads and run concurrently; results are
    merged in token order, then category tables, then products.
    """
    lookups = []
    for token in tokens:
        for table in CATEGORY_TABLES:
            lookups.append((_category_candidates, (table, token)))
        lookups.append((_product_candidates, (token,)))
    if not lookups:
        return []

    with ThreadPoolExecutor(max_workers=max(1, workers)) as pool:
        batches = list(pool.map(lambda job: job[0](*job[1]), lookups))

    pool_by_slug: dict[str, Candidate] = {}
    for batch in batches:
        for candidate in batch:
            pool_by_slug.setdefault(candidate.slug, candidate)
    return list(pool_by_slug.values())


def pick_best(wrong_fuzzy: str, candidates: list[Candidate]) -> tuple[Candidate | None, float]:
    """Candidate closest to ``wrong_fuzzy`` by slug or name; ties keep the earlier one."""
    best = None
    best_distance = math.inf
    for candidate in candidates:
        distances = [
            levenshtein(wrong_fuzzy, text)
            for text in (normalize_fuzzy(candidate.slug), normalize_fuzzy(candidate.name))
            if text
        ]
        if not distances:
            continue
        distance = min(distances)
        if distance < best_distance:
            best, best_distance = candidate, distance
            if distance == 0:
                break
    return best, best_distance


def try_autocorrect(
    wrong_slug: str | None,
    state_slug: str | None = None,
    city_slug: str | None = None,
    budget: AttemptBudget | None = None,
) -> Correction | None:
    """Propose a corrected slug for a search that returned nothing.

    Args:
        wrong_slug: the slug that produced no results
        state_slug: kept in the redirect path
        city_slug: kept in the redirect path
        budget: per-request one-shot token; a spent budget returns None

    Returns:
        Correction with the redirect path and user notification, or None.
    """
    if not wrong_slug:
        return None
    budget = budget if budget is not None else AttemptBudget()
    if not budget.consume():
        logger.debug("Auto-correct already attempted for this request: %s", wrong_slug)
        return None

    wrong = normalize_fuzzy(wrong_slug)
    if len(wrong) < MIN_CORRECTABLE_LENGTH:
        return None

    tokens = tokenize(wrong_slug, MIN_TOKEN_LENGTH, MAX_TOKENS)
    candidates = collect_candidates(tokens)
    if not candidates:
        logger.info("Auto-correct found no candidates: %s", wrong_slug)
        return None

    best, distance = pick_best(wrong, candidates)
    allowed = allowed_distance(wrong)
    if best is None or distance > allowed:
        logger.info("Auto-correct rejected: %s (distance=%s, allowed=%d)", wrong_slug, distance, allowed)
        return None
    if best.slug == str(wrong_slug):
        return None

    original = str(wrong_slug).replace("-", " ")
    correction = Correction(
        slug=best.slug,
        name=best.name,
        distance=int(distance),
        original=str(wrong_slug),
        path=build_search_path(best.slug, state_slug, city_slug),
        message=f'Showing results for "{best.name}" (corrected from "{original}")',
    )
    logger.info("Auto-corrected search: %s -> %s (distance=%d)", wrong_slug, best.slug, correction.distance)
    return correction
