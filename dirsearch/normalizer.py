"""Text normalization for slugs, names and search phrases."""

from __future__ import annotations

import re

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize(text) -> str:
    """Fold text to a comparable form.

    Lowercases, maps ``&`` to ``and``, collapses every run of
    non-alphanumeric characters into one space and trims.
    """
    s = str(text or "").lower().replace("&", "and")
    return _NON_ALNUM.sub(" ", s).strip()


def stem_word(word: str) -> str:
    """Crude plural stripping for a single token."""
    if len(word) <= 3:
        return word
    if word.endswith("ies") and len(word) > 4:
        return word[:-3] + "y"
    if word.endswith("es"):
        return word[:-2]
    if word.endswith("s"):
        return word[:-1]
    return word


def normalize_fuzzy(text) -> str:
    """``normalize`` followed by per-token stemming.

    Stemming is repeated until stable so the result stays idempotent
    (``"glasses"`` -> ``"glass"`` -> ``"glas"``).
    """
    tokens = []
    for token in normalize(text).split(" "):
        if not token:
            continue
        stemmed = stem_word(token)
        while stemmed != token:
            token, stemmed = stemmed, stem_word(stemmed)
        tokens.append(token)
    return " ".join(tokens)


def slugify(text) -> str:
    """Build a URL slug: lowercase words joined by single hyphens."""
    s = str(text or "").lower().strip().replace("&", "and")
    return _NON_ALNUM.sub("-", s).strip("-")


def phrase_from_slug(slug) -> str:
    """Turn a hyphenated slug into a normalized keyword phrase."""
    return normalize(str(slug or "").replace("-", " "))


def tokenize(text, min_length: int, max_tokens: int) -> list[str]:
    """Return up to ``max_tokens`` normalized tokens of at least ``min_length`` chars."""
    tokens = [t for t in normalize(text).split(" ") if len(t) >= min_length]
    return tokens[:max_tokens]
