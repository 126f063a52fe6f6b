"""Search URL parsing and building.

Two URL shapes point at the same search:

  structured: /directory/search/<service>/<state>/<city>
  SEO:        /directory/<service>-in-<city>-<state>
"""

from __future__ import annotations

SEARCH_BASE = "/directory"
_LOCATION_DELIMITER = "-in-"

KNOWN_STATE_SLUGS = (
    "andhra-pradesh", "arunachal-pradesh", "assam", "bihar", "chhattisgarh",
    "goa", "gujarat", "haryana", "himachal-pradesh", "jharkhand", "karnataka",
    "kerala", "madhya-pradesh", "maharashtra", "manipur", "meghalaya",
    "mizoram", "nagaland", "odisha", "punjab", "rajasthan", "sikkim",
    "tamil-nadu", "telangana", "tripura", "uttar-pradesh", "uttarakhand",
    "west-bengal", "delhi", "chandigarh", "jammu-and-kashmir", "ladakh",
    "puducherry",
)
# suffix matching tries the longest slug first
_STATES_BY_LENGTH = sorted(KNOWN_STATE_SLUGS, key=len, reverse=True)


def parse_seo_slug(full_slug: str | None) -> tuple[str, str | None, str | None] | None:
    """Split ``led-bulbs-in-noida-uttar-pradesh`` into (service, state, city).

    Returns:
        (service_slug, state_slug, city_slug), or None for an empty slug.
    """
    if not full_slug:
        return None

    index = full_slug.rfind(_LOCATION_DELIMITER)
    if index == -1:
        return full_slug, None, None

    service = full_slug[:index]
    location = full_slug[index + len(_LOCATION_DELIMITER):]

    for state in _STATES_BY_LENGTH:
        if location.endswith(state):
            city_part = location[: -len(state)]
            if city_part.endswith("-"):
                city_part = city_part[:-1]
            return service, state, city_part or None

    # no known state suffix: the whole location is a city
    return service, None, location or None


def build_search_path(service_slug: str | None, state_slug: str | None = None, city_slug: str | None = None) -> str:
    """Structured search path; the city is only included under a state."""
    if not service_slug:
        return SEARCH_BASE
    path = f"{SEARCH_BASE}/search/{service_slug}"
    if state_slug:
        path += f"/{state_slug}"
        if city_slug:
            path += f"/{city_slug}"
    return path


def build_seo_path(service_slug: str, state_slug: str | None = None, city_slug: str | None = None) -> str:
    path = f"{SEARCH_BASE}/{service_slug}"
    if state_slug and city_slug:
        path += f"{_LOCATION_DELIMITER}{city_slug}-{state_slug}"
    elif state_slug:
        path += f"{_LOCATION_DELIMITER}{state_slug}"
    return path
