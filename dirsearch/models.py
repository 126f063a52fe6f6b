"""Data model definitions."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime

logger = logging.getLogger(__name__)


def _id(value) -> str | None:
    """Store ids are compared as strings; empty values become None."""
    if value is None or value == "":
        return None
    return str(value)


@dataclass
class State:
    """A row of the states table."""

    id: str
    slug: str
    name: str = ""


@dataclass
class City:
    """A row of the cities table."""

    id: str
    slug: str
    state_id: str | None = None
    name: str = ""


@dataclass
class Location:
    """Resolved location scope. Either level may be None (unscoped)."""

    state: State | None = None
    city: City | None = None

    @property
    def state_id(self) -> str | None:
        return self.state.id if self.state else None

    @property
    def city_id(self) -> str | None:
        return self.city.id if self.city else None


@dataclass
class SearchContext:
    """Per-request resolution result threaded through the pipeline."""

    kind: str  # "micro" | "sub" | "head" | "text"
    category_id: str | None = None
    parent_id: str | None = None  # sub id for micro, head id for sub
    state_id: str | None = None
    city_id: str | None = None
    state_city_ids: set[str] | None = None


# --- target_locations ---


@dataclass(frozen=True)
class UnsetTargets:
    """No targeting payload stored on the product."""


@dataclass(frozen=True)
class StructuredTargets:
    """Decoded ``{pan_india, states: [{id}], cities: [{id}]}`` record."""

    pan_india: bool = False
    state_ids: tuple[str, ...] = ()
    city_ids: tuple[str, ...] = ()

    @property
    def has_targets(self) -> bool:
        return bool(self.state_ids or self.city_ids)


@dataclass(frozen=True)
class LegacyTargets:
    """Free-form string payload that is not a JSON object."""

    raw: str


TargetLocations = UnsetTargets | StructuredTargets | LegacyTargets


def _target_ids(entries) -> tuple[str, ...]:
    if not isinstance(entries, (list, tuple)):
        return ()
    ids = []
    for entry in entries:
        value = entry.get("id") if isinstance(entry, dict) else entry
        value = _id(value)
        if value is not None:
            ids.append(value)
    return tuple(ids)


def decode_target_locations(raw) -> TargetLocations:
    """Decode a stored ``target_locations`` value into its variant.

    Never raises: anything that is neither an object nor a string is
    treated as unset.
    """
    if not raw:
        return UnsetTargets()
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except ValueError:
            return LegacyTargets(raw)
        if not isinstance(parsed, dict):
            return UnsetTargets()
        raw = parsed
    if not isinstance(raw, dict):
        return UnsetTargets()
    return StructuredTargets(
        pan_india=bool(raw.get("pan_india")),
        state_ids=_target_ids(raw.get("states")),
        city_ids=_target_ids(raw.get("cities")),
    )


# --- vendors / products ---


@dataclass
class Vendor:
    """Vendor fields embedded in a product row."""

    id: str | None
    company_name: str | None = None
    city: str | None = None
    state: str | None = None
    state_id: str | None = None
    city_id: str | None = None
    is_active: bool = True
    kyc_status: str | None = None
    verification_badge: object = None
    seller_rating: object = None
    gst_verified: object = None
    year_of_establishment: object = None
    years_in_business: object = None
    response_rate: object = None

    @classmethod
    def from_row(cls, row: dict | list | None) -> Vendor | None:
        if isinstance(row, list):
            row = row[0] if row else None
        if not isinstance(row, dict):
            return None
        return cls(
            id=_id(row.get("id")),
            company_name=row.get("company_name"),
            city=row.get("city"),
            state=row.get("state"),
            state_id=_id(row.get("state_id")),
            city_id=_id(row.get("city_id")),
            is_active=row.get("is_active") is not False,
            kyc_status=row.get("kyc_status"),
            verification_badge=row.get("verification_badge"),
            seller_rating=row.get("seller_rating"),
            gst_verified=row.get("gst_verified"),
            year_of_establishment=row.get("year_of_establishment"),
            years_in_business=row.get("years_in_business"),
            response_rate=row.get("response_rate"),
        )

    @property
    def verified(self) -> bool:
        return self.kyc_status == "VERIFIED" or bool(self.verification_badge)

    @property
    def rating(self) -> float:
        try:
            return float(self.seller_rating or 0)
        except (TypeError, ValueError):
            return 0.0


@dataclass
class Product:
    """An ACTIVE product row with its vendor, enriched during a search."""

    id: str | None
    name: str = ""
    status: str | None = None
    category: str | None = None
    category_slug: str | None = None
    micro_category_id: str | None = None
    sub_category_id: str | None = None
    head_category_id: str | None = None
    price: object = None
    target_locations: TargetLocations = field(default_factory=UnsetTargets)
    vendor: Vendor | None = None
    created_at: str | None = None
    raw: dict = field(default_factory=dict, repr=False)
    # filled in by the pipeline
    plan_name: str = ""
    plan_priority: int = 0
    relevance: int = 0

    @classmethod
    def from_row(cls, row: dict) -> Product:
        vendor = Vendor.from_row(row.get("vendors"))
        return cls(
            id=_id(row.get("id")),
            name=row.get("name") or "",
            status=row.get("status"),
            category=row.get("category"),
            category_slug=row.get("category_slug"),
            micro_category_id=_id(row.get("micro_category_id")),
            sub_category_id=_id(row.get("sub_category_id")),
            head_category_id=_id(row.get("head_category_id")),
            price=row.get("price"),
            target_locations=decode_target_locations(row.get("target_locations")),
            vendor=vendor,
            created_at=row.get("created_at"),
            raw=row,
        )

    @property
    def vendor_id(self) -> str | None:
        if self.vendor and self.vendor.id:
            return self.vendor.id
        return _id(self.raw.get("vendor_id"))

    @property
    def vendor_rating(self) -> float:
        return self.vendor.rating if self.vendor else 0.0

    @property
    def created_timestamp(self) -> float:
        """``created_at`` as epoch seconds; 0 when missing or unparseable."""
        if not self.created_at:
            return 0.0
        try:
            return datetime.fromisoformat(str(self.created_at).replace("Z", "+00:00")).timestamp()
        except ValueError:
            logger.debug("Unparseable created_at: product=%s value=%r", self.id, self.created_at)
            return 0.0

    def to_record(self) -> dict:
        """Original row fields plus the vendor/plan enrichment."""
        vendor = self.vendor
        record = dict(self.raw)
        embedded = record.get("vendors")
        if isinstance(embedded, list):
            record["vendors"] = embedded[0] if embedded else None
        record.update({
            "vendor_id": self.vendor_id,
            "vendor_name": vendor.company_name if vendor else None,
            "vendor_city": vendor.city if vendor else None,
            "vendor_state": vendor.state if vendor else None,
            "vendor_rating": self.vendor_rating,
            "vendor_verified": vendor.verified if vendor else False,
            "vendor_gst_verified": bool(vendor and vendor.gst_verified in (True, 1)),
            "vendor_year_of_establishment": vendor.year_of_establishment if vendor else None,
            "vendor_years_in_business": vendor.years_in_business if vendor else None,
            "vendor_response_rate": vendor.response_rate if vendor else None,
            "vendor_plan_name": self.plan_name,
        })
        return record


# --- auto-correct ---


@dataclass
class Candidate:
    """A slug/name pair proposed as a correction target."""

    slug: str
    name: str


@dataclass
class Correction:
    """An accepted auto-correction and the redirect it implies."""

    slug: str
    name: str
    distance: int
    original: str
    path: str
    message: str


@dataclass
class AttemptBudget:
    """One-shot token for the auto-correct engine within a single request."""

    available: bool = True

    def consume(self) -> bool:
        """Spend the budget. Returns False if it was already spent."""
        if not self.available:
            return False
        self.available = False
        return True


@dataclass
class GenerationToken:
    """Identifies one request; a newer request supersedes it."""

    generation: int
    _current: object = field(repr=False, compare=False, default=None)

    def is_current(self) -> bool:
        if self._current is None:
            return True
        return self._current() == self.generation


@dataclass
class SearchOutcome:
    """Result of one search request."""

    results: list[Product] = field(default_factory=list)
    correction: Correction | None = None
    superseded: bool = False
    error: BaseException | None = None

    @property
    def redirect(self) -> str | None:
        return self.correction.path if self.correction else None
