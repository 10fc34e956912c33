"""Core data models shared by the search pipeline."""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

MAX_TERMS = 18
MAX_RESULTS_RANGE = (1, 120)
DEFAULT_MAX_RESULTS = 60
MAX_PAGES_RANGE = (1, 3)
RADIUS_RANGE_M = (100, 50000)
DEFAULT_RADIUS_M = 2000
GRID_POINTS_RANGE = (1, 25)
DEFAULT_GRID_POINTS = 9


class InvalidRequest(ValueError):
    """Raised when caller-supplied search input cannot be used."""


class SearchMode(str, enum.Enum):
    TEXT = "text"
    NEARBY = "nearby"
    GRID = "grid"

    @classmethod
    def parse(cls, value: Any) -> "SearchMode":
        if isinstance(value, cls):
            return value
        raw = str(value or cls.TEXT.value).strip().lower().replace("_", "-")
        aliases = {"nearby-radius": cls.NEARBY, "radius": cls.NEARBY}
        if raw in aliases:
            return aliases[raw]
        try:
            return cls(raw)
        except ValueError:
            valid = ", ".join(mode.value for mode in cls)
            raise InvalidRequest(f"mode must be one of: {valid}") from None


def _clamp(value: Any, bounds: Tuple[int, int], default: int) -> int:
    if value is None or value == "":
        return default
    try:
        number = int(float(value))
    except (TypeError, ValueError):
        raise InvalidRequest(f"expected a number, got {value!r}") from None
    low, high = bounds
    return min(max(number, low), high)


def unique_casefold(values: Iterable[Any]) -> List[str]:
    """Trim values and drop blanks and case-insensitive repeats, keeping first spelling."""
    seen = set()
    out: List[str] = []
    for value in values:
        text = str(value if value is not None else "").strip()
        if not text:
            continue
        key = text.lower()
        if key in seen:
            continue
        seen.add(key)
        out.append(text)
    return out


@dataclass(frozen=True)
class SearchCriteria:
    state: str
    cities: Tuple[str, ...]
    neighborhood: Optional[str] = None
    keywords: Tuple[str, ...] = ()
    max_results: int = DEFAULT_MAX_RESULTS
    max_pages: int = MAX_PAGES_RANGE[1]
    mode: SearchMode = SearchMode.TEXT
    radius_m: int = DEFAULT_RADIUS_M
    grid_points: int = DEFAULT_GRID_POINTS

    @classmethod
    def build(
        cls,
        *,
        state: Optional[str],
        city: Optional[str] = None,
        cities: Optional[Iterable[str]] = None,
        neighborhood: Optional[str] = None,
        keywords: Optional[Iterable[str]] = None,
        max_results: Any = None,
        max_pages: Any = None,
        mode: Any = None,
        radius_m: Any = None,
        grid_points: Any = None,
    ) -> "SearchCriteria":
        """Normalise raw request values, clamping numeric knobs to safe ranges."""
        merged = list(cities or [])
        if city:
            merged.append(city)
        city_list = unique_casefold(merged)
        if not city_list:
            raise InvalidRequest("at least one city is required")

        state_code = (state or "").strip().upper()
        if not state_code:
            raise InvalidRequest("state is required")

        hood = (neighborhood or "").strip() or None
        keyword_list = unique_casefold(keywords or [])[:MAX_TERMS]

        return cls(
            state=state_code,
            cities=tuple(city_list),
            neighborhood=hood,
            keywords=tuple(keyword_list),
            max_results=_clamp(max_results, MAX_RESULTS_RANGE, DEFAULT_MAX_RESULTS),
            max_pages=_clamp(max_pages, MAX_PAGES_RANGE, MAX_PAGES_RANGE[1]),
            mode=SearchMode.parse(mode),
            radius_m=_clamp(radius_m, RADIUS_RANGE_M, DEFAULT_RADIUS_M),
            grid_points=_clamp(grid_points, GRID_POINTS_RANGE, DEFAULT_GRID_POINTS),
        )


@dataclass(frozen=True)
class CandidateRecord:
    """A single search hit before any detail lookup."""

    name: str
    address: str = ""
    place_id: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = None
    types: Tuple[str, ...] = ()
    phone: Optional[str] = None
    website: Optional[str] = None


@dataclass
class EnrichedRecord:
    """A lead row ready for the response, the spreadsheet and the store."""

    name: str
    address: str = ""
    place_id: Optional[str] = None
    city: str = ""
    neighborhood: str = ""
    postal_code: str = ""
    area_code: str = ""
    phone: str = ""
    website: str = ""
    maps_url: str = ""
    enriched: bool = False
    source_city: str = ""
    source_neighborhood: str = ""

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["ddd"] = payload["area_code"]
        return payload


@dataclass(frozen=True)
class GridPoint:
    lat: float
    lng: float


@dataclass(frozen=True)
class Viewport:
    southwest: GridPoint
    northeast: GridPoint

    @property
    def center(self) -> GridPoint:
        return GridPoint(
            lat=(self.southwest.lat + self.northeast.lat) / 2,
            lng=(self.southwest.lng + self.northeast.lng) / 2,
        )


@dataclass
class PageResult:
    status: str
    results: List[Dict[str, Any]] = field(default_factory=list)
    next_page_token: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status in {"OK", "ZERO_RESULTS"}


@dataclass
class SearchResult:
    results: List[EnrichedRecord]
    terms: List[str]
    cities: List[str]
    mode: SearchMode
    pages_fetched: int = 0
    candidates_seen: int = 0
    enrich_failures: int = 0
    persisted: int = 0

    def meta(self) -> Dict[str, Any]:
        return {
            "total": len(self.results),
            "terms_used": list(self.terms),
            "cities": list(self.cities),
            "mode": self.mode.value,
            "pages_fetched": self.pages_fetched,
            "candidates_seen": self.candidates_seen,
            "enrich_failures": self.enrich_failures,
            "persisted": self.persisted,
        }
