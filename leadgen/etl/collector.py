"""Drive the paginated fetcher across cities, grid points and terms."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Hashable, Iterable, List, Optional, Sequence, Set, Tuple

from leadgen.core.config import Settings
from leadgen.etl.dedup import dedup_key
from leadgen.etl.fetcher import TOKEN_NOT_READY, SearchCall, iter_pages, nearby_search_call, text_search_call
from leadgen.etl.grid import build_grid_points
from leadgen.etl.transform import to_candidate
from leadgen.models import CandidateRecord, GridPoint, SearchCriteria, SearchMode, Viewport
from leadgen.vendors import google_places
from leadgen.vendors.google_places import GooglePlacesError

logger = logging.getLogger(__name__)


@dataclass
class Collection:
    """Raw candidates in arrival order plus the unique keys seen so far."""

    max_results: int
    candidates: List[CandidateRecord] = field(default_factory=list)
    pages_fetched: int = 0
    skipped_pages: int = 0
    keys: Set[Tuple[Hashable, ...]] = field(default_factory=set)

    def add(self, candidate: CandidateRecord) -> None:
        self.candidates.append(candidate)
        self.keys.add(dedup_key(candidate))

    def full(self) -> bool:
        return len(self.keys) >= self.max_results


def build_text_query(term: str, city: str, state: str, neighborhood: Optional[str] = None) -> str:
    return " ".join(part for part in (term, neighborhood, city, state) if part)


def build_location_query(city: str, state: str, neighborhood: Optional[str] = None) -> str:
    return ", ".join(part for part in (neighborhood, city, state) if part)


def _consume(
    call: SearchCall,
    collection: Collection,
    *,
    label: str,
    max_pages: int,
    settings: Settings,
    tolerate_invalid: bool,
) -> None:
    for page in iter_pages(
        call,
        max_pages=max_pages,
        token_delay=settings.page_token_delay,
        token_attempts=settings.page_token_attempts,
        should_stop=collection.full,
    ):
        if page.status == TOKEN_NOT_READY:
            logger.warning("Stopping pagination for %r: %s", label, page.error_message)
            return
        collection.pages_fetched += 1
        if page.status == google_places.INVALID_RESPONSE:
            if not tolerate_invalid:
                raise GooglePlacesError(page.status, page.error_message or "invalid response", label)
            collection.skipped_pages += 1
            logger.warning("Skipping invalid response for %r: %s", label, page.error_message)
            return
        if not page.ok:
            logger.error("Search failed for %r: status=%s, error_message=%s", label, page.status, page.error_message)
            raise GooglePlacesError(page.status, page.error_message, label)

        for raw in page.results:
            candidate = to_candidate(raw)
            if candidate is not None:
                collection.add(candidate)
        logger.info("Collected %d results for %r (%d unique so far)", len(page.results), label, len(collection.keys))


def _text_calls(criteria: SearchCriteria, terms: Sequence[str], api_key: str, settings: Settings):
    for city in criteria.cities:
        for term in terms:
            query = build_text_query(term, city, criteria.state, criteria.neighborhood)
            yield query, text_search_call(query, api_key, settings.places_language, settings.places_region)


def _nearby_calls(
    criteria: SearchCriteria,
    terms: Sequence[str],
    api_key: str,
    settings: Settings,
    points_for: Callable[[str], Iterable[GridPoint]],
    stop: Callable[[], bool],
):
    for city in criteria.cities:
        if stop():
            return
        for point in points_for(city):
            for term in terms:
                label = f"{term} @ {point.lat:.5f},{point.lng:.5f} ({city})"
                yield label, nearby_search_call(point, criteria.radius_m, term, api_key, settings.places_language)


def collect_candidates(
    criteria: SearchCriteria,
    terms: Sequence[str],
    *,
    api_key: str,
    settings: Settings,
) -> Collection:
    """Run every (location x term) search in order until ``max_results`` unique hits are seen."""
    collection = Collection(max_results=criteria.max_results)

    def geocode(city: str) -> Optional[Tuple[GridPoint, Viewport]]:
        address = build_location_query(city, criteria.state, criteria.neighborhood)
        located = google_places.geocode(address, api_key, language=settings.places_language)
        if located is None:
            logger.warning("Skipping %s: no geocoding match for %r", city, address)
        return located

    def centre_point(city: str) -> List[GridPoint]:
        located = geocode(city)
        return [located[0]] if located else []

    def grid_points(city: str) -> List[GridPoint]:
        located = geocode(city)
        return build_grid_points(located[1], criteria.grid_points) if located else []

    if criteria.mode is SearchMode.TEXT:
        calls = _text_calls(criteria, terms, api_key, settings)
        tolerate_invalid = False
    elif criteria.mode is SearchMode.NEARBY:
        calls = _nearby_calls(criteria, terms, api_key, settings, centre_point, collection.full)
        tolerate_invalid = True
    else:
        calls = _nearby_calls(criteria, terms, api_key, settings, grid_points, collection.full)
        tolerate_invalid = True

    for label, call in calls:
        if collection.full():
            logger.info("Result cap of %d reached; stopping", criteria.max_results)
            break
        _consume(
            call,
            collection,
            label=label,
            max_pages=criteria.max_pages,
            settings=settings,
            tolerate_invalid=tolerate_invalid,
        )
    return collection
