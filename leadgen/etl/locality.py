"""Locality filtering: keep only leads that belong to the requested cities."""

import logging
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Sequence

from leadgen.models import EnrichedRecord

logger = logging.getLogger(__name__)

_CITY_TYPES = ("locality", "administrative_area_level_2")
_NEIGHBORHOOD_TYPES = ("sublocality", "sublocality_level_1", "neighborhood")


def _first_component(components: Iterable[Dict[str, Any]], wanted: Sequence[str]) -> Optional[str]:
    components = [c for c in components or [] if isinstance(c, dict)]
    for type_name in wanted:
        for component in components:
            if type_name in (component.get("types") or []) and component.get("long_name"):
                return str(component["long_name"]).strip()
    return None


def extract_locality(components: Iterable[Dict[str, Any]]) -> Optional[str]:
    return _first_component(components, _CITY_TYPES)


def extract_neighborhood(components: Iterable[Dict[str, Any]]) -> Optional[str]:
    return _first_component(components, _NEIGHBORHOOD_TYPES)


def resolve_city(locality: Optional[str], formatted_address: Optional[str], cities: Sequence[str]) -> Optional[str]:
    """Return the requested city spelling the record belongs to, or None.

    The tagged locality must equal a requested city (case-insensitively);
    otherwise the formatted address must contain one of them.
    """
    tagged = (locality or "").strip().lower()
    if tagged:
        for city in cities:
            if tagged == city.strip().lower():
                return city

    address = (formatted_address or "").lower()
    if address:
        for city in cities:
            needle = city.strip().lower()
            if needle and needle in address:
                return city
    return None


def filter_by_locality(records: Iterable[EnrichedRecord], cities: Sequence[str]) -> List[EnrichedRecord]:
    """Drop records outside ``cities`` and stamp the canonical city on the rest."""
    kept: List[EnrichedRecord] = []
    for record in records:
        matched = resolve_city(record.city, record.address, cities)
        if matched is None:
            logger.debug("Discarding %s: city=%r not in %s", record.name, record.city, list(cities))
            continue
        kept.append(replace(record, city=matched))
    return kept
