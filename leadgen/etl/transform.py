"""Utilities for transforming Google Places responses into pipeline records and database rows."""

import logging
import re
from typing import Any, Dict, Iterable, Optional

from leadgen.etl.locality import extract_locality, extract_neighborhood
from leadgen.models import CandidateRecord, EnrichedRecord

logger = logging.getLogger(__name__)

_AREA_CODE_PATTERN = re.compile(r"\((\d{2})\)")
_INTERNATIONAL_BR_PATTERN = re.compile(r"^\+55\s*(\d{2})\b")
_MAPS_URL = "https://www.google.com/maps/place/?q=place_id:{place_id}"


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def _safe_float(value: Any) -> Optional[float]:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def _safe_int(value: Any) -> Optional[int]:
    try:
        if value is None:
            return None
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_postal_code(address_components: Iterable[Dict[str, Any]]) -> Optional[str]:
    for component in address_components or []:
        if "postal_code" in (component.get("types") or []):
            return component.get("long_name")
    return None


def area_code_from_phone(phone: Optional[str]) -> Optional[str]:
    """Extract the two-digit DDD from ``(11) 9999-9999`` or ``+55 11 ...``."""
    if not phone:
        return None
    match = _AREA_CODE_PATTERN.search(phone) or _INTERNATIONAL_BR_PATTERN.search(phone.strip())
    return match.group(1) if match else None


def maps_url_for(place_id: Optional[str]) -> str:
    return _MAPS_URL.format(place_id=place_id) if place_id else ""


def to_candidate(result: Dict[str, Any]) -> Optional[CandidateRecord]:
    """Map one search hit to a CandidateRecord; hits without a name are skipped."""
    name = _text(result.get("name"))
    if not name:
        logger.debug("Skipping result without name: %s", result)
        return None
    location = (result.get("geometry") or {}).get("location") or {}
    return CandidateRecord(
        place_id=_text(result.get("place_id")) or None,
        name=name,
        address=_text(result.get("formatted_address") or result.get("vicinity")),
        lat=_safe_float(location.get("lat")),
        lng=_safe_float(location.get("lng")),
        rating=_safe_float(result.get("rating")),
        user_ratings_total=_safe_int(result.get("user_ratings_total")),
        types=tuple(result.get("types") or ()),
        phone=_text(result.get("international_phone_number") or result.get("formatted_phone_number")) or None,
        website=_text(result.get("website")) or None,
    )


def to_basic_record(candidate: CandidateRecord, neighborhood: Optional[str] = None) -> EnrichedRecord:
    """Un-enriched row built from the search hit alone."""
    phone = candidate.phone or ""
    return EnrichedRecord(
        place_id=candidate.place_id,
        name=candidate.name,
        address=candidate.address,
        neighborhood=neighborhood or "",
        phone=phone,
        area_code=area_code_from_phone(phone) or "",
        website=candidate.website or "",
        maps_url=maps_url_for(candidate.place_id),
        enriched=False,
        source_neighborhood=neighborhood or "",
    )


def to_enriched_record(
    candidate: CandidateRecord,
    details: Dict[str, Any],
    neighborhood: Optional[str] = None,
) -> EnrichedRecord:
    """Combine a search hit with its detail payload; detail values take precedence."""
    components = details.get("address_components") or []
    phone = _text(details.get("international_phone_number") or details.get("formatted_phone_number")) or (
        candidate.phone or ""
    )
    return EnrichedRecord(
        place_id=candidate.place_id or _text(details.get("place_id")) or None,
        name=_text(details.get("name")) or candidate.name,
        address=_text(details.get("formatted_address")) or candidate.address,
        city=extract_locality(components) or "",
        neighborhood=extract_neighborhood(components) or neighborhood or "",
        postal_code=parse_postal_code(components) or "",
        area_code=area_code_from_phone(phone) or "",
        phone=phone,
        website=_text(details.get("website")) or candidate.website or "",
        maps_url=_text(details.get("url")) or maps_url_for(candidate.place_id),
        enriched=True,
        source_neighborhood=neighborhood or "",
    )


def to_lead_row(record: EnrichedRecord) -> Dict[str, Any]:
    """Flatten a record into the ``companies`` column layout."""
    return {
        "place_id": record.place_id,
        "name": record.name,
        "city": record.city,
        "neighborhood": record.neighborhood,
        "address": record.address,
        "postal_code": record.postal_code,
        "ddd": record.area_code,
        "phone": record.phone,
        "website": record.website,
        "maps_url": record.maps_url,
        "enriched": record.enriched,
        "source_city": record.source_city or record.city,
        "source_neighborhood": record.source_neighborhood,
    }
