"""Client utilities for the Google Places and Geocoding APIs."""

import logging
from typing import Any, Dict, Optional, Tuple

import requests

from leadgen.models import GridPoint, Viewport

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://maps.googleapis.com/maps/api/place"
_GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"

SUCCESS_STATUSES = {"OK", "ZERO_RESULTS"}
INVALID_RESPONSE = "INVALID_RESPONSE"
DETAIL_FIELDS = (
    "place_id,name,formatted_address,address_components,"
    "international_phone_number,formatted_phone_number,website,url"
)


class GooglePlacesError(RuntimeError):
    """Raised when the Places API returns a non-successful response."""

    def __init__(self, status: str, message: Optional[str] = None, query: Optional[str] = None) -> None:
        super().__init__(message or status)
        self.status = status
        self.message = message
        self.query = query

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status, "message": self.message, "query": self.query}


def _mask_params(params: Dict[str, Any]) -> Dict[str, Any]:
    masked = dict(params)
    key = str(masked.get("key") or "")
    if key:
        masked["key"] = f"{key[:6]}***"
    return masked


def _get(url: str, params: Dict[str, Any]) -> Dict[str, Any]:
    logger.debug("GET %s params=%s", url, _mask_params(params))
    response = _SESSION.get(url, params=params, timeout=10)
    response.raise_for_status()
    try:
        payload = response.json()
    except ValueError:
        body = (getattr(response, "text", "") or "")[:200]
        logger.warning("Non-JSON response from %s: %s", url, body)
        return {"status": INVALID_RESPONSE, "error_message": body or "invalid response", "results": []}
    if not isinstance(payload, dict):
        return {"status": INVALID_RESPONSE, "error_message": "unexpected payload shape", "results": []}
    return payload


def check_status(payload: Dict[str, Any], operation: str, query: Optional[str] = None) -> Dict[str, Any]:
    status = payload.get("status")
    if status not in SUCCESS_STATUSES:
        logger.error("%s failed: status=%s, error_message=%s", operation, status, payload.get("error_message"))
        raise GooglePlacesError(str(status), payload.get("error_message"), query)
    return payload


def text_search(
    query: str,
    api_key: str,
    pagetoken: Optional[str] = None,
    language: Optional[str] = None,
    region: Optional[str] = None,
) -> Dict[str, Any]:
    """Run one text search call and return the raw payload; the status is left to the caller."""
    params = {"query": query, "key": api_key}
    if language:
        params["language"] = language
    if region:
        params["region"] = region
    if pagetoken:
        params["pagetoken"] = pagetoken
    return _get(f"{_BASE_URL}/textsearch/json", params)


def nearby_search(
    location: GridPoint,
    radius_m: int,
    keyword: str,
    api_key: str,
    pagetoken: Optional[str] = None,
    language: Optional[str] = None,
) -> Dict[str, Any]:
    params = {
        "location": f"{location.lat},{location.lng}",
        "radius": int(radius_m),
        "keyword": keyword,
        "key": api_key,
    }
    if language:
        params["language"] = language
    if pagetoken:
        params["pagetoken"] = pagetoken
    return _get(f"{_BASE_URL}/nearbysearch/json", params)


def place_details(place_id: str, api_key: str, language: Optional[str] = None) -> Dict[str, Any]:
    params = {"place_id": place_id, "key": api_key, "fields": DETAIL_FIELDS}
    if language:
        params["language"] = language
    payload = _get(f"{_BASE_URL}/details/json", params)
    check_status(payload, "place_details", place_id)
    return payload.get("result", {})


def geocode(address: str, api_key: str, language: Optional[str] = None) -> Optional[Tuple[GridPoint, Viewport]]:
    """Resolve an address to its centre point and bounding viewport; None when nothing matches."""
    params = {"address": address, "key": api_key}
    if language:
        params["language"] = language
    payload = _get(_GEOCODE_URL, params)
    check_status(payload, "geocode", address)
    results = payload.get("results") or []
    if not results:
        logger.warning("No geocoding match for %r", address)
        return None

    geometry = results[0].get("geometry", {})
    location = geometry.get("location", {})
    center = GridPoint(lat=float(location["lat"]), lng=float(location["lng"]))
    bounds = geometry.get("viewport") or geometry.get("bounds")
    if not bounds:
        return center, Viewport(southwest=center, northeast=center)
    viewport = Viewport(
        southwest=GridPoint(lat=float(bounds["southwest"]["lat"]), lng=float(bounds["southwest"]["lng"])),
        northeast=GridPoint(lat=float(bounds["northeast"]["lat"]), lng=float(bounds["northeast"]["lng"])),
    )
    return center, viewport
