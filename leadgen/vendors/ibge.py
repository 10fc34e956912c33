"""Municipality lookups against the IBGE localidades API."""

import logging
import re
import unicodedata
from typing import List, Optional

import requests

from leadgen.core.cache import TTLCache
from leadgen.models import InvalidRequest

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_MUNICIPALITIES_URL = "https://servicodados.ibge.gov.br/api/v1/localidades/estados/{state}/municipios"
_STATE_PATTERN = re.compile(r"^[A-Z]{2}$")
_CACHE = TTLCache()


class MunicipalityLookupError(RuntimeError):
    """Raised when the IBGE service cannot provide a city list."""


def sort_key(name: str) -> str:
    decomposed = unicodedata.normalize("NFKD", name)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()


def list_municipalities(state: str, ttl: float, cache: Optional[TTLCache] = None) -> List[str]:
    """Return the municipality names of ``state`` in alphabetical order."""
    state_code = (state or "").strip().upper()
    if not _STATE_PATTERN.match(state_code):
        raise InvalidRequest(f"invalid state code: {state!r}")

    store = cache if cache is not None else _CACHE
    cache_key = f"ibge:{state_code}"
    cached = store.get(cache_key)
    if cached is not None:
        logger.debug("Municipality cache hit for %s", state_code)
        return list(cached)

    url = _MUNICIPALITIES_URL.format(state=state_code)
    try:
        response = _SESSION.get(url, timeout=10)
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as exc:
        logger.error("IBGE lookup failed for %s: %s", state_code, exc)
        raise MunicipalityLookupError(f"failed to load municipalities for {state_code}") from exc

    if not isinstance(payload, list):
        raise MunicipalityLookupError(f"unexpected IBGE payload for {state_code}")

    names = [str(item.get("nome")).strip() for item in payload if isinstance(item, dict) and item.get("nome")]
    cities = sorted({name for name in names if name}, key=lambda name: (sort_key(name), name))
    store.set(cache_key, tuple(cities), ttl)
    logger.info("Loaded %d municipalities for %s", len(cities), state_code)
    return cities
