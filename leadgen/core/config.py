"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    """Raised when mandatory configuration is missing."""


@dataclass(frozen=True)
class Settings:
    google_api_key: str
    database_url: str
    worker_port: int = 9000
    max_pages: int = 3
    page_token_delay: float = 2.0
    page_token_attempts: int = 5
    request_delay: float = 0.15
    default_state: str = "SP"
    places_language: str = "pt-BR"
    places_region: str = "br"
    cities_cache_ttl: int = 60 * 60 * 12


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("%s=%r is not numeric; using %s", name, raw, default)
        return default


def _env_int(name: str, default: int) -> int:
    return int(_env_float(name, default))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    google_api_key = os.getenv("GOOGLE_MAPS_API_KEY") or os.getenv("GOOGLE_API_KEY", "")
    database_url = os.getenv("DATABASE_URL", "")
    worker_port = _env_int("WORKER_PORT", 9000)
    max_pages = _env_int("WORKER_MAX_PAGES", 3)
    page_token_delay = _env_float("PAGE_TOKEN_DELAY", 2.0)
    page_token_attempts = max(1, _env_int("PAGE_TOKEN_ATTEMPTS", 5))
    request_delay = _env_float("REQUEST_DELAY", 0.15)
    default_state = (os.getenv("DEFAULT_STATE") or "SP").strip().upper()
    places_language = os.getenv("PLACES_LANGUAGE") or "pt-BR"
    places_region = os.getenv("PLACES_REGION") or "br"
    cities_cache_ttl = _env_int("CITIES_CACHE_TTL", 60 * 60 * 12)

    if not database_url:
        logger.warning("DATABASE_URL is not set; database operations will fail.")
    if not google_api_key:
        logger.warning("GOOGLE_MAPS_API_KEY is not configured; Google Places requests will fail.")

    return Settings(
        google_api_key=google_api_key,
        database_url=database_url,
        worker_port=worker_port,
        max_pages=max_pages,
        page_token_delay=page_token_delay,
        page_token_attempts=page_token_attempts,
        request_delay=request_delay,
        default_state=default_state,
        places_language=places_language,
        places_region=places_region,
        cities_cache_ttl=cities_cache_ttl,
    )


def require_api_key(settings: Settings) -> str:
    """Return the Places API key or fail before any request is made."""
    api_key = (settings.google_api_key or "").strip()
    if not api_key:
        raise ConfigError("GOOGLE_MAPS_API_KEY must be set to query Google Places.")
    return api_key
