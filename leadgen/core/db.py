"""Database helpers for lead persistence."""

import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from psycopg2 import extras, pool

from leadgen.core.config import ConfigError, get_settings

logger = logging.getLogger(__name__)

_connection_pool: Optional[pool.SimpleConnectionPool] = None

_COLUMNS = (
    "place_id",
    "name",
    "city",
    "neighborhood",
    "address",
    "postal_code",
    "ddd",
    "phone",
    "website",
    "maps_url",
    "enriched",
    "source_city",
    "source_neighborhood",
)


def init_pool(minconn: int = 1, maxconn: int = 5) -> pool.SimpleConnectionPool:
    """Initialise and return the shared connection pool."""
    global _connection_pool
    if _connection_pool is None:
        settings = get_settings()
        if not settings.database_url:
            raise ConfigError("DATABASE_URL is required for database connections")
        _connection_pool = pool.SimpleConnectionPool(
            minconn,
            maxconn,
            dsn=settings.database_url,
            connect_timeout=10,
        )
        logger.info("Database connection pool initialised")
    return _connection_pool


@contextmanager
def get_connection():
    """Context manager yielding a pooled connection."""
    pg_pool = init_pool()
    conn = pg_pool.getconn()
    try:
        yield conn
    finally:
        pg_pool.putconn(conn)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _prepare_params(row: Dict[str, Any]) -> Dict[str, Any]:
    params = {column: _blank_to_none(row.get(column)) for column in _COLUMNS}
    params["enriched"] = bool(row.get("enriched"))
    return params


# Blank incoming values never overwrite stored ones; "enriched" only ever flips to true.
_UPDATE_SET = """
    name = COALESCE(EXCLUDED.name, companies.name),
    city = COALESCE(EXCLUDED.city, companies.city),
    neighborhood = COALESCE(EXCLUDED.neighborhood, companies.neighborhood),
    address = COALESCE(EXCLUDED.address, companies.address),
    postal_code = COALESCE(EXCLUDED.postal_code, companies.postal_code),
    ddd = COALESCE(EXCLUDED.ddd, companies.ddd),
    phone = COALESCE(EXCLUDED.phone, companies.phone),
    website = COALESCE(EXCLUDED.website, companies.website),
    maps_url = COALESCE(EXCLUDED.maps_url, companies.maps_url),
    enriched = companies.enriched OR EXCLUDED.enriched,
    source_city = COALESCE(companies.source_city, EXCLUDED.source_city),
    source_neighborhood = COALESCE(companies.source_neighborhood, EXCLUDED.source_neighborhood),
    updated_at = NOW()
"""

_UPSERT_WITH_PLACE_ID = f"""
INSERT INTO companies (
    place_id,
    name,
    city,
    neighborhood,
    address,
    postal_code,
    ddd,
    phone,
    website,
    maps_url,
    enriched,
    source_city,
    source_neighborhood,
    created_at,
    updated_at
) VALUES (
    %(place_id)s,
    %(name)s,
    %(city)s,
    %(neighborhood)s,
    %(address)s,
    %(postal_code)s,
    %(ddd)s,
    %(phone)s,
    %(website)s,
    %(maps_url)s,
    %(enriched)s,
    %(source_city)s,
    %(source_neighborhood)s,
    NOW(),
    NOW()
)
ON CONFLICT (place_id) DO UPDATE SET
{_UPDATE_SET};
"""

_UPSERT_WITHOUT_PLACE_ID = f"""
INSERT INTO companies (
    name,
    city,
    neighborhood,
    address,
    postal_code,
    ddd,
    phone,
    website,
    maps_url,
    enriched,
    source_city,
    source_neighborhood,
    created_at,
    updated_at
) VALUES (
    %(name)s,
    %(city)s,
    %(neighborhood)s,
    %(address)s,
    %(postal_code)s,
    %(ddd)s,
    %(phone)s,
    %(website)s,
    %(maps_url)s,
    %(enriched)s,
    %(source_city)s,
    %(source_neighborhood)s,
    NOW(),
    NOW()
)
ON CONFLICT (name, address) WHERE place_id IS NULL DO UPDATE SET
{_UPDATE_SET};
"""


def upsert_lead(row: Dict[str, Any]) -> None:
    """Persist a lead dictionary, performing an idempotent upsert."""
    params = _prepare_params(row)
    if not params["name"] or not params["address"]:
        raise ValueError("name and address are required for upsert")

    with get_connection() as conn:
        with conn.cursor() as cur:
            if params["place_id"]:
                cur.execute(_UPSERT_WITH_PLACE_ID, params)
            else:
                cur.execute(_UPSERT_WITHOUT_PLACE_ID, params)
        conn.commit()
        logger.debug("Upserted lead %s", params["name"])


_LIST_LEADS = """
SELECT * FROM companies
WHERE (%(city)s IS NULL OR source_city ILIKE %(city)s)
  AND (%(neighborhood)s IS NULL OR source_neighborhood ILIKE %(neighborhood)s)
  AND (%(q)s IS NULL OR name ILIKE %(q)s)
ORDER BY created_at DESC
LIMIT %(limit)s;
"""


def _like(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return f"%{value}%" if value else None


def list_leads(
    city: Optional[str] = None,
    neighborhood: Optional[str] = None,
    q: Optional[str] = None,
    limit: int = 2000,
) -> List[Dict[str, Any]]:
    """Return stored leads, newest first, filtered by substring matches."""
    params = {
        "city": _like(city),
        "neighborhood": _like(neighborhood),
        "q": _like(q),
        "limit": int(limit),
    }
    with get_connection() as conn:
        with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
            cur.execute(_LIST_LEADS, params)
            rows = cur.fetchall()
    return [dict(row) for row in rows]
