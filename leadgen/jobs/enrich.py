"""Enrich stored leads by place identifier and upsert the detail fields."""

import logging
import time
from typing import Dict, Iterable, Optional

import requests

from leadgen.core.config import Settings, get_settings, require_api_key
from leadgen.core.db import init_pool, upsert_lead
from leadgen.etl.transform import to_enriched_record, to_lead_row
from leadgen.models import CandidateRecord, InvalidRequest
from leadgen.vendors import google_places
from leadgen.vendors.google_places import GooglePlacesError

logger = logging.getLogger(__name__)


def enrich_place_ids(place_ids: Iterable[str], *, settings: Optional[Settings] = None) -> Dict[str, int]:
    """Fetch details for each identifier and upsert it; one failure never stops the batch."""
    ids = list(dict.fromkeys(str(pid).strip() for pid in place_ids or [] if pid and str(pid).strip()))
    if not ids:
        raise InvalidRequest("place_ids must contain at least one identifier")

    settings = settings or get_settings()
    api_key = require_api_key(settings)
    init_pool()

    ok = 0
    fail = 0
    for index, place_id in enumerate(ids):
        if index:
            time.sleep(settings.request_delay)
        try:
            details = google_places.place_details(place_id, api_key, language=settings.places_language)
        except (GooglePlacesError, requests.RequestException) as exc:
            logger.warning("Details lookup failed for %s: %s", place_id, exc)
            fail += 1
            continue

        record = to_enriched_record(CandidateRecord(name="", place_id=place_id), details)
        try:
            upsert_lead(to_lead_row(record))
        except Exception as exc:  # noqa: BLE001
            logger.error("Failed to upsert %s: %s", place_id, exc)
            fail += 1
            continue
        ok += 1

    logger.info("Enrichment finished: ok=%d fail=%d", ok, fail)
    return {"enriched_ok": ok, "enriched_fail": fail}
