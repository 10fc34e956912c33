"""Search pipeline: expand keywords, collect, dedupe, enrich, filter by city, persist."""

import argparse
import json
import logging
import sys
import time
from dataclasses import replace
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import requests

from leadgen.core.config import ConfigError, Settings, get_settings, require_api_key
from leadgen.core.db import init_pool, upsert_lead
from leadgen.etl.collector import collect_candidates
from leadgen.etl.dedup import deduplicate
from leadgen.etl.expander import expand_keywords
from leadgen.etl.export import export_to_xlsx
from leadgen.etl.locality import filter_by_locality
from leadgen.etl.transform import to_basic_record, to_enriched_record, to_lead_row
from leadgen.models import CandidateRecord, EnrichedRecord, SearchCriteria, SearchMode, SearchResult
from leadgen.vendors import google_places
from leadgen.vendors.google_places import GooglePlacesError

logger = logging.getLogger(__name__)


def enrich_candidates(
    candidates: Iterable[CandidateRecord],
    *,
    api_key: str,
    settings: Settings,
    neighborhood: Optional[str] = None,
) -> Tuple[List[EnrichedRecord], int]:
    """Look up details for each candidate; failed lookups keep the search-hit fields."""
    records: List[EnrichedRecord] = []
    failures = 0
    for index, candidate in enumerate(candidates):
        if not candidate.place_id:
            records.append(to_basic_record(candidate, neighborhood))
            continue
        if index:
            time.sleep(settings.request_delay)
        try:
            details = google_places.place_details(candidate.place_id, api_key, language=settings.places_language)
        except (GooglePlacesError, requests.RequestException) as exc:
            failures += 1
            logger.warning("Details lookup failed for %s: %s", candidate.place_id, exc)
            records.append(to_basic_record(candidate, neighborhood))
            continue
        records.append(to_enriched_record(candidate, details, neighborhood))
    return records, failures


def persist_records(records: Iterable[EnrichedRecord]) -> int:
    stored = 0
    for record in records:
        try:
            upsert_lead(to_lead_row(record))
        except Exception as exc:  # noqa: BLE001
            logger.error("Failed to upsert %s: %s", record.place_id or record.name, exc)
            continue
        stored += 1
    return stored


def run_search(
    criteria: SearchCriteria,
    *,
    settings: Optional[Settings] = None,
    enrich: bool = True,
    persist: bool = False,
) -> SearchResult:
    settings = settings or get_settings()
    api_key = require_api_key(settings)
    if persist:
        init_pool()

    terms = expand_keywords(criteria.keywords)
    logger.info(
        "Running %s search for cities=%s terms=%d max_results=%d",
        criteria.mode.value,
        list(criteria.cities),
        len(terms),
        criteria.max_results,
    )

    collection = collect_candidates(criteria, terms, api_key=api_key, settings=settings)
    unique = deduplicate(collection.candidates)
    logger.info("Collected %d candidates, %d unique", len(collection.candidates), len(unique))

    failures = 0
    if enrich:
        records, failures = enrich_candidates(
            unique, api_key=api_key, settings=settings, neighborhood=criteria.neighborhood
        )
    else:
        records = [to_basic_record(candidate, criteria.neighborhood) for candidate in unique]

    records = filter_by_locality(deduplicate(records), criteria.cities)
    records = [replace(record, source_city=record.city) for record in records[: criteria.max_results]]
    logger.info("Kept %d records after locality filter", len(records))

    persisted = persist_records(records) if persist else 0

    return SearchResult(
        results=records,
        terms=terms,
        cities=list(criteria.cities),
        mode=criteria.mode,
        pages_fetched=collection.pages_fetched,
        candidates_seen=len(collection.candidates),
        enrich_failures=failures,
        persisted=persisted,
    )


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Search Google Places for leads")
    parser.add_argument("--state", dest="state", default=settings.default_state, help="State code (UF)")
    parser.add_argument("--city", dest="cities", action="append", required=True, help="City (repeatable)")
    parser.add_argument("--neighborhood", dest="neighborhood", help="Optional neighborhood")
    parser.add_argument("--keyword", dest="keywords", action="append", default=[], help="Keyword (repeatable)")
    parser.add_argument(
        "--mode",
        dest="mode",
        default=SearchMode.TEXT.value,
        choices=[mode.value for mode in SearchMode],
        help="Search strategy",
    )
    parser.add_argument("--max-results", dest="max_results", type=int, help="Overall result cap")
    parser.add_argument(
        "--max-pages",
        dest="max_pages",
        type=int,
        default=settings.max_pages,
        help="Maximum number of result pages per query",
    )
    parser.add_argument("--radius", dest="radius_m", type=int, help="Nearby/grid search radius in metres")
    parser.add_argument("--grid-points", dest="grid_points", type=int, help="Grid points per city")
    parser.add_argument("--no-enrich", dest="enrich", action="store_false", help="Skip place detail lookups")
    parser.add_argument("--persist", dest="persist", action="store_true", help="Upsert results into the database")
    parser.add_argument("--xlsx", dest="xlsx", type=Path, help="Write results to this spreadsheet")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        criteria = SearchCriteria.build(
            state=args.state,
            cities=args.cities,
            neighborhood=args.neighborhood,
            keywords=args.keywords,
            max_results=args.max_results,
            max_pages=args.max_pages,
            mode=args.mode,
            radius_m=args.radius_m,
            grid_points=args.grid_points,
        )
    except ValueError as exc:
        parser.error(str(exc))

    try:
        result = run_search(criteria, enrich=args.enrich, persist=args.persist)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        raise SystemExit(2) from exc
    except GooglePlacesError as exc:
        logger.error("Google Places aborted the search: status=%s message=%s", exc.status, exc.message)
        raise SystemExit(1) from exc

    if args.xlsx:
        args.xlsx.write_bytes(export_to_xlsx(result.results))
        logger.info("Wrote %d rows to %s", len(result.results), args.xlsx)
    else:
        payload = {"results": [record.to_dict() for record in result.results], "meta": result.meta()}
        json.dump(payload, sys.stdout, ensure_ascii=False, indent=2)
        sys.stdout.write("\n")


if __name__ == "__main__":
    main()
