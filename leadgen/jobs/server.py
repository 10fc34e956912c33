"""HTTP entrypoint exposing lead search, enrichment, listing and export."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict

import requests
from flask import Flask, Response, jsonify, request
from werkzeug.exceptions import HTTPException

from leadgen.core.config import ConfigError, get_settings
from leadgen.core.db import list_leads
from leadgen.etl.export import XLSX_MIMETYPE, export_to_xlsx, safe_filename
from leadgen.jobs.enrich import enrich_place_ids
from leadgen.jobs.run_search import run_search
from leadgen.models import InvalidRequest, SearchCriteria
from leadgen.vendors.google_places import GooglePlacesError
from leadgen.vendors.ibge import MunicipalityLookupError, list_municipalities

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App ----------
app = Flask(__name__)
app.json.ensure_ascii = False


def _error(message: str, status: int, details: Any = None):
    body: Dict[str, Any] = {"error": message}
    if details is not None:
        body["details"] = details
    return jsonify(body), status


@app.errorhandler(InvalidRequest)
def _handle_invalid_request(exc: InvalidRequest):
    return _error(str(exc), 400)


@app.errorhandler(ConfigError)
def _handle_config_error(exc: ConfigError):
    logger.error("Configuration error: %s", exc)
    return _error(str(exc), 500)


@app.errorhandler(GooglePlacesError)
def _handle_places_error(exc: GooglePlacesError):
    return _error("Google Places API error", 502, exc.to_dict())


@app.errorhandler(MunicipalityLookupError)
def _handle_municipality_error(exc: MunicipalityLookupError):
    return _error(str(exc), 502)


@app.errorhandler(requests.RequestException)
def _handle_upstream_error(exc: requests.RequestException):
    logger.error("Upstream request failed: %s", exc)
    return _error("upstream request failed", 502)


@app.errorhandler(Exception)
def _handle_unexpected_error(exc: Exception):
    if isinstance(exc, HTTPException):
        return _error(exc.description or exc.name, exc.code or 500)
    logger.exception("Unhandled error while serving %s %s", request.method, request.path)
    return _error("unexpected server error", 500)


# ---------- Routes ----------


@app.get("/")
def root() -> Any:
    """Simple root to avoid 404 on GET /"""
    return "ok", 200


@app.get("/healthz")
def healthcheck() -> Any:
    """Lightweight health endpoint; reads settings only, never touches the database."""
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "worker_port_config": getattr(settings, "worker_port", None),
                "places_configured": bool(settings.google_api_key),
                "database_configured": bool(settings.database_url),
            }
        ),
        200,
    )


def _json_body() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise InvalidRequest("request body must be a JSON object")
    return payload


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _as_list(value: Any, field_name: str) -> list:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return value
    raise InvalidRequest(f"{field_name} must be a list of strings")


@app.post("/api/search")
def search() -> Any:
    """
    Run a lead search.
    Required JSON fields: city or cities
    Optional: state/uf, neighborhood, keywords, max_results, max_pages, mode,
    radius_m, grid_points, enrich (bool), persist (bool)
    """
    payload = _json_body()
    settings = get_settings()

    criteria = SearchCriteria.build(
        state=payload.get("state") or payload.get("uf") or settings.default_state,
        city=payload.get("city"),
        cities=_as_list(payload.get("cities"), "cities"),
        neighborhood=payload.get("neighborhood"),
        keywords=_as_list(payload.get("keywords"), "keywords"),
        max_results=payload.get("max_results", payload.get("maxResults")),
        max_pages=payload.get("max_pages", settings.max_pages),
        mode=payload.get("mode"),
        radius_m=payload.get("radius_m", payload.get("radius")),
        grid_points=payload.get("grid_points"),
    )
    enrich = _as_bool(payload.get("enrich"), True)
    persist = _as_bool(payload.get("persist"), False)

    logger.info("Search request: %s enrich=%s persist=%s", criteria, enrich, persist)
    result = run_search(criteria, settings=settings, enrich=enrich, persist=persist)
    return jsonify({"results": [record.to_dict() for record in result.results], "meta": result.meta()}), 200


@app.get("/api/cities")
def cities() -> Any:
    settings = get_settings()
    state = (request.args.get("state") or request.args.get("uf") or settings.default_state).strip().upper()
    names = list_municipalities(state, ttl=settings.cities_cache_ttl)
    return jsonify({"state": state, "cities": names}), 200


@app.post("/api/enrich")
def enrich() -> Any:
    payload = _json_body()
    place_ids = payload.get("place_ids", payload.get("placeIds"))
    counts = enrich_place_ids(_as_list(place_ids, "place_ids"))
    return jsonify(counts), 200


@app.get("/api/leads")
def leads() -> Any:
    rows = list_leads(
        city=request.args.get("city"),
        neighborhood=request.args.get("neighborhood"),
        q=request.args.get("q"),
    )
    return jsonify({"leads": rows}), 200


@app.post("/api/export-xlsx")
def export_xlsx() -> Any:
    payload = _json_body()
    rows = payload.get("rows")
    if not isinstance(rows, list):
        rows = []
    filename = safe_filename(payload.get("filename"))
    content = export_to_xlsx(row for row in rows if isinstance(row, dict))
    return Response(
        content,
        status=200,
        mimetype=XLSX_MIMETYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}.xlsx"'},
    )


def main() -> None:
    """Bind on PORT when the platform injects it, else WORKER_PORT."""
    env_port = os.getenv("PORT")
    port = int(env_port or get_settings().worker_port)
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
