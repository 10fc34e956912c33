import pytest

from leadgen.core.config import ConfigError, Settings
from leadgen.jobs import enrich
from leadgen.vendors import google_places
from leadgen.vendors.google_places import GooglePlacesError

SETTINGS = Settings(google_api_key="key", database_url="postgres://example", request_delay=0)


@pytest.fixture
def upserts(monkeypatch):
    rows = []
    monkeypatch.setattr(enrich, "init_pool", lambda: None)
    monkeypatch.setattr(enrich, "upsert_lead", rows.append)
    monkeypatch.setattr(enrich.time, "sleep", lambda _: None)
    return rows


def _details(place_id):
    return {
        "place_id": place_id,
        "name": f"Empresa {place_id}",
        "formatted_address": "Av. Puglisi, 100 - Pitangueiras, Guarujá - SP, 11410-000, Brasil",
        "international_phone_number": "+55 13 3386-1000",
        "address_components": [
            {"long_name": "Pitangueiras", "types": ["sublocality_level_1", "sublocality"]},
            {"long_name": "Guarujá", "types": ["locality", "political"]},
            {"long_name": "11410-000", "types": ["postal_code"]},
        ],
    }


def test_enriches_and_upserts_each_id(monkeypatch, upserts):
    looked_up = []

    def fake_details(place_id, api_key, language=None):
        looked_up.append(place_id)
        return _details(place_id)

    monkeypatch.setattr(google_places, "place_details", fake_details)

    counts = enrich.enrich_place_ids([" a ", "a", "B", ""], settings=SETTINGS)

    assert counts == {"enriched_ok": 2, "enriched_fail": 0}
    assert looked_up == ["a", "B"]
    row = upserts[0]
    assert row["place_id"] == "a"
    assert row["name"] == "Empresa a"
    assert row["city"] == "Guarujá"
    assert row["neighborhood"] == "Pitangueiras"
    assert row["ddd"] == "13"
    assert row["enriched"] is True


def test_failures_are_counted_not_raised(monkeypatch, upserts):
    def fake_details(place_id, api_key, language=None):
        if place_id == "gone":
            raise GooglePlacesError("NOT_FOUND", query=place_id)
        return _details(place_id)

    monkeypatch.setattr(google_places, "place_details", fake_details)

    counts = enrich.enrich_place_ids(["gone", "ok"], settings=SETTINGS)

    assert counts == {"enriched_ok": 1, "enriched_fail": 1}
    assert [row["place_id"] for row in upserts] == ["ok"]


def test_requires_ids(upserts):
    with pytest.raises(ValueError):
        enrich.enrich_place_ids([], settings=SETTINGS)


def test_requires_api_key(upserts):
    with pytest.raises(ConfigError):
        enrich.enrich_place_ids(["a"], settings=Settings(google_api_key="", database_url=""))
