from leadgen.etl import locality
from leadgen.models import EnrichedRecord


def test_extract_locality_prefers_locality_over_admin_area():
    components = [
        {"long_name": "Região", "types": ["administrative_area_level_2"]},
        {"long_name": "São Paulo", "types": ["locality", "political"]},
    ]
    assert locality.extract_locality(components) == "São Paulo"
    assert locality.extract_locality([]) is None


def test_extract_neighborhood():
    components = [{"long_name": "Pinheiros", "types": ["neighborhood"]}]
    assert locality.extract_neighborhood(components) == "Pinheiros"


def test_resolve_city_exact_match_returns_requested_spelling():
    assert locality.resolve_city("SÃO PAULO", "", ["São Paulo"]) == "São Paulo"
    assert locality.resolve_city("são paulo", "", ["São Paulo"]) == "São Paulo"


def test_resolve_city_falls_back_to_address():
    address = "Av. Paulista, 1000 - Bela Vista, São Paulo - SP, Brazil"
    assert locality.resolve_city(None, address, ["Guarujá", "São Paulo"]) == "São Paulo"
    assert locality.resolve_city("Santo André", address, ["São Paulo"]) == "São Paulo"


def test_neighbouring_city_is_rejected():
    address = "Rua das Figueiras, 10 - Centro, Santo André - SP, 09080-300, Brazil"
    assert locality.resolve_city("Santo André", address, ["São Paulo"]) is None


def test_filter_by_locality_drops_and_canonicalises():
    records = [
        EnrichedRecord(name="Keep", city="guarujá", address="Rua A, Guarujá - SP"),
        EnrichedRecord(name="Drop", city="Santo André", address="Rua B, Santo André - SP"),
        EnrichedRecord(name="Fallback", city="", address="Rua C, Guarujá - SP"),
    ]

    kept = locality.filter_by_locality(records, ["Guarujá"])

    assert [r.name for r in kept] == ["Keep", "Fallback"]
    assert all(r.city == "Guarujá" for r in kept)
