from leadgen.etl.dedup import dedup_key, deduplicate, merge_records
from leadgen.models import CandidateRecord, EnrichedRecord


def test_dedup_key_prefers_place_id():
    assert dedup_key(CandidateRecord(place_id=" X ", name="A")) == ("pid", "X")
    assert dedup_key(CandidateRecord(name=" Acme ", address=" Rua A ")) == ("na", "acme", "rua a")


def test_same_place_id_merges_missing_phone():
    records = [
        CandidateRecord(place_id="X", name="Acme", phone=None),
        CandidateRecord(place_id="X", name="Acme", phone="119999"),
    ]

    merged = deduplicate(records)

    assert len(merged) == 1
    assert merged[0].phone == "119999"


def test_known_values_are_never_overwritten():
    first = EnrichedRecord(place_id="X", name="Acme", phone="111", website="")
    second = EnrichedRecord(place_id="X", name="Other", phone="222", website="https://acme.example")

    merged = merge_records(first, second)

    assert merged.name == "Acme"
    assert merged.phone == "111"
    assert merged.website == "https://acme.example"


def test_enriched_flag_is_sticky():
    basic = EnrichedRecord(place_id="X", name="Acme", enriched=False)
    full = EnrichedRecord(place_id="X", name="Acme", enriched=True)

    assert merge_records(basic, full).enriched is True
    assert merge_records(full, basic).enriched is True


def test_name_address_fallback_is_case_insensitive():
    records = [
        CandidateRecord(name="Acme Munck", address="Rua A, 1"),
        CandidateRecord(name="  ACME MUNCK", address="rua a, 1 "),
        CandidateRecord(name="Acme Munck", address="Rua B, 2"),
    ]

    merged = deduplicate(records)

    assert [r.address for r in merged] == ["Rua A, 1", "Rua B, 2"]


def test_first_seen_order_is_preserved():
    records = [
        CandidateRecord(place_id="b", name="B"),
        CandidateRecord(place_id="a", name="A"),
        CandidateRecord(place_id="b", name="B2"),
    ]
    assert [r.place_id for r in deduplicate(records)] == ["b", "a"]


def test_deduplicate_is_idempotent_and_unique():
    records = [
        CandidateRecord(place_id="1", name="One"),
        CandidateRecord(name="Two", address="Rua 2"),
        CandidateRecord(place_id="1", name="One", website="https://one.example"),
        CandidateRecord(name="two", address="RUA 2", phone="13"),
        CandidateRecord(place_id="3", name="Three"),
    ]

    once = deduplicate(records)
    twice = deduplicate(once)

    assert once == twice
    assert len(once) <= len(records)
    keys = [dedup_key(r) for r in once]
    assert len(keys) == len(set(keys))


def test_merge_result_independent_of_duplicate_order():
    a = CandidateRecord(place_id="X", name="Acme", phone=None, website="https://acme.example")
    b = CandidateRecord(place_id="X", name="Acme", phone="119999", website=None)

    assert deduplicate([a, b]) == deduplicate([b, a])
