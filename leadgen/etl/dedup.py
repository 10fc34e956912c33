"""Deduplication and gap-filling merge of search records."""

from dataclasses import fields, replace
from typing import Dict, Hashable, Iterable, List, Tuple, TypeVar

R = TypeVar("R")


def dedup_key(record) -> Tuple[Hashable, ...]:
    """External identifier when present, else the normalised (name, address) pair."""
    place_id = (record.place_id or "").strip()
    if place_id:
        return ("pid", place_id)
    name = (record.name or "").strip().lower()
    address = (record.address or "").strip().lower()
    return ("na", name, address)


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (tuple, list, dict, set)):
        return not value
    return False


def merge_records(existing: R, incoming: R) -> R:
    """Fill blank fields of ``existing`` from ``incoming``; known values are never overwritten.

    Boolean flags are OR-ed so an enriched duplicate marks the merged row as enriched.
    """
    updates = {}
    for f in fields(existing):
        current = getattr(existing, f.name)
        candidate = getattr(incoming, f.name, None)
        if isinstance(current, bool):
            if candidate is True and current is False:
                updates[f.name] = True
            continue
        if _is_blank(current) and not _is_blank(candidate):
            updates[f.name] = candidate
    return replace(existing, **updates) if updates else existing


def deduplicate(records: Iterable[R]) -> List[R]:
    """Collapse records sharing a dedup key, in first-seen order."""
    merged: Dict[Tuple[Hashable, ...], R] = {}
    for record in records:
        key = dedup_key(record)
        if key in merged:
            merged[key] = merge_records(merged[key], record)
        else:
            merged[key] = record
    return list(merged.values())
