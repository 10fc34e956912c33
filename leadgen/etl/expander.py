"""Keyword expansion to widen recall of the text search."""

from typing import Iterable, List, Sequence, Tuple

from leadgen.models import MAX_TERMS, unique_casefold

DEFAULT_KEYWORDS = ("Munck", "Guindastes", "Guindaste", "Caminhão Munck")

# (substring triggers, synonyms appended when any trigger is found)
SYNONYMS: Sequence[Tuple[Tuple[str, ...], Tuple[str, ...]]] = (
    (
        ("munck", "munk", "guindauto"),
        (
            "caminhão munck",
            "caminhao munck",
            "locação munck",
            "locacao munck",
            "guindauto",
            "guindaste articulado",
            "caminhão munck aluguel",
            "aluguel de munck",
        ),
    ),
    (
        ("guindast",),
        (
            "locação de guindaste",
            "locacao de guindaste",
            "aluguel de guindaste",
            "guindaste móvel",
            "guindaste movel",
            "guindaste telescópico",
            "guindaste telescopico",
            "guindaste para obra",
        ),
    ),
    (
        ("bloco", "pré", "pre", "concreto"),
        (
            "blocos de concreto",
            "artefatos de concreto",
            "pré-moldados",
            "pre moldados",
            "pré fabricados",
            "pre fabricados",
            "fábrica de blocos",
            "fabrica de blocos",
        ),
    ),
)
RENTAL_PREFIXES = ("locação", "aluguel")
MIN_RENTAL_LENGTH = 3


def variants_for(keyword: str) -> List[str]:
    """Synonyms and rental phrasings for a single keyword (original excluded)."""
    lowered = keyword.lower()
    out: List[str] = []
    for triggers, synonyms in SYNONYMS:
        if any(trigger in lowered for trigger in triggers):
            out.extend(synonyms)
    if len(keyword) >= MIN_RENTAL_LENGTH:
        out.extend(f"{prefix} {keyword}" for prefix in RENTAL_PREFIXES)
    return out


def expand_keywords(keywords: Iterable[str], max_terms: int = MAX_TERMS) -> List[str]:
    """Expand raw keywords into search terms.

    Originals come first so the cap only ever trims generated variants;
    falls back to DEFAULT_KEYWORDS when nothing usable is given.
    """
    originals = unique_casefold(keywords or [])
    if not originals:
        originals = list(DEFAULT_KEYWORDS)

    expanded: List[str] = list(originals)
    for keyword in originals:
        expanded.extend(variants_for(keyword))
    return unique_casefold(expanded)[:max_terms]
