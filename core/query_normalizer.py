# core/query_normalizer.py
import logging
import re
from dataclasses import dataclass
from typing import Dict, Final, List, Tuple

logger = logging.getLogger(__name__)

_PREFIXES = re.compile(
    r"^(i need|i'm looking for|i want|can you find|find me|where is|what is|show me)\s+",
    re.IGNORECASE,
)
_ARTICLES = re.compile(r"\b(the|a|an)\s+")
_FILLER = re.compile(r"\b(part number|part|number|for|of)\s+")
_SPACES = re.compile(r"\s+")

# Ordered; the first pattern that matches is the canonical phrase.
COMPONENT_PATTERNS: Final[Tuple[re.Pattern, ...]] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\b(engine\s+)?oil\s+filter\b",
        r"\b(air\s+filter|air\s+cleaner)\b",
        r"\b(fuel\s+filter|fuel\s+element)\b",
        r"\b(hydraulic\s+filter|hydraulic\s+element)\b",
        r"\b(spark\s+plug|ignition\s+plug)\b",
        r"\b(brake\s+pad|brake\s+disc|brake\s+rotor)\b",
        r"\b(transmission\s+filter|transmission\s+oil\s+filter)\b",
        r"\b(coolant\s+filter|radiator\s+filter)\b",
    )
)

# Ordered: specific phrases first, the bare "filter" key last.
SYNONYMS: Final[Dict[str, Tuple[str, ...]]] = {
    "air filter": (
        "air cleaner",
        "air element",
        "intake filter",
        "engine air",
        "air assembly",
        "filtration",
        "breather",
    ),
    "oil filter": (
        "oil element",
        "oil cleaner",
        "lubrication filter",
        "engine oil",
        "oil assembly",
    ),
    "fuel filter": (
        "fuel element",
        "fuel cleaner",
        "fuel line filter",
        "fuel assembly",
    ),
    "hydraulic filter": (
        "hydraulic element",
        "hydraulic cleaner",
        "transmission filter",
        "hyd filter",
    ),
    "cabin filter": ("cab filter", "cabin air", "hvac filter", "air conditioning"),
    "filter": ("element", "cleaner", "cartridge", "assembly"),
}

PARTIAL_EXPANSION_CAP: Final[int] = 3


@dataclass(frozen=True)
class NormalizedQuery:
    original: str
    phrase: str  # canonical phrase, lower-cased
    terms: Tuple[str, ...]


def extract_key_terms(query: str) -> str:
    """
    Reduce a conversational query to the component phrase it asks about.
    A known component pattern beats the generic cleanup.
    """
    lowered = query.lower().strip()

    processed = _PREFIXES.sub("", lowered)
    processed = _ARTICLES.sub(" ", processed)
    processed = _FILLER.sub(" ", processed)
    processed = _SPACES.sub(" ", processed).strip()

    for pattern in COMPONENT_PATTERNS:
        m = pattern.search(lowered)
        if m:
            logger.debug("query.phrase matched=%r", m.group(0))
            return m.group(0)

    if processed and processed != lowered:
        logger.debug("query.cleaned %r -> %r", lowered, processed)
        return processed

    return query


def expand_search_query(phrase: str) -> List[str]:
    """
    Synonym terms for a canonical phrase. Exact key hit: the first matching key's
    full list. Otherwise every key sharing a word contributes its first few terms.
    """
    for key, values in SYNONYMS.items():
        if key in phrase:
            return list(values)

    expanded: List[str] = []
    for key, values in SYNONYMS.items():
        if any(word in phrase for word in key.split(" ")):
            expanded.extend(values[:PARTIAL_EXPANSION_CAP])
    return expanded


def _dedupe(items: List[str]) -> Tuple[str, ...]:
    seen = set()
    out: List[str] = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            out.append(item)
    return tuple(out)


def normalize_query(query: str) -> NormalizedQuery:
    phrase = extract_key_terms(query or "").lower().strip()
    words = phrase.split()
    terms = _dedupe(words + expand_search_query(phrase)) if phrase else ()
    return NormalizedQuery(original=query or "", phrase=phrase, terms=terms)
