# core/identifiers.py
import re
from dataclasses import replace
from typing import Final, Iterable, List, Optional, Sequence, Tuple

from core.entities import IdentifierCandidate

ITEM_NUMBER: Final[re.Pattern] = re.compile(r"^\d{3,5}$")

PART_NUMBER_SHAPES: Final[Tuple[re.Pattern, ...]] = (
    re.compile(r"^[A-Z]{1,3}\d{3,8}$"),  # RE508960
    re.compile(r"^[A-Z]{1,3}-?\d{3,8}$"),  # RE-508960
    re.compile(r"^\d{2,3}[A-Z]{1,3}\d{2,6}$"),  # 12ABC456
    re.compile(r"^[A-Z]{2,4}\d{2,3}[A-Z]{0,3}\d{0,4}$"),
    re.compile(r"^[A-Z0-9]{6,12}$"),
)

# Per-line extraction: labelled hits first, then bare tokens.
_PAGE_PATTERNS: Final[Tuple[re.Pattern, ...]] = (
    re.compile(r"(?:part\s*(?:no|number|#)[\s:]+)([A-Z0-9-]{6,12})", re.IGNORECASE),
    re.compile(r"(?:p/n[\s:]+)([A-Z0-9-]{6,12})", re.IGNORECASE),
    re.compile(r"(?:order[\s:]+)([A-Z0-9-]{6,12})", re.IGNORECASE),
    re.compile(r"\b([A-Z]{1,3}\d{3,8})\b"),
    re.compile(r"\b([A-Z]{2,4}\d{2,3}[A-Z]{0,3}\d{0,4})\b"),
)

_TIGHT_SHAPE: Final[re.Pattern] = re.compile(r"^[A-Z]{1,3}\d{5,8}$")

# (substring, bonus) applied to the lower-cased source line.
_CONFIDENCE_LABELS: Final[Tuple[Tuple[Tuple[str, ...], int], ...]] = (
    (("part no", "part number"), 30),
    (("p/n",), 25),
    (("order",), 20),
    (("catalog",), 15),
    (("specification",), 10),
    (("model",), 10),
)

BASE_CONFIDENCE: Final[int] = 50
MAX_CONFIDENCE: Final[int] = 100

# Identifier tokens inside a search context window.
CONTEXT_PART_TOKEN: Final[re.Pattern] = re.compile(
    r"\b[A-Z]{2,4}[\d-]{4,12}\b|\b\d{6,10}[A-Z]?\b|\b[A-Z]\d{5,8}\b", re.IGNORECASE
)
# Scoring bonus shape, case-sensitive.
GENERIC_PART_SHAPE: Final[re.Pattern] = re.compile(
    r"\b[A-Z]{2,4}[\d-]{4,12}\b|\b\d{6,10}[A-Z]?\b"
)
_CATALOG_PAGE_REF: Final[re.Pattern] = re.compile(r"^(PC|TX|HT|TT)\d{1,4}$")


def is_item_number(value: str) -> bool:
    """Diagram reference: a bare 3-5 digit numeral."""
    return bool(ITEM_NUMBER.match(str(value).strip()))


def is_part_number(value: str) -> bool:
    v = str(value).strip()
    if is_item_number(v):
        return False
    return any(p.match(v) for p in PART_NUMBER_SHAPES)


def is_page_reference(token: str) -> bool:
    return bool(_CATALOG_PAGE_REF.match(token)) or len(token) < 4


def calculate_part_number_confidence(line: str, part_number: str) -> int:
    confidence = BASE_CONFIDENCE
    lower = line.lower()
    for needles, bonus in _CONFIDENCE_LABELS:
        if any(n in lower for n in needles):
            confidence += bonus
    if _TIGHT_SHAPE.match(part_number):
        confidence += 20
    if len(part_number) >= 8:
        confidence += 10
    return min(confidence, MAX_CONFIDENCE)


def extract_part_numbers_from_page(text: str) -> List[IdentifierCandidate]:
    """
    Every part-number-shaped value on a page, one entry per value (highest
    confidence kept), sorted by confidence descending.
    """
    if not text or not isinstance(text, str):
        return []

    found: List[IdentifierCandidate] = []
    for i, line in enumerate(text.split("\n")):
        for pattern in _PAGE_PATTERNS:
            for m in pattern.finditer(line):
                value = m.group(1)
                if not is_part_number(value):
                    continue
                found.append(
                    IdentifierCandidate(
                        value=value,
                        line_number=i + 1,
                        context=line.strip(),
                        confidence=calculate_part_number_confidence(line, value),
                    )
                )

    # stable sort keeps first occurrence among equal confidences
    found.sort(key=lambda c: c.confidence, reverse=True)
    seen = set()
    out: List[IdentifierCandidate] = []
    for c in found:
        if c.value in seen:
            continue
        seen.add(c.value)
        out.append(c)
    return out


def find_relevant_part_number(
    candidates: Sequence[IdentifierCandidate], context_line: str, search_term: str
) -> Optional[IdentifierCandidate]:
    if not candidates:
        return None

    context_lower = context_line.lower()
    search_lower = search_term.lower()

    ranked: List[IdentifierCandidate] = []
    for c in candidates:
        score = c.confidence
        if c.value in context_line:
            score += 40
        if "filter" in context_lower and "filter" in search_lower:
            score += 20
        if "oil" in context_lower and "oil" in search_lower:
            score += 20
        ranked.append(replace(c, relevance_score=score))

    ranked.sort(key=lambda c: c.relevance_score, reverse=True)
    return ranked[0]


def find_context_part_numbers(context: str) -> List[str]:
    """Identifier tokens in a search context, minus page references and item numbers."""
    return [
        token.strip()
        for token in CONTEXT_PART_TOKEN.findall(context)
        if not is_page_reference(token) and not is_item_number(token)
    ]


_LEADING_NUMBER = re.compile(r"^\d+\s*")
_SPECIAL = re.compile(r"[^\w\s-]")
_REDUNDANT = re.compile(r"\b(part|parts|number|no|qty|quantity)\b", re.IGNORECASE)
_MODEL_NOISE = re.compile(r"\b(310sk|backhoe|loader)\b", re.IGNORECASE)
_TECH_NOISE = re.compile(r"\b(engine|serial|pin)\b", re.IGNORECASE)

COMPONENT_WORDS: Final[frozenset] = frozenset(
    (
        "filter",
        "assembly",
        "kit",
        "service",
        "element",
        "housing",
        "valve",
        "pump",
        "sensor",
        "belt",
        "hose",
    )
)
_STOP_WORDS: Final[frozenset] = frozenset(("that", "with", "from", "this"))


def extract_part_description(
    context: str, part_number: Optional[str], query_terms: Iterable[str]
) -> str:
    description = context
    if part_number:
        description = re.sub(re.escape(part_number), "", description, flags=re.IGNORECASE).strip()

    description = _LEADING_NUMBER.sub("", description)
    description = re.sub(r"\s{2,}", " ", description)
    description = _SPECIAL.sub(" ", description)
    description = _REDUNDANT.sub("", description)
    description = _MODEL_NOISE.sub("", description)
    description = _TECH_NOISE.sub("", description).strip()

    terms = list(query_terms)
    words = description.split()
    relevant = [
        w
        for w in words
        if any(t in w.lower() for t in terms)
        or w.lower() in COMPONENT_WORDS
        or (len(w) > 3 and w.lower() not in _STOP_WORDS)
    ]

    picked = relevant[:5] if relevant else words[:4]
    return " ".join(" ".join(picked).split()) or "Component"
