# core/candidate_filter.py
import re
from typing import Final, List, Sequence, Tuple

from core.entities import Candidate, Document, LineIndexEntry

MAX_LINES_SCANNED: Final[int] = 3000
MAX_CANDIDATES: Final[int] = 200
MAX_SCORED: Final[int] = 100
MAX_NEIGHBOUR_CHARS: Final[int] = 100

_INDEX_ENTRY_PATTERNS: Final[Tuple[re.Pattern, ...]] = (
    re.compile(r"^\d+\s*$"),  # bare numbers
    re.compile(r"^[A-Z]{2,3}\d{1,3}\s*$"),  # PC1, HT073
    re.compile(r"alphabetical", re.IGNORECASE),
    re.compile(r"index", re.IGNORECASE),
    re.compile(r"page\s*\d+", re.IGNORECASE),
    re.compile(r"^(PIN:|TX\d|PC\d)"),
    re.compile(r"^\([A-Z]-\d+\)"),
    re.compile(r"copyright|printed|edition", re.IGNORECASE),
)


def is_index_entry(line: str) -> bool:
    """Table-of-contents and catalogue boilerplate that never names a part."""
    stripped = line.strip()
    return any(p.search(stripped) for p in _INDEX_ENTRY_PATTERNS)


def build_context(entry: LineIndexEntry) -> str:
    """
    Matched line plus its neighbours; long neighbours are left out.
    """
    context = entry.text
    if entry.previous_text and len(entry.previous_text) < MAX_NEIGHBOUR_CHARS:
        context = entry.previous_text + " " + context
    if entry.next_text and len(entry.next_text) < MAX_NEIGHBOUR_CHARS:
        context = context + " " + entry.next_text
    return context


def collect_candidates(document: Document, terms: Sequence[str]) -> List[Candidate]:
    """
    First pass over the line index: term hit and not an index artifact.
    Bounded by MAX_LINES_SCANNED lines and MAX_CANDIDATES hits.
    """
    if not terms:
        return []

    index = document.line_index
    out: List[Candidate] = []
    for entry in index[: min(len(index), MAX_LINES_SCANNED)]:
        if not entry.text:
            continue
        lowered = entry.text.lower()
        if not any(term in lowered for term in terms):
            continue
        if is_index_entry(entry.text):
            continue
        out.append(Candidate(entry=entry))
        if len(out) >= MAX_CANDIDATES:
            break
    return out


def prepare_for_scoring(candidates: Sequence[Candidate]) -> List[Candidate]:
    """Second, tighter budget: only the leading candidates get a context window."""
    prepared = list(candidates[:MAX_SCORED])
    for c in prepared:
        c.context = build_context(c.entry)
    return prepared
