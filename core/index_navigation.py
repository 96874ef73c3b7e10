# core/index_navigation.py
"""
Follows index / table-of-contents hits to the content page they cite.

Each result is redirected at most once. The formal path (page classified as an
index, dot-leader reference) wins; the context scanner is only consulted when the
formal path produced no target.
"""
import logging
import re
from dataclasses import replace
from typing import Final, List, Optional, Sequence, Tuple

from core.entities import (
    ContentResolution,
    Document,
    Location,
    PageReference,
    ResolutionStatus,
    SearchResult,
)
from core.identifiers import (
    extract_part_numbers_from_page,
    find_relevant_part_number,
    is_item_number,
    is_part_number,
)

logger = logging.getLogger(__name__)

# "Engine Oil Filter ........ 214" and "Engine Oil Filter . . . . 214"
DOT_LEADER: Final[str] = r"(?:\.\s*){3,}"
_TRAILING_REFERENCE = re.compile(DOT_LEADER + r"(\d{1,4})\s*$")
_EMBEDDED_REFERENCE = re.compile(DOT_LEADER + r"(\d{1,4})\b")

_INDEX_PAGE_PATTERNS: Final[Tuple[re.Pattern, ...]] = (
    re.compile(r"table\s+of\s+contents"),
    re.compile(r"contents"),
    re.compile(r"index"),
    re.compile(r"parts\s+list"),
    re.compile(r"component\s+list"),
    re.compile(DOT_LEADER + r"\d{1,4}\s*$", re.MULTILINE),
)
MIN_REFERENCE_LINES: Final[int] = 3

_CONTEXT_REFERENCE_PATTERNS: Final[Tuple[re.Pattern, ...]] = (
    re.compile(r"(?:^|\s)(\d{1,4})\s+([A-Z][A-Za-z\s,]+)"),
    re.compile(r"(?:^|\s)(\d{1,4})\s+[A-Z][^.]*\.\s*\.\s*\."),
    re.compile(r"(?:^|\s)(\d{1,4})\s+[A-Z]"),
)
MAX_PAGE_NUMBER: Final[int] = 9999
SNIPPET_MARGIN: Final[int] = 20
CONTEXT_LINES_AROUND: Final[int] = 2
_LEADING_TOKEN = re.compile(r"^\s*(\S+)")


def is_index_page(page_text: str) -> bool:
    if not page_text or not isinstance(page_text, str):
        return False
    lowered = page_text.lower()
    if any(p.search(lowered) for p in _INDEX_PAGE_PATTERNS):
        return True
    referencing = sum(
        1 for line in page_text.split("\n") if _TRAILING_REFERENCE.search(line.strip())
    )
    return referencing >= MIN_REFERENCE_LINES


def extract_page_reference(text: str) -> Optional[int]:
    """Page number cited by a dot-leader index line, or None."""
    if not text:
        return None
    m = _TRAILING_REFERENCE.search(text.strip())
    if m:
        return int(m.group(1))
    return None


def extract_page_reference_from_context(
    context: str, current_page_number: Optional[int]
) -> Optional[PageReference]:
    """
    Universal detector: a page number followed by an upper-case-led phrase,
    as in "214 Assembly, Brake Valve". Never points back at the current page.
    """
    if not context or not isinstance(context, str):
        return None

    for pattern in _CONTEXT_REFERENCE_PATTERNS:
        for m in pattern.finditer(context):
            page = int(m.group(1))
            if not 1 <= page <= MAX_PAGE_NUMBER or page == current_page_number:
                continue
            logger.debug("nav.context_reference page=%d text=%r", page, m.group(0).strip())
            return PageReference(
                target_page=page,
                reference_text=m.group(0).strip(),
                source_context=context[
                    max(0, m.start() - SNIPPET_MARGIN) : m.end() + SNIPPET_MARGIN
                ],
            )
    return None


def _reference_from_location(location: Location) -> Optional[int]:
    page = extract_page_reference(location.line_text)
    if page is not None:
        return page
    page = extract_page_reference(location.context)
    if page is not None:
        return page
    m = _EMBEDDED_REFERENCE.search(location.context or "")
    return int(m.group(1)) if m else None


def find_content_on_page(
    document: Document, target_page: int, search_terms: Sequence[str]
) -> ContentResolution:
    page = document.page(target_page)
    if page is None or not page.lines:
        logger.info("nav.target.missing page=%s", target_page)
        return ContentResolution(status=ResolutionStatus.UNRESOLVED)

    page_text = page.text
    part_numbers = extract_part_numbers_from_page(page_text)
    lines = page.lines

    for term in search_terms:
        needle = (term or "").lower().strip()
        if not needle:
            continue
        for i, line in enumerate(lines):
            if needle not in line.text.lower():
                continue
            start = max(0, i - CONTEXT_LINES_AROUND)
            end = min(len(lines), i + CONTEXT_LINES_AROUND + 1)
            logger.info("nav.target.hit page=%d line=%d", target_page, i + 1)
            return ContentResolution(
                status=ResolutionStatus.RESOLVED,
                page_number=target_page,
                line_number=line.line_number,
                y_position=line.y_position,
                content=line.text,
                context="\n".join(l.text for l in lines[start:end]),
                part_numbers=part_numbers,
                relevant_part_number=find_relevant_part_number(
                    part_numbers, line.text, term
                ),
            )

    if part_numbers:
        logger.info(
            "nav.target.partial page=%d candidates=%d", target_page, len(part_numbers)
        )
        return ContentResolution(
            status=ResolutionStatus.PARTIAL,
            page_number=target_page,
            line_number=1,
            y_position=lines[0].y_position,
            content=f"Page {target_page} contains related part information",
            context="\n".join(l.text for l in lines[:5]),
            part_numbers=part_numbers,
            relevant_part_number=part_numbers[0],
        )

    return ContentResolution(status=ResolutionStatus.UNRESOLVED)


def _original_item_number(result: SearchResult) -> Optional[str]:
    if result.part_no and is_item_number(result.part_no):
        return result.part_no
    if result.location and result.location.line_text:
        m = _LEADING_TOKEN.match(result.location.line_text)
        if m and is_item_number(m.group(1)):
            return m.group(1)
    return None


def merge_resolution(
    result: SearchResult,
    resolution: ContentResolution,
    page_reference: Optional[PageReference] = None,
) -> SearchResult:
    """Re-target a result onto the resolved content page."""
    best = resolution.relevant_part_number
    actual = best.value if best else None
    origin = result.location

    location = Location(
        page_number=resolution.page_number,
        line_number=resolution.line_number,
        y_position=resolution.y_position,
        context=resolution.context,
        section=f"Page {resolution.page_number}, Line {resolution.line_number}",
        line_text=resolution.content,
        is_followed_from_index=True,
        index_page_number=origin.page_number if origin else None,
        item_number=_original_item_number(result),
        actual_part_number=actual,
        part_number_confidence=best.confidence if best else 0,
        part_numbers=list(resolution.part_numbers),
    )
    return replace(
        result,
        part_no=actual if actual and is_part_number(actual) else result.part_no,
        location=location,
        page_reference=page_reference,
        resolution=resolution.status,
    )


def _document_for(
    result: SearchResult, documents: Sequence[Document]
) -> Optional[Document]:
    page = result.location.page_number
    if result.document_id:
        for doc in documents:
            if doc.document_id == result.document_id:
                return doc
    for doc in documents:
        if doc.page(page) is not None:
            return doc
    return None


def _search_terms(result: SearchResult, original_query: str) -> List[str]:
    return [t for t in (result.part_name, result.part_no, original_query) if t]


def resolve_result(
    result: SearchResult,
    documents: Sequence[Document],
    original_query: str,
    follow_context_references: bool = True,
) -> SearchResult:
    location = result.location
    if location is None or not location.page_number or result.redirected:
        return result

    doc = _document_for(result, documents)
    if doc is None:
        return result

    terms = _search_terms(result, original_query)

    if is_index_page(doc.page_text(location.page_number)) and location.context:
        target = _reference_from_location(location)
        if target is not None and target != location.page_number:
            logger.info("nav.index.follow from=%d to=%d", location.page_number, target)
            resolution = find_content_on_page(doc, target, terms)
            if resolution.found:
                return merge_resolution(result, resolution)
            logger.info("nav.index.unresolved from=%d to=%d", location.page_number, target)

    if not follow_context_references:
        return result

    ref = extract_page_reference_from_context(location.context, location.page_number)
    if ref is None or doc.page(ref.target_page) is None:
        return result

    resolution = find_content_on_page(doc, ref.target_page, terms)
    if not resolution.found:
        logger.info(
            "nav.context.unresolved from=%d to=%d", location.page_number, ref.target_page
        )
        return result

    logger.info("nav.context.follow from=%d to=%d", location.page_number, ref.target_page)
    return merge_resolution(result, resolution, page_reference=ref)


def process_search_results(
    results: Sequence[SearchResult],
    documents: Sequence[Document],
    original_query: str,
    follow_context_references: bool = True,
) -> List[SearchResult]:
    """
    Redirect index-page hits to their content pages. Results that cannot be
    resolved are returned unchanged; already-redirected results are skipped.
    """
    docs = [d for d in documents or [] if d is not None]
    out = [
        resolve_result(r, docs, original_query, follow_context_references)
        for r in results or []
    ]
    logger.info(
        "nav.processed results=%d redirected=%d",
        len(out),
        sum(1 for r in out if r.redirected),
    )
    return out
