# core/search_engine.py
import logging
from typing import Final, Iterable, List, Optional, Sequence

from core.candidate_filter import collect_candidates, prepare_for_scoring
from core.entities import Candidate, Document, Location, SearchResult
from core.identifiers import extract_part_description, find_context_part_numbers
from core.query_normalizer import normalize_query
from core.relevance import ACCEPT_THRESHOLD, calculate_relevance, is_relevant_for_query
from util.functions import clip_chars
from util.timing import timed

logger = logging.getLogger(__name__)

CONTEXT_DISPLAY_CHARS: Final[int] = 200
NAME_PREFIX_CHARS: Final[int] = 20


def _location(candidate: Candidate) -> Location:
    e = candidate.entry
    return Location(
        page_number=e.page_number,
        line_number=e.line_number,
        y_position=e.y_position or 0,
        context=clip_chars(candidate.context, CONTEXT_DISPLAY_CHARS),
        section=f"Page {e.page_number}, Line {e.line_number}",
        line_text=e.text,
    )


def _to_results(
    candidate: Candidate, terms: Sequence[str], document: Document
) -> List[SearchResult]:
    meta = dict(
        document_id=document.document_id,
        machine_name=document.machine_name,
        pdf_path=document.pdf_path,
    )
    parts = find_context_part_numbers(candidate.context)
    if parts:
        return [
            SearchResult(
                part_no=part,
                part_name=extract_part_description(candidate.context, part, terms),
                relevance=candidate.score,
                location=_location(candidate),
                **meta,
            )
            for part in parts
        ]
    return [
        SearchResult(
            part_no=None,
            part_name=extract_part_description(candidate.context, None, terms),
            relevance=candidate.score,
            location=_location(candidate),
            **meta,
        )
    ]


def search(document: Document, query: str) -> List[SearchResult]:
    """
    Ranked matches for `query` in one document. Never raises on empty input.
    """
    if document is None or not query or not query.strip():
        return []
    if not document.line_index:
        logger.info("search.empty_document doc=%s", document.document_id)
        return []

    normalized = normalize_query(query)
    if not normalized.terms:
        return []

    results: List[SearchResult] = []
    with timed(logger, "search.document", doc=document.document_id, terms=len(normalized.terms)):
        candidates = collect_candidates(document, normalized.terms)
        scored = prepare_for_scoring(candidates)
        logger.info(
            "search.candidates collected=%d scored=%d", len(candidates), len(scored)
        )

        for c in scored:
            if not is_relevant_for_query(c.context, normalized.phrase):
                continue
            c.score = calculate_relevance(c.context, normalized.phrase, normalized.terms)
            if c.score < ACCEPT_THRESHOLD:
                continue
            results.extend(_to_results(c, normalized.terms, document))

    results.sort(key=lambda r: r.relevance, reverse=True)
    deduped = deduplicate_results(results)
    logger.info("search.results query=%r count=%d", normalized.phrase, len(deduped))
    return deduped


def search_documents(documents: Iterable[Document], query: str) -> List[SearchResult]:
    """Search every document and merge by relevance; ties keep document order."""
    merged: List[SearchResult] = []
    for doc in documents or []:
        merged.extend(search(doc, query))
    merged.sort(key=lambda r: r.relevance, reverse=True)
    return merged


def _dedupe_key(result: SearchResult) -> tuple:
    return (result.part_no, (result.part_name or "")[:NAME_PREFIX_CHARS])


def deduplicate_results(results: Iterable[SearchResult]) -> List[SearchResult]:
    seen = set()
    out: List[SearchResult] = []
    for r in results:
        key = _dedupe_key(r)
        if key in seen:
            continue
        seen.add(key)
        out.append(r)
    return out


def assemble_results(
    results: Sequence[SearchResult], limit: Optional[int] = None
) -> List[SearchResult]:
    """
    Final packaging for the caller: first occurrence of each (part, name prefix)
    wins, order preserved, optionally capped.
    """
    out = deduplicate_results(results)
    return out[:limit] if limit is not None else out
