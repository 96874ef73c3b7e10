# service/search_service.py
import logging
import re
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple
from config.settings import settings
from core.answer_client import generate_answer
from core.entities import PageReference, SearchResult
from core.index_navigation import process_search_results
from core.query_analysis import (
    analyze_query,
    check_for_direct_bypass,
    update_conversation_context,
)
from core.search_engine import assemble_results, search_documents
from model.api import (
    ContextOut,
    LocationOut,
    MatchOut,
    PageReferenceOut,
    PartNumberOut,
    SearchResponse,
)
from repository.session_repository import SessionRepository
from service.document_service import DocumentService
from util import functions
from util.enums import ErrorMessage
from util.errors import AppError
from util.timing import timed

logger = logging.getLogger(__name__)

Answerer = Callable[..., Awaitable[Tuple[str, str]]]

CONTEXT_QUERIES_SHOWN = 3


def _page_reference_out(ref: Optional[PageReference]) -> Optional[PageReferenceOut]:
    if ref is None:
        return None
    return PageReferenceOut(
        targetPage=ref.target_page,
        referenceText=ref.reference_text,
        sourceContext=ref.source_context,
    )


def to_match_out(r: SearchResult) -> MatchOut:
    loc = r.location
    return MatchOut(
        partNo=r.part_no,
        partName=r.part_name,
        relevance=r.relevance,
        documentId=r.document_id,
        machineName=r.machine_name,
        pdfPath=r.pdf_path,
        pdfInfo=functions.pdf_page_url(r.pdf_path, loc.page_number if loc else None),
        location=(
            LocationOut(
                pageNumber=loc.page_number,
                lineNumber=loc.line_number,
                yPosition=loc.y_position,
                context=loc.context,
                section=loc.section,
                isFollowedFromIndex=loc.is_followed_from_index,
                indexPageNumber=loc.index_page_number,
                itemNumber=loc.item_number,
                actualPartNumber=loc.actual_part_number,
                partNumberConfidence=loc.part_number_confidence,
                partNumbers=[
                    PartNumberOut(
                        value=p.value, lineNumber=p.line_number, confidence=p.confidence
                    )
                    for p in loc.part_numbers
                ],
            )
            if loc
            else None
        ),
        pageReference=_page_reference_out(r.page_reference),
        resolution=r.resolution.value if r.resolution else None,
    )


def retarget_page_mentions(text: str, matches: Sequence[SearchResult]) -> str:
    """
    Rewrite "Page <index page>" to "Page <target>" for matches that were
    redirected by a context page reference.
    """
    for m in matches:
        if m.page_reference is None or not m.location:
            continue
        origin = m.location.index_page_number
        if origin is None or origin == m.page_reference.target_page:
            continue
        text = re.sub(
            rf"Page {origin}\b", f"Page {m.page_reference.target_page}", text
        )
    return text


class SearchService:
    def __init__(
        self,
        documents: DocumentService,
        sessions: SessionRepository,
        answerer: Answerer = generate_answer,
    ) -> None:
        self._documents = documents
        self._sessions = sessions
        self._answerer = answerer

    async def search(self, session_id: str, query: Optional[str]) -> SearchResponse:
        """
        Flow:
        - Seed an empty session from the import directory.
        - Search every session document, follow index references, dedupe and cap.
        - Analyse the query, update the session context and generate the answer.
        """
        if not query or not query.strip():
            raise AppError.of(ErrorMessage.MISSING_QUERY)
        query = query.strip()

        auto_imported, auto_count = await self._documents.auto_import_if_needed(
            session_id
        )
        docs = await self._documents.list(session_id)
        context = await self._sessions.get_context(session_id)
        bypass = check_for_direct_bypass(query)
        limit = (
            settings.DIRECT_RESULT_LIMIT
            if bypass.should_bypass
            else settings.SEARCH_RESULT_LIMIT
        )

        with timed(logger, "search", session=session_id, docs=len(docs)):
            raw = search_documents(docs, query)
            navigated = process_search_results(raw, docs, query)
            matches: List[SearchResult] = assemble_results(navigated, limit)

        analysis = analyze_query(query, matches)
        context = update_conversation_context(context, query, analysis, matches)
        await self._sessions.save_context(session_id, context)

        summary, provider = await self._answerer(
            query,
            matches,
            context=context,
            analysis=None if bypass.should_bypass else analysis,
            bypass_type=bypass.bypass_type,
        )
        summary = retarget_page_mentions(summary, matches)

        logger.info(
            "search.ok session=%s matches=%d direct=%s provider=%s",
            session_id,
            len(matches),
            bypass.should_bypass,
            provider,
        )

        outs = [to_match_out(m) for m in matches]
        first = next((o for o in outs if o.pdfInfo), None)
        return SearchResponse(
            query=query,
            matches=outs,
            summary=summary,
            pdfInfo=first.pdfInfo if first else None,
            pageReference=first.pageReference if first else None,
            isConversational=(
                False if bypass.should_bypass else analysis.needs_clarification
            ),
            isDirect=bypass.should_bypass,
            queryType=bypass.bypass_type or analysis.query_type,
            intent=bypass.bypass_type or analysis.intent,
            sessionId=session_id,
            clientDocumentCount=len(docs),
            autoImported=auto_imported,
            autoImportedCount=auto_count,
            aiProvider=provider,
            context=ContextOut(
                equipmentType=context.equipmentType,
                previousQueries=context.previousQueries[:CONTEXT_QUERIES_SHOWN],
            ),
        )
