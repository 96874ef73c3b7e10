# tests/test_index_navigation.py

from core.entities import Document, Location, ResolutionStatus, SearchResult
from core.index_navigation import (
    extract_page_reference,
    extract_page_reference_from_context,
    find_content_on_page,
    is_index_page,
    process_search_results,
)

INDEX_LINE = "8843 Engine Oil Filter . . . . . . . . . . . 214"


def _parts_manual(pages: int = 220, target_page: int = 214) -> Document:
    texts = [""] * pages
    texts[11] = "Parts List\n" + INDEX_LINE
    if target_page <= pages:
        texts[target_page - 1] = (
            "Engine Lubrication\n"
            "Engine Oil Filter RE508960\n"
            "Part No: RE508960 Engine Oil Filter"
        )
    return Document.from_page_texts(texts, document_id="doc-1", pdf_path="/m.pdf")


def _index_hit(line_text: str = INDEX_LINE) -> SearchResult:
    return SearchResult(
        part_no=None,
        part_name="Engine Oil Filter",
        relevance=14,
        location=Location(
            page_number=12,
            line_number=2,
            context="Parts List " + line_text,
            section="Page 12, Line 2",
            line_text=line_text,
        ),
        document_id="doc-1",
    )


# ── Detection ─────────────────────────────────────────────────────────────────

def test_dot_leader_reference():
    assert extract_page_reference("Engine Oil Filter ........ 214") == 214
    assert extract_page_reference(INDEX_LINE) == 214
    assert extract_page_reference("Engine Oil Filter 214") is None
    assert extract_page_reference("") is None


def test_index_page_by_keyword_or_reference_lines():
    assert is_index_page("Table of Contents\nEngine 3")
    leaders = "\n".join(f"Item {i} ........ {i + 10}" for i in range(3))
    assert is_index_page(leaders)
    assert not is_index_page("Engine Lubrication\nEngine Oil Filter RE508960")
    assert not is_index_page("")


def test_context_reference_never_targets_current_page():
    ref = extract_page_reference_from_context("See 214 Brake Valve", 12)
    assert ref.target_page == 214
    assert ref.reference_text == "214 Brake Valve"
    assert extract_page_reference_from_context("See 214 Brake Valve", 214) is None


def test_context_reference_needs_capitalised_phrase():
    assert extract_page_reference_from_context("Replace every 500 hours", 3) is None
    assert extract_page_reference_from_context("", 3) is None


# ── Content lookup ────────────────────────────────────────────────────────────

def test_content_found_on_target_page():
    res = find_content_on_page(_parts_manual(), 214, ["Engine Oil Filter"])
    assert res.status is ResolutionStatus.RESOLVED
    assert res.line_number == 2
    assert res.relevant_part_number.value == "RE508960"
    assert "Engine Lubrication" in res.context


def test_partial_resolution_uses_best_identifier():
    doc = Document.from_page_texts(["Gasket kit\nPart No: RE508960"])
    res = find_content_on_page(doc, 1, ["alternator"])
    assert res.status is ResolutionStatus.PARTIAL
    assert res.line_number == 1
    assert res.relevant_part_number.value == "RE508960"


def test_missing_page_is_no_content():
    res = find_content_on_page(_parts_manual(pages=20, target_page=999), 999, ["x"])
    assert res.status is ResolutionStatus.UNRESOLVED
    assert not res.found


# ── Redirect ──────────────────────────────────────────────────────────────────

def test_index_hit_is_redirected_to_content_page():
    doc = _parts_manual()
    [out] = process_search_results([_index_hit()], [doc], "engine oil filter")

    assert out.location.page_number == 214
    assert out.location.is_followed_from_index is True
    assert out.location.index_page_number == 12
    assert out.location.item_number == "8843"
    assert out.location.actual_part_number == "RE508960"
    assert out.location.part_number_confidence == 100
    assert out.part_no == "RE508960"
    assert out.resolution is ResolutionStatus.RESOLVED
    assert out.redirected


def test_processing_is_idempotent():
    doc = _parts_manual()
    once = process_search_results([_index_hit()], [doc], "engine oil filter")
    twice = process_search_results(once, [doc], "engine oil filter")
    assert twice == once


def test_unresolvable_reference_keeps_original_match():
    doc = _parts_manual(pages=20, target_page=999)
    line = "8843 Engine Oil Filter . . . . . . . . 500"
    hit = _index_hit(line)
    [out] = process_search_results([hit], [doc], "engine oil filter")
    assert out == hit
    assert not out.redirected


def test_context_reference_redirects_when_not_an_index_page():
    texts = [""] * 40
    texts[4] = "Brake system overview\nSee 30 Brake Valve Assembly"
    texts[29] = "Brake Valve Assembly AB123456\nTorque bolts"
    doc = Document.from_page_texts(texts, document_id="doc-2")
    hit = SearchResult(
        part_no=None,
        part_name="Brake Valve Assembly",
        relevance=6,
        location=Location(
            page_number=5,
            line_number=2,
            context="Brake system overview See 30 Brake Valve Assembly",
            line_text="See 30 Brake Valve Assembly",
        ),
        document_id="doc-2",
    )

    [out] = process_search_results([hit], [doc], "brake valve")

    assert out.location.page_number == 30
    assert out.location.index_page_number == 5
    assert out.page_reference.target_page == 30
    assert out.part_no == "AB123456"


def test_context_following_can_be_disabled():
    texts = [""] * 40
    texts[4] = "Brake system overview\nSee 30 Brake Valve Assembly"
    texts[29] = "Brake Valve Assembly AB123456"
    doc = Document.from_page_texts(texts, document_id="doc-2")
    hit = SearchResult(
        part_no=None,
        part_name="Brake Valve Assembly",
        relevance=6,
        location=Location(
            page_number=5,
            line_number=2,
            context="Brake system overview See 30 Brake Valve Assembly",
        ),
        document_id="doc-2",
    )
    [out] = process_search_results(
        [hit], [doc], "brake valve", follow_context_references=False
    )
    assert out == hit


def test_results_without_location_pass_through():
    bare = SearchResult(part_no="RE1", part_name="x", relevance=3)
    assert process_search_results([bare], [], "x") == [bare]


def test_context_reference_to_page_without_match_keeps_original():
    # "1 RE12345 ..." reads like a page reference but page 1 holds nothing relevant.
    texts = [
        "Operator Manual",
        "Safety",
        "Air Intake\n1 RE12345 Engine air intake filter\nReplace every 500 hours",
    ]
    doc = Document.from_page_texts(texts, document_id="doc-3")
    hit = SearchResult(
        part_no="RE12345",
        part_name="Engine air intake filter",
        relevance=12,
        location=Location(
            page_number=3,
            line_number=2,
            context="Air Intake 1 RE12345 Engine air intake filter Replace every 500 hours",
            section="Page 3, Line 2",
            line_text="1 RE12345 Engine air intake filter",
        ),
        document_id="doc-3",
    )

    [out] = process_search_results([hit], [doc], "air filter")

    assert out == hit
    assert out.location.page_number == 3
    assert out.location.line_number == 2
    assert out.location.index_page_number is None
    assert out.page_reference is None
    assert out.resolution is None


def test_dot_leader_target_wins_over_context_reference():
    texts = [p.text for p in _parts_manual().pages]
    texts[29] = "Hydraulic Pump\nEngine Oil Filter AB999999"
    doc = Document.from_page_texts(texts, document_id="doc-1", pdf_path="/m.pdf")
    hit = _index_hit()
    hit.location.context = "Parts List 30 Hydraulic Pump " + INDEX_LINE
    # Both detectors have an existing target page; only one may be followed.
    assert extract_page_reference_from_context(hit.location.context, 12).target_page == 30

    [out] = process_search_results([hit], [doc], "engine oil filter")

    assert out.location.page_number == 214
    assert out.part_no == "RE508960"
    assert out.page_reference is None
