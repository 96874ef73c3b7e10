# tests/test_search_engine.py

from core.entities import Document, Location, SearchResult
from core.index_navigation import process_search_results
from core.query_normalizer import normalize_query
from core.relevance import ACCEPT_THRESHOLD, calculate_relevance, is_relevant_for_query
from core.search_engine import (
    assemble_results,
    deduplicate_results,
    search,
    search_documents,
)


def _manual(**meta) -> Document:
    return Document.from_page_texts(
        [
            "Operator Station\n"
            "Cab air filter for condenser and evaporator AT345678\n"
            "Blower motor",
            "Engine Components\n"
            "Engine air intake filter, RE12345\n"
            "Replace every 500 hours",
        ],
        **meta,
    )


def _result(part_no, part_name, relevance=5, page=1) -> SearchResult:
    return SearchResult(
        part_no=part_no,
        part_name=part_name,
        relevance=relevance,
        location=Location(page_number=page, line_number=1),
    )


# ── Tests ─────────────────────────────────────────────────────────────────────

def test_air_filter_part_number_query_ranks_engine_filter_first():
    query = "air filter part number"
    doc = _manual(document_id="doc-1", machine_name="JD 310SK", pdf_path="/p.pdf")
    results = process_search_results(search_documents([doc], query), [doc], query)

    assert results
    top = results[0]
    assert top.part_no == "RE12345"
    assert top.location.page_number == 2
    assert top.location.line_number == 2
    assert top.document_id == "doc-1"
    assert top.machine_name == "JD 310SK"
    assert all(r.part_no != "AT345678" for r in results)


def test_hvac_line_is_rejected_for_air_filter_query():
    normalized = normalize_query("air filter part number")
    hvac = "Operator Station Cab air filter for condenser and evaporator AT345678 Blower motor"
    engine = "Engine Components Engine air intake filter, RE12345 Replace every 500 hours"

    hvac_score = calculate_relevance(hvac, normalized.phrase, normalized.terms)
    assert (
        not is_relevant_for_query(hvac, normalized.phrase)
        or hvac_score < ACCEPT_THRESHOLD
    )
    assert is_relevant_for_query(engine, normalized.phrase)
    assert calculate_relevance(engine, normalized.phrase, normalized.terms) > hvac_score


def test_results_are_sorted_and_unique():
    doc = Document.from_page_texts(
        [
            "Engine Lubrication\n"
            "Engine Oil Filter RE508960\n"
            "Part No: RE508960 Engine Oil Filter\n"
            "Oil filter element spin-on AB123456"
        ]
    )
    results = search(doc, "engine oil filter")

    assert results
    relevances = [r.relevance for r in results]
    assert relevances == sorted(relevances, reverse=True)
    keys = [(r.part_no, r.part_name[:20]) for r in results]
    assert len(keys) == len(set(keys))


def test_location_section_and_context_are_filled():
    doc = _manual()
    top = search(doc, "air filter")[0]
    assert top.location.section == "Page 2, Line 2"
    assert "RE12345" in top.location.context
    assert top.location.line_text == "Engine air intake filter, RE12345"


def test_empty_inputs_return_nothing():
    assert search(Document(), "air filter") == []
    assert search(_manual(), "") == []
    assert search(_manual(), "   ") == []
    assert search_documents([], "air filter") == []


def test_documents_are_merged_by_relevance():
    weak = Document.from_page_texts(["Drive belt tensioner assembly"], document_id="weak")
    strong = Document.from_page_texts(
        ["Drive belt service kit assembly RE55555"], document_id="strong"
    )
    merged = search_documents([weak, strong], "drive belt")
    assert [r.document_id for r in merged] == ["strong", "weak"]


def test_deduplicate_keeps_first_occurrence():
    a = _result("RE1", "Engine oil filter element", relevance=9)
    b = _result("RE1", "Engine oil filter element kit", relevance=4)
    c = _result("RE2", "Engine oil filter element", relevance=3)
    assert deduplicate_results([a, b, c]) == [a, c]


def test_assemble_caps_after_dedupe():
    items = [_result(f"RE{i}", "Oil filter", relevance=10 - i) for i in range(10)]
    items.insert(1, _result("RE0", "Oil filter", relevance=9))
    out = assemble_results(items, limit=8)
    assert len(out) == 8
    assert [r.part_no for r in out] == [f"RE{i}" for i in range(8)]
