# tests/test_query_analysis.py

from core.entities import Location, SearchResult
from core.query_analysis import (
    MAX_PREVIOUS_QUERIES,
    analyze_query,
    check_for_direct_bypass,
    check_query_specificity,
    detect_ambiguous_components,
    detect_query_type,
    detect_user_intent,
    update_conversation_context,
)
from model.session import ConversationContext


def _make_result(part_name: str, part_no: str = "RE1", page: int = 1, machine=None):
    return SearchResult(
        part_no=part_no,
        part_name=part_name,
        relevance=5,
        location=Location(page_number=page, line_number=1),
        machine_name=machine,
    )


def test_direct_bypass_families():
    assert check_for_direct_bypass("What is the engine oil filter number?").bypass_type == "partNumber"
    assert check_for_direct_bypass("torque spec for the oil filter").bypass_type == "specifications"
    assert check_for_direct_bypass("How to install the fuel filter").bypass_type == "installation"
    assert check_for_direct_bypass("service schedule").bypass_type == "maintenance"

    plain = check_for_direct_bypass("air filter")
    assert plain.should_bypass is False
    assert plain.bypass_type is None


def test_query_type_and_intent():
    assert detect_query_type("hydraulic filter") == "hydraulic_filter"
    assert detect_query_type("filter") == "general_filter"
    assert detect_query_type("service the loader") == "maintenance"
    assert detect_user_intent("replace the belt") == "replacement"
    assert detect_user_intent("oil filter part number") == "part_number"
    assert detect_user_intent("belt") == "general_info"


def test_specificity():
    assert check_query_specificity("engine oil filter")
    assert not check_query_specificity("filter")


def test_vague_query_with_many_matches_needs_clarification():
    matches = [_make_result(f"Filter {i}", f"RE{i}") for i in range(4)]
    analysis = analyze_query("filter", matches)
    assert analysis.needs_clarification
    assert analysis.query_type == "general_filter"


def test_specific_query_never_needs_clarification():
    matches = [_make_result(f"Filter {i}", f"RE{i}") for i in range(6)]
    assert not analyze_query("engine oil filter", matches).needs_clarification


def test_mixed_components_need_guidance():
    report = detect_ambiguous_components(
        [_make_result("Engine oil filter"), _make_result("Fuel filter element", page=4)],
        "filter",
    )
    assert report.needs_guidance
    assert set(report.categories) == {"oil_filter", "fuel_filter"}
    assert report.groups["fuel_filter"][0].page_number == 4


def test_single_match_is_never_ambiguous():
    assert not detect_ambiguous_components([_make_result("Oil filter")], "filter").needs_guidance


def test_context_update_returns_a_copy():
    original = ConversationContext()
    matches = [_make_result("Oil filter", machine="JD 310SK Backhoe")]
    analysis = analyze_query("oil filter part number", matches)

    updated = update_conversation_context(original, "oil filter part number", analysis, matches)

    assert original.previousQueries == []
    assert updated.previousQueries == ["oil filter part number"]
    assert updated.equipmentType == "JD 310SK Backhoe"
    assert updated.lastQueryType == "oil_filter"
    assert updated.userPreferences.preferPartNumbers
    assert not updated.userPreferences.preferInstructions


def test_context_keeps_newest_queries_only():
    ctx = ConversationContext()
    for i in range(MAX_PREVIOUS_QUERIES + 2):
        ctx = update_conversation_context(ctx, f"q{i}", None, [])
    assert ctx.previousQueries == [f"q{i}" for i in range(6, 1, -1)]
