# tests/test_identifiers.py

from core.entities import IdentifierCandidate
from core.identifiers import (
    calculate_part_number_confidence,
    extract_part_description,
    extract_part_numbers_from_page,
    find_context_part_numbers,
    find_relevant_part_number,
    is_item_number,
    is_part_number,
)


def test_item_reference_is_never_a_part_number():
    assert is_item_number("8843")
    assert not is_part_number("8843")


def test_catalogue_code_is_a_part_number():
    assert is_part_number("RE508960")
    assert not is_item_number("RE508960")


def test_labelled_line_gives_high_confidence():
    line = "Part No: RE508960 Engine Oil Filter"
    assert calculate_part_number_confidence(line, "RE508960") >= 80


def test_confidence_is_capped():
    line = "Part No: RE508960 order catalog model specification"
    assert calculate_part_number_confidence(line, "RE508960") == 100


def test_page_extraction_dedupes_and_sorts_by_confidence():
    text = "Engine Oil Filter RE508960\nPart No: RE508960 Engine Oil Filter\nGasket AB1234"
    found = extract_part_numbers_from_page(text)

    values = [c.value for c in found]
    assert values.count("RE508960") == 1
    assert found[0].value == "RE508960"
    assert found[0].confidence == 100
    assert found[0].line_number == 2
    assert [c.confidence for c in found] == sorted(
        (c.confidence for c in found), reverse=True
    )


def test_page_extraction_handles_empty_text():
    assert extract_part_numbers_from_page("") == []


def test_relevant_part_number_prefers_value_on_the_matched_line():
    candidates = [
        IdentifierCandidate("AB123456", 1, "Gasket AB123456", 80),
        IdentifierCandidate("RE508960", 2, "Engine Oil Filter RE508960", 80),
    ]
    best = find_relevant_part_number(
        candidates, "Engine Oil Filter RE508960", "engine oil filter"
    )
    assert best.value == "RE508960"
    assert best.relevance_score == 80 + 40 + 20 + 20


def test_relevant_part_number_without_candidates():
    assert find_relevant_part_number([], "anything", "term") is None


def test_context_tokens_skip_page_and_item_references():
    tokens = find_context_part_numbers("Engine air intake filter, RE12345 PC1234 8843")
    assert tokens == ["RE12345"]


def test_description_strips_the_part_number():
    name = extract_part_description(
        "Engine air intake filter, RE12345", "RE12345", ("air", "filter")
    )
    assert "RE12345" not in name
    assert "filter" in name


def test_description_falls_back_to_component():
    assert extract_part_description("", None, ()) == "Component"
