# tests/test_answer.py

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from config.settings import settings
from core import answer_client
from core.answer_client import FALLBACK_PROVIDER, generate_answer, request_answer
from core.answer_formatter import (
    build_context_prompt,
    format_direct_response,
    format_part_number_response,
    generate_context_aware_response,
    generate_fallback_response,
)
from core.entities import Location, SearchResult
from core.query_analysis import analyze_query
from model.session import ConversationContext

API_URL = "https://example.invalid/v1/messages"


def _make_result(part_no, part_name, page=2, **loc) -> SearchResult:
    return SearchResult(
        part_no=part_no,
        part_name=part_name,
        relevance=10,
        location=Location(page_number=page, line_number=3, context="ctx", **loc),
    )


def _status_error(code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", API_URL)
    return httpx.HTTPStatusError(
        "upstream", request=request, response=httpx.Response(code, request=request)
    )


# ── Formatters ────────────────────────────────────────────────────────────────

def test_prompt_separates_item_reference_from_part_number():
    r = _make_result(
        "RE508960",
        "Engine Oil Filter",
        page=214,
        is_followed_from_index=True,
        index_page_number=12,
        item_number="8843",
        actual_part_number="RE508960",
        part_number_confidence=100,
    )
    prompt = build_context_prompt(
        "engine oil filter", [r], ConversationContext(equipmentType="JD 310SK")
    )
    assert "You're helping with: JD 310SK" in prompt
    assert "**Actual Part Number: RE508960** (Item Reference: 8843)" in prompt
    assert "navigated from index page 12" in prompt
    assert "[High confidence part number match]" in prompt


def test_prompt_asks_for_guidance_when_components_are_mixed():
    results = [_make_result("RE1", "Engine oil filter"), _make_result("RE2", "Fuel filter")]
    analysis = analyze_query("filter", results)
    prompt = build_context_prompt("filter", results, None, analysis)
    assert "SMART GUIDANCE NEEDED" in prompt
    assert "**OIL FILTER:**" in prompt


def test_hvac_only_results_point_to_engine_air_filter():
    results = [_make_result("AT345678", "Condenser evaporator core")]
    text = format_part_number_response(results, "air filter part number")
    assert "engine air filter" in text
    assert "AT345678" in text


def test_part_number_listing():
    text = format_direct_response(
        [_make_result("RE508960", "Engine Oil Filter")], "oil filter part number", "partNumber"
    )
    assert "**RE508960** - Engine Oil Filter" in text


def test_empty_specifications_response():
    assert format_direct_response([], "filter spec", "specifications") == (
        'No specifications found for "filter spec".'
    )


def test_context_aware_response_suggests_alternatives_when_empty():
    analysis = analyze_query("air filter", [])
    text = generate_context_aware_response("air filter", [], analysis)
    assert "air cleaner" in text


def test_context_aware_response_asks_questions_for_vague_queries():
    results = [_make_result(f"RE{i}", f"Filter {i}") for i in range(5)]
    analysis = analyze_query("air filter", results)
    analysis.needs_clarification = True
    text = generate_context_aware_response("air filter", results, analysis)
    assert "Which type of air filter?" in text


def test_fallback_lists_pages():
    text = generate_fallback_response("oil filter", [_make_result("RE1", "Oil filter", page=7)])
    assert "**RE1** - Oil filter (Page 7)" in text


# ── Client ────────────────────────────────────────────────────────────────────

def test_transport_errors_are_retried(monkeypatch):
    post = AsyncMock(
        side_effect=[
            httpx.ConnectError("down"),
            _status_error(529),
            {"content": [{"type": "text", "text": "Part Number: RE1"}]},
        ]
    )
    monkeypatch.setattr(answer_client, "_post_json", post)
    monkeypatch.setattr(answer_client.asyncio, "sleep", AsyncMock())

    text = asyncio.run(
        request_answer(
            "prompt", api_key="k", model="m", api_url=API_URL, retries=3, max_tokens=50
        )
    )

    assert text == "Part Number: RE1"
    assert post.await_count == 3


def test_client_errors_are_not_retried(monkeypatch):
    post = AsyncMock(side_effect=_status_error(400))
    monkeypatch.setattr(answer_client, "_post_json", post)

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(
            request_answer(
                "prompt", api_key="k", model="m", api_url=API_URL, retries=3, max_tokens=50
            )
        )
    assert post.await_count == 1


def test_no_api_key_uses_fallback(monkeypatch):
    monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "")
    text, provider = asyncio.run(
        generate_answer("oil filter", [_make_result("RE1", "Oil filter")])
    )
    assert provider == FALLBACK_PROVIDER
    assert "RE1" in text


def test_upstream_failure_degrades_to_fallback(monkeypatch):
    monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "k")
    monkeypatch.setattr(settings, "ANSWER_RETRIES", 1)
    monkeypatch.setattr(answer_client, "_post_json", AsyncMock(side_effect=_status_error(500)))

    text, provider = asyncio.run(
        generate_answer("oil filter", [_make_result("RE1", "Oil filter")])
    )
    assert provider == FALLBACK_PROVIDER
    assert text.startswith("AI service unavailable")


def test_model_answer_carries_provider(monkeypatch):
    monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "k")
    monkeypatch.setattr(
        answer_client,
        "_post_json",
        AsyncMock(return_value={"content": [{"type": "text", "text": "RE1, page 2."}]}),
    )
    text, provider = asyncio.run(generate_answer("oil filter", []))
    assert text == "RE1, page 2."
    assert provider == f"Anthropic {settings.ANTHROPIC_MODEL}"


def test_direct_queries_skip_the_model(monkeypatch):
    post = AsyncMock()
    monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "k")
    monkeypatch.setattr(answer_client, "_post_json", post)
    text, provider = asyncio.run(
        generate_answer("service schedule", [], bypass_type="maintenance")
    )
    assert provider == FALLBACK_PROVIDER
    assert text == 'No maintenance information found for "service schedule".'
    post.assert_not_awaited()
