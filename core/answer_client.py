# core/answer_client.py
import asyncio
import logging
from typing import Any, Dict, Optional, Sequence, Tuple

import httpx

from config.settings import settings
from core.answer_formatter import (
    build_context_prompt,
    format_direct_response,
    generate_context_aware_response,
    generate_fallback_response,
)
from core.entities import SearchResult
from core.query_analysis import QueryAnalysis
from model.session import ConversationContext
from util.timing import timed

logger = logging.getLogger(__name__)

FALLBACK_PROVIDER = "Fallback System"
_RETRYABLE_STATUS = frozenset((408, 429))


async def _post_json(
    url: str, headers: Dict[str, str], payload: Dict[str, Any], timeout: float = 60.0
) -> Dict[str, Any]:
    """
    Make a JSON POST to `url`. Raises for non-2xx. Returns parsed JSON dict or {} on parse failure.
    """
    async with httpx.AsyncClient(timeout=timeout) as client:
        r = await client.post(url, headers=headers, json=payload)
        r.raise_for_status()
        try:
            return r.json()
        except ValueError:
            return {}


def _is_retryable(exc: Exception) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        code = exc.response.status_code
        return code in _RETRYABLE_STATUS or code >= 500
    return isinstance(exc, httpx.RequestError)


def _first_text(data: Dict[str, Any]) -> str:
    content = data.get("content") or []
    if content and isinstance(content, list):
        node = content[0]
        if isinstance(node, dict) and node.get("type") == "text":
            return (node.get("text") or "").strip()
    return ""


async def request_answer(
    prompt: str,
    *,
    api_key: str,
    model: str,
    api_url: str,
    retries: int,
    max_tokens: int,
    backoff_seconds: float = 1.0,
    timeout: float = 45.0,
) -> str:
    """
    Ask the answer model for a reply to `prompt`. Transport errors, 408/429 and
    5xx are retried with exponential backoff; anything else raises at once.
    """
    headers = {
        "x-api-key": api_key,
        "anthropic-version": settings.ANTHROPIC_VERSION,
        "content-type": "application/json",
    }
    payload = {
        "model": model,
        "max_tokens": max_tokens,
        "system": settings.ANSWER_SYSTEM_PROMPT,
        "messages": [{"role": "user", "content": prompt}],
        "temperature": 0.1,
    }

    attempts = max(1, retries)
    for attempt in range(1, attempts + 1):
        try:
            with timed(logger, "ai.answer", model=model, attempt=attempt):
                data = await _post_json(api_url, headers, payload, timeout=timeout)
            return _first_text(data)
        except (httpx.HTTPStatusError, httpx.RequestError) as e:
            if attempt >= attempts or not _is_retryable(e):
                raise
            delay = backoff_seconds * (2 ** (attempt - 1))
            logger.warning(
                "ai.answer.retry attempt=%d/%d delay=%.1fs err=%s",
                attempt,
                attempts,
                delay,
                type(e).__name__,
            )
            await asyncio.sleep(delay)
    return ""


async def generate_answer(
    query: str,
    results: Sequence[SearchResult],
    *,
    context: Optional[ConversationContext] = None,
    analysis: Optional[QueryAnalysis] = None,
    bypass_type: Optional[str] = None,
) -> Tuple[str, str]:
    """
    Return (answer text, provider label). Direct-bypass queries and a missing API
    key skip the model; model failures degrade to the plain formatters.
    """
    if bypass_type:
        return format_direct_response(results, query, bypass_type, context), FALLBACK_PROVIDER

    if not settings.ANTHROPIC_API_KEY:
        logger.info("ai.answer.skip reason=no_api_key")
        if analysis is not None:
            return (
                generate_context_aware_response(query, results, analysis, context),
                FALLBACK_PROVIDER,
            )
        return generate_fallback_response(query, results), FALLBACK_PROVIDER

    prompt = build_context_prompt(query, results, context, analysis)
    try:
        text = await request_answer(
            prompt,
            api_key=settings.ANTHROPIC_API_KEY,
            model=settings.ANTHROPIC_MODEL,
            api_url=settings.ANTHROPIC_API_URL,
            retries=settings.ANSWER_RETRIES,
            max_tokens=settings.ANSWER_MAX_TOKENS,
        )
    except (httpx.HTTPStatusError, httpx.RequestError):
        logger.error("ai.answer.error", exc_info=True)
        return generate_fallback_response(query, results), FALLBACK_PROVIDER

    if not text:
        logger.warning("ai.answer.empty model=%s", settings.ANTHROPIC_MODEL)
        return generate_fallback_response(query, results), FALLBACK_PROVIDER
    return text, f"Anthropic {settings.ANTHROPIC_MODEL}"
