# core/relevance.py
"""
Intent-keyed scoring and gating rules for candidate context windows.

Every rule is a pure function of (lower-cased context, lower-cased query).
Score rules return a delta and all applicable ones fire; gate rules return
False to reject a candidate before it is scored.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Final, FrozenSet, Iterable, Optional, Tuple

from core.identifiers import GENERIC_PART_SHAPE

ACCEPT_THRESHOLD: Final[int] = 3


class QueryIntent(str, Enum):
    AIR_FILTER = "air_filter"
    OIL_FILTER = "oil_filter"
    ENGINE_OIL = "engine_oil"
    FUEL_FILTER = "fuel_filter"
    GENERIC = "generic"


def detect_intents(query: str) -> FrozenSet[QueryIntent]:
    q = query.lower()
    intents = {QueryIntent.GENERIC}
    if "air filter" in q or "air cleaner" in q:
        intents.add(QueryIntent.AIR_FILTER)
    if "oil filter" in q or "engine oil" in q:
        intents.add(QueryIntent.OIL_FILTER)
    if "engine oil" in q:
        intents.add(QueryIntent.ENGINE_OIL)
    if "fuel filter" in q:
        intents.add(QueryIntent.FUEL_FILTER)
    return frozenset(intents)


def _has_any(text: str, needles: Iterable[str]) -> bool:
    return any(n in text for n in needles)


@dataclass(frozen=True)
class ScoreRule:
    name: str
    delta: Callable[[str, str], int]


def _when(needles: Tuple[str, ...], points: int) -> Callable[[str, str], int]:
    return lambda ctx, _q: points if _has_any(ctx, needles) else 0


_TRANSMISSION_TERMS = ("transmission", "ransmission", "gearbox", "powershift")


def _engine_oil_bonus(ctx: str, _q: str) -> int:
    if (
        "engine oil" in ctx
        or "lube filter" in ctx
        or ("oil" in ctx and "filter" in ctx and "transmission" not in ctx)
    ):
        return 10
    return 0


def _component_keywords(ctx: str, _q: str) -> int:
    return sum(
        1
        for k in ("element", "assembly", "kit", "service", "cartridge", "housing")
        if k in ctx
    )


def _external_fuel_for_air(ctx: str, q: str) -> int:
    return -4 if "external fuel" in ctx and "air" in q else 0


SCORE_RULES: Final[Dict[QueryIntent, Tuple[ScoreRule, ...]]] = {
    QueryIntent.AIR_FILTER: (
        ScoreRule("engine_air", _when(("engine air", "intake", "primary air"), 8)),
        ScoreRule("hvac", _when(("condenser", "evaporator", "operator station"), -15)),
        ScoreRule("other_fluids", _when(("fuel", "hydraulic", "oil"), -5)),
    ),
    QueryIntent.OIL_FILTER: (
        ScoreRule("engine_oil", _engine_oil_bonus),
        ScoreRule("filter_style", _when(("spin-on", "cartridge", "element"), 3)),
    ),
    QueryIntent.ENGINE_OIL: (
        ScoreRule(
            "transmission", _when(_TRANSMISSION_TERMS + ("housing covers",), -20)
        ),
    ),
    QueryIntent.FUEL_FILTER: (),
    QueryIntent.GENERIC: (
        ScoreRule("component", _component_keywords),
        ScoreRule("index_noise", _when(("alphabetical", "index"), -3)),
        ScoreRule("external_fuel", _external_fuel_for_air),
        ScoreRule("short_context", lambda ctx, _q: -1 if len(ctx) < 20 else 0),
    ),
}


def calculate_relevance(context: str, query: str, terms: Iterable[str]) -> int:
    ctx = context.lower()
    q = query.lower()

    score = sum(1 for term in terms if term in ctx)
    for intent in detect_intents(q):
        for rule in SCORE_RULES[intent]:
            score += rule.delta(ctx, q)

    # case-sensitive on purpose: catalogue codes are printed upper-case
    if GENERIC_PART_SHAPE.search(context):
        score += 2
    return score


# ---------------- Relevance gate ----------------

_AIR_EXCLUSIONS = (
    "axles",
    "differential",
    "suspension",
    "brake",
    "transmission",
    "hydraulic",
    "fuel",
    "coolant",
    "oil",
    "steering",
    "tire",
    "wheel",
    "auxiliary system",
    "external fuel",
    "customer numbers",
    "catalog",
    "alphabetical",
    "index",
    "section",
    "page",
)
_AIR_TERMS = ("air", "intake", "breather", "cabin", "cab", "engine air")
_FILTER_TERMS = ("filter", "element", "cleaner", "assembly")
_AIR_WORD = re.compile(r"\b(air|intake|breather|cabin|cab)\b")
_FILTER_WORD = re.compile(r"\b(filter|element|cleaner|assembly)\b")
MAX_AIR_FILTER_DISTANCE: Final[int] = 50


def _air_gate(ctx: str, _q: str) -> bool:
    if _has_any(ctx, _AIR_EXCLUSIONS):
        return False
    if not (_has_any(ctx, _AIR_TERMS) and _has_any(ctx, _FILTER_TERMS)):
        return False
    air = _AIR_WORD.search(ctx)
    filt = _FILTER_WORD.search(ctx)
    if air and filt and abs(air.start() - filt.start()) > MAX_AIR_FILTER_DISTANCE:
        return False
    return True


def _oil_gate(ctx: str, q: str) -> bool:
    if _has_any(ctx, ("fuel", "air", "hydraulic", "coolant", "axles", "differential")):
        return False
    has_filter = "filter" in ctx or "element" in ctx
    if "engine oil" in q:
        if _has_any(ctx, _TRANSMISSION_TERMS):
            return False
        return ("oil" in ctx or "lube" in ctx) and has_filter
    return "oil" in ctx and has_filter


def _fuel_gate(ctx: str, _q: str) -> bool:
    if _has_any(ctx, ("air", "oil", "hydraulic", "coolant", "axles", "differential")):
        return False
    return "fuel" in ctx and ("filter" in ctx or "element" in ctx)


# Only the first applicable gate decides.
GATE_RULES: Final[Tuple[Tuple[QueryIntent, Callable[[str, str], bool]], ...]] = (
    (QueryIntent.AIR_FILTER, _air_gate),
    (QueryIntent.OIL_FILTER, _oil_gate),
    (QueryIntent.FUEL_FILTER, _fuel_gate),
)


def gate_for(query: str) -> Optional[Callable[[str, str], bool]]:
    intents = detect_intents(query)
    for intent, gate in GATE_RULES:
        if intent in intents:
            return gate
    return None


def is_relevant_for_query(context: str, query: str) -> bool:
    gate = gate_for(query)
    if gate is None:
        return True
    return gate(context.lower(), query.lower())
