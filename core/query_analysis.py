# core/query_analysis.py
import re
from dataclasses import dataclass, field
from typing import Dict, Final, List, Optional, Sequence, Tuple

from core.entities import SearchResult
from model.session import ConversationContext

MAX_PREVIOUS_QUERIES: Final[int] = 5

DIRECT_BYPASS_PATTERNS: Final[Dict[str, Tuple[re.Pattern, ...]]] = {
    "partNumber": tuple(
        re.compile(p)
        for p in (
            r"(\w+\s+)*(oil|air|fuel|hydraulic|transmission|coolant)\s+filter\s+(number|part)",
            r"engine\s+oil\s+filter\s+number",
            r"part\s+number\s+for\s+(\w+\s+)*filter",
            r"(\w+\s+)*filter\s+part\s+number",
            r"what\s+is\s+the\s+part\s+number",
        )
    ),
    "specifications": tuple(
        re.compile(p)
        for p in (
            r"(\w+\s+)*filter\s+(spec|specification)",
            r"torque\s+spec",
            r"installation\s+torque",
            r"technical\s+spec",
            r"filter\s+dimensions",
        )
    ),
    "installation": tuple(
        re.compile(p)
        for p in (
            r"how\s+to\s+install\s+(\w+\s+)*filter",
            r"installation\s+procedure",
            r"replace\s+(\w+\s+)*filter",
            r"installation\s+steps",
            r"filter\s+replacement",
        )
    ),
    "maintenance": tuple(
        re.compile(p)
        for p in (
            r"maintenance\s+interval",
            r"service\s+schedule",
            r"when\s+to\s+replace",
            r"filter\s+change\s+interval",
            r"service\s+hours",
        )
    ),
}

_SPECIFIC_PATTERNS: Final[Tuple[re.Pattern, ...]] = tuple(
    re.compile(p)
    for p in (
        r"engine\s+(oil|air|fuel)\s+filter",
        r"hydraulic\s+filter",
        r"transmission\s+filter",
        r"cab(in)?\s+filter",
        r"(primary|secondary)\s+.*filter",
        r".*filter.*number",
        r".*filter.*part",
        r".*filter.*install",
        r".*filter.*spec",
        r".*filter.*replace",
    )
)

_SPECIFIC_INTENTS: Final[frozenset] = frozenset(
    ("part_number", "installation", "specifications")
)


@dataclass(frozen=True)
class BypassCheck:
    should_bypass: bool
    bypass_type: Optional[str] = None


@dataclass
class ComponentMatch:
    part_name: str
    part_no: Optional[str]
    page_number: Optional[int]


@dataclass
class AmbiguityReport:
    needs_guidance: bool = False
    groups: Dict[str, List[ComponentMatch]] = field(default_factory=dict)

    @property
    def categories(self) -> List[str]:
        return list(self.groups)


@dataclass
class QueryAnalysis:
    needs_clarification: bool
    query_type: str
    intent: str
    ambiguity: AmbiguityReport

    @property
    def needs_specific_guidance(self) -> bool:
        return self.ambiguity.needs_guidance


def check_for_direct_bypass(query: str) -> BypassCheck:
    lowered = (query or "").lower().strip()
    for bypass_type, patterns in DIRECT_BYPASS_PATTERNS.items():
        if any(p.search(lowered) for p in patterns):
            return BypassCheck(should_bypass=True, bypass_type=bypass_type)
    return BypassCheck(should_bypass=False)


def check_query_specificity(query: str) -> bool:
    return any(p.search(query) for p in _SPECIFIC_PATTERNS)


def detect_query_type(query: str) -> str:
    if "filter" in query:
        for system in ("air", "oil", "fuel", "hydraulic"):
            if system in query:
                return f"{system}_filter"
        return "general_filter"
    if "maintenance" in query or "service" in query:
        return "maintenance"
    return "general"


def detect_user_intent(query: str) -> str:
    if "replace" in query or "change" in query:
        return "replacement"
    if "install" in query or "torque" in query:
        return "installation"
    if "spec" in query:
        return "specifications"
    if "interval" in query or "when" in query:
        return "maintenance_schedule"
    if "part number" in query or "part#" in query:
        return "part_number"
    return "general_info"


def _category(query: str, name: str) -> str:
    if "hydraulic" in query or "hydraulic" in name:
        for part in ("pump", "filter", "cylinder"):
            if part in name:
                return f"hydraulic_{part}"
        return "hydraulic_component"
    if "brake" in query or "brake" in name:
        for part in ("valve", "line", "assembly"):
            if part in name:
                return f"brake_{part}"
        return "brake_component"
    if "filter" in query or "filter" in name:
        for system in ("oil", "air", "fuel"):
            if system in name:
                return f"{system}_filter"
        return "general_filter"
    if "pump" in query or "pump" in name:
        return "pump_component"
    return "unknown"


def detect_ambiguous_components(
    matches: Sequence[SearchResult], query: str
) -> AmbiguityReport:
    if not matches or len(matches) <= 1:
        return AmbiguityReport()

    q = query.lower()
    groups: Dict[str, List[ComponentMatch]] = {}
    for m in matches:
        name = (m.part_name or "").lower()
        groups.setdefault(_category(q, name), []).append(
            ComponentMatch(
                part_name=m.part_name,
                part_no=m.part_no,
                page_number=m.location.page_number if m.location else None,
            )
        )

    needs = len(groups) > 1 or (
        len(groups) == 1 and len(next(iter(groups.values()))) > 2
    )
    return AmbiguityReport(needs_guidance=needs, groups=groups)


def analyze_query(query: str, matches: Sequence[SearchResult]) -> QueryAnalysis:
    q = (query or "").lower().strip()
    intent = detect_user_intent(q)
    return QueryAnalysis(
        needs_clarification=(
            not check_query_specificity(q)
            and len(matches) > 3
            and intent not in _SPECIFIC_INTENTS
        ),
        query_type=detect_query_type(q),
        intent=intent,
        ambiguity=detect_ambiguous_components(matches, q),
    )


def update_conversation_context(
    context: ConversationContext,
    query: str,
    analysis: Optional[QueryAnalysis],
    matches: Sequence[SearchResult],
) -> ConversationContext:
    """Return the session context after this query; the input is not modified."""
    updated = context.model_copy(deep=True)

    machine_names = [m.machine_name for m in matches if m.machine_name]
    if machine_names:
        updated.equipmentType = machine_names[0]

    updated.previousQueries = ([query] + updated.previousQueries)[:MAX_PREVIOUS_QUERIES]
    if analysis is not None:
        updated.lastQueryType = analysis.query_type

    lowered = query.lower()
    if "number" in lowered:
        updated.userPreferences.preferPartNumbers = True
    if "install" in lowered or "procedure" in lowered:
        updated.userPreferences.preferInstructions = True
    return updated
