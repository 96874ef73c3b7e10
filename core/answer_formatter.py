# core/answer_formatter.py
from typing import Dict, Final, List, Optional, Sequence, Tuple

from core.entities import SearchResult
from core.query_analysis import QueryAnalysis, detect_user_intent
from model.session import ConversationContext
from util import functions

HIGH_CONFIDENCE: Final[int] = 70

# Alternatives offered when nothing matched.
INDUSTRY_TERMINOLOGY: Final[Dict[str, Tuple[str, ...]]] = {
    "air filter": (
        "air cleaner",
        "air element",
        "intake filter",
        "engine air filter",
        "breather element",
        "cab filter",
        "cabin filter",
    ),
    "oil filter": (
        "oil element",
        "lube filter",
        "engine oil filter",
        "lubrication filter",
        "spin-on filter",
    ),
    "fuel filter": (
        "fuel element",
        "fuel strainer",
        "fuel water separator",
        "primary fuel filter",
        "secondary fuel filter",
    ),
    "hydraulic filter": (
        "hyd filter",
        "hydraulic element",
        "return filter",
        "suction strainer",
        "pressure filter",
    ),
    "transmission filter": (
        "trans filter",
        "transmission element",
        "gearbox filter",
        "powershift filter",
    ),
    "coolant filter": (
        "cooling filter",
        "radiator filter",
        "coolant element",
        "water filter",
    ),
}

_CLARIFYING_OPTIONS: Final[Dict[str, Tuple[str, ...]]] = {
    "air_filter": (
        "🔍 **Which type of air filter?**",
        "• Engine air filter (primary intake filtration)",
        "• Cabin/Cab air filter (operator comfort)",
        "• Secondary air filter (engine protection)",
        "",
        "💡 **What do you need?**",
        "• Part number for ordering",
        "• Installation instructions",
        "• Maintenance interval",
    ),
    "oil_filter": (
        "🔍 **Which oil filter system?**",
        "• Engine oil filter",
        "• Transmission oil filter",
        "• Hydraulic oil filter",
        "",
        "💡 **Filter type preference?**",
        "• Spin-on cartridge",
        "• Element/cartridge only",
    ),
    "fuel_filter": (
        "🔍 **Which fuel filter location?**",
        "• Primary fuel filter (tank to pump)",
        "• Secondary fuel filter (pump to engine)",
        "• Fuel water separator",
        "",
    ),
    "hydraulic_filter": (
        "🔍 **Which hydraulic filter type?**",
        "• Return filter (tank return)",
        "• Suction strainer (tank pickup)",
        "• Pressure filter (high pressure line)",
        "",
    ),
}
_DEFAULT_OPTIONS: Final[Tuple[str, ...]] = (
    "🔍 **Please specify:**",
    "• What component or system?",
    "• What type of information needed?",
    "• Maintenance or troubleshooting?",
    "",
)

_HVAC_TERMS = ("condenser", "evaporator", "operator station", "cabin")
_ENGINE_AIR_TERMS = ("engine air", "intake", "air element", "air filter")


def _describe(result: SearchResult) -> str:
    loc = result.location
    if loc and loc.actual_part_number:
        out = f"**Actual Part Number: {loc.actual_part_number}**"
        if loc.item_number:
            out += f" (Item Reference: {loc.item_number})"
        return out + f" - {result.part_name}"
    if result.part_no:
        return f"Part Number: {result.part_no} - {result.part_name}"
    return result.part_name


def build_context_prompt(
    query: str,
    results: Sequence[SearchResult],
    context: Optional[ConversationContext] = None,
    analysis: Optional[QueryAnalysis] = None,
) -> str:
    """
    User message for the answer model: the matches with their locations, then
    either disambiguation guidance or the part-number answer format.
    """
    lines: List[str] = []
    if context and context.equipmentType:
        lines.append(f"You're helping with: {context.equipmentType}\n")
    lines.append(f'User Query: "{query}"\n')

    if results:
        lines.append("Found Parts/Information:")
        for i, r in enumerate(results, start=1):
            entry = f"{i}. {_describe(r)}"
            loc = r.location
            if loc and loc.page_number:
                entry += f" (Found on Page {loc.page_number}"
                if loc.line_number:
                    entry += f", Line {loc.line_number}"
                if loc.is_followed_from_index and loc.index_page_number:
                    entry += f", navigated from index page {loc.index_page_number}"
                entry += ")"
            if loc and (loc.part_number_confidence or 0) > HIGH_CONFIDENCE:
                entry += " [High confidence part number match]"
            if loc and loc.context:
                entry += f'\nContext: "{functions.clip_words(loc.context, max_words=60)}"'
            lines.append(entry)
    else:
        lines.append("No specific parts found for this query.")

    if analysis and analysis.needs_specific_guidance:
        lines.append(
            "\nSMART GUIDANCE NEEDED: Multiple related components found. "
            "Help user identify the specific component:\n"
        )
        for category, components in analysis.ambiguity.groups.items():
            if not components:
                continue
            lines.append(f"**{category.replace('_', ' ').upper()}:**")
            for comp in components:
                lines.append(f"• {comp.part_name} (Page {comp.page_number})")
            lines.append("")
        lines.append(
            "Ask user to clarify which specific component they need, listing the options above."
        )
    else:
        lines.append(
            "\nCRITICAL: DISTINGUISH between item references (3-4 digits like 8843) "
            "and ACTUAL PART NUMBERS (alphanumeric like RE508960).\n\n"
            "BE EXTREMELY BRIEF (under 40 words). Format:\n\n"
            "**Part Number: [ACTUAL_ORDERABLE_CODE]** (Item [reference] - [Name]). Page [X].\n\n"
            'EXAMPLE: "**Part Number: RE508960** (Item 8843 - Engine Oil Filter). Page 214."\n\n'
            "NEVER use item reference numbers (like 8843) as the part number. "
            "ONLY use actual orderable codes (like RE508960)."
        )
    return "\n".join(lines)


def _numbered(results: Sequence[SearchResult], limit: int) -> List[str]:
    return [
        f"{i}. {r.part_no or 'N/A'} - {r.part_name or 'Component'}"
        for i, r in enumerate(results[:limit], start=1)
    ]


def format_part_number_response(
    results: Sequence[SearchResult],
    query: str,
    context: Optional[ConversationContext] = None,
) -> str:
    lowered = query.lower()
    equipment = (context.equipmentType if context else None) or "your equipment"

    if "air filter" in lowered and results:
        names = [(r.part_name or "").lower() for r in results]
        hvac_only = any(
            any(t in n for t in _HVAC_TERMS) for n in names
        ) and not any(any(t in n for t in _ENGINE_AIR_TERMS) for n in names)
        if hvac_only:
            found = "\n".join(f"• {r.part_no} - {r.part_name}" for r in results[:3])
            return (
                f"I found air conditioning parts for {equipment}, but you're probably "
                "looking for the **engine air filter**.\n\n"
                f"The parts I found are HVAC/air conditioning components:\n{found}\n\n"
                "**Let me help you find the right part:**\n"
                "• Are you looking for the **engine air filter** (for the engine intake)?\n"
                "• Or do you need the **cabin air filter** (for the operator station air conditioning)?\n\n"
                'Try searching for "engine air filter" or "primary air filter" to find the engine filtration part.'
            )

    if not results:
        if "air filter" in lowered:
            return (
                f'I didn\'t find any air filter parts for "{query}" in your manual.\n\n'
                "**Let me help you find what you need:**\n"
                '• Try searching for "**engine air filter**" or "**air cleaner element**"\n'
                '• Look for "**primary air filter**" or "**intake filter**"\n'
                '• Check for "**air filter element**" or "**combustion air filter**"\n\n'
                "These terms might match how the part is listed in your specific manual."
            )
        return (
            f'I couldn\'t find any parts matching "{query}" in your manual. '
            "Try using different terms or check the spelling."
        )

    plural = "s" if len(results) > 1 else ""
    out = [f'**Part Number{plural} for "{query}":**\n']
    for r in results[:5]:
        if r.part_no:
            out.append(f"• **{r.part_no}** - {r.part_name or 'Component'}")
        else:
            out.append(f"• {r.part_name or 'Component'} (part number not found in document)")
    if context and context.equipmentType:
        out.append(f"\n📋 **Equipment:** {context.equipmentType}")
    return "\n".join(out)


_SECTION_TITLES: Final[Dict[str, Tuple[str, str]]] = {
    "specifications": ("Specifications for", "No specifications found for"),
    "installation": ("Installation procedure for", "No installation information found for"),
    "maintenance": ("Maintenance schedule for", "No maintenance information found for"),
}


def format_direct_response(
    results: Sequence[SearchResult],
    query: str,
    bypass_type: Optional[str],
    context: Optional[ConversationContext] = None,
) -> str:
    if bypass_type == "partNumber":
        return format_part_number_response(results, query, context)
    if bypass_type in _SECTION_TITLES:
        title, empty = _SECTION_TITLES[bypass_type]
        if not results:
            return f'{empty} "{query}".'
        return "\n".join([f'**{title} "{query}":**\n'] + _numbered(results, 3))
    if not results:
        return f'No results found for "{query}".'
    return "\n".join([f'**Results for "{query}":**\n'] + _numbered(results, 5))


def format_direct_answer(
    results: Sequence[SearchResult],
    query: str,
    context: Optional[ConversationContext] = None,
) -> str:
    if not results:
        return "No matching parts found."

    lowered = query.lower()
    plural = "s" if len(results) > 1 else ""
    if detect_user_intent(lowered) == "part_number" or "number" in lowered:
        out = [f'**Part number{plural} for "{query}":**\n']
        for i, r in enumerate(results[:5], start=1):
            if r.part_no:
                out.append(f"{i}. **{r.part_no}** - {r.part_name or 'Component'}")
            else:
                out.append(
                    f"{i}. {r.part_name or 'Component'} (part number not found in context)"
                )
        equipment = (context.equipmentType if context else None) or "See document"
        out.append(f"\n📋 **Equipment:** {equipment}")
        if len(results) == 1:
            out.append("\n💡 **Need more?** Try:")
            out.append("• Installation torque specifications")
            out.append("• Filter replacement interval")
        return "\n".join(out)

    out = [f'Found {len(results)} result{plural} for "{query}":\n']
    for i, r in enumerate(results[:5], start=1):
        out.append(f"{i}. **{r.part_no or 'N/A'}** - {r.part_name or 'Component'}")
    if len(results) == 1:
        out.append("\n💡 **Need more info?** Ask about:")
        out.append("• Installation procedure")
        out.append("• Technical specifications")
        out.append("• Maintenance interval")
    return "\n".join(out)


def generate_no_results_response(query: str) -> str:
    out = [f'No direct matches found for "{query}".\n', "💡 **Try these alternatives:**"]
    lowered = query.lower()
    for key, alternatives in INDUSTRY_TERMINOLOGY.items():
        if key.split(" ")[0] in lowered:
            out.append(f"• {', '.join(alternatives[:3])}")
            break
    out.append("\n**Or search for:**")
    out.append("• Specific part numbers if you have them")
    out.append("• Component system (engine, hydraulic, etc.)")
    out.append("• Maintenance procedures")
    return "\n".join(out)


def generate_clarifying_questions(query: str, query_type: str) -> str:
    out = [f'I found several options for "{query}". To help you find exactly what you need:\n']
    out.extend(_CLARIFYING_OPTIONS.get(query_type, _DEFAULT_OPTIONS))
    out.append("**Try a more specific search like:**")
    out.append(f'• "{query} part number"')
    out.append(f'• "{query} installation"')
    out.append(f'• "{query} specifications"')
    return "\n".join(out)


def _context_hints(query: str, query_type: str, context: Optional[ConversationContext]) -> str:
    if context is None:
        return ""
    hints = ""
    if context.equipmentType:
        short = " ".join(context.equipmentType.split(" ")[:3])
        hints += f"\n🔧 **Working with:** {short}\n"
    if len(context.previousQueries) > 1:
        needle = query_type.replace("_", " ")
        similar = next(
            (pq for pq in context.previousQueries if needle in pq.lower()), None
        )
        if similar and similar != query:
            hints += f'💡 **Related to your previous search:** "{similar}"\n'
    return hints


def generate_context_aware_response(
    query: str,
    results: Sequence[SearchResult],
    analysis: QueryAnalysis,
    context: Optional[ConversationContext] = None,
) -> str:
    hints = _context_hints(query, analysis.query_type, context)
    if not analysis.needs_clarification and len(results) <= 3:
        if not results:
            return generate_no_results_response(query) + hints
        return format_direct_answer(results, query, context) + hints
    if not results:
        return generate_no_results_response(query) + hints
    return generate_clarifying_questions(query, analysis.query_type) + hints


def generate_fallback_response(query: str, results: Sequence[SearchResult]) -> str:
    """Plain listing used when the answer model is unreachable."""
    if not results:
        return (
            f"AI service unavailable after retries. Couldn't find any parts matching "
            f'"{query}" in your manual. Try using different terms like "filter", '
            '"oil", "engine", or check the spelling.'
        )
    out = [f'AI service unavailable after retries. Falling back to basic search results for "{query}":\n']
    for i, r in enumerate(results, start=1):
        entry = f"{i}. " + (f"**{r.part_no}** - {r.part_name}" if r.part_no else r.part_name)
        if r.location and r.location.page_number:
            entry += f" (Page {r.location.page_number})"
        out.append(entry)
    out.append(
        "\n💡 **Need more details?** Ask about installation, specifications, or "
        "maintenance intervals. Try your query again later."
    )
    return "\n".join(out)
