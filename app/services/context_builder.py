"""
Context assembler: render the knowledge prompt for a set of categories.

Output = fixed preamble + one section per requested, loaded category (always in
canonical order: contacts, faculties, history, tuitions) + fixed closing block.
A section that fails to render is logged and left out; the rest of the prompt is
still produced.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable

from app.knowledge.loader import KnowledgeBase, get_knowledge_base
from app.knowledge.schema import ContactsRecord, FacultiesRecord, HistoryRecord, TuitionsRecord
from app.services.classifier import KnowledgeCategory, classify, ordered

logger = logging.getLogger(__name__)

PREAMBLE = (
    "You are AU Smart Assistant for Assumption University Thailand. "
    "Be helpful, friendly, and concise (2-3 sentences max).\n"
    "\n"
    "AVAILABLE KNOWLEDGE:"
)

CLOSING_INSTRUCTIONS = """

INSTRUCTIONS:
1. Only answer AU-related questions using the above information
2. Be concise (2-3 sentences maximum)
3. For unrelated questions: "I can only help with AU information about programs, admissions, campus life, fees, and contact details. What would you like to know about AU?"
4. If you need more specific information, ask for clarification
5. Always be helpful and direct

EXAMPLES:
Q: "What programs do you offer?"
A: "AU offers undergraduate programs in Business, Engineering, Computer Science, Communication Arts, Architecture, Nursing, Law, and Medicine. We also have graduate MBA, Masters, and Doctoral programs. Which area interests you?"

Q: "How much is tuition?"
A: "Undergraduate tuition is 112,000-350,000 THB per year. Graduate programs range from 200,000-550,000 THB per year, plus additional fees."

Stay focused on AU information only."""

DEFAULT_UNDERGRAD_SCHOOLS = "Business, Engineering, Computer Science, Arts"
UNIVERSITY_STATUS_YEAR = 1990


@dataclass(frozen=True)
class ContextBundle:
    prompt: str
    categories: frozenset[KnowledgeCategory]
    token_estimate: int


def estimate_tokens(text: str) -> int:
    """Rough token count: one token per four characters, rounded up."""
    return math.ceil(len(text or "") / 4)


def _or(value, fallback):
    return value if value else fallback


def _render_contacts(record: ContactsRecord) -> str:
    hua_mak = record.campus_at(0)
    suvarnabhumi = record.campus_at(1)
    return (
        "\n\nCONTACT INFORMATION:\n"
        f"- Main Website: {_or(record.main_website, 'au.edu')}\n"
        "- Campuses:\n"
        f"  • Hua Mak Campus: {_or(hua_mak.address, 'Bangkok')}, "
        f"Phone: {_or(hua_mak.phone, '+66 2 719 1919')}\n"
        f"  • Suvarnabhumi Campus: {_or(suvarnabhumi.address, 'Samutprakarn')}, "
        f"Phone: {_or(suvarnabhumi.phone, '+66 2 723 2323')}"
    )


def _render_faculties(record: FacultiesRecord) -> str:
    names = [school.name for school in record.faculties.undergraduate if school.name]
    schools = ", ".join(names) or DEFAULT_UNDERGRAD_SCHOOLS
    return (
        "\n\nACADEMIC PROGRAMS:\n"
        f"- Undergraduate Schools: {schools}\n"
        "- Popular Programs: Business Administration, Computer Science, Engineering, "
        "Communication Arts, Architecture, Nursing, Law, Medicine\n"
        "- Graduate Programs: Masters and Doctoral degrees available in Business, "
        "Science & Technology, Biotechnology, Human Sciences"
    )


def _render_history(record: HistoryRecord) -> str:
    origins = record.history.origins
    body = origins.student_body
    status = origins.event_in(UNIVERSITY_STATUS_YEAR) or "Granted full university status"
    return (
        "\n\nUNIVERSITY HISTORY:\n"
        f"- Founded: {_or(origins.registration_year, '1938')} as "
        f"{_or(origins.original_institution, 'Assumption Commercial College')}\n"
        f"- University Status: {status}\n"
        f"- Founded by: {_or(origins.founder, 'Brothers of St. Gabriel')}\n"
        f"- Students: {_or(body.total_students, 100000):,}+ students from "
        f"{_or(body.international_students, 'over 100 countries')}\n"
        f"- Philosophy: {_or(origins.philosophy, 'Open, international community with moral integrity')}"
    )


def _render_tuitions(record: TuitionsRecord) -> str:
    fees = record.tuition_fees_thb
    domestic = fees.undergraduate.domestic_students
    ug_min = _or(domestic.annual_fee_range.min, 112000)
    ug_max = _or(domestic.annual_fee_range.max, 350000)
    grad_min = _or(fees.graduate.masters_programs.annual_fee_range.min, 200000)
    grad_max = _or(fees.graduate.mba_programs.total_fee_range.max, 550000)
    matriculation = _or(domestic.additional_fees.matriculation_fee, 23500)
    insurance = _or(domestic.additional_fees.health_insurance, 3650)
    return (
        "\n\nTUITION FEES (THB):\n"
        f"- Undergraduate: {ug_min:,}-{ug_max:,} per year\n"
        f"- Graduate/MBA: {grad_min:,}-{grad_max:,} per year\n"
        f"- Additional Fees: Matriculation {matriculation:,} THB, Health Insurance {insurance:,} THB"
    )


_RENDERERS: dict[KnowledgeCategory, Callable] = {
    KnowledgeCategory.CONTACTS: _render_contacts,
    KnowledgeCategory.FACULTIES: _render_faculties,
    KnowledgeCategory.HISTORY: _render_history,
    KnowledgeCategory.TUITIONS: _render_tuitions,
}


def build_context(categories, knowledge: KnowledgeBase | None = None) -> ContextBundle:
    """
    Render the prompt for the given categories. Deterministic: the same category set
    always yields the same string. Never raises for a section failure.
    """
    kb = knowledge if knowledge is not None else get_knowledge_base()
    wanted = frozenset(categories or ())
    parts = [PREAMBLE]
    for category in ordered(wanted):
        record = kb.get(category)
        if record is None:
            logger.info("[context:build] no record for %s, section omitted", category.value)
            continue
        try:
            parts.append(_RENDERERS[category](record))
        except Exception:
            logger.exception("[context:build] failed to render %s section", category.value)
    parts.append(CLOSING_INSTRUCTIONS)
    prompt = "".join(parts)
    tokens = estimate_tokens(prompt)
    logger.info(
        "[context:build] OUT categories=%s prompt_len=%d token_estimate=%d",
        [c.value for c in ordered(wanted)], len(prompt), tokens,
    )
    return ContextBundle(prompt=prompt, categories=wanted, token_estimate=tokens)


def get_contextual_knowledge(query: str, knowledge: KnowledgeBase | None = None) -> ContextBundle:
    """Classify the query and render the matching context."""
    return build_context(classify(query), knowledge=knowledge)
