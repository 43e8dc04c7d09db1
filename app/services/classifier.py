"""
Query classifier: map a user question to the knowledge categories worth injecting.

Matching is a literal, case-insensitive substring test against a short curated keyword
list per category (no tokenization, no stemming). Over-matching only widens the prompt
context; it never removes an answer.
"""

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class KnowledgeCategory(str, Enum):
    """Knowledge buckets. Declaration order is the canonical section order in prompts."""

    CONTACTS = "contacts"
    FACULTIES = "faculties"
    HISTORY = "history"
    TUITIONS = "tuitions"


CATEGORY_KEYWORDS: dict[KnowledgeCategory, tuple[str, ...]] = {
    KnowledgeCategory.CONTACTS: (
        "contact", "phone", "address", "location", "campus", "where", "find", "reach",
        "call", "visit", "email", "website",
    ),
    KnowledgeCategory.FACULTIES: (
        "program", "course", "study", "major", "faculty", "school", "degree", "bachelor",
        "master", "graduate", "undergraduate", "engineering", "business", "arts", "science",
        "technology", "communication", "architecture", "design", "nursing", "law", "medicine",
        "biotechnology", "music",
    ),
    KnowledgeCategory.HISTORY: (
        "history", "founded", "established", "background", "about", "origin", "when",
        "started", "old", "tradition", "heritage", "gabriel", "brothers", "college",
    ),
    KnowledgeCategory.TUITIONS: (
        "tuition", "fee", "cost", "price", "expensive", "cheap", "pay", "payment", "money",
        "scholarship", "financial", "afford", "budget", "matriculation", "insurance",
    ),
}

DEFAULT_CATEGORIES: frozenset[KnowledgeCategory] = frozenset(
    {KnowledgeCategory.CONTACTS, KnowledgeCategory.FACULTIES}
)


def _normalize(query) -> str:
    if not isinstance(query, str):
        return ""
    return query.lower()


def classify(query: str) -> frozenset[KnowledgeCategory]:
    """
    Return every category with at least one keyword occurring in the query.
    Never empty: queries matching nothing get DEFAULT_CATEGORIES (contacts + faculties).
    """
    text = _normalize(query)
    matched = frozenset(
        category
        for category, keywords in CATEGORY_KEYWORDS.items()
        if any(keyword in text for keyword in keywords)
    )
    if not matched:
        logger.info("[classifier:classify] no keyword match, using defaults")
        return DEFAULT_CATEGORIES
    logger.info("[classifier:classify] OUT categories=%s", sorted(c.value for c in matched))
    return matched


def score(query: str) -> dict[KnowledgeCategory, float]:
    """Fraction of each category's keywords found in the query. Observability only."""
    text = _normalize(query)
    return {
        category: sum(1 for keyword in keywords if keyword in text) / len(keywords)
        for category, keywords in CATEGORY_KEYWORDS.items()
    }


def ordered(categories) -> list[KnowledgeCategory]:
    """Categories in canonical (enum declaration) order."""
    wanted = set(categories or ())
    return [c for c in KnowledgeCategory if c in wanted]
