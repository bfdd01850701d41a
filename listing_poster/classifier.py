"""Keyword-based product categorization."""

from __future__ import annotations

from .config import ClassifierConfig
from .core.types import Category, CategoryRule, ListingRecord


def build_rules(cfg: ClassifierConfig) -> list[CategoryRule]:
    """Convert configured rules into CategoryRule objects, preserving order."""
    return [
        CategoryRule(category=Category(rule.category), keywords=frozenset(k.lower() for k in rule.keywords))
        for rule in cfg.rules
    ]


def classify_text(title: str, description: str, rules: list[CategoryRule]) -> Category:
    """Return the first category whose keywords occur in the text.

    Matching is plain substring search over the lower-cased
    ``"<title> <description>"``, so a keyword also matches inside a longer
    word ("art" matches "party"). Rule order is the only tie-break.
    """
    text = f"{title.lower()} {description.lower()}"
    for rule in rules:
        if any(keyword in text for keyword in rule.keywords):
            return rule.category
    return Category.GENERAL


def classify(record: ListingRecord, cfg: ClassifierConfig) -> Category:
    return classify_text(record.title, record.description, build_rules(cfg))
