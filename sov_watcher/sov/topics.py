"""
Topic keyword lookup and topic relevance.

Each category id maps to a keyword list; unknown or missing categories use
DEFAULT_TOPIC_KEYWORDS. Settings may override or add categories.
"""

import re

from ..config.constants import DEFAULT_TOPIC_KEYWORDS, TOPIC_KEYWORDS

MIN_TOPIC_RELEVANCE = 0.2
MAX_TOPIC_RELEVANCE = 1.0


class TopicKeywords:
    """
    Category id -> keyword list lookup.

    Args:
        overrides: Extra or replacement categories (ids are matched
                   case-insensitively)

    Example:
        >>> topics = TopicKeywords({"crm": ["crm", "pipeline"]})
        >>> topics.keywords_for("CRM")
        ('crm', 'pipeline')
        >>> topics.relevance("A CRM with a clear pipeline view.", "crm")
        1.0
    """

    def __init__(self, overrides: dict[str, list[str]] | None = None):
        self._table: dict[str, tuple[str, ...]] = dict(TOPIC_KEYWORDS)
        for category, keywords in (overrides or {}).items():
            self._table[category.strip().lower()] = tuple(k.lower() for k in keywords)

    def keywords_for(self, topic: str | None) -> tuple[str, ...]:
        """Keywords of topic, or the default list for unknown/missing topics."""
        if not topic:
            return DEFAULT_TOPIC_KEYWORDS
        return self._table.get(topic.strip().lower(), DEFAULT_TOPIC_KEYWORDS)

    def relevance(self, context: str, topic: str | None) -> float:
        """
        Share of the topic's keywords found in context, clamped to [0.2, 1.0].

        Keywords match as whole words, case-insensitively.
        """
        keywords = self.keywords_for(topic)
        if not context or not keywords:
            return MIN_TOPIC_RELEVANCE

        lowered = context.lower()
        found = sum(
            1
            for keyword in keywords
            if re.search(rf"(?<![\w-]){re.escape(keyword)}(?![\w-])", lowered)
        )
        ratio = found / len(keywords)
        return max(MIN_TOPIC_RELEVANCE, min(MAX_TOPIC_RELEVANCE, ratio))
