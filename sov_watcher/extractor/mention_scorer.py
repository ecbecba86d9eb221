"""
Context classification, sentiment and confidence scoring for brand mentions.

A mention's score is the product of four factors:

    score = text_weight x context_weight x sentiment_multiplier x confidence

- text_weight: span importance from TextNormalizer.weight_of()
- context_weight: by context type (title 3.0 ... normal 1.0)
- sentiment_multiplier: positive 1.2, neutral 1.0, negative 0.8
- confidence: 0.5 base plus entity/context bonuses, capped at 1.0

Sentiment uses the AFINN lexicon (afinn package): the lexicon sum over the
text divided by its word-token count, with +/-0.1 thresholds.

Example:
    >>> scorer = MentionScorer()
    >>> scorer.classify_context("What are the best CRM platforms?")
    'recommendation'
    >>> result = scorer.score("HubSpot", "HubSpot is a great CRM.", text_weight=1.5)
    >>> result.sentiment
    'positive'
"""

import re
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from afinn import Afinn

from ..config.constants import (
    COMPANY_SUFFIXES,
    COMPARISON_KEYWORDS,
    CONTEXT_WEIGHTS,
    DOMAIN_SUFFIXES,
    HEADING_KEYWORDS,
    RECOMMENDATION_KEYWORDS,
    REVIEW_KEYWORDS,
    SENTIMENT_MULTIPLIERS,
)
from .entity_extractor import COMPANY_PATTERN
from .text_normalizer import (
    EMAIL_PATTERN,
    LIST_MARKER_PATTERN,
    URL_PATTERN,
    TextNormalizer,
    keyword_pattern,
)

CONTEXT_TYPES = tuple(CONTEXT_WEIGHTS)
SENTIMENTS = ("positive", "negative", "neutral")

POSITIVE_THRESHOLD = 0.1
NEGATIVE_THRESHOLD = -0.1

TITLE_MAX_WORDS = 8
TITLE_MIN_LENGTH = 10
HEADING_MAX_LENGTH = 60

HEADING_PATTERN = keyword_pattern(HEADING_KEYWORDS)
COMPARISON_PATTERN = keyword_pattern(COMPARISON_KEYWORDS)
RECOMMENDATION_PATTERN = keyword_pattern(RECOMMENDATION_KEYWORDS)
REVIEW_PATTERN = keyword_pattern(REVIEW_KEYWORDS)

WORD_TOKEN_PATTERN = re.compile(r"[a-z0-9']+")
DOMAIN_ENTITY_PATTERN = re.compile(rf"\.(?:{'|'.join(DOMAIN_SUFFIXES)})$")
TERMINAL_PUNCTUATION = ".!?:;"


@dataclass
class MentionScore:
    """
    Score of one entity in one context, with every factor kept.

    Attributes:
        score: Final product of the factors below (>= 0)
        confidence: Mention confidence (0.0-1.0)
        sentiment: positive, negative or neutral
        context_type: title, heading, firstParagraph, listItem, comparison,
                      recommendation, review or normal
        text_weight: Span weight passed in by the caller
        context_weight: Weight of context_type
        sentiment_multiplier: Multiplier of sentiment
    """

    score: float
    confidence: float
    sentiment: str = "neutral"
    context_type: str = "normal"
    text_weight: float = 1.0
    context_weight: float = 1.0
    sentiment_multiplier: float = 1.0

    def __post_init__(self):
        """Validate sentiment and context_type are known values."""
        if self.sentiment not in SENTIMENTS:
            raise ValueError(
                f"sentiment must be one of {SENTIMENTS}, got: {self.sentiment}"
            )
        if self.context_type not in CONTEXT_TYPES:
            raise ValueError(
                f"context_type must be one of {CONTEXT_TYPES}, got: {self.context_type}"
            )


@dataclass
class MentionSummary:
    """Totals over a list of scored mentions."""

    total_score: float = 0.0
    total_mentions: int = 0
    average_confidence: float = 0.0
    sentiment_breakdown: dict[str, int] = field(
        default_factory=lambda: dict.fromkeys(SENTIMENTS, 0)
    )
    context_breakdown: dict[str, int] = field(default_factory=dict)


class MentionScorer:
    """
    Scores entity mentions in their context.

    Args:
        normalizer: Text normalizer used for the important-context test
        lexicon: AFINN lexicon instance (a fresh English Afinn() when None)
    """

    def __init__(
        self,
        normalizer: TextNormalizer | None = None,
        lexicon: Afinn | None = None,
    ):
        self.normalizer = normalizer or TextNormalizer()
        self.lexicon = lexicon or Afinn()

    def classify_context(self, text: str, is_first_paragraph: bool = False) -> str:
        """
        Classify the context a mention appears in.

        Checked in priority order; the first test that passes wins:

        1. title: at most 8 words, longer than 10 chars, starts capitalized,
           no terminal punctuation
        2. heading: under 60 chars, no terminal punctuation, contains a
           heading keyword (features, why, how, options, alternatives, ...)
        3. firstParagraph: is_first_paragraph is True
        4. listItem: starts with a bullet or "1." / "a." marker
        5. comparison / recommendation / review: keyword present
        6. normal

        Args:
            text: Context text (sentence or paragraph)
            is_first_paragraph: Whether text is the first paragraph of its source

        Returns:
            Context type name
        """
        stripped = text.strip() if text else ""
        if not stripped:
            return "normal"
        unterminated = stripped[-1] not in TERMINAL_PUNCTUATION

        if (
            unterminated
            and stripped[0].isupper()
            and len(stripped.split()) <= TITLE_MAX_WORDS
            and len(stripped) > TITLE_MIN_LENGTH
        ):
            return "title"

        if (
            unterminated
            and len(stripped) < HEADING_MAX_LENGTH
            and HEADING_PATTERN.search(stripped)
        ):
            return "heading"

        if is_first_paragraph:
            return "firstParagraph"

        if LIST_MARKER_PATTERN.match(stripped):
            return "listItem"

        if COMPARISON_PATTERN.search(stripped):
            return "comparison"

        if RECOMMENDATION_PATTERN.search(stripped):
            return "recommendation"

        if REVIEW_PATTERN.search(stripped):
            return "review"

        return "normal"

    def sentiment_score(self, text: str) -> float:
        """AFINN sum over text divided by its word-token count (0.0 for empty text)."""
        if not text:
            return 0.0
        tokens = WORD_TOKEN_PATTERN.findall(text.lower())
        if not tokens:
            return 0.0
        return self.lexicon.score(text) / len(tokens)

    def sentiment(self, text: str) -> str:
        """
        Classify text as positive (> 0.1), negative (< -0.1) or neutral.

        Example:
            >>> MentionScorer().sentiment("This tool is terrible and broken.")
            'negative'
        """
        value = self.sentiment_score(text)
        if value > POSITIVE_THRESHOLD:
            return "positive"
        if value < NEGATIVE_THRESHOLD:
            return "negative"
        return "neutral"

    def confidence(self, entity: str, context: str) -> float:
        """
        Confidence that entity is a meaningful mention in context.

        0.5 base, then:
        - +0.1 if the entity is longer than 8 characters
        - +0.2 if the context is important (best, top, vs, review, ...)
        - +min(0.2, 0.05 x n) if the entity occurs n > 1 times in context
        - +0.1 if the entity has a company suffix token (inc, corp, llc, ...)
        - +0.15 if the entity ends with a domain suffix (.com, .io, ...)

        Capped at 1.0. Empty entity or context yields 0.0.
        """
        if not entity or not context:
            return 0.0

        confidence = 0.5

        if len(entity) > 8:
            confidence += 0.1

        if self.normalizer.is_important_context(context):
            confidence += 0.2

        occurrences = len(
            re.findall(rf"(?<!\w){re.escape(entity)}(?!\w)", context, re.IGNORECASE)
        )
        if occurrences > 1:
            confidence += min(0.2, occurrences * 0.05)

        entity_tokens = set(WORD_TOKEN_PATTERN.findall(entity.lower()))
        if entity_tokens & set(COMPANY_SUFFIXES):
            confidence += 0.1

        if DOMAIN_ENTITY_PATTERN.search(entity.lower()):
            confidence += 0.15

        return min(1.0, confidence)

    def score(
        self,
        entity: str,
        context: str,
        text_weight: float = 1.0,
        is_first_paragraph: bool = False,
    ) -> MentionScore:
        """
        Score a mention of entity in context.

        Args:
            entity: Entity text
            context: Context the entity was found in
            text_weight: Span weight (TextNormalizer.weight_of(context))
            is_first_paragraph: Whether context is its source's first paragraph

        Returns:
            MentionScore with the product and every factor; a zero, neutral
            score for empty entity or context
        """
        if not entity or not context:
            return MentionScore(score=0.0, confidence=0.0, text_weight=text_weight)

        context_type = self.classify_context(context, is_first_paragraph)
        context_weight = CONTEXT_WEIGHTS.get(context_type, 1.0)

        sentiment = self.sentiment(context)
        sentiment_multiplier = SENTIMENT_MULTIPLIERS.get(sentiment, 1.0)

        confidence = self.confidence(entity, context)

        return MentionScore(
            score=text_weight * context_weight * sentiment_multiplier * confidence,
            confidence=confidence,
            sentiment=sentiment,
            context_type=context_type,
            text_weight=text_weight,
            context_weight=context_weight,
            sentiment_multiplier=sentiment_multiplier,
        )

    def aggregate(self, mentions: Iterable) -> MentionSummary:
        """
        Summarize scored mentions.

        Accepts any objects with score, confidence, sentiment and
        context_type attributes (MentionScore or sov.models.Mention).
        """
        items = list(mentions)
        if not items:
            return MentionSummary()

        sentiments = Counter(dict.fromkeys(SENTIMENTS, 0))
        sentiments.update(m.sentiment for m in items)
        contexts = Counter(m.context_type or "normal" for m in items)

        return MentionSummary(
            total_score=sum(m.score for m in items),
            total_mentions=len(items),
            average_confidence=sum(m.confidence for m in items) / len(items),
            sentiment_breakdown=dict(sentiments),
            context_breakdown=dict(contexts),
        )

    def context_features(self, text: str) -> dict:
        """Cheap structural features of a context span."""
        if not text:
            return {}

        return {
            "has_numbers": bool(re.search(r"\d", text)),
            "has_urls": URL_PATTERN.search(text) is not None,
            "has_emails": EMAIL_PATTERN.search(text) is not None,
            "has_organizations": COMPANY_PATTERN.search(text) is not None,
            "sentence_count": sum(1 for _ in self.normalizer.split_sentences(text)),
            "word_count": len(text.split()),
        }
