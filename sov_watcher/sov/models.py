"""
Data models for Share of Voice calculations.

Source records go in, Mention records are produced per resolved entity, and
a ShareOfVoiceResult comes out. All models are dataclasses; Source is frozen
so a batch of sources can be shared safely.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum

from sov_watcher.utils.time import utc_timestamp


class Provenance(str, Enum):
    """Where a Source's text came from. Only generated answers are populated."""

    GENERATED_ANSWER = "generated-answer"


class CalculationStatus(str, Enum):
    """
    Whether a result was measured or guessed.

    MEASURED: percentages come from weighted mentions or literal occurrences
    FALLBACK_NO_SIGNAL: no textual evidence at all; fixed distribution
    FALLBACK_ERROR: calculation failed; fixed distribution
    """

    MEASURED = "measured"
    FALLBACK_NO_SIGNAL = "fallback_no_signal"
    FALLBACK_ERROR = "fallback_error"


CALCULATION_METHODS = ("weighted_mentions", "occurrence_count", "fallback_distribution")


@dataclass(frozen=True)
class Source:
    """
    One text to analyze.

    Attributes:
        provenance: Origin of the text
        text: Raw text
        weight: Multiplier applied to every mention score from this source
    """

    provenance: Provenance
    text: str
    weight: float = 1.0

    def __post_init__(self):
        """Validate weight is positive."""
        if self.weight <= 0:
            raise ValueError(f"Source weight must be positive, got: {self.weight}")


@dataclass
class Mention:
    """
    A scored mention of one brand in one context.

    Attributes:
        brand: Brand name (caller's display spelling)
        entity: Entity text that resolved to the brand
        context: Sentence/paragraph the mention was scored in
        confidence: Mention confidence (0.0-1.0)
        match_type: exact, alias, partial, word-based, domain or substring
        score: Final score (scorer score x source weight x topic relevance)
        sentiment: positive, negative or neutral
        context_type: Context classification (title, heading, listItem, ...)
        provenance: Provenance value of the source
        source_weight: Weight of the source
        topic_relevance: Topic keyword overlap, clamped to 0.2-1.0
        co_mentions: Other tracked brands present in the same context
        timestamp: ISO 8601 UTC time the mention was recorded
        text_weight: Span weight factor
        context_weight: Context type factor
        sentiment_multiplier: Sentiment factor
    """

    brand: str
    entity: str
    context: str
    confidence: float
    match_type: str
    score: float
    sentiment: str = "neutral"
    context_type: str = "normal"
    provenance: str = Provenance.GENERATED_ANSWER.value
    source_weight: float = 1.0
    topic_relevance: float = 1.0
    co_mentions: list[str] = field(default_factory=list)
    timestamp: str = field(default_factory=utc_timestamp)
    text_weight: float = 1.0
    context_weight: float = 1.0
    sentiment_multiplier: float = 1.0


@dataclass
class Breakdowns:
    """
    Auxiliary breakdowns over the filtered, capped mention list.

    Attributes:
        by_provenance: Provenance -> summed score
        by_sentiment: Sentiment -> mention count
        by_context_type: Context type -> mention count
        co_mentions: One entry per mention that shares its context with other
                     brands: {brands, context, score, timestamp}
        average_topic_relevance: Mean topic relevance (0.0 with no mentions)
        high_relevance_mentions: Mentions with topic relevance >= threshold
        average_confidence: Mean confidence (0.0 with no mentions)
    """

    by_provenance: dict[str, float] = field(default_factory=dict)
    by_sentiment: dict[str, int] = field(
        default_factory=lambda: {"positive": 0, "negative": 0, "neutral": 0}
    )
    by_context_type: dict[str, int] = field(default_factory=dict)
    co_mentions: list[dict] = field(default_factory=list)
    average_topic_relevance: float = 0.0
    high_relevance_mentions: int = 0
    average_confidence: float = 0.0


@dataclass
class ShareOfVoiceResult:
    """
    Outcome of one Share of Voice calculation.

    When status is MEASURED the percentages are derived from the answers;
    otherwise they are a fixed fallback distribution and must not be read as
    measurement. Percentages sum to 100 (within rounding) either way.

    Attributes:
        share_of_voice: Brand -> percentage (2 decimals)
        mention_counts: Brand -> count (kept mentions, raw occurrences, or 0)
        total_mentions: Sum of mention_counts
        brand_share: Target brand percentage
        ai_visibility_score: Equal to brand_share
        status: MEASURED, FALLBACK_NO_SIGNAL or FALLBACK_ERROR
        calculation_method: weighted_mentions, occurrence_count or
                            fallback_distribution
        analysis_session_id: Identifier of this calculation
        breakdowns: Observability breakdowns
        calculated_at: ISO 8601 UTC timestamp
        mentions: Kept mentions (weighted_mentions method only)
    """

    share_of_voice: dict[str, float]
    mention_counts: dict[str, int]
    total_mentions: int
    brand_share: float
    ai_visibility_score: float
    status: CalculationStatus
    calculation_method: str
    analysis_session_id: str
    breakdowns: Breakdowns = field(default_factory=Breakdowns)
    calculated_at: str = field(default_factory=utc_timestamp)
    mentions: list[Mention] = field(default_factory=list)

    def __post_init__(self):
        """Validate calculation_method is known."""
        if self.calculation_method not in CALCULATION_METHODS:
            raise ValueError(
                f"calculation_method must be one of {CALCULATION_METHODS}, "
                f"got: {self.calculation_method}"
            )

    @property
    def is_measured(self) -> bool:
        """True when the percentages come from the answers, not a fallback."""
        return self.status == CalculationStatus.MEASURED

    def to_dict(self, include_mentions: bool = False) -> dict:
        """
        JSON-ready representation.

        Args:
            include_mentions: Include the kept mention list (can be large)
        """
        data = asdict(self)
        data["status"] = self.status.value
        data["is_measured"] = self.is_measured
        if not include_mentions:
            data.pop("mentions")
        return data
