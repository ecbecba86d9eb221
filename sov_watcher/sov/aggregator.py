"""
Share of Voice aggregation.

This module orchestrates the full pipeline for one calculation:

1. Wrap answers into Sources (SourceEnricher)
2. Per source: clean, extract entities with their context, resolve each
   entity to a tracked brand, score it, weight it by source and topic
   relevance, and record co-mentioned brands
3. Filter weak mentions and clamp score outliers (median + k x MAD)
4. Convert score sums to percentages; fall back to literal occurrence
   counts, then to a fixed distribution when there is no evidence at all

Failure semantics:
    calculate() never raises. Any exception is logged with its traceback
    and converted into the fixed distribution with status FALLBACK_ERROR.
    Callers check result.is_measured before treating percentages as data.

Example:
    >>> aggregator = ShareOfVoiceAggregator()
    >>> result = aggregator.calculate(
    ...     "HubSpot",
    ...     ["Salesforce"],
    ...     [{"text": "HubSpot is the best CRM for startups. Salesforce is costly."}],
    ...     "crm",
    ... )
    >>> result.is_measured
    True
"""

import logging
import math
import re
from collections import Counter, defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import replace
from typing import Any

from sov_watcher.config.schema import PipelineSettings
from sov_watcher.exceptions import CalculationError
from sov_watcher.extractor.brand_matcher import AliasRegistry, BrandAliasMatcher
from sov_watcher.extractor.entity_extractor import (
    EntityExtractor,
    create_entity_backend,
)
from sov_watcher.extractor.mention_scorer import MentionScorer
from sov_watcher.extractor.text_normalizer import TextNormalizer
from sov_watcher.utils.logging import log_with_context
from sov_watcher.utils.time import session_id_from_timestamp

from .models import (
    Breakdowns,
    CalculationStatus,
    Mention,
    ShareOfVoiceResult,
    Source,
)
from .sources import SourceEnricher
from .stats import cap_outliers
from .topics import TopicKeywords

logger = logging.getLogger(__name__)

FALLBACK_BRAND_FLOOR = 15
FALLBACK_BRAND_CAP = 35
FALLBACK_BRAND_BONUS = 10


def dedupe_brands(names: Iterable[Any]) -> list[str]:
    """
    Drop empty and case-insensitively repeated names, keeping first spelling and order.

    Example:
        >>> dedupe_brands(["HubSpot", "hubspot", " Salesforce ", ""])
        ['HubSpot', 'Salesforce']
    """
    seen: set[str] = set()
    result = []
    for name in names:
        if not isinstance(name, str) or not name.strip():
            continue
        key = name.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(name.strip())
    return result


def fallback_distribution(brands: Sequence[str]) -> dict[str, float]:
    """
    Fixed distribution used when there is nothing to measure.

    The first brand is the target. With N competitors it gets
    min(35, max(15, round_half_up(100 / (N + 1)) + 10)) percent and the
    competitors share the rest evenly to the hundredth (leftover hundredths
    go to the earliest competitors). A lone target gets 100. With exactly
    one competitor the 35 cap would put the competitor ahead, so the cap is
    lifted (60 / 40).

    Example:
        >>> fallback_distribution(["A", "B", "C"])
        {'A': 35.0, 'B': 32.5, 'C': 32.5}
        >>> fallback_distribution(["A", "B"])
        {'A': 60.0, 'B': 40.0}
    """
    if not brands:
        return {}

    competitors = len(brands) - 1
    if competitors == 0:
        return {brands[0]: 100.0}

    uncapped = math.floor(100 / (competitors + 1) + 0.5) + FALLBACK_BRAND_BONUS
    if competitors == 1:
        brand_share = float(uncapped)
    else:
        brand_share = float(min(FALLBACK_BRAND_CAP, max(FALLBACK_BRAND_FLOOR, uncapped)))

    competitor_shares = allocate_hundredths(
        [1.0] * competitors, round((100 - brand_share) * 100)
    )
    distribution = {brands[0]: brand_share}
    distribution.update(zip(brands[1:], competitor_shares, strict=True))
    return distribution


def allocate_hundredths(values: Sequence[float], total: int = 10000) -> list[float]:
    """
    Split `total` hundredths proportionally to `values`.

    Each share is rounded down to a hundredth and the leftover hundredths go
    to the largest remainders (earlier entries win ties), so the two-decimal
    results always add up to exactly total / 100.

    Example:
        >>> allocate_hundredths([1, 1, 1])
        [33.34, 33.33, 33.33]
    """
    weight = sum(values)
    if weight <= 0:
        return [0.0] * len(values)

    exact = [value / weight * total for value in values]
    units = [math.floor(x) for x in exact]
    leftover = total - sum(units)
    by_remainder = sorted(range(len(exact)), key=lambda i: (units[i] - exact[i], i))
    for index in by_remainder[:leftover]:
        units[index] += 1
    return [unit / 100 for unit in units]


def _percentages(values: dict[str, float], brands: Sequence[str]) -> dict[str, float]:
    shares = allocate_hundredths([values.get(name, 0) for name in brands])
    return dict(zip(brands, shares, strict=True))


class ShareOfVoiceAggregator:
    """
    Computes Share of Voice for a brand against its competitors.

    Collaborators default to instances built from `settings`; pass them in
    to share or replace them. The alias registry is frozen on construction,
    so register aliases and domain variants before creating the aggregator.

    Args:
        settings: Pipeline settings (defaults when None)
        registry: Alias registry (AliasRegistry.default() plus settings.aliases when None)
        normalizer: TextNormalizer
        extractor: EntityExtractor (backend from settings when None)
        matcher: BrandAliasMatcher (built on registry when None)
        scorer: MentionScorer
        enricher: SourceEnricher (settings.provenance_weights when None)
        topics: TopicKeywords (settings.topic_keywords when None)
    """

    def __init__(
        self,
        settings: PipelineSettings | None = None,
        registry: AliasRegistry | None = None,
        normalizer: TextNormalizer | None = None,
        extractor: EntityExtractor | None = None,
        matcher: BrandAliasMatcher | None = None,
        scorer: MentionScorer | None = None,
        enricher: SourceEnricher | None = None,
        topics: TopicKeywords | None = None,
    ):
        self.settings = settings or PipelineSettings()
        self.normalizer = normalizer or TextNormalizer()

        if registry is None:
            registry = AliasRegistry.default()
            for brand, aliases in self.settings.aliases.items():
                registry.add_alias(brand, aliases)
        registry.freeze()
        self.registry = registry

        self.extractor = extractor or EntityExtractor(
            create_entity_backend(self.settings), self.normalizer
        )
        self.matcher = matcher or BrandAliasMatcher(self.registry, self.normalizer)
        self.scorer = scorer or MentionScorer(self.normalizer)
        self.enricher = enricher or SourceEnricher(self.settings.provenance_weights)
        self.topics = topics or TopicKeywords(self.settings.topic_keywords)

    def calculate(
        self,
        brand: str,
        competitor_names: Iterable[str] | None,
        source_answers: Iterable[Any] | None,
        topic_context: str | None = None,
        session_id: str | None = None,
    ) -> ShareOfVoiceResult:
        """
        Calculate Share of Voice across brand and competitors.

        Args:
            brand: Target brand name
            competitor_names: Competitor names (deduplicated case-insensitively)
            source_answers: Answers (mappings with text, objects with .text, or strings)
            topic_context: Category id for topic relevance (default keywords if unknown)
            session_id: Analysis session id (generated when None)

        Returns:
            ShareOfVoiceResult; never raises
        """
        session_id = session_id or session_id_from_timestamp()

        try:
            return self._calculate(
                brand, competitor_names, source_answers, topic_context, session_id
            )
        except Exception as e:
            logger.error(
                f"Share of Voice calculation failed, using fallback distribution: {e}",
                exc_info=True,
                extra={"session_id": session_id},
            )
            names = dedupe_brands([brand, *self._safe_list(competitor_names)])
            return self._fallback_result(
                names, CalculationStatus.FALLBACK_ERROR, session_id
            )

    @staticmethod
    def _safe_list(values: Any) -> list:
        if values is None or isinstance(values, str):
            return []
        try:
            return list(values)
        except TypeError:
            return []

    def _calculate(
        self,
        brand: str,
        competitor_names: Iterable[str] | None,
        source_answers: Iterable[Any] | None,
        topic_context: str | None,
        session_id: str,
    ) -> ShareOfVoiceResult:
        if not isinstance(brand, str) or not brand.strip():
            raise CalculationError("Brand name is required for Share of Voice")

        all_brands = dedupe_brands([brand, *(competitor_names or [])])
        sources = self.enricher.enrich(source_answers)

        mentions: list[Mention] = []
        for source in sources:
            mentions.extend(self._collect_mentions(source, all_brands, topic_context))

        kept = self._cap(self._filter(mentions))
        total_score = sum(m.score for m in kept)

        if total_score > 0:
            scores: dict[str, float] = defaultdict(float)
            for mention in kept:
                scores[mention.brand] += mention.score
            counts = Counter(m.brand for m in kept)
            result = self._measured_result(
                all_brands,
                _percentages(scores, all_brands),
                {name: counts.get(name, 0) for name in all_brands},
                "weighted_mentions",
                session_id,
                self._breakdowns(kept),
                kept,
            )
        else:
            occurrences = self._count_occurrences(sources, all_brands)
            if sum(occurrences.values()) > 0:
                result = self._measured_result(
                    all_brands,
                    _percentages(occurrences, all_brands),
                    occurrences,
                    "occurrence_count",
                    session_id,
                    self._breakdowns(kept),
                )
            else:
                logger.warning(
                    "No brand evidence in answers, using fallback distribution",
                    extra={"session_id": session_id},
                )
                return self._fallback_result(
                    all_brands, CalculationStatus.FALLBACK_NO_SIGNAL, session_id
                )

        log_with_context(
            logger,
            logging.INFO,
            f"Share of Voice calculated for {all_brands[0]}",
            context={
                "brand_share": result.brand_share,
                "method": result.calculation_method,
                "sources": len(sources),
                "mentions": len(mentions),
                "kept_mentions": len(kept),
            },
            session_id=session_id,
        )
        return result

    def _collect_mentions(
        self, source: Source, brands: Sequence[str], topic: str | None
    ) -> list[Mention]:
        """Extract, resolve and score every mention in one source."""
        first_paragraph = next(iter(self.normalizer.split_paragraphs(source.text)), None)

        mentions = []
        seen: set[tuple[str, str]] = set()
        for entity in self.extractor.extract_with_context(source.text, brands):
            resolved = self._resolve(entity.text, brands)
            if resolved is None:
                continue
            brand, match_type = resolved

            context = entity.context
            key = (brand.lower(), context)
            if key in seen:
                continue
            seen.add(key)

            scored = self.scorer.score(
                entity.text,
                context,
                text_weight=self.normalizer.weight_of(context),
                is_first_paragraph=context == first_paragraph,
            )
            relevance = self.topics.relevance(context, topic)
            lowered_context = context.lower()

            mention = Mention(
                brand=brand,
                entity=entity.text,
                context=context,
                confidence=scored.confidence,
                match_type=match_type,
                score=scored.score * source.weight * relevance,
                sentiment=scored.sentiment,
                context_type=scored.context_type,
                provenance=source.provenance.value,
                source_weight=source.weight,
                topic_relevance=relevance,
                co_mentions=[
                    other
                    for other in brands
                    if other.lower() != brand.lower()
                    and other.lower() in lowered_context
                ],
                text_weight=scored.text_weight,
                context_weight=scored.context_weight,
                sentiment_multiplier=scored.sentiment_multiplier,
            )
            logger.debug(
                f"Mention {brand} via '{entity.text}' ({match_type}): "
                f"score={mention.score:.3f} context_type={mention.context_type}"
            )
            mentions.append(mention)

        return mentions

    def _resolve(self, entity: str, brands: Sequence[str]) -> tuple[str, str] | None:
        """
        Resolve entity to a brand.

        Substring containment decides first (brand inside entity, or entity
        as whole words of the brand); the first brand in order wins. An
        entity inside the brand must have at least as many words as the
        brand, so "Home" alone never resolves to "Home Depot". Entities with
        no containment hit go to the alias matcher.
        """
        lowered = entity.lower()
        entity_words = len(lowered.split())
        for brand in brands:
            brand_lower = brand.lower()
            if brand_lower in lowered or (
                entity_words >= len(brand_lower.split())
                and re.search(rf"(?<!\w){re.escape(lowered)}(?!\w)", brand_lower)
            ):
                match = self.matcher.resolve(entity, [brand])
                return brand, match.match_type if match else "substring"

        match = self.matcher.resolve(entity, brands)
        if match is None:
            return None
        return match.brand, match.match_type

    def _filter(self, mentions: list[Mention]) -> list[Mention]:
        settings = self.settings
        kept = [
            m
            for m in mentions
            if m.confidence >= settings.min_confidence
            and not (m.sentiment == "negative" and m.score < settings.negative_min_score)
            and m.topic_relevance >= settings.min_topic_relevance
        ]
        if len(kept) < len(mentions):
            logger.debug(f"Filtered out {len(mentions) - len(kept)} weak mentions")
        return kept

    def _cap(self, mentions: list[Mention]) -> list[Mention]:
        capped_scores = cap_outliers(
            [m.score for m in mentions], self.settings.outlier_mad_multiplier
        )
        capped = []
        for mention, score in zip(mentions, capped_scores, strict=True):
            if score < mention.score:
                logger.debug(
                    f"Capped outlier score for {mention.brand}: "
                    f"{mention.score:.3f} -> {score:.3f}"
                )
                mention = replace(mention, score=score)
            capped.append(mention)
        return capped

    def _count_occurrences(
        self, sources: Sequence[Source], brands: Sequence[str]
    ) -> dict[str, int]:
        """Case-insensitive literal occurrence counts across cleaned sources."""
        texts = [self.normalizer.clean(s.text).lower() for s in sources]
        return {
            name: sum(text.count(name.lower()) for text in texts) for name in brands
        }

    def _breakdowns(self, mentions: Sequence[Mention]) -> Breakdowns:
        breakdowns = Breakdowns()
        if not mentions:
            return breakdowns

        summary = self.scorer.aggregate(mentions)
        breakdowns.by_sentiment = summary.sentiment_breakdown
        breakdowns.by_context_type = summary.context_breakdown
        breakdowns.average_confidence = summary.average_confidence

        by_provenance: dict[str, float] = defaultdict(float)
        for mention in mentions:
            by_provenance[mention.provenance] += mention.score
            if mention.co_mentions:
                breakdowns.co_mentions.append(
                    {
                        "brands": [mention.brand, *mention.co_mentions],
                        "context": mention.context,
                        "score": mention.score,
                        "timestamp": mention.timestamp,
                    }
                )

        breakdowns.by_provenance = dict(by_provenance)
        breakdowns.average_topic_relevance = sum(
            m.topic_relevance for m in mentions
        ) / len(mentions)
        breakdowns.high_relevance_mentions = sum(
            1
            for m in mentions
            if m.topic_relevance >= self.settings.high_relevance_threshold
        )
        return breakdowns

    @staticmethod
    def _measured_result(
        brands: Sequence[str],
        shares: dict[str, float],
        counts: dict[str, int],
        method: str,
        session_id: str,
        breakdowns: Breakdowns,
        mentions: list[Mention] | None = None,
    ) -> ShareOfVoiceResult:
        brand_share = shares[brands[0]]
        return ShareOfVoiceResult(
            share_of_voice=shares,
            mention_counts=counts,
            total_mentions=sum(counts.values()),
            brand_share=brand_share,
            ai_visibility_score=brand_share,
            status=CalculationStatus.MEASURED,
            calculation_method=method,
            analysis_session_id=session_id,
            breakdowns=breakdowns,
            mentions=mentions or [],
        )

    @staticmethod
    def _fallback_result(
        brands: Sequence[str], status: CalculationStatus, session_id: str
    ) -> ShareOfVoiceResult:
        shares = fallback_distribution(brands)
        brand_share = shares[brands[0]] if brands else 0.0
        return ShareOfVoiceResult(
            share_of_voice=shares,
            mention_counts=dict.fromkeys(brands, 0),
            total_mentions=0,
            brand_share=brand_share,
            ai_visibility_score=brand_share,
            status=status,
            calculation_method="fallback_distribution",
            analysis_session_id=session_id,
        )


def calculate_share_of_voice(
    brand: str,
    competitor_names: Iterable[str] | None,
    source_answers: Iterable[Any] | None,
    topic_context: str | None = None,
    settings: PipelineSettings | None = None,
    session_id: str | None = None,
) -> ShareOfVoiceResult:
    """
    One-shot convenience wrapper around ShareOfVoiceAggregator.calculate().

    Example:
        >>> result = calculate_share_of_voice(
        ...     "Zomato", ["Swiggy"], ["Zomato and Swiggy both deliver fast."], "food-delivery"
        ... )
        >>> round(sum(result.share_of_voice.values()))
        100
    """
    return ShareOfVoiceAggregator(settings).calculate(
        brand, competitor_names, source_answers, topic_context, session_id
    )
