"""
Share of Voice module: sources in, percentages out.

Public API:
    - ShareOfVoiceAggregator: Full pipeline for one calculation
    - calculate_share_of_voice: One-shot convenience function
    - ShareOfVoiceResult: Percentages, counts, status and breakdowns
    - CalculationStatus: MEASURED / FALLBACK_NO_SIGNAL / FALLBACK_ERROR
    - SourceEnricher, Source, Provenance: Input wrapping
    - Mention, Breakdowns: Per-mention records and summaries
"""

from sov_watcher.sov.aggregator import (
    ShareOfVoiceAggregator,
    calculate_share_of_voice,
    fallback_distribution,
)
from sov_watcher.sov.models import (
    Breakdowns,
    CalculationStatus,
    Mention,
    Provenance,
    ShareOfVoiceResult,
    Source,
)
from sov_watcher.sov.sources import SourceEnricher
from sov_watcher.sov.topics import TopicKeywords

__all__ = [
    "Breakdowns",
    "CalculationStatus",
    "Mention",
    "Provenance",
    "ShareOfVoiceAggregator",
    "ShareOfVoiceResult",
    "Source",
    "SourceEnricher",
    "TopicKeywords",
    "calculate_share_of_voice",
    "fallback_distribution",
]
