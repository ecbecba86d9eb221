"""
Extractor module for turning answer text into scored brand mentions.

This module provides the per-text building blocks of the Share of Voice
pipeline: cleaning and segmentation, candidate entity extraction, brand
resolution and mention scoring.

Public API:
    - TextNormalizer: Clean, split and weigh text spans
    - EntityExtractor: Extract candidate entities (regex or spaCy backend)
    - create_entity_backend: Build the backend selected by settings
    - AliasRegistry: Brand -> alias table (freeze before use)
    - BrandAliasMatcher: Resolve entities to brands
    - MentionScorer: Score an entity mention in its context
"""

from sov_watcher.extractor.brand_matcher import (
    AliasRegistry,
    BrandAliasMatcher,
    BrandMatch,
    similarity,
)
from sov_watcher.extractor.entity_extractor import (
    Entity,
    EntityExtractor,
    RegexEntityBackend,
    SpacyEntityBackend,
    create_entity_backend,
    is_valid_entity,
)
from sov_watcher.extractor.mention_scorer import MentionScore, MentionScorer
from sov_watcher.extractor.text_normalizer import SegmentView, TextNormalizer

__all__ = [
    "AliasRegistry",
    "BrandAliasMatcher",
    "BrandMatch",
    "Entity",
    "EntityExtractor",
    "MentionScore",
    "MentionScorer",
    "RegexEntityBackend",
    "SegmentView",
    "SpacyEntityBackend",
    "TextNormalizer",
    "create_entity_backend",
    "is_valid_entity",
    "similarity",
]
