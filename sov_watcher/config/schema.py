"""
Configuration schema models for SOV Watcher.

This module defines Pydantic models for validating the pipeline settings file
and the analysis input file consumed by the CLI. All models use Pydantic v2
field validators.

Models:
    PipelineSettings: Tunable thresholds, backend selection, keyword overrides
    AnswerRecord: One generated answer ({text})
    AnalysisRequest: Brand, competitors, topic and answers for one calculation
"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from .constants import PROVENANCE_WEIGHTS


class PipelineSettings(BaseModel):
    """
    Settings for the Share of Voice pipeline.

    Every field has a default, so an empty settings file (or none at all)
    yields the documented behavior.

    Attributes:
        entity_backend: Which entity recognizer to use - "regex" (pattern
                        rules only) or "spacy" (spaCy pipeline plus patterns)
        spacy_model: spaCy model package loaded by the spacy backend
        min_confidence: Mentions below this confidence are dropped
        negative_min_score: Negative mentions below this score are dropped
        min_topic_relevance: Mentions below this topic relevance are dropped
        outlier_mad_multiplier: Scores above median + k x MAD are clamped
        high_relevance_threshold: Topic relevance counted as "high" in breakdowns
        topic_keywords: Category -> keyword list overrides for topic relevance
        aliases: Brand -> extra aliases registered before the run
        provenance_weights: Provenance tag -> weight

    Example:
        entity_backend: "regex"
        min_confidence: 0.3
        topic_keywords:
          crm: ["crm", "sales", "pipeline"]
        aliases:
          Acme: ["acme corp", "acme.io"]
    """

    entity_backend: Literal["regex", "spacy"] = "regex"
    spacy_model: str = "en_core_web_sm"
    min_confidence: float = 0.3
    negative_min_score: float = 0.5
    min_topic_relevance: float = 0.1
    outlier_mad_multiplier: float = 3.0
    high_relevance_threshold: float = 0.7
    topic_keywords: dict[str, list[str]] = Field(default_factory=dict)
    aliases: dict[str, list[str]] = Field(default_factory=dict)
    provenance_weights: dict[str, float] = Field(
        default_factory=lambda: dict(PROVENANCE_WEIGHTS)
    )

    @field_validator(
        "min_confidence", "min_topic_relevance", "high_relevance_threshold"
    )
    @classmethod
    def validate_unit_interval(cls, v: float) -> float:
        """Validate thresholds expressed as ratios are between 0.0 and 1.0."""
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"value must be between 0.0 and 1.0, got: {v}")
        return v

    @field_validator("negative_min_score")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        """Validate negative_min_score is not below zero."""
        if v < 0:
            raise ValueError(f"negative_min_score cannot be negative, got: {v}")
        return v

    @field_validator("outlier_mad_multiplier")
    @classmethod
    def validate_multiplier(cls, v: float) -> float:
        """Validate outlier_mad_multiplier is positive."""
        if v <= 0:
            raise ValueError(f"outlier_mad_multiplier must be positive, got: {v}")
        return v

    @field_validator("spacy_model")
    @classmethod
    def validate_spacy_model(cls, v: str) -> str:
        """Validate spacy_model is non-empty."""
        if not v or v.isspace():
            raise ValueError("spacy_model cannot be empty")
        return v.strip()

    @field_validator("topic_keywords")
    @classmethod
    def validate_topic_keywords(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        """
        Normalize topic keyword overrides.

        Category ids and keywords are lower-cased and stripped; empty keywords
        are dropped and a category must keep at least one keyword.
        """
        cleaned: dict[str, list[str]] = {}
        for category, keywords in v.items():
            words = [k.strip().lower() for k in keywords if k and not k.isspace()]
            if not words:
                raise ValueError(f"topic_keywords['{category}'] cannot be empty")
            cleaned[category.strip().lower()] = words
        return cleaned

    @field_validator("provenance_weights")
    @classmethod
    def validate_provenance_weights(cls, v: dict[str, float]) -> dict[str, float]:
        """Validate provenance weights are positive."""
        for provenance, weight in v.items():
            if weight <= 0:
                raise ValueError(
                    f"provenance_weights['{provenance}'] must be positive, got: {weight}"
                )
        return v


class AnswerRecord(BaseModel):
    """
    One generated answer to analyze.

    Attributes:
        text: Raw answer text (may contain markup, URLs, emails)
        prompt: Optional prompt that produced the answer (informational)
    """

    text: str = ""
    prompt: str | None = None


class AnalysisRequest(BaseModel):
    """
    Input for one Share of Voice calculation.

    Attributes:
        brand: Target brand name (required)
        competitors: Competitor brand names (deduplicated, order preserved)
        topic: Category identifier used to look up topic keywords
        domain: Optional brand domain; registers domain-variant aliases
        aliases: Brand -> extra aliases for this request
        answers: Generated answers; plain strings are accepted as {text: ...}

    Example:
        brand: "HubSpot"
        competitors: ["Salesforce", "Pipedrive"]
        topic: "crm"
        domain: "hubspot.com"
        answers:
          - text: "HubSpot is the best CRM for small teams."
          - "Salesforce leads the enterprise market."
    """

    brand: str
    competitors: list[str] = []
    topic: str | None = None
    domain: str | None = None
    aliases: dict[str, list[str]] = Field(default_factory=dict)
    answers: list[AnswerRecord] = []

    @field_validator("brand")
    @classmethod
    def validate_brand(cls, v: str) -> str:
        """Validate brand is non-empty."""
        if not v or v.isspace():
            raise ValueError("brand cannot be empty")
        return v.strip()

    @field_validator("competitors")
    @classmethod
    def validate_competitors(cls, v: list[str]) -> list[str]:
        """Remove empty entries and case-insensitive duplicates, keeping order."""
        seen: set[str] = set()
        cleaned = []
        for name in v:
            if not name or name.isspace():
                continue
            key = name.strip().lower()
            if key in seen:
                continue
            seen.add(key)
            cleaned.append(name.strip())
        return cleaned

    @field_validator("answers", mode="before")
    @classmethod
    def coerce_answers(cls, v):
        """Accept plain strings as answer records."""
        if not isinstance(v, list):
            return v
        return [{"text": item} if isinstance(item, str) else item for item in v]

    @model_validator(mode="after")
    def validate_brand_not_competitor(self) -> "AnalysisRequest":
        """Drop the target brand from the competitor list if repeated there."""
        brand_key = self.brand.lower()
        self.competitors = [c for c in self.competitors if c.lower() != brand_key]
        return self
