"""
Candidate entity extraction for SOV Watcher.

This module finds strings in answer text that might name a brand. It unions
three sources of candidates:

1. Known brands found by case-insensitive substring search (returned in the
   caller's own spelling, e.g. "HubSpot")
2. A fixed, ordered set of regex rules (company suffixes, capitalized runs,
   domains, quoted names, "such as X", "alternatives to X", "X vs Y", ...)
3. An EntityBackend: pattern rules only (RegexEntityBackend) or a spaCy
   pipeline (SpacyEntityBackend) selected through PipelineSettings

Candidates are deliberately noisy. Downstream brand resolution decides which
ones actually refer to a tracked brand.

Security:
- Caller-provided names are always passed through re.escape()

Example:
    >>> extractor = EntityExtractor()
    >>> entities = extractor.extract("Try HubSpot or Zoho Corp.", ["HubSpot"])
    >>> {"HubSpot", "Zoho Corp"} <= entities
    True
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Protocol

from ..config.constants import (
    BRAND_INDICATORS,
    COMMON_BRANDS,
    COMPANY_NAME_SUFFIXES,
    COMPANY_SUFFIXES,
    DOMAIN_SUFFIXES,
    STOP_WORDS,
)
from ..config.schema import PipelineSettings
from ..exceptions import EntityBackendError
from .text_normalizer import TextNormalizer

logger = logging.getLogger(__name__)

ENTITY_TYPES = ("known_brand", "domain", "organization", "proper_noun", "unknown")

_SUFFIXES = "|".join(COMPANY_NAME_SUFFIXES)
_TLDS = "ai|com|io|co|tech|app|cloud|digital|online"
# Up to four capitalized tokens following a cue phrase
_NAME = r"([A-Z][\w&-]*(?:\.[a-z]{2,})?(?:\s+[A-Z][\w&-]*(?:\.[a-z]{2,})?){0,3})"

COMPANY_PATTERN = re.compile(rf"\b[A-Z][a-zA-Z]+ (?:{_SUFFIXES})\b")
CAPITALIZED_RUN_PATTERN = re.compile(r"\b[A-Z][\w&-]*(?:\s+[A-Z][\w&-]*){1,3}\b")

ENTITY_PATTERNS = (
    COMPANY_PATTERN,
    re.compile(r"\b[A-Z][a-z]+ [A-Z][a-z]+\b"),
    re.compile(r"\b[A-Za-z0-9-]+\.[A-Za-z]{2,}\b"),
    re.compile(r"\b[A-Z][a-z]+ [A-Z][a-z]+ [A-Z][a-z]+\b"),
    re.compile(r"\b[A-Z][a-zA-Z]{2,}\b"),
    re.compile(rf"\b[A-Za-z]+\.(?:{_TLDS})\b"),
    re.compile(r'"([A-Z][a-zA-Z0-9&]*(?:\s+[a-zA-Z0-9&]+){0,3})"'),
    re.compile(rf"\b(?i:like|such as|including|especially|notably)\s+{_NAME}"),
    re.compile(
        rf"\b(?i:competitors?|alternatives?(?: to)?|similar to|compared to)\s+{_NAME}"
    ),
    re.compile(rf"\b(?i:vs\.?|versus|compared with)\s+{_NAME}"),
)

DOMAIN_TOKEN_PATTERN = re.compile(rf"\.(?:{'|'.join(DOMAIN_SUFFIXES)})$")
NUMERIC_PATTERN = re.compile(r"^\d+$")
PUNCTUATION_ONLY_PATTERN = re.compile(r"^[^\w]+$")
EDGE_PUNCTUATION = " \t\"'`.,;:!?()[]{}*_"


@dataclass
class Entity:
    """
    A candidate entity with the text span it was found in.

    Attributes:
        text: Entity string as extracted
        context: Sentence (or paragraph, or whole cleaned text) containing it
        entity_type: One of known_brand, domain, organization, proper_noun, unknown
    """

    text: str
    context: str
    entity_type: str = "unknown"

    def __post_init__(self):
        """Validate entity_type is a known category."""
        if self.entity_type not in ENTITY_TYPES:
            raise ValueError(
                f"entity_type must be one of {ENTITY_TYPES}, got: {self.entity_type}"
            )


class EntityBackend(Protocol):
    """
    Interface for organization / proper-noun recognizers.

    Implementations don't need to inherit from this class; they only need
    both methods. Each returns raw strings; EntityExtractor tidies and
    validates them.
    """

    def extract_organizations(self, text: str) -> list[str]: ...

    def extract_proper_nouns(self, text: str) -> list[str]: ...


class RegexEntityBackend:
    """Pattern-only backend: company-suffix names and capitalized runs."""

    def extract_organizations(self, text: str) -> list[str]:
        return [m.group(0) for m in COMPANY_PATTERN.finditer(text)]

    def extract_proper_nouns(self, text: str) -> list[str]:
        return [m.group(0) for m in CAPITALIZED_RUN_PATTERN.finditer(text)]


class SpacyEntityBackend:
    """
    spaCy-backed recognizer.

    Organizations are ORG and PRODUCT entities; proper nouns are runs of
    consecutive PROPN tokens. The pipeline is loaded on first use from
    `model_name`, or injected directly via `nlp` (any callable returning a
    spaCy Doc).

    spaCy is an optional dependency: install with `pip install sov-watcher[nlp]`
    and download a model with `python -m spacy download en_core_web_sm`.
    """

    ORGANIZATION_LABELS = ("ORG", "PRODUCT")

    def __init__(self, model_name: str = "en_core_web_sm", nlp: Any = None):
        self.model_name = model_name
        self._nlp = nlp

    def load(self) -> Any:
        """
        Load (once) and return the spaCy pipeline.

        Raises:
            EntityBackendError: If spaCy or the model is not installed
        """
        if self._nlp is not None:
            return self._nlp

        try:
            import spacy
        except ImportError as e:
            raise EntityBackendError(
                "spaCy is not installed. Install it with: pip install 'sov-watcher[nlp]'"
            ) from e

        try:
            self._nlp = spacy.load(self.model_name)
        except OSError as e:
            raise EntityBackendError(
                f"spaCy model '{self.model_name}' is not available. "
                f"Run: python -m spacy download {self.model_name}"
            ) from e

        logger.info(f"Loaded spaCy model: {self.model_name}")
        return self._nlp

    def extract_organizations(self, text: str) -> list[str]:
        doc = self.load()(text)
        return [ent.text for ent in doc.ents if ent.label_ in self.ORGANIZATION_LABELS]

    def extract_proper_nouns(self, text: str) -> list[str]:
        doc = self.load()(text)
        runs: list[str] = []
        current: list[str] = []
        for token in doc:
            if token.pos_ == "PROPN":
                current.append(token.text)
                continue
            if current:
                runs.append(" ".join(current))
                current = []
        if current:
            runs.append(" ".join(current))
        return runs


def create_entity_backend(settings: PipelineSettings | None = None) -> EntityBackend:
    """
    Create the entity backend selected by settings.entity_backend.

    The spaCy pipeline is not loaded here; call SpacyEntityBackend.load() to
    surface a missing model early.

    Args:
        settings: Pipeline settings (defaults used when None)

    Returns:
        RegexEntityBackend or SpacyEntityBackend
    """
    settings = settings or PipelineSettings()
    if settings.entity_backend == "spacy":
        return SpacyEntityBackend(model_name=settings.spacy_model)
    return RegexEntityBackend()


def is_valid_entity(entity: str) -> bool:
    """
    Check whether a candidate string can be an entity at all.

    Rejects strings shorter than 3 characters, purely numeric strings,
    stop words and punctuation-only strings.

    Example:
        >>> is_valid_entity("HubSpot")
        True
        >>> is_valid_entity("2024")
        False
        >>> is_valid_entity("the")
        False
    """
    if not entity or len(entity) < 3:
        return False
    if NUMERIC_PATTERN.match(entity):
        return False
    if entity.lower() in STOP_WORDS:
        return False
    if PUNCTUATION_ONLY_PATTERN.match(entity):
        return False
    return True


def _tidy(candidate: str) -> str:
    """Trim edge punctuation and leading/trailing stop words from a candidate."""
    words = candidate.strip(EDGE_PUNCTUATION).split()
    while words and words[0].lower() in STOP_WORDS:
        words.pop(0)
    while words and words[-1].lower() in STOP_WORDS:
        words.pop()
    return " ".join(words).strip(EDGE_PUNCTUATION)


def extract_domain_from_url(url: str) -> str | None:
    """
    Return the main label of a URL or bare domain.

    Example:
        >>> extract_domain_from_url("https://www.hubspot.com/pricing")
        'hubspot'
        >>> extract_domain_from_url("localhost")
        'localhost'
    """
    if not url:
        return None

    host = re.sub(r"^https?://", "", url.strip(), flags=re.IGNORECASE)
    host = re.sub(r"^www\.", "", host, flags=re.IGNORECASE)
    host = host.split("/", 1)[0]

    parts = host.split(".")
    return parts[0] if len(parts) >= 2 else host or None


class EntityExtractor:
    """
    Extracts candidate brand entities from answer text.

    Args:
        backend: Organization / proper-noun recognizer (RegexEntityBackend if None)
        normalizer: Text normalizer used for context lookup
    """

    def __init__(
        self,
        backend: EntityBackend | None = None,
        normalizer: TextNormalizer | None = None,
    ):
        self.backend = backend or RegexEntityBackend()
        self.normalizer = normalizer or TextNormalizer()

    def extract(self, text: str, known_brands: Iterable[str] = ()) -> set[str]:
        """
        Extract candidate entities from text.

        Args:
            text: Answer text (usually already cleaned)
            known_brands: Brand names to look for by substring

        Returns:
            Set of candidate strings; empty for empty or non-string input
        """
        if not text or not isinstance(text, str):
            return set()

        entities: set[str] = set()

        lowered = text.lower()
        for brand in known_brands:
            if brand and brand.lower() in lowered:
                entities.add(brand)

        for pattern in ENTITY_PATTERNS:
            for match in pattern.finditer(text):
                self._add(entities, match.group(1) if pattern.groups else match.group(0))

        for candidate in self.backend.extract_organizations(text):
            self._add(entities, candidate)
        for candidate in self.backend.extract_proper_nouns(text):
            self._add(entities, candidate)

        logger.debug(f"Extracted {len(entities)} candidate entities")
        return entities

    @staticmethod
    def _add(entities: set[str], candidate: str | None) -> None:
        if not candidate:
            return
        cleaned = _tidy(candidate)
        if is_valid_entity(cleaned):
            entities.add(cleaned)

    def find_context(self, entity: str, text: str) -> str:
        """
        Return the first sentence containing entity, else the first paragraph,
        else the whole cleaned text. Matching is case-insensitive.
        """
        needle = entity.lower()
        for sentence in self.normalizer.split_sentences(text):
            if needle in sentence.lower():
                return sentence
        for paragraph in self.normalizer.split_paragraphs(text):
            if needle in paragraph.lower():
                return paragraph
        return self.normalizer.clean(text)

    def extract_with_context(
        self, text: str, known_brands: Iterable[str] = ()
    ) -> list[Entity]:
        """
        Extract valid entities paired with their context span.

        Results are sorted by entity text so repeated runs are deterministic.
        """
        known = list(known_brands)
        cleaned = self.normalizer.clean(text)
        return [
            Entity(
                text=entity,
                context=self.find_context(entity, text),
                entity_type=self.entity_type(entity, known),
            )
            for entity in sorted(self.extract(cleaned, known))
            if is_valid_entity(entity)
        ]

    def extract_domain_entities(
        self, text: str, target_domain: str, brand_name: str
    ) -> set[str]:
        """
        Find mentions of a brand's domain variants.

        Matches the domain base ("acme" for "acme.io"), the brand name, the
        base with any common TLD, and "<brand> platform/tool/service/app/software".
        Results are lower-cased.

        Example:
            >>> EntityExtractor().extract_domain_entities(
            ...     "Acme.io and the Acme platform", "acme.io", "Acme"
            ... ) == {"acme", "acme.io", "acme platform"}
            True
        """
        if not text or not target_domain or not brand_name:
            return set()

        tlds = "|".join(DOMAIN_SUFFIXES)
        base = re.escape(re.sub(rf"\.(?:{tlds})$", "", target_domain.lower()))
        brand = re.escape(brand_name)

        patterns = (
            rf"\b{base}\b",
            rf"\b{brand}\b",
            rf"\b{base}\.(?:{tlds})\b",
            rf"\b{brand}\s+(?:platform|tool|service|app|software)\b",
        )

        found: set[str] = set()
        for pattern in patterns:
            for match in re.finditer(pattern, text, re.IGNORECASE):
                found.add(match.group(0).lower())
        return found

    def is_likely_brand(self, entity: str) -> bool:
        """
        Heuristic: well-known brand, brand-indicator word, domain suffix,
        or company suffix token.
        """
        if not entity:
            return False

        normalized = entity.lower()
        if normalized in COMMON_BRANDS:
            return True

        words = set(re.findall(r"[a-z0-9-]+", normalized))
        if words & set(BRAND_INDICATORS):
            return True
        if DOMAIN_TOKEN_PATTERN.search(normalized):
            return True
        return bool(words & set(COMPANY_SUFFIXES))

    def entity_type(self, entity: str, known_brands: Iterable[str] = ()) -> str:
        """Classify an entity into one of ENTITY_TYPES."""
        if not entity:
            return "unknown"

        normalized = entity.lower()
        known = {b.lower() for b in known_brands}
        if normalized in known or normalized in COMMON_BRANDS:
            return "known_brand"
        if DOMAIN_TOKEN_PATTERN.search(normalized):
            return "domain"
        if COMPANY_PATTERN.fullmatch(entity):
            return "organization"
        if entity[0].isupper():
            return "proper_noun"
        return "unknown"
