"""
Brand alias registry and entity-to-brand resolution for SOV Watcher.

AliasRegistry holds canonical brand names and their known aliases. It is an
explicit object passed to BrandAliasMatcher: build it, register aliases and
domain variants, then freeze() it before calculations start.

BrandAliasMatcher resolves a candidate entity against a list of brands using
five heuristics and keeps the highest-confidence candidate:

    exact       normalized equality                          1.0
    alias       entity equals a registered alias              0.9
    partial     containment and similarity > 0.6              similarity
    word-based  multi-word token overlap > 0.5                overlap x 0.8
    domain      same domain label before the first "."        0.85

Similarity is (maxLen - levenshtein) / maxLen, using rapidfuzz.

Example:
    >>> registry = AliasRegistry.default()
    >>> registry.add_alias("HubSpot", ["hub spot crm"])
    >>> registry.freeze()
    >>> matcher = BrandAliasMatcher(registry)
    >>> match = matcher.resolve("Hub Spot CRM", ["HubSpot", "Salesforce"])
    >>> match.brand, match.match_type, match.confidence
    ('HubSpot', 'alias', 0.9)
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass

from rapidfuzz.distance import Levenshtein

from ..config.constants import COMPANY_NAME_SUFFIXES, DOMAIN_SUFFIXES
from ..exceptions import AliasRegistryFrozenError
from .text_normalizer import TextNormalizer

logger = logging.getLogger(__name__)

MATCH_TYPES = ("exact", "alias", "partial", "word-based", "domain")

EXACT_CONFIDENCE = 1.0
ALIAS_CONFIDENCE = 0.9
DOMAIN_CONFIDENCE = 0.85
WORD_MATCH_FACTOR = 0.8
MIN_PARTIAL_SIMILARITY = 0.6
MIN_WORD_OVERLAP = 0.5

DEFAULT_BRAND_ALIASES: dict[str, list[str]] = {
    "google": ["google", "google inc", "google llc", "google corporation", "alphabet", "alphabet inc"],
    "microsoft": ["microsoft", "microsoft corporation", "ms", "msft"],
    "apple": ["apple", "apple inc", "apple computer", "iphone", "ipad", "mac"],
    "amazon": ["amazon", "amazon.com", "amazon inc", "aws", "amazon web services"],
    "facebook": ["facebook", "meta", "meta platforms", "instagram", "whatsapp"],
    "meta": ["meta", "meta platforms", "facebook", "instagram", "whatsapp"],
    "twitter": ["twitter", "x", "x corp", "tweet"],
    "linkedin": ["linkedin", "linkedin corporation", "microsoft linkedin"],
    "netflix": ["netflix", "netflix inc", "netflix streaming"],
    "spotify": ["spotify", "spotify technology", "spotify music"],
    "uber": ["uber", "uber technologies", "uber eats"],
    "lyft": ["lyft", "lyft inc", "lyft ride"],
    "airbnb": ["airbnb", "airbnb inc", "air bed and breakfast"],
    "slack": ["slack", "slack technologies", "salesforce slack"],
    "zoom": ["zoom", "zoom video communications", "zoom meeting"],
    "dropbox": ["dropbox", "dropbox inc", "dropbox storage"],
    "salesforce": ["salesforce", "salesforce.com", "salesforce inc", "sfdc", "sales force"],
    "adobe": ["adobe", "adobe inc", "adobe systems", "photoshop", "illustrator"],
    "oracle": ["oracle", "oracle corporation", "oracle database"],
    "ibm": ["ibm", "international business machines", "ibm corporation"],
    "intel": ["intel", "intel corporation", "intel processor"],
    "cisco": ["cisco", "cisco systems", "cisco networking"],
    "dell": ["dell", "dell technologies", "dell computer"],
    "hp": ["hp", "hewlett packard", "hp inc", "hewlett packard enterprise"],
    "samsung": ["samsung", "samsung electronics", "samsung mobile"],
    "sony": ["sony", "sony corporation", "sony electronics"],
    "nike": ["nike", "nike inc", "nike shoes"],
    "adidas": ["adidas", "adidas ag", "adidas sportswear"],
    "coca-cola": ["coca-cola", "coca cola", "coke", "coca cola company"],
    "pepsi": ["pepsi", "pepsico", "pepsi cola"],
    "mcdonalds": ["mcdonalds", "mcdonalds corporation", "mcdonalds restaurant"],
    "starbucks": ["starbucks", "starbucks corporation", "starbucks coffee"],
    "walmart": ["walmart", "walmart inc", "walmart store"],
    "target": ["target", "target corporation", "target store"],
    "home depot": ["home depot", "the home depot", "home depot store"],
    "lowes": ["lowes", "lowes companies", "lowes home improvement"],
    "best buy": ["best buy", "best buy co", "best buy store"],
    "oneshot.ai": ["oneshot.ai", "oneshot", "one shot", "one shot ai", "oneshot ai", "one-shot", "one-shot.ai"],
    "hubspot": ["hubspot", "hub spot", "hubspot inc", "hub spot inc"],
    "outreach": ["outreach", "outreach.io", "outreach inc"],
    "zoominfo": ["zoominfo", "zoom info", "zoom.info", "zoominfo inc", "zoom info inc"],
    "discoverorg": ["discoverorg", "discover org", "discoverorg inc", "discover org inc"],
    "swiggy": ["swiggy", "swiggy.com", "swiggy.in", "swiggy app", "swiggy food delivery"],
    "zomato": ["zomato", "zomato.com", "zomato.in", "zomato app", "zomato food delivery"],
    "uber eats": ["uber eats", "ubereats", "uber eats app", "uber food delivery"],
    "foodpanda": ["foodpanda", "foodpanda.com", "foodpanda app", "food panda"],
    "dunzo": ["dunzo", "dunzo.com", "dunzo app", "dunzo delivery"],
    "bigbasket": ["bigbasket", "bigbasket.com", "big basket", "bigbasket grocery"],
    "grofers": ["grofers", "grofers.com", "grofer", "grofers grocery"],
    "blinkit": ["blinkit", "blinkit.com", "blink it", "blinkit grocery"],
    "zepto": ["zepto", "zepto.in", "zepto grocery", "zepto delivery"],
}

# Words inside an entity that suggest it names a business
BUSINESS_WORDS = frozenset(s.lower() for s in COMPANY_NAME_SUFFIXES) | {
    "enterprises",
    "hub",
    "store",
    "shop",
    "retail",
    "commerce",
}
# Words in a context that suggest a business is being discussed
BUSINESS_CONTEXT_WORDS = (
    "brand", "company", "firm", "organization", "business", "enterprise",
    "platform", "service", "tool", "software", "app", "application",
    "solution", "system", "technology", "tech", "digital", "online",
)

DOMAIN_SUFFIX_PATTERN = re.compile(rf"\.(?:{'|'.join(DOMAIN_SUFFIXES)})$")

_normalizer = TextNormalizer()


def normalize_brand_name(name: str) -> str:
    """
    Normalize a brand name for comparison.

    Example:
        >>> normalize_brand_name("  Zoom.info, Inc ")
        'zoom info inc'
    """
    return _normalizer.normalize(name)


def similarity(a: str, b: str) -> float:
    """
    Edit-distance similarity in [0, 1].

    Example:
        >>> similarity("hubspot", "hubspot")
        1.0
        >>> round(similarity("hubspot", "hubspot crm"), 2)
        0.64
    """
    if not a or not b:
        return 0.0
    longest = max(len(a), len(b))
    return (longest - Levenshtein.distance(a, b)) / longest


def _domain_label(value: str) -> str | None:
    """Return the part before the first '.', or None when value has no dot."""
    if "." not in value:
        return None
    label = value.split(".", 1)[0].strip()
    return label or None


@dataclass
class BrandMatch:
    """
    Result of resolving an entity to a brand.

    Attributes:
        brand: Brand name as given by the caller (display spelling)
        entity: Entity text that was resolved
        confidence: Match confidence (0.0-1.0)
        match_type: One of exact, alias, partial, word-based, domain
    """

    brand: str
    entity: str
    confidence: float
    match_type: str

    def __post_init__(self):
        """Validate match_type and confidence range."""
        if self.match_type not in MATCH_TYPES:
            raise ValueError(
                f"match_type must be one of {MATCH_TYPES}, got: {self.match_type}"
            )
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(
                f"confidence must be between 0.0 and 1.0, got: {self.confidence}"
            )


class AliasRegistry:
    """
    Canonical brand -> ordered alias list.

    Keys and aliases are stored normalized (lower-case, punctuation as
    spaces). After freeze() the registry is read-only and safe to share.
    """

    def __init__(self, aliases: dict[str, Iterable[str]] | None = None):
        self._aliases: dict[str, list[str]] = {}
        self._frozen = False
        for brand, brand_aliases in (aliases or {}).items():
            self.add_alias(brand, brand_aliases)

    @classmethod
    def default(cls) -> "AliasRegistry":
        """Registry seeded with well-known companies and sector brands."""
        return cls(DEFAULT_BRAND_ALIASES)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """End the configuration phase. Further mutation raises."""
        self._frozen = True

    def _check_mutable(self) -> None:
        if self._frozen:
            raise AliasRegistryFrozenError(
                "Alias registry is frozen; register aliases before calculating"
            )

    def add_alias(self, brand: str, aliases: Iterable[str]) -> None:
        """
        Register aliases for a brand, keeping insertion order and skipping duplicates.

        Raises:
            AliasRegistryFrozenError: If the registry is frozen
        """
        self._check_mutable()

        key = normalize_brand_name(brand)
        if not key:
            raise ValueError("Brand name cannot be empty")

        existing = self._aliases.setdefault(key, [key])
        for alias in aliases:
            normalized = normalize_brand_name(alias)
            if normalized and normalized not in existing:
                existing.append(normalized)

    def add_domain_variants(self, domain: str, brand: str) -> None:
        """
        Register the usual spellings of a brand's domain.

        For domain "acme.io" and brand "Acme" this adds: acme, acme.io,
        "acme acme.io", "acme platform", "acme tool", "acme service".

        Raises:
            AliasRegistryFrozenError: If the registry is frozen
        """
        lowered = brand.lower().strip()
        domain = domain.lower().strip()
        base = DOMAIN_SUFFIX_PATTERN.sub("", domain)
        self.add_alias(
            brand,
            [
                lowered,
                base,
                domain,
                f"{lowered} {domain}",
                f"{lowered} platform",
                f"{lowered} tool",
                f"{lowered} service",
            ],
        )

    def aliases_for(self, brand: str) -> tuple[str, ...]:
        """Aliases of brand (normalized); just the brand itself when unregistered."""
        key = normalize_brand_name(brand)
        return tuple(self._aliases.get(key, [key]))

    def is_known(self, entity: str) -> bool:
        """True if entity equals any registered alias."""
        normalized = normalize_brand_name(entity)
        if not normalized:
            return False
        return any(normalized in aliases for aliases in self._aliases.values())

    def __contains__(self, brand: str) -> bool:
        return normalize_brand_name(brand) in self._aliases

    def __len__(self) -> int:
        return len(self._aliases)


class BrandAliasMatcher:
    """
    Resolves entities to one of a set of candidate brands.

    Args:
        registry: Alias registry (AliasRegistry.default() when None)
        normalizer: Text normalizer used for context checks
    """

    def __init__(
        self,
        registry: AliasRegistry | None = None,
        normalizer: TextNormalizer | None = None,
    ):
        self.registry = registry if registry is not None else AliasRegistry.default()
        self.normalizer = normalizer or _normalizer

    def resolve(self, entity: str, candidate_brands: Iterable[str]) -> BrandMatch | None:
        """
        Resolve entity to the best-matching brand.

        All heuristics contribute candidates; the highest confidence wins and
        ties keep the first one found (brand order, then heuristic order).

        Args:
            entity: Candidate entity text
            candidate_brands: Brands to match against, in priority order

        Returns:
            BrandMatch, or None if no heuristic matched
        """
        normalized_entity = normalize_brand_name(entity)
        brands = list(candidate_brands)
        if not normalized_entity or not brands:
            return None

        matches: list[BrandMatch] = []
        for brand in brands:
            matches.extend(self._match_brand(entity, normalized_entity, brand))

        if not matches:
            logger.debug(f"No brand match for entity '{entity}'")
            return None

        best = matches[0]
        for match in matches[1:]:
            if match.confidence > best.confidence:
                best = match

        logger.debug(
            f"Entity '{entity}' resolved to '{best.brand}' "
            f"({best.match_type}, {best.confidence:.2f})"
        )
        return best

    def _match_brand(
        self, entity: str, normalized_entity: str, brand: str
    ) -> list[BrandMatch]:
        normalized_brand = normalize_brand_name(brand)
        if not normalized_brand:
            return []

        if normalized_entity == normalized_brand:
            return [BrandMatch(brand, entity, EXACT_CONFIDENCE, "exact")]

        found: list[BrandMatch] = []

        if normalized_entity in self.registry.aliases_for(brand):
            found.append(BrandMatch(brand, entity, ALIAS_CONFIDENCE, "alias"))

        if normalized_entity in normalized_brand or normalized_brand in normalized_entity:
            score = similarity(normalized_entity, normalized_brand)
            if score > MIN_PARTIAL_SIMILARITY:
                found.append(BrandMatch(brand, entity, score, "partial"))

        entity_words = normalized_entity.split()
        brand_words = normalized_brand.split()
        if len(entity_words) > 1 or len(brand_words) > 1:
            overlap = sum(
                1
                for word in entity_words
                if any(word == b or word in b or b in word for b in brand_words)
            )
            ratio = overlap / max(len(entity_words), len(brand_words))
            if ratio > MIN_WORD_OVERLAP:
                found.append(
                    BrandMatch(brand, entity, ratio * WORD_MATCH_FACTOR, "word-based")
                )

        entity_label = _domain_label(entity.lower())
        brand_label = _domain_label(brand.lower())
        if entity_label or brand_label:
            entity_label = entity_label or normalized_entity
            brand_label = brand_label or normalized_brand
            if entity_label == brand_label:
                found.append(BrandMatch(brand, entity, DOMAIN_CONFIDENCE, "domain"))

        return found

    def is_brand_mention(self, entity: str, context: str = "") -> bool:
        """
        Heuristic: is entity a brand at all?

        True for registered aliases, entities containing a business word
        ("Acme Labs", "Widget Store"), or any entity whose context talks
        about companies, platforms or tools.
        """
        if not entity:
            return False

        if self.registry.is_known(entity):
            return True

        normalized = normalize_brand_name(entity)
        if set(normalized.split()) & BUSINESS_WORDS:
            return True

        if context:
            words = set(normalize_brand_name(context).split())
            return any(keyword in words for keyword in BUSINESS_CONTEXT_WORDS)

        return False

    def brand_confidence(self, entity: str, context: str = "") -> float:
        """
        Confidence that entity is a brand, independent of any candidate list.

        0.3 base; +0.4 registered alias; +0.2 domain suffix; +0.15 company
        suffix word; +0.1 important context; +0.1 longer than 8 characters.
        Capped at 1.0.
        """
        if not entity:
            return 0.0

        confidence = 0.3
        normalized = normalize_brand_name(entity)

        if self.registry.is_known(entity):
            confidence += 0.4

        if DOMAIN_SUFFIX_PATTERN.search(entity.lower().strip()):
            confidence += 0.2

        if set(normalized.split()) & BUSINESS_WORDS:
            confidence += 0.15

        if context and self.normalizer.is_important_context(context):
            confidence += 0.1

        if len(normalized) > 8:
            confidence += 0.1

        return min(1.0, confidence)
