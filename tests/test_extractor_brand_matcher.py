"""
Tests for extractor.brand_matcher module.

Covers the alias registry lifecycle (configure, freeze), the five resolution
heuristics, tie-breaking, and the brand-likeness helpers.
"""

import pytest

from sov_watcher.exceptions import AliasRegistryFrozenError
from sov_watcher.extractor.brand_matcher import (
    AliasRegistry,
    BrandAliasMatcher,
    BrandMatch,
    normalize_brand_name,
    similarity,
)


@pytest.fixture
def matcher():
    registry = AliasRegistry.default()
    registry.freeze()
    return BrandAliasMatcher(registry)


class TestAliasRegistry:
    """Tests for AliasRegistry."""

    def test_stores_normalized_aliases(self):
        registry = AliasRegistry({"HubSpot": ["Hub Spot", "HubSpot, Inc."]})
        assert "hubspot" in registry
        assert "HUBSPOT" in registry
        assert len(registry) == 1
        assert registry.aliases_for("HubSpot") == ("hubspot", "hub spot", "hubspot inc")

    def test_unregistered_brand_aliases_itself(self):
        assert AliasRegistry().aliases_for("Pipedrive") == ("pipedrive",)

    def test_add_alias_skips_duplicates(self):
        registry = AliasRegistry()
        registry.add_alias("Acme", ["acme corp", "Acme Corp", ""])
        assert registry.aliases_for("Acme") == ("acme", "acme corp")

    def test_empty_brand_rejected(self):
        with pytest.raises(ValueError, match="empty"):
            AliasRegistry().add_alias("  ", ["x"])

    def test_default_registry_has_known_brands(self):
        registry = AliasRegistry.default()
        assert "salesforce" in registry
        assert "sfdc" in registry.aliases_for("Salesforce")
        assert registry.is_known("Amazon Web Services")
        assert not registry.is_known("Totally Unknown Brand")
        assert not registry.is_known("")

    def test_domain_variants_merge_with_existing_aliases(self):
        """Test that domain variants add to, never replace, registered aliases."""
        registry = AliasRegistry()
        registry.add_alias("Acme", ["acme corp"])
        registry.add_domain_variants("Acme.io", "Acme")

        aliases = registry.aliases_for("Acme")
        assert "acme corp" in aliases
        for expected in ("acme", "acme io", "acme acme io", "acme platform", "acme tool", "acme service"):
            assert expected in aliases

    def test_frozen_registry_rejects_mutation(self):
        registry = AliasRegistry()
        assert not registry.frozen
        registry.freeze()
        assert registry.frozen

        with pytest.raises(AliasRegistryFrozenError):
            registry.add_alias("Acme", ["acme corp"])
        with pytest.raises(AliasRegistryFrozenError):
            registry.add_domain_variants("acme.io", "Acme")

    def test_frozen_registry_still_readable(self):
        registry = AliasRegistry({"Acme": ["acme corp"]})
        registry.freeze()
        assert registry.is_known("Acme Corp")


class TestSimilarity:
    """Tests for similarity() and normalize_brand_name()."""

    def test_identical(self):
        assert similarity("hubspot", "hubspot") == 1.0

    def test_empty(self):
        assert similarity("", "hubspot") == 0.0

    def test_partial(self):
        assert similarity("hubspot", "hubspot crm") == pytest.approx(7 / 11)

    def test_normalize_brand_name(self):
        assert normalize_brand_name("  Zoom.info, Inc ") == "zoom info inc"


class TestResolve:
    """Tests for BrandAliasMatcher.resolve()."""

    def test_exact_match_keeps_display_spelling(self, matcher):
        match = matcher.resolve("hubspot", ["HubSpot"])
        assert match == BrandMatch("HubSpot", "hubspot", 1.0, "exact")

    def test_google_exact(self, matcher):
        match = matcher.resolve("Google", ["Google"])
        assert (match.match_type, match.confidence) == ("exact", 1.0)

    def test_alphabet_is_google_alias(self, matcher):
        match = matcher.resolve("Alphabet Inc", ["Google"])
        assert (match.brand, match.match_type, match.confidence) == ("Google", "alias", 0.9)

    def test_registered_alias(self):
        registry = AliasRegistry.default()
        registry.add_alias("HubSpot", ["hub spot crm"])
        registry.freeze()
        match = BrandAliasMatcher(registry).resolve("Hub Spot CRM", ["HubSpot", "Salesforce"])
        assert (match.brand, match.match_type, match.confidence) == ("HubSpot", "alias", 0.9)

    def test_default_alias(self, matcher):
        match = matcher.resolve("SFDC", ["HubSpot", "Salesforce"])
        assert match.brand == "Salesforce"
        assert match.match_type == "alias"

    def test_partial_match(self, matcher):
        match = matcher.resolve("HubSpot CRM", ["HubSpot"])
        assert match.match_type == "partial"
        assert match.confidence == pytest.approx(7 / 11)

    def test_word_based_match(self, matcher):
        match = matcher.resolve("Acme Cloud Systems", ["Acme Cloud"])
        assert match.match_type == "word-based"
        assert match.confidence == pytest.approx(2 / 3 * 0.8)

    def test_domain_match(self, matcher):
        match = matcher.resolve("acme.io", ["Acme"])
        assert match.match_type == "domain"
        assert match.confidence == 0.85

    def test_domain_variant_alias(self):
        registry = AliasRegistry()
        registry.add_domain_variants("warmly.io", "Warmly")
        registry.freeze()
        match = BrandAliasMatcher(registry).resolve("Warmly platform", ["Warmly"])
        assert match.match_type == "alias"

    def test_highest_confidence_wins(self, matcher):
        """Test that the alias hit (0.9) beats the word-based hit (0.8)."""
        match = matcher.resolve("Zoom Info", ["Zoom", "ZoomInfo"])
        assert match.brand == "ZoomInfo"
        assert match.match_type == "alias"
        assert match.confidence == 0.9

    def test_tie_keeps_first_brand(self, matcher):
        match = matcher.resolve("acme", ["Acme", "ACME"])
        assert match.brand == "Acme"

    def test_no_match(self, matcher):
        assert matcher.resolve("Zendesk", ["HubSpot", "Salesforce"]) is None

    def test_empty_inputs(self, matcher):
        assert matcher.resolve("", ["HubSpot"]) is None
        assert matcher.resolve("HubSpot", []) is None

    def test_match_validation(self):
        with pytest.raises(ValueError, match="match_type"):
            BrandMatch("A", "a", 1.0, "fuzzy")
        with pytest.raises(ValueError, match="confidence"):
            BrandMatch("A", "a", 1.5, "exact")


class TestBrandHeuristics:
    """Tests for is_brand_mention() and brand_confidence()."""

    def test_known_alias_is_brand(self, matcher):
        assert matcher.is_brand_mention("salesforce")

    def test_business_word_is_brand(self, matcher):
        assert matcher.is_brand_mention("Acme Labs")

    def test_business_context_makes_brand(self, matcher):
        assert matcher.is_brand_mention("Zendesk", "a great software tool for support")
        assert not matcher.is_brand_mention("Zendesk")
        assert not matcher.is_brand_mention("")

    def test_confidence_base(self, matcher):
        assert matcher.brand_confidence("Zendesk") == pytest.approx(0.3)

    def test_confidence_known_domain(self, matcher):
        assert matcher.brand_confidence("salesforce.com") == pytest.approx(1.0)

    def test_confidence_business_word_and_context(self, matcher):
        confidence = matcher.brand_confidence("Acme Labs", "the best tools")
        assert confidence == pytest.approx(0.3 + 0.15 + 0.1 + 0.1)

    def test_confidence_empty(self, matcher):
        assert matcher.brand_confidence("") == 0.0
