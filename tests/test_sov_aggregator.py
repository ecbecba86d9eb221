"""
Tests for sov.aggregator module.

Covers the three calculation branches (weighted mentions, occurrence count,
fallback distribution), failure conversion, filtering, outlier capping and
the result properties callers rely on:

- Measured percentages sum to 100 (+/- 0.1)
- The fallback split sums to 100 and favors the target brand for N <= 3
- Identical inputs give identical percentages
"""

import logging

import pytest
from freezegun import freeze_time

from sov_watcher.config.schema import PipelineSettings
from sov_watcher.extractor.brand_matcher import AliasRegistry
from sov_watcher.sov.aggregator import (
    ShareOfVoiceAggregator,
    allocate_hundredths,
    calculate_share_of_voice,
    dedupe_brands,
    fallback_distribution,
)
from sov_watcher.sov.models import CalculationStatus, Mention

CRM_ANSWERS = [
    {
        "text": (
            "# Best CRM Software for Small Businesses\n\n"
            "HubSpot is the best CRM for small teams thanks to its free tier.\n\n"
            "1. HubSpot - great free plan and easy contact management\n"
            "2. Salesforce - powerful but expensive for small teams\n"
            "3. Pipedrive - simple deal tracking for sales teams"
        )
    },
    {
        "text": (
            "Salesforce remains the leading CRM platform for enterprise sales. "
            "Pipedrive is a good choice for pipeline management."
        )
    },
    "Many startups recommend HubSpot for its free CRM and marketing tools.",
]


@pytest.fixture
def aggregator():
    return ShareOfVoiceAggregator()


def make_mention(brand="HubSpot", score=1.0, **overrides):
    fields = {
        "brand": brand,
        "entity": brand,
        "context": f"{brand} is a CRM.",
        "confidence": 0.5,
        "match_type": "exact",
        "score": score,
    }
    fields.update(overrides)
    return Mention(**fields)


class TestDedupeBrands:
    """Tests for dedupe_brands()."""

    def test_case_insensitive_order_preserving(self):
        assert dedupe_brands(["HubSpot", "hubspot", " Salesforce ", ""]) == [
            "HubSpot",
            "Salesforce",
        ]

    def test_skips_non_strings(self):
        assert dedupe_brands(["A", None, 3, "B"]) == ["A", "B"]


class TestFallbackDistribution:
    """Tests for fallback_distribution()."""

    def test_lone_brand_gets_everything(self):
        assert fallback_distribution(["HubSpot"]) == {"HubSpot": 100.0}

    def test_one_competitor_lifts_cap(self):
        assert fallback_distribution(["A", "B"]) == {"A": 60.0, "B": 40.0}

    def test_two_competitors_capped_at_35(self):
        assert fallback_distribution(["A", "B", "C"]) == {"A": 35.0, "B": 32.5, "C": 32.5}

    def test_rounds_half_up(self):
        """Test that 100 / 8 = 12.5 rounds to 13 (not banker's 12)."""
        brands = [f"B{i}" for i in range(8)]
        assert fallback_distribution(brands)["B0"] == 23.0

    def test_floor_at_15(self):
        brands = [f"B{i}" for i in range(100)]
        assert fallback_distribution(brands)["B0"] == 15.0

    @pytest.mark.parametrize("competitors", range(0, 25))
    def test_sums_to_100(self, competitors):
        brands = ["Target"] + [f"C{i}" for i in range(competitors)]
        assert abs(sum(fallback_distribution(brands).values()) - 100) <= 0.1

    @pytest.mark.parametrize("competitors", [1, 2, 3])
    def test_target_ahead_of_every_competitor(self, competitors):
        brands = ["Target"] + [f"C{i}" for i in range(competitors)]
        shares = fallback_distribution(brands)
        assert all(shares["Target"] > shares[c] for c in brands[1:])

    def test_empty(self):
        assert fallback_distribution([]) == {}

    def test_many_competitors_split_to_the_hundredth(self):
        """Test that leftover hundredths go to the earliest competitors."""
        brands = ["Target"] + [f"C{i}" for i in range(23)]
        shares = fallback_distribution(brands)

        assert shares["Target"] == 15.0
        assert sum(round(share * 100) for share in shares.values()) == 10000
        assert shares["C0"] == 3.7
        assert shares["C22"] == 3.69
        units = [round(shares[c] * 100) for c in brands[1:]]
        assert max(units) - min(units) == 1


class TestAllocateHundredths:
    """Tests for allocate_hundredths()."""

    def test_equal_thirds(self):
        assert allocate_hundredths([1, 1, 1]) == [33.34, 33.33, 33.33]

    def test_largest_remainder_gets_leftover(self):
        # exact: 45.4545..., 54.5454...
        assert allocate_hundredths([5, 6]) == [45.45, 54.55]

    def test_zero_weight_gets_nothing(self):
        assert allocate_hundredths([3, 0, 1]) == [75.0, 0.0, 25.0]

    def test_custom_total(self):
        assert allocate_hundredths([1, 1, 1], total=6500) == [21.67, 21.67, 21.66]

    def test_no_weight(self):
        assert allocate_hundredths([0, 0]) == [0.0, 0.0]

    @pytest.mark.parametrize("count", [2, 7, 23, 30, 101])
    def test_always_exactly_100(self, count):
        values = [(i % 5) + 0.37 * i for i in range(1, count + 1)]
        shares = allocate_hundredths(values)
        assert sum(round(share * 100) for share in shares) == 10000
        assert all(round(share, 2) == share for share in shares)


class TestCalculateMeasured:
    """Tests for the weighted-mentions branch."""

    def test_measures_weighted_mentions(self, aggregator):
        result = aggregator.calculate(
            "HubSpot",
            ["Salesforce"],
            [{"text": "HubSpot is the best CRM for startups. Salesforce is costly."}],
            "crm",
        )

        assert result.status is CalculationStatus.MEASURED
        assert result.is_measured
        assert result.calculation_method == "weighted_mentions"
        assert abs(sum(result.share_of_voice.values()) - 100) <= 0.1
        assert result.share_of_voice["HubSpot"] >= result.share_of_voice["Salesforce"]
        assert result.brand_share == result.share_of_voice["HubSpot"]
        assert result.ai_visibility_score == result.brand_share

    def test_realistic_answers(self, aggregator):
        result = aggregator.calculate(
            "HubSpot", ["Salesforce", "Pipedrive"], CRM_ANSWERS, "crm"
        )

        assert result.is_measured
        assert list(result.share_of_voice) == ["HubSpot", "Salesforce", "Pipedrive"]
        assert abs(sum(result.share_of_voice.values()) - 100) <= 0.1
        assert result.total_mentions == sum(result.mention_counts.values())
        assert result.mention_counts["HubSpot"] > 0
        assert all(m.score > 0 for m in result.mentions)
        assert all(0.2 <= m.topic_relevance <= 1.0 for m in result.mentions)

    @pytest.mark.parametrize(
        "answers",
        [
            ["Zomato and Swiggy both deliver fast."],
            ["Swiggy is the top choice. Zomato is also popular. Dunzo is niche."],
            ["<p>Zomato</p><p>Swiggy has great food delivery and fast service.</p>"],
            ["zomato.com vs swiggy.in: which food delivery app is better?"],
        ],
    )
    def test_percentages_sum_to_100(self, aggregator, answers):
        result = aggregator.calculate("Zomato", ["Swiggy", "Dunzo"], answers, "food-delivery")
        assert result.is_measured
        assert abs(sum(result.share_of_voice.values()) - 100) <= 0.1

    def test_co_mentions_recorded(self, aggregator):
        result = aggregator.calculate(
            "HubSpot",
            ["Salesforce"],
            ["HubSpot vs Salesforce: HubSpot is cheaper."],
            "crm",
        )

        by_brand = {m.brand: m for m in result.mentions}
        assert by_brand["HubSpot"].co_mentions == ["Salesforce"]
        assert by_brand["Salesforce"].co_mentions == ["HubSpot"]
        assert len(result.breakdowns.co_mentions) == 2
        # a one-sentence answer is its own first paragraph
        assert result.breakdowns.by_context_type == {"firstParagraph": 2}

    def test_alias_resolution(self, aggregator):
        result = aggregator.calculate(
            "HubSpot", ["Salesforce"], ["Many teams use Hub Spot for marketing."], "crm"
        )

        assert result.is_measured
        assert result.mention_counts == {"HubSpot": 1, "Salesforce": 0}
        assert result.mentions[0].match_type == "alias"
        assert result.share_of_voice == {"HubSpot": 100.0, "Salesforce": 0.0}

    def test_domain_variants_from_registry(self):
        registry = AliasRegistry.default()
        registry.add_domain_variants("warmly.io", "Warmly AI")
        aggregator = ShareOfVoiceAggregator(registry=registry)

        result = aggregator.calculate("Warmly AI", ["Lemlist"], ["Try warmly.io for outbound."])

        assert registry.frozen
        assert result.mention_counts == {"Warmly AI": 1, "Lemlist": 0}
        assert result.mentions[0].entity == "warmly.io"
        assert result.mentions[0].match_type == "alias"

    def test_one_mention_per_brand_and_context(self, aggregator):
        """Test that several entities for one brand in one sentence count once."""
        result = aggregator.calculate(
            "HubSpot", [], ["HubSpot and HubSpot CRM and Hub Spot are one product."]
        )
        assert result.mention_counts == {"HubSpot": 1}

    def test_breakdowns(self, aggregator):
        result = aggregator.calculate(
            "HubSpot", ["Salesforce", "Pipedrive"], CRM_ANSWERS, "crm"
        )
        breakdowns = result.breakdowns
        kept = result.mentions

        assert sum(breakdowns.by_sentiment.values()) == len(kept)
        assert sum(breakdowns.by_context_type.values()) == len(kept)
        assert breakdowns.by_provenance["generated-answer"] == pytest.approx(
            sum(m.score for m in kept)
        )
        assert 0.0 < breakdowns.average_confidence <= 1.0
        assert 0.2 <= breakdowns.average_topic_relevance <= 1.0

    def test_idempotent(self, aggregator):
        first = aggregator.calculate("HubSpot", ["Salesforce", "Pipedrive"], CRM_ANSWERS, "crm")
        second = aggregator.calculate("HubSpot", ["Salesforce", "Pipedrive"], CRM_ANSWERS, "crm")

        assert first.share_of_voice == second.share_of_voice
        assert first.mention_counts == second.mention_counts
        assert [(m.brand, m.context, m.score) for m in first.mentions] == [
            (m.brand, m.context, m.score) for m in second.mentions
        ]

    def test_competitors_deduplicated(self, aggregator):
        result = aggregator.calculate(
            "HubSpot", ["salesforce", "Salesforce", "HUBSPOT"], ["HubSpot is a CRM tool."]
        )
        assert list(result.share_of_voice) == ["HubSpot", "salesforce"]

    def test_logs_summary(self, aggregator, caplog):
        with caplog.at_level(logging.INFO, logger="sov_watcher.sov.aggregator"):
            aggregator.calculate("HubSpot", [], ["HubSpot is a CRM tool."])
        assert any("Share of Voice calculated" in r.message for r in caplog.records)

    def test_many_brands_sum_to_exactly_100(self, aggregator):
        """Test that thirty equally mentioned brands still add up to 100."""
        brands = [f"Brand{i:02d}" for i in range(30)]
        answers = [f"{name} is a reliable CRM vendor." for name in brands]

        result = aggregator.calculate(brands[0], brands[1:], answers)

        assert result.is_measured
        shares = list(result.share_of_voice.values())
        assert sum(round(share * 100) for share in shares) == 10000
        assert sum(shares) == pytest.approx(100.0)
        units = [round(share * 100) for share in shares]
        assert max(units) - min(units) <= 1

    def test_breakdowns_come_from_scorer_summary(self, aggregator, monkeypatch):
        summaries = []
        original = aggregator.scorer.aggregate

        def recording_aggregate(mentions):
            summary = original(mentions)
            summaries.append(summary)
            return summary

        monkeypatch.setattr(aggregator.scorer, "aggregate", recording_aggregate)
        result = aggregator.calculate(
            "HubSpot", ["Salesforce", "Pipedrive"], CRM_ANSWERS, "crm"
        )

        assert len(summaries) == 1
        summary = summaries[0]
        assert summary.total_mentions == len(result.mentions)
        assert result.breakdowns.by_sentiment == summary.sentiment_breakdown
        assert result.breakdowns.by_context_type == summary.context_breakdown
        assert result.breakdowns.average_confidence == summary.average_confidence


class TestResolve:
    """Tests for entity-to-brand resolution inside the aggregator."""

    def test_sentence_initial_word_not_a_multi_word_competitor(self, aggregator):
        """Test that "Home" at the start of a sentence is not Home Depot."""
        result = aggregator.calculate(
            "Lowes",
            ["Home Depot"],
            [
                {
                    "text": (
                        "Lowes has a wide range of tools. "
                        "Home improvement projects are easier with good advice."
                    )
                }
            ],
        )

        assert result.is_measured
        assert result.share_of_voice == {"Lowes": 100.0, "Home Depot": 0.0}
        assert result.mention_counts["Home Depot"] == 0
        assert all(m.brand == "Lowes" for m in result.mentions)

    def test_leading_adjective_not_a_multi_word_competitor(self, aggregator):
        """Test that "Best prices" never counts for Best Buy."""
        result = aggregator.calculate(
            "Walmart", ["Best Buy"], ["Best prices on laptops are at Walmart today."]
        )

        assert result.share_of_voice == {"Walmart": 100.0, "Best Buy": 0.0}
        assert result.mention_counts == {"Walmart": 1, "Best Buy": 0}

    def test_full_multi_word_name_still_resolves(self, aggregator):
        result = aggregator.calculate(
            "Lowes", ["Home Depot"], ["Home Depot has great prices on lumber and paint."]
        )
        assert result.mention_counts == {"Lowes": 0, "Home Depot": 1}

    def test_single_word_entity(self, aggregator):
        assert aggregator._resolve("Home", ["Lowes", "Home Depot"]) is None
        assert aggregator._resolve("Best", ["Walmart", "Best Buy"]) is None

    def test_entity_containing_brand(self, aggregator):
        assert aggregator._resolve("Home Depot", ["Lowes", "Home Depot"]) == (
            "Home Depot",
            "exact",
        )
        brand, _ = aggregator._resolve("The Home Depot", ["Lowes", "Home Depot"])
        assert brand == "Home Depot"


class TestCalculateOccurrenceCount:
    """Tests for the literal-occurrence branch."""

    def test_counts_when_no_mentions_survive(self, aggregator):
        """Test that two-letter brands (never valid entities) are still counted."""
        result = aggregator.calculate(
            "HP", ["Dell"], ["hp laptops are fine and hp printers too"]
        )

        assert result.status is CalculationStatus.MEASURED
        assert result.calculation_method == "occurrence_count"
        assert result.share_of_voice == {"HP": 100.0, "Dell": 0.0}
        assert result.mention_counts == {"HP": 2, "Dell": 0}
        assert result.total_mentions == 2
        assert result.mentions == []


class TestCalculateFallback:
    """Tests for the fallback branches."""

    def test_no_signal(self, aggregator, caplog):
        with caplog.at_level(logging.WARNING, logger="sov_watcher.sov.aggregator"):
            result = aggregator.calculate(
                "HubSpot", ["Salesforce", "Pipedrive"], ["Nothing relevant here at all."]
            )

        assert result.status is CalculationStatus.FALLBACK_NO_SIGNAL
        assert not result.is_measured
        assert result.calculation_method == "fallback_distribution"
        assert result.share_of_voice == {"HubSpot": 35.0, "Salesforce": 32.5, "Pipedrive": 32.5}
        assert result.mention_counts == {"HubSpot": 0, "Salesforce": 0, "Pipedrive": 0}
        assert result.total_mentions == 0
        assert result.brand_share == 35.0
        assert any(r.levelno == logging.WARNING for r in caplog.records)

    @pytest.mark.parametrize("answers", [None, [], ["", None, {"text": ""}]])
    def test_no_answers(self, aggregator, answers):
        result = aggregator.calculate("HubSpot", ["Salesforce"], answers)
        assert result.status is CalculationStatus.FALLBACK_NO_SIGNAL
        assert result.share_of_voice == {"HubSpot": 60.0, "Salesforce": 40.0}

    def test_error_converted_to_fallback(self, aggregator, monkeypatch, caplog):
        def explode(*args, **kwargs):
            raise RuntimeError("extractor exploded")

        monkeypatch.setattr(aggregator.extractor, "extract_with_context", explode)

        with caplog.at_level(logging.ERROR, logger="sov_watcher.sov.aggregator"):
            result = aggregator.calculate("HubSpot", ["Salesforce"], ["HubSpot is a CRM."])

        assert result.status is CalculationStatus.FALLBACK_ERROR
        assert result.share_of_voice == {"HubSpot": 60.0, "Salesforce": 40.0}
        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert errors and errors[0].exc_info is not None

    def test_missing_brand_is_error(self, aggregator):
        result = aggregator.calculate("", [], ["HubSpot is a CRM."])
        assert result.status is CalculationStatus.FALLBACK_ERROR
        assert result.share_of_voice == {}
        assert result.brand_share == 0.0

    def test_bad_competitor_list_never_raises(self, aggregator):
        result = aggregator.calculate("HubSpot", 42, ["HubSpot is a CRM."])
        assert result.status is CalculationStatus.FALLBACK_ERROR
        assert result.share_of_voice == {"HubSpot": 100.0}


class TestFilterAndCap:
    """Tests for mention filtering and outlier capping."""

    def test_filter(self, aggregator):
        mentions = [
            make_mention(score=1.0),
            make_mention(score=1.0, confidence=0.2),
            make_mention(score=0.4, sentiment="negative"),
            make_mention(score=0.6, sentiment="negative"),
            make_mention(score=1.0, topic_relevance=0.05),
        ]
        kept = aggregator._filter(mentions)
        assert kept == [mentions[0], mentions[3]]

    def test_filter_uses_settings(self):
        aggregator = ShareOfVoiceAggregator(PipelineSettings(min_confidence=0.6))
        assert aggregator._filter([make_mention(confidence=0.5)]) == []

    def test_cap_outlier(self, aggregator):
        mentions = [make_mention(score=s) for s in [1.0, 1.0, 1.0, 1.0, 100.0]]
        capped = aggregator._cap(mentions)

        assert [m.score for m in capped] == [1.0, 1.0, 1.0, 1.0, 1.0]
        # original mentions are not mutated
        assert mentions[-1].score == 100.0

    def test_cap_threshold_from_original_set(self, aggregator):
        mentions = [make_mention(score=s) for s in [1.0, 2.0, 2.0, 4.0, 30.0]]
        capped = aggregator._cap(mentions)
        # median 2, MAD 1 -> threshold 5
        assert capped[-1].score == pytest.approx(5.0)
        assert [m.score for m in capped[:-1]] == [1.0, 2.0, 2.0, 4.0]


class TestSessionAndConvenience:
    """Tests for session ids and calculate_share_of_voice()."""

    @freeze_time("2025-11-02 08:30:00")
    def test_generated_session_id(self, aggregator):
        result = aggregator.calculate("HubSpot", [], ["HubSpot is a CRM tool."])
        assert result.analysis_session_id.startswith("analysis_2025-11-02T08-30-00Z_")
        assert result.calculated_at == "2025-11-02T08:30:00Z"

    def test_explicit_session_id(self, aggregator):
        result = aggregator.calculate("HubSpot", [], [], session_id="analysis_fixed")
        assert result.analysis_session_id == "analysis_fixed"

    def test_calculate_share_of_voice(self):
        result = calculate_share_of_voice(
            "Zomato", ["Swiggy"], ["Zomato and Swiggy both deliver fast."], "food-delivery"
        )
        assert round(sum(result.share_of_voice.values())) == 100
