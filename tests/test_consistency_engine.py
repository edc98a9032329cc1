"""Cross-provider fact clustering, agreement and confidence scoring."""

import pytest

from orchestrator.consistency_engine import (
    ConsistencyEngine,
    clamp_to_band,
    confidence_for,
    jaccard,
    mean_pairwise_overlap,
    overlap_agreement_level,
    strict_agreement_level,
    values_close,
)
from orchestrator.route_registry import RouteRegistry
from orchestrator.routing_types import AgreementLevel, ConfidenceLevel, FactType, VerificationTier
from tools.web.contracts import ExtractedFact, ProviderResult

from fakes import item

pytestmark = pytest.mark.unit


def _pr(provider, *items, answer=None):
    return ProviderResult(provider=provider, items=tuple(items), answer=answer)


def test_agreeing_scores_are_verified():
    brave = _pr(
        "brave",
        item("MI vs CSK live updates", "https://www.espncricinfo.com/live", "Mumbai Indians 180/4 after 20 overs"),
    )
    google = _pr(
        "google_cse",
        item("MI vs CSK", "https://www.cricbuzz.com/match", "MI posted 180/4 in their innings"),
    )

    result = ConsistencyEngine().verify([brave, google], "sports", "IPL score today", VerificationTier.STANDARD)

    assert result.agreement.level == AgreementLevel.UNANIMOUS
    assert result.confidence == ConfidenceLevel.HIGH
    assert result.confidence_score == 1.0
    assert sorted(result.agreement.agreeing) == ["brave", "google_cse"]
    assert result.llm_instruction == (
        "[VERIFIED confidence=100%] Data cross-verified from 2 sources. Answer confidently using this data."
    )
    assert "[CROSS-VERIFIED DATA]" in result.verified_fact
    assert "SCORE: 180/4" in result.verified_fact
    assert result.providers_used == ["brave", "google_cse"]


def test_conflicting_ratings_are_flagged():
    brave = _pr("brave", item("Inception", "https://example.com/a", "Rated 8.8/10"))
    google = _pr("google_cse", item("Inception", "https://example.org/b", "Rated 7.5/10"))

    result = ConsistencyEngine().verify([brave, google], "general", "inception rating", VerificationTier.STANDARD)

    assert result.agreement.level == AgreementLevel.SPLIT
    assert result.confidence == ConfidenceLevel.LOW
    assert result.confidence_score == pytest.approx(0.39)
    assert result.agreement.conflict_description == "Conflicts: RATING: 8.8 (brave) vs 7.5 (google_cse)"
    assert result.agreement.agreeing == ["google_cse"]
    assert result.agreement.disagreeing == ["brave"]
    assert result.llm_instruction.startswith("[UNVERIFIED confidence=39%]")
    assert "Do NOT answer with specific numbers" in result.llm_instruction


def test_strict_tier_instruction_forbids_certainty():
    brave = _pr("brave", item("Inception", "https://example.com/a", "Rated 8.8/10"))
    google = _pr("google_cse", item("Inception", "https://example.org/b", "Rated 7.5/10"))

    result = ConsistencyEngine().verify([brave, google], "general", "inception rating", VerificationTier.STRICT)

    assert "CRITICAL RULE" in result.llm_instruction


def test_ratings_within_tolerance_agree():
    brave = _pr("brave", item("Inception", "https://example.com/a", "Rated 8.8/10"))
    google = _pr("google_cse", item("Inception", "https://example.org/b", "Rated 8.9/10"))

    result = ConsistencyEngine().verify([brave, google], "general", "inception rating", VerificationTier.STANDARD)

    assert result.agreement.level == AgreementLevel.UNANIMOUS
    assert result.confidence == ConfidenceLevel.HIGH
    assert result.agreement.conflict_description is None


def test_domain_overlap_decides_when_no_facts_exist():
    shared = [item("Cat videos", "https://cats.example/a", "Funny cats playing")]
    same = ConsistencyEngine().verify(
        [_pr("brave", *shared), _pr("google_cse", *shared)], "general", "cat videos", VerificationTier.STANDARD
    )
    assert same.agreement.level == AgreementLevel.UNANIMOUS
    assert same.agreement.domain_overlap == 1.0
    assert same.confidence == ConfidenceLevel.HIGH
    # no facts gives a raw 0.5, lifted into the HIGH band
    assert same.confidence_score == 0.7


def test_low_domain_overlap_is_split():
    brave = _pr("brave", item("Cats", "https://a.example/1"), item("Cats", "https://b.example/1"))
    google = _pr("google_cse", item("Cats", "https://b.example/2"), item("Cats", "https://c.example/2"))

    result = ConsistencyEngine().verify([brave, google], "general", "cats", VerificationTier.STANDARD)

    assert result.agreement.level == AgreementLevel.SPLIT
    assert result.agreement.domain_overlap == pytest.approx(1 / 3)
    assert result.confidence == ConfidenceLevel.LOW


def test_single_provider_without_verification_passes_through():
    answer = "Photosynthesis turns light, water and carbon dioxide into sugar."
    result = ConsistencyEngine().verify(
        [_pr("google_cse", item("Photosynthesis", "https://example.com"), answer=answer)],
        "general",
        "photosynthesis",
        VerificationTier.NO_VERIFY,
    )
    assert result.agreement.level == AgreementLevel.SINGLE
    assert result.confidence == ConfidenceLevel.MEDIUM
    assert result.confidence_score == 0.6
    assert result.llm_instruction == ""
    assert result.verified_fact == answer


def test_trust_weights_come_from_the_route_table():
    engine = ConsistencyEngine(RouteRegistry.from_yaml().trust_weights)
    assert engine.weights_for("finance")["google_cse"] == 0.7
    assert engine.weights_for("unknown")["tavily"] == 0.5


def test_cluster_prefers_more_providers_over_trust():
    engine = ConsistencyEngine()
    facts = [
        ("500", "google_cse"),
        ("700", "brave"),
        ("700", "tavily"),
    ]

    extracted = [ExtractedFact(value=v, type=FactType.PRICE, provider=p, confidence=0.85) for v, p in facts]
    [cluster] = engine.cluster_facts(extracted, engine.weights_for("general"))
    assert cluster.consensus == "700"
    assert cluster.agreement_ratio == pytest.approx(2 / 3)


@pytest.mark.parametrize(
    "a, b, fact_type, expected",
    [
        (72500, 72600, FactType.PRICE, True),
        (72500, 75000, FactType.PRICE, False),
        (100, 104, FactType.NUMBER, True),
        (8.8, 8.9, FactType.RATING, True),
        (8.8, 7.5, FactType.RATING, False),
    ],
)
def test_values_close(a, b, fact_type, expected):
    assert values_close(a, b, fact_type) is expected


def test_overlap_helpers():
    assert jaccard({"a", "b"}, {"b", "c"}) == pytest.approx(1 / 3)
    assert jaccard(set(), set()) == 0.0
    assert mean_pairwise_overlap([{"a"}]) == 0.0
    assert mean_pairwise_overlap([{"a"}, {"a"}, {"b"}]) == pytest.approx(1 / 3)


@pytest.mark.parametrize(
    "score, level",
    [(0.7, AgreementLevel.STRONG), (0.5, AgreementLevel.PARTIAL), (0.2, AgreementLevel.WEAK), (0.1, AgreementLevel.CONFLICT)],
)
def test_strict_agreement_thresholds(score, level):
    assert strict_agreement_level(score) == level


def test_overlap_agreement_and_confidence_mapping():
    assert overlap_agreement_level(0.7) == AgreementLevel.UNANIMOUS
    assert overlap_agreement_level(0.4) == AgreementLevel.MAJORITY
    assert overlap_agreement_level(0.39) == AgreementLevel.SPLIT
    assert confidence_for(AgreementLevel.STRONG) == ConfidenceLevel.HIGH
    assert confidence_for(AgreementLevel.PARTIAL) == ConfidenceLevel.MEDIUM
    assert confidence_for(AgreementLevel.WEAK) == ConfidenceLevel.LOW
    assert confidence_for(AgreementLevel.SINGLE) == ConfidenceLevel.LOW


def test_clamp_to_band():
    assert clamp_to_band(0.95, ConfidenceLevel.MEDIUM) == 0.69
    assert clamp_to_band(0.1, ConfidenceLevel.HIGH) == 0.7
    assert clamp_to_band(0.5, ConfidenceLevel.MEDIUM) == 0.5
