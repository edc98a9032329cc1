"""
ConsistencyEngine - cross-checks provider results and scores confidence.

Facts (ratings, prices, scores, numbers, dates) are extracted from every
provider, normalized and clustered by type. Numeric facts are grouped within a
per-type tolerance and each group is voted on by trust-weighted providers.

Agreement between providers is decided from those clusters when at least one
critical fact was reported by two or more providers. Otherwise the engine
falls back to the overlap of result domains, which is also the only signal on
the strict path.
"""

import time
from collections.abc import Callable
from dataclasses import replace
from itertools import combinations

from orchestrator.routing_types import (
    AgreementDetail,
    AgreementLevel,
    ConfidenceLevel,
    ConfidenceScore,
    ConsistencyResult,
    FactCluster,
    FactType,
    VerificationTier,
)
from tools.web.contracts import ExtractedFact, ProviderResult
from tools.web.fact_extractor import extract_facts, normalize_fact
from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TRUST_WEIGHTS = {"google_cse": 0.60, "brave": 0.40, "tavily": 0.50}

CRITICAL_TYPES = (FactType.RATING, FactType.PRICE, FactType.SCORE, FactType.NUMBER)
NUMERIC_TYPES = (FactType.RATING, FactType.PRICE, FactType.NUMBER)
HEAVY_TYPES = (FactType.PRICE, FactType.RATING, FactType.SCORE)

# (absolute, fraction of max(|a|, |b|, 1))
TOLERANCE = {
    FactType.RATING: (0.2, 0.03),
    FactType.SCORE: (0.0, 0.0),
    FactType.PRICE: (100.0, 0.02),
    FactType.NUMBER: (0.0, 0.05),
}

CONSENSUS_RATIO = 0.66
UNANIMOUS_RATIO = 0.99
CONFLICT_RATIO = 0.5

CONFIDENCE_BANDS = {
    ConfidenceLevel.HIGH: (0.70, 1.0),
    ConfidenceLevel.MEDIUM: (0.40, 0.69),
    ConfidenceLevel.LOW: (0.0, 0.39),
}

AGREEMENT_CONFIDENCE = {
    AgreementLevel.UNANIMOUS: ConfidenceLevel.HIGH,
    AgreementLevel.STRONG: ConfidenceLevel.HIGH,
    AgreementLevel.MAJORITY: ConfidenceLevel.MEDIUM,
    AgreementLevel.PARTIAL: ConfidenceLevel.MEDIUM,
}


def values_close(a: float, b: float, fact_type: FactType) -> bool:
    tolerance = TOLERANCE.get(fact_type)
    if tolerance is None:
        return a == b
    absolute, fraction = tolerance
    diff = abs(a - b)
    if diff <= absolute:
        return True
    return diff / max(abs(a), abs(b), 1.0) <= fraction


def jaccard(a: set[str], b: set[str]) -> float:
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def mean_pairwise_overlap(domain_sets: list[set[str]]) -> float:
    pairs = list(combinations(domain_sets, 2))
    if not pairs:
        return 0.0
    return sum(jaccard(a, b) for a, b in pairs) / len(pairs)


def strict_agreement_level(score: float) -> AgreementLevel:
    if score >= 0.70:
        return AgreementLevel.STRONG
    if score >= 0.40:
        return AgreementLevel.PARTIAL
    if score >= 0.20:
        return AgreementLevel.WEAK
    return AgreementLevel.CONFLICT


def overlap_agreement_level(score: float) -> AgreementLevel:
    if score >= 0.70:
        return AgreementLevel.UNANIMOUS
    if score >= 0.40:
        return AgreementLevel.MAJORITY
    return AgreementLevel.SPLIT


def confidence_for(level: AgreementLevel) -> ConfidenceLevel:
    return AGREEMENT_CONFIDENCE.get(level, ConfidenceLevel.LOW)


def clamp_to_band(score: float, level: ConfidenceLevel) -> float:
    low, high = CONFIDENCE_BANDS[level]
    return min(max(score, low), high)


def _parse_number(value: str) -> float | None:
    try:
        return float(value)
    except ValueError:
        return None


def _format_consensus(value: float, fact_type: FactType) -> str:
    if fact_type == FactType.RATING:
        return f"{value:.1f}"
    if fact_type == FactType.PRICE:
        return str(round(value))
    return f"{value:g}"


class ConsistencyEngine:
    """
    Example usage:
        engine = ConsistencyEngine(registry.trust_weights)
        result = engine.verify(outcome.provider_results, "sports", "ipl score", VerificationTier.STANDARD)
        print(result.agreement.level, result.confidence, result.llm_instruction)
    """

    def __init__(
        self,
        trust_weights: Callable[[str], dict[str, float]] | None = None,
        extractor: Callable[..., list[ExtractedFact]] = extract_facts,
    ):
        self._trust_weights = trust_weights
        self._extractor = extractor

    def weights_for(self, domain: str) -> dict[str, float]:
        weights = dict(DEFAULT_TRUST_WEIGHTS)
        if self._trust_weights is not None:
            weights.update(self._trust_weights(domain))
        return weights

    def verify(
        self,
        provider_results: list[ProviderResult],
        domain: str,
        query: str,
        tier: VerificationTier,
    ) -> ConsistencyResult:
        started = time.monotonic()
        weights = self.weights_for(domain)
        providers_used = [pr.provider for pr in provider_results]

        if tier == VerificationTier.NO_VERIFY and len(provider_results) == 1:
            primary = provider_results[0]
            return ConsistencyResult(
                tier=tier,
                confidence=ConfidenceLevel.MEDIUM,
                confidence_score=0.6,
                agreement=AgreementDetail(level=AgreementLevel.SINGLE, agreeing=[primary.provider]),
                providers_used=providers_used,
                verified_fact=self._primary_content(primary),
                llm_instruction="",
                reasoning="single provider pass-through",
                total_time_ms=int((time.monotonic() - started) * 1000),
            )

        enriched = [
            replace(pr, facts=tuple(self._extractor(list(pr.items), pr.answer, pr.provider)))
            for pr in provider_results
        ]
        all_facts = [fact for pr in enriched for fact in pr.facts]

        clusters = self.cluster_facts(all_facts, weights)
        agreement = self.build_agreement(clusters, enriched)
        raw = self.calculate_confidence(clusters, len(enriched), tier)

        level = confidence_for(agreement.level)
        confidence = ConfidenceScore(
            score=clamp_to_band(raw.score, level),
            level=level,
            reasoning=raw.reasoning,
        )

        return ConsistencyResult(
            tier=tier,
            confidence=confidence.level,
            confidence_score=confidence.score,
            agreement=agreement,
            providers_used=providers_used,
            verified_fact=self.assemble_verified_fact(enriched, clusters, weights),
            llm_instruction=self.build_llm_instruction(confidence, tier, agreement),
            reasoning=confidence.reasoning,
            total_time_ms=int((time.monotonic() - started) * 1000),
        )

    def cluster_facts(self, facts: list[ExtractedFact], weights: dict[str, float]) -> list[FactCluster]:
        """
        Group facts by type and vote on a consensus value per type.

        The winning group is the one backed by the most distinct providers,
        with the trust-weighted confidence sum as tie-breaker.
        """
        by_type: dict[FactType, list[tuple[str, str, float]]] = {}
        for fact in facts:
            by_type.setdefault(fact.type, []).append(
                (normalize_fact(fact.value, fact.type), fact.provider, fact.confidence)
            )

        clusters: list[FactCluster] = []
        for fact_type, values in by_type.items():
            providers = {provider for _, provider, _ in values}

            if len(providers) < 2:
                first_value, first_provider, _ = values[0]
                clusters.append(
                    FactCluster(
                        type=fact_type,
                        values=values,
                        consensus=first_value,
                        agreement_ratio=0.5,
                        trust_score=weights.get(first_provider, 0.0),
                    )
                )
                continue

            groups = None
            if fact_type in NUMERIC_TYPES:
                groups = self._tolerance_groups(values, fact_type)
            if groups is None:
                exact: dict[str, list[tuple[str, str, float]]] = {}
                for entry in values:
                    exact.setdefault(entry[0], []).append(entry)
                groups = list(exact.items())

            consensus, members = groups[0]
            best_score, best_count = -1.0, 0
            for label, group_members in groups:
                score = sum(weights.get(p, 0.0) * c for _, p, c in group_members)
                count = len({p for _, p, _ in group_members})
                if count > best_count or (count == best_count and score > best_score):
                    consensus, members, best_score, best_count = label, group_members, score, count

            clusters.append(
                FactCluster(
                    type=fact_type,
                    values=values,
                    consensus=consensus or None,
                    agreement_ratio=best_count / len(providers),
                    trust_score=best_score,
                )
            )

        return clusters

    def _tolerance_groups(self, values, fact_type: FactType):
        numeric = [(v, _parse_number(v[0])) for v in values]
        numeric = [(v, n) for v, n in numeric if n is not None]
        if len(numeric) < 2:
            return None

        groups: list[tuple[float, list]] = []
        for entry, number in numeric:
            for idx, (representative, members) in enumerate(groups):
                if values_close(number, representative, fact_type):
                    members.append((entry, number))
                    groups[idx] = (sum(n for _, n in members) / len(members), members)
                    break
            else:
                groups.append((number, [(entry, number)]))

        return [
            (_format_consensus(representative, fact_type), [entry for entry, _ in members])
            for representative, members in groups
        ]

    def _agrees(self, value: str, consensus: str, fact_type: FactType) -> bool:
        if fact_type in NUMERIC_TYPES:
            a, b = _parse_number(value), _parse_number(consensus)
            if a is not None and b is not None:
                return values_close(a, b, fact_type)
        return value == consensus

    def build_agreement(self, clusters: list[FactCluster], provider_results: list[ProviderResult]) -> AgreementDetail:
        providers = [pr.provider for pr in provider_results]
        domain_sets = [pr.domains for pr in provider_results]
        overlap = mean_pairwise_overlap(domain_sets) if len(provider_results) >= 2 else None

        if len(provider_results) <= 1:
            return AgreementDetail(level=AgreementLevel.SINGLE, agreeing=providers, domain_overlap=overlap)

        critical = [c for c in clusters if c.type in CRITICAL_TYPES and len(c.providers) >= 2]
        if not critical:
            level = overlap_agreement_level(overlap or 0.0)
            agreeing = [
                pr.provider
                for i, pr in enumerate(provider_results)
                if any(pr.domains & other for j, other in enumerate(domain_sets) if j != i)
            ]
            if level != AgreementLevel.SPLIT and not agreeing:
                agreeing = providers
            return AgreementDetail(
                level=level,
                agreeing=agreeing,
                disagreeing=[p for p in providers if p not in agreeing],
                domain_overlap=overlap,
            )

        agreed_clusters = 0
        conflicts: list[str] = []
        agreeing: list[str] = []
        disagreeing: list[str] = []

        for cluster in critical:
            if cluster.agreement_ratio >= CONSENSUS_RATIO:
                agreed_clusters += 1
            else:
                seen: list[str] = []
                for value, provider, _ in cluster.values:
                    label = f"{value} ({provider})"
                    if label not in seen:
                        seen.append(label)
                conflicts.append(f"{cluster.type.value}: {' vs '.join(seen)}")

            if cluster.consensus is None:
                continue
            for value, provider, _ in cluster.values:
                bucket = agreeing if self._agrees(value, cluster.consensus, cluster.type) else disagreeing
                if provider not in bucket:
                    bucket.append(provider)

        ratio = agreed_clusters / len(critical)
        if ratio >= UNANIMOUS_RATIO:
            level = AgreementLevel.UNANIMOUS
        elif ratio >= 0.5:
            level = AgreementLevel.MAJORITY
        else:
            level = AgreementLevel.SPLIT

        return AgreementDetail(
            level=level,
            agreeing=agreeing,
            disagreeing=[p for p in disagreeing if p not in agreeing],
            conflict_description=f"Conflicts: {'; '.join(conflicts)}" if conflicts else None,
            domain_overlap=overlap,
        )

    def calculate_confidence(
        self, clusters: list[FactCluster], providers_used: int, tier: VerificationTier
    ) -> ConfidenceScore:
        if not clusters:
            return ConfidenceScore(
                score=0.5 if providers_used >= 2 else 0.3,
                level=ConfidenceLevel.LOW,
                reasoning="No structured facts found in search results",
            )

        total_weight = 0.0
        weighted = 0.0
        unanimous = 0
        conflicts = 0
        for cluster in clusters:
            weight = 2.0 if cluster.type in HEAVY_TYPES else 1.0
            total_weight += weight
            weighted += cluster.agreement_ratio * weight
            if cluster.agreement_ratio >= UNANIMOUS_RATIO:
                unanimous += 1
            if cluster.agreement_ratio < CONFLICT_RATIO:
                conflicts += 1

        score = weighted / total_weight if total_weight else 0.3
        if unanimous == len(clusters) and providers_used >= 2:
            score = min(1.0, score + 0.15)
        if conflicts:
            score = max(0.0, score - conflicts * 0.15)
        if providers_used >= 3:
            score = min(1.0, score + 0.05)
        if providers_used == 1:
            score = max(0.0, score - 0.1)
        if tier == VerificationTier.STRICT:
            score = max(0.0, score - 0.05)

        if score >= 0.7:
            level = ConfidenceLevel.HIGH
        elif score >= 0.4:
            level = ConfidenceLevel.MEDIUM
        else:
            level = ConfidenceLevel.LOW

        parts = [f"{providers_used} provider(s) used", f"{len(clusters)} fact type(s) extracted"]
        if unanimous:
            parts.append(f"{unanimous} unanimous")
        if conflicts:
            parts.append(f"{conflicts} conflict(s)")
        return ConfidenceScore(score=score, level=level, reasoning=", ".join(parts))

    def build_llm_instruction(
        self, confidence: ConfidenceScore, tier: VerificationTier, agreement: AgreementDetail
    ) -> str:
        if tier == VerificationTier.NO_VERIFY:
            return ""

        pct = f"{confidence.score * 100:.0f}"
        if confidence.level == ConfidenceLevel.HIGH:
            return (
                f"[VERIFIED confidence={pct}%] Data cross-verified from "
                f"{max(len(agreement.agreeing), 1)} sources. Answer confidently using this data."
            )

        if confidence.level == ConfidenceLevel.MEDIUM:
            instruction = f"[CAUTION confidence={pct}%] Data partially verified."
            if agreement.conflict_description:
                instruction += f" {agreement.conflict_description}"
            instruction += (
                " Answer the question but indicate approximate values where data varies across sources."
                " Do NOT present conflicting data as certain fact."
            )
            return instruction

        instruction = f"[UNVERIFIED confidence={pct}%] Data inconsistent across sources."
        if agreement.conflict_description:
            instruction += f" {agreement.conflict_description}"
        if tier == VerificationTier.STRICT:
            instruction += (
                " CRITICAL RULE: This is a STRICT-tier query (health/finance/legal)."
                " You MUST NOT state any number, date, name, or fact as certain."
                " Tell the user the real-time data could not be verified and that they should check"
                " official sources. Provide ONLY the source URLs if available."
            )
        else:
            instruction += (
                " RULE: Do NOT answer with specific numbers or facts."
                " Say that the exact data could not be confirmed across sources."
                " Share what IS consistent and flag what is NOT."
            )
        return instruction

    @staticmethod
    def _primary_content(result: ProviderResult) -> str:
        if result.answer and len(result.answer) > 30:
            return result.answer
        return "\n\n".join(f"{item.title}\n{item.description}" for item in result.items[:3])

    def assemble_verified_fact(
        self, provider_results: list[ProviderResult], clusters: list[FactCluster], weights: dict[str, float]
    ) -> str:
        usable = [
            pr for pr in provider_results if pr.items or (pr.answer and len(pr.answer) > 20)
        ]
        if not usable:
            return "No results found."
        usable.sort(key=lambda pr: weights.get(pr.provider, 0.0), reverse=True)

        fact = ""
        consensus_lines = [
            f"{c.type.value}: {c.consensus}"
            for c in clusters
            if c.consensus and c.agreement_ratio >= CONSENSUS_RATIO
        ]
        if consensus_lines:
            fact += "[CROSS-VERIFIED DATA]\n" + "\n".join(consensus_lines) + "\n\n"

        fact += self._primary_content(usable[0])

        for secondary in usable[1:3]:
            answer = secondary.answer or ""
            if len(answer) <= 30:
                continue
            secondary_words = set(answer.lower().split())
            primary_words = set(fact.lower().split())
            overlap = len(secondary_words & primary_words) / len(secondary_words)
            if overlap < 0.5:
                fact += f"\n\n[Additional source: {secondary.provider}]\n{answer}"

        urls = [item.url for pr in provider_results for item in pr.items[:2] if item.url][:3]
        if urls:
            fact += "\n\nSources: " + " | ".join(urls)

        return fact.strip()
