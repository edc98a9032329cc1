"""
SearchOrchestrator - public entry point of the search engine.

Key guarantees:
- HTTP/CLI layers stay thin (no provider imports there)
- No exceptions bubble up from search() / strict_search()
- Every pipeline stage emits one structured event
"""

import asyncio
import concurrent.futures
import time
from collections.abc import Callable
from datetime import date, datetime
from typing import Any

from pydantic import ValidationError

from api.calendarific_client import CalendarificClient, select_primary
from models.search_options import SearchOptions
from models.search_result import NO_RESULTS_FACT, SearchResult, SearchTiming, StrictSearchResult, estimate_tokens
from orchestrator import events as ev
from orchestrator.consistency_engine import ConsistencyEngine, clamp_to_band
from orchestrator.events import EventEmitter
from orchestrator.query_builder import build_query, extract_festival_name, has_festival_date_word
from orchestrator.query_normalizer import QueryNormalizer
from orchestrator.result_assembler import assemble, empty_result
from orchestrator.risk_classifier import RiskClassifier
from orchestrator.route_registry import RouteRegistry
from orchestrator.routing_types import (
    AgreementDetail,
    ConfidenceScore,
    ConsistencyResult,
    RiskCategory,
    RiskClassification,
    SourceKind,
    VerificationTier,
)
from orchestrator.strict_search import StrictSearch
from orchestrator.tier_decider import TierDecider
from orchestrator.tiered_engine import TieredSearchEngine
from tools.web import date_normalizer
from tools.web.contracts import DateInfo, FetchedPage, SearchResultItem
from tools.web.domain_detector import DomainDetector
from tools.web.relevance import RelevanceScorer
from tools.web.web_fetch import WebFetchService
from utils.logger import get_logger

logger = get_logger(__name__)

# Hosts that reliably fail extraction or only serve viewers/PDF wrappers
FETCH_SKIP_DOMAINS = [
    "india.gov.in", "gov.in", "nic.in", "mygov.in",
    "punjab.gov.in", "haryana.gov.in", "rajasthan.gov.in",
    "scribd.com", "slideshare.net", "linkedin.com",
]
FETCH_CANDIDATES = 3
FESTIVAL_DESCRIPTION_CHARS = 150


class SearchOrchestrator:
    def __init__(
        self,
        engine: TieredSearchEngine,
        registry: RouteRegistry | None = None,
        detector: DomainDetector | None = None,
        normalizer: QueryNormalizer | None = None,
        classifier: RiskClassifier | None = None,
        tier_decider: TierDecider | None = None,
        consistency: ConsistencyEngine | None = None,
        strict: StrictSearch | None = None,
        fetcher: WebFetchService | None = None,
        calendar: CalendarificClient | None = None,
        scorer: RelevanceScorer | None = None,
        events: EventEmitter | None = None,
        festival_shortcut: bool = True,
        clock: Callable[[], datetime] | None = None,
    ):
        self._engine = engine
        self._registry = registry or RouteRegistry.from_yaml()
        self._detector = detector or DomainDetector()
        self._normalizer = normalizer or QueryNormalizer()
        self._classifier = classifier or RiskClassifier()
        self._tier_decider = tier_decider or TierDecider()
        self._consistency = consistency or ConsistencyEngine(self._registry.trust_weights)
        self._strict = strict
        self._fetcher = fetcher
        self._calendar = calendar
        self._scorer = scorer or RelevanceScorer()
        self._events = events or EventEmitter()
        self._festival_shortcut = festival_shortcut
        self._clock = clock or date_normalizer.now_ist

    @property
    def events(self) -> EventEmitter:
        return self._events

    @property
    def strict_available(self) -> bool:
        return self._strict is not None and self._strict.is_configured()

    # ---------- public API ----------

    async def search(self, query: str, options: SearchOptions | dict[str, Any] | None = None) -> SearchResult:
        """
        Run one search request.

        Args:
            query: Raw user query (any mix of English and romanized Hindi)
            options: ``SearchOptions`` or a plain dict with the same fields

        Returns:
            SearchResult - always structurally valid; failures are reported
            through ``source == "none"`` and ``error``
        """
        started = time.monotonic()
        q = (query or "").strip()

        try:
            opts = SearchOptions.from_any(options)
        except ValidationError as e:
            logger.warning("Invalid search options", extra={"extra_fields": {"error": str(e)}})
            return empty_result("general", "general", None, q, error=f"Invalid options: {e.error_count()} error(s)")

        if not q:
            return empty_result("general", "general", None, q, error="Empty query")

        try:
            return await self._search(q, opts, started)
        except Exception as e:
            logger.error(
                f"Search pipeline failed: {e}",
                extra={"extra_fields": {"error": str(e), "error_type": type(e).__name__, "query": q}},
            )
            return empty_result("general", "general", None, q, total_ms=self._elapsed_ms(started), error=str(e))

    async def strict_search(self, query: str, category: RiskCategory | str | None = None) -> StrictSearchResult:
        if self._strict is None:
            return StrictSearchResult.failure("Grounded provider not configured", 0)
        try:
            return await self._strict.run(query, category)
        except Exception as e:
            logger.error(
                f"Strict search crashed: {e}",
                extra={"extra_fields": {"error": str(e), "error_type": type(e).__name__}},
            )
            return StrictSearchResult.failure(str(e), 0)

    def search_sync(self, query: str, options: SearchOptions | dict[str, Any] | None = None) -> SearchResult:
        """Blocking wrapper around ``search`` for scripts and sync callers."""
        try:
            asyncio.get_running_loop()
            # Loop is running - execute in separate thread
            with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
                return executor.submit(asyncio.run, self.search(query, options)).result()
        except RuntimeError:
            return asyncio.run(self.search(query, options))

    # ---------- pipeline ----------

    async def _search(self, q: str, opts: SearchOptions, started: float) -> SearchResult:
        risk = self._classifier.classify_detailed(q)
        self._events.emit(
            ev.CLASSIFIED,
            level=risk.level.value,
            category=risk.category.value,
            matched_keyword=risk.matched_keyword,
        )

        if risk.is_high_risk and self.strict_available:
            self._events.emit(
                ev.TIER_SELECTED,
                tier=VerificationTier.STRICT.value,
                reasons=[f"high_risk:{risk.category.value}", "grounded_pipeline"],
                domain=risk.category.value,
                route="strict",
            )
            strict = await self._strict.run(q, risk.category)
            return self._from_strict(q, strict, risk)

        normalized = self._normalizer.normalize(q)
        domain = self._detector.detect(normalized)
        profile = self._registry.profile(domain)
        route = profile.route

        if route == "festival" and self._festival_shortcut and self._calendar and self._calendar.is_configured():
            festival = await self._festival(q, domain, route, started)
            if festival is not None:
                return festival

        date_info = date_normalizer.normalize(q, self._clock())
        final_query = build_query(normalized, route, date_info, opts.user_location, suffix=profile.suffix)

        decision = self._tier_decider.decide(domain, normalized)
        tier, reasons = decision.tier, list(decision.reasons)
        if risk.is_high_risk and tier != VerificationTier.STRICT:
            # no grounded provider: verify the high-risk query as hard as the web path allows
            tier = VerificationTier.STRICT
            reasons.append(f"high_risk:{risk.category.value}")
        self._events.emit(ev.TIER_SELECTED, tier=tier.value, reasons=reasons, domain=domain, route=route)

        provider_started = time.monotonic()
        outcome = await self._engine.run(final_query, profile, tier, relevance_query=normalized)
        provider_ms = self._elapsed_ms(provider_started)

        if outcome.winner is None:
            result = empty_result(
                domain, route, date_info, final_query,
                total_ms=self._elapsed_ms(started), tier=tier, risk=risk,
            )
            self._complete(result)
            return result

        verification = None
        if tier != VerificationTier.NO_VERIFY and outcome.provider_results:
            verification = self._verify(outcome.provider_results, domain, normalized, tier)

        winner = outcome.winner
        best = self._scorer.best(normalized, winner.items)

        page, fetch_ms = None, 0
        has_verified_fact = verification is not None and bool(verification.verified_fact)
        if opts.enable_web_fetch and profile.webfetch and self._fetcher and not has_verified_fact:
            fetch_started = time.monotonic()
            page = await self._deep_fetch(normalized, list(winner.items), opts.max_content_chars)
            fetch_ms = self._elapsed_ms(fetch_started)

        result = assemble(
            normalized,
            winner,
            best,
            domain=domain,
            route=route,
            query_used=final_query,
            page=page,
            verification=verification,
            tier=tier,
            date_info=date_info,
            timing=SearchTiming(provider_ms=provider_ms, fetch_ms=fetch_ms, total_ms=self._elapsed_ms(started)),
            risk=risk,
        )
        self._complete(result)
        return result

    def _verify(self, provider_results, domain: str, query: str, tier: VerificationTier) -> ConsistencyResult | None:
        try:
            verification = self._consistency.verify(provider_results, domain, query, tier)
        except Exception as e:
            logger.error(
                f"Consistency check failed: {e}",
                extra={"extra_fields": {"error": str(e), "error_type": type(e).__name__, "domain": domain}},
            )
            return None

        self._events.emit(
            ev.VERIFICATION_RESULT,
            tier=tier.value,
            agreement=verification.agreement.level.value,
            confidence=verification.confidence.value,
            confidence_score=round(verification.confidence_score, 3),
            providers=verification.providers_used,
            domain_overlap=verification.agreement.domain_overlap,
        )
        return verification

    async def _deep_fetch(self, query: str, items: list[SearchResultItem], max_chars: int) -> FetchedPage | None:
        """
        Try the best-ranked URLs in order.

        The first successful extraction wins. A JS-heavy page ends the loop
        early since its snippet is as good as it gets.
        """
        last: FetchedPage | None = None
        for item in self._scorer.rank(query, items)[:FETCH_CANDIDATES]:
            url = item.url
            if not url:
                continue
            if any(skip in url.lower() for skip in FETCH_SKIP_DOMAINS):
                logger.debug("Skipping deep fetch", extra={"extra_fields": {"url": url}})
                continue
            try:
                page = await self._fetcher.fetch(url, max_chars)
            except Exception as e:
                logger.warning(
                    f"Deep fetch crashed for {url}",
                    extra={"extra_fields": {"url": url, "error": str(e), "error_type": type(e).__name__}},
                )
                continue
            if page.success or page.snippet_only:
                return page
            last = page
        return last

    async def _festival(self, q: str, domain: str, route: str, started: float) -> SearchResult | None:
        """Answer festival questions from the holiday calendar; None falls through to web search."""
        try:
            now = self._clock()
            name = extract_festival_name(q)
            if name:
                holiday = await self._calendar.find_by_name(name, now.year)
                if holiday:
                    fact = f"{holiday.name} is on {holiday.human} ({holiday.date})."
                    if holiday.description:
                        fact += " " + holiday.description[:FESTIVAL_DESCRIPTION_CHARS]
                    return self._calendar_result(
                        fact, holiday.name, DateInfo(holiday.date, holiday.human, name), 1, q, domain, route, started
                    )

            if has_festival_date_word(q):
                info = date_normalizer.normalize(q, now) or date_normalizer.current_date()
                holidays = await self._calendar.on_date(date.fromisoformat(info.date))
                primary = select_primary(holidays)
                if primary:
                    fact = f"{info.human} is {primary.name}."
                    if primary.description:
                        fact += " " + primary.description[:FESTIVAL_DESCRIPTION_CHARS]
                    return self._calendar_result(fact, primary.name, info, len(holidays), q, domain, route, started)
        except Exception as e:
            logger.warning(
                "Festival lookup failed, falling back to web search",
                extra={"extra_fields": {"error": str(e), "error_type": type(e).__name__}},
            )
        return None

    def _calendar_result(
        self,
        fact: str,
        title: str,
        date_info: DateInfo,
        count: int,
        q: str,
        domain: str,
        route: str,
        started: float,
    ) -> SearchResult:
        result = SearchResult(
            fact=fact,
            top_titles=title,
            source=SourceKind.CALENDAR,
            best_url=None,
            domain=domain,
            route=route,
            date_info=date_info,
            timing=SearchTiming(total_ms=self._elapsed_ms(started)),
            results_found=count,
            query_used=q,
            provider=self._calendar.provider_name,
        )
        self._complete(result)
        return result

    def _from_strict(self, q: str, strict: StrictSearchResult, risk: RiskClassification) -> SearchResult:
        verification = None
        if strict.success:
            score = ConfidenceScore(
                score=clamp_to_band(strict.agreement_score, strict.confidence),
                level=strict.confidence,
            )
            agreement = AgreementDetail(
                level=strict.agreement_level,
                agreeing=sorted({s.provider for s in strict.sources}),
                domain_overlap=strict.agreement_score,
            )
            verification = ConsistencyResult(
                tier=VerificationTier.STRICT,
                confidence=strict.confidence,
                confidence_score=score.score,
                agreement=agreement,
                providers_used=self._strict.provider_names,
                verified_fact=None,
                llm_instruction=self._consistency.build_llm_instruction(score, VerificationTier.STRICT, agreement),
                total_time_ms=strict.time_ms,
            )

        result = SearchResult(
            fact=strict.answer if strict.success else NO_RESULTS_FACT,
            top_titles=" | ".join(s.title for s in strict.sources[:3]),
            source=SourceKind.GROUNDED if strict.success else SourceKind.NONE,
            best_url=strict.sources[0].url if strict.sources else None,
            domain=risk.category.value,
            route="strict",
            timing=SearchTiming(provider_ms=strict.time_ms, total_ms=strict.time_ms),
            prompt_tokens=estimate_tokens(strict.answer),
            results_found=len(strict.sources),
            query_used=q,
            provider=self._strict.grounded_name,
            tier=VerificationTier.STRICT,
            pipeline="strict",
            risk=risk,
            verification=verification,
            sources=list(strict.sources),
            disclaimer=strict.disclaimer,
            error=strict.error,
        )
        self._complete(result)
        return result

    def _complete(self, result: SearchResult) -> None:
        self._events.emit(
            ev.SEARCH_COMPLETE,
            pipeline=result.pipeline,
            source=result.source.value,
            provider=result.provider,
            tier=result.tier.value,
            results_found=result.results_found,
            total_ms=result.timing.total_ms,
            error=result.error,
        )

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.monotonic() - started) * 1000)
