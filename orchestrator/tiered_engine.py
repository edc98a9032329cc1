"""
TieredSearchEngine - provider execution driven by the verification tier.

NO_VERIFY walks the route's provider list one at a time and stops at the first
result that passes the quality gate. STANDARD and STRICT fan out to the top
two / three providers concurrently and wait for every call before picking the
result whose best item scores highest.
"""

import asyncio
import time
from collections.abc import Iterable
from dataclasses import dataclass, field

from api.base_client import BaseSearchProvider
from orchestrator import events as ev
from orchestrator.events import EventEmitter
from orchestrator.quality_gate import QualityGate
from orchestrator.quota import QuotaGuard, UnlimitedQuota
from orchestrator.routing_types import GateDecision, RouteProfile, VerificationTier
from tools.web.contracts import ProviderResult
from tools.web.relevance import RelevanceScorer
from utils.logger import get_logger

logger = get_logger(__name__)

FAN_OUT = {
    VerificationTier.STANDARD: 2,
    VerificationTier.STRICT: 3,
}


@dataclass(frozen=True)
class EngineOutcome:
    winner: ProviderResult | None
    provider_results: list[ProviderResult] = field(default_factory=list)
    tried: list[str] = field(default_factory=list)
    gate_decisions: list[tuple[str, GateDecision]] = field(default_factory=list)
    parallel: bool = False

    @property
    def is_empty(self) -> bool:
        return self.winner is None


class TieredSearchEngine:
    """
    Runs one request's provider calls.

    Example usage:
        engine = TieredSearchEngine([google_cse, brave, tavily])
        outcome = await engine.run("ipl score today", route, VerificationTier.STANDARD)
        if outcome.winner:
            print(outcome.winner.provider, outcome.winner.items[0].title)
    """

    def __init__(
        self,
        providers: Iterable[BaseSearchProvider],
        scorer: RelevanceScorer | None = None,
        gate: QualityGate | None = None,
        quota: QuotaGuard | None = None,
        events: EventEmitter | None = None,
        timeout_margin_s: float = 1.0,
    ):
        """
        Args:
            providers: Available providers; routes refer to them by ``provider_name``
            scorer: Relevance scorer used to rank items and pick winners
            gate: Quality gate for the sequential path
            quota: Budget guard reserving a slot before every provider call
            events: Sink for pipeline events
            timeout_margin_s: Slack added on top of each provider's own timeout
        """
        self._providers = {p.provider_name: p for p in providers}
        self._scorer = scorer or RelevanceScorer()
        self._gate = gate or QualityGate(self._scorer)
        self._quota = quota or UnlimitedQuota()
        self._events = events or EventEmitter()
        self._timeout_margin_s = timeout_margin_s

    @property
    def provider_names(self) -> list[str]:
        return list(self._providers)

    def _ordered(self, route: RouteProfile) -> list[str]:
        return [name for name in route.providers if name in self._providers]

    def top_score(self, query: str, result: ProviderResult) -> float:
        return self._scorer.top_score(query, result.items)

    async def run(
        self,
        query: str,
        route: RouteProfile,
        tier: VerificationTier,
        relevance_query: str | None = None,
    ) -> EngineOutcome:
        """
        Execute the provider plan for ``tier``.

        Args:
            query: String sent to the providers
            route: Route profile supplying provider order, count and freshness
            tier: Verification tier for this request
            relevance_query: Text used for relevance scoring and gating
                (defaults to ``query``)

        Returns:
            EngineOutcome; ``winner`` is None when no provider returned anything
        """
        scoring_query = relevance_query or query
        order = self._ordered(route)

        if tier == VerificationTier.NO_VERIFY or tier not in FAN_OUT:
            return await self._sequential(query, scoring_query, route, order)
        return await self._parallel(query, scoring_query, route, order, FAN_OUT[tier])

    async def _safe_call(self, name: str, query: str, route: RouteProfile) -> ProviderResult | None:
        """
        Call one provider with quota and timeout handling.

        Timeouts and unexpected exceptions are logged and reported as absence.
        Cancellation is left to propagate.
        """
        provider = self._providers[name]

        # the slot is spent even if the call then fails or times out
        if provider.is_configured() and not self._quota.acquire(name):
            self._events.emit(ev.PROVIDER_RESULT, provider=name, status="quota_denied", items=0, latency_ms=0)
            return None

        timeout_s = provider.timeout_s + self._timeout_margin_s
        started = time.monotonic()
        try:
            result = await asyncio.wait_for(
                provider.search(query, count=route.result_count, freshness=route.freshness),
                timeout=timeout_s,
            )
        except asyncio.TimeoutError:
            latency_ms = int((time.monotonic() - started) * 1000)
            logger.warning(
                f"Timeout for provider {name}",
                extra={"extra_fields": {"provider": name, "timeout_s": timeout_s}},
            )
            self._events.emit(ev.PROVIDER_RESULT, provider=name, status="timeout", items=0, latency_ms=latency_ms)
            return None
        except Exception as e:
            latency_ms = int((time.monotonic() - started) * 1000)
            logger.error(
                f"Unexpected error for provider {name}: {e}",
                extra={
                    "extra_fields": {
                        "provider": name,
                        "error": str(e),
                        "error_type": type(e).__name__,
                    }
                },
            )
            self._events.emit(ev.PROVIDER_RESULT, provider=name, status="error", items=0, latency_ms=latency_ms)
            return None

        latency_ms = int((time.monotonic() - started) * 1000)
        if result is None or not result.has_results:
            self._events.emit(ev.PROVIDER_RESULT, provider=name, status="empty", items=0, latency_ms=latency_ms)
            return None

        self._events.emit(
            ev.PROVIDER_RESULT,
            provider=name,
            status="ok",
            items=len(result.items),
            latency_ms=result.latency_ms or latency_ms,
            has_answer=bool(result.answer),
        )
        return result

    async def _sequential(
        self,
        query: str,
        scoring_query: str,
        route: RouteProfile,
        order: list[str],
    ) -> EngineOutcome:
        tried: list[str] = []
        provider_results: list[ProviderResult] = []
        decisions: list[tuple[str, GateDecision]] = []
        best_so_far: ProviderResult | None = None
        best_score = float("-inf")

        for name in order:
            tried.append(name)
            result = await self._safe_call(name, query, route)
            if result is None:
                continue
            provider_results.append(result)

            decision = self._gate.check(scoring_query, result)
            decisions.append((name, decision))
            self._events.emit(
                ev.GATE_DECISION,
                provider=name,
                ok=decision.ok,
                reason=decision.reason,
                level=decision.level,
                top_score=decision.top_score,
            )

            if decision.ok:
                return EngineOutcome(result, provider_results, tried, decisions)

            if decision.top_score > best_score:
                best_so_far, best_score = result, decision.top_score

        return EngineOutcome(best_so_far, provider_results, tried, decisions)

    async def _parallel(
        self,
        query: str,
        scoring_query: str,
        route: RouteProfile,
        order: list[str],
        fan_out: int,
    ) -> EngineOutcome:
        selected = order[:fan_out]
        logger.info(
            f"Fanning out to {len(selected)} providers",
            extra={"extra_fields": {"providers": selected, "domain": route.domain}},
        )

        # _safe_call never raises for provider failures, so no return_exceptions
        results = await asyncio.gather(*(self._safe_call(name, query, route) for name in selected))
        provider_results = [r for r in results if r is not None]

        if not provider_results:
            remaining = [name for name in order if name not in selected] or order
            fallback = await self._sequential(query, scoring_query, route, remaining)
            return EngineOutcome(
                winner=fallback.winner,
                provider_results=fallback.provider_results,
                tried=selected + fallback.tried,
                gate_decisions=fallback.gate_decisions,
                parallel=True,
            )

        winner = max(provider_results, key=lambda r: self.top_score(scoring_query, r))
        return EngineOutcome(
            winner=winner,
            provider_results=provider_results,
            tried=list(selected),
            parallel=True,
        )
