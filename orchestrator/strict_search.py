"""
StrictSearch - the high-risk pipeline (health, finance, legal, government).

A grounded model answers the question while a plain web search runs alongside
it purely to corroborate sources. Agreement is the overlap of the two source
domain sets; there is no fallback to an ungrounded answer.
"""

import asyncio
import time

from api.base_client import BaseGroundedProvider, BaseSearchProvider
from models.search_result import StrictSearchResult
from orchestrator import events as ev
from orchestrator.consistency_engine import confidence_for, jaccard, strict_agreement_level
from orchestrator.events import EventEmitter
from orchestrator.routing_types import ConfidenceLevel, RiskCategory
from tools.web.contracts import GroundedAnswer, SearchSource
from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_S = 20.0
MIN_ANSWER_CHARS = 50
VERIFICATION_COUNT = 5
MAX_SOURCES = 4

DISCLAIMERS = {
    RiskCategory.HEALTH: "⚠️ This is not medical advice. Consult a qualified doctor.",
    RiskCategory.FINANCE: "⚠️ This is not financial advice. Consult a certified advisor.",
    RiskCategory.LEGAL: "⚠️ This is not legal advice. Consult a qualified lawyer.",
    RiskCategory.GOVERNMENT: "⚠️ For official information, verify from government websites.",
}
DEFAULT_DISCLAIMER = "⚠️ Please verify this information from official sources."

ALWAYS_DISCLAIM = (RiskCategory.HEALTH, RiskCategory.FINANCE, RiskCategory.LEGAL)

STRICT_PROMPT = """You MUST use web search tool.

STRICT RULES:
- This is a high-risk query.
- Only answer using verified web results.
- Do not guess.
- Include specific names, dates, numbers.
- If conflicting information exists, mention it.

Query:
{query}"""


def sanitize(query: str) -> str:
    return query.strip().strip('"').strip()


def build_prompt(query: str) -> str:
    return STRICT_PROMPT.format(query=query)


def coerce_category(category: RiskCategory | str | None) -> RiskCategory:
    if isinstance(category, RiskCategory):
        return category
    try:
        return RiskCategory((category or "").lower())
    except ValueError:
        return RiskCategory.GENERAL


def disclaimer_for(category: RiskCategory, confidence: ConfidenceLevel) -> str | None:
    if category not in ALWAYS_DISCLAIM and confidence != ConfidenceLevel.LOW:
        return None
    return DISCLAIMERS.get(category, DEFAULT_DISCLAIMER)


def merge_sources(
    grounded: list[SearchSource], verification: list[SearchSource], limit: int = MAX_SOURCES
) -> list[SearchSource]:
    """Unique-by-URL sources, corroborated domains first, grounded before verification."""
    corroborated = {s.domain for s in grounded} & {s.domain for s in verification}

    seen: set[str] = set()
    unique: list[SearchSource] = []
    for source in [*grounded, *verification]:
        if source.url in seen:
            continue
        seen.add(source.url)
        unique.append(source)

    # sorted() is stable, so provider order survives within each group
    ranked = sorted(unique, key=lambda s: s.domain not in corroborated)
    return ranked[:limit]


class StrictSearch:
    """
    Example usage:
        strict = StrictSearch(GeminiGroundingClient(key), BraveSearchClient(key))
        result = await strict.run("paracetamol dosage for fever", RiskCategory.HEALTH)
        print(result.confidence, result.answer)
    """

    def __init__(
        self,
        grounded: BaseGroundedProvider | None,
        verifier: BaseSearchProvider | None = None,
        events: EventEmitter | None = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ):
        self._grounded = grounded
        self._verifier = verifier
        self._events = events or EventEmitter()
        self.timeout_s = timeout_s

    def is_configured(self) -> bool:
        return self._grounded is not None and self._grounded.is_configured()

    @property
    def grounded_name(self) -> str | None:
        return self._grounded.provider_name if self._grounded else None

    @property
    def provider_names(self) -> list[str]:
        return [p.provider_name for p in (self._grounded, self._verifier) if p is not None]

    async def _verify(self, query: str) -> list[SearchSource]:
        if self._verifier is None:
            return []
        try:
            result = await self._verifier.search(query, count=VERIFICATION_COUNT)
        except Exception as e:
            logger.warning(
                "Verification search failed",
                extra={"extra_fields": {"error": str(e), "error_type": type(e).__name__}},
            )
            return []
        if result is None:
            return []
        return [
            SearchSource(title=item.title, url=item.url, domain=item.source_domain, provider=result.provider)
            for item in result.items
            if item.url
        ]

    async def _gather(self, query: str) -> tuple[GroundedAnswer | None, list[SearchSource]]:
        return await asyncio.gather(self._grounded.answer(build_prompt(query)), self._verify(query))

    async def run(self, query: str, category: RiskCategory | str | None = None) -> StrictSearchResult:
        started = time.monotonic()
        category = coerce_category(category)
        clean_query = sanitize(query)

        def elapsed() -> int:
            return int((time.monotonic() - started) * 1000)

        if not self.is_configured():
            return self._fail("Grounded provider not configured", elapsed())

        try:
            grounded, verification_sources = await asyncio.wait_for(self._gather(clean_query), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            logger.warning("Strict search timed out", extra={"extra_fields": {"timeout_s": self.timeout_s}})
            return self._fail("Timeout", elapsed())
        except Exception as e:
            logger.error(
                f"Strict search failed: {e}",
                extra={"extra_fields": {"error": str(e), "error_type": type(e).__name__}},
            )
            return self._fail(str(e), elapsed())

        if grounded is None or len(grounded.answer) < MIN_ANSWER_CHARS:
            return self._fail("Primary provider failed", elapsed())

        score = jaccard({s.domain for s in grounded.sources}, {s.domain for s in verification_sources})
        level = strict_agreement_level(score)
        confidence = confidence_for(level)
        disclaimer = disclaimer_for(category, confidence)

        result = StrictSearchResult(
            success=True,
            answer=f"{grounded.answer}\n\n{disclaimer}" if disclaimer else grounded.answer,
            sources=merge_sources(grounded.sources, verification_sources),
            confidence=confidence,
            agreement_score=score,
            agreement_level=level,
            time_ms=elapsed(),
            disclaimer=disclaimer,
        )
        self._events.emit(
            ev.STRICT_RESULT,
            success=True,
            category=category.value,
            agreement=level.value,
            agreement_score=round(score, 3),
            confidence=confidence.value,
            sources=len(result.sources),
            time_ms=result.time_ms,
        )
        return result

    def _fail(self, error: str, time_ms: int) -> StrictSearchResult:
        self._events.emit(ev.STRICT_RESULT, success=False, error=error, time_ms=time_ms)
        return StrictSearchResult.failure(error, time_ms)
