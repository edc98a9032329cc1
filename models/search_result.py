from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from orchestrator.routing_types import (
    AgreementLevel,
    ConfidenceLevel,
    ConsistencyResult,
    RiskClassification,
    SourceKind,
    VerificationTier,
)
from tools.web.contracts import DateInfo, SearchSource

NO_RESULTS_FACT = "No results found."
NO_INFORMATION_FACT = "No relevant information found for this query."


@dataclass(frozen=True)
class SearchTiming:
    provider_ms: int = 0
    fetch_ms: int = 0
    total_ms: int = 0


@dataclass(frozen=True)
class SearchResult:
    fact: str
    top_titles: str
    source: SourceKind
    best_url: str | None
    domain: str
    route: str
    date_info: DateInfo | None = None
    timing: SearchTiming = field(default_factory=SearchTiming)
    prompt_tokens: int = 0
    results_found: int = 0
    query_used: str = ""
    provider: str | None = None
    tier: VerificationTier = VerificationTier.NO_VERIFY
    pipeline: str = "simple"  # simple|strict
    risk: RiskClassification | None = None
    verification: ConsistencyResult | None = None
    sources: list[SearchSource] = field(default_factory=list)
    disclaimer: str | None = None
    error: str | None = None

    timestamp: str = field(default_factory=lambda: datetime.utcnow().isoformat() + "Z")

    def __post_init__(self):
        if self.prompt_tokens == 0 and self.fact and self.results_found > 0:
            object.__setattr__(self, "prompt_tokens", estimate_tokens(self.fact))

    @property
    def success(self) -> bool:
        return self.source != SourceKind.NONE and self.error is None

    @property
    def is_empty(self) -> bool:
        return self.results_found == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "fact": self.fact,
            "top_titles": self.top_titles,
            "source": self.source.value,
            "best_url": self.best_url,
            "domain": self.domain,
            "route": self.route,
            "date_info": self.date_info.to_dict() if self.date_info else None,
            "timing": {
                "provider_ms": self.timing.provider_ms,
                "fetch_ms": self.timing.fetch_ms,
                "total_ms": self.timing.total_ms,
            },
            "prompt_tokens": self.prompt_tokens,
            "results_found": self.results_found,
            "query_used": self.query_used,
            "provider": self.provider,
            "tier": self.tier.value,
            "pipeline": self.pipeline,
            "risk": (
                {
                    "level": self.risk.level.value,
                    "category": self.risk.category.value,
                    "matched_keyword": self.risk.matched_keyword,
                }
                if self.risk
                else None
            ),
            "verification": self.verification.to_dict() if self.verification else None,
            "sources": [s.to_dict() for s in self.sources],
            "disclaimer": self.disclaimer,
            "success": self.success,
            "error": self.error,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class StrictSearchResult:
    success: bool
    answer: str
    sources: list[SearchSource]
    confidence: ConfidenceLevel
    agreement_score: float
    agreement_level: AgreementLevel
    time_ms: int
    disclaimer: str | None = None
    error: str | None = None

    @classmethod
    def failure(cls, error: str, time_ms: int) -> "StrictSearchResult":
        return cls(
            success=False,
            answer="",
            sources=[],
            confidence=ConfidenceLevel.LOW,
            agreement_score=0.0,
            agreement_level=AgreementLevel.CONFLICT,
            time_ms=time_ms,
            error=error,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "answer": self.answer,
            "sources": [s.to_dict() for s in self.sources],
            "confidence": self.confidence.value,
            "agreement": {"score": round(self.agreement_score, 3), "level": self.agreement_level.value},
            "disclaimer": self.disclaimer,
            "time_ms": self.time_ms,
            "error": self.error,
        }


def estimate_tokens(text: str) -> int:
    """Rough prompt-budget estimate, four characters per token."""
    return -(-len(text) // 4)
