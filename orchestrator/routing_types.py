from dataclasses import dataclass, field
from enum import Enum


class RiskLevel(str, Enum):
    LOW_RISK = "LOW_RISK"
    HIGH_RISK = "HIGH_RISK"


class RiskCategory(str, Enum):
    HEALTH = "health"
    FINANCE = "finance"
    LEGAL = "legal"
    GOVERNMENT = "government"
    GENERAL = "general"


class VerificationTier(str, Enum):
    NO_VERIFY = "NO_VERIFY"
    STANDARD = "STANDARD"
    STRICT = "STRICT"


class ConfidenceLevel(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class AgreementLevel(str, Enum):
    # general path
    UNANIMOUS = "UNANIMOUS"
    MAJORITY = "MAJORITY"
    SPLIT = "SPLIT"
    SINGLE = "SINGLE"
    # strict path
    STRONG = "STRONG"
    PARTIAL = "PARTIAL"
    WEAK = "WEAK"
    CONFLICT = "CONFLICT"


class Freshness(str, Enum):
    PER_DAY = "pd"
    PER_WEEK = "pw"
    PER_MONTH = "pm"
    NONE = "none"


class SourceKind(str, Enum):
    WEBFETCH = "webfetch"
    SNIPPET = "snippet"
    ANSWER = "answer"
    CALENDAR = "calendar"
    GROUNDED = "grounded"
    NONE = "none"


class FactType(str, Enum):
    RATING = "RATING"
    PRICE = "PRICE"
    SCORE = "SCORE"
    NUMBER = "NUMBER"
    DATE = "DATE"


@dataclass(frozen=True)
class RiskClassification:
    level: RiskLevel
    category: RiskCategory = RiskCategory.GENERAL
    matched_keyword: str | None = None

    @property
    def is_high_risk(self) -> bool:
        return self.level == RiskLevel.HIGH_RISK


@dataclass(frozen=True)
class TierDecision:
    tier: VerificationTier
    reasons: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RouteProfile:
    domain: str
    route: str
    result_count: int = 5
    freshness: Freshness = Freshness.NONE
    webfetch: bool = False
    providers: list[str] = field(default_factory=list)
    suffix: str = ""


@dataclass(frozen=True)
class GateDecision:
    ok: bool
    reason: str = "ok"
    level: int = 0
    top_score: float = 0.0


@dataclass(frozen=True)
class FactCluster:
    type: FactType
    values: list[tuple[str, str, float]]  # (normalized value, provider, confidence)
    consensus: str | None
    agreement_ratio: float
    trust_score: float

    @property
    def providers(self) -> set[str]:
        return {provider for _, provider, _ in self.values}


@dataclass(frozen=True)
class AgreementDetail:
    level: AgreementLevel
    agreeing: list[str] = field(default_factory=list)
    disagreeing: list[str] = field(default_factory=list)
    conflict_description: str | None = None
    domain_overlap: float | None = None


@dataclass(frozen=True)
class ConfidenceScore:
    score: float
    level: ConfidenceLevel
    reasoning: str = ""


@dataclass(frozen=True)
class ConsistencyResult:
    tier: VerificationTier
    confidence: ConfidenceLevel
    confidence_score: float
    agreement: AgreementDetail
    providers_used: list[str]
    verified_fact: str | None
    llm_instruction: str
    reasoning: str = ""
    total_time_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "tier": self.tier.value,
            "confidence": self.confidence.value,
            "confidence_score": round(self.confidence_score, 3),
            "agreement": self.agreement.level.value,
            "agreeing": list(self.agreement.agreeing),
            "disagreeing": list(self.agreement.disagreeing),
            "conflict_description": self.agreement.conflict_description,
            "domain_overlap": self.agreement.domain_overlap,
            "providers_used": list(self.providers_used),
            "llm_instruction": self.llm_instruction,
            "reasoning": self.reasoning,
            "total_time_ms": self.total_time_ms,
        }
