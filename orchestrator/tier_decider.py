import re

from orchestrator.routing_types import TierDecision, VerificationTier

STRICT_DOMAINS = frozenset({"health", "finance", "legal", "government"})

STRICT_KEYWORDS = re.compile(
    r"\b(medicine|dosage|tablet|dawai|ilaj|treatment|disease|bimari|symptom|diagnosis|surgery"
    r"|doctor|hospital|clinic|pharmacy|drug|side\s*effects?|blood\s*pressure|diabetes|cancer"
    r"|heart|kidney|liver|injection|vaccine|antibiotic|painkiller"
    r"|sensex|nifty|stock|share\s*price|mutual\s*fund|sip|income\s*tax|gst|tax\s*slab|emi|loan"
    r"|interest\s*rate|fd\s*rate|rd\s*rate|inflation|gdp|fiscal\s*deficit|budget|insurance"
    r"|premium|claim|pension|epf|ppf|nps"
    r"|court|advocate|lawyer|fir|bail|ipc|crpc|section|act\s+\d+|amendment|constitution"
    r"|judgment|verdict"
    r"|visa|passport|immigration|asylum|oci|pr\s+card|green\s+card|sarkari|government|scheme"
    r"|yojana|subsidy|ration\s*card|aadhar|pan\s*card|driving\s*license|birth\s*certificate"
    r"|death\s*certificate)\b",
    re.IGNORECASE,
)

STANDARD_KEYWORDS = re.compile(
    r"\b(price|rate|cost|kitna|kitne|bhav|daam|kimat|rating|score|imdb|review|result|winner"
    r"|jita|jeeta|kon\s*jita|who\s*won|rank|ranking|population|gdp|salary|marks|percentage"
    r"|cutoff|admit\s*card|merit\s*list|date|kab|when|release\s*date|launch|temperature"
    r"|weather|mausam|forecast|fastest|tallest|highest|largest|longest|record|world\s*record"
    r"|how\s*many|how\s*much|total|net\s*worth|market\s*cap|revenue|profit|loss|vs|comparison"
    r"|compare|better|best|worst|top\s*\d+)\b",
    re.IGNORECASE,
)


class TierDecider:
    """Maps (domain, query) to the verification tier for a request."""

    def __init__(
        self,
        strict_domains: frozenset[str] | None = None,
        strict_keywords: re.Pattern | None = None,
        standard_keywords: re.Pattern | None = None,
    ):
        self._strict_domains = strict_domains if strict_domains is not None else STRICT_DOMAINS
        self._strict_keywords = strict_keywords or STRICT_KEYWORDS
        self._standard_keywords = standard_keywords or STANDARD_KEYWORDS

    def decide(self, domain: str, query: str) -> TierDecision:
        reasons: list[str] = []

        if domain in self._strict_domains:
            reasons.append(f"high_stakes_domain:{domain}")
            return TierDecision(tier=VerificationTier.STRICT, reasons=reasons)

        match = self._strict_keywords.search(query or "")
        if match:
            reasons.append(f"high_stakes_keyword:{match.group(0).lower()}")
            return TierDecision(tier=VerificationTier.STRICT, reasons=reasons)

        match = self._standard_keywords.search(query or "")
        if match:
            reasons.append(f"factual_keyword:{match.group(0).lower()}")
            return TierDecision(tier=VerificationTier.STANDARD, reasons=reasons)

        reasons.append("default_no_verify")
        return TierDecision(tier=VerificationTier.NO_VERIFY, reasons=reasons)
