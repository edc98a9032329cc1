"""
Result assembly - turns the winning provider result into the final fact block.

Everything here is pure: no provider calls, no fetches. The orchestrator hands
over what it gathered and gets back one ``SearchResult``.
"""

import re
from dataclasses import dataclass

from models.search_result import NO_INFORMATION_FACT, NO_RESULTS_FACT, SearchResult, SearchTiming
from orchestrator.routing_types import ConsistencyResult, RiskClassification, SourceKind, VerificationTier
from tools.web.contracts import DateInfo, FetchedPage, ProviderResult, SearchResultItem

RATING_QUERY = re.compile(r"\b(rating|imdb|score|review)\b", re.IGNORECASE)

RATING_PATTERNS = [
    re.compile(r"⭐\s*(\d+\.?\d*)"),
    re.compile(r"(\d+\.?\d*)\s*/\s*10\b"),
    re.compile(r"rating[:\s]+(\d+\.?\d*)", re.IGNORECASE),
    re.compile(r"imdb[:\s]+(\d+\.?\d*)", re.IGNORECASE),
    re.compile(r"(\d+\.?\d*)\s*out\s*of\s*10", re.IGNORECASE),
]

RATING_SOURCES = {"imdb.com": 2.0, "rottentomatoes.com": 1.5, "metacritic.com": 1.5}

# Titles whose real rating is well above 7; a lower candidate is a misparse
WELL_KNOWN_HIGH_RATED = [
    "shawshank redemption",
    "godfather",
    "dark knight",
    "schindler's list",
    "pulp fiction",
    "inception",
    "interstellar",
    "3 idiots",
    "dangal",
    "taare zameen par",
    "sholay",
    "breaking bad",
    "game of thrones",
]
SANITY_FLOOR = 7.0

MIN_PAGE_CHARS = 100
MIN_ANSWER_CHARS = 30


@dataclass(frozen=True)
class RatingCandidate:
    value: float
    url: str
    weight: float

    @property
    def from_imdb(self) -> bool:
        return "imdb" in self.url.lower()


def is_rating_query(query: str, route: str) -> bool:
    return route != "sports" and bool(RATING_QUERY.search(query))


def _source_bonus(item: SearchResultItem) -> float:
    for domain, bonus in RATING_SOURCES.items():
        if item.source_domain == domain or item.source_domain.endswith("." + domain):
            return bonus
    return 0.0


def rating_candidates(items: list[SearchResultItem]) -> list[RatingCandidate]:
    candidates = []
    for item in items[:5]:
        text = f"{item.title} {item.description}"
        for pattern in RATING_PATTERNS:
            match = pattern.search(text)
            if not match:
                continue
            try:
                value = float(match.group(1))
            except ValueError:
                continue
            if 1 <= value <= 10:
                candidates.append(RatingCandidate(value, item.url, 1.0 + _source_bonus(item)))
                break
    return candidates


def _is_implausible(value: float, query: str) -> bool:
    q = query.lower()
    return value < SANITY_FLOOR and any(title in q for title in WELL_KNOWN_HIGH_RATED)


def extract_rating(query: str, items: list[SearchResultItem]) -> str | None:
    """
    Vote on a rating across the top results.

    Candidates are grouped by value (one decimal). Each vote counts 1 plus a
    bonus for review sites. Returns the formatted line for the winner.
    """
    votes: dict[float, list[RatingCandidate]] = {}
    for candidate in rating_candidates(items):
        if _is_implausible(candidate.value, query):
            continue
        votes.setdefault(round(candidate.value, 1), []).append(candidate)

    if not votes:
        return None

    value, backers = max(votes.items(), key=lambda kv: sum(c.weight for c in kv[1]))
    origin = "IMDB" if any(c.from_imdb for c in backers) else "search results"
    return f"IMDB Rating: {value:g}/10 (from {origin})"


def build_context(
    content: str,
    title: str | None = None,
    url: str | None = None,
    related: str | None = None,
) -> str:
    context = f"{title}\n\n" if title else ""
    context += content.strip()
    if related:
        context += f"\n\nRelated: {related}"
    if url:
        context += f"\n\nSource: {url}"
    return context.strip()


def empty_result(
    domain: str,
    route: str,
    date_info: DateInfo | None,
    query_used: str,
    total_ms: int = 0,
    tier: VerificationTier = VerificationTier.NO_VERIFY,
    risk: RiskClassification | None = None,
    error: str | None = None,
) -> SearchResult:
    return SearchResult(
        fact=NO_RESULTS_FACT,
        top_titles="",
        source=SourceKind.NONE,
        best_url=None,
        domain=domain,
        route=route,
        date_info=date_info,
        timing=SearchTiming(total_ms=total_ms),
        results_found=0,
        query_used=query_used,
        tier=tier,
        risk=risk,
        error=error,
    )


def assemble(
    query: str,
    winner: ProviderResult,
    best: SearchResultItem | None,
    domain: str,
    route: str,
    query_used: str,
    page: FetchedPage | None = None,
    verification: ConsistencyResult | None = None,
    tier: VerificationTier = VerificationTier.NO_VERIFY,
    date_info: DateInfo | None = None,
    timing: SearchTiming | None = None,
    risk: RiskClassification | None = None,
) -> SearchResult:
    """
    Build the final ``SearchResult`` for a request that found something.

    Args:
        query: The user's (normalized) query, used for rating detection
        winner: The provider result selected by the engine
        best: Most relevant item of ``winner``
        page: Deep-fetched page, if a fetch was attempted
        verification: Consistency result when cross-checking ran
    """
    items = list(winner.items)
    top_titles = " | ".join(item.title for item in items[:3])
    answer = winner.answer or ""

    rating_line = extract_rating(query, items) if is_rating_query(query, route) else None
    prefix = f"{rating_line}\n\n" if rating_line else ""

    best_url = best.url if best else None
    if verification and tier != VerificationTier.NO_VERIFY and verification.verified_fact:
        fact = prefix + verification.verified_fact.strip()
        source = SourceKind.SNIPPET
    elif page and page.success and page.content_length > MIN_PAGE_CHARS:
        fact = build_context(prefix + page.content, title=page.title, url=page.url or best_url)
        source = SourceKind.WEBFETCH
        best_url = page.url or best_url
    elif best:
        fact = build_context(
            prefix + (best.description or answer),
            title=best.title,
            url=best.url,
            related=top_titles,
        )
        source = SourceKind.SNIPPET
    elif len(answer) > MIN_ANSWER_CHARS:
        fact = build_context(prefix + answer)
        source = SourceKind.ANSWER
    else:
        fact = NO_INFORMATION_FACT
        source = SourceKind.NONE

    return SearchResult(
        fact=fact,
        top_titles=top_titles,
        source=source,
        best_url=best_url,
        domain=domain,
        route=route,
        date_info=date_info,
        timing=timing or SearchTiming(),
        results_found=len(items),
        query_used=query_used,
        provider=winner.provider,
        tier=tier,
        risk=risk,
        verification=verification,
    )
