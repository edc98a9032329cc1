"""
Two-level quality gate for single-provider results.

Level 1 is a relevance floor: the best item must score at least
``min_top_score`` or the provider must have supplied a usable direct answer.
Level 2 looks for evidence that matches what the query asks for (a rating for
rating questions, an amount for price questions, and so on) in the answer plus
the top five snippets.
"""

import re

from orchestrator.routing_types import GateDecision
from tools.web.contracts import ProviderResult
from tools.web.relevance import RelevanceScorer

MIN_TOP_SCORE = 15
MIN_ANSWER_CHARS = 30
SNIPPETS_CHECKED = 5

USELESS_PHRASES = [
    "not yet available",
    "tbd",
    "coming soon",
    "to be announced",
    "to be confirmed",
    "no information available",
    "information not available",
    "not announced yet",
    "no results found",
    "page not found",
]

# (query pattern, evidence pattern, failure reason)
EVIDENCE_RULES = [
    (
        re.compile(r"\b(rating|ratings|imdb|review|reviews|stars?)\b", re.I),
        re.compile(r"\d+(\.\d+)?\s*(/\s*10|/\s*5|out\s+of\s+(10|5)|stars?)|(rating|imdb)[:\s]+\d", re.I),
        "missing_rating",
    ),
    (
        re.compile(r"\b(price|prices|cost|rate|rates|bhav|daam|kimat|keemat|kitna)\b", re.I),
        re.compile(r"(₹|\brs\.?|\binr|\$|\busd)\s*[\d,]+|[\d,]+(\.\d+)?\s*(rupees|lakh|crore|dollars)", re.I),
        "missing_price",
    ),
    (
        re.compile(r"\b(score|scores|result|results|won|winner|jita|jeeta|match)\b", re.I),
        re.compile(r"\d{1,3}\s*[-/]\s*\d{1,3}|\b(won|beat|defeated|lost|draw|tied|wickets?|runs)\b", re.I),
        "missing_score",
    ),
    (
        re.compile(r"\b(weather|temperature|mausam|forecast|rain|barish)\b", re.I),
        re.compile(
            r"-?\d+\s*(°|degrees|deg\b)|\b(sunny|cloudy|rain|rainy|showers|humid|clear|haze|hazy"
            r"|fog|foggy|storm|thunder\w*|drizzle|overcast|snow)\b",
            re.I,
        ),
        "missing_weather",
    ),
]


class QualityGate:
    def __init__(self, scorer: RelevanceScorer | None = None, min_top_score: float = MIN_TOP_SCORE):
        self._scorer = scorer or RelevanceScorer()
        self._min_top_score = min_top_score

    def check(self, query: str, result: ProviderResult) -> GateDecision:
        top_score = self._scorer.top_score(query, result.items)
        if top_score == float("-inf"):
            top_score = 0.0
        answer = result.answer or ""

        if top_score < self._min_top_score and len(answer) <= MIN_ANSWER_CHARS:
            return GateDecision(ok=False, reason="low_relevance", level=1, top_score=top_score)

        snippets = [item.description for item in result.items[:SNIPPETS_CHECKED] if item.description]
        evidence = " ".join([answer, *snippets])
        lowered = evidence.lower()

        for phrase in USELESS_PHRASES:
            if re.search(rf"\b{re.escape(phrase)}\b", lowered):
                return GateDecision(ok=False, reason=f"useless_phrase:{phrase}", level=2, top_score=top_score)

        for query_pattern, evidence_pattern, reason in EVIDENCE_RULES:
            if query_pattern.search(query) and not evidence_pattern.search(evidence):
                return GateDecision(ok=False, reason=reason, level=2, top_score=top_score)

        return GateDecision(ok=True, reason="ok", level=2, top_score=top_score)
