"""Heuristic relevance scoring for search result items."""

import re
from datetime import datetime

from .contracts import SearchResultItem

TITLE_MATCH = 15
DESCRIPTION_MATCH = 8
EXACT_MATCH = 12
PARTIAL_MATCH = 4

FRESH_MINUTES = 10
FRESH_HOURS = 6
FRESH_DAYS = 3
FRESH_WEEKS = 1

YEAR_MATCH = 4
TRUSTED_SOURCE = 6

PENALTY_IRRELEVANT = -12
PENALTY_CLICKBAIT = -8
PENALTY_UNRELIABLE = -15

TRUSTED_DOMAINS = [
    "wikipedia.org",
    "imdb.com",
    "espncricinfo.com",
    "cricbuzz.com",
    "moneycontrol.com",
    "economictimes.com",
    "bbc.com",
]

LOCAL_BUSINESS_DOMAINS = [
    "bookmyshow.com",
    "paytm.com",
    "justdial.com",
    "zomato.com",
    "swiggy.com",
    "practo.com",
    "makemytrip.com",
    "goibibo.com",
    "yelp.com",
    "tripadvisor.com",
    "google.com/maps",
    "maps.google.com",
    "foursquare.com",
    "opentable.com",
    "fandango.com",
]

LOCAL_BUSINESS_KEYWORDS = [
    "theatre", "theater", "cinema", "movie", "multiplex", "pvr", "inox",
    "restaurant", "hotel", "cafe", "dhaba", "food", "khana",
    "hospital", "clinic", "doctor", "medical", "pharmacy",
    "shop", "mall", "store", "market",
    "atm", "bank", "petrol", "pump",
]

LOW_QUALITY_DOMAINS = ["quora.com", "pinterest.com", "tumblr.com", "fb.com", "facebook.com"]

UNRELIABLE_DOMAINS = [
    "india.gov.in",
    "gov.in",
    "nic.in",
    "mygov.in",
    "district",
    "scribd.com",
    "slideshare.net",
    "academia.edu",
    "linkedin.com",
    "medium.com",
    "archive.org",
]


def _normalize(text: str) -> str:
    text = re.sub(r"[^\w\s]", " ", text.lower())
    return re.sub(r"\s+", " ", text).strip()


class RelevanceScorer:
    """Title, description, freshness and source weighted scoring."""

    def __init__(self, current_year: int | None = None):
        self._current_year = current_year

    def score(self, query: str, item: SearchResultItem) -> float:
        q = _normalize(query)
        words = [w for w in q.split(" ") if len(w) > 2]
        title = _normalize(item.title or "")
        desc = _normalize(item.description or "")
        url = (item.url or "").lower()

        score = 0
        for w in words:
            if w in title:
                score += TITLE_MATCH
            if w in desc:
                score += DESCRIPTION_MATCH

        if q and (q in title or q in desc):
            score += EXACT_MATCH

        if len(q) > 4 and (q[:4] in title or q[:4] in desc):
            score += PARTIAL_MATCH

        if item.age:
            age = item.age.lower()
            if "minute" in age:
                score += FRESH_MINUTES
            elif "hour" in age:
                score += FRESH_HOURS
            elif "day" in age:
                score += FRESH_DAYS
            elif "week" in age:
                score += FRESH_WEEKS

        year = self._current_year or datetime.now().year
        for candidate in (year - 1, year, year + 1):
            if str(candidate) in title or str(candidate) in desc:
                score += YEAR_MATCH
                break

        if any(kw in q for kw in LOCAL_BUSINESS_KEYWORDS):
            if any(domain in url for domain in LOCAL_BUSINESS_DOMAINS):
                score += TRUSTED_SOURCE * 3

        if any(domain in url for domain in TRUSTED_DOMAINS):
            score += TRUSTED_SOURCE

        for bad in LOW_QUALITY_DOMAINS:
            if bad in url:
                score += PENALTY_CLICKBAIT

        if any(unreliable in url for unreliable in UNRELIABLE_DOMAINS):
            score += PENALTY_UNRELIABLE

        if not any(w in title or w in desc for w in words):
            score += PENALTY_IRRELEVANT

        return score

    def scored(self, query: str, items) -> list[tuple[SearchResultItem, float]]:
        """Items paired with their score, best first; ties keep provider order."""
        pairs = [(item, self.score(query, item)) for item in items]
        return sorted(pairs, key=lambda pair: pair[1], reverse=True)

    def rank(self, query: str, items) -> list[SearchResultItem]:
        return [item for item, _ in self.scored(query, items)]

    def best(self, query: str, items) -> SearchResultItem | None:
        ranked = self.scored(query, items)
        return ranked[0][0] if ranked else None

    def top_score(self, query: str, items) -> float:
        ranked = self.scored(query, items)
        return ranked[0][1] if ranked else float("-inf")
