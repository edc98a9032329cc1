"""Regex extraction of comparable facts (ratings, prices, scores, numbers, dates)."""

import re
from datetime import datetime, timedelta

from orchestrator.routing_types import FactType

from .contracts import ExtractedFact, SearchResultItem

RATING_PATTERNS = [
    re.compile(r"(\d+\.?\d*)\s*/\s*10\b"),
    re.compile(r"(\d+\.?\d*)\s*out\s*of\s*10\b", re.I),
    re.compile(r"⭐\s*(\d+\.?\d*)"),
    re.compile(r"(?:rating|imdb|score)[:\s]+(\d+\.?\d*)", re.I),
]

PRICE_PATTERNS = [
    re.compile(r"₹\s*([\d,]+\.?\d*)"),
    re.compile(r"\bRs\.?\s*([\d,]+\.?\d*)", re.I),
    re.compile(r"\$\s*([\d,]+\.?\d*)"),
    re.compile(r"([\d,]+\.?\d*)\s*(lakh|crore|thousand|million|billion)\b", re.I),
    re.compile(r"(?:price|cost|rate|bhav|daam|kimat)[:\s]+₹?\s*([\d,]+\.?\d*)", re.I),
]

SCORE_PATTERNS = [
    re.compile(r"(?<![\d.\-/])(\d{1,3})\s*[-–/]\s*(\d{1,3})(?![\d.\-/])"),
    re.compile(r"(?:won|beat|defeated|lost)\s+(?:by\s+)?(\d+)", re.I),
    re.compile(r"(?:jita|jeeta|haara|tied|draw)\s+(\d+)", re.I),
]

NUMBER_PATTERNS = [
    re.compile(r"(\d+\.?\d*)\s*%"),
    re.compile(r"(\d+\.?\d*)\s*(billion|million|trillion|crore|lakh|thousand)\b", re.I),
]

DATE_PATTERNS = [
    re.compile(r"(\d{1,2})\s+(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)\w*\s+(\d{4})", re.I),
    re.compile(r"(\d{4})-(\d{2})-(\d{2})"),
]

CONFIDENCE = {
    FactType.PRICE: 0.85,
    FactType.SCORE: 0.80,
    FactType.NUMBER: 0.75,
    FactType.DATE: 0.85,
}

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

MULTIPLIERS = [
    ("trillion", 1e12),
    ("billion", 1e9),
    ("million", 1e6),
    ("crore", 1e7),
    ("lakh", 1e5),
    ("thousand", 1e3),
    ("hazar", 1e3),
]


def _context(text: str, match: re.Match, pad: int) -> str:
    return text[max(0, match.start() - pad) : match.end() + pad]


def collect_text(items, answer: str | None) -> str:
    texts: list[str] = []
    if answer and len(answer) > 10:
        texts.append(answer)
    for item in list(items)[:5]:
        if item.title:
            texts.append(item.title)
        if item.description:
            texts.append(item.description)
    return " ".join(texts)


def extract_facts(items: list[SearchResultItem], answer: str | None, provider: str) -> list[ExtractedFact]:
    """
    Extract structured facts from one provider's answer and top five results.

    Args:
        items: Result items from the provider
        answer: Optional direct answer text
        provider: Provider id recorded on every fact

    Returns:
        Facts in pattern order; the same value may appear more than once
    """
    combined = collect_text(items, answer)
    facts: list[ExtractedFact] = []

    for pattern in RATING_PATTERNS:
        for match in pattern.finditer(combined):
            value = float(match.group(1))
            if 1.0 <= value <= 10.0:
                facts.append(
                    ExtractedFact(
                        value=f"{value:g}/10",
                        type=FactType.RATING,
                        provider=provider,
                        confidence=0.95 if "/10" in match.group(0).replace(" ", "") else 0.80,
                        raw=_context(combined, match, 30),
                    )
                )

    groups = [
        (FactType.PRICE, PRICE_PATTERNS, 20),
        (FactType.SCORE, SCORE_PATTERNS, 30),
        (FactType.NUMBER, NUMBER_PATTERNS, 30),
        (FactType.DATE, DATE_PATTERNS, 20),
    ]
    for fact_type, patterns, pad in groups:
        for pattern in patterns:
            for match in pattern.finditer(combined):
                facts.append(
                    ExtractedFact(
                        value=match.group(0).strip(),
                        type=fact_type,
                        provider=provider,
                        confidence=CONFIDENCE[fact_type],
                        raw=_context(combined, match, pad),
                    )
                )

    return facts


def _first_number(value: str) -> float | None:
    match = re.search(r"\d+(?:\.\d+)?", value.replace(",", ""))
    return float(match.group(0)) if match else None


def _format_number(value: float) -> str:
    return str(int(value)) if value == int(value) else repr(value)


def normalize_date(value: str, now: datetime | None = None) -> str:
    """Normalize a date mention to YYYY-MM-DD; unparsable text is lower-cased."""
    trimmed = value.strip().lower()
    now = now or datetime.now()

    if trimmed in ("today", "aaj"):
        return now.strftime("%Y-%m-%d")
    if trimmed in ("tomorrow", "kal", "agle din"):
        return (now + timedelta(days=1)).strftime("%Y-%m-%d")
    if trimmed in ("yesterday", "kal raat", "pichle din"):
        return (now - timedelta(days=1)).strftime("%Y-%m-%d")

    iso = re.search(r"(\d{4})-(\d{2})-(\d{2})", value)
    if iso:
        return f"{iso.group(1)}-{iso.group(2)}-{iso.group(3)}"

    dmy = re.search(r"(\d{1,2})\s+(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)\w*\s+(\d{4})", value, re.I)
    if dmy:
        month = MONTHS[dmy.group(2).lower()[:3]]
        return f"{dmy.group(3)}-{month:02d}-{int(dmy.group(1)):02d}"

    mdy = re.search(r"(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)\w*\s+(\d{1,2}),?\s+(\d{4})", value, re.I)
    if mdy:
        month = MONTHS[mdy.group(1).lower()[:3]]
        return f"{mdy.group(3)}-{month:02d}-{int(mdy.group(2)):02d}"

    slashed = re.search(r"(\d{1,2})[/-](\d{1,2})[/-](\d{4})", value)
    if slashed:
        first, second, year = int(slashed.group(1)), int(slashed.group(2)), slashed.group(3)
        # month first unless the first field cannot be a month
        if first <= 12:
            return f"{year}-{first:02d}-{second:02d}"
        return f"{year}-{second:02d}-{first:02d}"

    return trimmed


def normalize_fact(value: str, fact_type: FactType, now: datetime | None = None) -> str:
    """Canonical form used to compare facts across providers."""
    if fact_type == FactType.RATING:
        number = _first_number(value)
        return f"{number:.1f}" if number is not None else value

    if fact_type in (FactType.PRICE, FactType.NUMBER):
        number = _first_number(value)
        if number is None:
            return value
        lowered = value.lower()
        for unit, multiplier in MULTIPLIERS:
            if fact_type == FactType.PRICE and unit in ("trillion", "billion", "million"):
                continue
            if unit in lowered:
                return _format_number(number * multiplier)
        return _format_number(number)

    if fact_type == FactType.SCORE:
        return re.sub(r"\s", "", re.sub(r"[–—]", "-", value))

    if fact_type == FactType.DATE:
        return normalize_date(value, now=now)

    return value.lower().strip()
