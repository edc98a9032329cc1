"""Route-aware rewriting of the provider query."""

import re

from tools.web.contracts import DateInfo

THEATRE_KEYWORDS = ["theatre", "theater", "cinema", "movie hall", "multiplex"]
RESTAURANT_KEYWORDS = ["restaurant", "hotel", "cafe", "dhaba", "food"]
HOSPITAL_KEYWORDS = ["hospital", "clinic", "doctor", "medical", "pharmacy"]

SHOWTIME_KEYWORDS = [
    "lagi", "lagi hai", "lag rahi", "chal rahi", "chal raha",
    "running", "showtime", "show time", "playing", "screening",
    "ticket", "book", "kab lagi", "kahan lagi", "yahaan", "yahan",
    "mere shehar", "mere city", "hometown",
]

# "border 2 lagi hai" is a film, not a geography question
MOVIE_TITLE_PATTERN = re.compile(
    r"\b(border|race|dhoom|krrish|bahubali|pushpa|jawan|pathaan|tiger|war|bang bang|don|dabangg|"
    r"singham|golmaal|housefull|dhamaal|welcome|no entry|hera pheri|de de pyaar de|animal|fighter|"
    r"bade miyan|stree|bhool bhulaiyaa)\s*\d*\b",
    re.IGNORECASE,
)

SHOWTIME_FILLER = re.compile(
    r"\b(lagi hai|lagi|lag rahi|chal rahi|chal raha|hai|yahaan|yahan|mere shehar|mere city|hometown|kahan|kab)\b",
    re.IGNORECASE,
)

FACTUAL_QUESTION = re.compile(
    r"^(what|who|when|where|why|how|kya|kaun|kab|kahan|kyun|kaise)\s+(is|are|was|were|hai|hain|tha|the|thi)\b",
    re.IGNORECASE,
)

FESTIVAL_KEYWORDS = [
    "holi", "diwali", "dussehra", "navratri", "ganesh chaturthi", "janmashtami",
    "raksha bandhan", "rakhi", "mahashivratri", "shivratri", "vasant panchami",
    "basant panchami", "karwa chauth", "chhath", "onam", "pongal", "ugadi",
    "makar sankranti", "lohri", "baisakhi", "vaisakhi", "gurpurab", "guru nanak",
    "eid", "eid ul fitr", "eid ul adha", "bakrid", "muharram", "christmas",
    "easter", "good friday", "thanksgiving", "independence day", "republic day",
    "gandhi jayanti", "ram navami", "hanuman jayanti", "buddha purnima",
    "mahavir jayanti", "guru purnima", "karva chauth", "bhai dooj", "dhanteras",
    "holika dahan", "rang panchami", "chaitra navratri", "durga puja",
]

FESTIVAL_DATE_WORDS = ["today", "aaj", "kal", "tomorrow", "parso"]


def _contains_any(text: str, keywords: list[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def extract_festival_name(query: str) -> str | None:
    """Longest festival keyword contained in ``query`` ("eid ul adha" beats "eid")."""
    q = query.lower()
    matches = [festival for festival in FESTIVAL_KEYWORDS if festival in q]
    if not matches:
        return None
    return max(matches, key=len)


def has_festival_date_word(query: str) -> bool:
    return _contains_any(query.lower(), FESTIVAL_DATE_WORDS)


def is_showtime_query(query: str) -> bool:
    return _contains_any(query.lower(), SHOWTIME_KEYWORDS) or bool(MOVIE_TITLE_PATTERN.search(query))


def _with_suffix(query: str, suffix: str) -> str:
    # skip when the query already carries one of the suffix words
    present = set(query.lower().split())
    words = suffix.lower().split()
    if not words or present.intersection(words):
        return query
    return f"{query} {suffix}"


def build_query(query: str, route: str, date_info: DateInfo | None, location: str, suffix: str = "") -> str:
    """
    Rewrite ``query`` for the web-search providers.

    Venue questions get directory sites appended whatever the route. Otherwise
    the route picks a suffix; domains without a route of their own fall back to
    the general rewrite plus their configured ``suffix``. Plain "what is X"
    questions are left without a location so the providers do not localize a
    definition.
    """
    date_text = f" {date_info.human}" if date_info else ""
    q = query.lower()

    if _contains_any(q, THEATRE_KEYWORDS):
        return f"{query} justdial bookmyshow cinema theatre {location}"
    if _contains_any(q, RESTAURANT_KEYWORDS):
        return f"{query} zomato justdial {location}"
    if _contains_any(q, HOSPITAL_KEYWORDS):
        return f"{query} practo justdial {location}"

    if route == "festival":
        if date_info:
            return f"festival on {date_info.human} in {location}"
        return f"{query} festival date significance {location}"

    if route == "sports":
        return f"{query} latest score result{date_text} {location}"

    if route == "finance":
        return f"{query} price today live chart {location}"

    if route == "news":
        return f"{query} latest update {location}"

    if route == "entertainment":
        if is_showtime_query(query):
            movie = " ".join(SHOWTIME_FILLER.sub("", query).split())
            return f"{movie} movie showtimes bookmyshow {location}"
        return f"{query} release date rating review cast"

    if route == "weather":
        return f"{query} weather forecast today {location}"

    if FACTUAL_QUESTION.match(query):
        return f"{query}{date_text}"
    return f"{_with_suffix(query, suffix)}{date_text} {location}"
