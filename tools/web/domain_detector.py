"""Keyword-based topic detection for search queries.

Each domain carries three vocabularies:
- vector: single words matched token by token (2 points each)
- keywords: words or phrases matched as whole phrases (3 points each)
- anchors: domain-defining phrases (10 points each)

The highest scoring domain wins; anything below the threshold is ``general``.
"""

import re

DETECTION_THRESHOLD = 3

SEMANTIC_WEIGHT = 2
KEYWORD_WEIGHT = 3
ANCHOR_WEIGHT = 10

DOMAINS: dict[str, dict[str, list[str]]] = {
    "festival": {
        "vector": [
            "festival", "tyohar", "utsav", "panchami", "ekadashi", "purnima",
            "amavasya", "jayanti", "vrat", "hindu", "puja", "basant",
            "diwali", "holi", "navratri", "durga", "ganesh", "shivratri",
            "janmashtami", "parv", "celebration",
        ],
        "keywords": [
            "festival", "tyohar", "utsav", "panchami", "ekadashi", "amavasya",
            "purnima", "basant", "jayanti", "vrat", "puja", "holi", "diwali",
            "eid", "christmas", "navratri", "shivratri", "ganesh", "durga",
            "rakhi", "raksha bandhan", "bhai dooj", "karwa chauth", "lohri",
            "baisakhi", "onam", "pongal", "ugadi", "chhath", "guru purab",
        ],
        "anchors": [
            "diwali", "holi", "navratri", "shivratri", "janmashtami",
            "eid", "christmas", "ganesh chaturthi", "ram navami",
            "durga puja", "raksha bandhan", "karwa chauth",
        ],
    },
    "sports": {
        "vector": [
            "sports", "match", "score", "live", "cricket", "ipl", "football",
            "innings", "toss", "team", "player", "tournament",
            "khel", "kheladi", "jeet", "haar", "final",
        ],
        "keywords": [
            "match", "score", "cricket", "ipl", "football", "toss", "innings",
            "playing xi", "odi", "t20", "test match", "kabaddi", "hockey", "tennis",
            "badminton", "fifa", "world cup", "olympics", "asian games",
            "bcci", "icc", "rcb", "csk", "kkr", "srh", "lsg",
            "premier league", "la liga", "nba", "wwe", "ufc", "boxing",
        ],
        "anchors": [
            "cricket", "ipl", "football", "kabaddi", "hockey", "tennis",
            "world cup", "playing xi", "innings", "odi", "t20", "fifa",
            "olympics", "bcci", "icc",
        ],
    },
    "finance": {
        "vector": [
            "stock", "market", "finance", "nifty", "sensex", "price", "share",
            "crypto", "bitcoin", "gold", "rupee", "dollar", "investment",
            "silver", "trading", "sip", "paisa", "daam",
        ],
        "keywords": [
            "sensex", "nifty", "stock", "share", "crypto", "bitcoin", "ethereum",
            "rupee", "dollar", "gold", "petrol", "diesel", "lpg",
            "trading", "mutual fund", "sip", "demat", "ipo", "dividend",
            "loan", "emi", "interest rate", "rbi", "tax", "gst", "itr",
            "sone ka bhav", "chandi", "forex", "exchange rate",
        ],
        "anchors": [
            "sensex", "nifty", "crypto", "bitcoin", "demat", "mutual fund", "sip",
            "stock market", "share price", "gold price", "petrol price",
        ],
    },
    "news": {
        "vector": [
            "news", "breaking", "headline", "update", "incident", "accident",
            "report", "politics", "election", "khabar", "samachar", "viral",
        ],
        "keywords": [
            "news", "breaking", "headline", "update", "incident", "khabar",
            "election", "minister", "parliament", "lok sabha",
            "rajya sabha", "protest", "strike", "hartal", "andolan",
            "viral", "trending", "latest", "aaj ki khabar",
        ],
        "anchors": [
            "breaking news", "latest news", "aaj ki khabar", "election",
            "parliament", "lok sabha",
        ],
    },
    "entertainment": {
        "vector": [
            "movie", "film", "actor", "actress", "ott", "imdb", "rating", "review",
            "trailer", "cinema", "cinemas", "series", "netflix", "amazon", "hotstar",
            "theatre", "theater", "multiplex", "showtime", "showtimes", "screening",
            "bollywood", "hollywood", "tollywood", "kollywood",
            "song", "album", "gaana", "music",
        ],
        "keywords": [
            "movie", "film", "web series", "trailer", "imdb", "ott",
            "box office", "rating", "review", "netflix", "amazon prime", "hotstar",
            "cinema", "cinemas", "theatre", "theater", "multiplex",
            "showtime", "showtimes", "screening", "movie hall", "ticket booking",
            "bollywood", "hollywood", "tollywood", "premiere", "filmfare",
            "songs", "album", "playlist", "drama", "episode", "season",
            "gaana", "spotify", "youtube music",
        ],
        "anchors": [
            "cinema", "cinemas", "theatre", "theater", "multiplex",
            "showtime", "showtimes", "screening", "movie hall", "ticket booking",
            "bollywood", "hollywood", "tollywood", "filmfare", "imdb rating",
        ],
    },
    "weather": {
        "vector": [
            "weather", "temperature", "forecast", "rain", "humidity", "storm",
            "mausam", "barish", "garmi", "sardi", "climate", "heatwave", "thand",
        ],
        "keywords": [
            "weather", "mausam", "temperature", "forecast", "rain", "barish",
            "humidity", "storm", "garmi", "sardi", "thand", "toofan",
            "heatwave", "cold wave", "monsoon", "winter", "summer",
            "aaj ka mausam", "kal ka mausam",
        ],
        "anchors": [
            "weather", "mausam", "forecast", "heatwave", "barish", "toofan",
            "aaj ka mausam", "temperature today",
        ],
    },
    "health": {
        "vector": [
            "health", "medical", "doctor", "hospital", "disease", "illness",
            "medicine", "tablet", "dawai", "treatment", "symptoms", "cure",
            "sehat", "bimari", "ilaj", "dawa",
        ],
        "keywords": [
            "doctor", "hospital", "clinic", "medicine", "tablet", "dawai",
            "symptoms", "treatment", "disease", "illness", "cure", "therapy",
            "diabetes", "sugar", "blood pressure", "heart", "cancer",
            "fever", "bukhar", "cold", "cough", "covid", "vaccine",
            "ayurveda", "yoga", "homeopathy", "allopathy",
            "aiims", "apollo", "fortis", "max hospital",
            "side effects", "dosage", "prescription",
        ],
        "anchors": [
            "symptoms", "treatment", "medicine", "tablet", "dawai", "doctor",
            "hospital", "disease", "bimari", "ilaj", "side effects", "dosage",
        ],
    },
    "food": {
        "vector": [
            "food", "recipe", "cook", "restaurant", "khana", "dish", "cuisine",
            "ingredients",
        ],
        "keywords": [
            "recipe", "cook", "cooking", "banane ka tarika", "kaise banaye",
            "restaurant", "dhaba", "cafe", "bakery",
            "biryani", "curry", "roti", "dal", "sabzi", "paneer", "chicken", "mutton",
            "dessert", "mithai", "cake", "sweet",
            "breakfast", "lunch", "dinner", "snack", "nashta",
            "zomato", "swiggy", "food delivery",
            "vegetarian", "non veg", "vegan",
        ],
        "anchors": [
            "recipe", "banane ka tarika", "kaise banaye", "restaurant",
            "zomato", "swiggy", "food delivery", "ingredients",
        ],
    },
    "travel": {
        "vector": [
            "travel", "trip", "tour", "hotel", "flight", "booking", "vacation",
            "holiday", "tourist", "destination", "ghoomna", "safar",
        ],
        "keywords": [
            "travel", "trip", "tour", "hotel", "flight", "booking", "vacation",
            "holiday", "tourist", "destination", "resort", "homestay",
            "train", "bus", "irctc", "makemytrip", "goibibo", "oyo",
            "places to visit", "tourist places", "ghoomne ki jagah",
            "visa", "passport", "airport", "railway station",
            "beach", "hill station", "temple", "mandir",
        ],
        "anchors": [
            "hotel booking", "flight booking", "places to visit", "tourist places",
            "ghoomne ki jagah", "irctc", "makemytrip", "visa", "passport",
        ],
    },
    "education": {
        "vector": [
            "education", "college", "university", "school", "exam", "admission",
            "course", "degree", "padhai", "study", "syllabus",
        ],
        "keywords": [
            "college", "university", "school", "exam", "admission", "entrance",
            "course", "degree", "syllabus", "result", "marks", "grade",
            "jee", "neet", "upsc", "ssc", "cat", "gate", "ias", "ips",
            "engineering", "mba", "btech", "mbbs",
            "scholarship", "fellowship", "cutoff", "merit list",
            "iit", "nit", "bits", "jnu",
        ],
        "anchors": [
            "admission", "syllabus", "exam date", "cutoff",
            "jee", "neet", "upsc", "ssc", "entrance exam", "merit list",
        ],
    },
    "local": {
        "vector": [
            "nearby", "local", "address", "location", "direction",
            "timing", "contact",
        ],
        "keywords": [
            "near me", "nearby", "paas mein", "kahan hai", "kidhar hai",
            "address", "location", "direction", "route", "map",
            "timing", "timings", "opening hours", "closing time",
            "contact", "phone number", "mobile number",
            "shop", "store", "mall", "showroom",
            "atm", "bank", "petrol pump", "gas station",
        ],
        "anchors": [
            "near me", "nearby", "paas mein", "kahan hai", "address",
            "timing", "timings", "contact number", "opening hours",
        ],
    },
    "tech": {
        "vector": [
            "technology", "phone", "mobile", "laptop", "computer", "gadget",
            "specs", "review", "comparison", "software", "app",
        ],
        "keywords": [
            "phone", "mobile", "smartphone", "laptop", "computer",
            "specs", "specifications", "review", "comparison", "versus", "vs",
            "iphone", "samsung", "oneplus", "xiaomi", "redmi", "realme",
            "processor", "ram", "storage", "camera", "battery", "display",
            "android", "ios", "windows", "mac", "linux",
            "app", "software", "download", "install",
            "wifi", "bluetooth", "5g", "4g", "internet",
        ],
        "anchors": [
            "specs", "specifications", "comparison", "vs",
            "price in india", "launch date", "features",
            "best phone", "best laptop", "which is better",
        ],
    },
    "government": {
        "vector": [
            "government", "sarkari", "yojana", "scheme", "form", "apply",
            "notification", "vacancy", "recruitment", "naukri",
        ],
        "keywords": [
            "sarkari", "government", "yojana", "scheme", "policy",
            "form", "apply", "application", "registration",
            "notification", "circular", "gazette",
            "vacancy", "recruitment", "bharti", "naukri", "job",
            "eligibility", "documents", "deadline", "last date",
            "ration card", "aadhar", "pan card", "driving license",
            "pm kisan", "ayushman bharat", "mudra loan", "jan dhan",
        ],
        "anchors": [
            "sarkari yojana", "government scheme", "apply online",
            "eligibility", "last date", "notification", "vacancy",
            "sarkari naukri", "form bharna", "documents required",
        ],
    },
}


def _normalize(text: str) -> str:
    text = re.sub(r"[^\w\s]", " ", text.lower())
    return re.sub(r"\s+", " ", text).strip()


def _contains_phrase(padded_query: str, phrase: str) -> bool:
    return f" {phrase} " in padded_query


class DomainDetector:
    """Scores a query against every domain vocabulary and picks the best one."""

    def __init__(self, domains: dict[str, dict[str, list[str]]] | None = None, threshold: int = DETECTION_THRESHOLD):
        self._domains = domains or DOMAINS
        self._threshold = threshold

    def scores(self, query: str) -> dict[str, int]:
        q = _normalize(query)
        padded = f" {q} "
        tokens = [t for t in q.split(" ") if len(t) > 2]
        result: dict[str, int] = {}
        for domain, vocab in self._domains.items():
            vector = set(vocab.get("vector", []))
            semantic = sum(1 for t in tokens if t in vector)
            keyword = sum(1 for k in vocab.get("keywords", []) if _contains_phrase(padded, k))
            anchor = sum(1 for a in vocab.get("anchors", []) if _contains_phrase(padded, a))
            result[domain] = semantic * SEMANTIC_WEIGHT + keyword * KEYWORD_WEIGHT + anchor * ANCHOR_WEIGHT
        return result

    def detect(self, query: str) -> str:
        q = _normalize(query)
        if len(q) < 2:
            return "general"

        best, best_score = "general", 0
        for domain, score in self.scores(q).items():
            if score > best_score:
                best, best_score = domain, score

        if best_score < self._threshold:
            return "general"
        return best

    def top_domains(self, query: str, n: int = 3) -> list[tuple[str, int]]:
        ranked = sorted(self.scores(query).items(), key=lambda kv: kv[1], reverse=True)
        return ranked[:n]
