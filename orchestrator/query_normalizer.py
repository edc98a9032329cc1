"""
Rewrites mixed Hinglish/English queries into compact search strings.

The rewrite is pure and deterministic. Substitution outputs never contain a
substitution key or a stop word, and the pipeline is re-applied until it
reaches a fixed point, so normalizing a normalized query is a no-op.
"""

import re

ENGLISH_STOP_WORDS = {
    "a", "an", "the", "is", "are", "was", "were", "am", "be", "of", "to", "in",
    "on", "at", "for", "and", "or", "please", "me", "my", "i", "you", "your",
    "can", "could", "would", "tell", "about", "do", "does", "did", "some", "any",
    "just", "plz", "pls",
}

HINGLISH_STOP_WORDS = {
    "mujhe", "mujhko", "hume", "humein", "bata", "batao", "bataiye", "bataye",
    "batana", "zara", "yaar", "bhai", "kya", "hai", "hain", "ka", "ki", "ke",
    "ko", "se", "mein", "tha", "thi", "ho", "hoga", "hogi", "raha", "rahi",
    "rahe", "de", "dijiye", "dena", "na", "toh", "bhi", "sab", "kuch", "jo",
    "ek", "aur", "ya", "chahiye", "wala", "wali", "wale",
}

STOP_WORDS = ENGLISH_STOP_WORDS | HINGLISH_STOP_WORDS

# Longest match first; applied case-insensitively on word boundaries.
PHRASE_SUBSTITUTIONS = {
    "banane ka tarika": "recipe",
    "ghoomne ki jagah": "tourist places",
    "aaj ka mausam": "weather today",
    "kal ka mausam": "weather forecast",
    "aaj ki khabar": "news today",
    "sone ka bhav": "gold price",
    "chandi ka bhav": "silver price",
    "share ka bhav": "share price",
    "kaise banaye": "recipe",
    "kitne baje": "what time",
    "kisne jeeta": "who won",
    "kaun jeeta": "who won",
    "kon jita": "who won",
    "kab lagegi": "release date",
    "kitna hai": "how much",
    "paas mein": "nearby",
    "aas paas": "nearby",
    "kab hai": "date",
    "kab se": "since when",
}

DICTIONARY = {
    "aaj": "today",
    "abhi": "now",
    "kitna": "how much",
    "kitni": "how much",
    "kitne": "how many",
    "kaun": "who",
    "kon": "who",
    "kab": "when",
    "kahan": "where",
    "kidhar": "where",
    "kyun": "why",
    "kyon": "why",
    "kaise": "how",
    "kaisa": "how",
    "mausam": "weather",
    "barish": "rain",
    "garmi": "heat",
    "sardi": "cold",
    "khabar": "news",
    "samachar": "news",
    "daam": "price",
    "kimat": "price",
    "keemat": "price",
    "bhav": "price",
    "sona": "gold",
    "sone": "gold",
    "chandi": "silver",
    "dawai": "medicine",
    "dawa": "medicine",
    "ilaj": "treatment",
    "ilaaj": "treatment",
    "bimari": "disease",
    "bimaari": "disease",
    "sarkari": "government",
    "yojana": "scheme",
    "naukri": "job",
    "jeeta": "won",
    "jita": "won",
    "haara": "lost",
    "ghar": "home",
    "shehar": "city",
    "desh": "country",
    "sabse": "most",
    "accha": "good",
    "achha": "good",
    "sasta": "cheap",
    "mehenga": "expensive",
    "paas": "near",
    "nazdeek": "nearby",
    "khana": "food",
    "tyohar": "festival",
}

# Venue / place-type words that usually follow a proper noun.
CATEGORY_ANCHORS = {
    "hospital", "clinic", "cinema", "cinemas", "theatre", "theater", "multiplex",
    "restaurant", "cafe", "dhaba", "hotel", "mall", "temple", "mandir",
    "gurudwara", "church", "masjid", "station", "school", "college",
    "university", "park", "market", "bazaar",
}

VERNACULAR_TERMS = (
    set(DICTIONARY)
    | HINGLISH_STOP_WORDS
    | {word for phrase in PHRASE_SUBSTITUTIONS for word in phrase.split()}
)

ENGLISH_RATIO_THRESHOLD = 0.7
MIN_WORDS_TO_REWRITE = 4
MIN_RESULT_CHARS = 3
MAX_ENTITY_TOKENS = 4

_ASCII_WORD = re.compile(r"^[a-z0-9']+$")
_EDGE_PUNCT = re.compile(r"^[^\w₹$]+|[^\w%]+$")


def _tokens(text: str) -> list[str]:
    cleaned = (_EDGE_PUNCT.sub("", t) for t in text.split())
    return [t for t in cleaned if t]


def _key(token: str) -> str:
    return token.lower()


class QueryNormalizer:
    def __init__(
        self,
        phrases: dict[str, str] | None = None,
        dictionary: dict[str, str] | None = None,
        stop_words: set[str] | None = None,
    ):
        self._phrases = phrases if phrases is not None else PHRASE_SUBSTITUTIONS
        self._dictionary = dictionary if dictionary is not None else DICTIONARY
        self._stop_words = stop_words if stop_words is not None else STOP_WORDS
        ordered = sorted(self._phrases, key=len, reverse=True)
        self._phrase_rules = [
            (re.compile(rf"\b{re.escape(p)}\b", re.IGNORECASE), self._phrases[p]) for p in ordered
        ]
        self._vernacular = (
            set(self._dictionary)
            | (self._stop_words - ENGLISH_STOP_WORDS)
            | {w for p in self._phrases for w in p.split()}
        )

    def normalize(self, raw: str) -> str:
        original = (raw or "").strip()
        if len(original.split()) < MIN_WORDS_TO_REWRITE:
            return original

        current = original
        for _ in range(4):
            rewritten = self._rewrite_with_entity(current)
            if rewritten == current:
                break
            current = rewritten

        if len(current) < MIN_RESULT_CHARS:
            return original
        return current

    def is_mostly_english(self, text: str) -> bool:
        tokens = _tokens(text)
        if not tokens:
            return False
        english = sum(
            1
            for t in tokens
            if _ASCII_WORD.match(_key(t))
            and _key(t) not in self._stop_words
            and _key(t) not in self._vernacular
        )
        return english / len(tokens) > ENGLISH_RATIO_THRESHOLD

    def extract_entity(self, text: str) -> str | None:
        """Proper-noun run ending in a category anchor, e.g. ``Fortis Hospital``."""
        tokens = _tokens(text)
        for idx, token in enumerate(tokens):
            if _key(token) not in CATEGORY_ANCHORS or idx == 0:
                continue
            start = idx
            while start > 0 and idx - start < MAX_ENTITY_TOKENS:
                prev = tokens[start - 1]
                if not (prev[:1].isupper() or _key(prev) not in self._stop_words | self._vernacular):
                    break
                start -= 1
            if start < idx:
                return " ".join(tokens[start : idx + 1])
        return None

    def _rewrite_with_entity(self, text: str) -> str:
        entity = self.extract_entity(text)
        rewritten = self._rewrite(text)
        if not entity or entity.lower() in rewritten.lower():
            return rewritten

        remainder = re.sub(re.escape(entity), " ", text, count=1)
        rest = self._rewrite(remainder)
        return f"{entity} {rest}".strip()

    def _rewrite(self, text: str) -> str:
        if self.is_mostly_english(text):
            return " ".join(t for t in _tokens(text) if _key(t) not in self._stop_words)

        for pattern, replacement in self._phrase_rules:
            text = pattern.sub(replacement, text)

        translated: list[str] = []
        for token in _tokens(text):
            translated.extend(self._dictionary.get(_key(token), token).split())

        kept = [t for t in translated if _key(t) not in self._stop_words]

        collapsed: list[str] = []
        for token in kept:
            if collapsed and _key(collapsed[-1]) == _key(token):
                continue
            collapsed.append(token)
        return " ".join(collapsed)


_default = QueryNormalizer()


def normalize(raw: str) -> str:
    return _default.normalize(raw)
