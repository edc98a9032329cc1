"""
Keyword-based risk classification.

A query that touches health, finance, legal or government topics is HIGH_RISK
and is answered through the grounded strict path. Keyword lists include the
romanized Hindi terms users actually type ("dawai", "vakil", "sarkari").
"""

import re

from orchestrator.routing_types import RiskCategory, RiskClassification, RiskLevel

MIN_KEYWORD_LENGTH = 3

RISK_KEYWORDS: dict[RiskCategory, list[str]] = {
    RiskCategory.HEALTH: [
        "dose", "dosage", "medicine", "tablet", "capsule", "injection", "vaccine",
        "symptoms", "disease", "diagnosis", "treatment", "surgery", "operation",
        "doctor", "hospital", "clinic", "prescription", "side effect", "overdose",
        "drug interaction", "contraindication", "pregnant", "pregnancy",
        "dawai", "dawa", "goli", "bimari", "bimaari", "ilaj", "ilaaj",
        "doctor sahab", "aspatal", "aushadhi", "davai", "teeka",
    ],
    RiskCategory.FINANCE: [
        "investment", "invest", "loan", "emi", "interest rate", "tax", "gst",
        "income tax", "itr", "mutual fund", "stock", "share market", "trading",
        "insurance", "lic", "policy", "premium", "claim", "refund", "bank account",
        "fixed deposit", "ppf", "epf", "pf withdrawal", "credit score", "cibil",
        "bankruptcy", "debt", "npa",
        "nivesh", "paisa lagana", "bima", "beema", "karza", "karz", "byaj", "byaaj",
        "tax bharana", "return file", "mutual fund mein", "share kharidna",
    ],
    RiskCategory.LEGAL: [
        "court", "judge", "lawyer", "advocate", "bail", "arrest", "police complaint",
        "case file", "hearing", "verdict", "sentence", "section", "ipc", "crpc",
        "bns", "bnss", "legal notice", "property dispute", "divorce", "custody",
        "alimony", "will", "inheritance", "consumer court", "cyber crime",
        "defamation", "cheating case",
        "adalat", "vakil", "vakeel", "kanoon", "qanoon", "zamanat", "jamanat",
        "thana", "police station", "mukadma", "muqadma", "peshi", "faisla",
    ],
    RiskCategory.GOVERNMENT: [
        "visa", "passport", "oci", "citizenship", "immigration", "deportation",
        "aadhar", "aadhaar", "pan card", "voter id", "driving license",
        "birth certificate", "death certificate", "domicile", "caste certificate",
        "government scheme", "sarkari yojana", "subsidy", "pension", "ration card",
        "pm kisan", "ayushman", "ujjwala", "mudra loan", "pmay", "scholarship",
        "sarkari", "sarkaari", "document banwana", "apply karna", "form bharna",
    ],
}


def _compile(keywords: dict[RiskCategory, list[str]]) -> list[tuple[RiskCategory, list[tuple[str, re.Pattern]]]]:
    compiled = []
    for category, words in keywords.items():
        patterns = [
            (word, re.compile(rf"\b{re.escape(word)}\b"))
            for word in words
            if len(word) >= MIN_KEYWORD_LENGTH
        ]
        compiled.append((category, patterns))
    return compiled


class RiskClassifier:
    """First matching category wins; categories are checked in declaration order."""

    def __init__(self, keywords: dict[RiskCategory, list[str]] | None = None):
        self._categories = _compile(keywords or RISK_KEYWORDS)

    def classify_detailed(self, query: str) -> RiskClassification:
        text = (query or "").lower().strip()
        if not text:
            return RiskClassification(level=RiskLevel.LOW_RISK)

        for category, patterns in self._categories:
            for word, pattern in patterns:
                if pattern.search(text):
                    return RiskClassification(
                        level=RiskLevel.HIGH_RISK,
                        category=category,
                        matched_keyword=word,
                    )

        return RiskClassification(level=RiskLevel.LOW_RISK)

    def classify(self, query: str) -> RiskLevel:
        return self.classify_detailed(query).level

    def is_high_risk(self, query: str) -> bool:
        return self.classify(query) == RiskLevel.HIGH_RISK

    def is_low_risk(self, query: str) -> bool:
        return self.classify(query) == RiskLevel.LOW_RISK


_default = RiskClassifier()


def classify(query: str) -> RiskLevel:
    return _default.classify(query)


def classify_detailed(query: str) -> RiskClassification:
    return _default.classify_detailed(query)


def is_high_risk(query: str) -> bool:
    return _default.is_high_risk(query)


def is_low_risk(query: str) -> bool:
    return _default.is_low_risk(query)
