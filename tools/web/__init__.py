"""Web tooling for TrustSearch: detection, scoring, extraction and deep fetch."""

from .contracts import (
    DateInfo,
    ExtractedFact,
    FetchedPage,
    GroundedAnswer,
    ProviderResult,
    SearchResultItem,
    SearchSource,
)

__all__ = [
    "DateInfo",
    "ExtractedFact",
    "FetchedPage",
    "GroundedAnswer",
    "ProviderResult",
    "SearchResultItem",
    "SearchSource",
]
