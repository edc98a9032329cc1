"""
Models package for search result objects.
"""

from .search_options import SearchOptions
from .search_result import SearchResult, SearchTiming, StrictSearchResult, estimate_tokens

__all__ = ["SearchOptions", "SearchResult", "SearchTiming", "StrictSearchResult", "estimate_tokens"]
