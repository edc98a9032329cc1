import time
from abc import ABC, abstractmethod

from orchestrator.routing_types import Freshness
from tools.web.contracts import GroundedAnswer, ProviderResult, SearchResultItem


class BaseSearchProvider(ABC):
    """
    Abstract base class for web-search providers.

    Implementations must be safe to call concurrently and must return None,
    never raise, when they are unconfigured, find nothing, or hit a transport
    error. Callers treat every None the same way: the provider is absent.
    """

    provider_name: str = ""
    timeout_s: float = 10.0

    def __init__(self, api_key: str | None = None, **kwargs):
        self.api_key = api_key
        self.timeout_s = kwargs.get("timeout_s", self.timeout_s)

    def is_configured(self) -> bool:
        return bool(self.api_key)

    @abstractmethod
    async def search(
        self, query: str, count: int = 5, freshness: Freshness = Freshness.NONE
    ) -> ProviderResult | None:
        """
        Run one search.

        Args:
            query: Search string, already rewritten for the route
            count: Maximum number of items wanted
            freshness: Recency window hint

        Returns:
            ProviderResult with at least one item, or None
        """
        raise NotImplementedError

    def _build_result(
        self, items: list[SearchResultItem], answer: str | None, started: float
    ) -> ProviderResult | None:
        if not items:
            return None
        return ProviderResult(
            provider=self.provider_name,
            items=tuple(items),
            answer=answer or None,
            latency_ms=int((time.monotonic() - started) * 1000),
        )


class BaseGroundedProvider(ABC):
    """A model that answers with live web-search grounding (strict path only)."""

    provider_name: str = ""
    timeout_s: float = 20.0

    def __init__(self, api_key: str | None = None, **kwargs):
        self.api_key = api_key

    def is_configured(self) -> bool:
        return bool(self.api_key)

    @abstractmethod
    async def answer(self, prompt: str) -> GroundedAnswer | None:
        """Return the grounded answer with its cited sources, or None on failure."""
        raise NotImplementedError
