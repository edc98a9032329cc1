import asyncio
import time
from datetime import datetime, timezone
from typing import Any

from orchestrator.routing_types import Freshness
from tools.web.contracts import ProviderResult, SearchResultItem
from utils.logger import get_logger

from .base_client import BaseSearchProvider

logger = get_logger(__name__)

TIME_RANGE = {
    Freshness.PER_DAY: "day",
    Freshness.PER_WEEK: "week",
    Freshness.PER_MONTH: "month",
}


def format_age(published: str | None, now: datetime | None = None) -> str | None:
    """Human age ("3 days ago") from a published date; None when unparsable."""
    if not published:
        return None
    try:
        when = datetime.fromisoformat(published.replace("Z", "+00:00"))
    except ValueError:
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    days = (now - when).days

    if days <= 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days} days ago"
    if days < 30:
        return f"{days // 7} weeks ago"
    if days < 365:
        return f"{days // 30} months ago"
    return f"{days // 365} years ago"


class TavilySearchClient(BaseSearchProvider):
    """
    Tavily search with its built-in answer.

    The ``tavily-python`` SDK is imported lazily on first use so the rest of
    the engine works without it. Tests can pass a ready ``client``.
    """

    provider_name = "tavily"
    timeout_s = 12.0

    def __init__(self, api_key: str | None = None, client: Any = None, **kwargs):
        super().__init__(api_key, **kwargs)
        self._client = client

    def is_configured(self) -> bool:
        return bool(self.api_key) or self._client is not None

    def _get_client(self):
        if self._client is None:
            try:
                from tavily import AsyncTavilyClient
            except ModuleNotFoundError as e:
                raise ModuleNotFoundError(
                    "Optional dependency 'tavily' is not installed. "
                    "Install it to enable the Tavily provider: pip install tavily-python"
                ) from e
            self._client = AsyncTavilyClient(api_key=self.api_key)
        return self._client

    async def search(
        self, query: str, count: int = 5, freshness: Freshness = Freshness.NONE
    ) -> ProviderResult | None:
        if not self.is_configured():
            return None

        started = time.monotonic()
        kwargs: dict[str, Any] = {
            "query": query,
            "search_depth": "basic",
            "include_answer": True,
            "include_raw_content": False,
            "max_results": count,
        }
        if freshness in TIME_RANGE:
            kwargs["time_range"] = TIME_RANGE[freshness]

        try:
            client = self._get_client()
            response = await asyncio.wait_for(client.search(**kwargs), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            logger.warning("Tavily search timed out", extra={"extra_fields": {"timeout_s": self.timeout_s}})
            return None
        except Exception as e:
            logger.error(
                "Tavily search failed",
                extra={"extra_fields": {"error": str(e), "error_type": type(e).__name__}},
            )
            return None

        items = [
            SearchResultItem(
                title=raw.get("title") or "",
                url=raw["url"],
                description=raw.get("content") or "",
                age=format_age(raw.get("published_date")),
            )
            for raw in (response or {}).get("results") or []
            if raw.get("url")
        ]
        return self._build_result(items, (response or {}).get("answer"), started)
