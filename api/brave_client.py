import time
from typing import Any

import httpx

from orchestrator.routing_types import Freshness
from tools.web.contracts import ProviderResult, SearchResultItem
from utils.logger import get_logger

from .base_client import BaseSearchProvider

logger = get_logger(__name__)

BRAVE_SEARCH_URL = "https://api.search.brave.com/res/v1/web/search"
RETRY_STATUSES = (502, 503)


def extract_answer(data: dict[str, Any]) -> str:
    """Direct answer from the first populated field, in Brave's priority order."""
    query = data.get("query") or {}
    if query.get("answer"):
        return str(query["answer"])

    infobox = data.get("infobox") or {}
    if infobox.get("description"):
        return str(infobox["description"])
    values = [str(entry.get("value")) for entry in infobox.get("data") or [] if entry and entry.get("value")]
    if values:
        return " ".join(values)

    snippet = data.get("featured_snippet") or {}
    return str(snippet.get("description") or snippet.get("answer") or "")


def parse_results(data: dict[str, Any]) -> list[SearchResultItem]:
    items = []
    for raw in (data.get("web") or {}).get("results") or []:
        url = raw.get("url") or ""
        if not url:
            continue
        items.append(
            SearchResultItem(
                title=raw.get("title") or "",
                url=url,
                description=raw.get("description") or "",
                age=raw.get("age") or None,
            )
        )
    return items


class BraveSearchClient(BaseSearchProvider):
    """Brave Web Search API, tuned for Indian results."""

    provider_name = "brave"
    timeout_s = 15.0

    def __init__(self, api_key: str | None = None, transport: httpx.AsyncBaseTransport | None = None, **kwargs):
        super().__init__(api_key, **kwargs)
        self._transport = transport

    async def _call(self, client: httpx.AsyncClient, params: dict[str, Any]) -> tuple[int, dict[str, Any]]:
        try:
            response = await client.get(BRAVE_SEARCH_URL, params=params)
        except httpx.HTTPError as e:
            logger.warning(
                "Brave request failed",
                extra={"extra_fields": {"error": str(e), "error_type": type(e).__name__}},
            )
            return 0, {}
        if response.status_code != 200:
            logger.warning("Brave returned an error status", extra={"extra_fields": {"status": response.status_code}})
            return response.status_code, {}
        try:
            return response.status_code, response.json()
        except ValueError:
            return response.status_code, {}

    async def search(
        self, query: str, count: int = 5, freshness: Freshness = Freshness.NONE
    ) -> ProviderResult | None:
        if not self.is_configured():
            return None

        started = time.monotonic()
        params: dict[str, Any] = {
            "q": query,
            "count": count,
            "country": "IN",
            "search_lang": "en",
            "ui_lang": "en-IN",
        }
        if freshness != Freshness.NONE:
            params["freshness"] = freshness.value

        async with httpx.AsyncClient(
            timeout=self.timeout_s,
            headers={"X-Subscription-Token": self.api_key, "Accept": "application/json"},
            transport=self._transport,
        ) as client:
            status, data = await self._call(client, params)
            items = parse_results(data)

            if status in RETRY_STATUSES or not items:
                logger.info("Retrying Brave after empty or unstable response", extra={"extra_fields": {"status": status}})
                _, retry_data = await self._call(client, params)
                retry_items = parse_results(retry_data)
                if len(retry_items) > len(items):
                    data, items = retry_data, retry_items

        return self._build_result(items, extract_answer(data), started)
