import asyncio
import time
from typing import Any

import httpx

from orchestrator.routing_types import Freshness
from tools.web.contracts import ProviderResult, SearchResultItem
from utils.logger import get_logger

from .base_client import BaseSearchProvider

logger = get_logger(__name__)

CSE_API_URL = "https://www.googleapis.com/customsearch/v1"
MAX_RETRIES = 2
MAX_NUM = 10

DATE_RESTRICT = {
    Freshness.PER_DAY: "d1",
    Freshness.PER_WEEK: "w1",
    Freshness.PER_MONTH: "m1",
}


def _is_retryable(status: int) -> bool:
    return status == 429 or status >= 500


class GoogleCSEClient(BaseSearchProvider):
    """Google Programmable Search (Custom Search JSON API)."""

    provider_name = "google_cse"
    timeout_s = 10.0

    def __init__(
        self,
        api_key: str | None = None,
        engine_id: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_delay_s: float = 1.0,
        **kwargs,
    ):
        super().__init__(api_key, **kwargs)
        self.engine_id = engine_id
        self._transport = transport
        self._retry_delay_s = retry_delay_s

    def is_configured(self) -> bool:
        return bool(self.api_key and self.engine_id)

    async def search(
        self, query: str, count: int = 5, freshness: Freshness = Freshness.NONE
    ) -> ProviderResult | None:
        if not self.is_configured():
            return None
        if not query.strip():
            return None

        started = time.monotonic()
        params: dict[str, Any] = {
            "key": self.api_key,
            "cx": self.engine_id,
            "q": query,
            "num": max(1, min(count, MAX_NUM)),
        }
        if freshness in DATE_RESTRICT:
            params["dateRestrict"] = DATE_RESTRICT[freshness]

        # every attempt and backoff shares one timeout_s budget
        deadline = started + self.timeout_s
        data: dict[str, Any] | None = None
        async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
            for attempt in range(MAX_RETRIES + 1):
                if attempt:
                    delay = self._retry_delay_s * attempt
                    if time.monotonic() + delay >= deadline:
                        logger.warning(
                            "Google CSE retry skipped, time budget spent",
                            extra={"extra_fields": {"attempt": attempt}},
                        )
                        break
                    await asyncio.sleep(delay)
                try:
                    remaining = max(deadline - time.monotonic(), 0.1)
                    response = await client.get(CSE_API_URL, params=params, timeout=remaining)
                except httpx.TimeoutException:
                    logger.warning("Google CSE request timed out", extra={"extra_fields": {"attempt": attempt}})
                    break
                except httpx.HTTPError as e:
                    logger.warning(
                        "Google CSE request failed",
                        extra={"extra_fields": {"attempt": attempt, "error": str(e), "error_type": type(e).__name__}},
                    )
                    continue

                if response.status_code == 200:
                    try:
                        data = response.json()
                    except ValueError:
                        data = None
                    break

                logger.warning(
                    "Google CSE returned an error status",
                    extra={"extra_fields": {"attempt": attempt, "status": response.status_code}},
                )
                if not _is_retryable(response.status_code):
                    break

        if not data:
            return None

        items = [
            SearchResultItem(
                title=raw.get("title") or "",
                url=raw["link"],
                description=raw.get("snippet") or "",
            )
            for raw in data.get("items") or []
            if raw.get("link")
        ]
        return self._build_result(items, None, started)
