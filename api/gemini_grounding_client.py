import asyncio
import re
import time
from typing import Any

from google import genai
from google.genai import types

from tools.web.contracts import GroundedAnswer, SearchSource, extract_domain
from utils.logger import get_logger

from .base_client import BaseGroundedProvider

logger = get_logger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"

# Grounding chunk titles are usually the bare site name ("apollohospitals.com")
# while the uri is an opaque redirect.
_DOMAIN_TITLE = re.compile(r"^[\w.-]+\.(com|in|org|net|gov|co\.in|gov\.in|org\.in)$", re.IGNORECASE)


def sources_from_response(response: Any, provider: str = "gemini_grounding") -> list[SearchSource]:
    """Cited web sources from ``candidates[0].grounding_metadata.grounding_chunks``."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []

    sources = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        if web is None:
            continue
        title = (getattr(web, "title", None) or "").strip()
        uri = getattr(web, "uri", None) or ""
        url = f"https://{title}" if _DOMAIN_TITLE.match(title) else uri
        if not url:
            continue
        sources.append(SearchSource(title=title, url=url, domain=extract_domain(url), provider=provider))
    return sources


class GeminiGroundingClient(BaseGroundedProvider):
    """Gemini with the Google Search tool enabled, used for high-risk answers."""

    provider_name = "gemini_grounding"
    timeout_s = 20.0

    def __init__(self, api_key: str | None = None, model_name: str = DEFAULT_MODEL, client: Any = None, **kwargs):
        super().__init__(api_key, **kwargs)
        self.model_name = model_name
        self._client = client

    def is_configured(self) -> bool:
        return bool(self.api_key) or self._client is not None

    def _get_client(self):
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def answer(self, prompt: str) -> GroundedAnswer | None:
        if not self.is_configured():
            return None

        started = time.monotonic()
        config = types.GenerateContentConfig(
            tools=[types.Tool(google_search=types.GoogleSearch())],
        )
        try:
            response = await asyncio.wait_for(
                self._get_client().aio.models.generate_content(
                    model=self.model_name,
                    contents=prompt,
                    config=config,
                ),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError:
            logger.warning("Gemini grounding timed out", extra={"extra_fields": {"timeout_s": self.timeout_s}})
            return None
        except Exception as e:
            logger.error(
                "Gemini grounding failed",
                extra={"extra_fields": {"error": str(e), "error_type": type(e).__name__}},
            )
            return None

        text = getattr(response, "text", None) or ""
        return GroundedAnswer(
            answer=text.strip(),
            sources=sources_from_response(response, self.provider_name),
            latency_ms=int((time.monotonic() - started) * 1000),
        )
