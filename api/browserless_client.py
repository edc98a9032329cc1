"""
Browserless rendering for JS-heavy local business sites.

Zomato, JustDial and similar directories ship an empty HTML shell and build
the listing in the browser. Browserless renders the page in a hosted headless
Chrome and returns the final HTML through its ``/content`` REST endpoint.
"""

import re
import time

import httpx
from bs4 import BeautifulSoup

from tools.web.contracts import FetchedPage, extract_domain
from utils.logger import get_logger

logger = get_logger(__name__)

BROWSERLESS_URL = "https://production-sfo.browserless.io"

RENDERED_SITES = [
    "zomato.com",
    "swiggy.com",
    "justdial.com",
    "practo.com",
    "magicpin.in",
    "yelp.com",
    "tripadvisor.com",
    "tripadvisor.in",
]

TEXT_SELECTORS = "h1, h2, h3, li, p"
NOISE = "script, style, noscript, iframe, svg, nav, footer"
UI_TEXT = re.compile(r"\b(login|log in|sign up|sign in|cookie|privacy policy|terms of use)\b", re.IGNORECASE)

MIN_BLOCK_CHARS = 20
MIN_CONTENT_CHARS = 100
MAX_TITLE_CHARS = 200

GOTO_TIMEOUT_MS = 20000
SETTLE_MS = 2000


def _clean(text: str) -> str:
    return re.sub(r"\s+", " ", text.replace("\u00a0", " ")).strip()


def extract_rendered_text(html: str) -> tuple[str, str]:
    """Return (title, text) from headings, list entries and paragraphs of a rendered page."""
    soup = BeautifulSoup(html, "html.parser")
    for node in soup.select(NOISE):
        node.decompose()

    title = _clean(soup.title.string) if soup.title and soup.title.string else ""

    blocks: list[str] = []
    seen: set[str] = set()
    for node in soup.select(TEXT_SELECTORS):
        text = _clean(node.get_text(" ", strip=True))
        if len(text) <= MIN_BLOCK_CHARS or text in seen or UI_TEXT.search(text):
            continue
        seen.add(text)
        blocks.append(text)
    return title[:MAX_TITLE_CHARS], " ".join(blocks)


class BrowserlessClient:
    """Renders a page through Browserless and extracts readable text."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = BROWSERLESS_URL,
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._transport = transport

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def handles(self, url: str) -> bool:
        host = extract_domain(url)
        return any(host == site or host.endswith("." + site) for site in RENDERED_SITES)

    async def render(self, url: str, max_chars: int = 2000) -> FetchedPage:
        start = time.monotonic()
        if not self.is_configured():
            return self._fail(url, start, "API key not configured")

        payload = {
            "url": url,
            "gotoOptions": {"waitUntil": "networkidle2", "timeout": GOTO_TIMEOUT_MS},
            "waitForTimeout": SETTLE_MS,
        }
        # httpx error text embeds the request URL, token included
        error = None
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
                response = await client.post(
                    f"{self.base_url}/content",
                    params={"token": self.api_key},
                    json=payload,
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            error = f"HTTP {e.response.status_code}"
        except httpx.HTTPError as e:
            error = type(e).__name__
        if error:
            logger.warning("Browserless render failed", extra={"extra_fields": {"url": url, "error": error}})
            return self._fail(url, start, error)

        title, content = extract_rendered_text(response.text)
        content = content[:max_chars]
        if len(content) < MIN_CONTENT_CHARS:
            return self._fail(url, start, "Insufficient content")

        page = FetchedPage(
            success=True,
            url=url,
            title=title,
            content=content,
            time_ms=int((time.monotonic() - start) * 1000),
        )
        logger.info(
            "Browserless rendered page",
            extra={"extra_fields": {"url": url, "chars": page.content_length, "time_ms": page.time_ms}},
        )
        return page

    @staticmethod
    def _fail(url: str, start: float, error: str) -> FetchedPage:
        return FetchedPage(success=False, url=url, error=error, time_ms=int((time.monotonic() - start) * 1000))
