"""Deep fetch of result pages with paragraph extraction."""

import asyncio
import re
import time

import httpx
from bs4 import BeautifulSoup

from utils.logger import get_logger

from .cache import InMemoryTTLCache
from .contracts import FetchedPage, extract_domain

logger = get_logger(__name__)

# Pages rendered client-side; their provider snippet is better than the raw HTML.
JS_HEAVY_DOMAINS = [
    "imdb.com", "rottentomatoes.com", "metacritic.com", "letterboxd.com",
    "youtube.com", "netflix.com", "primevideo.com", "hotstar.com",
    "jiocinema.com", "sonyliv.com", "zee5.com", "voot.com", "mxplayer.in",
    "altbalaji.com", "bookmyshow.com",
    "twitter.com", "x.com", "reddit.com", "quora.com", "medium.com",
    "zomato.com", "swiggy.com", "justdial.com", "practo.com", "magicpin.in",
    "yelp.com", "tripadvisor.com", "tripadvisor.in",
    "amazon.in", "amazon.com", "flipkart.com", "myntra.com",
]
JS_HEAVY_PATHS = ["paytm.com/movies", "amazon.com/gp/video"]

BLOCKED_DOMAINS = ["linkedin.com", "facebook.com", "instagram.com", "pinterest.com", "tiktok.com"]

SELECTORS = [
    "article p",
    "main p",
    "section p",
    ".article-content p",
    ".post-content p",
    ".entry-content p",
    ".story-body p",
    ".story-content p",
    ".news-article p",
    '[itemprop="articleBody"] p',
    '[role="main"] p',
    "#main-content p",
    "#content p",
    "body p",
]

NOISE = (
    "script, style, nav, header, footer, aside, iframe, noscript, "
    ".ads, .ad, .advertisement, .sponsored, .promo, .sidebar, "
    ".related, .recommendation, .newsletter, .subscription, "
    ".popup, .modal, .paywall, .comments, .share, .social"
)

HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9,hi;q=0.8",
}

MIN_PARAGRAPH_CHARS = 50
ENOUGH_CONTENT_CHARS = 300
MIN_CONTENT_CHARS = 80


def _domain_matches(host: str, domain: str) -> bool:
    return host == domain or host.endswith("." + domain)


def is_blocked(url: str) -> bool:
    host = extract_domain(url)
    return any(_domain_matches(host, d) for d in BLOCKED_DOMAINS)


def is_js_heavy(url: str) -> bool:
    host = extract_domain(url)
    lowered = url.lower()
    if any(path in lowered for path in JS_HEAVY_PATHS):
        return True
    return any(_domain_matches(host, d) for d in JS_HEAVY_DOMAINS)


def _clean(text: str) -> str:
    return re.sub(r"\s+", " ", text.replace("\u00a0", " ")).strip()


def extract_article(html: str) -> tuple[str, str]:
    """Return (title, body text) using the first selector that yields enough prose."""
    soup = BeautifulSoup(html, "html.parser")
    for node in soup.select(NOISE):
        node.decompose()

    title = ""
    og_title = soup.find("meta", attrs={"property": "og:title"})
    if og_title and og_title.get("content"):
        title = _clean(og_title["content"])
    elif soup.title and soup.title.string:
        title = _clean(soup.title.string)
    elif soup.h1:
        title = _clean(soup.h1.get_text(" ", strip=True))

    content = ""
    # broader selectors revisit paragraphs already taken
    seen: set[str] = set()
    for selector in SELECTORS:
        nodes = soup.select(selector)
        if not nodes:
            continue
        for node in nodes:
            text = _clean(node.get_text(" ", strip=True))
            if len(text) > MIN_PARAGRAPH_CHARS and text not in seen:
                seen.add(text)
                content += text + " "
        if len(content) > ENOUGH_CONTENT_CHARS:
            break

    return title, _clean(content)


class WebFetchService:
    """Fetches a page and extracts readable paragraphs for LLM context."""

    def __init__(
        self,
        cache: InMemoryTTLCache | None = None,
        timeout_s: float = 10.0,
        retry_backoff_s: float = 0.5,
        transport: httpx.AsyncBaseTransport | None = None,
        renderer=None,
    ):
        """
        Args:
            cache: Successful extractions keyed by URL
            timeout_s: Per-request timeout for plain fetches
            retry_backoff_s: Pause before the single retry
            transport: httpx transport override
            renderer: Headless-browser client (``BrowserlessClient``) tried on
                the JS-heavy sites it ``handles``
        """
        self._cache = cache
        self._timeout_s = timeout_s
        self._retry_backoff_s = retry_backoff_s
        self._transport = transport
        self._renderer = renderer

    def can_render(self, url: str) -> bool:
        return self._renderer is not None and self._renderer.is_configured() and self._renderer.handles(url)

    async def fetch(self, url: str, max_chars: int = 2000) -> FetchedPage:
        start = time.monotonic()

        if is_blocked(url):
            return self._fail(url, start, "Blocked domain")

        if self._cache is not None:
            cached = self._cache.get(url)
            if cached is not None:
                title, content = cached
                return FetchedPage(
                    success=True,
                    url=url,
                    title=title,
                    content=content[:max_chars],
                    time_ms=self._elapsed_ms(start),
                )

        if is_js_heavy(url):
            if self.can_render(url):
                page = await self._render(url, max_chars, start)
            else:
                page = self._snippet_only(url, start, "JS-heavy site")
        else:
            page = await self._attempt(url, max_chars, start)
            if not page.success:
                logger.warning(
                    "Web fetch failed, retrying once",
                    extra={"extra_fields": {"url": url, "error": page.error}},
                )
                await asyncio.sleep(self._retry_backoff_s)
                page = await self._attempt(url, max_chars, start)

        if page.success and self._cache is not None:
            self._cache.set(url, (page.title, page.content))
        return page

    async def _render(self, url: str, max_chars: int, start: float) -> FetchedPage:
        page = await self._renderer.render(url, max_chars)
        if page.success:
            return page
        logger.warning(
            "Rendered fetch failed, falling back to snippet",
            extra={"extra_fields": {"url": url, "error": page.error}},
        )
        return self._snippet_only(url, start, f"Rendered fetch failed: {page.error}")

    async def _attempt(self, url: str, max_chars: int, start: float) -> FetchedPage:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_s,
                follow_redirects=True,
                max_redirects=4,
                headers=HEADERS,
                transport=self._transport,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            return self._fail(url, start, f"{type(e).__name__}: {e}")

        content_type = response.headers.get("content-type", "")
        if content_type and "html" not in content_type and "xml" not in content_type:
            return self._fail(url, start, f"Unsupported content type {content_type}")

        title, content = extract_article(response.text)
        content = content[:max_chars]
        if len(content) < MIN_CONTENT_CHARS:
            return self._fail(url, start, "Insufficient content")

        return FetchedPage(
            success=True,
            url=url,
            title=title,
            content=content,
            time_ms=self._elapsed_ms(start),
        )

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return int((time.monotonic() - start) * 1000)

    def _fail(self, url: str, start: float, error: str) -> FetchedPage:
        return FetchedPage(success=False, url=url, error=error, time_ms=self._elapsed_ms(start))

    def _snippet_only(self, url: str, start: float, error: str) -> FetchedPage:
        return FetchedPage(success=False, url=url, snippet_only=True, error=error, time_ms=self._elapsed_ms(start))
