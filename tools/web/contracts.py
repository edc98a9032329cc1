"""Data contracts shared by the search providers and the web tooling."""

from dataclasses import dataclass, field
from urllib.parse import urlparse

from orchestrator.routing_types import FactType


def extract_domain(url: str) -> str:
    """Hostname of a URL without a leading ``www.``; ``unknown`` when unparsable."""
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return "unknown"
    if not host:
        return "unknown"
    return host[4:] if host.startswith("www.") else host


@dataclass(frozen=True)
class SearchResultItem:
    """One organic result returned by a search provider."""

    title: str
    url: str
    description: str = ""
    age: str | None = None
    source_domain: str = ""

    def __post_init__(self):
        if not self.source_domain and self.url:
            object.__setattr__(self, "source_domain", extract_domain(self.url))


@dataclass(frozen=True)
class ExtractedFact:
    value: str
    type: FactType
    provider: str
    confidence: float
    raw: str = ""


@dataclass(frozen=True)
class ProviderResult:
    """Everything a single provider call produced for one request."""

    provider: str
    items: tuple[SearchResultItem, ...] = ()
    answer: str | None = None
    latency_ms: int = 0
    facts: tuple[ExtractedFact, ...] = ()

    @property
    def has_results(self) -> bool:
        return len(self.items) > 0

    @property
    def domains(self) -> set[str]:
        return {item.source_domain for item in self.items if item.source_domain}


@dataclass(frozen=True)
class DateInfo:
    date: str  # YYYY-MM-DD
    human: str  # "24 January 2026"
    keyword: str

    def to_dict(self) -> dict[str, str]:
        return {"date": self.date, "human": self.human, "keyword": self.keyword}


@dataclass(frozen=True)
class FetchedPage:
    """Outcome of a deep fetch of one URL."""

    success: bool
    url: str
    title: str = ""
    content: str = ""
    snippet_only: bool = False
    error: str | None = None
    time_ms: int = 0

    @property
    def content_length(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class SearchSource:
    title: str
    url: str
    domain: str
    provider: str

    def to_dict(self) -> dict[str, str]:
        return {
            "title": self.title,
            "url": self.url,
            "domain": self.domain,
            "provider": self.provider,
        }


@dataclass(frozen=True)
class GroundedAnswer:
    """Answer produced by a grounded (search-tool backed) model."""

    answer: str
    sources: list[SearchSource] = field(default_factory=list)
    latency_ms: int = 0


@dataclass(frozen=True)
class Holiday:
    """One calendar entry (festival or public holiday)."""

    name: str
    date: str  # YYYY-MM-DD
    human: str
    description: str = ""
    types: tuple[str, ...] = ()

    @property
    def is_national(self) -> bool:
        return any(t in ("National holiday", "National") for t in self.types)

    @property
    def is_religious(self) -> bool:
        religious = {"Hindu", "Muslim", "Christian", "Sikh", "Buddhist", "Jain", "Religious"}
        return any(t in religious for t in self.types)
