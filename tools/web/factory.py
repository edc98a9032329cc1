"""Factory for wiring a SearchOrchestrator from environment configuration."""

from api.brave_client import BraveSearchClient
from api.browserless_client import BrowserlessClient
from api.calendarific_client import CalendarificClient
from api.gemini_grounding_client import GeminiGroundingClient
from api.google_cse_client import GoogleCSEClient
from api.tavily_client import TavilySearchClient
from config.config import Config
from orchestrator.consistency_engine import ConsistencyEngine
from orchestrator.core import SearchOrchestrator
from orchestrator.events import EventEmitter
from orchestrator.quality_gate import QualityGate
from orchestrator.quota import DailyQuota, QuotaGuard, UnlimitedQuota
from orchestrator.route_registry import RouteRegistry
from orchestrator.strict_search import StrictSearch
from orchestrator.tiered_engine import TieredSearchEngine
from utils.logger import get_logger

from .cache import InMemoryTTLCache
from .relevance import RelevanceScorer
from .web_fetch import WebFetchService

logger = get_logger(__name__)


def build_quota(config: Config) -> QuotaGuard:
    if config.PROVIDER_DAILY_LIMITS:
        return DailyQuota(config.PROVIDER_DAILY_LIMITS)
    return UnlimitedQuota()


def create_search_orchestrator(config: Config | None = None, events: EventEmitter | None = None) -> SearchOrchestrator:
    """
    Create a SearchOrchestrator from environment variables.

    Every provider is constructed even without credentials; an unconfigured
    provider simply returns nothing, so routes stay valid as keys come and go.

    Args:
        config: Loaded configuration (a fresh ``Config()`` when omitted)
        events: Event sink shared by the engine and the strict pipeline

    Returns:
        Fully wired SearchOrchestrator

    Raises:
        ValueError: If the routes YAML is missing or malformed
    """
    config = config or Config()
    events = events or EventEmitter()

    registry = RouteRegistry.from_yaml(config.SEARCH_ROUTES_PATH)
    scorer = RelevanceScorer()

    brave = BraveSearchClient(config.BRAVE_API_KEY)
    providers = [
        GoogleCSEClient(config.GOOGLE_SEARCH_API_KEY, config.GOOGLE_SEARCH_ENGINE_ID),
        brave,
        TavilySearchClient(config.TAVILY_API_KEY),
    ]
    engine = TieredSearchEngine(
        providers,
        scorer=scorer,
        gate=QualityGate(scorer),
        quota=build_quota(config),
        events=events,
    )

    strict = StrictSearch(
        GeminiGroundingClient(config.GEMINI_API_KEY, model_name=config.GROUNDING_MODEL),
        verifier=brave,
        events=events,
    )

    configured = config.configured_search_providers()
    logger.info(
        f"Search orchestrator ready with {len(configured)} provider(s)",
        extra={
            "extra_fields": {
                "providers": configured,
                "grounding": strict.is_configured(),
                "calendar": bool(config.CALENDARIFIC_API_KEY),
                "rendering": bool(config.BROWSERLESS_API_KEY),
            }
        },
    )

    return SearchOrchestrator(
        engine,
        registry=registry,
        consistency=ConsistencyEngine(registry.trust_weights),
        strict=strict,
        fetcher=WebFetchService(
            cache=InMemoryTTLCache(ttl_seconds=config.WEBFETCH_CACHE_TTL_SECONDS),
            renderer=BrowserlessClient(config.BROWSERLESS_API_KEY, base_url=config.BROWSERLESS_URL),
        ),
        calendar=CalendarificClient(config.CALENDARIFIC_API_KEY),
        scorer=scorer,
        events=events,
        festival_shortcut=config.ENABLE_FESTIVAL_SHORTCUT,
    )
