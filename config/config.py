import os
from dotenv import load_dotenv
from pathlib import Path

SEARCH_PROVIDER_KEYS = {
    "brave": "BRAVE_API_KEY",
    "google_cse": "GOOGLE_SEARCH_API_KEY",
    "tavily": "TAVILY_API_KEY",
}


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Configuration management for the search engine."""

    def __init__(self):
        """Initialize configuration with environment variables."""
        # Load environment variables from .env file if it exists
        env_path = Path(__file__).parent.parent / '.env'
        if env_path.exists():
            load_dotenv(dotenv_path=env_path)

        # Search providers
        self.BRAVE_API_KEY = os.getenv('BRAVE_API_KEY')
        self.GOOGLE_SEARCH_API_KEY = os.getenv('GOOGLE_SEARCH_API_KEY')
        self.GOOGLE_SEARCH_ENGINE_ID = os.getenv('GOOGLE_SEARCH_ENGINE_ID')
        self.TAVILY_API_KEY = os.getenv('TAVILY_API_KEY')

        # Grounded answers (strict path) and festival calendar
        self.GEMINI_API_KEY = os.getenv('GEMINI_API_KEY') or os.getenv('GOOGLE_GEMINI_API_KEY')
        self.GROUNDING_MODEL = os.getenv('GROUNDING_MODEL', 'gemini-2.0-flash')
        self.CALENDARIFIC_API_KEY = os.getenv('CALENDARIFIC_API_KEY')

        # Headless rendering for JS-heavy directory sites (optional)
        self.BROWSERLESS_API_KEY = os.getenv('BROWSERLESS_API_KEY')
        self.BROWSERLESS_URL = os.getenv('BROWSERLESS_URL', 'https://production-sfo.browserless.io')

        # Routing, caching and quotas
        self.SEARCH_ROUTES_PATH = os.getenv('SEARCH_ROUTES_PATH')
        self.WEBFETCH_CACHE_TTL_SECONDS = int(os.getenv('WEBFETCH_CACHE_TTL_SECONDS', '900'))
        self.PROVIDER_DAILY_LIMITS = self._parse_limits(os.getenv('PROVIDER_DAILY_LIMITS', ''))
        self.ENABLE_FESTIVAL_SHORTCUT = _as_bool(os.getenv('ENABLE_FESTIVAL_SHORTCUT'), True)

    @staticmethod
    def _parse_limits(raw: str) -> dict[str, int]:
        """Parse ``google_cse=100,brave=2000`` into a dict; malformed pairs are ignored."""
        limits: dict[str, int] = {}
        for pair in raw.split(','):
            name, sep, value = pair.partition('=')
            if not sep or not name.strip():
                continue
            try:
                limits[name.strip()] = int(value)
            except ValueError:
                continue
        return limits

    def configured_search_providers(self) -> list[str]:
        """Provider ids whose credentials are present."""
        configured = []
        for provider, env_name in SEARCH_PROVIDER_KEYS.items():
            if not getattr(self, env_name):
                continue
            if provider == 'google_cse' and not self.GOOGLE_SEARCH_ENGINE_ID:
                continue
            configured.append(provider)
        return configured

    def validate(self) -> bool:
        """
        Validate that at least one web-search provider is configured.

        Returns:
            bool: True if configuration is usable, False otherwise
        """
        if not self.configured_search_providers():
            print(
                "Error: no search provider configured. Set BRAVE_API_KEY, "
                "GOOGLE_SEARCH_API_KEY + GOOGLE_SEARCH_ENGINE_ID or TAVILY_API_KEY in the .env file."
            )
            return False
        return True
