"""Environment configuration, request options and orchestrator wiring."""

import json
import logging

import pytest
from pydantic import ValidationError

from config.config import Config
from models.search_options import SearchOptions
from orchestrator.core import SearchOrchestrator
from orchestrator.quota import DailyQuota, UnlimitedQuota
from tools.web.factory import build_quota, create_search_orchestrator
from utils.logger import JsonFormatter

pytestmark = pytest.mark.unit

ENV_NAMES = [
    "BRAVE_API_KEY",
    "GOOGLE_SEARCH_API_KEY",
    "GOOGLE_SEARCH_ENGINE_ID",
    "TAVILY_API_KEY",
    "GEMINI_API_KEY",
    "GOOGLE_GEMINI_API_KEY",
    "GROUNDING_MODEL",
    "CALENDARIFIC_API_KEY",
    "SEARCH_ROUTES_PATH",
    "WEBFETCH_CACHE_TTL_SECONDS",
    "PROVIDER_DAILY_LIMITS",
    "ENABLE_FESTIVAL_SHORTCUT",
    "BROWSERLESS_API_KEY",
    "BROWSERLESS_URL",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


# ---------- options ----------


def test_option_defaults():
    options = SearchOptions()
    assert options.user_location == "India"
    assert options.enable_web_fetch is True
    assert options.max_content_chars == 2000


def test_options_accept_camel_case_and_field_names():
    by_alias = SearchOptions.from_any({"userLocation": " Delhi ", "maxContentChars": 500})
    by_name = SearchOptions.from_any({"user_location": "Delhi", "enable_web_fetch": False})

    assert by_alias.user_location == "Delhi"
    assert by_alias.max_content_chars == 500
    assert by_name.enable_web_fetch is False
    assert SearchOptions.from_any(None) == SearchOptions()
    assert SearchOptions.from_any(by_alias) is by_alias


@pytest.mark.parametrize(
    "raw",
    [
        {"maxContentChars": 99},
        {"maxContentChars": 20001},
        {"userLocation": "   "},
        {"userLocation": ""},
    ],
)
def test_invalid_options(raw):
    with pytest.raises(ValidationError):
        SearchOptions.from_any(raw)


def test_unknown_option_keys_are_ignored():
    assert SearchOptions.from_any({"safeSearch": True}) == SearchOptions()


# ---------- config ----------


def test_config_reads_environment(clean_env):
    clean_env.setenv("BRAVE_API_KEY", "b")
    clean_env.setenv("GOOGLE_SEARCH_API_KEY", "g")
    clean_env.setenv("GOOGLE_GEMINI_API_KEY", "gem")
    clean_env.setenv("PROVIDER_DAILY_LIMITS", "google_cse=100, brave=2000,broken,tavily=many")
    clean_env.setenv("ENABLE_FESTIVAL_SHORTCUT", "off")
    clean_env.setenv("WEBFETCH_CACHE_TTL_SECONDS", "60")

    config = Config()

    # google_cse needs the engine id as well
    assert config.configured_search_providers() == ["brave"]
    assert config.GEMINI_API_KEY == "gem"
    assert config.GROUNDING_MODEL == "gemini-2.0-flash"
    assert config.PROVIDER_DAILY_LIMITS == {"google_cse": 100, "brave": 2000}
    assert config.ENABLE_FESTIVAL_SHORTCUT is False
    assert config.WEBFETCH_CACHE_TTL_SECONDS == 60
    assert config.validate()


def test_config_without_providers_is_invalid(clean_env, capsys):
    config = Config()
    assert config.configured_search_providers() == []
    assert not config.validate()
    assert "no search provider configured" in capsys.readouterr().out


# ---------- wiring ----------


def test_build_quota(clean_env):
    assert isinstance(build_quota(Config()), UnlimitedQuota)
    clean_env.setenv("PROVIDER_DAILY_LIMITS", "brave=1")
    assert isinstance(build_quota(Config()), DailyQuota)


def test_factory_wires_every_component(clean_env):
    clean_env.setenv("GEMINI_API_KEY", "gem")
    clean_env.setenv("ENABLE_FESTIVAL_SHORTCUT", "false")

    orchestrator = create_search_orchestrator(Config())

    assert isinstance(orchestrator, SearchOrchestrator)
    assert orchestrator.strict_available
    assert orchestrator._engine.provider_names == ["google_cse", "brave", "tavily"]
    assert orchestrator._festival_shortcut is False


def test_factory_without_grounding_key(clean_env):
    orchestrator = create_search_orchestrator(Config())
    assert not orchestrator.strict_available


def test_factory_enables_rendering_with_a_browserless_key(clean_env):
    zomato = "https://www.zomato.com/pune/best-dhabas"
    assert not create_search_orchestrator(Config())._fetcher.can_render(zomato)

    clean_env.setenv("BROWSERLESS_API_KEY", "bl-key")
    config = Config()

    assert config.BROWSERLESS_URL == "https://production-sfo.browserless.io"
    assert create_search_orchestrator(config)._fetcher.can_render(zomato)


# ---------- logging ----------


def test_json_formatter_merges_extra_fields():
    record = logging.LogRecord("orchestrator.core", logging.WARNING, __file__, 10, "Provider timed out", None, None)
    record.extra_fields = {"provider": "brave", "timeout_s": 4.0}

    payload = json.loads(JsonFormatter().format(record))

    assert payload["level"] == "WARNING"
    assert payload["logger"] == "orchestrator.core"
    assert payload["message"] == "Provider timed out"
    assert payload["provider"] == "brave"
    assert payload["timeout_s"] == 4.0


def test_json_formatter_ignores_malformed_extra_fields():
    record = logging.LogRecord("server.app", logging.INFO, __file__, 1, "ready", None, None)
    record.extra_fields = "not a dict"
    assert "not a dict" not in JsonFormatter().format(record)
