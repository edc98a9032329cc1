from datetime import datetime

import pytest

from orchestrator.events import EventEmitter, EventRecorder
from orchestrator.routing_types import Freshness, RouteProfile
from tools.web.date_normalizer import IST


@pytest.fixture
def recorder():
    return EventRecorder()


@pytest.fixture
def events(recorder):
    return EventEmitter([recorder])


@pytest.fixture
def fixed_now():
    return datetime(2026, 1, 24, 10, 30, tzinfo=IST)


@pytest.fixture
def sports_route():
    return RouteProfile(
        domain="sports",
        route="sports",
        result_count=3,
        freshness=Freshness.PER_DAY,
        webfetch=False,
        providers=["brave", "google_cse", "tavily"],
    )


@pytest.fixture
def general_route():
    return RouteProfile(
        domain="general",
        route="general",
        result_count=5,
        webfetch=True,
        providers=["google_cse", "brave", "tavily"],
    )
