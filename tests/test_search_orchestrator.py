"""
Test Suite: SearchOrchestrator end-to-end behaviour

Purpose
-------
Drives complete requests through the orchestrator with in-memory providers:
risk classification, domain routing, tier selection, provider execution,
cross-verification, deep fetch and result assembly.

What This Test Suite Covers
---------------------------
1. Verified simple path
   - A sports score reported identically by two providers comes back as a
     HIGH confidence, cross-verified fact block

2. High-risk routing
   - Health questions go through the grounded pipeline when it is configured
   - Without a grounded provider they are searched at the STRICT tier

3. Festival shortcut
   - Festival questions are answered from the holiday calendar and fall back
     to web search when the calendar has nothing

4. Deep fetch and failure handling
   - Page content replaces snippets when fetching is enabled
   - Empty providers, invalid options and internal errors never raise

How These Tests Work
--------------------
- Fake providers subclass the real provider base classes
- HTTP-backed services (page fetch, calendar) run on httpx.MockTransport
- The clock is pinned so date handling is deterministic
"""

import asyncio

import httpx
import pytest

from api.calendarific_client import CalendarificClient
from models.search_result import NO_RESULTS_FACT
from orchestrator import events as ev
from orchestrator.core import SearchOrchestrator
from orchestrator.routing_types import (
    AgreementLevel,
    ConfidenceLevel,
    RiskCategory,
    RiskLevel,
    SourceKind,
    VerificationTier,
)
from orchestrator.strict_search import DISCLAIMERS, StrictSearch
from orchestrator.tiered_engine import TieredSearchEngine
from tools.web.contracts import SearchSource
from tools.web.web_fetch import WebFetchService

from fakes import FakeGrounded, FakeProvider, grounded_answer, item

pytestmark = pytest.mark.integration

BRAVE_SCORE = item("IPL live: MI vs CSK", "https://www.espncricinfo.com/live", "Mumbai Indians 180/4 after 20 overs")
GOOGLE_SCORE = item("IPL scorecard: MI vs CSK", "https://www.cricbuzz.com/match", "MI posted 180/4 in their innings")

STRICT_ANSWER = (
    "Adults usually take 500 mg to 1 g of paracetamol every 4 to 6 hours, "
    "with no more than 4 g in 24 hours."
)
MAYO = SearchSource("Paracetamol dosing", "https://www.mayoclinic.org/para", "mayoclinic.org", "gemini_grounding")

PARAGRAPH = (
    "Photosynthesis is the process plants use to turn light, water and carbon dioxide "
    "into glucose and oxygen inside their chloroplasts."
)


def _calendar(holidays):
    payload = {"response": {"holidays": holidays}}
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=payload))
    return CalendarificClient("cal-key", transport=transport)


def _fetcher(calls):
    def handler(request):
        calls.append(str(request.url))
        html = f"<html><head><title>Photosynthesis</title></head><body><article><p>{PARAGRAPH}</p></article></body></html>"
        return httpx.Response(200, text=html, headers={"content-type": "text/html"})

    return WebFetchService(retry_backoff_s=0, transport=httpx.MockTransport(handler))


@pytest.fixture
def build(events, fixed_now):
    def _build(providers, **kwargs):
        engine = TieredSearchEngine(providers, events=events)
        return SearchOrchestrator(engine, events=events, clock=lambda: fixed_now, **kwargs)

    return _build


# ---------- verified simple path ----------


def test_sports_score_is_cross_verified(build, recorder):
    brave = FakeProvider("brave", items=[BRAVE_SCORE])
    google = FakeProvider("google_cse", items=[GOOGLE_SCORE])
    tavily = FakeProvider("tavily", items=[GOOGLE_SCORE])
    orchestrator = build([brave, google, tavily])

    result = asyncio.run(orchestrator.search("IPL score today"))

    assert result.success
    assert result.pipeline == "simple"
    assert result.domain == "sports"
    assert result.route == "sports"
    assert result.tier == VerificationTier.STANDARD
    assert result.risk.level == RiskLevel.LOW_RISK
    assert result.query_used == "IPL score today latest score result 24 January 2026 India"
    assert result.date_info.date == "2026-01-24"
    assert tavily.calls == []

    verification = result.verification
    assert verification.agreement.level == AgreementLevel.UNANIMOUS
    assert verification.confidence == ConfidenceLevel.HIGH
    assert verification.confidence_score == 1.0
    assert verification.llm_instruction == (
        "[VERIFIED confidence=100%] Data cross-verified from 2 sources. Answer confidently using this data."
    )

    assert result.source == SourceKind.SNIPPET
    assert result.fact == verification.verified_fact
    assert "SCORE: 180/4" in result.fact
    assert result.provider == "google_cse"
    assert result.best_url == GOOGLE_SCORE.url

    stages = recorder.stages()
    assert stages[:2] == [ev.CLASSIFIED, ev.TIER_SELECTED]
    assert stages[-1] == ev.SEARCH_COMPLETE
    assert stages.count(ev.PROVIDER_RESULT) == 2
    assert ev.VERIFICATION_RESULT in stages
    assert recorder.of(ev.TIER_SELECTED)[0].fields["reasons"] == ["factual_keyword:score"]


def test_rating_line_heads_the_verified_fact(build):
    imdb = item("Inception (2010) - IMDb", "https://www.imdb.com/title/tt1375666/", "Rating 8.8/10 from 2.5M users")
    rt = item("Inception reviews", "https://www.rottentomatoes.com/m/inception", "Audience rating 8.8/10")
    google = FakeProvider("google_cse", items=[imdb, rt])
    brave = FakeProvider("brave", items=[rt, imdb])
    orchestrator = build([google, brave])

    result = asyncio.run(orchestrator.search("inception movie imdb rating"))

    assert result.domain == "entertainment"
    assert result.tier == VerificationTier.STANDARD
    assert result.source == SourceKind.SNIPPET
    assert result.verification.verified_fact
    assert result.fact.startswith("IMDB Rating: 8.8/10 (from IMDB)\n\n")
    assert result.fact.endswith(result.verification.verified_fact.strip())


def test_options_reach_the_query_builder(build):
    brave = FakeProvider("brave", items=[BRAVE_SCORE])
    orchestrator = build([brave])

    result = asyncio.run(orchestrator.search("IPL score today", {"userLocation": " Mumbai "}))

    assert result.query_used.endswith("Mumbai")
    assert brave.calls[0][0] == result.query_used


def test_no_provider_results(build, recorder):
    orchestrator = build([FakeProvider("brave"), FakeProvider("google_cse"), FakeProvider("tavily")])

    result = asyncio.run(orchestrator.search("IPL score today"))

    assert result.results_found == 0
    assert result.source == SourceKind.NONE
    assert result.fact == NO_RESULTS_FACT
    assert result.error is None
    assert not result.success
    assert recorder.stages()[-1] == ev.SEARCH_COMPLETE


# ---------- high-risk routing ----------


def test_high_risk_query_uses_grounded_pipeline(build, events, recorder):
    web = FakeProvider("google_cse", items=[GOOGLE_SCORE])
    verifier = FakeProvider(
        "brave",
        items=[
            item("Paracetamol", "https://www.mayoclinic.org/drugs/para"),
            item("Paracetamol NHS", "https://www.nhs.uk/medicines/paracetamol/"),
            item("Paracetamol for adults", "https://www.nhs.uk/medicines/paracetamol-for-adults/"),
        ],
    )
    strict = StrictSearch(FakeGrounded(grounded_answer(STRICT_ANSWER, [MAYO])), verifier, events=events)
    orchestrator = build([web], strict=strict)

    result = asyncio.run(orchestrator.search("paracetamol dosage for fever"))

    assert result.success
    assert result.pipeline == "strict"
    assert result.source == SourceKind.GROUNDED
    assert result.route == "strict"
    assert result.domain == "health"
    assert result.tier == VerificationTier.STRICT
    assert result.provider == "gemini_grounding"
    assert result.risk.category == RiskCategory.HEALTH
    assert result.risk.matched_keyword == "dosage"
    assert result.disclaimer == DISCLAIMERS[RiskCategory.HEALTH]
    assert result.fact.endswith("\n\n" + DISCLAIMERS[RiskCategory.HEALTH])
    assert len(result.sources) == 4
    assert result.results_found == 4

    verification = result.verification
    assert verification.agreement.level == AgreementLevel.PARTIAL
    assert verification.confidence == ConfidenceLevel.MEDIUM
    assert verification.confidence_score == pytest.approx(0.5)
    assert verification.llm_instruction.startswith("[CAUTION confidence=50%]")
    assert verification.providers_used == ["gemini_grounding", "brave"]

    assert web.calls == []
    assert recorder.of(ev.TIER_SELECTED)[0].fields["reasons"] == ["high_risk:health", "grounded_pipeline"]
    assert ev.STRICT_RESULT in recorder.stages()
    assert recorder.stages()[-1] == ev.SEARCH_COMPLETE


def test_grounded_failure_is_reported_not_replaced(build, events):
    web = FakeProvider("google_cse", items=[GOOGLE_SCORE])
    strict = StrictSearch(FakeGrounded(grounded_answer("Too short.", [MAYO])), events=events)
    orchestrator = build([web], strict=strict)

    result = asyncio.run(orchestrator.search("paracetamol dosage for fever"))

    assert not result.success
    assert result.source == SourceKind.NONE
    assert result.error == "Primary provider failed"
    assert result.verification is None
    assert web.calls == []


def test_high_risk_without_grounding_is_searched_strictly(build, recorder):
    shared = [item("Paracetamol dosage guide", "https://www.nhs.uk/medicines/paracetamol/", "Paracetamol dosage for adults")]
    providers = [FakeProvider(name, items=shared) for name in ("google_cse", "brave", "tavily")]
    fetch_calls = []
    orchestrator = build(providers, fetcher=_fetcher(fetch_calls))

    result = asyncio.run(orchestrator.search("paracetamol dosage for fever"))

    assert result.pipeline == "simple"
    assert result.tier == VerificationTier.STRICT
    assert result.domain == "health"
    assert result.risk.is_high_risk
    assert all(len(p.calls) == 1 for p in providers)
    assert result.verification.tier == VerificationTier.STRICT
    assert result.source == SourceKind.SNIPPET
    # a verified fact makes the page fetch unnecessary
    assert fetch_calls == []


def test_strict_search_entry_point(build, events):
    strict = StrictSearch(FakeGrounded(grounded_answer(STRICT_ANSWER, [MAYO])), events=events)
    orchestrator = build([], strict=strict)

    result = asyncio.run(orchestrator.strict_search("paracetamol dosage", "health"))
    unconfigured = asyncio.run(build([]).strict_search("paracetamol dosage", "health"))

    assert result.success
    assert result.confidence == ConfidenceLevel.LOW
    assert not unconfigured.success
    assert unconfigured.error == "Grounded provider not configured"


# ---------- festival shortcut ----------


def test_festival_by_name_is_answered_from_calendar(build, recorder):
    google = FakeProvider("google_cse", items=[GOOGLE_SCORE])
    calendar = _calendar(
        [
            {
                "name": "Holi",
                "description": "Holi is the festival of colours",
                "date": {"iso": "2026-03-04"},
                "type": ["Hindu"],
            }
        ]
    )
    orchestrator = build([google], calendar=calendar)

    result = asyncio.run(orchestrator.search("holi kab hai"))

    assert result.source == SourceKind.CALENDAR
    assert result.provider == "calendarific"
    assert result.fact == "Holi is on 4 March 2026 (2026-03-04). Holi is the festival of colours"
    assert result.date_info.date == "2026-03-04"
    assert result.results_found == 1
    assert result.domain == "festival"
    assert google.calls == []
    assert recorder.stages() == [ev.CLASSIFIED, ev.SEARCH_COMPLETE]


def test_festival_by_date_word(build):
    calendar = _calendar(
        [
            {
                "name": "Vasant Panchami",
                "description": "Saraswati puja is performed on this day",
                "date": {"iso": "2026-01-24"},
                "type": ["Hindu"],
            }
        ]
    )
    orchestrator = build([FakeProvider("google_cse")], calendar=calendar)

    result = asyncio.run(orchestrator.search("aaj kaunsa tyohar hai"))

    assert result.source == SourceKind.CALENDAR
    assert result.fact == "24 January 2026 is Vasant Panchami. Saraswati puja is performed on this day"


def test_calendar_miss_falls_back_to_web_search(build):
    google = FakeProvider("google_cse", items=[item("Holi 2026 date", "https://example.com/holi", "Holi falls on 4 March")])
    orchestrator = build([google], calendar=_calendar([]))

    result = asyncio.run(orchestrator.search("holi kab hai"))

    assert result.source != SourceKind.CALENDAR
    assert len(google.calls) == 1


def test_festival_shortcut_can_be_disabled(build):
    google = FakeProvider("google_cse", items=[item("Holi 2026 date", "https://example.com/holi", "Holi falls on 4 March")])
    calendar = _calendar([{"name": "Holi", "date": {"iso": "2026-03-04"}, "type": ["Hindu"]}])
    orchestrator = build([google], calendar=calendar, festival_shortcut=False)

    result = asyncio.run(orchestrator.search("holi kab hai"))

    assert result.source != SourceKind.CALENDAR
    assert len(google.calls) == 1


# ---------- deep fetch ----------


def test_deep_fetch_replaces_snippet(build):
    google = FakeProvider(
        "google_cse",
        items=[item("Photosynthesis process explained", "https://example.com/p", "Plants convert light into energy")],
    )
    fetch_calls = []
    orchestrator = build([google], fetcher=_fetcher(fetch_calls))

    result = asyncio.run(orchestrator.search("photosynthesis process explained"))

    assert result.tier == VerificationTier.NO_VERIFY
    assert result.source == SourceKind.WEBFETCH
    assert PARAGRAPH in result.fact
    assert result.best_url == "https://example.com/p"
    assert fetch_calls == ["https://example.com/p"]


def test_deep_fetch_honours_the_option(build):
    google = FakeProvider(
        "google_cse",
        items=[item("Photosynthesis process explained", "https://example.com/p", "Plants convert light into energy")],
    )
    fetch_calls = []
    orchestrator = build([google], fetcher=_fetcher(fetch_calls))

    result = asyncio.run(orchestrator.search("photosynthesis process explained", {"enableWebFetch": False}))

    assert result.source == SourceKind.SNIPPET
    assert fetch_calls == []


def test_deep_fetch_skips_government_portals(build):
    google = FakeProvider(
        "google_cse",
        items=[item("Photosynthesis process explained", "https://ncert.nic.in/p", "Plants convert light into energy")],
    )
    fetch_calls = []
    orchestrator = build([google], fetcher=_fetcher(fetch_calls))

    result = asyncio.run(orchestrator.search("photosynthesis process explained"))

    assert result.source == SourceKind.SNIPPET
    assert fetch_calls == []


# ---------- failure handling ----------


def test_empty_query(build):
    result = asyncio.run(build([]).search("   "))
    assert result.error == "Empty query"
    assert result.source == SourceKind.NONE


def test_invalid_options(build):
    result = asyncio.run(build([]).search("IPL score today", {"maxContentChars": 5}))
    assert result.error == "Invalid options: 1 error(s)"
    assert not result.success


def test_internal_errors_are_contained(build):
    class ExplodingDetector:
        def detect(self, query):
            raise RuntimeError("detector exploded")

    orchestrator = build([FakeProvider("google_cse")], detector=ExplodingDetector())

    result = asyncio.run(orchestrator.search("IPL score today"))

    assert result.error == "detector exploded"
    assert result.source == SourceKind.NONE


def test_search_sync(build):
    orchestrator = build([FakeProvider("brave", items=[BRAVE_SCORE])])
    result = orchestrator.search_sync("IPL score today")
    assert result.domain == "sports"
    assert result.results_found == 1
