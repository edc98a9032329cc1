"""Route table, query rewriting, relevance scoring, quality gate, fact extraction and date words."""

from datetime import datetime, timezone

import pytest

from orchestrator.quality_gate import QualityGate
from orchestrator.query_builder import build_query, extract_festival_name, has_festival_date_word, is_showtime_query
from orchestrator.route_registry import RouteRegistry
from orchestrator.routing_types import FactType, Freshness
from tools.web import date_normalizer
from tools.web.contracts import DateInfo, ProviderResult, extract_domain
from tools.web.fact_extractor import extract_facts, normalize_date, normalize_fact
from tools.web.relevance import RelevanceScorer

from fakes import item

pytestmark = pytest.mark.unit

TODAY = DateInfo(date="2026-01-24", human="24 January 2026", keyword="today")


# ---------- route registry ----------


def test_default_routes_load():
    registry = RouteRegistry.from_yaml()
    sports = registry.profile("sports")
    assert sports.route == "sports"
    assert sports.providers == ["brave", "google_cse", "tavily"]
    assert sports.freshness == Freshness.PER_DAY
    assert sports.result_count == 3
    assert registry.should_web_fetch("sports") is False


def test_unknown_domain_uses_fallback_profile():
    registry = RouteRegistry.from_yaml()
    assert registry.profile("astrology").route == "general"
    assert registry.map_domain_to_route("health") == "general"
    assert registry.get_providers("general") == ["google_cse", "brave", "tavily"]


def test_trust_weights_merge_overrides_onto_defaults():
    registry = RouteRegistry.from_yaml()
    assert registry.trust_weights("finance") == {"google_cse": 0.7, "brave": 0.3, "tavily": 0.5}
    assert registry.trust_weights("general") == {"google_cse": 0.6, "brave": 0.4, "tavily": 0.5}


def test_missing_routes_file_raises(tmp_path):
    with pytest.raises(ValueError):
        RouteRegistry.from_yaml(str(tmp_path / "missing.yaml"))


def test_domain_without_route_raises(tmp_path):
    path = tmp_path / "routes.yaml"
    path.write_text(
        "routing_defaults:\n  fallback_domain: general\n  providers: [brave]\n"
        "domains:\n  general:\n    result_count: 5\n",
        encoding="utf-8",
    )
    with pytest.raises(ValueError, match="Missing route"):
        RouteRegistry.from_yaml(str(path))


def test_invalid_freshness_raises(tmp_path):
    path = tmp_path / "routes.yaml"
    path.write_text(
        "routing_defaults:\n  providers: [brave]\n"
        "domains:\n  general:\n    route: general\n    freshness: hourly\n",
        encoding="utf-8",
    )
    with pytest.raises(ValueError, match="freshness"):
        RouteRegistry.from_yaml(str(path))


# ---------- query builder ----------


def test_sports_query_gets_score_suffix_and_date():
    assert (
        build_query("ipl score today", "sports", TODAY, "Mumbai")
        == "ipl score today latest score result 24 January 2026 Mumbai"
    )


def test_festival_query_with_and_without_date():
    assert build_query("aaj kaunsa tyohar", "festival", TODAY, "India") == "festival on 24 January 2026 in India"
    assert build_query("holi kab hai", "festival", None, "India") == "holi kab hai festival date significance India"


def test_venue_questions_get_directory_sites():
    assert build_query("best dhaba near me", "general", None, "Delhi") == "best dhaba near me zomato justdial Delhi"
    assert (
        build_query("Fortis Hospital where", "general", None, "Delhi")
        == "Fortis Hospital where practo justdial Delhi"
    )


def test_showtime_query_strips_filler_words():
    assert is_showtime_query("border 2 lagi hai")
    assert build_query("border 2 lagi hai", "entertainment", None, "Pune") == "border 2 movie showtimes bookmyshow Pune"


def test_entertainment_query_without_showtime_intent():
    assert build_query("inception review", "entertainment", None, "Pune") == "inception review release date rating review cast"


def test_definition_questions_are_not_localized():
    assert build_query("what is photosynthesis", "general", None, "India") == "what is photosynthesis"
    assert build_query("cheap flights goa", "general", None, "India") == "cheap flights goa India"


def test_general_route_domains_append_their_configured_suffix():
    suffix = RouteRegistry.from_yaml().get_suffix("tech")
    assert suffix == "technology latest gadgets review comparison specs"
    assert (
        build_query("iphone 16 launch", "general", None, "India", suffix=suffix)
        == f"iphone 16 launch {suffix} India"
    )
    # a query that already carries a suffix word is left alone
    assert build_query("best laptop review", "general", None, "India", suffix=suffix) == "best laptop review India"


def test_festival_helpers():
    assert extract_festival_name("eid ul adha kab hai") == "eid ul adha"
    assert extract_festival_name("holika dahan muhurat") == "holika dahan"
    assert extract_festival_name("ipl score") is None
    assert has_festival_date_word("aaj kaunsa tyohar hai")
    assert not has_festival_date_word("diwali date")


# ---------- relevance ----------


def test_relevant_item_outranks_unrelated_one():
    scorer = RelevanceScorer(current_year=2026)
    good = item("IPL score live", "https://example.com/ipl")
    bad = item("Weather in Delhi", "https://example.com/weather")
    assert scorer.score("ipl score", good) == 15 * 2 + 12 + 4
    assert scorer.score("ipl score", bad) == -12
    assert scorer.rank("ipl score", [bad, good]) == [good, bad]
    assert scorer.best("ipl score", [bad, good]) is good


def test_trusted_and_unreliable_sources():
    scorer = RelevanceScorer(current_year=2026)
    base = scorer.score("ipl score", item("IPL score", "https://example.com/a"))
    trusted = scorer.score("ipl score", item("IPL score", "https://www.espncricinfo.com/a"))
    unreliable = scorer.score("ipl score", item("IPL score", "https://www.scribd.com/a"))
    assert trusted == base + 6
    assert unreliable == base - 15


def test_fresh_items_get_a_bonus():
    scorer = RelevanceScorer(current_year=2026)
    stale = scorer.score("ipl score", item("IPL score", "https://example.com/a"))
    fresh = scorer.score("ipl score", item("IPL score", "https://example.com/a", age="5 minutes ago"))
    assert fresh == stale + 10


def test_top_score_of_nothing_is_negative_infinity():
    assert RelevanceScorer().top_score("anything", []) == float("-inf")


# ---------- quality gate ----------


def _result(*items, answer=None):
    return ProviderResult(provider="brave", items=tuple(items), answer=answer)


def test_gate_rejects_low_relevance():
    decision = QualityGate().check("ipl score", _result(item("Weather in Delhi", "https://example.com/w")))
    assert not decision.ok
    assert decision.reason == "low_relevance"
    assert decision.level == 1


def test_gate_rejects_placeholder_text():
    result = _result(item("IPL score live", "https://example.com/ipl", "Final tally to be announced"))
    decision = QualityGate().check("ipl score", result)
    assert not decision.ok
    assert decision.reason == "useless_phrase:to be announced"
    assert decision.level == 2


def test_gate_requires_evidence_of_a_score():
    result = _result(item("IPL score live", "https://example.com/ipl", "Follow the live coverage here"))
    decision = QualityGate().check("ipl score", result)
    assert decision.reason == "missing_score"


def test_gate_accepts_score_evidence():
    result = _result(item("IPL score live", "https://example.com/ipl", "MI 180/4 in 20 overs"))
    decision = QualityGate().check("ipl score", result)
    assert decision.ok
    assert decision.reason == "ok"
    assert decision.level == 2


def test_long_direct_answer_lifts_the_relevance_floor():
    result = _result(
        item("Weather in Delhi", "https://example.com/w"),
        answer="Mumbai Indians won the match by 5 wickets tonight",
    )
    assert QualityGate().check("ipl score", result).ok


def test_gate_requires_price_evidence():
    result = _result(item("Gold price today", "https://example.com/gold", "Gold price trends and news"))
    assert QualityGate().check("gold price today", result).reason == "missing_price"


# ---------- fact extraction ----------


def test_extract_score_facts():
    facts = extract_facts(
        [item("India vs Australia", "https://example.com/m", "India won by 5 wickets, final 250/6")],
        None,
        "brave",
    )
    scores = [f.value for f in facts if f.type == FactType.SCORE]
    assert "250/6" in scores
    assert "won by 5" in scores
    assert all(f.provider == "brave" for f in facts)


def test_extract_rating_facts():
    facts = extract_facts([item("Inception", "https://example.com/i", "IMDb rating 8.8/10")], None, "google_cse")
    ratings = [f for f in facts if f.type == FactType.RATING]
    assert ratings
    assert {f.value for f in ratings} == {"8.8/10"}
    assert max(f.confidence for f in ratings) == 0.95


def test_extract_price_facts():
    facts = extract_facts([item("Gold", "https://example.com/g", "Gold price ₹72,500 per 10 grams")], None, "tavily")
    prices = {normalize_fact(f.value, f.type) for f in facts if f.type == FactType.PRICE}
    assert prices == {"72500"}


def test_answer_text_is_scanned_too():
    facts = extract_facts([], "Inflation eased to 4.5% in December", "tavily")
    assert [f.value for f in facts if f.type == FactType.NUMBER] == ["4.5%"]


@pytest.mark.parametrize(
    "value, fact_type, expected",
    [
        ("8.8/10", FactType.RATING, "8.8"),
        ("₹72,500", FactType.PRICE, "72500"),
        ("1.5 lakh", FactType.PRICE, "150000"),
        ("2 crore", FactType.PRICE, "20000000"),
        ("3 million", FactType.NUMBER, "3000000"),
        ("250 – 6", FactType.SCORE, "250-6"),
    ],
)
def test_normalize_fact(value, fact_type, expected):
    assert normalize_fact(value, fact_type) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("24 Jan 2026", "2026-01-24"),
        ("2026-01-24", "2026-01-24"),
        ("January 24, 2026", "2026-01-24"),
        ("24/01/2026", "2026-01-24"),
        ("someday", "someday"),
    ],
)
def test_normalize_date(value, expected):
    assert normalize_date(value) == expected


def test_relative_dates_use_reference_time():
    now = datetime(2026, 1, 24, 9, 0)
    assert normalize_date("today", now=now) == "2026-01-24"
    assert normalize_date("kal", now=now) == "2026-01-25"
    assert normalize_date("yesterday", now=now) == "2026-01-23"


def test_extract_domain():
    assert extract_domain("https://www.imdb.com/title/tt1375666/") == "imdb.com"
    assert extract_domain("not a url") == "unknown"


# ---------- date normalizer ----------


@pytest.mark.parametrize(
    "query, date, human, keyword",
    [
        ("IPL score today", "2026-01-24", "24 January 2026", "today"),
        ("kal ka match", "2026-01-25", "25 January 2026", "tomorrow"),
        ("beeta kal ka score", "2026-01-23", "23 January 2026", "yesterday"),
        ("parso ki train", "2026-01-26", "26 January 2026", "parso"),
        ("this weekend movies", "2026-01-31", "31 January 2026", "this-weekend"),
        ("agle hafte ka mausam", "2026-01-31", "31 January 2026", "next-week"),
        ("next month festivals", "2026-02-24", "February 2026", "next-month"),
    ],
)
def test_relative_date_words(fixed_now, query, date, human, keyword):
    info = date_normalizer.normalize(query, fixed_now)
    assert (info.date, info.human, info.keyword) == (date, human, keyword)


def test_date_words_absent(fixed_now):
    assert date_normalizer.normalize("photosynthesis process", fixed_now) is None


def test_next_month_clamps_to_month_end():
    info = date_normalizer.normalize("next month", datetime(2026, 1, 31, 12, 0, tzinfo=date_normalizer.IST))
    assert info.date == "2026-02-28"


def test_reference_time_is_converted_to_ist():
    late_utc = datetime(2026, 1, 24, 20, 0, tzinfo=timezone.utc)
    assert date_normalizer.normalize("aaj", late_utc).date == "2026-01-25"
