"""Resolve English and Hinglish relative date words to absolute IST dates."""

import re
from datetime import datetime, timedelta, timezone

from .contracts import DateInfo

IST = timezone(timedelta(hours=5, minutes=30))

_TODAY = re.compile(r"\b(today|aaj|abhi|filhaal|is\s+wakt)\b")
_KAL = re.compile(r"\bkal\b")
_KAL_PAST_MARKERS = re.compile(r"(beeta|beete|guzra|guzre|pichla|pichle|yesterday)")
_TOMORROW = re.compile(r"\btomorrow\b")
_YESTERDAY = re.compile(r"\b(yesterday|beeta\s*kal|guzra\s*kal|pichla\s*din)\b")
_PARSO = re.compile(r"\b(parso|parson|day\s*after\s*tomorrow)\b")
_NARSO = re.compile(r"\b(narso|narson|tarso)\b")
_THIS_WEEKEND = re.compile(r"\b(this\s*weekend|is\s*weekend)\b")
_NEXT_WEEKEND = re.compile(r"\bnext\s*weekend\b")
_NEXT_WEEK = re.compile(r"\b(next\s*week|agle\s*hafte|agla\s*hafta)\b")
_LAST_WEEK = re.compile(r"\b(last\s*week|pichle\s*hafte|pichla\s*hafta)\b")
_THIS_MONTH = re.compile(r"\b(this\s*month|is\s*mahine|is\s*maah)\b")
_NEXT_MONTH = re.compile(r"\b(next\s*month|agle\s*mahine)\b")
_UPCOMING = re.compile(r"\b(upcoming|aanewala|aane\s*wala|coming)\b")


def now_ist() -> datetime:
    return datetime.now(IST)


def format_ymd(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%d")


def format_human(moment: datetime) -> str:
    return f"{moment.day} {moment.strftime('%B %Y')}"


def _build(moment: datetime, keyword: str) -> DateInfo:
    return DateInfo(date=format_ymd(moment), human=format_human(moment), keyword=keyword)


def _month(moment: datetime, keyword: str) -> DateInfo:
    return DateInfo(date=format_ymd(moment), human=moment.strftime("%B %Y"), keyword=keyword)


def _next_saturday(moment: datetime) -> datetime:
    # weekday(): Monday=0 .. Saturday=5; today being Saturday means next week's
    offset = (5 - moment.weekday()) % 7 or 7
    return moment + timedelta(days=offset)


def _add_month(moment: datetime) -> datetime:
    year = moment.year + (1 if moment.month == 12 else 0)
    month = 1 if moment.month == 12 else moment.month + 1
    day = moment.day
    while True:
        try:
            return moment.replace(year=year, month=month, day=day)
        except ValueError:
            day -= 1


def normalize(query: str, now: datetime | None = None) -> DateInfo | None:
    """
    Find the first relative date expression in a query.

    Args:
        query: Raw user query
        now: Reference time (defaults to the current IST time)

    Returns:
        DateInfo with an ISO date, a human label and the matched keyword,
        or None when the query carries no date reference
    """
    q = query.lower()
    now = (now or now_ist()).astimezone(IST)

    if _TODAY.search(q):
        return _build(now, "today")

    if _TOMORROW.search(q) or (_KAL.search(q) and not _KAL_PAST_MARKERS.search(q)):
        return _build(now + timedelta(days=1), "tomorrow")

    if _YESTERDAY.search(q):
        return _build(now - timedelta(days=1), "yesterday")

    if _PARSO.search(q):
        return _build(now + timedelta(days=2), "parso")

    if _NARSO.search(q):
        return _build(now + timedelta(days=3), "narso")

    if _THIS_WEEKEND.search(q):
        return _build(_next_saturday(now), "this-weekend")

    if _NEXT_WEEKEND.search(q):
        return _build(_next_saturday(now + timedelta(days=7)), "next-weekend")

    if _NEXT_WEEK.search(q):
        return _build(now + timedelta(days=7), "next-week")

    if _LAST_WEEK.search(q):
        return _build(now - timedelta(days=7), "last-week")

    if _THIS_MONTH.search(q):
        return _month(now, "this-month")

    if _NEXT_MONTH.search(q):
        return _month(_add_month(now), "next-month")

    if _UPCOMING.search(q):
        return _build(now, "upcoming")

    return None


def has_date_reference(query: str) -> bool:
    return normalize(query) is not None


def current_date() -> DateInfo:
    return _build(now_ist(), "today")
