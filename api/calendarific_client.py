"""
Calendarific holiday lookups for festival questions.

Festival dates move every year (Holi, Diwali, Eid), so asking a calendar API
beats trusting whatever a web snippet says.
"""

from datetime import date, datetime
from typing import Any

import httpx

from tools.web.contracts import Holiday
from tools.web.date_normalizer import format_human
from utils.logger import get_logger

logger = get_logger(__name__)

CALENDARIFIC_URL = "https://calendarific.com/api/v2/holidays"

FESTIVAL_SYNONYMS: dict[str, list[str]] = {
    "diwali": ["diwali", "deepavali", "dipawali", "deepawali", "lakshmi puja"],
    "dussehra": ["dussehra", "vijayadashami", "vijaya dashami", "dasara"],
    "holi": ["holi", "holika", "dhulandi", "rang panchami", "holika dahan"],
    "navratri": ["navratri", "navaratri", "durga puja", "sharad navratri", "chaitra navratri"],
    "ganesh chaturthi": ["ganesh chaturthi", "vinayaka chaturthi", "ganpati", "vinayak chaturthi"],
    "raksha bandhan": ["raksha bandhan", "rakhi", "rakshabandhan"],
    "janmashtami": ["janmashtami", "krishna janmashtami", "gokulashtami"],
    "mahashivratri": ["mahashivratri", "maha shivaratri", "shivratri", "shivaratri"],
    "vasant panchami": ["vasant panchami", "basant panchami", "saraswati puja"],
    "karwa chauth": ["karwa chauth", "karva chauth"],
    "chhath": ["chhath", "chhath puja"],
    "makar sankranti": ["makar sankranti", "sankranti", "uttarayan"],
    "bhai dooj": ["bhai dooj", "bhai phonta", "bhau beej"],
    "baisakhi": ["baisakhi", "vaisakhi"],
    "gurpurab": ["gurpurab", "guru nanak jayanti", "guru nanak"],
    "eid ul fitr": ["eid ul fitr", "eid al fitr", "id-ul-fitr", "ramzan id", "eid"],
    "eid ul adha": ["eid ul adha", "eid al adha", "bakrid", "id-ul-zuha"],
    "christmas": ["christmas", "xmas"],
    "independence day": ["independence day"],
    "republic day": ["republic day"],
    "gandhi jayanti": ["gandhi jayanti"],
}


def _synonyms(name: str) -> list[str]:
    key = name.lower().strip()
    for canonical, names in FESTIVAL_SYNONYMS.items():
        if key == canonical or key in names:
            return [canonical, *names]
    return [key]


def matches_festival(holiday: Holiday, name: str) -> bool:
    holiday_name = holiday.name.lower()
    return any(candidate in holiday_name for candidate in _synonyms(name))


def parse_holiday(raw: dict[str, Any]) -> Holiday | None:
    iso = ((raw.get("date") or {}).get("iso") or "")[:10]
    if not raw.get("name") or len(iso) != 10:
        return None
    try:
        moment = datetime.strptime(iso, "%Y-%m-%d")
    except ValueError:
        return None
    return Holiday(
        name=raw["name"],
        date=iso,
        human=format_human(moment),
        description=raw.get("description") or "",
        types=tuple(raw.get("type") or ()),
    )


def select_primary(holidays: list[Holiday]) -> Holiday | None:
    """Prefer well-known festivals, then religious, then national observances."""
    if not holidays:
        return None
    for holiday in holidays:
        if any(matches_festival(holiday, canonical) for canonical in FESTIVAL_SYNONYMS):
            return holiday
    for holiday in holidays:
        if holiday.is_religious:
            return holiday
    for holiday in holidays:
        if holiday.is_national:
            return holiday
    return holidays[0]


class CalendarificClient:
    provider_name = "calendarific"
    timeout_s = 10.0

    def __init__(self, api_key: str | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.api_key = api_key
        self._transport = transport

    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def holidays(self, country: str, year: int, month: int | None = None, day: int | None = None) -> list[Holiday]:
        if not self.is_configured():
            return []

        params: dict[str, Any] = {"api_key": self.api_key, "country": country, "year": year}
        if month is not None:
            params["month"] = month
        if day is not None:
            params["day"] = day

        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
                response = await client.get(CALENDARIFIC_URL, params=params)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(
                "Calendarific request failed",
                extra={"extra_fields": {"error": str(e), "error_type": type(e).__name__}},
            )
            return []

        raw_holidays = ((data or {}).get("response") or {}).get("holidays") or []
        if not isinstance(raw_holidays, list):
            return []
        parsed = (parse_holiday(raw) for raw in raw_holidays)
        return [holiday for holiday in parsed if holiday is not None]

    async def find_by_name(self, name: str, year: int, country: str = "IN") -> Holiday | None:
        """First holiday of ``year`` whose name matches ``name`` or one of its synonyms."""
        for holiday in await self.holidays(country, year):
            if matches_festival(holiday, name):
                return holiday
        return None

    async def on_date(self, day: date, country: str = "IN") -> list[Holiday]:
        return await self.holidays(country, day.year, day.month, day.day)
