"""Per-provider call budgets, injected into the search engine."""

import threading
from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone

from utils.logger import get_logger

logger = get_logger(__name__)

IST = timezone(timedelta(hours=5, minutes=30))


class QuotaGuard(ABC):
    @abstractmethod
    def acquire(self, provider: str) -> bool:
        """Reserve one call to ``provider``; False when its budget is spent."""
        raise NotImplementedError


class UnlimitedQuota(QuotaGuard):
    def acquire(self, provider: str) -> bool:
        return True


class DailyQuota(QuotaGuard):
    """
    Counts calls per provider per IST calendar day.

    A call is counted when it is reserved, whatever its outcome. Providers
    without a configured limit are never denied. Counters reset when the IST
    date changes.
    """

    def __init__(self, limits: dict[str, int], clock=None):
        self._limits = dict(limits)
        self._clock = clock or (lambda: datetime.now(IST))
        self._counts: dict[str, int] = {}
        self._day: date | None = None
        self._lock = threading.Lock()

    def _roll_day(self) -> None:
        today = self._clock().date()
        if today != self._day:
            self._day = today
            self._counts.clear()

    def acquire(self, provider: str) -> bool:
        limit = self._limits.get(provider)
        if limit is None:
            return True
        with self._lock:
            self._roll_day()
            used = self._counts.get(provider, 0)
            if used < limit:
                self._counts[provider] = used + 1
                return True
        logger.warning(
            "Provider daily quota exhausted",
            extra={"extra_fields": {"provider": provider, "limit": limit, "used": used}},
        )
        return False

    def used(self, provider: str) -> int:
        with self._lock:
            self._roll_day()
            return self._counts.get(provider, 0)
