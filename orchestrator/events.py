"""
Structured pipeline events.

Every stage of a search emits one ``SearchEvent``. Events are logged at INFO
with their fields as structured data and forwarded to any registered listener,
so tests and metrics sinks can observe the pipeline without parsing log text.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from utils.logger import get_logger

logger = get_logger(__name__)

CLASSIFIED = "classified"
TIER_SELECTED = "tier-selected"
PROVIDER_RESULT = "provider-result"
GATE_DECISION = "gate-decision"
VERIFICATION_RESULT = "verification-result"
SEARCH_COMPLETE = "search-complete"
STRICT_RESULT = "strict-result"


@dataclass(frozen=True)
class SearchEvent:
    stage: str
    fields: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


Listener = Callable[[SearchEvent], None]


class EventEmitter:
    def __init__(self, listeners: list[Listener] | None = None):
        self._listeners: list[Listener] = list(listeners or [])

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def emit(self, stage: str, **fields: Any) -> SearchEvent:
        event = SearchEvent(stage=stage, fields=dict(fields))
        logger.info(
            f"search.{stage}",
            extra={"extra_fields": {"event": stage, **fields}},
        )
        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(
                    "Event listener failed",
                    extra={
                        "extra_fields": {
                            "event": stage,
                            "error": str(e),
                            "error_type": type(e).__name__,
                        }
                    },
                )
        return event


class EventRecorder:
    """Listener that keeps every event it sees."""

    def __init__(self):
        self.events: list[SearchEvent] = []

    def __call__(self, event: SearchEvent) -> None:
        self.events.append(event)

    def stages(self) -> list[str]:
        return [event.stage for event in self.events]

    def of(self, stage: str) -> list[SearchEvent]:
        return [event for event in self.events if event.stage == stage]

    def clear(self) -> None:
        self.events.clear()
