"""In-memory providers shared by the orchestrator and engine tests."""

import asyncio

from api.base_client import BaseGroundedProvider, BaseSearchProvider
from orchestrator.routing_types import Freshness
from tools.web.contracts import GroundedAnswer, ProviderResult, SearchResultItem


class FakeProvider(BaseSearchProvider):
    """Search provider returning canned items and recording every call."""

    def __init__(self, name, items=None, answer=None, error=None, delay_s=0.0, timeout_s=5.0):
        super().__init__(api_key="test-key", timeout_s=timeout_s)
        self.provider_name = name
        self._items = list(items or [])
        self._answer = answer
        self._error = error
        self._delay_s = delay_s
        self.calls: list[tuple[str, int, Freshness]] = []

    async def search(self, query, count=5, freshness=Freshness.NONE):
        self.calls.append((query, count, freshness))
        if self._delay_s:
            await asyncio.sleep(self._delay_s)
        if self._error is not None:
            raise self._error
        if not self._items:
            return None
        return ProviderResult(provider=self.provider_name, items=tuple(self._items), answer=self._answer)


class FakeGrounded(BaseGroundedProvider):
    provider_name = "gemini_grounding"

    def __init__(self, answer=None, error=None, delay_s=0.0, api_key="test-key"):
        super().__init__(api_key=api_key)
        self._answer = answer
        self._error = error
        self._delay_s = delay_s
        self.prompts: list[str] = []

    async def answer(self, prompt):
        self.prompts.append(prompt)
        if self._delay_s:
            await asyncio.sleep(self._delay_s)
        if self._error is not None:
            raise self._error
        return self._answer


def item(title, url, description="", age=None):
    return SearchResultItem(title=title, url=url, description=description, age=age)


def grounded_answer(text, sources):
    return GroundedAnswer(answer=text, sources=list(sources))


