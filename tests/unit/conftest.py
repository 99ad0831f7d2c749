"""Shared fixtures for unit tests."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import anthropic
import pytest


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeMessages:
    """Stand-in for ``AsyncAnthropic().messages``.

    Each call to ``create`` consumes the next outcome: a string becomes a
    text response, an exception is raised, and ``None`` gives an empty
    response.
    """

    def __init__(self, outcomes: list[Any]) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[dict[str, Any]] = []

    async def create(self, **kwargs: Any) -> SimpleNamespace:
        self.calls.append(kwargs)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        if outcome is None:
            return SimpleNamespace(content=[])
        return SimpleNamespace(
            content=[anthropic.types.TextBlock(type="text", text=outcome)]
        )


class FakeAnthropic:
    def __init__(self, outcomes: list[Any]) -> None:
        self.messages = FakeMessages(outcomes)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_anthropic() -> type[FakeAnthropic]:
    """Scripted stand-in for ``anthropic.AsyncAnthropic``."""
    return FakeAnthropic
