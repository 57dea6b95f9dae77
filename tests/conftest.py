# conftest.py
from __future__ import annotations

from typing import List, Optional

import pytest

from models import OnboardingData


class FakeLLM:
    """Stands in for OpenAIClient; returns queued replies in order."""

    def __init__(self, replies: Optional[List[Optional[str]]] = None, ready: bool = True, error: str | None = None):
        self.replies = list(replies or [])
        self.ready = ready
        self.error = error
        self.last_error: str | None = None
        self.calls: List[dict] = []

    def available(self) -> bool:
        return self.ready

    def complete(self, messages, model, temperature=0.7, max_tokens=200, **extra):
        self.calls.append({"messages": messages, "model": model, "max_tokens": max_tokens, **extra})
        reply = self.replies.pop(0) if self.replies else None
        if reply is None:
            self.last_error = self.error or "boom"
        return reply


@pytest.fixture
def fake_llm():
    return FakeLLM


@pytest.fixture
def petrol_household() -> OnboardingData:
    return OnboardingData(
        name="Sam",
        location="SW1A 1AA",
        home_type="house",
        rooms=3,
        people=2,
        transport="car",
        car_type="petrol",
        energy_source="grid",
        monthly_spend=2000,
        goals=("save money", "reduce carbon footprint"),
    )


@pytest.fixture
def light_walker() -> OnboardingData:
    return OnboardingData(
        name="Ari",
        location="M1 1AE",
        home_type="shared",
        rooms=1,
        people=3,
        transport="walk",
        energy_source="renewable",
        monthly_spend=500,
        goals=("buy local",),
    )
