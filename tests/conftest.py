from __future__ import annotations

import sys
import time
from datetime import datetime, timezone
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from advisor.core.schema import UsageStats
from advisor.infrastructure import GenerationResult, GenerativeServiceError, InMemoryRecordStore

FIXED_NOW = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)

RECOMMENDATION_JSON = (
    'Here is my analysis:\n[{"category": "Food", "advice": "Cook more at home"}, '
    '{"category": "Transport", "advice": "Use a monthly pass"}]'
)


def fixed_clock() -> datetime:
    return FIXED_NOW


class FakeGenerativeService:
    """Scripted stand-in for the generative service that records every call."""

    def __init__(
        self,
        content: str = RECOMMENDATION_JSON,
        *,
        fail_markers: tuple[str, ...] = (),
        choices: int = 1,
        delay: float = 0.0,
    ) -> None:
        self.content = content
        self.fail_markers = fail_markers
        self.choices = choices
        self.delay = delay
        self.calls: list[tuple[str, str]] = []

    def complete(self, system_text: str, user_text: str) -> GenerationResult:
        self.calls.append((system_text, user_text))
        if self.delay:
            time.sleep(self.delay)
        for marker in self.fail_markers:
            if marker in user_text:
                raise GenerativeServiceError(f"upstream refused {marker}")
        return GenerationResult(
            content=self.content,
            usage=UsageStats(prompt_tokens=100, completion_tokens=20, total_tokens=120),
            model="fake-model",
            choices=self.choices,
        )


@pytest.fixture()
def store() -> InMemoryRecordStore:
    records = InMemoryRecordStore()
    records.add_entity(
        "alice",
        {"name": "Alice", "currencyCode": "EUR"},
        [
            {"date": "2025-03-10", "name": "Takeout", "category": "food", "amount": 24.5, "emotion": 5},
            {"date": "2025-03-14T18:30:00Z", "name": "Taxi", "category": "transport", "amount": 18.0, "emotion": -4},
            {"date": "2025-02-01", "name": "Shoes", "category": "shopping", "amount": 80.0, "emotion": 2},
        ],
    )
    records.add_entity(
        "bob",
        {"name": "Bob", "currencyCode": "EUR"},
        [
            {"date": "2025-01-05", "name": "Groceries", "category": "food", "amount": 42.0, "emotion": 1},
        ],
    )
    return records


@pytest.fixture()
def generative() -> FakeGenerativeService:
    return FakeGenerativeService()
