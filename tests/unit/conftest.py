"""Pytest unit test fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

from orchestrator.memory.store import InMemoryConversationStore


class MutableClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> None:
        self.now = self.now + timedelta(**delta)


@pytest.fixture()
def clock():
    return MutableClock(datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture()
def memory_store(clock):
    return InMemoryConversationStore(clock=clock)
