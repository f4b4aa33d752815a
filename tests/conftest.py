"""
Shared test fixtures.

Deterministic clocks, dates and identifiers so updaters and stamps can be
asserted exactly.
"""

from datetime import date

import pytest

from school.datastore.actions import ActionContext
from school.datastore.sanitize import build_default_snapshot

TODAY = date(2025, 3, 10)


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, now: int = 1_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class SequentialIds:
    """Id factory producing prefix-1, prefix-2, ..."""

    def __init__(self):
        self.counter = 0

    def __call__(self, prefix: str) -> str:
        self.counter += 1
        return f"{prefix}-{self.counter}"


def defaults_factory():
    return build_default_snapshot(TODAY)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def defaults():
    return defaults_factory()


@pytest.fixture
def ctx():
    return ActionContext(today=TODAY, id_factory=SequentialIds())
