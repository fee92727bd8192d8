"""Shared fixtures for watcher tests."""
from __future__ import annotations

import pytest

from pollwatch.executor import JobExecutor
from pollwatch.ledger import SuppressionLedger


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ledger(clock):
    return SuppressionLedger(2.0, clock=clock)


@pytest.fixture
def inline_executor():
    executor = JobExecutor(max_workers=0)
    yield executor
    executor.shutdown()
