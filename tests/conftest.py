"""Shared fixtures for LogPack tests."""

import pytest

from infrastructure.tracing import InMemoryLogCollector
from logpack.capture import CorrelatedState
from tests.fakes import FIXED_NOW, FakeNotifier, FakeSink, RecordingErrorReporter


@pytest.fixture
def fixed_clock():
    """Clock returning 2024-01-02 03:04:05 UTC."""
    return lambda: FIXED_NOW


@pytest.fixture
def collector() -> InMemoryLogCollector:
    return InMemoryLogCollector()


@pytest.fixture
def state(collector: InMemoryLogCollector) -> CorrelatedState:
    return CorrelatedState(collector)


@pytest.fixture
def sink() -> FakeSink:
    return FakeSink()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def reporter() -> RecordingErrorReporter:
    return RecordingErrorReporter()
