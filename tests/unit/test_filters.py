"""
Unit tests for logpack/capture/filters.py

Tests for:
- The 5xx shortcut
- Include/exclude ordering and short-circuiting
- Suppression overriding every other rule
- Built-in filters
"""

import pytest

from infrastructure.tracing import InMemoryLogCollector
from logpack.capture.filters import (
    FilterChain,
    HeaderFilter,
    MethodFilter,
    PathFilter,
    StatusCodeFilter,
)
from logpack.capture.state import CorrelatedState
from tests.fakes import RecordingFilter, make_context

pytestmark = pytest.mark.unit


# =============================================================================
# Decision algorithm
# =============================================================================


class TestServerErrors:
    @pytest.mark.parametrize("status", [500, 503, 599])
    def test_5xx_captured_without_filters(self, state, status):
        chain = FilterChain(state=state)

        assert chain.should_capture(make_context(status))

    @pytest.mark.parametrize("status", [200, 404, 499, 600])
    def test_non_5xx_not_captured_without_filters(self, state, status):
        chain = FilterChain(state=state)

        assert not chain.should_capture(make_context(status))

    def test_5xx_ignores_exclude_filters(self, state):
        exclude = RecordingFilter(True)
        chain = FilterChain(exclude=[exclude], state=state)

        assert chain.should_capture(make_context(503))
        assert exclude.calls == 0

    def test_5xx_honours_exclude_when_configured(self, state):
        chain = FilterChain(
            exclude=[RecordingFilter(True)],
            state=state,
            exclude_applies_to_errors=True,
        )

        assert not chain.should_capture(make_context(503))

    def test_missing_response_is_not_an_error(self, state):
        chain = FilterChain(state=state)

        assert not chain.should_capture(make_context(None))


class TestIncludeExclude:
    def test_include_match_captures(self, state):
        chain = FilterChain(include=[RecordingFilter(False), RecordingFilter(True)], state=state)

        assert chain.should_capture(make_context(200))

    def test_first_include_match_short_circuits(self, state):
        second = RecordingFilter(True)
        chain = FilterChain(include=[RecordingFilter(True), second], state=state)

        chain.should_capture(make_context(200))

        assert second.calls == 0

    def test_no_include_match_skips_excludes(self, state):
        exclude = RecordingFilter(True)
        chain = FilterChain(include=[RecordingFilter(False)], exclude=[exclude], state=state)

        assert not chain.should_capture(make_context(200))
        assert exclude.calls == 0

    def test_exclude_vetoes_include(self, state):
        chain = FilterChain(
            include=[RecordingFilter(True)],
            exclude=[RecordingFilter(False), RecordingFilter(True)],
            state=state,
        )

        assert not chain.should_capture(make_context(200))

    def test_first_exclude_match_short_circuits(self, state):
        last = RecordingFilter(True)
        chain = FilterChain(
            include=[RecordingFilter(True)],
            exclude=[RecordingFilter(True), last],
            state=state,
        )

        chain.should_capture(make_context(200))

        assert last.calls == 0

    def test_decisions_are_traced(self, state, collector: InMemoryLogCollector):
        chain = FilterChain(
            include=[RecordingFilter(True, name="orders")],
            exclude=[RecordingFilter(True, name="health")],
            state=state,
            log_collector=collector,
        )

        chain.should_capture(make_context(200, correlation_id="r1"))

        assert collector.get("r1") == [
            "Include filter orders returned true",
            "Exclude filter health returned true",
        ]


class TestSuppression:
    def test_suppressed_5xx_not_captured(self, state: CorrelatedState):
        state.stop("r1")
        chain = FilterChain(state=state)

        assert not chain.should_capture(make_context(500, correlation_id="r1"))

    def test_suppressed_include_match_not_captured(self, state: CorrelatedState):
        state.stop("r1")
        chain = FilterChain(include=[RecordingFilter(True)], state=state)

        assert not chain.should_capture(make_context(200, correlation_id="r1"))

    def test_suppression_is_per_request(self, state: CorrelatedState):
        state.stop("r1")
        chain = FilterChain(state=state)

        assert chain.should_capture(make_context(500, correlation_id="r2"))


# =============================================================================
# Built-in filters
# =============================================================================


class TestBuiltInFilters:
    def test_status_code_filter(self):
        f = StatusCodeFilter(404, 409)

        assert f.matches(make_context(404))
        assert not f.matches(make_context(400))

    def test_status_code_ranges(self):
        f = StatusCodeFilter.client_errors()

        assert f.matches(make_context(400))
        assert f.matches(make_context(499))
        assert not f.matches(make_context(500))

    def test_path_filter_globs(self):
        f = PathFilter("/orders/*", "/admin")

        assert f.matches(make_context(path="/orders/42"))
        assert f.matches(make_context(path="/admin"))
        assert not f.matches(make_context(path="/users/1"))

    def test_method_filter_is_case_insensitive(self):
        f = MethodFilter("post", "PUT")

        assert f.matches(make_context(method="POST"))
        assert not f.matches(make_context(method="GET"))

    def test_header_filter_presence_and_value(self):
        headers = [("X-Debug", "1"), ("accept", "*/*")]

        assert HeaderFilter("x-debug").matches(make_context(headers=headers))
        assert HeaderFilter("X-Debug", "1").matches(make_context(headers=headers))
        assert not HeaderFilter("X-Debug", "0").matches(make_context(headers=headers))
        assert not HeaderFilter("X-Other").matches(make_context(headers=headers))
