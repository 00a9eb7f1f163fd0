"""Tests for retry decisions and backoff computation."""

from __future__ import annotations

from unittest.mock import patch

import httpx
import pytest

from onenote_todo.graph_api.retries import compute_backoff, retry_reason, should_retry


class TestShouldRetry:
    @pytest.mark.parametrize("status", [429, 500, 502, 503, 504])
    def test_retryable_statuses(self, status):
        assert should_retry(status, None, attempt=0, max_attempts=3) is True

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 409, 501])
    def test_non_retryable_statuses(self, status):
        assert should_retry(status, None, attempt=0, max_attempts=3) is False

    def test_network_errors_are_retryable(self):
        assert should_retry(None, httpx.ConnectError("refused"), 0, 3) is True
        assert should_retry(None, httpx.ReadTimeout("slow"), 0, 3) is True

    def test_protocol_and_proxy_errors_are_retryable(self):
        assert should_retry(None, httpx.RemoteProtocolError("disconnected"), 0, 3) is True
        assert should_retry(None, httpx.ProxyError("bad gateway"), 0, 3) is True

    def test_other_exceptions_are_not(self):
        assert should_retry(None, ValueError("nope"), 0, 3) is False

    def test_last_attempt_never_retries(self):
        assert should_retry(503, None, attempt=2, max_attempts=3) is False
        assert should_retry(503, None, attempt=0, max_attempts=1) is False

    def test_nothing_to_go_on(self):
        assert should_retry(None, None, 0, 3) is False


class TestComputeBackoff:
    def test_exponential_growth(self):
        assert [compute_backoff(a, base=1.0, jitter=False) for a in range(4)] == [1.0, 2.0, 4.0, 8.0]

    def test_capped_at_maximum(self):
        assert compute_backoff(10, base=1.0, maximum=30.0, jitter=False) == 30.0

    def test_retry_after_wins(self):
        assert compute_backoff(0, base=1.0, jitter=False, retry_after=7.0) == 7.0

    def test_retry_after_is_clamped(self):
        assert compute_backoff(0, maximum=30.0, jitter=False, retry_after=3600.0) == 30.0
        assert compute_backoff(0, jitter=False, retry_after=-5.0) == 0.0

    def test_jitter_draws_from_upper_half(self):
        with patch("onenote_todo.graph_api.retries.random.uniform", side_effect=lambda lo, hi: lo):
            assert compute_backoff(2, base=1.0, jitter=True) == 2.0
        with patch("onenote_todo.graph_api.retries.random.uniform", side_effect=lambda lo, hi: hi):
            assert compute_backoff(2, base=1.0, jitter=True) == 4.0


class TestRetryReason:
    def test_labels(self):
        assert retry_reason(429) == "throttled"
        assert retry_reason(503) == "throttled"
        assert retry_reason(502) == "server_error"
        assert retry_reason(None) == "network_error"
