"""
Tests for retry and time helpers.
"""
import pytest
from unittest.mock import Mock

from creative_rag.exceptions import InvalidInput, UpstreamUnavailable
from creative_rag.utils import backoff_delay, call_with_retries, utcnow


class TestBackoffDelay:
    """Tests for backoff_delay."""

    def test_doubles_per_attempt(self):
        assert [backoff_delay(n, 0.5, 100) for n in (1, 2, 3, 4)] == [0.5, 1.0, 2.0, 4.0]

    def test_capped_at_max(self):
        assert backoff_delay(10, 0.5, 8.0) == 8.0


class TestCallWithRetries:
    """Tests for call_with_retries."""

    def test_returns_first_success(self):
        func = Mock(return_value=42)
        sleep = Mock()
        assert call_with_retries(func, attempts=3, retry_on=(UpstreamUnavailable,), sleep=sleep) == 42
        assert func.call_count == 1
        sleep.assert_not_called()

    def test_retries_then_succeeds(self):
        func = Mock(side_effect=[UpstreamUnavailable("timeout"), UpstreamUnavailable("timeout"), "ok"])
        sleep = Mock()

        result = call_with_retries(
            func, attempts=3, retry_on=(UpstreamUnavailable,), base_delay=0.5, max_delay=8.0, sleep=sleep
        )

        assert result == "ok"
        assert func.call_count == 3
        assert [c.args[0] for c in sleep.call_args_list] == [0.5, 1.0]

    def test_reraises_after_last_attempt(self):
        func = Mock(side_effect=UpstreamUnavailable("down"))
        with pytest.raises(UpstreamUnavailable):
            call_with_retries(func, attempts=2, retry_on=(UpstreamUnavailable,), sleep=Mock())
        assert func.call_count == 2

    def test_non_retryable_propagates_immediately(self):
        func = Mock(side_effect=InvalidInput("empty"))
        with pytest.raises(InvalidInput):
            call_with_retries(func, attempts=5, retry_on=(UpstreamUnavailable,), sleep=Mock())
        assert func.call_count == 1

    def test_should_stop_ends_retries(self):
        func = Mock(side_effect=UpstreamUnavailable("down"))
        with pytest.raises(UpstreamUnavailable):
            call_with_retries(
                func, attempts=5, retry_on=(UpstreamUnavailable,), sleep=Mock(), should_stop=lambda: True
            )
        assert func.call_count == 1

    def test_attempts_must_be_positive(self):
        with pytest.raises(ValueError):
            call_with_retries(Mock(), attempts=0, retry_on=(UpstreamUnavailable,))


def test_utcnow_is_timezone_aware():
    assert utcnow().tzinfo is not None
