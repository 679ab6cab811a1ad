"""
Unit tests for trip_planner/utils/retry.py
"""
import pytest
from unittest.mock import MagicMock

from trip_planner.utils.retry import RetryableTransport, RetryOptions, calculate_delay


def _response(status):
    resp = MagicMock()
    resp.status_code = status
    return resp


def _scripted(*outcomes):
    """Request callable yielding each outcome in turn; exceptions are raised."""
    calls = iter(outcomes)

    def request():
        outcome = next(calls)
        if isinstance(outcome, BaseException):
            raise outcome
        return _response(outcome)

    return request


# ---------------------------------------------------------------------------
# calculate_delay
# ---------------------------------------------------------------------------

class TestCalculateDelay:
    def test_doubles_per_attempt(self):
        assert [calculate_delay(a, 1.0, 8.0) for a in range(4)] == [1.0, 2.0, 4.0, 8.0]

    def test_capped_at_max_delay(self):
        assert calculate_delay(10, 1.0, 8.0) == 8.0


# ---------------------------------------------------------------------------
# RetryableTransport
# ---------------------------------------------------------------------------

class TestRetryableTransport:
    def setup_method(self):
        self.sleep = MagicMock()
        self.transport = RetryableTransport(RetryOptions(max_retries=3, base_delay=1.0), sleep=self.sleep)

    def test_recovers_after_two_503s(self):
        response = self.transport.execute(_scripted(503, 503, 200))
        assert response.status_code == 200
        assert [c.args[0] for c in self.sleep.call_args_list] == [1.0, 2.0]

    def test_success_is_returned_without_sleeping(self):
        assert self.transport.execute(_scripted(200)).status_code == 200
        self.sleep.assert_not_called()

    def test_persistent_429_returns_final_response(self):
        response = self.transport.execute(_scripted(429, 429, 429, 429))
        assert response.status_code == 429
        assert [c.args[0] for c in self.sleep.call_args_list] == [1.0, 2.0, 4.0]

    @pytest.mark.parametrize("status", [400, 401, 402, 404])
    def test_non_retryable_status_returned_immediately(self, status):
        assert self.transport.execute(_scripted(status)).status_code == status
        self.sleep.assert_not_called()

    def test_network_error_retried_then_succeeds(self):
        response = self.transport.execute(_scripted(ConnectionError("reset"), 200))
        assert response.status_code == 200
        self.sleep.assert_called_once_with(1.0)

    def test_network_error_reraised_after_budget(self):
        request = _scripted(*[TimeoutError("slow")] * 4)
        with pytest.raises(TimeoutError):
            self.transport.execute(request)
        assert self.sleep.call_count == 3

    def test_unlisted_exception_is_not_retried(self):
        with pytest.raises(KeyError):
            self.transport.execute(_scripted(KeyError("bug")))
        self.sleep.assert_not_called()

    def test_zero_retries_makes_single_attempt(self):
        transport = RetryableTransport(RetryOptions(max_retries=0), sleep=self.sleep)
        assert transport.execute(_scripted(503)).status_code == 503
        self.sleep.assert_not_called()
