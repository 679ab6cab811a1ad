# backend/trip_planner/utils/retry.py

import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Type

from trip_planner.core.config_loader import settings
from trip_planner.core.logger import get_logger

log = get_logger("transport")


RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


@dataclass(frozen=True)
class RetryOptions:
    max_retries: int = 3
    base_delay: float = 1.0     # seconds
    max_delay: float = 8.0      # seconds

    @classmethod
    def from_settings(cls) -> "RetryOptions":
        return cls(
            max_retries=settings.retry_max_retries,
            base_delay=settings.retry_base_delay,
            max_delay=settings.retry_max_delay,
        )


def calculate_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    return min(base_delay * (2 ** attempt), max_delay)


def _is_success(status: int) -> bool:
    return 200 <= status < 300


class RetryableTransport:
    """
    Runs a request callable with exponential backoff on transient failures.

    A response with a retryable status is retried and, once the budget is
    spent, returned as-is. A network exception is retried on the same
    schedule and re-raised once the budget is spent.
    """

    def __init__(
        self,
        options: Optional[RetryOptions] = None,
        sleep: Callable[[float], None] = time.sleep,
        network_errors: Tuple[Type[BaseException], ...] = (ConnectionError, TimeoutError),
    ):
        self.options = options or RetryOptions()
        self.sleep = sleep
        self.network_errors = network_errors

    def execute(self, request: Callable[[], Any]) -> Any:
        max_retries = self.options.max_retries

        for attempt in range(max_retries + 1):
            try:
                response = request()
            except self.network_errors as e:
                if attempt < max_retries:
                    delay = calculate_delay(attempt, self.options.base_delay, self.options.max_delay)
                    log.warning(f"Network error, retrying in {delay}s (attempt {attempt + 1}/{max_retries}): {e}")
                    self.sleep(delay)
                    continue
                raise

            status = response.status_code
            if _is_success(status) or status not in RETRYABLE_STATUS_CODES:
                return response

            if attempt < max_retries:
                delay = calculate_delay(attempt, self.options.base_delay, self.options.max_delay)
                log.warning(f"Request failed with {status}, retrying in {delay}s (attempt {attempt + 1}/{max_retries})")
                self.sleep(delay)
                continue

            log.error(f"Request still failing with {status} after {max_retries} retries")
            return response
