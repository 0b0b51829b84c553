"""
Reliability utilities for collaborator calls.

Includes Circuit Breaker pattern.
"""

import time
import logging
from typing import Callable, Any, Tuple, Type

logger = logging.getLogger(__name__)


class CircuitOpenError(Exception):
    pass


class CircuitBreaker:
    """
    Simple Circuit Breaker implementation.
    If 'failure_threshold' consecutive failures occur, the circuit opens
    and rejects calls for 'reset_timeout' seconds. Only exceptions listed in
    'tracked_exceptions' count as failures; anything else is re-raised untouched.
    """
    def __init__(
        self,
        name: str = "default",
        failure_threshold: int = 5,
        reset_timeout: int = 60,
        tracked_exceptions: Tuple[Type[BaseException], ...] = (Exception,)
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self.tracked_exceptions = tracked_exceptions
        self.failures = 0
        self.last_failure_time = 0
        self.state = "CLOSED"  # CLOSED, OPEN, HALF_OPEN

    async def call(self, func: Callable, *args, **kwargs) -> Any:
        if self.state == "OPEN":
            if time.time() - self.last_failure_time > self.reset_timeout:
                self.state = "HALF_OPEN"
            else:
                raise CircuitOpenError(f"Circuit '{self.name}' is OPEN")

        try:
            result = await func(*args, **kwargs)
        except self.tracked_exceptions:
            self.record_failure()
            raise
        except Exception:
            # The service answered, so a half-open probe has succeeded
            if self.state == "HALF_OPEN":
                self.reset_state()
            raise

        if self.state == "HALF_OPEN" or self.failures:
            self.reset_state()
        return result

    def record_failure(self):
        self.failures += 1
        self.last_failure_time = time.time()
        if self.state == "HALF_OPEN" or self.failures >= self.failure_threshold:
            if self.state != "OPEN":
                logger.warning("Circuit '%s' opened after %d failures", self.name, self.failures)
            self.state = "OPEN"

    def reset_state(self):
        self.failures = 0
        self.state = "CLOSED"
