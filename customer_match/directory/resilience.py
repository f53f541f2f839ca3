"""
Circuit breaker for directory lookups.

While the user types, every settled debounce window triggers up to two
searches. When the directory is down the breaker stops those calls from
piling up and lets lookups fail fast until the service recovers.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog

from customer_match.directory.config import CircuitBreakerConfig

logger = structlog.get_logger()

T = TypeVar("T")


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing, reject calls
    HALF_OPEN = "half_open"  # Probing recovery


class CircuitOpenError(Exception):
    """Raised when the circuit is open and the call was not attempted."""

    pass


class CircuitBreaker:
    """
    Opens after ``failure_threshold`` consecutive failures and rejects calls
    until ``timeout`` seconds have passed, then lets trial calls through.
    """

    def __init__(self, config: Optional[CircuitBreakerConfig] = None):
        self.config = config or CircuitBreakerConfig()
        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.success_count = 0
        self.last_failure_time: Optional[datetime] = None
        self.last_state_change: datetime = datetime.now(timezone.utc)

    async def call_async(self, func: Callable[[], Awaitable[T]]) -> T:
        """
        Execute an async function with circuit breaker protection.

        Args:
            func: Zero-argument coroutine factory

        Returns:
            Function result

        Raises:
            CircuitOpenError: If circuit is open
            Exception: Original exception from function
        """
        if self.state == CircuitState.OPEN:
            if self._should_attempt_reset():
                self._transition(CircuitState.HALF_OPEN)
                logger.info("circuit_breaker.half_open")
            else:
                raise CircuitOpenError(
                    f"Directory circuit is OPEN. Last failure: {self.last_failure_time}"
                )

        try:
            result = await func()
        except Exception:
            self._on_failure()
            raise
        self._on_success()
        return result

    def _on_success(self) -> None:
        self.failure_count = 0
        if self.state == CircuitState.HALF_OPEN:
            self.success_count += 1
            if self.success_count >= self.config.success_threshold:
                self._transition(CircuitState.CLOSED)
                logger.info("circuit_breaker.closed")

    def _on_failure(self) -> None:
        self.failure_count += 1
        self.success_count = 0
        self.last_failure_time = datetime.now(timezone.utc)

        if self.state == CircuitState.HALF_OPEN:
            self._transition(CircuitState.OPEN)
            logger.warning(
                "circuit_breaker.reopened", failure_count=self.failure_count
            )
        elif (
            self.state == CircuitState.CLOSED
            and self.failure_count >= self.config.failure_threshold
        ):
            self._transition(CircuitState.OPEN)
            logger.warning(
                "circuit_breaker.opened",
                failure_count=self.failure_count,
                threshold=self.config.failure_threshold,
            )

    def _should_attempt_reset(self) -> bool:
        if not self.last_failure_time:
            return True
        elapsed = (datetime.now(timezone.utc) - self.last_failure_time).total_seconds()
        return elapsed >= self.config.timeout

    def _transition(self, state: CircuitState) -> None:
        self.state = state
        self.last_state_change = datetime.now(timezone.utc)
        if state != CircuitState.OPEN:
            self.success_count = 0
        if state == CircuitState.CLOSED:
            self.failure_count = 0

    def get_state(self) -> dict[str, Any]:
        """Get current circuit breaker state."""
        return {
            "state": self.state.value,
            "failure_count": self.failure_count,
            "success_count": self.success_count,
            "last_failure_time": (
                self.last_failure_time.isoformat() if self.last_failure_time else None
            ),
            "last_state_change": self.last_state_change.isoformat(),
        }
