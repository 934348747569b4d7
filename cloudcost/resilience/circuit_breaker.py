"""
Circuit breaker for the authoritative pricing engine.
Stops spawning a failing engine for a while; callers treat an open breaker
as "engine unavailable" and price heuristically.
"""
from enum import Enum
from datetime import datetime
from typing import Optional
import logging

logger = logging.getLogger(__name__)


HALF_OPEN_MAX_REQUESTS = 1  # Probes allowed while HALF_OPEN


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing fast, engine not spawned
    HALF_OPEN = "half_open"  # Probing whether the engine recovered


class CircuitBreaker:
    """
    Per-owner circuit breaker. Never shared through a module-level registry.

    Transitions:
    - CLOSED -> OPEN: after failure_threshold consecutive failures
    - OPEN -> HALF_OPEN: after open_duration seconds
    - HALF_OPEN -> CLOSED: on success
    - HALF_OPEN -> OPEN: on failure
    """

    def __init__(
        self,
        service_name: str,
        failure_threshold: int,
        open_duration: float,
        half_open_max_requests: int = HALF_OPEN_MAX_REQUESTS
    ):
        """
        Args:
            service_name: Name used in log lines (e.g. "infracost")
            failure_threshold: Consecutive failures before opening
            open_duration: Seconds to remain OPEN before HALF_OPEN
            half_open_max_requests: Probes allowed in HALF_OPEN
        """
        self.service_name = service_name
        self.failure_threshold = failure_threshold
        self.open_duration = open_duration
        self.half_open_max_requests = half_open_max_requests

        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.opened_at: Optional[datetime] = None
        self.half_open_requests = 0

    def allow_request(self) -> bool:
        """
        Check if a call should be attempted.

        Returns:
            True if the call may proceed, False if the circuit is open
        """
        if self.state == CircuitState.OPEN:
            now = datetime.now()
            if self.opened_at and (now - self.opened_at).total_seconds() >= self.open_duration:
                logger.warning(
                    "Circuit breaker for %s: OPEN -> HALF_OPEN (testing recovery)",
                    self.service_name,
                )
                self.state = CircuitState.HALF_OPEN
                self.half_open_requests = 1
                return True
            return False

        if self.state == CircuitState.HALF_OPEN:
            if self.half_open_requests < self.half_open_max_requests:
                self.half_open_requests += 1
                return True
            return False

        return True

    def record_success(self) -> None:
        if self.state == CircuitState.HALF_OPEN:
            logger.warning(
                "Circuit breaker for %s: HALF_OPEN -> CLOSED (engine recovered)",
                self.service_name,
            )
            self.state = CircuitState.CLOSED
            self.half_open_requests = 0
            self.opened_at = None
        self.failure_count = 0

    def record_failure(self) -> None:
        """Count a failure and open the circuit when the threshold is reached."""
        now = datetime.now()
        self.failure_count += 1

        if self.state == CircuitState.HALF_OPEN:
            logger.warning(
                "Circuit breaker for %s: HALF_OPEN -> OPEN (engine still failing)",
                self.service_name,
            )
            self.state = CircuitState.OPEN
            self.opened_at = now
            self.half_open_requests = 0
        elif self.state == CircuitState.CLOSED and self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker for %s: CLOSED -> OPEN (%d consecutive failures)",
                self.service_name, self.failure_count,
            )
            self.state = CircuitState.OPEN
            self.opened_at = now

    def current_state(self) -> CircuitState:
        return self.state
