from __future__ import annotations

import logging
import time
from datetime import UTC, datetime

logger = logging.getLogger(__name__)

FAILURE_THRESHOLD = 5
RECOVERY_TIMEOUT = 60.0  # seconds


class CircuitBreaker:
    """Consecutive-failure gate in front of the memory store.

    CLOSED while failure_count is below the threshold. Once the threshold is
    reached the breaker is OPEN until RECOVERY_TIMEOUT has passed since the
    last failure; the next should_attempt() then resets the counter and lets
    one call through as a probe. There is no separate half-open state.

    Every update happens between await points, so no lock is needed on a
    single event loop.
    """

    def __init__(
        self,
        enabled: bool,
        failure_threshold: int = FAILURE_THRESHOLD,
        recovery_timeout: float = RECOVERY_TIMEOUT,
    ):
        self.enabled = enabled
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.is_healthy = False
        self.last_success: datetime | None = None
        self.last_failure: datetime | None = None
        self._last_failure_at: float | None = None

    @property
    def is_open(self) -> bool:
        return self.failure_count >= self.failure_threshold

    def should_attempt(self) -> bool:
        if not self.enabled:
            return False

        if not self.is_open:
            return True

        if self._last_failure_at is not None:
            elapsed = time.monotonic() - self._last_failure_at
            if elapsed > self.recovery_timeout:
                logger.info(
                    "Circuit breaker recovery window passed after %.1fs (%d failures), probing",
                    elapsed,
                    self.failure_count,
                )
                # Reset before the probe: a failed probe counts from zero again
                self.failure_count = 0
                return True

        logger.debug(
            "Circuit breaker open, skipping call (%d/%d failures)",
            self.failure_count,
            self.failure_threshold,
        )
        return False

    def record_success(self) -> None:
        had_failures = self.failure_count > 0 or not self.is_healthy
        self.failure_count = 0
        self.is_healthy = True
        self.last_success = datetime.now(UTC)
        if had_failures and self.last_failure is not None:
            logger.info("Memory store recovered, returning to active mode")

    def record_failure(self) -> None:
        self.failure_count += 1
        self._last_failure_at = time.monotonic()
        self.last_failure = datetime.now(UTC)

        if self.failure_count >= self.failure_threshold:
            self.is_healthy = False
            logger.warning(
                "Memory store entering degraded mode after %d consecutive failures",
                self.failure_count,
            )
        else:
            logger.debug(
                "Memory store failure recorded (%d/%d)",
                self.failure_count,
                self.failure_threshold,
            )

    def mark_unhealthy(self) -> None:
        """Flag a failed initialization."""
        self.is_healthy = False
        self.last_failure = datetime.now(UTC)
