from __future__ import annotations

from callmem.memory.breaker import CircuitBreaker
from callmem.models import HealthMode, HealthStatus


class HealthReporter:
    """Read-only view of the breaker as an operational mode."""

    def __init__(self, breaker: CircuitBreaker):
        self._breaker = breaker

    def mode(self) -> HealthMode:
        if not self._breaker.enabled:
            return HealthMode.DISABLED
        if not self._breaker.is_healthy or self._breaker.is_open:
            return HealthMode.DEGRADED
        return HealthMode.ACTIVE

    def is_available(self) -> bool:
        return self._breaker.enabled and self._breaker.is_healthy

    def status(self) -> HealthStatus:
        return HealthStatus(
            is_available=self.is_available(),
            is_healthy=self._breaker.is_healthy,
            failure_count=self._breaker.failure_count,
            mode=self.mode(),
            last_success=self._breaker.last_success,
            last_failure=self._breaker.last_failure,
        )
