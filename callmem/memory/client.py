from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

from callmem.memory.backend import MemoryBackend
from callmem.memory.breaker import CircuitBreaker

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RemoteStoreClient:
    """Runs single backend calls under a deadline and reports each outcome.

    A timeout counts the same as a backend error. Every call records exactly
    one success or one failure on the breaker. Gating is the caller's job.
    """

    def __init__(self, backend: MemoryBackend, breaker: CircuitBreaker, timeout_ms: int):
        self._backend = backend
        self._breaker = breaker
        self._timeout = timeout_ms / 1000

    async def _call(self, operation: str, call: Awaitable[T]) -> tuple[bool, T | None]:
        try:
            result = await asyncio.wait_for(call, timeout=self._timeout)
        except TimeoutError:
            self._breaker.record_failure()
            logger.warning(
                "Memory %s timed out after %.0fms", operation, self._timeout * 1000
            )
            return False, None
        except Exception:
            self._breaker.record_failure()
            logger.warning("Memory %s failed", operation, exc_info=True)
            return False, None

        self._breaker.record_success()
        return True, result

    async def write(self, payload: dict[str, Any]) -> bool:
        ok, _ = await self._call("write", self._backend.add(payload))
        return ok

    async def read(self, params: dict[str, Any]) -> Any | None:
        """Return the raw backend response, or None if the call failed."""
        ok, result = await self._call("read", self._backend.get_all(params))
        return result if ok else None

    async def delete(self, memory_id: str) -> bool:
        ok, _ = await self._call("delete", self._backend.delete(memory_id))
        return ok
