"""MemoryService: advisory call-history memory backed by a remote context store.

Every public method is best-effort. Writes never raise, reads degrade to an
empty result, and a circuit breaker stops calling a failing store until its
recovery window has passed.
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
from collections import Counter
from typing import Any

import httpx

from callmem.config import MemoryConfig
from callmem.memory.backend import Mem0Backend, MemoryBackend
from callmem.memory.breaker import CircuitBreaker
from callmem.memory.client import RemoteStoreClient
from callmem.memory.health import HealthReporter
from callmem.memory.normalizer import normalize_batch
from callmem.memory.query import apply_query
from callmem.memory.validation import validate_entry, validate_query
from callmem.models import (
    CallEntry,
    HealthStatus,
    MemoryQuery,
    MemoryStats,
    StoredEntry,
    ensure_utc,
)

logger = logging.getLogger(__name__)


def build_store_payload(entry: CallEntry) -> dict[str, Any]:
    """Shape a call entry as a two-message Mem0 memory.

    The user message carries the call context, the assistant message the
    output. The store is namespaced by user_id, falling back to session_id.
    """
    timestamp = ensure_utc(entry.timestamp).isoformat()
    context = {
        "step": entry.step,
        "input": entry.input,
        "sessionId": entry.session_id,
        "userId": entry.user_id,
        "workflowType": entry.workflow_type,
        "timestamp": timestamp,
        "metadata": entry.metadata,
    }
    return {
        "messages": [
            {"role": "user", "content": json.dumps(context, default=str)},
            {"role": "assistant", "content": json.dumps(entry.output, default=str)},
        ],
        "user_id": entry.user_id or entry.session_id,
        "metadata": {
            "step": entry.step,
            "sessionId": entry.session_id,
            "workflowType": entry.workflow_type,
            "timestamp": timestamp,
        },
    }


def summarize_entries(entries: list[StoredEntry]) -> MemoryStats:
    if not entries:
        return MemoryStats()
    timestamps = [entry.timestamp for entry in entries]
    sessions = {entry.session_id for entry in entries}
    return MemoryStats(
        total_entries=len(entries),
        entries_by_step=dict(Counter(entry.step for entry in entries)),
        oldest_entry=min(timestamps),
        newest_entry=max(timestamps),
        average_entries_per_session=len(entries) / len(sessions),
    )


class MemoryService:
    def __init__(
        self,
        config: MemoryConfig,
        backend: MemoryBackend | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._config = config
        self._breaker = CircuitBreaker(enabled=config.enabled)
        self._health = HealthReporter(self._breaker)
        self._client: RemoteStoreClient | None = None
        self._owned_http: httpx.AsyncClient | None = None
        self._in_flight: set[asyncio.Task] = set()

        logger.info(
            "Memory service initializing (enabled=%s, api_key=%s, timeout=%dms)",
            config.enabled,
            bool(config.api_key),
            config.timeout_ms,
        )
        self._initialize(backend, http_client)

    def _initialize(
        self, backend: MemoryBackend | None, http_client: httpx.AsyncClient | None
    ) -> None:
        if not self._config.enabled:
            logger.info("Memory service disabled via configuration")
            return

        if backend is None:
            if not self._config.api_key.strip():
                logger.warning("Mem0 API key not configured, memory service disabled")
                self._breaker.enabled = False
                return
            try:
                if http_client is None:
                    http_client = httpx.AsyncClient()
                    self._owned_http = http_client
                backend = Mem0Backend(
                    http_client=http_client,
                    api_key=self._config.api_key,
                    base_url=self._config.endpoint,
                )
            except Exception:
                logger.exception("Failed to initialize Mem0 backend, memory service degraded")
                self._breaker.mark_unhealthy()
                return

        self._client = RemoteStoreClient(backend, self._breaker, self._config.timeout_ms)
        self._breaker.record_success()
        logger.info(
            "Memory service initialized (mode=%s, custom_endpoint=%s)",
            self._health.mode().value,
            bool(self._config.endpoint),
        )

    def _gate(self, operation: str) -> RemoteStoreClient | None:
        if self._client is None or not self._breaker.should_attempt():
            logger.debug(
                "Skipping memory %s (mode=%s, failures=%d)",
                operation,
                self._health.mode().value,
                self._breaker.failure_count,
            )
            return None
        return self._client

    async def store(self, entry: CallEntry) -> None:
        """Record one call; failures are logged, never raised."""
        try:
            if not validate_entry(entry):
                logger.error(
                    "Invalid call entry rejected (step=%r, session=%r)",
                    getattr(entry, "step", None),
                    getattr(entry, "session_id", None),
                )
                return

            client = self._gate("store")
            if client is None:
                return

            if await client.write(build_store_payload(entry)):
                logger.debug(
                    "Memory stored (step=%s, session=%s)", entry.step, entry.session_id
                )
        except Exception:
            logger.exception("Memory storage failed")

    def store_nowait(self, entry: CallEntry) -> asyncio.Task | None:
        """Fire-and-forget store: snapshot the entry and write it in a tracked task."""
        try:
            snapshot = copy.deepcopy(entry)
        except Exception:
            logger.warning("Could not snapshot call entry for storage", exc_info=True)
            return None

        coro = self.store(snapshot)
        try:
            task = asyncio.create_task(coro)
        except RuntimeError:
            coro.close()
            logger.warning("No running event loop, memory storage skipped")
            return None
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    async def wait_for_in_flight(self, timeout: float = 30.0) -> None:
        """Wait for detached writes to finish."""
        if not self._in_flight:
            return
        logger.info(
            "Waiting for %d in-flight memory writes (timeout=%.1fs)", len(self._in_flight), timeout
        )
        _, pending = await asyncio.wait(self._in_flight, timeout=timeout)
        if pending:
            logger.warning("%d memory writes still running after timeout", len(pending))

    async def retrieve(self, query: MemoryQuery | None = None) -> list[StoredEntry]:
        """Return matching entries, newest first; empty list on any failure."""
        query = query if query is not None else MemoryQuery()
        try:
            if not validate_query(query):
                logger.error("Invalid memory query rejected: %r", query)
                return []

            if query.limit == 0:
                return []

            client = self._gate("retrieve")
            if client is None:
                return []

            # No limit goes to the store: paging happens after local filtering.
            # Without user_id or session_id the read is unscoped and lists the
            # whole store; a store that insists on an entity filter fails it.
            namespace = query.user_id or query.session_id
            raw = await client.read({"user_id": namespace} if namespace else {})
            if raw is None:
                return []

            entries = apply_query(normalize_batch(raw), query)
            logger.info(
                "Memory retrieved (session=%s, user=%s, results=%d)",
                query.session_id,
                query.user_id,
                len(entries),
            )
            return entries
        except Exception:
            logger.exception("Memory retrieval failed")
            return []

    async def clear(self, session_id: str, user_id: str | None = None) -> bool:
        """Delete every entry owned by *session_id*.

        Only records whose stored session matches are deleted, even when the
        store namespace (user_id) holds other sessions.
        """
        try:
            if session_id is None or not validate_query(
                MemoryQuery(session_id=session_id, user_id=user_id)
            ):
                logger.error("Invalid session for memory clear: %r", session_id)
                return False

            client = self._gate("clear")
            if client is None:
                return False

            raw = await client.read({"user_id": user_id or session_id})
            if raw is None:
                return False

            owned = [
                entry
                for entry in normalize_batch(raw)
                if entry.session_id == session_id and (user_id is None or entry.user_id == user_id)
            ]
            for entry in owned:
                if not await client.delete(entry.id):
                    logger.warning(
                        "Memory clear for session %s stopped at entry %s", session_id, entry.id
                    )
                    return False

            logger.info("Cleared %d memory entries for session %s", len(owned), session_id)
            return True
        except Exception:
            logger.exception("Memory clear failed for session %s", session_id)
            return False

    async def stats(self, session_id: str, user_id: str | None = None) -> MemoryStats:
        if not isinstance(session_id, str) or not session_id.strip():
            return MemoryStats()
        try:
            entries = await self.retrieve(MemoryQuery(session_id=session_id, user_id=user_id))
            return summarize_entries(entries)
        except Exception:
            logger.exception("Memory stats failed for session %s", session_id)
            return MemoryStats()

    def is_available(self) -> bool:
        return self._health.is_available()

    def health(self) -> HealthStatus:
        return self._health.status()

    async def aclose(self) -> None:
        await self.wait_for_in_flight()
        if self._owned_http is not None:
            await self._owned_http.aclose()
