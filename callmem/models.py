from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with stored timestamps."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@dataclass
class CallEntry:
    step: str  # e.g. "workflow_summarization", "conversation_processing"
    input: dict[str, Any]
    output: dict[str, Any]
    session_id: str
    timestamp: datetime
    user_id: str | None = None
    workflow_type: str | None = None
    metadata: dict[str, Any] | None = None


@dataclass(frozen=True)
class StoredEntry:
    id: str
    step: str
    input: dict[str, Any]
    output: dict[str, Any]
    session_id: str
    timestamp: datetime
    user_id: str | None = None
    workflow_type: str | None = None
    metadata: dict[str, Any] | None = None
    backend_metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class MemoryQuery:
    session_id: str | None = None
    user_id: str | None = None
    workflow_type: str | None = None
    step: str | None = None
    start_date: datetime | None = None  # inclusive
    end_date: datetime | None = None  # inclusive
    limit: int | None = None
    offset: int | None = None


class MemoryStats(BaseModel):
    total_entries: int = 0
    entries_by_step: dict[str, int] = {}
    oldest_entry: datetime | None = None
    newest_entry: datetime | None = None
    average_entries_per_session: float = 0.0


class HealthMode(StrEnum):
    ACTIVE = "active"
    DEGRADED = "degraded"
    DISABLED = "disabled"


class HealthStatus(BaseModel):
    is_available: bool
    is_healthy: bool
    failure_count: int
    mode: HealthMode
    last_success: datetime | None = None
    last_failure: datetime | None = None


class HealthResponse(BaseModel):
    status: str
    memory: HealthStatus
