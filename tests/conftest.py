from datetime import UTC, datetime
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi.testclient import TestClient

from callmem.config import MemoryConfig, Settings
from callmem.main import app
from callmem.memory import InMemoryBackend, MemoryService
from callmem.models import CallEntry

TEST_SETTINGS = Settings(
    memory_enabled=True,
    mem0_api_key="test_key",
    memory_timeout_ms=200,
    log_json=False,
    log_file="",
)

TEST_CONFIG = MemoryConfig.from_settings(TEST_SETTINGS)


@pytest.fixture
def settings() -> Settings:
    return TEST_SETTINGS


@pytest.fixture
def memory_config() -> MemoryConfig:
    return TEST_CONFIG


@pytest.fixture
def backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture
def memory_service(memory_config, backend) -> MemoryService:
    return MemoryService(memory_config, backend=backend)


@pytest.fixture
def failing_backend() -> AsyncMock:
    """Backend whose every call fails with a connection error."""
    mock = AsyncMock()
    mock.add = AsyncMock(side_effect=httpx.ConnectError("refused"))
    mock.get_all = AsyncMock(side_effect=httpx.ConnectError("refused"))
    mock.delete = AsyncMock(side_effect=httpx.ConnectError("refused"))
    return mock


def make_entry(
    step: str = "workflow_summarization",
    session_id: str = "S1",
    timestamp: datetime | None = None,
    **kwargs,
) -> CallEntry:
    return CallEntry(
        step=step,
        input=kwargs.pop("input", {"messageCount": 5}),
        output=kwargs.pop("output", {"summary": "User wants a login flow"}),
        session_id=session_id,
        timestamp=timestamp or datetime.now(UTC),
        **kwargs,
    )


# --- Sync fixture for TestClient-based integration tests ---


@pytest.fixture
def client(settings: Settings, memory_service: MemoryService) -> TestClient:
    app.state.settings = settings
    app.state.memory_service = memory_service
    return TestClient(app, raise_server_exceptions=False)
