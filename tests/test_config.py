import pytest
from pydantic import ValidationError

from callmem.config import MemoryConfig, Settings


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("MEMORY_ENABLED", "false")
    monkeypatch.setenv("MEM0_API_KEY", "secret")
    monkeypatch.setenv("MEM0_ENDPOINT", "http://mem0.local")
    monkeypatch.setenv("MEMORY_TIMEOUT_MS", "750")

    config = MemoryConfig.from_settings(Settings(_env_file=None))

    assert config.enabled is False
    assert config.api_key == "secret"
    assert config.endpoint == "http://mem0.local"
    assert config.timeout_ms == 750
    assert config.timeout_seconds == 0.75


def test_blank_endpoint_is_none(monkeypatch):
    monkeypatch.setenv("MEM0_ENDPOINT", "  ")
    assert Settings(_env_file=None).mem0_endpoint is None


def test_defaults():
    config = MemoryConfig()
    assert config.enabled is True
    assert config.timeout_ms == 5000
    assert config.retry_attempts == 3
    assert config.retry_delay_ms == 1000


def test_config_is_immutable():
    config = MemoryConfig(api_key="k")
    with pytest.raises(ValidationError):
        config.api_key = "other"
