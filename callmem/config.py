from __future__ import annotations

from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Memory store (Mem0)
    memory_enabled: bool = True
    mem0_api_key: str = ""
    mem0_endpoint: str | None = None
    memory_timeout_ms: int = 5000
    # Reserved for a retry policy; not acted on yet
    memory_retry_attempts: int = 3
    memory_retry_delay_ms: int = 1000

    @field_validator("mem0_endpoint", mode="before")
    @classmethod
    def empty_endpoint_is_none(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    # Logging
    log_level: str = "INFO"
    log_json: bool = True
    log_file: str = "data/callmem.log"

    model_config = {"env_file": ".env"}


class MemoryConfig(BaseModel):
    """Immutable configuration handed to a MemoryService at construction."""

    enabled: bool = True
    api_key: str = ""
    endpoint: str | None = None
    timeout_ms: int = 5000
    retry_attempts: int = 3
    retry_delay_ms: int = 1000

    model_config = {"frozen": True}

    @classmethod
    def from_settings(cls, settings: Settings) -> MemoryConfig:
        return cls(
            enabled=settings.memory_enabled,
            api_key=settings.mem0_api_key,
            endpoint=settings.mem0_endpoint,
            timeout_ms=settings.memory_timeout_ms,
            retry_attempts=settings.memory_retry_attempts,
            retry_delay_ms=settings.memory_retry_delay_ms,
        )

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000
