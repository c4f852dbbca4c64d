import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from callmem.config import MemoryConfig, Settings
from callmem.health.router import router as health_router
from callmem.logging_config import configure_logging
from callmem.memory import MemoryService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings()

    configure_logging(
        level=settings.log_level, json_format=settings.log_json, log_file=settings.log_file
    )

    memory_config = MemoryConfig.from_settings(settings)
    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(memory_config.timeout_seconds, connect=10.0)
    )

    app.state.settings = settings
    app.state.http_client = http_client
    app.state.memory_service = MemoryService(memory_config, http_client=http_client)
    logger.info("Memory layer ready (mode=%s)", app.state.memory_service.health().mode.value)

    yield

    await app.state.memory_service.wait_for_in_flight(timeout=30.0)
    await http_client.aclose()


app = FastAPI(title="callmem", lifespan=lifespan)
app.include_router(health_router)
