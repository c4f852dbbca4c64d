from fastapi import APIRouter, Depends

from callmem.dependencies import get_memory_service
from callmem.memory import MemoryService
from callmem.models import HealthMode, HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(memory: MemoryService = Depends(get_memory_service)) -> HealthResponse:
    status = memory.health()
    return HealthResponse(
        status="ok" if status.mode == HealthMode.ACTIVE else status.mode.value,
        memory=status,
    )
