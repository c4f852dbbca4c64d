from fastapi import Request

from callmem.memory import MemoryService


def get_memory_service(request: Request) -> MemoryService:
    return request.app.state.memory_service
