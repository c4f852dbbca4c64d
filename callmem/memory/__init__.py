"""Call-history memory layer.

Provides:
- MemoryService: store / retrieve / clear / stats over a remote context store
- backends: Mem0Backend (REST over httpx) and InMemoryBackend
- CircuitBreaker and HealthReporter for the active/degraded/disabled modes
"""

from callmem.memory.backend import InMemoryBackend, Mem0Backend, MemoryBackend
from callmem.memory.breaker import CircuitBreaker
from callmem.memory.health import HealthReporter
from callmem.memory.service import MemoryService

__all__ = [
    "CircuitBreaker",
    "HealthReporter",
    "InMemoryBackend",
    "Mem0Backend",
    "MemoryBackend",
    "MemoryService",
]
