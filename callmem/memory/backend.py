from __future__ import annotations

import copy
import logging
import uuid
from datetime import UTC, datetime
from typing import Any, Protocol

import httpx

logger = logging.getLogger(__name__)

MEM0_API_URL = "https://api.mem0.ai"


class MemoryBackend(Protocol):
    """Capabilities the memory layer needs from a context store."""

    async def add(self, payload: dict[str, Any]) -> Any: ...

    async def get_all(self, params: dict[str, Any]) -> Any: ...

    async def delete(self, memory_id: str) -> None: ...


class Mem0Backend:
    """Thin async client for the Mem0 platform REST API.

    Errors are raised (httpx.HTTPStatusError / httpx.RequestError); the
    caller decides how a failure is counted.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        base_url: str | None = None,
    ):
        self._http = http_client
        self._api_key = api_key
        self._base_url = (base_url or MEM0_API_URL).rstrip("/")

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Token {self._api_key}",
            "Content-Type": "application/json",
        }

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    def _check_response(self, resp: httpx.Response) -> None:
        if resp.status_code in (401, 403):
            logger.error(
                "Mem0 API auth failed (%d): check the API key and its project access",
                resp.status_code,
            )
        elif resp.status_code >= 400:
            logger.debug("Mem0 API error [%d]: %s", resp.status_code, resp.text[:200])
        resp.raise_for_status()

    async def add(self, payload: dict[str, Any]) -> Any:
        resp = await self._http.post(
            self._url("/v1/memories/"), json=payload, headers=self._headers
        )
        self._check_response(resp)
        return resp.json()

    async def get_all(self, params: dict[str, Any]) -> Any:
        resp = await self._http.get(
            self._url("/v1/memories/"), params=params, headers=self._headers
        )
        self._check_response(resp)
        return resp.json()

    async def delete(self, memory_id: str) -> None:
        resp = await self._http.delete(
            self._url(f"/v1/memories/{memory_id}/"), headers=self._headers
        )
        self._check_response(resp)


class InMemoryBackend:
    """Process-local store with the same record shape Mem0 returns."""

    def __init__(self) -> None:
        self._records: dict[str, dict[str, Any]] = {}

    def __len__(self) -> int:
        return len(self._records)

    async def add(self, payload: dict[str, Any]) -> dict[str, Any]:
        memory_id = uuid.uuid4().hex
        record = copy.deepcopy(payload)
        record["id"] = memory_id
        record["created_at"] = datetime.now(UTC).isoformat()
        self._records[memory_id] = record
        return {"id": memory_id, "event": "ADD"}

    async def get_all(self, params: dict[str, Any]) -> list[dict[str, Any]]:
        user_id = params.get("user_id")
        return [
            copy.deepcopy(record)
            for record in self._records.values()
            if user_id is None or record.get("user_id") == user_id
        ]

    async def delete(self, memory_id: str) -> None:
        if memory_id not in self._records:
            raise KeyError(memory_id)
        del self._records[memory_id]
