from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import httpx

from ..config import settings
from ..errors import SubmissionFailed, TransportError


class SandboxClient:
    """HTTP client for one agent's execution unit."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def start(self, prompt: str, task_id: str, api_key: Optional[str] = None) -> str:
        # The executor takes `agentId` as the id of the task it registers.
        body: dict[str, Any] = {"prompt": prompt, "agentId": task_id}
        if api_key:
            body["apiKey"] = api_key
        try:
            r = await self.client.post("/run", json=body)
        except httpx.HTTPError as exc:
            raise SubmissionFailed(f"Failed to start task: {type(exc).__name__}: {exc}") from exc
        if not r.is_success:
            raise SubmissionFailed(f"Failed to start task ({r.status_code}): {r.text}")
        return r.json()["taskId"]

    async def status(self, task_id: str) -> dict[str, Any]:
        try:
            r = await self.client.get(f"/status/{task_id}")
        except httpx.HTTPError as exc:
            raise TransportError(f"Failed to get task status: {type(exc).__name__}: {exc}") from exc
        if not r.is_success:
            raise TransportError(f"Failed to get task status ({r.status_code}): {r.text}")
        return r.json()

    async def cancel(self, task_id: str) -> dict[str, Any]:
        try:
            r = await self.client.post(f"/cancel/{task_id}")
        except httpx.HTTPError as exc:
            raise TransportError(f"Failed to cancel task: {type(exc).__name__}: {exc}") from exc
        if not r.is_success:
            raise TransportError(f"Failed to cancel task ({r.status_code}): {r.text}")
        return r.json()

    async def health(self, timeout: Optional[float] = None) -> dict[str, Any]:
        r = await self.client.get("/health", timeout=timeout or settings.warm_timeout_seconds)
        r.raise_for_status()
        return r.json()


class ExecutionUnits:
    """Resolves an agent id to its own, stable execution unit.

    ``transport`` lets tests route every unit to an in-process app or a mock.
    """

    def __init__(self, url_template: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url_template = url_template or settings.sandbox_url_template
        self.transport = transport

    def url_for(self, agent_id: str) -> str:
        return self.url_template.format(agent_id=agent_id)

    @asynccontextmanager
    async def connect(self, agent_id: str) -> AsyncIterator[SandboxClient]:
        async with httpx.AsyncClient(
            base_url=self.url_for(agent_id),
            timeout=settings.http_timeout_seconds,
            transport=self.transport,
        ) as client:
            yield SandboxClient(client)
