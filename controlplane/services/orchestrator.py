"""Submit an agent prompt to its execution unit and poll it to a terminal state."""

from __future__ import annotations

import asyncio
import math
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

import httpx
import redis
import structlog

from ..agents import AgentDefinition, compose_prompt, get_agent
from ..config import settings
from ..errors import AgentRunError, TaskTimeoutError, TransportError, UnknownAgent
from ..models import RunResult, WarmResponse
from ..storage.log_store import LogStore
from ..storage.schema import LogEntry
from .notifier import SlackNotifier
from .output import derive_output, is_terminal
from .sandbox_client import ExecutionUnits, SandboxClient

logger = structlog.get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]

# Failure signatures of a unit that was still booting when the run was submitted.
INITIALIZING_MARKERS = (
    "blockConcurrency",
    "ConnectError",
    "Connection refused",
    "(502)",
    "(503)",
)


def is_initializing_failure(error: Optional[str]) -> bool:
    return bool(error) and any(marker in error for marker in INITIALIZING_MARKERS)


def task_id_for(agent_id: str) -> str:
    """Task id unique to one run of the agent."""
    return f"{agent_id}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


@dataclass
class PollState:
    interval_ms: int
    max_attempts: int
    attempts: int = 0

    @classmethod
    def for_budget(cls, interval_ms: int, max_wait_ms: int) -> "PollState":
        return cls(interval_ms=interval_ms, max_attempts=math.ceil(max_wait_ms / interval_ms))

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.max_attempts


class Orchestrator:
    def __init__(
        self,
        units: Optional[ExecutionUnits] = None,
        log_store: Optional[LogStore] = None,
        notifier: Optional[SlackNotifier] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.units = units or ExecutionUnits()
        self.log_store = log_store or LogStore()
        self.notifier = notifier or SlackNotifier()
        self.sleep = sleep

    async def run_agent(self, agent_id: str) -> RunResult:
        agent = get_agent(agent_id)
        if agent is None:
            return RunResult(success=False, error=str(UnknownAgent(agent_id)))

        started_ms = int(time.time() * 1000)
        started = time.monotonic()
        log = logger.bind(agent_id=agent_id)
        log.info("agent_run_started")
        try:
            output = await self._execute(agent)
        except AgentRunError as exc:
            log.warning("agent_run_failed", error=str(exc))
            result = RunResult(success=False, error=str(exc))
        except Exception as exc:
            log.exception("agent_run_crashed")
            result = RunResult(success=False, error=str(exc) or type(exc).__name__)
        else:
            log.info("agent_run_completed", output_chars=len(output))
            result = RunResult(success=True, output=output)

        await self._record(agent, started_ms, time.monotonic() - started, result)
        return result

    async def run_with_retry(
        self,
        agent_id: str,
        attempts: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
    ) -> RunResult:
        """Re-run the whole agent while the failure says its unit was still starting."""
        attempts = settings.run_retry_attempts if attempts is None else attempts
        backoff = settings.run_retry_backoff_seconds if backoff_seconds is None else backoff_seconds

        result = await self.run_agent(agent_id)
        for retry in range(1, attempts + 1):
            if result.success or not is_initializing_failure(result.error):
                break
            logger.info("agent_run_retry", agent_id=agent_id, retry=retry, of=attempts, error=result.error)
            await self.sleep(backoff)
            result = await self.run_agent(agent_id)
        return result

    async def warm(self, agent_id: str) -> WarmResponse:
        """Best-effort health probe that makes the unit start before a run is submitted."""
        async with self.units.connect(agent_id) as sandbox:
            try:
                data = await sandbox.health()
            except (httpx.HTTPError, ValueError) as exc:
                logger.info("warm_probe_pending", agent_id=agent_id, error=str(exc))
                return WarmResponse(status="warming", message="Container starting...")
        return WarmResponse(status="warm", container=data.get("status"))

    async def _execute(self, agent: AgentDefinition) -> str:
        prompt = compose_prompt(agent, settings.target_url, settings.target_repo)
        async with self.units.connect(agent.id) as sandbox:
            task_id = await sandbox.start(prompt, task_id_for(agent.id), settings.anthropic_api_key)
            logger.info("agent_task_submitted", agent_id=agent.id, task_id=task_id)
            status = await self._poll(sandbox, task_id)
        return derive_output(status)

    async def _poll(self, sandbox: SandboxClient, task_id: str) -> dict:
        poll = PollState.for_budget(settings.poll_interval_ms, settings.max_wait_ms)
        try:
            while not poll.exhausted:
                await self.sleep(poll.interval_ms / 1000)
                poll.attempts += 1
                status = await sandbox.status(task_id)
                if is_terminal(status):
                    return status
            raise TaskTimeoutError(f"Task timed out after {settings.max_wait_ms / 1000:g} seconds")
        except Exception:
            # Leaving without a terminal status: stop the task and release its record.
            await self._abandon(sandbox, task_id)
            raise

    async def _abandon(self, sandbox: SandboxClient, task_id: str) -> None:
        try:
            await sandbox.cancel(task_id)
        except TransportError as exc:
            logger.warning("task_cancel_failed", task_id=task_id, error=str(exc))

    async def _record(self, agent: AgentDefinition, started_ms: int, elapsed: float, result: RunResult) -> None:
        entry = LogEntry(
            agent_id=agent.id,
            agent_name=agent.name,
            timestamp=datetime.now(timezone.utc).isoformat(),
            duration=f"{elapsed:.1f}s",
            success=result.success,
            output=result.output,
            error=result.error,
        )
        try:
            self.log_store.append(started_ms, entry)
        except redis.RedisError as exc:
            logger.error("run_log_write_failed", agent_id=agent.id, error=str(exc))

        await self.notifier.notify(agent.name, result.output if result.success else result.error, result.success)
