"""Task executor: spawns the agent CLI and tracks each run in the task store."""

from __future__ import annotations

import asyncio
import contextlib
import os
import shlex
import uuid
from pathlib import Path
from typing import Dict, List, Optional

import structlog

from ..config import settings
from ..errors import SpawnError, TaskConflict, ValidationError
from ..storage.schema import TaskRecord, now_ms, parse_result
from ..storage.store import TaskStore
from .process import run_process

logger = structlog.get_logger(__name__)

CANCELLED_MESSAGE = "Task cancelled"


class TaskExecutor:
    """Owns one task store and the driver coroutine of every in-flight task.

    Each driver is the only writer of its record. Status queries read the
    store from the same event loop, so records never need a lock.
    """

    def __init__(
        self,
        workspace: Optional[str] = None,
        command: Optional[str] = None,
        task_timeout: Optional[float] = None,
        sync_timeout: Optional[float] = None,
    ):
        self.workspace = Path(workspace or settings.workspace).resolve()
        self.command = shlex.split(command or settings.agent_command)
        self.task_timeout = task_timeout or settings.task_timeout_seconds
        self.sync_timeout = sync_timeout or settings.sync_timeout_seconds
        self.store = TaskStore()
        self._drivers: Dict[str, asyncio.Task] = {}

    def submit(
        self,
        prompt: Optional[str],
        workdir: Optional[str] = None,
        task_id: Optional[str] = None,
        api_key: Optional[str] = None,
    ) -> TaskRecord:
        self._require_prompt(prompt)
        task_id = task_id or f"task-{now_ms()}-{uuid.uuid4().hex[:6]}"
        if task_id in self.store:
            raise TaskConflict(task_id)
        cwd = self.resolve_workdir(workdir)
        cwd.mkdir(parents=True, exist_ok=True)

        rec = TaskRecord(id=task_id, workdir=str(cwd))
        self.store.add(rec)
        driver = asyncio.create_task(self._drive(rec, self._argv(prompt), self._env(api_key)))
        self._drivers[task_id] = driver
        driver.add_done_callback(lambda done: self._forget(task_id, done))
        logger.info("task_started", task_id=task_id, workdir=str(cwd))
        return rec

    def status(self, task_id: str) -> dict:
        return self.store.collect(task_id)

    def list(self) -> List[dict]:
        return [rec.summary() for rec in self.store.all()]

    async def cancel(self, task_id: str) -> dict:
        rec = self.store.require(task_id)
        driver = self._drivers.get(task_id)
        if driver is not None:
            driver.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await driver
            if not rec.terminal:
                # The driver was cancelled before its first step and never spawned anything.
                rec.exited(None, error=CANCELLED_MESSAGE)
            logger.info("task_cancelled", task_id=task_id)
        return self.store.collect(task_id)

    async def join(self, task_id: str) -> None:
        """Wait until the task's driver has recorded a terminal status."""
        driver = self._drivers.get(task_id)
        if driver is not None:
            await asyncio.shield(driver)

    async def shutdown(self) -> None:
        drivers = list(self._drivers.values())
        for driver in drivers:
            driver.cancel()
        await asyncio.gather(*drivers, return_exceptions=True)

    async def run_sync(
        self,
        prompt: Optional[str],
        workdir: Optional[str] = None,
        api_key: Optional[str] = None,
    ) -> dict:
        self._require_prompt(prompt)
        cwd = self.resolve_workdir(workdir)
        cwd.mkdir(parents=True, exist_ok=True)

        stdout: List[str] = []
        stderr: List[str] = []
        try:
            outcome = await run_process(
                self._argv(prompt),
                cwd=str(cwd),
                env=self._env(api_key),
                timeout_seconds=self.sync_timeout,
                on_stdout=stdout.append,
                on_stderr=stderr.append,
            )
        except OSError as exc:
            logger.warning("sync_spawn_failed", workdir=str(cwd), error=str(exc))
            raise SpawnError(str(exc)) from exc

        if outcome.timed_out:
            logger.warning("sync_run_timed_out", workdir=str(cwd), limit_seconds=self.sync_timeout)
        response = {
            "exitCode": outcome.exit_code,
            "result": parse_result("".join(stdout)),
            "workdir": str(cwd),
        }
        if stderr:
            response["stderr"] = "".join(stderr)
        return response

    def resolve_workdir(self, workdir: Optional[str]) -> Path:
        if not workdir:
            return self.workspace
        target = (self.workspace / workdir).resolve()
        if target != self.workspace and self.workspace not in target.parents:
            raise ValidationError(f"workdir escapes workspace: {workdir}")
        return target

    async def _drive(self, rec: TaskRecord, argv: List[str], env: Dict[str, str]) -> None:
        try:
            outcome = await run_process(
                argv,
                cwd=rec.workdir,
                env=env,
                timeout_seconds=self.task_timeout,
                on_stdout=rec.append_stdout,
                on_stderr=rec.append_stderr,
            )
        except OSError as exc:
            rec.spawn_failed(str(exc))
            logger.warning("task_spawn_failed", task_id=rec.id, error=str(exc))
            return
        except asyncio.CancelledError:
            rec.exited(None, error=CANCELLED_MESSAGE)
            raise

        if outcome.timed_out:
            rec.exited(None, error=f"Task exceeded the {self.task_timeout:g}s execution limit and was killed")
        else:
            rec.exited(outcome.exit_code)
        logger.info(
            "task_finished",
            task_id=rec.id,
            status=rec.status.value,
            exit_code=rec.exit_code,
            duration_ms=rec.end_time - rec.start_time,
        )

    def _forget(self, task_id: str, driver: asyncio.Task) -> None:
        if self._drivers.get(task_id) is driver:
            del self._drivers[task_id]

    def _argv(self, prompt: str) -> List[str]:
        return [*self.command, prompt]

    @staticmethod
    def _env(api_key: Optional[str]) -> Dict[str, str]:
        env = dict(os.environ)
        if api_key:
            env["ANTHROPIC_API_KEY"] = api_key
        return env

    @staticmethod
    def _require_prompt(prompt: Optional[str]) -> None:
        if not prompt:
            raise ValidationError("prompt required")
