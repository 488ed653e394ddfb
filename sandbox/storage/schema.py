import time
from enum import Enum
from typing import Any, Optional

import orjson
from pydantic import BaseModel, Field

from ..errors import InvalidTransition


def now_ms() -> int:
    return int(time.time() * 1000)


def parse_result(stdout: str) -> Any:
    """Decode agent stdout as JSON, wrapping anything unparseable as ``{"raw": ...}``."""
    try:
        return orjson.loads(stdout)
    except orjson.JSONDecodeError:
        return {"raw": stdout}


class TaskStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class TaskRecord(BaseModel):
    id: str
    status: TaskStatus = TaskStatus.RUNNING
    start_time: int = Field(default_factory=now_ms)
    end_time: Optional[int] = None
    workdir: str
    stdout: str = ""
    stderr: str = ""
    exit_code: Optional[int] = None
    result: Any = None
    error: Optional[str] = None

    @property
    def terminal(self) -> bool:
        return self.status is not TaskStatus.RUNNING

    def append_stdout(self, text: str) -> None:
        self.stdout += text

    def append_stderr(self, text: str) -> None:
        self.stderr += text

    def exited(self, exit_code: Optional[int], error: Optional[str] = None) -> None:
        # A missing exit code means the process was killed before it exited on its own.
        failed = exit_code != 0 or error is not None
        self._close(TaskStatus.FAILED if failed else TaskStatus.COMPLETED)
        self.exit_code = exit_code
        self.error = error
        self.result = parse_result(self.stdout)

    def spawn_failed(self, error: str) -> None:
        self._close(TaskStatus.FAILED)
        self.error = error

    def _close(self, status: TaskStatus) -> None:
        if self.terminal:
            raise InvalidTransition(f"Task {self.id} is already {self.status.value}")
        self.status = status
        self.end_time = now_ms()

    def summary(self) -> dict:
        return {
            "taskId": self.id,
            "status": self.status.value,
            "startTime": self.start_time,
            "elapsed": now_ms() - self.start_time,
        }

    def snapshot(self) -> dict:
        data = self.summary()
        if self.terminal:
            data["endTime"] = self.end_time
            data["exitCode"] = self.exit_code
            data["result"] = self.result
            if self.stderr:
                data["stderr"] = self.stderr
            if self.error:
                data["error"] = self.error
        return data
