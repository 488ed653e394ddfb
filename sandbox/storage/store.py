from typing import Dict, List, Optional

from ..errors import TaskConflict, TaskNotFound
from .schema import TaskRecord


class TaskStore:
    """Volatile task table. Records live only until their terminal status is collected."""

    def __init__(self):
        self._records: Dict[str, TaskRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, task_id: str) -> bool:
        return task_id in self._records

    def add(self, rec: TaskRecord):
        if rec.id in self._records:
            raise TaskConflict(rec.id)
        self._records[rec.id] = rec

    def get(self, task_id: str) -> Optional[TaskRecord]:
        return self._records.get(task_id)

    def require(self, task_id: str) -> TaskRecord:
        rec = self._records.get(task_id)
        if rec is None:
            raise TaskNotFound(task_id)
        return rec

    def collect(self, task_id: str) -> dict:
        """Snapshot a record, retiring it when the snapshot is terminal."""
        rec = self.require(task_id)
        snapshot = rec.snapshot()
        if rec.terminal:
            del self._records[task_id]
        return snapshot

    def all(self) -> List[TaskRecord]:
        return list(self._records.values())
