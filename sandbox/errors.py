class ExecutorError(Exception):
    """Base for failures the executor reports back over HTTP."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ExecutorError):
    status_code = 400


class TaskNotFound(ExecutorError):
    status_code = 404

    def __init__(self, task_id: str):
        super().__init__("Task not found")
        self.task_id = task_id


class TaskConflict(ExecutorError):
    status_code = 409

    def __init__(self, task_id: str):
        super().__init__(f"Task {task_id} is already registered and has not been collected")
        self.task_id = task_id


class SpawnError(ExecutorError):
    status_code = 500


class InvalidTransition(RuntimeError):
    """Raised when a terminal task record is asked to change state again."""
