from functools import lru_cache

from .services.executor import TaskExecutor


@lru_cache(maxsize=1)
def get_executor() -> TaskExecutor:
    return TaskExecutor()
