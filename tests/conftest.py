import fnmatch
import shlex
import sys
from pathlib import Path

import pytest

from sandbox.services.executor import TaskExecutor

FAKE_AGENT = Path(__file__).resolve().parent / "fake_agent.py"
FAKE_AGENT_COMMAND = f"{shlex.quote(sys.executable)} {shlex.quote(str(FAKE_AGENT))}"


class FakeRedis:
    """The slice of the redis client the log store uses."""

    def __init__(self):
        self.data = {}
        self.expiry = {}

    def set(self, key, value, ex=None):
        self.data[key] = value
        self.expiry[key] = ex
        return True

    def get(self, key):
        return self.data.get(key)

    def scan_iter(self, match="*"):
        return iter([key for key in list(self.data) if fnmatch.fnmatchcase(key, match)])


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def workspace(tmp_path):
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def executor(workspace):
    return TaskExecutor(workspace=str(workspace), command=FAKE_AGENT_COMMAND)
