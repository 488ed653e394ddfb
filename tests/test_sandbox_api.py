import runpy
import sys
import time

import pytest
from fastapi.testclient import TestClient

from sandbox.deps import get_executor
from sandbox.main import app

from conftest import FAKE_AGENT_COMMAND


@pytest.fixture
def client(workspace, monkeypatch):
    monkeypatch.setattr("sandbox.config.settings.workspace", str(workspace))
    monkeypatch.setattr("sandbox.config.settings.agent_command", FAKE_AGENT_COMMAND)
    get_executor.cache_clear()
    with TestClient(app) as client:
        yield client
    get_executor.cache_clear()


def wait_for_terminal(client, task_id, timeout=10.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        body = client.get(f"/status/{task_id}").json()
        if body["status"] != "running":
            return body
        time.sleep(0.05)
    raise AssertionError(f"{task_id} still running after {timeout}s")


def test_run_then_poll_until_completed(client):
    r = client.post("/run", json={"prompt": "echo hello"})

    assert r.status_code == 202
    task_id = r.json()["taskId"]
    assert r.json()["status"] == "running"

    done = wait_for_terminal(client, task_id)
    assert done["status"] == "completed"
    assert done["result"] == {"result": "hello"}
    assert client.get(f"/status/{task_id}").status_code == 404


def test_empty_prompt_is_a_bad_request(client):
    r = client.post("/run", json={"prompt": ""})

    assert r.status_code == 400
    assert r.json() == {"error": "prompt required"}
    assert client.get("/tasks").json() == {"tasks": []}


def test_malformed_body_is_a_bad_request(client):
    r = client.post("/run", content=b"{not json", headers={"Content-Type": "application/json"})

    assert r.status_code == 400
    assert "error" in r.json()


def test_agent_id_is_task_id_and_cannot_be_reused_while_running(client):
    first = client.post("/run", json={"prompt": "sleep 30", "agentId": "pentest"})
    assert first.status_code == 202
    assert first.json()["taskId"] == "pentest"

    second = client.post("/run", json={"prompt": "echo hello", "agentId": "pentest"})
    assert second.status_code == 409

    tasks = client.get("/tasks").json()["tasks"]
    assert [t["taskId"] for t in tasks] == ["pentest"]

    cancelled = client.post("/cancel/pentest")
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "failed"
    assert client.get("/status/pentest").status_code == 404


def test_unknown_task_status(client):
    r = client.get("/status/nope")

    assert r.status_code == 404
    assert r.json() == {"error": "Task not found"}


def test_run_sync(client, workspace):
    r = client.post("/run-sync", json={"prompt": "echo hello", "workdir": "sync"})

    assert r.status_code == 200
    body = r.json()
    assert body["exitCode"] == 0
    assert body["result"] == {"result": "hello"}
    assert body["workdir"] == str((workspace / "sync").resolve())
    assert "stderr" not in body


def test_run_sync_spawn_failure(client, monkeypatch):
    monkeypatch.setattr("sandbox.config.settings.agent_command", "/nonexistent/agent-cli")
    get_executor.cache_clear()

    r = client.post("/run-sync", json={"prompt": "echo hello"})

    assert r.status_code == 500
    assert "error" in r.json()


@pytest.mark.parametrize("path", ["/health", "/ping"])
def test_health(client, workspace, path):
    r = client.get(path)

    assert r.status_code == 200
    assert r.json() == {"status": "ok", "workspace": str(workspace.resolve()), "tasks": 0}


def test_files_and_read(client, workspace):
    (workspace / "reports").mkdir()
    (workspace / "reports" / "summary.md").write_text("all good", encoding="utf-8")

    listing = client.get("/files", params={"dir": "reports"}).json()
    assert listing["files"] == [{"name": "summary.md", "type": "file"}]

    content = client.get("/read", params={"file": "reports/summary.md"}).json()
    assert content["content"] == "all good"

    assert client.get("/read", params={"file": "reports/missing.md"}).status_code == 404
    assert client.get("/read").status_code == 400
    assert client.get("/read", params={"file": "../../etc/passwd"}).status_code == 400


def test_module_entry_point_starts_server(monkeypatch):
    started = []
    monkeypatch.setattr("sandbox.main.run", lambda: started.append("sandbox"))
    monkeypatch.delitem(sys.modules, "sandbox.__main__", raising=False)

    runpy.run_module("sandbox", run_name="__main__")

    assert started == ["sandbox"]
