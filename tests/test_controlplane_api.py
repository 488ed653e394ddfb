import runpy
import sys

import httpx
import pytest
from fastapi.testclient import TestClient

from controlplane.deps import get_orchestrator
from controlplane.main import app
from controlplane.services.notifier import SlackNotifier
from controlplane.services.orchestrator import Orchestrator
from controlplane.services.sandbox_client import ExecutionUnits
from controlplane.storage.log_store import LogStore


def sandbox(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/run":
        return httpx.Response(202, json={"taskId": "kpi", "status": "running"})
    if path.startswith("/status/"):
        return httpx.Response(200, json={"taskId": "kpi", "status": "completed", "result": {"result": "all green"}})
    raise httpx.ConnectError("Connection refused", request=request)


@pytest.fixture
def client(fake_redis, monkeypatch):
    monkeypatch.setattr("controlplane.config.settings.api_token", None)
    monkeypatch.setattr("controlplane.config.settings.target_url", None)
    monkeypatch.setattr("controlplane.config.settings.target_repo", "https://github.com/example/app")
    monkeypatch.setattr("controlplane.config.settings.slack_webhook_url", None)

    async def no_sleep(seconds):
        return None

    orchestrator = Orchestrator(
        units=ExecutionUnits(transport=httpx.MockTransport(sandbox)),
        log_store=LogStore(fake_redis),
        notifier=SlackNotifier(webhook_url=""),
        sleep=no_sleep,
    )
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_list_agents(client):
    agents = client.get("/api/agents").json()

    assert {"id": "kpi", "name": "KPI Analyzer"} in agents
    assert [a["id"] for a in agents] == ["pentest", "bughunter", "datainsights", "feedback", "investor", "kpi"]


def test_health_echoes_configuration(client):
    assert client.get("/api/health").json() == {
        "status": "ok",
        "targetUrl": "not set",
        "targetRepo": "https://github.com/example/app",
        "slackConfigured": False,
    }


def test_run_then_read_logs(client):
    assert client.get("/api/agents/kpi/logs").json() == {"logs": "No logs found"}

    r = client.post("/api/agents/kpi/run")
    assert r.json() == {"success": True, "output": "all green"}

    logs = client.get("/api/agents/kpi/logs").json()["logs"]
    assert "✅ Duration:" in logs
    assert logs.endswith("\nall green")


def test_unknown_agent_is_an_envelope_not_an_error(client):
    r = client.post("/api/agents/nope/run")

    assert r.status_code == 200
    assert r.json() == {"success": False, "error": "Unknown agent: nope"}


def test_warm_during_cold_start(client):
    assert client.post("/api/agents/kpi/warm").json() == {"status": "warming", "message": "Container starting..."}


def test_token_guards_run_and_warm(client, monkeypatch):
    monkeypatch.setattr("controlplane.config.settings.api_token", "secret")

    denied = client.post("/api/agents/kpi/run")
    assert denied.status_code == 401
    assert denied.json() == {"success": False, "error": "Unauthorized"}
    assert client.post("/api/agents/kpi/warm").status_code == 401

    allowed = client.post("/api/agents/kpi/run", headers={"X-API-Token": "secret"})
    assert allowed.json()["success"] is True
    assert client.get("/api/agents").status_code == 200


def test_token_guards_logs(client, monkeypatch):
    monkeypatch.setattr("controlplane.config.settings.api_token", "secret")

    denied = client.get("/api/agents/kpi/logs")
    assert denied.status_code == 401
    assert denied.json() == {"success": False, "error": "Unauthorized"}

    allowed = client.get("/api/agents/kpi/logs", headers={"X-API-Token": "secret"})
    assert allowed.status_code == 200
    assert allowed.json() == {"logs": "No logs found"}


def test_module_entry_point_starts_server(monkeypatch):
    started = []
    monkeypatch.setattr("controlplane.main.run", lambda: started.append("controlplane"))
    monkeypatch.delitem(sys.modules, "controlplane.__main__", raising=False)

    runpy.run_module("controlplane", run_name="__main__")

    assert started == ["controlplane"]


def test_unmatched_api_route(client):
    r = client.get("/api/nothing")

    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "Not found"}
