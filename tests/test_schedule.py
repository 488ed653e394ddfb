from datetime import datetime, timedelta, timezone

import pytest

from controlplane.agents import AGENTS, compose_prompt, due_agents
from worker import celery_app as worker

MONDAY_9 = datetime(2024, 1, 1, 9, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "moment, expected",
    [
        (MONDAY_9, {"pentest", "kpi"}),
        (MONDAY_9 + timedelta(days=1), {"pentest"}),
        (MONDAY_9 + timedelta(hours=1), {"bughunter"}),
        (MONDAY_9 + timedelta(hours=2), {"datainsights"}),
        (MONDAY_9 + timedelta(hours=3), {"feedback"}),
        (MONDAY_9 + timedelta(days=4, hours=5), {"investor"}),
        (MONDAY_9 + timedelta(days=1, hours=2), set()),
        (MONDAY_9 - timedelta(hours=1), set()),
    ],
)
def test_due_agents(moment, expected):
    assert set(due_agents(moment)) == expected


def test_due_agents_uses_utc():
    paris = timezone(timedelta(hours=1))

    assert set(due_agents(datetime(2024, 1, 1, 10, tzinfo=paris))) == {"pentest", "kpi"}


def test_compose_prompt_is_deterministic():
    agent = AGENTS["pentest"]

    first = compose_prompt(agent, "https://example.com", None)
    assert first == compose_prompt(agent, "https://example.com", None)
    assert first.endswith(
        "Target URL: https://example.com\n"
        "Target Repo: Not configured\n"
        "\n"
        "Execute your analysis and provide a detailed report."
    )


def test_scheduled_tick_enqueues_without_waiting(monkeypatch):
    enqueued = []
    monkeypatch.setattr(worker.run_agent_job, "delay", lambda agent_id: enqueued.append(agent_id))

    fired = worker.scheduled_tick("2024-01-01T09:00:00+00:00")

    assert set(fired) == {"pentest", "kpi"}
    assert enqueued == fired


def test_beat_ticks_hourly():
    entry = worker.celery_app.conf.beat_schedule["agent-schedule"]

    assert entry["task"] == "scheduled_tick"
    assert entry["schedule"].minute == {0}
