import pytest

from sandbox.errors import InvalidTransition, TaskConflict, TaskNotFound
from sandbox.storage.schema import TaskRecord, TaskStatus, parse_result
from sandbox.storage.store import TaskStore


def test_exit_code_zero_completes():
    rec = TaskRecord(id="t1", workdir="/workspace")
    rec.append_stdout('{"result": ')
    rec.append_stdout('"ok"}')
    rec.exited(0)

    assert rec.status is TaskStatus.COMPLETED
    assert rec.result == {"result": "ok"}
    assert rec.end_time is not None


def test_terminal_record_never_reopens():
    rec = TaskRecord(id="t1", workdir="/workspace")
    rec.exited(1)

    with pytest.raises(InvalidTransition):
        rec.exited(0)
    with pytest.raises(InvalidTransition):
        rec.spawn_failed("late")
    assert rec.status is TaskStatus.FAILED
    assert rec.exit_code == 1


def test_killed_process_fails_even_with_clean_output():
    rec = TaskRecord(id="t1", workdir="/workspace")
    rec.exited(None, error="killed")

    assert rec.status is TaskStatus.FAILED
    assert rec.exit_code is None


@pytest.mark.parametrize(
    "stdout, expected",
    [
        ('{"result": "hello"}', {"result": "hello"}),
        ('"just a string"', "just a string"),
        ("not json", {"raw": "not json"}),
        ("", {"raw": ""}),
    ],
)
def test_parse_result(stdout, expected):
    assert parse_result(stdout) == expected


def test_snapshot_omits_terminal_fields_while_running():
    rec = TaskRecord(id="t1", workdir="/workspace")

    assert set(rec.snapshot()) == {"taskId", "status", "startTime", "elapsed"}


def test_store_collects_terminal_records_once():
    store = TaskStore()
    rec = TaskRecord(id="t1", workdir="/workspace")
    store.add(rec)

    assert store.collect("t1")["status"] == "running"
    assert "t1" in store

    rec.exited(0)
    assert store.collect("t1")["status"] == "completed"
    with pytest.raises(TaskNotFound):
        store.collect("t1")


def test_store_refuses_duplicate_ids():
    store = TaskStore()
    first = TaskRecord(id="t1", workdir="/a")
    store.add(first)

    with pytest.raises(TaskConflict):
        store.add(TaskRecord(id="t1", workdir="/b"))
    assert store.get("t1") is first
    assert len(store) == 1
