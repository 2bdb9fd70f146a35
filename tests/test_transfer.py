import json
from datetime import datetime

import pytest

from core.errors import ImportFormatError
from datetime_utils import UTC, utc_now
from models.task import IntervalUnit, Recurrence, Scheduled, Subtask, Task
from storage import migrations
from storage.transfer import (
    deserialize_tasks,
    export_path,
    read_import_file,
    serialize_tasks,
    write_export_file,
)


def _rich_task() -> Task:
    return Task(
        id="t1",
        title="Plan trip",
        description="Summer holiday",
        schedule=Scheduled(due_date=datetime(2024, 7, 1, 8, 15, 30, 250000, tzinfo=UTC), start_time="08:15"),
        image_url="data:image/png;base64,AAAA",
        completed=True,
        completed_at=datetime(2024, 6, 30, 18, 5, 1, 123456, tzinfo=UTC),
        subtasks=(Subtask("s1", "Book hotel", True), Subtask("s2", "Pack", True)),
        recurrence=Recurrence(interval=3, unit=IntervalUnit.DAYS, repetitions=2),
    )


def test_round_trip_preserves_tasks():
    tasks = [_rich_task(), Task(id="t2", title="Daily walk")]
    assert deserialize_tasks(serialize_tasks(tasks)) == tasks


def test_record_shape_uses_camel_case_and_omits_absent_fields():
    records = json.loads(serialize_tasks([_rich_task(), Task(id="t2", title="Walk")]))
    rich, plain = records
    assert rich["dueDate"] == "2024-07-01T08:15:30.250000Z"
    assert rich["completedAt"] == "2024-06-30T18:05:01.123456Z"
    assert rich["isRecurring"] is True
    assert rich["recurringIntervalUnit"] == "days"
    assert plain == {
        "id": "t2",
        "title": "Walk",
        "type": "daily",
        "completed": False,
        "subtasks": [],
        "isRecurring": False,
    }


def test_import_accepts_browser_export():
    payload = json.dumps(
        [
            {
                "id": "a",
                "title": "Call mum",
                "type": "scheduled",
                "dueDate": "2024-05-01T09:30:00.000Z",
                "completed": True,
                "completedAt": "2024-05-02T10:00:00.000Z",
                "subtasks": [],
                "isRecurring": False,
            }
        ]
    )
    (task,) = deserialize_tasks(payload)
    assert task.due_date == datetime(2024, 5, 1, 9, 30, tzinfo=UTC)
    assert task.completed_at == datetime(2024, 5, 2, 10, 0, tzinfo=UTC)


def test_import_fills_defaults_for_minimal_records():
    (task,) = deserialize_tasks('[{"id": "a", "title": "Bare"}]')
    assert task.type.value == "daily"
    assert not task.completed
    assert task.subtasks == ()
    assert task.recurrence is None


def test_completed_without_timestamp_gets_stamped():
    before = utc_now()
    (task,) = deserialize_tasks('[{"id": "a", "title": "Done", "completed": true}]')
    assert task.completed
    assert task.completed_at is not None and task.completed_at >= before


def test_completion_follows_subtasks_on_import():
    payload = json.dumps(
        [
            {
                "id": "open",
                "title": "Flag says done",
                "completed": True,
                "completedAt": "2024-05-02T10:00:00Z",
                "subtasks": [{"id": "s1", "title": "Pending", "completed": False}],
            },
            {
                "id": "done",
                "title": "Flag says open",
                "subtasks": [{"id": "s2", "title": "Finished", "completed": True}],
            },
        ]
    )
    still_open, finished = deserialize_tasks(payload)
    assert not still_open.completed and still_open.completed_at is None
    assert finished.completed and finished.completed_at is not None


@pytest.mark.parametrize(
    "payload, message",
    [
        ("{not json", "Invalid JSON"),
        ('{"id": "a"}', "Expected a JSON array"),
        ('["a"]', "Item 0 is not an object"),
        ('[{"id": "a"}]', "missing title"),
        ('[{"id": "a", "title": "x", "type": "scheduled"}]', "no dueDate"),
        ('[{"id": "a", "title": "x", "completed": true, "completedAt": "later"}]', "completedAt"),
        ('[{"id": "a", "title": "x", "isRecurring": true, "repetitions": 2}]', "recurringInterval"),
        ('[{"id": "a", "title": "x", "type": "weekly"}]', "unknown type"),
        ('[{"id": "a", "title": "x"}, {"id": "a", "title": "y"}]', "Duplicate id"),
        ('[{"id": "a", "title": null}]', "title must be non-empty text"),
        ('[{"id": "a", "title": "   "}]', "title must be non-empty text"),
        ('[{"id": 7, "title": "x"}]', "id must be non-empty text"),
        ('[{"id": "a", "title": "x", "completed": "false"}]', "completed must be true or false"),
        ('[{"id": "a", "title": "x", "isRecurring": "no"}]', "isRecurring must be true or false"),
        ('[{"id": "a", "title": "x", "subtasks": [{"id": "s", "completed": false}]}]', "Subtask s: title"),
        ('[{"id": "a", "title": "x", "subtasks": [{"id": "s", "title": "y", "completed": 1}]}]', "Subtask s: completed"),
    ],
)
def test_import_rejects_malformed_documents(payload, message):
    with pytest.raises(ImportFormatError) as excinfo:
        deserialize_tasks(payload)
    assert message in str(excinfo.value)


def test_migrations_upgrade_legacy_subtasks():
    record = migrations.upgrade_record(
        {
            "id": "a",
            "title": "Legacy",
            "description": None,
            "subtasks": ["First", {"title": "Second", "completed": True}, 42],
            "repetitions": 3,
            "completedAt": "2024-01-01T00:00:00Z",
        }
    )
    assert "description" not in record
    assert [sub["title"] for sub in record["subtasks"]] == ["First", "Second"]
    assert all(sub["id"] for sub in record["subtasks"])
    assert record["subtasks"][0]["completed"] is False
    assert record["isRecurring"] is False
    assert "repetitions" not in record
    assert "completedAt" not in record


def test_migrations_do_not_touch_input():
    raw = {"id": "a", "title": "x", "subtasks": ["one"]}
    migrations.run_all([raw])
    assert raw == {"id": "a", "title": "x", "subtasks": ["one"]}


def test_export_path_resolution(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert export_path() == tmp_path / "task-progress.json"
    assert export_path(tmp_path) == tmp_path / "task-progress.json"
    assert export_path(tmp_path / "mine.json") == tmp_path / "mine.json"


def test_export_file_round_trips_through_import(tmp_path):
    tasks = [_rich_task()]
    path = write_export_file(tasks, tmp_path / "out" / "tasks.json")
    assert path.exists()
    assert not path.with_suffix(".json.tmp").exists()
    assert read_import_file(path) == tasks


def test_read_import_file_missing(tmp_path):
    with pytest.raises(ImportFormatError):
        read_import_file(tmp_path / "nope.json")
