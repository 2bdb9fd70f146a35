from datetime import date, datetime, timedelta

import pytest

from datetime_utils import UTC
from models.task import (
    Daily,
    IntervalUnit,
    Recurrence,
    Scheduled,
    Subtask,
    Task,
    TaskDraft,
    TaskType,
)
from services import lifecycle


NOW = datetime(2024, 6, 10, 12, 0, tzinfo=UTC)


def _all_ids(tasks):
    for task in tasks:
        yield task.id
        for sub in task.subtasks:
            yield sub.id


def _recurring(repetitions: int, **kwargs) -> Task:
    return Task(
        id="r",
        title="Water plants",
        recurrence=Recurrence(interval=1, unit=IntervalUnit.DAYS, repetitions=repetitions),
        **kwargs,
    )


def test_create_appends_task_with_fresh_ids(ids):
    draft = TaskDraft(title="  Pack bags ", subtasks=["Shoes", "  ", "Socks"])
    tasks, task = lifecycle.create([], draft, id_factory=ids)
    assert tasks == [task]
    assert task.title == "Pack bags"
    assert [sub.title for sub in task.subtasks] == ["Shoes", "Socks"]
    assert not task.completed and task.completed_at is None
    assert isinstance(task.schedule, Daily)
    assert len(set(_all_ids(tasks))) == 3


def test_create_scheduled_combines_due_date_and_start_time(ids):
    draft = TaskDraft(
        title="Dentist",
        type=TaskType.SCHEDULED.value,
        due_date=date(2024, 5, 1),
        start_time="09:30",
    )
    _, task = lifecycle.create([], draft, id_factory=ids, tz=UTC)
    assert task.schedule == Scheduled(
        due_date=datetime(2024, 5, 1, 9, 30, tzinfo=UTC), start_time="09:30"
    )


def test_create_recurring_from_draft(ids):
    draft = TaskDraft(
        title="Stretch",
        is_recurring=True,
        recurring_interval="2",
        recurring_interval_unit="hours",
        repetitions=4,
    )
    _, task = lifecycle.create([], draft, id_factory=ids)
    assert task.recurrence == Recurrence(interval=2, unit=IntervalUnit.HOURS, repetitions=4)


def test_update_unknown_id_is_noop():
    tasks = [Task(id="a", title="A")]
    assert lifecycle.update(tasks, "missing", {"completed": True}, now=NOW) == tasks
    assert not lifecycle.update_task(tasks, "missing", {"title": "x"}, now=NOW).found


def test_update_does_not_mutate_input():
    original = [Task(id="a", title="A")]
    snapshot = list(original)
    lifecycle.update(original, "a", {"title": "B"}, now=NOW)
    assert original == snapshot


def test_update_ignores_unknown_fields():
    tasks = [Task(id="a", title="A")]
    result = lifecycle.update(tasks, "a", {"id": "hijack", "colour": "red"}, now=NOW)
    assert result == tasks


def test_completion_sets_and_clears_timestamp():
    tasks = [Task(id="a", title="A")]
    done = lifecycle.update(tasks, "a", {"completed": True}, now=NOW)
    assert done[0].completed and done[0].completed_at == NOW

    later = NOW + timedelta(hours=1)
    again = lifecycle.update(done, "a", {"title": "Renamed"}, now=later)
    assert again[0].completed_at == NOW

    undone = lifecycle.update(done, "a", {"completed": False}, now=later)
    assert not undone[0].completed and undone[0].completed_at is None


def test_completed_follows_subtasks():
    task = Task(id="a", title="A", subtasks=(Subtask("s1", "One"), Subtask("s2", "Two")))
    tasks = [task]

    first = lifecycle.set_subtask_completed(tasks, "a", "s1", True, now=NOW)
    assert not first.task.completed

    second = lifecycle.set_subtask_completed(first.tasks, "a", "s2", True, now=NOW)
    assert second.task.completed and second.task.completed_at == NOW

    reopened = lifecycle.set_subtask_completed(second.tasks, "a", "s1", False, now=NOW)
    assert not reopened.task.completed and reopened.task.completed_at is None


def test_direct_completion_cascades_to_subtasks():
    task = Task(id="a", title="A", subtasks=(Subtask("s1", "One"), Subtask("s2", "Two", True)))
    done = lifecycle.update([task], "a", {"completed": True}, now=NOW)[0]
    assert done.completed
    assert all(sub.completed for sub in done.subtasks)

    undone = lifecycle.update([done], "a", {"completed": False}, now=NOW)[0]
    assert not undone.completed
    assert not any(sub.completed for sub in undone.subtasks)


def test_completion_flag_cannot_contradict_sent_subtasks():
    task = Task(id="a", title="A", subtasks=(Subtask("s1", "One"),))
    result = lifecycle.update(
        [task], "a", {"completed": True, "subtasks": [Subtask("s1", "One", False)]}, now=NOW
    )
    assert not result[0].completed


def test_set_subtask_completed_unknown_subtask_is_noop():
    tasks = [Task(id="a", title="A", subtasks=(Subtask("s1", "One"),))]
    outcome = lifecycle.set_subtask_completed(tasks, "a", "nope", True, now=NOW)
    assert not outcome.found
    assert outcome.tasks == tasks


def test_recurring_completion_spawns_successor(ids):
    task = _recurring(3, subtasks=(Subtask("s1", "Balcony", True), Subtask("s2", "Kitchen")))
    outcome = lifecycle.update_task([task], "r", {"completed": True}, now=NOW, id_factory=ids)

    assert len(outcome.tasks) == 2
    completed, successor = outcome.tasks
    assert completed.completed and completed.recurrence.repetitions == 2
    assert successor is outcome.successor
    assert successor.title == task.title
    assert not successor.completed and successor.completed_at is None
    assert successor.recurrence.repetitions == 2
    assert [sub.title for sub in successor.subtasks] == ["Balcony", "Kitchen"]
    assert not any(sub.completed for sub in successor.subtasks)
    ids_seen = list(_all_ids(outcome.tasks))
    assert len(ids_seen) == len(set(ids_seen))


def test_last_repetition_does_not_spawn(ids):
    outcome = lifecycle.update_task(
        [_recurring(1)], "r", {"completed": True}, now=NOW, id_factory=ids
    )
    assert len(outcome.tasks) == 1
    assert outcome.successor is None
    assert outcome.task.recurrence.repetitions == 0


def test_exhausted_recurrence_never_spawns(ids):
    outcome = lifecycle.update_task(
        [_recurring(0)], "r", {"completed": True}, now=NOW, id_factory=ids
    )
    assert len(outcome.tasks) == 1
    assert outcome.task.recurrence.repetitions == 0


def test_recompleting_does_not_spawn_twice(ids):
    tasks = lifecycle.update([_recurring(3)], "r", {"completed": True}, now=NOW, id_factory=ids)
    again = lifecycle.update(tasks, "r", {"completed": True}, now=NOW, id_factory=ids)
    assert len(again) == 2
    assert again == tasks


def test_subtask_driven_completion_spawns(ids):
    task = _recurring(2, subtasks=(Subtask("s1", "Only"),))
    outcome = lifecycle.set_subtask_completed([task], "r", "s1", True, now=NOW, id_factory=ids)
    assert outcome.successor is not None
    assert outcome.successor.recurrence.repetitions == 1


def test_turning_recurrence_off_while_completing_does_not_spawn(ids):
    outcome = lifecycle.update_task(
        [_recurring(3)], "r", {"completed": True, "recurrence": None}, now=NOW, id_factory=ids
    )
    assert len(outcome.tasks) == 1
    assert outcome.task.recurrence is None


def test_delete_removes_task_and_ignores_unknown():
    tasks = [Task(id="a", title="A"), Task(id="b", title="B")]
    assert [t.id for t in lifecycle.delete(tasks, "a")] == ["b"]
    assert lifecycle.delete(tasks, "zzz") == tasks


@pytest.mark.parametrize("repetitions", [2, 3, 5])
def test_repeated_completion_spawns_until_exhausted(ids, repetitions):
    tasks = [_recurring(repetitions)]
    current = "r"
    while True:
        outcome = lifecycle.update_task(tasks, current, {"completed": True}, now=NOW, id_factory=ids)
        tasks = outcome.tasks
        if outcome.successor is None:
            break
        current = outcome.successor.id
    assert len(tasks) == repetitions
    assert all(task.completed for task in tasks)


def test_update_restores_missing_completion_timestamp():
    tasks = [Task(id="a", title="A", completed=True)]
    after = lifecycle.update(tasks, "a", {"title": "B"}, now=NOW)[0]
    assert after.completed
    assert after.completed_at == NOW
