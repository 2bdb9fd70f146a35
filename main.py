# taskflow/main.py
"""Command-line front end for TaskFlow."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from core.errors import ImportFormatError, StoreError, ValidationError
from core.log import get_logger, setup_logging
from helpers.datetime_utils import parse_date_input
from models.task import Task, TaskDraft, TaskType
from services import views
from services.tasks import TaskService
from storage.config import load_config, update_config
from storage.db import init_db
from storage.task_store import TaskStore


logger = get_logger(__name__)


def build_service() -> TaskService:
    init_db()
    service = TaskService(TaskStore())
    service.backup_if_needed()
    return service


def _resolve_id(service: TaskService, prefix: str) -> Optional[str]:
    """Accept a full id or any unique prefix of one."""
    if service.get(prefix) is not None:
        return prefix
    candidates = [task.id for task in service.tasks if task.id.startswith(prefix)]
    return candidates[0] if len(candidates) == 1 else None


def _format_task(task: Task) -> str:
    mark = "x" if task.completed else " "
    parts = [f"[{mark}] {task.id[:8]}  {task.title}"]
    if task.due_date is not None:
        parts.append(f"due {task.due_date.astimezone():%Y-%m-%d %H:%M}")
    if views.is_overdue(task):
        parts.append("OVERDUE")
    if task.subtasks:
        done, total = views.subtask_counts(task)
        parts.append(f"{done}/{total} subtasks ({views.progress(task):.0f}%)")
    if task.recurrence is not None:
        rec = task.recurrence
        parts.append(f"every {rec.interval} {rec.unit.value}, {rec.repetitions} left")
    lines = ["  ".join(parts)]
    for sub in task.subtasks:
        sub_mark = "x" if sub.completed else " "
        lines.append(f"      [{sub_mark}] {sub.id[:8]}  {sub.title}")
    return "\n".join(lines)


def _cmd_add(service: TaskService, args: argparse.Namespace) -> int:
    due = parse_date_input(args.due) if args.due else None
    if args.due and due is None:
        print(f"Unrecognised date: {args.due}", file=sys.stderr)
        return 2
    draft = TaskDraft(
        title=args.title,
        type=TaskType.SCHEDULED.value if args.due else TaskType.DAILY.value,
        description=args.description,
        due_date=due,
        start_time=args.time,
        image_url=args.image,
        is_recurring=args.repeat is not None,
        recurring_interval=args.every if args.repeat is not None else None,
        recurring_interval_unit=args.unit if args.repeat is not None else None,
        repetitions=args.repeat,
    )
    for title in args.subtask or []:
        draft.add_subtask(title)
    task = service.add(draft)
    print(f"Task added: {task.id}")
    return 0


def _cmd_list(service: TaskService, args: argparse.Namespace) -> int:
    status = views.StatusFilter.parse(args.filter or load_config().status_filter)
    if args.filter:
        update_config(status_filter=status.value)
    tasks = service.visible(status)
    if not tasks:
        print(f"No {status.value} tasks.")
        return 0
    for task in tasks:
        print(_format_task(task))
    return 0


def _cmd_complete(service: TaskService, args: argparse.Namespace, completed: bool) -> int:
    task_id = _resolve_id(service, args.id)
    if task_id is None:
        print(f"No task matches {args.id}", file=sys.stderr)
        return 1
    before = len(service.tasks)
    service.set_completed(task_id, completed)
    if len(service.tasks) > before:
        print("Next occurrence added.")
    return 0


def _cmd_check(service: TaskService, args: argparse.Namespace) -> int:
    task_id = _resolve_id(service, args.id)
    task = service.get(task_id) if task_id else None
    if task is None:
        print(f"No task matches {args.id}", file=sys.stderr)
        return 1
    matches = [sub.id for sub in task.subtasks if sub.id.startswith(args.subtask_id)]
    if len(matches) != 1:
        print(f"No subtask matches {args.subtask_id}", file=sys.stderr)
        return 1
    service.set_subtask_completed(task.id, matches[0], not args.undo)
    return 0


def _cmd_delete(service: TaskService, args: argparse.Namespace) -> int:
    task_id = _resolve_id(service, args.id)
    if task_id is None or not service.delete(task_id):
        print(f"No task matches {args.id}", file=sys.stderr)
        return 1
    print("Task deleted.")
    return 0


def _cmd_export(service: TaskService, args: argparse.Namespace) -> int:
    target = args.path or load_config().export_dir
    path = service.export_to(target)
    print(f"Exported {len(service.tasks)} tasks to {path}")
    return 0


def _cmd_import(service: TaskService, args: argparse.Namespace) -> int:
    try:
        count = service.import_file(args.path)
    except ImportFormatError as exc:
        print(f"Import failed: {exc}", file=sys.stderr)
        return 1
    print(f"Imported {count} tasks.")
    return 0


def _cmd_stats(service: TaskService, args: argparse.Namespace) -> int:
    stats = service.analytics()
    print(f"Total tasks:     {stats.total}")
    print(f"Completed tasks: {stats.completed}")
    print(f"Completion rate: {stats.completion_rate_display}")
    print(f"Last {len(stats.days)} days:")
    for bucket in stats.days:
        print(f"  {bucket.short_label} {bucket.label:>6}  {'#' * bucket.completed} {bucket.completed}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="taskflow", description=__doc__ or "")
    parser.add_argument("--log", type=Path, default=None, help="Log file (default: data dir)")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Create a task")
    add.add_argument("title")
    add.add_argument("-d", "--description")
    add.add_argument("--due", help="Due date (YYYY-MM-DD or DD.MM.YYYY); makes the task scheduled")
    add.add_argument("--time", help="Start time HH:MM for scheduled tasks")
    add.add_argument("--image", help="Image URL or data URI")
    add.add_argument("-s", "--subtask", action="append", help="Subtask title (repeatable)")
    add.add_argument("--repeat", type=int, help="Number of repetitions")
    add.add_argument("--every", type=int, help="Recurrence interval")
    add.add_argument("--unit", choices=["minutes", "hours", "days"])

    lst = sub.add_parser("list", help="Show tasks")
    lst.add_argument("-f", "--filter", choices=[s.value for s in views.StatusFilter])

    done = sub.add_parser("done", help="Mark a task completed")
    done.add_argument("id")
    undo = sub.add_parser("undo", help="Mark a task not completed")
    undo.add_argument("id")

    check = sub.add_parser("check", help="Tick a subtask")
    check.add_argument("id")
    check.add_argument("subtask_id")
    check.add_argument("--undo", action="store_true", help="Untick instead")

    delete = sub.add_parser("delete", help="Delete a task")
    delete.add_argument("id")

    export = sub.add_parser("export", help="Write task-progress.json")
    export.add_argument("path", nargs="?")
    imp = sub.add_parser("import", help="Replace all tasks from a JSON export")
    imp.add_argument("path")

    sub.add_parser("stats", help="Completion analytics")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log)

    handlers = {
        "add": _cmd_add,
        "list": _cmd_list,
        "done": lambda s, a: _cmd_complete(s, a, True),
        "undo": lambda s, a: _cmd_complete(s, a, False),
        "check": _cmd_check,
        "delete": _cmd_delete,
        "export": _cmd_export,
        "import": _cmd_import,
        "stats": _cmd_stats,
    }
    try:
        service = build_service()
        return handlers[args.command](service, args)
    except ValidationError as exc:
        for field, message in exc.errors.items():
            print(f"{field}: {message}", file=sys.stderr)
        return 2
    except StoreError as exc:
        logger.exception("Storage failure")
        print(f"Storage error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
