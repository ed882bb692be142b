from __future__ import annotations

from datetime import date
from typing import List, Optional

from .errors import MissingIDError
from .model import TaskStore
from .nextdate import next_date, next_date_str
from .rules import parse_repeat
from .shared import fmt_date, log_msg, parse_date
from .task import Task
from .validate import resolve_date, validate_title

DEFAULT_LIMIT = 50


def _today(now: Optional[date]) -> date:
    return now if now is not None else date.today()


def _require_id(task_id: str) -> str:
    if not task_id:
        raise MissingIDError()
    return task_id


class Controller:
    """
    Task lifecycle: add, edit, complete, delete and list tasks held by a
    TaskStore.

    ``now`` defaults to the host's local date when omitted. The controller
    keeps no state besides the store handle; conflicting writes to the same
    task are left to the store, which reports a lost race as NotFoundError.
    """

    def __init__(self, store: TaskStore, limit: int = DEFAULT_LIMIT):
        self.store = store
        self.limit = limit

    def add_task(self, task: Task, now: Optional[date] = None) -> str:
        """
        Validate and store a new task, returning its id.

        A repeating task whose resolved date is not today is moved on one
        cycle, even when the requested date was itself a future occurrence.
        """
        now = _today(now)
        validate_title(task.title)

        if task.repeat == "":
            task_date = resolve_date(task.date, now)
        else:
            rule = parse_repeat(task.repeat)
            task_date = resolve_date(task.date, now)
            if task_date != now:
                task_date = next_date(now, task_date, rule)

        new_task = task.model_copy(update={"id": "", "date": fmt_date(task_date)})
        task_id = self.store.insert(new_task)
        log_msg(f"added task {task_id}: {new_task.title!r} on {new_task.date}")
        return task_id

    def edit_task(self, task: Task, now: Optional[date] = None) -> Task:
        """
        Replace the stored fields of an existing task and return what was
        written.

        A date in the past becomes today for a one-off task and the next
        occurrence after today for a repeating one.
        """
        now = _today(now)
        _require_id(task.id)
        validate_title(task.title)

        task_date = parse_date(task.date or fmt_date(now))
        rule = parse_repeat(task.repeat)
        if task_date < now:
            task_date = now if rule is None else next_date(now, task_date, rule)

        updated = task.model_copy(update={"date": fmt_date(task_date)})
        self.store.update(updated)
        log_msg(f"updated task {updated.id}: {updated.title!r} on {updated.date}")
        return updated

    def complete_task(self, task_id: str, now: Optional[date] = None) -> Optional[Task]:
        """
        Mark a task done.

        A one-off task is deleted and None returned; a repeating task moves
        to its next occurrence after ``now`` and the updated task is
        returned.
        """
        now = _today(now)
        _require_id(task_id)
        task = self.store.get_by_id(task_id)

        rule = parse_repeat(task.repeat)
        if rule is None:
            self.store.delete(task_id)
            log_msg(f"completed one-off task {task_id}, removed")
            return None

        new_date = fmt_date(next_date(now, parse_date(task.date), rule))
        self.store.update_date(task_id, new_date)
        log_msg(f"completed task {task_id}, next on {new_date}")
        return task.model_copy(update={"date": new_date})

    def delete_task(self, task_id: str) -> None:
        _require_id(task_id)
        self.store.delete(task_id)
        log_msg(f"deleted task {task_id}")

    def get_task(self, task_id: str) -> Task:
        _require_id(task_id)
        return self.store.get_by_id(task_id)

    def list_tasks(self, limit: Optional[int] = None) -> List[Task]:
        """Nearest tasks first."""
        return self.store.list_ordered_by_date(self.limit if limit is None else limit)

    def next_date(self, now: date, date_str: str, repeat: str) -> str:
        return next_date_str(now, date_str, repeat)
