"""
Shared pytest fixtures for schedulr tests.

This module provides common fixtures used across all test files, including:
- Time freezing utilities
- An isolated schedulr home for every test
- Database and controller fixtures
- A recording store for tests that must prove the store was not touched
"""

import pytest
from datetime import date
from freezegun import freeze_time

from schedulr.controller import Controller
from schedulr.errors import NotFoundError
from schedulr.model import DatabaseManager
from schedulr.schedulr_env import SchedulrEnvironment
from schedulr.task import Task


NOW = date(2024, 1, 10)  # a Wednesday


@pytest.fixture(autouse=True)
def schedulr_home(tmp_path, monkeypatch):
    """
    Point SCHEDULR_HOME at a per-test directory so config files and logs
    never land in the real home, and clear the port/db overrides.
    """
    home = tmp_path / "schedulr-home"
    monkeypatch.setenv("SCHEDULR_HOME", str(home))
    monkeypatch.delenv("TODO_PORT", raising=False)
    monkeypatch.delenv("TODO_DBFILE", raising=False)
    return home


@pytest.fixture
def frozen_time():
    """
    Freezes time to 2024-01-10 12:00:00 for the duration of the test.

    Usage:
        def test_something(frozen_time):
            assert date.today() == date(2024, 1, 10)
    """
    with freeze_time("2024-01-10 12:00:00") as frozen:
        yield frozen


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def test_env():
    """
    Provides a SchedulrEnvironment rooted in the per-test home.
    """
    env = SchedulrEnvironment()
    env.ensure(init_config=True)
    return env


@pytest.fixture
def temp_db_path(tmp_path):
    """
    Provides a temporary database path that will be cleaned up after the test.
    """
    return tmp_path / "test_scheduler.db"


@pytest.fixture
def test_store(temp_db_path):
    dbm = DatabaseManager(str(temp_db_path), reset=True)
    yield dbm
    dbm.close()


@pytest.fixture
def test_controller(test_store):
    """
    Provides a Controller over a fresh test database.
    """
    return Controller(test_store)


@pytest.fixture
def task_factory():
    """
    Provides a factory for Task values.

    Usage:
        def test_something(task_factory):
            task = task_factory(title="call mom", repeat="d 7")
    """

    def _create(**fields) -> Task:
        fields.setdefault("title", "task")
        return Task(**fields)

    return _create


class RecordingStore:
    """
    In-memory TaskStore that records every call made to it.
    """

    def __init__(self):
        self.calls = []
        self.tasks = {}
        self.next_id = 1

    def insert(self, task):
        self.calls.append(("insert", task))
        task_id = str(self.next_id)
        self.next_id += 1
        self.tasks[task_id] = task.model_copy(update={"id": task_id})
        return task_id

    def get_by_id(self, task_id):
        self.calls.append(("get_by_id", task_id))
        if task_id not in self.tasks:
            raise NotFoundError(context={"id": task_id})
        return self.tasks[task_id]

    def update(self, task):
        self.calls.append(("update", task))
        if task.id not in self.tasks:
            raise NotFoundError(context={"id": task.id})
        self.tasks[task.id] = task

    def update_date(self, task_id, date_str):
        self.calls.append(("update_date", task_id, date_str))
        if task_id not in self.tasks:
            raise NotFoundError(context={"id": task_id})
        self.tasks[task_id] = self.tasks[task_id].model_copy(update={"date": date_str})

    def delete(self, task_id):
        self.calls.append(("delete", task_id))
        if self.tasks.pop(task_id, None) is None:
            raise NotFoundError(context={"id": task_id})

    def list_ordered_by_date(self, limit):
        self.calls.append(("list_ordered_by_date", limit))
        return sorted(self.tasks.values(), key=lambda t: (t.date, int(t.id)))[:limit]


@pytest.fixture
def recording_store():
    return RecordingStore()
