import os
import sqlite3
import threading
from typing import List, Protocol

from .errors import NotFoundError, StoreError
from .shared import log_msg
from .task import Task

TASK_COLUMNS = ("id", "date", "title", "comment", "repeat")
MAX_ROWID = 2**63 - 1


class TaskStore(Protocol):
    """What the task lifecycle needs from storage."""

    def insert(self, task: Task) -> str: ...

    def get_by_id(self, task_id: str) -> Task: ...

    def update(self, task: Task) -> None: ...

    def update_date(self, task_id: str, date_str: str) -> None: ...

    def delete(self, task_id: str) -> None: ...

    def list_ordered_by_date(self, limit: int) -> List[Task]: ...


def _row_id(task_id: str) -> int:
    """
    Map an external id onto a rowid. Ids that are not plain digits, or
    that exceed the sqlite integer range, cannot name a row.
    """
    s = task_id if isinstance(task_id, str) else ""
    if not (s.isascii() and s.isdigit()) or int(s) > MAX_ROWID:
        raise NotFoundError(context={"id": task_id})
    return int(s)


def _task_from_row(row) -> Task:
    data = dict(zip(TASK_COLUMNS, row))
    data["id"] = str(data["id"])
    return Task.model_validate(data)


class DatabaseManager:
    def __init__(self, db_path: str, reset: bool = False):
        self.db_path = str(db_path)

        if reset and os.path.exists(self.db_path):
            os.remove(self.db_path)

        # shared by the API worker threads; every statement runs under self.lock
        self.lock = threading.Lock()
        try:
            self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self.cursor = self.conn.cursor()
            self.setup_database()
        except sqlite3.Error as e:
            raise StoreError(
                f"cannot open database: {e}", {"db_path": self.db_path}
            ) from e

    def setup_database(self):
        """
        Create (if missing) the scheduler table and its date index.

        Dates are stored as YYYYMMDD text so that ORDER BY date is
        chronological.
        """
        self.cursor.execute("""
            CREATE TABLE IF NOT EXISTS scheduler (
                id       INTEGER PRIMARY KEY AUTOINCREMENT,
                date     CHAR(8)      NOT NULL,
                title    VARCHAR(128) NOT NULL,
                comment  TEXT,
                repeat   VARCHAR(128) NOT NULL
            )
        """)
        self.cursor.execute(
            "CREATE INDEX IF NOT EXISTS scheduler_date ON scheduler (date)"
        )
        self.conn.commit()

    def _execute(self, sql: str, params: tuple = (), fetch: bool = False):
        """
        Run one statement and commit. Returns the fetched rows when
        ``fetch`` is set, otherwise the cursor (for rowcount and lastrowid).
        """
        with self.lock:
            try:
                cur = self.conn.execute(sql, params)
                rows = cur.fetchall() if fetch else None
                self.conn.commit()
                return rows if fetch else cur
            except sqlite3.Error as e:
                self.conn.rollback()
                log_msg(f"sqlite error: {e}\n{sql.strip()} {params!r}")
                raise StoreError(str(e), {"sql": sql.strip()}) from e

    def insert(self, task: Task) -> str:
        cur = self._execute(
            "INSERT INTO scheduler (date, title, comment, repeat) VALUES (?, ?, ?, ?)",
            (task.date, task.title, task.comment, task.repeat),
        )
        return str(cur.lastrowid)

    def get_by_id(self, task_id: str) -> Task:
        rows = self._execute(
            "SELECT id, date, title, comment, repeat FROM scheduler WHERE id = ?",
            (_row_id(task_id),),
            fetch=True,
        )
        if not rows:
            raise NotFoundError(context={"id": task_id})
        return _task_from_row(rows[0])

    def update(self, task: Task) -> None:
        cur = self._execute(
            "UPDATE scheduler SET date = ?, title = ?, comment = ?, repeat = ? WHERE id = ?",
            (task.date, task.title, task.comment, task.repeat, _row_id(task.id)),
        )
        if cur.rowcount == 0:
            raise NotFoundError(context={"id": task.id})

    def update_date(self, task_id: str, date_str: str) -> None:
        cur = self._execute(
            "UPDATE scheduler SET date = ? WHERE id = ?",
            (date_str, _row_id(task_id)),
        )
        if cur.rowcount == 0:
            raise NotFoundError(context={"id": task_id})

    def delete(self, task_id: str) -> None:
        cur = self._execute(
            "DELETE FROM scheduler WHERE id = ?", (_row_id(task_id),)
        )
        if cur.rowcount == 0:
            raise NotFoundError(context={"id": task_id})

    def list_ordered_by_date(self, limit: int) -> List[Task]:
        rows = self._execute(
            """
            SELECT id, date, title, comment, repeat FROM scheduler
            ORDER BY date, id
            LIMIT ?
            """,
            (limit,),
            fetch=True,
        )
        return [_task_from_row(row) for row in rows]

    def close(self):
        with self.lock:
            self.conn.close()
