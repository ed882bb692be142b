"""
HTTP API for schedulr.

Routes mirror the task lifecycle:

    GET    /api/nextdate?now=&date=&repeat=   plain text YYYYMMDD
    GET    /api/tasks                         {"tasks": [...]}
    POST   /api/task                          {"id": "..."}
    GET    /api/task?id=                      task
    PUT    /api/task                          task as stored
    POST   /api/task/done?id=                 {}
    DELETE /api/task?id=                      {}

Everything else is served from the static web directory when it exists.
Errors come back as {"error": "..."} and never take the server down.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import date
from pathlib import Path
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from .controller import Controller
from .errors import ErrorKind, SchedulerError
from .shared import log_msg, parse_date
from .task import Task

STATUS_FOR_KIND = {
    ErrorKind.RULE_FORMAT: 400,
    ErrorKind.RULE_RANGE: 400,
    ErrorKind.DATE_FORMAT: 400,
    ErrorKind.EMPTY_TITLE: 400,
    ErrorKind.MISSING_ID: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.STORE: 500,
}


class Response(BaseModel):
    id: Optional[str] = None
    error: Optional[str] = None


class TaskList(BaseModel):
    tasks: List[Task] = []


def _error_response(err: SchedulerError) -> JSONResponse:
    status = STATUS_FOR_KIND.get(err.kind, 500)
    return JSONResponse(
        status_code=status,
        content=Response(error=err.message).model_dump(exclude_none=True),
    )


def create_app(controller: Controller, web_dir: Optional[Path] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log_msg("schedulr api starting")
        yield
        log_msg("schedulr api stopped")

    app = FastAPI(title="schedulr", lifespan=lifespan)
    app.state.controller = controller

    @app.exception_handler(SchedulerError)
    async def scheduler_error_handler(request: Request, exc: SchedulerError):
        if exc.kind is ErrorKind.STORE:
            log_msg(f"{request.method} {request.url.path}: {exc!r}")
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        messages = "; ".join(
            f"{'.'.join(str(p) for p in e.get('loc', ()))}: {e.get('msg', '')}"
            for e in exc.errors()
        )
        return JSONResponse(
            status_code=400,
            content=Response(error=f"invalid request: {messages}").model_dump(
                exclude_none=True
            ),
        )

    @app.get("/api/nextdate", response_class=PlainTextResponse)
    def get_next_date(now: str = "", date: str = "", repeat: str = ""):
        try:
            today = parse_date(now) if now else _local_today()
            return controller.next_date(today, date, repeat)
        except SchedulerError as e:
            return PlainTextResponse(e.message, status_code=400)

    @app.get("/api/tasks", response_model=TaskList)
    def get_tasks():
        return TaskList(tasks=controller.list_tasks())

    @app.post(
        "/api/task",
        status_code=201,
        response_model=Response,
        response_model_exclude_none=True,
    )
    def add_task(task: Task):
        return Response(id=controller.add_task(task))

    @app.get("/api/task", response_model=Task)
    def get_task(id: str = ""):
        return controller.get_task(id)

    @app.put("/api/task", response_model=Task)
    def update_task(task: Task):
        return controller.edit_task(task)

    @app.post("/api/task/done")
    def task_done(id: str = ""):
        controller.complete_task(id)
        return {}

    @app.delete("/api/task")
    def delete_task(id: str = ""):
        controller.delete_task(id)
        return {}

    if web_dir is not None and Path(web_dir).is_dir():
        app.mount("/", StaticFiles(directory=str(web_dir), html=True), name="web")

    return app


def _local_today() -> date:
    return date.today()
