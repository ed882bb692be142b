import sys
import os
import click
from rich import print
from rich.markup import escape
from rich.console import Console
from rich.table import Table
from typing import Optional

from schedulr.controller import Controller
from schedulr.errors import SchedulerError
from schedulr.model import DatabaseManager
from schedulr.nextdate import next_date_str
from schedulr.rules import parse_repeat
from schedulr.schedulr_env import SchedulrEnvironment
from schedulr.shared import TODAY, log_msg, parse_date
from schedulr.task import Task
from schedulr.versioning import get_version

from datetime import date


class _DateParam(click.ParamType):
    """YYYYMMDD or 'today'; converted to a date."""

    name = "date"

    def convert(self, value, param, ctx):
        if value is None:
            return None
        if isinstance(value, date):
            return value
        s = str(value).strip().lower()
        if s == TODAY:
            return date.today()
        try:
            return parse_date(s)
        except SchedulerError:
            self.fail("Expected YYYYMMDD or 'today'", param, ctx)


_DATE = _DateParam()

VERSION = get_version()


def _fail(err: SchedulerError, verbose: bool = False):
    print(f"[red]✘ {escape(err.message)}[/red]")
    if verbose and err.context:
        print(f"[blue]context:[/blue] {err.context}")
    sys.exit(1)


def _open_controller(ctx) -> Controller:
    env = ctx.obj["ENV"]
    dbm = DatabaseManager(str(env.db_path))
    ctx.call_on_close(dbm.close)
    return Controller(dbm, limit=env.config.tasks.limit)


def _describe_repeat(repeat: str) -> str:
    if not repeat:
        return ""
    try:
        return parse_repeat(repeat).to_repeat()
    except SchedulerError:
        return f"{repeat} (invalid)"


@click.group()
@click.version_option(VERSION, prog_name="schedulr", message="%(prog)s version %(version)s")
@click.option(
    "--home",
    help="Override the schedulr workspace directory (equivalent to setting $SCHEDULR_HOME).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx, home, verbose):
    """schedulr CLI – schedule one-off and repeating tasks."""
    if home:
        os.environ["SCHEDULR_HOME"] = (
            home  # Must be set before SchedulrEnvironment is instantiated
        )

    ctx.ensure_object(dict)
    env = SchedulrEnvironment()
    env.ensure(init_config=True)
    config = env.load_config()

    ctx.obj["ENV"] = env
    ctx.obj["CONFIG"] = config
    ctx.obj["VERBOSE"] = verbose


@cli.command()
@click.option("--host", default=None, help="Interface to bind (default from config).")
@click.option("--port", type=int, default=None, help="Port (default $TODO_PORT or config).")
@click.pass_context
def serve(ctx, host, port):
    """Run the HTTP API and the web front end."""
    import uvicorn
    from schedulr.api import create_app

    env = ctx.obj["ENV"]
    config = ctx.obj["CONFIG"]
    host = host or config.server.host
    port = port or env.port

    dbm = DatabaseManager(str(env.db_path))
    controller = Controller(dbm, limit=config.tasks.limit)
    app = create_app(controller, env.web_dir)

    print(f"[blue]➤ Serving on {host}:{port}[/blue] (database {env.db_path})")
    log_msg(f"starting web server on port {port}, database {env.db_path}")
    try:
        uvicorn.run(app, host=host, port=port)
    finally:
        dbm.close()
        log_msg("web server closed")


@cli.command()
@click.argument("title", nargs=-1, required=True)
@click.option("--date", "-d", "date_str", default="", help="YYYYMMDD or 'today'.")
@click.option("--comment", "-c", default="", help="Free text comment.")
@click.option("--repeat", "-r", default="", help="'y', 'd <n>' or 'w <d1,d2,...>'.")
@click.pass_context
def add(ctx, title, date_str, comment, repeat):
    """Add a task."""
    verbose = ctx.obj["VERBOSE"]
    controller = _open_controller(ctx)
    task = Task(title=" ".join(title).strip(), date=date_str, comment=comment, repeat=repeat)
    try:
        task_id = controller.add_task(task)
    except SchedulerError as e:
        _fail(e, verbose)
    stored = controller.get_task(task_id)
    print(f"[green]✔ Added task {task_id}[/green] on {stored.date}")


@cli.command()
@click.argument("task_id")
@click.option("--title", "-t", default=None)
@click.option("--date", "-d", "date_str", default=None, help="YYYYMMDD.")
@click.option("--comment", "-c", default=None)
@click.option("--repeat", "-r", default=None)
@click.pass_context
def edit(ctx, task_id, title, date_str, comment, repeat):
    """Edit a task; omitted options keep their stored values."""
    verbose = ctx.obj["VERBOSE"]
    controller = _open_controller(ctx)
    try:
        current = controller.get_task(task_id)
        changes = {
            k: v
            for k, v in {
                "title": title,
                "date": date_str,
                "comment": comment,
                "repeat": repeat,
            }.items()
            if v is not None
        }
        updated = controller.edit_task(current.model_copy(update=changes))
    except SchedulerError as e:
        _fail(e, verbose)
    print(f"[green]✔ Updated task {updated.id}[/green] on {updated.date}")


@cli.command()
@click.argument("task_id")
@click.pass_context
def done(ctx, task_id):
    """Mark a task done."""
    verbose = ctx.obj["VERBOSE"]
    controller = _open_controller(ctx)
    try:
        task = controller.complete_task(task_id)
    except SchedulerError as e:
        _fail(e, verbose)
    if task is None:
        print(f"[green]✔ Task {task_id} done and removed[/green]")
    else:
        print(f"[green]✔ Task {task_id} done[/green], next on {task.date}")


@cli.command()
@click.argument("task_id")
@click.pass_context
def delete(ctx, task_id):
    """Delete a task."""
    verbose = ctx.obj["VERBOSE"]
    controller = _open_controller(ctx)
    try:
        controller.delete_task(task_id)
    except SchedulerError as e:
        _fail(e, verbose)
    print(f"[green]✔ Deleted task {task_id}[/green]")


@cli.command()
@click.argument("task_id")
@click.pass_context
def show(ctx, task_id):
    """Show a single task."""
    verbose = ctx.obj["VERBOSE"]
    controller = _open_controller(ctx)
    try:
        task = controller.get_task(task_id)
    except SchedulerError as e:
        _fail(e, verbose)
    print(f"[bold]{escape(task.title)}[/bold]")
    print(f"  id:      {task.id}")
    print(f"  date:    {task.date}")
    if task.repeat:
        print(f"  repeat:  {_describe_repeat(task.repeat)}")
    if task.comment:
        print(f"  comment: {escape(task.comment)}")


@cli.command(name="list")
@click.option(
    "--limit",
    "-n",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum number of tasks.",
)
@click.pass_context
def list_tasks(ctx, limit: Optional[int]):
    """List tasks, nearest first."""
    controller = _open_controller(ctx)
    tasks = controller.list_tasks(limit)
    if not tasks:
        print("[yellow]No tasks.[/yellow]")
        return

    table = Table(title="Tasks", expand=False)
    table.add_column("id", justify="right")
    table.add_column("date")
    table.add_column("title")
    table.add_column("repeat")
    table.add_column("comment")
    for task in tasks:
        table.add_row(
            task.id,
            task.date,
            escape(task.title),
            escape(_describe_repeat(task.repeat)),
            escape(task.comment),
        )
    Console().print(table)


@cli.command()
@click.option("--now", "now", type=_DATE, default=TODAY, help="Reference date.")
@click.option("--date", "-d", "date_str", required=True, help="Anchor date YYYYMMDD.")
@click.option("--repeat", "-r", required=True, help="Repeat rule.")
@click.pass_context
def nextdate(ctx, now, date_str, repeat):
    """Print the next occurrence of REPEAT after NOW counting from DATE."""
    verbose = ctx.obj["VERBOSE"]
    try:
        click.echo(next_date_str(now, date_str, repeat))
    except SchedulerError as e:
        _fail(e, verbose)


if __name__ == "__main__":
    cli()
