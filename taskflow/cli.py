#!/usr/bin/env python3
"""Taskflow CLI.

Command-line interface for the hierarchical task store.
Provides commands for creating, listing, completing and deleting tasks and
for CSV backups.
"""

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .config import get_settings
from .database import RecordStore
from .exceptions import TaskflowError
from .logging_setup import setup_logging
from .schemas.models import (
    TaskBucket,
    TaskCore,
    TaskCreate,
    TaskFilter,
    TaskStatus,
    TaskType,
    format_timestamp,
    parse_timestamp,
)
from .schemas.transformations import TaskCsvCodec
from .services import TaskService
from .utils import all_completed


T = TypeVar("T")

# Initialize CLI and console
app = typer.Typer(help="Hierarchical task store CLI")
console = Console()

STATUS_STYLES = {
    TaskStatus.IN_PROGRESS: "yellow",
    TaskStatus.REVIEW: "magenta",
    TaskStatus.TODO: "white",
    TaskStatus.COMPLETED: "green",
}


class TaskflowCLI:
    """CLI state shared by the commands."""

    def __init__(self):
        """Initialize with the configured database."""
        self.db_path: Path | None = None

    def build_service(self) -> TaskService:
        """Create a task service for the selected database."""
        settings = get_settings()
        database = settings.database
        if self.db_path is not None:
            database = database.model_copy(update={"path": self.db_path})
        return TaskService(
            RecordStore.from_settings(database),
            TaskCsvCodec(legacy_format=settings.csv.legacy_format),
        )

    def run(self, operation: Callable[[TaskService], Awaitable[T]]) -> T:
        """Run ``operation`` against an opened service.

        Taskflow errors are printed and end the command with exit code 1.
        """

        async def _run() -> T:
            service = self.build_service()
            try:
                await service.init()
                return await operation(service)
            finally:
                await service.close()

        try:
            return asyncio.run(_run())
        except TaskflowError as e:
            console.print(f"[bold red]Error: {escape(str(e))}[/bold red]")
            raise typer.Exit(code=1) from e


# Global CLI instance
cli_instance = TaskflowCLI()


def _parse_status(value: str) -> TaskStatus:
    wanted = value.strip().lower().replace("_", " ").replace("-", " ")
    for status in TaskStatus:
        if wanted in (status.value.lower(), status.name.lower().replace("_", " ")):
            return status
    choices = ", ".join(status.value for status in TaskStatus)
    raise typer.BadParameter(f"'{value}' is not a status ({choices})")


def _parse_due(value: str | None):
    if value is None:
        return None
    try:
        return parse_timestamp(value)
    except ValueError as e:
        raise typer.BadParameter(f"'{value}' is not an ISO date") from e


def _status_text(status: TaskStatus) -> str:
    return f"[{STATUS_STYLES[status]}]{status.value}[/{STATUS_STYLES[status]}]"


def _due_text(task: TaskCore) -> str:
    return task.due_date.date().isoformat() if task.due_date else "-"


@app.command()
def init():
    """Create the task database if it does not exist yet."""

    async def _init(service: TaskService):
        return service.store.path

    path = cli_instance.run(_init)
    console.print(f"[green]Task database ready at {escape(str(path))}[/green]")


@app.command()
def add(
    title: str = typer.Argument(..., help="Task title"),
    description: str = typer.Option("", "--description", "-d", help="Task description"),
    due: str | None = typer.Option(None, "--due", help="Due date (ISO 8601)"),
    parent: int | None = typer.Option(
        None, "--parent", "-p", help="Create a sub-task of this task"
    ),
):
    """Create a task, or a sub-task with --parent."""
    fields = {"description": description, "due_date": _parse_due(due)}
    if parent is None:
        task_input = TaskCreate(title=title, **fields)
    else:
        task_input = TaskCreate.subtask(parent, title, **fields)

    task = cli_instance.run(lambda service: service.create_task(task_input))
    kind = "Sub-task" if task.is_subtask else "Task"
    console.print(f"[bold green]✓ {kind} {task.id} created[/bold green]")


@app.command("list")
def list_tasks(
    completed: bool | None = typer.Option(
        None, "--completed/--active", help="Only completed or only open tasks"
    ),
    show_all: bool = typer.Option(
        False, "--all", "-a", help="Include completed tasks"
    ),
    status: str | None = typer.Option(None, "--status", "-s", help="Filter by status"),
    search: str | None = typer.Option(
        None, "--search", "-q", help="Search title and description"
    ),
    all_types: bool = typer.Option(
        False, "--all-types", help="Include sub-tasks in the list"
    ),
):
    """List tasks in display order; open tasks only by default."""
    if completed is not None:
        bucket = TaskBucket.COMPLETED if completed else TaskBucket.ACTIVE
    elif show_all or status:
        bucket = None
    else:
        bucket = TaskBucket.ACTIVE

    task_filter = TaskFilter(
        type=None if all_types else TaskType.TASK,
        bucket=bucket,
        status=_parse_status(status) if status else None,
        search=search or None,
    )
    tasks = cli_instance.run(lambda service: service.list_tasks(task_filter))

    if not tasks:
        console.print("[yellow]No tasks found[/yellow]")
        return

    task_table = Table(title="Tasks", show_header=True, header_style="bold magenta")
    task_table.add_column("ID", style="cyan")
    task_table.add_column("Title", style="white", max_width=40)
    task_table.add_column("Status")
    task_table.add_column("Due", style="blue")
    if all_types:
        task_table.add_column("Parent", style="dim")

    for task in tasks:
        row = [
            str(task.id),
            escape(task.title),
            _status_text(task.status),
            _due_text(task),
        ]
        if all_types:
            row.append("" if task.parent_id is None else str(task.parent_id))
        task_table.add_row(*row)

    console.print(task_table)


@app.command()
def show(task_id: int = typer.Argument(..., help="ID of the task to show")):
    """Show a task with its sub-tasks."""

    async def _show(service: TaskService):
        task = await service.get_task(task_id)
        subtasks = await service.get_subtasks(task_id) if task else []
        return task, subtasks

    task, subtasks = cli_instance.run(_show)
    if task is None:
        console.print(f"[bold red]Task {task_id} not found[/bold red]")
        raise typer.Exit(code=1)

    details = (
        f"[bold blue]ID:[/bold blue] {task.id}\n"
        f"[bold blue]Title:[/bold blue] {escape(task.title)}\n"
        f"[bold blue]Type:[/bold blue] {task.type.value}\n"
        f"[bold blue]Status:[/bold blue] {_status_text(task.status)}\n"
        f"[bold blue]Due:[/bold blue] {_due_text(task)}\n"
        f"[bold blue]Created:[/bold blue] {format_timestamp(task.created_at)}"
    )
    if task.parent_id is not None:
        details += f"\n[bold blue]Parent:[/bold blue] {task.parent_id}"
    console.print(Panel.fit(details, title=f"Task {task_id}"))

    if task.description:
        console.print(
            Panel(escape(task.description), title="Description", border_style="green")
        )

    if subtasks:
        sub_table = Table(
            title="Sub-tasks", show_header=True, header_style="bold green"
        )
        sub_table.add_column("ID", style="cyan")
        sub_table.add_column("Title", style="white")
        sub_table.add_column("Status")
        for subtask in subtasks:
            sub_table.add_row(
                str(subtask.id), escape(subtask.title), _status_text(subtask.status)
            )
        console.print(sub_table)
        if all_completed(subtasks) and not task.is_completed:
            console.print("[green]All sub-tasks completed[/green]")


@app.command("status")
def set_status(
    task_id: int = typer.Argument(..., help="ID of the task"),
    status: str = typer.Argument(..., help="Todo, In Progress, Review or Completed"),
):
    """Move a task to another status."""
    new_status = _parse_status(status)
    cli_instance.run(lambda service: service.set_status(task_id, new_status))
    console.print(
        f"[bold green]✓ Task {task_id} is now {new_status.value}[/bold green]"
    )


@app.command()
def delete(task_id: int = typer.Argument(..., help="ID of the task to delete")):
    """Delete a task together with its sub-tasks."""
    cli_instance.run(lambda service: service.delete_task(task_id))
    console.print(f"[bold green]✓ Task {task_id} deleted[/bold green]")


@app.command("export")
def export_tasks(
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Write to this file instead of stdout"
    ),
):
    """Export all tasks as CSV."""
    async def _export(service: TaskService):
        return await service.export_csv(), await service.store.count()

    document, count = cli_instance.run(_export)
    if output is None:
        typer.echo(document)
        return

    output.write_text(document, encoding="utf-8")
    console.print(f"[green]Exported {count} task(s) to {escape(str(output))}[/green]")


@app.command("import")
def import_tasks(
    path: Path = typer.Argument(..., help="CSV file produced by export"),
):
    """Import tasks from a CSV backup; nothing is imported if any row is bad."""
    try:
        document = path.read_text(encoding="utf-8")
    except OSError as e:
        console.print(f"[bold red]Cannot read {escape(str(path))}: {e}[/bold red]")
        raise typer.Exit(code=1) from e

    imported = cli_instance.run(lambda service: service.import_csv(document))
    console.print(f"[bold green]✓ Imported {len(imported)} task(s)[/bold green]")


@app.callback()
def main(
    db: Path | None = typer.Option(
        None, "--db", help="SQLite database path (overrides configuration)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
):
    """Taskflow: hierarchical tasks with sub-tasks, stored locally in SQLite."""
    settings = get_settings()
    setup_logging("DEBUG" if verbose else settings.effective_log_level)
    cli_instance.db_path = db


if __name__ == "__main__":
    app()
