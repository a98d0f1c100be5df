"""Task commands: add, list, complete, star, rename, tag, remove, move."""

from dataclasses import asdict

import typer
from rich.markup import escape

from twotab_todo.models import TABS
from twotab_todo.services.view_pipeline import derive_view
from twotab_todo.utils.exit_codes import ERROR_INVALID_ARGS
from twotab_todo.utils.typer_helpers import SuggestingGroup
from twotab_todo.utils.ui.console import get_console
from twotab_todo.utils.ui.formatters import (
    format_output,
    format_stats,
    format_success,
    format_view,
)
from twotab_todo.utils.uuid_utils import shorten_uuid

from .decorators import AppError, command_wrapper
from .session import resolve_tag, resolve_task, todo_session

app = typer.Typer(cls=SuggestingGroup, help="Task management commands")
console = get_console()


def _check_tab(tab: str | None) -> None:
    if tab is not None and tab not in TABS:
        raise AppError(f"Unknown tab: {tab} (choose {' or '.join(TABS)})", ERROR_INVALID_ARGS)


@app.command("add")
@command_wrapper
async def add_task(
    title: str = typer.Argument(..., help="Task title"),
    tab: str | None = typer.Option(None, "--tab", help="work or personal (default: active tab)"),
    tag: str | None = typer.Option(None, "--tag", help="Tag name or id"),
    important: bool = typer.Option(False, "--important", "-i", help="Mark as important"),
) -> None:
    """Add a task to the top of a tab."""
    _check_tab(tab)
    async with todo_session() as service:
        tag_id = resolve_tag(service.state, tag).id if tag else None
        task = service.add_task(title, tab=tab, tag_id=tag_id, important=important)
        if task is None:
            raise AppError("Task title cannot be empty", ERROR_INVALID_ARGS)
        format_success(f"Added {escape(task.title)} [dim]({shorten_uuid(task.id)})[/dim]")


@app.command("list")
@command_wrapper
async def list_tasks(
    tab: str | None = typer.Option(None, "--tab", help="Show another tab without switching"),
    output: str = typer.Option("pretty", "--output", "-o", help="pretty, json or yaml"),
) -> None:
    """List the visible tasks of the active tab."""
    _check_tab(tab)
    async with todo_session() as service:
        state = service.state
        if tab is not None:
            state = state.model_copy(update={"active_tab": tab})
        view = derive_view(state)
        if output == "pretty":
            format_view(view, state.tags)
            return
        format_output(
            {
                "tab": view.tab,
                "counter": view.counter_label,
                "tasks": [task.to_record() for task in view.tasks],
            },
            output,
        )


@app.command("done")
@command_wrapper
async def toggle_done(
    task_ref: str = typer.Argument(..., help="Task id or id prefix"),
) -> None:
    """Toggle a task between open and completed."""
    async with todo_session() as service:
        task = service.toggle_task(resolve_task(service.state, task_ref).id)
        if task is not None:
            state = "completed" if task.completed else "reopened"
            format_success(f"Task {state}: {escape(task.title)}")


@app.command("star")
@command_wrapper
async def toggle_star(
    task_ref: str = typer.Argument(..., help="Task id or id prefix"),
) -> None:
    """Toggle the important flag of a task."""
    async with todo_session() as service:
        task = service.toggle_important(resolve_task(service.state, task_ref).id)
        if task is not None:
            label = "Starred" if task.important else "Unstarred"
            format_success(f"{label}: {escape(task.title)}")


@app.command("rename")
@command_wrapper
async def rename_task(
    task_ref: str = typer.Argument(..., help="Task id or id prefix"),
    title: str = typer.Argument(..., help="New title"),
) -> None:
    """Change the title of a task."""
    async with todo_session() as service:
        task = resolve_task(service.state, task_ref)
        if not title.strip():
            raise AppError("Task title cannot be empty", ERROR_INVALID_ARGS)
        updated = service.rename_task(task.id, title)
        if updated is None:
            console.print("[yellow]Title unchanged[/yellow]")
            return
        format_success(f"Renamed to {escape(updated.title)}")


@app.command("tag")
@command_wrapper
async def tag_task(
    task_ref: str = typer.Argument(..., help="Task id or id prefix"),
    tag: str = typer.Argument(..., help='Tag name or id, or "none" to clear'),
) -> None:
    """Assign a tag to a task, or clear it."""
    async with todo_session() as service:
        task = resolve_task(service.state, task_ref)
        tag_id = None if tag.lower() == "none" else resolve_tag(service.state, tag).id
        if service.set_task_tag(task.id, tag_id) is None:
            console.print("[yellow]Tag unchanged[/yellow]")
            return
        format_success("Tag cleared" if tag_id is None else "Tag assigned")


@app.command("rm")
@command_wrapper
async def remove_task(
    task_ref: str = typer.Argument(..., help="Task id or id prefix"),
) -> None:
    """Delete a task."""
    async with todo_session() as service:
        task = resolve_task(service.state, task_ref)
        service.delete_task(task.id)
        format_success(f"Deleted {escape(task.title)}")


@app.command("move")
@command_wrapper
async def move_task(
    dragged: str = typer.Argument(..., help="Task to move"),
    target: str = typer.Argument(..., help="Task whose position it takes"),
) -> None:
    """Move a task onto another visible task of the active tab."""
    async with todo_session() as service:
        state = service.state
        dragged_task = resolve_task(state, dragged)
        target_task = resolve_task(state, target)
        if state.sort_important:
            raise AppError(
                "Reordering is disabled while sorting by importance", ERROR_INVALID_ARGS
            )
        if not service.move_task(dragged_task.id, target_task.id):
            raise AppError(
                "Both tasks must be distinct and visible in the current view",
                ERROR_INVALID_ARGS,
            )
        format_success(f"Moved {escape(dragged_task.title)}")


@app.command("stats")
@command_wrapper
async def show_stats(
    output: str = typer.Option("pretty", "--output", "-o", help="pretty, json or yaml"),
) -> None:
    """Show per-tab totals and completion."""
    async with todo_session() as service:
        stats = service.stats()
        if output == "pretty":
            format_stats(stats)
        else:
            format_output(asdict(stats), output)


@app.command("reset")
@command_wrapper
async def reset_all(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete every task and tag (in the cloud too when signed in)."""
    if not yes and not typer.confirm("Delete all tasks and tags?"):
        console.print("[yellow]Cancelled[/yellow]")
        raise typer.Exit(0)
    async with todo_session() as service:
        await service.clear_all()
        format_success("All tasks and tags removed")
