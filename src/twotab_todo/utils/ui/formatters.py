"""Output formatters for the CLI."""

from __future__ import annotations

import json
from typing import Any

import yaml
from rich.markup import escape
from rich.table import Table

from twotab_todo.models import Tag
from twotab_todo.services.notifier import Notice
from twotab_todo.services.tag_registry import is_valid_color
from twotab_todo.services.view_pipeline import TaskStats, ViewResult
from twotab_todo.utils.uuid_utils import shorten_uuid

from .console import get_console

console = get_console()


def _colored(text: str, color: str) -> str:
    """Wrap escaped text in a color tag when it is a #rrggbb value rich can parse."""
    if is_valid_color(color) and len(color) == 7:
        return f"[{color}]{escape(text)}[/{color}]"
    return escape(text)


def format_error(message: str) -> None:
    """Format and display an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def format_success(message: str) -> None:
    """Format and display a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def format_warning(message: str) -> None:
    """Format and display a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def format_notice(notice: Notice) -> None:
    """Show a notice from the notice board."""
    if notice.ok:
        console.print(f"[cyan]›[/cyan] {notice.message}")
    else:
        format_error(notice.message)


def format_output(data: Any, output_format: str = "json") -> None:
    """Print plain data as JSON or YAML."""
    if output_format == "yaml":
        print(yaml.dump(data, default_flow_style=False, sort_keys=False))
    else:
        print(json.dumps(data, indent=2, default=str, ensure_ascii=False))


def get_progress_bar(percentage: float) -> str:
    """Get a progress bar representation."""
    filled = int(percentage / 10)
    return "▓" * filled + "░" * (10 - filled)


def get_completion_color(percentage: float) -> str:
    """Get color based on completion percentage."""
    if percentage >= 80:
        return "green"
    if percentage >= 40:
        return "yellow"
    return "red"


def format_view(view: ViewResult, tags: list[Tag]) -> None:
    """Pretty-print the visible task list of the active tab."""
    tag_by_id = {tag.id: tag for tag in tags}
    console.print(
        f"[bold]{view.tab.capitalize()}[/bold] [dim]({view.counter_label})[/dim]"
    )
    if view.empty is not None:
        console.print(f"[yellow]{view.empty_message}[/yellow]")
        return

    for task in view.tasks:
        box = "[green]✓[/green]" if task.completed else "☐"
        star = "[yellow]★[/yellow] " if task.important else ""
        title = escape(task.title)
        if task.completed:
            title = f"[dim strike]{title}[/dim strike]"
        line = f"  [dim]{shorten_uuid(task.id)}[/dim] {box} {star}{title}"
        tag = tag_by_id.get(task.tag_id or "")
        if tag is not None:
            line += " " + _colored(f"#{tag.name}", tag.color)
        console.print(line)


def format_tags(tags: list[Tag], active_filter: str) -> None:
    if not tags:
        console.print("[yellow]No tags yet[/yellow]")
        return
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Id")
    table.add_column("Name")
    table.add_column("Color")
    table.add_column("Filter")
    for tag in tags:
        table.add_row(
            shorten_uuid(tag.id),
            escape(tag.name),
            _colored("■", tag.color) + f" {escape(tag.color)}",
            "●" if tag.id == active_filter else "",
        )
    console.print(table)


def format_stats(stats: TaskStats) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Tab")
    table.add_column("Total", justify="right")
    table.add_column("Done", justify="right")
    table.add_row("Work", str(stats.work_total), str(stats.work_done))
    table.add_row("Personal", str(stats.personal_total), str(stats.personal_done))
    table.add_row("[bold]All[/bold]", str(stats.total), str(stats.done))
    console.print(table)
    color = get_completion_color(stats.completion_rate)
    console.print(
        f"Completion: [{color}]{get_progress_bar(stats.completion_rate)} "
        f"{stats.completion_rate}%[/{color}]"
    )
