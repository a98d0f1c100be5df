"""View preference commands: active tab, completed visibility, sorting, tag filter."""

import typer

from twotab_todo.models import TAG_FILTER_ALL, TAG_FILTER_UNTAGGED, TABS
from twotab_todo.utils.exit_codes import ERROR_INVALID_ARGS
from twotab_todo.utils.typer_helpers import SuggestingGroup
from twotab_todo.utils.ui.console import get_console
from twotab_todo.utils.ui.formatters import format_output, format_success

from .decorators import AppError, command_wrapper
from .session import resolve_tag, todo_session

app = typer.Typer(cls=SuggestingGroup, help="View preferences")
console = get_console()


def _parse_switch(value: str) -> bool:
    lowered = value.lower()
    if lowered in ("on", "true", "yes", "1"):
        return True
    if lowered in ("off", "false", "no", "0"):
        return False
    raise AppError(f"Expected on or off, got {value!r}", ERROR_INVALID_ARGS)


async def _set(key: str, value, label: str) -> None:
    async with todo_session() as service:
        if service.set_preference(key, value):
            format_success(label)
        else:
            console.print("[yellow]Already set[/yellow]")


@app.command("show")
@command_wrapper
async def show_preferences(
    output: str = typer.Option("json", "--output", "-o", help="json or yaml"),
) -> None:
    """Show the current view preferences."""
    async with todo_session() as service:
        state = service.state
        format_output(
            {
                "activeTab": state.active_tab,
                "showCompleted": state.show_completed,
                "sortImportant": state.sort_important,
                "activeTagFilter": state.active_tag_filter,
            },
            output,
        )


@app.command("tab")
@command_wrapper
async def switch_tab(
    tab: str = typer.Argument(..., help="work or personal"),
) -> None:
    """Switch the active tab."""
    if tab not in TABS:
        raise AppError(f"Unknown tab: {tab} (choose {' or '.join(TABS)})", ERROR_INVALID_ARGS)
    await _set("activeTab", tab, f"Active tab: {tab}")


@app.command("show-completed")
@command_wrapper
async def show_completed(
    value: str = typer.Argument(..., help="on or off"),
) -> None:
    """Show or hide completed tasks."""
    enabled = _parse_switch(value)
    await _set("showCompleted", enabled, f"Completed tasks {'shown' if enabled else 'hidden'}")


@app.command("sort-important")
@command_wrapper
async def sort_important(
    value: str = typer.Argument(..., help="on or off"),
) -> None:
    """Float important tasks to the top (disables manual reordering)."""
    enabled = _parse_switch(value)
    await _set(
        "sortImportant", enabled, f"Important-first sorting {'on' if enabled else 'off'}"
    )


@app.command("filter")
@command_wrapper
async def filter_by_tag(
    tag: str = typer.Argument(..., help='Tag name or id, "all" or "none"'),
) -> None:
    """Filter the list by tag; "none" shows untagged tasks only."""
    if tag.lower() in (TAG_FILTER_ALL, TAG_FILTER_UNTAGGED):
        value = tag.lower()
        await _set("activeTagFilter", value, f"Tag filter: {value}")
        return
    async with todo_session() as service:
        found = resolve_tag(service.state, tag)
        if service.set_preference("activeTagFilter", found.id):
            format_success(f"Tag filter: {found.name}")
        else:
            console.print("[yellow]Already set[/yellow]")
