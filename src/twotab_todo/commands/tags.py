"""Tag registry commands."""

import typer
from rich.markup import escape

from twotab_todo.utils.exit_codes import ERROR_INVALID_ARGS
from twotab_todo.utils.typer_helpers import SuggestingGroup
from twotab_todo.utils.ui.formatters import format_output, format_success, format_tags

from .decorators import AppError, command_wrapper
from .session import resolve_tag, todo_session

app = typer.Typer(cls=SuggestingGroup, help="Tag management commands")


@app.command("list")
@command_wrapper
async def list_tags(
    output: str = typer.Option("pretty", "--output", "-o", help="pretty, json or yaml"),
) -> None:
    """List tags in creation order."""
    async with todo_session() as service:
        state = service.state
        if output == "pretty":
            format_tags(state.tags, state.active_tag_filter)
        else:
            format_output([tag.to_record() for tag in state.tags], output)


@app.command("add")
@command_wrapper
async def add_tag(
    name: str = typer.Argument(..., help="Tag name (unique, ignoring case)"),
    color: str | None = typer.Option(None, "--color", "-c", help="Hex color, e.g. #2563eb"),
) -> None:
    """Create a tag."""
    async with todo_session() as service:
        tag = service.add_tag(name, color)
        if tag is None:
            # the reason was already shown as a notice
            raise typer.Exit(ERROR_INVALID_ARGS)
        format_success(f"Created tag {escape(tag.name)}")


@app.command("rm")
@command_wrapper
async def remove_tag(
    tag_ref: str = typer.Argument(..., help="Tag name or id"),
) -> None:
    """Delete a tag and clear it from every task."""
    async with todo_session() as service:
        tag = resolve_tag(service.state, tag_ref)
        if not service.delete_tag(tag.id):
            raise AppError(f"Tag not found: {tag_ref}", ERROR_INVALID_ARGS)
        format_success(f"Deleted tag {escape(tag.name)}")
