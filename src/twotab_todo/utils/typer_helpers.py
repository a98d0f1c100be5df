"""Typer helpers: close-match hints for mistyped sub-commands."""

from difflib import get_close_matches

import typer
from typer.core import TyperGroup

from twotab_todo.utils.ui.formatters import format_error


def suggest_commands(attempted: str, group: TyperGroup, ctx) -> list[str]:
    """Visible commands of ``group`` that look like ``attempted``."""
    visible = [
        name
        for name in group.list_commands(ctx)
        if not getattr(group.get_command(ctx, name), "hidden", False)
    ]
    return get_close_matches(attempted, visible, n=3, cutoff=0.6)


class SuggestingGroup(TyperGroup):
    """Group that answers an unknown command with its nearest names."""

    def resolve_command(self, ctx, args):
        try:
            return super().resolve_command(ctx, args)
        except Exception as e:
            matches = suggest_commands(args[0], self, ctx) if args else []
            if not matches:
                raise
            hints = " or ".join(f"'{ctx.command_path} {name}'" for name in matches)
            format_error(f"No command '{args[0]}'. Did you mean {hints}?")
            raise typer.Exit(1) from e
