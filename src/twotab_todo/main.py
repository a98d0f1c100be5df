"""Main entry point for the two-tab todo CLI."""

import typer

from twotab_todo import __version__
from twotab_todo.commands import auth, config, preferences, tags, tasks
from twotab_todo.services.config_service import get_config_service
from twotab_todo.utils.logger import configure_logging, get_logger
from twotab_todo.utils.typer_helpers import SuggestingGroup
from twotab_todo.utils.ui.console import get_console

app = typer.Typer(
    name="twotab",
    cls=SuggestingGroup,
    help="Offline-first work/personal todo lists with optional cloud sync",
    no_args_is_help=True,
)

console = get_console()

app.add_typer(tasks.app, name="tasks", help="Task management commands")
app.add_typer(tags.app, name="tags", help="Tag management commands")
app.add_typer(preferences.app, name="view", help="View preferences")
app.add_typer(auth.app, name="auth", help="Account and sync commands")
app.add_typer(config.app, name="config", help="Configuration management")


@app.callback()
def main() -> None:
    """Set up file logging before any command runs."""
    try:
        level = get_config_service().config.log_level
    except RuntimeError:
        # the command itself reports the broken config
        level = "INFO"
    configure_logging(level)
    get_logger("cli").debug("twotab %s", __version__)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]twotab[/bold] version [cyan]{__version__}[/cyan]")


if __name__ == "__main__":
    app()
