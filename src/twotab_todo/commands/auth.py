"""Account and sync commands."""

import typer
from rich.prompt import Prompt

from twotab_todo.utils.exit_codes import ERROR_AUTH_FAILURE, ERROR_INVALID_ARGS, ERROR_NETWORK
from twotab_todo.utils.typer_helpers import SuggestingGroup
from twotab_todo.utils.ui.console import get_console
from twotab_todo.utils.ui.formatters import format_output

from .decorators import AppError, command_wrapper
from .session import todo_session

app = typer.Typer(cls=SuggestingGroup, help="Account and sync commands")
console = get_console()


def _ask_credentials(email: str | None, password: str | None) -> tuple[str, str]:
    if not email:
        email = Prompt.ask("Email")
    if not password:
        password = Prompt.ask("Password", password=True)
    if not email or not password:
        raise AppError("Email and password are required", ERROR_INVALID_ARGS)
    return email, password


@app.command()
@command_wrapper
async def login(
    email: str | None = typer.Option(None, "--email", help="Email address"),
    password: str | None = typer.Option(None, "--password", help="Password"),
) -> None:
    """Sign in and start syncing; guest tasks are uploaded once."""
    email, password = _ask_credentials(email, password)
    async with todo_session(wait_for_remote=False) as service:
        if not await service.sign_in(email, password):
            raise typer.Exit(ERROR_AUTH_FAILURE)


@app.command()
@command_wrapper
async def signup(
    email: str | None = typer.Option(None, "--email", help="Email address"),
    password: str | None = typer.Option(None, "--password", help="Password"),
) -> None:
    """Create an account and sign in."""
    email, password = _ask_credentials(email, password)
    async with todo_session(wait_for_remote=False) as service:
        if not await service.sign_up(email, password):
            raise typer.Exit(ERROR_AUTH_FAILURE)


@app.command()
@command_wrapper
async def logout() -> None:
    """Sign out and return to the local guest list."""
    async with todo_session(wait_for_remote=False) as service:
        if not service.coordinator.is_synced:
            console.print("[yellow]Not signed in[/yellow]")
            return
        if not await service.sign_out():
            raise typer.Exit(ERROR_NETWORK)


@app.command()
@command_wrapper
async def sync() -> None:
    """Push every local task and tag to the cloud now."""
    async with todo_session() as service:
        if not await service.sync_now():
            raise typer.Exit(ERROR_NETWORK if service.coordinator.is_synced else ERROR_AUTH_FAILURE)


@app.command()
@command_wrapper
async def status(
    output: str = typer.Option("json", "--output", "-o", help="json or yaml"),
) -> None:
    """Show whether sync is configured and who is signed in."""
    async with todo_session(wait_for_remote=False) as service:
        coordinator = service.coordinator
        user = coordinator.current_user
        format_output(
            {
                "configured": coordinator.remote.is_ready(),
                "status": coordinator.status.value,
                "user": user.email or user.uid if user else None,
            },
            output,
        )
