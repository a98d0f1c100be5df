"""Decorators for command functions."""

import asyncio
import functools
import time
import traceback
from collections.abc import Callable

import typer

from twotab_todo.exceptions import RemoteTransportFailure, ValidationFailure
from twotab_todo.utils.exit_codes import ERROR_GENERAL, ERROR_INVALID_ARGS, ERROR_NETWORK
from twotab_todo.utils.logger import get_logger
from twotab_todo.utils.ui.formatters import format_error


class AppError(Exception):
    """Custom application error with exit code."""

    def __init__(self, message: str, exit_code: int = ERROR_GENERAL):
        super().__init__(message)
        self.exit_code = exit_code


def command_wrapper(func: Callable):
    """Run sync or async commands with logging and uniform error reporting."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger("cli")
        cmd = func.__name__
        start = time.monotonic()
        logger.info("command started: %s", cmd)
        try:
            if asyncio.iscoroutinefunction(func):
                result = asyncio.run(func(*args, **kwargs))
            else:
                result = func(*args, **kwargs)

            logger.info("command completed: %s (%.3fs)", cmd, time.monotonic() - start)
            return result

        except typer.Exit:
            raise

        except (AppError, ValidationFailure, RemoteTransportFailure) as e:
            if isinstance(e, AppError):
                exit_code = e.exit_code
            elif isinstance(e, ValidationFailure):
                exit_code = ERROR_INVALID_ARGS
            else:
                exit_code = ERROR_NETWORK
            logger.error(
                "command failed: %s (%.3fs) - %s", cmd, time.monotonic() - start, str(e)
            )
            format_error(str(e))
            raise typer.Exit(code=exit_code) from e

        except Exception as e:
            logger.error(
                "command failed: %s (%.3fs) - %s\n%s",
                cmd,
                time.monotonic() - start,
                str(e),
                traceback.format_exc(),
            )
            format_error(f"An unexpected error occurred: {str(e)}")
            raise typer.Exit(code=ERROR_GENERAL) from e

    return wrapper
