"""Per-invocation service session shared by the CLI commands."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from twotab_todo.models import AppState, Tag, Task
from twotab_todo.services.config_service import get_config_service
from twotab_todo.services.tag_registry import find_tag_by_name
from twotab_todo.services.todo_service import TodoService
from twotab_todo.utils.logger import get_logger
from twotab_todo.utils.ui.formatters import format_notice, format_warning
from twotab_todo.utils.uuid_utils import resolve_id

logger = get_logger(__name__)


@asynccontextmanager
async def todo_session(wait_for_remote: bool = True) -> AsyncIterator[TodoService]:
    """Open the local cache, attach sync when configured, and tear it all down on exit.

    Args:
        wait_for_remote: Block until the first remote snapshot lands when signed in
    """
    config_service = get_config_service()
    remote = config_service.create_remote_store()
    service = config_service.create_todo_service(remote=remote)
    unsubscribe = service.notices.subscribe(format_notice)
    try:
        if remote.is_ready():
            service.start()
            logger.debug("Session started in %s mode", service.coordinator.status.value)
            if wait_for_remote and service.coordinator.is_synced:
                timeout = config_service.config.snapshot_timeout
                if not await service.coordinator.wait_for_snapshot(timeout):
                    format_warning("Cloud data did not arrive in time, showing cached tasks")
        yield service
    finally:
        await service.close()
        unsubscribe()
        await remote.aclose()


def resolve_task(state: AppState, reference: str) -> Task:
    """Find a task by full id or unique id prefix."""
    task_id = resolve_id(reference, [task.id for task in state.tasks], kind="task")
    return state.find_task(task_id)  # type: ignore[return-value]


def resolve_tag(state: AppState, reference: str) -> Tag:
    """Find a tag by name (ignoring case), full id, or unique id prefix."""
    tag = find_tag_by_name(state.tags, reference)
    if tag is not None:
        return tag
    tag_id = resolve_id(reference, [tag.id for tag in state.tags], kind="tag")
    return state.find_tag(tag_id)  # type: ignore[return-value]
