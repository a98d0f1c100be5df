"""Local store - the single owner of the in-process state and its durable cache.

Every mutation builds new lists (tasks and tags are frozen models), persists
synchronously, notifies listeners, and returns a change event for the sync
coordinator. A mutation that changes nothing returns None.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from twotab_todo.exceptions import PersistenceFailure, ValidationFailure
from twotab_todo.models import (
    DEFAULT_TAB,
    TABS,
    TAG_FILTER_ALL,
    TAG_FILTER_UNTAGGED,
    AppState,
    Tag,
    TagRemoved,
    TagSaved,
    Task,
    TaskRemoved,
    TaskSaved,
    TasksReordered,
    utc_now_iso,
)
from twotab_todo.repositories import StateCache, Unsubscribe
from twotab_todo.utils.logger import get_logger
from twotab_todo.utils.uuid_utils import new_id

from .reorder import plan_move
from .tag_registry import build_tag, clear_tag_references, drop_dangling_references

logger = get_logger(__name__)

StateListener = Callable[[AppState], None]
ModelT = TypeVar("ModelT", bound=BaseModel)

# Accepted preference keys, cache spelling and attribute spelling
PREFERENCE_KEYS: dict[str, str] = {
    "activeTab": "active_tab",
    "active_tab": "active_tab",
    "showCompleted": "show_completed",
    "show_completed": "show_completed",
    "sortImportant": "sort_important",
    "sort_important": "sort_important",
    "activeTagFilter": "active_tag_filter",
    "active_tag_filter": "active_tag_filter",
}


def _parse_items(raw: Any, model: type[ModelT], kind: str) -> list[ModelT]:
    """Validate a list of records, dropping malformed entries and repeated ids."""
    if not isinstance(raw, list):
        return []
    items: list[ModelT] = []
    seen: set[str] = set()
    for entry in raw:
        if isinstance(entry, model):
            item = entry
        elif isinstance(entry, dict):
            try:
                item = model.model_validate(entry)
            except ValidationError as e:
                logger.warning("Dropping malformed %s record: %s", kind, e.errors()[0]["msg"])
                continue
        else:
            logger.warning("Dropping non-object %s record", kind)
            continue
        if item.id in seen:  # type: ignore[attr-defined]
            logger.warning("Dropping duplicate %s id %s", kind, item.id)  # type: ignore[attr-defined]
            continue
        seen.add(item.id)  # type: ignore[attr-defined]
        items.append(item)
    return items


def normalize_tag_filter(value: Any, tag_ids: set[str]) -> str:
    """Map a requested tag filter onto "all", the untagged marker, or a live tag id."""
    if value is None or value == TAG_FILTER_ALL:
        return TAG_FILTER_ALL
    if value in ("", TAG_FILTER_UNTAGGED):
        return TAG_FILTER_UNTAGGED
    if isinstance(value, str) and value in tag_ids:
        return value
    return TAG_FILTER_ALL


def parse_state(text: str | None) -> AppState:
    """Build an AppState from cached text, degrading to defaults on any problem."""
    if not text:
        return AppState()
    try:
        data = json.loads(text)
    except ValueError as e:
        logger.warning("Unable to parse saved state, starting fresh: %s", e)
        return AppState()
    if not isinstance(data, dict):
        logger.warning("Saved state is not an object, starting fresh")
        return AppState()

    tags = _parse_items(data.get("tags"), Tag, "tag")
    tag_ids = {tag.id for tag in tags}
    tasks = drop_dangling_references(_parse_items(data.get("tasks"), Task, "task"), tag_ids)

    active_tab = data.get("activeTab")
    show_completed = data.get("showCompleted")
    sort_important = data.get("sortImportant")
    return AppState(
        active_tab=active_tab if active_tab in TABS else DEFAULT_TAB,
        tasks=tasks,
        show_completed=show_completed if isinstance(show_completed, bool) else False,
        sort_important=sort_important if isinstance(sort_important, bool) else False,
        tags=tags,
        active_tag_filter=normalize_tag_filter(data.get("activeTagFilter"), tag_ids),
    )


class LocalStore:
    """Owns the one writable AppState of the process.

    Args:
        cache: Durable storage for the serialized state
    """

    def __init__(self, cache: StateCache):
        self.cache = cache
        self._state = AppState()
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> AppState:
        return self._state

    def subscribe(self, listener: StateListener) -> Unsubscribe:
        """Call ``listener`` with the new state after every committed transition."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._state)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> AppState:
        """Replace the in-memory state with whatever the cache holds.

        Never raises: unreadable or corrupt data yields the default state.
        """
        try:
            text = self.cache.read()
        except PersistenceFailure as e:
            logger.warning("Unable to read saved state: %s", e)
            text = None
        self._state = parse_state(text)
        self._notify()
        return self._state

    def save(self, state: AppState | None = None) -> bool:
        """Persist ``state`` (adopting it as current) or the current state.

        Returns:
            False when the cache rejected the write; memory still holds the state
        """
        if state is not None:
            self._state = state
        try:
            self.cache.write(self._state.to_json())
        except PersistenceFailure as e:
            logger.warning("Unable to save state: %s", e)
            return False
        return True

    def _commit(self, **changes: Any) -> AppState:
        self._state = self._state.model_copy(update=changes)
        self.save()
        self._notify()
        return self._state

    def _replace_task(self, updated: Task) -> None:
        self._commit(
            tasks=[updated if task.id == updated.id else task for task in self._state.tasks]
        )

    def _valid_tag_id(self, tag_id: str | None) -> str | None:
        if tag_id and tag_id in self._state.tag_ids():
            return tag_id
        if tag_id:
            logger.debug("Coercing unknown tag id %s to none", tag_id)
        return None

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def add_task(
        self,
        title: str,
        tab: str | None = None,
        tag_id: str | None = None,
        important: bool = False,
    ) -> TaskSaved | None:
        """Prepend a new task. Whitespace-only titles are ignored.

        Args:
            title: Task title
            tab: Target tab. Defaults to the active tab; unknown values become "work"
            tag_id: Optional tag; unknown ids are dropped
            important: Initial importance flag
        """
        if not isinstance(title, str) or not title.strip():
            return None
        if tab is None:
            tab = self._state.active_tab
        task = Task(
            id=new_id(),
            title=title.strip(),
            tab=tab if tab in TABS else DEFAULT_TAB,
            important=important,
            tag_id=self._valid_tag_id(tag_id),
            created_at=utc_now_iso(),
        )
        self._commit(tasks=[task, *self._state.tasks])
        return TaskSaved(task)

    def toggle_task(self, task_id: str) -> TaskSaved | None:
        task = self._state.find_task(task_id)
        if task is None:
            return None
        updated = task.model_copy(update={"completed": not task.completed})
        self._replace_task(updated)
        return TaskSaved(updated)

    def toggle_important(self, task_id: str) -> TaskSaved | None:
        task = self._state.find_task(task_id)
        if task is None:
            return None
        updated = task.model_copy(update={"important": not task.important})
        self._replace_task(updated)
        return TaskSaved(updated)

    def set_task_tag(self, task_id: str, tag_id: str | None) -> TaskSaved | None:
        """Assign a tag to a task; None or an unknown id clears it."""
        task = self._state.find_task(task_id)
        if task is None:
            return None
        tag_id = self._valid_tag_id(tag_id)
        if task.tag_id == tag_id:
            return None
        updated = task.model_copy(update={"tag_id": tag_id})
        self._replace_task(updated)
        return TaskSaved(updated)

    def rename_task(self, task_id: str, title: str) -> TaskSaved | None:
        """Change a task's title.

        Raises:
            ValidationFailure: If the new title is empty
        """
        task = self._state.find_task(task_id)
        if task is None:
            return None
        if not isinstance(title, str) or not title.strip():
            raise ValidationFailure("Task title cannot be empty")
        title = title.strip()
        if title == task.title:
            return None
        updated = task.model_copy(update={"title": title})
        self._replace_task(updated)
        return TaskSaved(updated)

    def delete_task(self, task_id: str) -> TaskRemoved | None:
        if self._state.find_task(task_id) is None:
            return None
        self._commit(tasks=[task for task in self._state.tasks if task.id != task_id])
        return TaskRemoved(task_id)

    def move_task(self, dragged_id: str, target_id: str) -> TasksReordered | None:
        """Apply a drag gesture between two visible tasks; see ``plan_move``."""
        reordered = plan_move(self._state, dragged_id, target_id)
        if reordered is None:
            return None
        self._commit(tasks=reordered)
        return TasksReordered(tuple(reordered))

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def add_tag(self, name: str, color: str | None = None) -> TagSaved:
        """Create a tag.

        Raises:
            ValidationFailure: Empty or duplicate name (ignoring case), bad color
        """
        tag = build_tag(self._state.tags, name, color)
        self._commit(tags=[*self._state.tags, tag])
        return TagSaved(tag)

    def delete_tag(self, tag_id: str) -> TagRemoved | None:
        """Remove a tag, clear it from every task and from the filter in one step."""
        if self._state.find_tag(tag_id) is None:
            return None
        tasks, retagged = clear_tag_references(self._state.tasks, tag_id)
        tag_filter = self._state.active_tag_filter
        self._commit(
            tags=[tag for tag in self._state.tags if tag.id != tag_id],
            tasks=tasks,
            active_tag_filter=TAG_FILTER_ALL if tag_filter == tag_id else tag_filter,
        )
        return TagRemoved(tag_id, tuple(retagged))

    # ------------------------------------------------------------------
    # Preferences and bulk operations
    # ------------------------------------------------------------------

    def set_preference(self, key: str, value: Any) -> bool:
        """Update one view preference.

        Args:
            key: activeTab, showCompleted, sortImportant or activeTagFilter
                (snake_case spellings are accepted too)
            value: New value

        Returns:
            True if the state changed

        Raises:
            ValidationFailure: Unknown key, unknown tab, or non-boolean flag
        """
        attr = PREFERENCE_KEYS.get(key)
        if attr is None:
            raise ValidationFailure(f"Unknown preference: {key}")

        if attr == "active_tab":
            if value not in TABS:
                raise ValidationFailure(f"Unknown tab: {value}")
        elif attr == "active_tag_filter":
            value = normalize_tag_filter(value, self._state.tag_ids())
        elif not isinstance(value, bool):
            raise ValidationFailure(f"{key} must be true or false")

        if getattr(self._state, attr) == value:
            return False
        self._commit(**{attr: value})
        return True

    def replace_tasks(
        self, payload: Iterable[Task | dict[str, Any]], check_tags: bool = True
    ) -> AppState:
        """Snapshot replace: the payload becomes the whole task list.

        With ``check_tags`` false the incoming tag ids are kept as they are;
        the next ``replace_tags`` clears whichever of them it does not contain.
        """
        tasks = _parse_items(list(payload), Task, "task")
        if check_tags:
            tasks = drop_dangling_references(tasks, self._state.tag_ids())
        return self._commit(tasks=tasks)

    def replace_tags(self, payload: Iterable[Tag | dict[str, Any]]) -> AppState:
        """Snapshot replace for tags; references to vanished tags are cleared."""
        tags = _parse_items(list(payload), Tag, "tag")
        tag_ids = {tag.id for tag in tags}
        return self._commit(
            tags=tags,
            tasks=drop_dangling_references(self._state.tasks, tag_ids),
            active_tag_filter=normalize_tag_filter(self._state.active_tag_filter, tag_ids),
        )

    def reset_all(self) -> AppState:
        """Back to defaults. Callers must also drop pending guest buffers."""
        self._state = AppState()
        self.save()
        self._notify()
        return self._state
