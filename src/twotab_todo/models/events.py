"""Change events emitted by local store mutations.

Each committed mutation returns one of these so the sync coordinator can push
exactly what changed without re-reading the store.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .core import Tag, Task


@dataclass(frozen=True)
class TaskSaved:
    """A task was created or updated in place."""

    task: Task


@dataclass(frozen=True)
class TaskRemoved:
    task_id: str


@dataclass(frozen=True)
class TasksReordered:
    """The manual order changed; the whole list is the payload."""

    tasks: tuple[Task, ...]


@dataclass(frozen=True)
class TagSaved:
    tag: Tag


@dataclass(frozen=True)
class TagRemoved:
    """A tag was deleted; ``retagged`` holds the tasks whose tag was cleared."""

    tag_id: str
    retagged: tuple[Task, ...] = field(default_factory=tuple)


LocalChange = TaskSaved | TaskRemoved | TasksReordered | TagSaved | TagRemoved
