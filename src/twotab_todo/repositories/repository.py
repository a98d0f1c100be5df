"""Port definitions for the two-tab todo engine.

These abstract base classes are the seams between the engine and the outside
world, following the hexagonal architecture (Ports & Adapters) pattern:

- ``StateCache``: durable storage for the serialized application state
- ``RemoteStore``: the multi-device store the sync coordinator talks to

Adapters live in ``twotab_todo.adapters``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from twotab_todo.models import Tag, Task, User

Unsubscribe = Callable[[], None]
AuthCallback = Callable[[User | None], None]
TasksCallback = Callable[[list[Task]], None]
TagsCallback = Callable[[list[Tag]], None]
ErrorCallback = Callable[[Exception], None]


class StateCache(ABC):
    """Opaque text storage for the cached state record."""

    @abstractmethod
    def read(self) -> str | None:
        """Return the stored text, or None when nothing has been saved.

        Raises:
            PersistenceFailure: If the storage cannot be read
        """
        raise NotImplementedError("StateCache.read() must be implemented by adapter")

    @abstractmethod
    def write(self, text: str) -> None:
        """Replace the stored text.

        Raises:
            PersistenceFailure: If the storage cannot be written
        """
        raise NotImplementedError("StateCache.write() must be implemented by adapter")

    @abstractmethod
    def clear(self) -> None:
        """Remove the stored text."""
        raise NotImplementedError("StateCache.clear() must be implemented by adapter")


class RemoteStore(ABC):
    """Multi-device store for tasks and tags, keyed by user id.

    All writes are idempotent per document: saving the same id again
    overwrites it. Batch upserts are atomic per batch. When ``is_ready()`` is
    False, writes resolve without contacting anything.
    """

    @abstractmethod
    def is_ready(self) -> bool:
        """Whether the store is configured and usable."""

    @abstractmethod
    def on_auth_state_changed(self, callback: AuthCallback) -> Unsubscribe:
        """Register for sign-in/sign-out notifications.

        The callback receives the signed-in ``User`` or None.
        """

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> None:
        """Authenticate an existing account."""

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> None:
        """Create an account and sign it in."""

    @abstractmethod
    async def sign_out(self) -> None:
        """End the current session."""

    @abstractmethod
    async def save_task(self, user_id: str, task: Task) -> None:
        """Create or overwrite one task."""

    @abstractmethod
    async def delete_task(self, user_id: str, task_id: str) -> None:
        """Delete one task."""

    @abstractmethod
    async def upsert_tasks(self, user_id: str, tasks: list[Task]) -> None:
        """Create or overwrite many tasks in one batch."""

    @abstractmethod
    async def clear_tasks(self, user_id: str) -> None:
        """Delete every task of the user."""

    @abstractmethod
    async def save_tag(self, user_id: str, tag: Tag) -> None:
        """Create or overwrite one tag."""

    @abstractmethod
    async def delete_tag(self, user_id: str, tag_id: str) -> None:
        """Delete one tag."""

    @abstractmethod
    async def upsert_tags(self, user_id: str, tags: list[Tag]) -> None:
        """Create or overwrite many tags in one batch."""

    @abstractmethod
    async def clear_tags(self, user_id: str) -> None:
        """Delete every tag of the user."""

    @abstractmethod
    def subscribe_to_tasks(
        self, user_id: str, on_update: TasksCallback, on_error: ErrorCallback
    ) -> Unsubscribe:
        """Deliver full task snapshots until unsubscribed."""

    @abstractmethod
    def subscribe_to_tags(
        self, user_id: str, on_update: TagsCallback, on_error: ErrorCallback
    ) -> Unsubscribe:
        """Deliver full tag snapshots until unsubscribed."""
