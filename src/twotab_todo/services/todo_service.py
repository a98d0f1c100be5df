"""Todo service - user actions sequenced as mutate, persist, re-render, push.

The local store commits and persists synchronously; listeners registered with
``on_render`` receive the freshly derived view; only then is the change handed
to the sync coordinator, which pushes it in the background.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from twotab_todo.exceptions import ValidationFailure
from twotab_todo.models import AppState, LocalChange, Tag, Task
from twotab_todo.repositories import RemoteStore, StateCache, Unsubscribe
from twotab_todo.utils.logger import get_logger

from .local_store import LocalStore
from .notifier import DEFAULT_NOTICE_DURATION, NoticeBoard
from .sync_coordinator import SyncCoordinator
from .view_pipeline import TaskStats, ViewResult, compute_stats, derive_view

logger = get_logger(__name__)

RenderListener = Callable[[ViewResult], None]


class TodoService:
    """Facade over the store, the view pipeline and the sync coordinator."""

    def __init__(self, store: LocalStore, coordinator: SyncCoordinator, notices: NoticeBoard):
        self.store = store
        self.coordinator = coordinator
        self.notices = notices
        self._render_listeners: list[RenderListener] = []
        self._unsubscribe_store = store.subscribe(self._on_state_changed)

    @classmethod
    def create(
        cls,
        cache: StateCache,
        remote: RemoteStore,
        notice_duration: float = DEFAULT_NOTICE_DURATION,
    ) -> TodoService:
        """Wire a service from its two collaborators and load the cached state."""
        store = LocalStore(cache)
        notices = NoticeBoard(default_duration=notice_duration)
        service = cls(store, SyncCoordinator(store, remote, notices), notices)
        store.load()
        return service

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    @property
    def state(self) -> AppState:
        return self.store.state

    def view(self) -> ViewResult:
        return derive_view(self.store.state)

    def stats(self) -> TaskStats:
        return compute_stats(self.store.state)

    def on_render(self, listener: RenderListener) -> Unsubscribe:
        """Register a listener that receives a new view after each state change."""
        self._render_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._render_listeners:
                self._render_listeners.remove(listener)

        return unsubscribe

    def _on_state_changed(self, state: AppState) -> None:
        if not self._render_listeners:
            return
        view = derive_view(state)
        for listener in list(self._render_listeners):
            listener(view)

    def _after_commit(self, change: LocalChange | None) -> None:
        if change is not None:
            self.coordinator.push(change)

    # ------------------------------------------------------------------
    # Task actions
    # ------------------------------------------------------------------

    def add_task(
        self,
        title: str,
        tab: str | None = None,
        tag_id: str | None = None,
        important: bool = False,
    ) -> Task | None:
        change = self.store.add_task(title, tab=tab, tag_id=tag_id, important=important)
        self._after_commit(change)
        return change.task if change else None

    def toggle_task(self, task_id: str) -> Task | None:
        change = self.store.toggle_task(task_id)
        self._after_commit(change)
        return change.task if change else None

    def toggle_important(self, task_id: str) -> Task | None:
        change = self.store.toggle_important(task_id)
        self._after_commit(change)
        return change.task if change else None

    def set_task_tag(self, task_id: str, tag_id: str | None) -> Task | None:
        change = self.store.set_task_tag(task_id, tag_id)
        self._after_commit(change)
        return change.task if change else None

    def rename_task(self, task_id: str, title: str) -> Task | None:
        try:
            change = self.store.rename_task(task_id, title)
        except ValidationFailure as e:
            self.notices.failure(str(e))
            return None
        self._after_commit(change)
        return change.task if change else None

    def delete_task(self, task_id: str) -> bool:
        change = self.store.delete_task(task_id)
        self._after_commit(change)
        return change is not None

    def move_task(self, dragged_id: str, target_id: str) -> bool:
        """Drop ``dragged_id`` onto ``target_id``; ignored while sorting by importance."""
        change = self.store.move_task(dragged_id, target_id)
        self._after_commit(change)
        return change is not None

    # ------------------------------------------------------------------
    # Tag actions
    # ------------------------------------------------------------------

    def add_tag(self, name: str, color: str | None = None) -> Tag | None:
        try:
            change = self.store.add_tag(name, color)
        except ValidationFailure as e:
            logger.info("Rejected tag %r: %s", name, e)
            self.notices.failure(str(e))
            return None
        self._after_commit(change)
        return change.tag

    def delete_tag(self, tag_id: str) -> bool:
        change = self.store.delete_tag(tag_id)
        self._after_commit(change)
        return change is not None

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def set_preference(self, key: str, value: Any) -> bool:
        try:
            return self.store.set_preference(key, value)
        except ValidationFailure as e:
            self.notices.failure(str(e))
            return False

    def set_active_tab(self, tab: str) -> bool:
        return self.set_preference("activeTab", tab)

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def start(self) -> bool:
        return self.coordinator.start()

    async def close(self) -> None:
        await self.coordinator.close()
        self._unsubscribe_store()

    async def clear_all(self) -> None:
        """Remove every task and tag, remotely first when signed in."""
        await self.coordinator.clear_remote()
        self.store.reset_all()
        self.coordinator.clear_guest_buffers()

    async def sign_in(self, email: str, password: str) -> bool:
        return await self.coordinator.sign_in(email, password)

    async def sign_up(self, email: str, password: str) -> bool:
        return await self.coordinator.sign_up(email, password)

    async def sign_out(self) -> bool:
        return await self.coordinator.sign_out()

    async def sync_now(self) -> bool:
        return await self.coordinator.sync_now()
