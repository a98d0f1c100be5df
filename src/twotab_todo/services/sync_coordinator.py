"""Sync coordinator - mediates between the local store and the remote store.

State machine::

    GUEST --(user signed in)--> AUTHENTICATING --(subscriptions open)--> SYNCED
    SYNCED --(user signed out)--> GUEST

Remote snapshots replace the matching local list wholesale; there is no
field-level merge. A local write made while a snapshot is in flight can be
overwritten by that snapshot when it lands (last snapshot wins).

Remote failures never propagate past this class: they are logged and posted
to the notice board, and never roll back a local change.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Coroutine
from enum import Enum
from typing import Any

from twotab_todo.models import (
    LocalChange,
    Tag,
    TagRemoved,
    TagSaved,
    Task,
    TaskRemoved,
    TaskSaved,
    TasksReordered,
    User,
)
from twotab_todo.repositories import RemoteStore, Unsubscribe
from twotab_todo.utils.logger import get_logger

from .local_store import LocalStore
from .notifier import NoticeBoard

logger = get_logger(__name__)

_SNAPSHOT_KINDS = frozenset({"tasks", "tags"})


class SyncStatus(str, Enum):
    GUEST = "guest"
    AUTHENTICATING = "authenticating"
    SYNCED = "synced"


class SyncCoordinator:
    """Keeps the local store and a remote store in step for one signed-in user."""

    def __init__(self, store: LocalStore, remote: RemoteStore, notices: NoticeBoard):
        """Initialize the coordinator.

        Args:
            store: The local store; the only state this class writes to
            remote: Remote store collaborator
            notices: Where user-facing outcomes are posted
        """
        self.store = store
        self.remote = remote
        self.notices = notices

        self.status = SyncStatus.GUEST
        self.current_user: User | None = None

        # Guest content waiting for its one-time upload after sign-in
        self.pending_guest_tasks: list[Task] = []
        self.pending_guest_tags: list[Tag] = []

        self._session = 0
        self._unsubscribe_auth: Unsubscribe | None = None
        self._unsubscribe_tasks: Unsubscribe | None = None
        self._unsubscribe_tags: Unsubscribe | None = None
        self._background: set[asyncio.Task[Any]] = set()
        self._snapshots_seen: set[str] = set()
        self._snapshot_ready = asyncio.Event()

    @property
    def is_synced(self) -> bool:
        return self.status is SyncStatus.SYNCED and self.current_user is not None

    @property
    def session(self) -> int:
        """Token of the current subscription session; bumps on every detach."""
        return self._session

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """Begin listening for auth changes.

        Returns:
            False when the remote is not configured; the app stays in guest mode
        """
        if not self.remote.is_ready():
            logger.info("Remote store not configured, staying in guest mode")
            self.notices.post("Sync is not configured. Staying in guest mode.")
            return False
        if self._unsubscribe_auth is None:
            self._unsubscribe_auth = self.remote.on_auth_state_changed(self.handle_auth_change)
        return True

    async def close(self) -> None:
        """Finish outstanding pushes and detach every listener."""
        await self.drain()
        self._stop_remote_sync()
        if self._unsubscribe_auth is not None:
            self._unsubscribe_auth()
            self._unsubscribe_auth = None

    async def drain(self) -> None:
        """Wait for background pushes and uploads scheduled so far."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def wait_for_snapshot(self, timeout: float) -> bool:
        """Wait until both collections delivered a snapshot in this session."""
        if not self.is_synced:
            return False
        try:
            await asyncio.wait_for(self._snapshot_ready.wait(), timeout)
        except TimeoutError:
            logger.warning("No remote snapshot within %.1fs", timeout)
            return False
        return True

    def clear_guest_buffers(self) -> None:
        self.pending_guest_tasks = []
        self.pending_guest_tags = []

    # ------------------------------------------------------------------
    # Auth transitions
    # ------------------------------------------------------------------

    def handle_auth_change(self, user: User | None) -> None:
        """Callback for the remote's auth state notifications."""
        if user is None:
            self._enter_guest()
            return
        self._enter_authenticating(user)
        self._start_remote_sync(user)

    def _enter_authenticating(self, user: User) -> None:
        logger.info("Signed in as %s", user.email or user.uid)
        self.current_user = user
        self.status = SyncStatus.AUTHENTICATING
        state = self.store.state
        # copies: a snapshot may replace the store's lists before the upload runs
        self.pending_guest_tasks = [task.model_copy() for task in state.tasks]
        self.pending_guest_tags = [tag.model_copy() for tag in state.tags]

    def _start_remote_sync(self, user: User) -> None:
        self._stop_remote_sync()
        session = self._session
        self._snapshots_seen = set()
        self._snapshot_ready.clear()

        # tags first so task snapshots find their tags already in place
        self._unsubscribe_tags = self.remote.subscribe_to_tags(
            user.uid,
            lambda tags: self._on_tags_snapshot(session, tags),
            lambda error: self._on_snapshot_error(session, "tags", error),
        )
        self._unsubscribe_tasks = self.remote.subscribe_to_tasks(
            user.uid,
            lambda tasks: self._on_tasks_snapshot(session, tasks),
            lambda error: self._on_snapshot_error(session, "tasks", error),
        )
        self.status = SyncStatus.SYNCED

        if self.pending_guest_tasks or self.pending_guest_tags:
            self._spawn(self._import_guest_data(session, user.uid))

    def _stop_remote_sync(self) -> None:
        # bump first so callbacks already queued for the old session are ignored
        self._session += 1
        for unsubscribe in (self._unsubscribe_tasks, self._unsubscribe_tags):
            if unsubscribe is not None:
                unsubscribe()
        self._unsubscribe_tasks = None
        self._unsubscribe_tags = None

    def _enter_guest(self) -> None:
        was_signed_in = self.current_user is not None
        self._stop_remote_sync()
        self.current_user = None
        self.status = SyncStatus.GUEST
        if was_signed_in:
            logger.info("Signed out, reloading local cache")
        self.store.load()

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def _is_live(self, session: int) -> bool:
        return session == self._session and self.status is not SyncStatus.GUEST

    def _on_tasks_snapshot(self, session: int, tasks: list[Task]) -> None:
        if not self._is_live(session):
            logger.debug("Ignoring task snapshot from closed session %d", session)
            return
        # until this session has seen its tags, local tags say nothing about tag ids
        self.store.replace_tasks(
            tasks if isinstance(tasks, list) else [],
            check_tags="tags" in self._snapshots_seen,
        )
        self._mark_snapshot("tasks")

    def _on_tags_snapshot(self, session: int, tags: list[Tag]) -> None:
        if not self._is_live(session):
            logger.debug("Ignoring tag snapshot from closed session %d", session)
            return
        self.store.replace_tags(tags if isinstance(tags, list) else [])
        self._mark_snapshot("tags")

    def _mark_snapshot(self, kind: str) -> None:
        self._snapshots_seen.add(kind)
        if self._snapshots_seen >= _SNAPSHOT_KINDS:
            self._snapshot_ready.set()

    def _on_snapshot_error(self, session: int, kind: str, error: Exception) -> None:
        if not self._is_live(session):
            return
        logger.error("Realtime %s sync error: %s", kind, error)
        self.notices.failure("Realtime sync failed.")

    async def _import_guest_data(self, session: int, user_id: str) -> None:
        """Upload the guest buffers once; each is cleared only after success."""
        if self.pending_guest_tags:
            tags = list(self.pending_guest_tags)
            try:
                await self.remote.upsert_tags(user_id, tags)
            except Exception as e:
                logger.error("Failed to import guest tags: %s", e)
                self.notices.failure("Unable to import guest tags.")
            else:
                if session == self._session:
                    self.pending_guest_tags = []

        if self.pending_guest_tasks:
            tasks = list(self.pending_guest_tasks)
            try:
                await self.remote.upsert_tasks(user_id, tasks)
            except Exception as e:
                logger.error("Failed to import guest tasks: %s", e)
                self.notices.failure("Unable to import guest tasks.")
            else:
                if session == self._session:
                    self.pending_guest_tasks = []

    # ------------------------------------------------------------------
    # Pushes
    # ------------------------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def _guarded(self, action: Awaitable[Any], failure_message: str) -> bool:
        try:
            await action
        except Exception as e:
            logger.error("%s (%s: %s)", failure_message, type(e).__name__, e)
            self.notices.failure(failure_message)
            return False
        return True

    async def _push_tag_removal(self, user_id: str, change: TagRemoved) -> None:
        await self.remote.delete_tag(user_id, change.tag_id)
        if change.retagged:
            await self.remote.upsert_tasks(user_id, list(change.retagged))

    def push(self, change: LocalChange | None) -> asyncio.Task[Any] | None:
        """Mirror an already-committed local change to the remote, fire-and-forget.

        Returns:
            The scheduled task, or None when not synced or nothing changed
        """
        if change is None or not self.is_synced or not self.remote.is_ready():
            return None
        user_id = self.current_user.uid  # type: ignore[union-attr]

        action: Awaitable[Any]
        match change:
            case TaskSaved(task=task):
                action = self.remote.save_task(user_id, task)
                failure = "Unable to sync task right now."
            case TaskRemoved(task_id=task_id):
                action = self.remote.delete_task(user_id, task_id)
                failure = "Unable to delete task in cloud."
            case TasksReordered(tasks=tasks):
                action = self.remote.upsert_tasks(user_id, list(tasks))
                failure = "Unable to sync the new order."
            case TagSaved(tag=tag):
                action = self.remote.save_tag(user_id, tag)
                failure = "Unable to sync tag right now."
            case TagRemoved():
                action = self._push_tag_removal(user_id, change)
                failure = "Unable to delete tag in cloud."
            case _:
                raise TypeError(f"Unsupported change: {change!r}")

        return self._spawn(self._guarded(action, failure))

    async def sync_now(self) -> bool:
        """Force-push every task and, if there are any, every tag."""
        if not self.is_synced:
            self.notices.failure("Sign in to sync across devices.")
            return False
        user_id = self.current_user.uid  # type: ignore[union-attr]
        state = self.store.state
        self.notices.post("Syncing…")
        try:
            await self.remote.upsert_tasks(user_id, list(state.tasks))
            if state.tags:
                await self.remote.upsert_tags(user_id, list(state.tags))
        except Exception as e:
            logger.error("Manual sync failed: %s", e)
            self.notices.failure("Unable to sync right now.")
            return False
        self.notices.success("Sync complete.")
        return True

    async def clear_remote(self) -> bool:
        """Delete the signed-in user's remote tasks and tags. No-op as guest."""
        if not self.is_synced:
            return False
        user_id = self.current_user.uid  # type: ignore[union-attr]
        try:
            await self.remote.clear_tasks(user_id)
            await self.remote.clear_tags(user_id)
        except Exception as e:
            logger.error("Failed to clear remote data: %s", e)
            self.notices.failure("Unable to clear remote tasks")
            return False
        self.notices.success("Cleared cloud tasks")
        return True

    # ------------------------------------------------------------------
    # Auth actions
    # ------------------------------------------------------------------

    async def _authenticate(
        self,
        action: Callable[[str, str], Awaitable[None]],
        email: str,
        password: str,
        success: str,
        failure: str,
    ) -> bool:
        if not self.remote.is_ready():
            self.notices.failure("Sync is not configured yet.")
            return False
        try:
            await action(email, password)
        except Exception as e:
            logger.error("%s: %s", failure, e)
            self.notices.failure(str(e) or failure)
            return False
        self.notices.success(success)
        return True

    async def sign_in(self, email: str, password: str) -> bool:
        return await self._authenticate(
            self.remote.sign_in, email, password, "Signed in. Syncing tasks…", "Sign in failed"
        )

    async def sign_up(self, email: str, password: str) -> bool:
        return await self._authenticate(
            self.remote.sign_up,
            email,
            password,
            "Account created. Signed in.",
            "Account creation failed",
        )

    async def sign_out(self) -> bool:
        if not self.remote.is_ready():
            return False
        try:
            await self.remote.sign_out()
        except Exception as e:
            logger.error("Sign out failed: %s", e)
            self.notices.failure("Unable to sign out right now.")
            return False
        self.notices.success("Signed out. Back to guest mode.")
        return True
