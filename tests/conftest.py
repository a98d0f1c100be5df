"""Shared test fixtures and configuration.

Provides an in-memory remote store and keeps tests away from real
config, data and log directories.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any
from unittest.mock import patch

import pytest

from twotab_todo.adapters import MemoryStateCache
from twotab_todo.exceptions import RemoteTransportFailure
from twotab_todo.models import Tag, Task, User
from twotab_todo.repositories import RemoteStore
from twotab_todo.services import LocalStore, NoticeBoard, SyncCoordinator, TodoService


# ---------------------------------------------------------------------------
# Fake remote store
# ---------------------------------------------------------------------------


@dataclass
class Subscription:
    user_id: str
    on_update: Callable[[list[Any]], None]
    on_error: Callable[[Exception], None]
    active: bool = True

    def cancel(self) -> None:
        self.active = False


@dataclass
class FakeRemoteStore(RemoteStore):
    """RemoteStore double recording every call; methods named in ``fail`` raise."""

    ready: bool = True
    user: User | None = None
    fail: set[str] = field(default_factory=set)
    calls: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)
    auth_listeners: list[Callable[[User | None], None]] = field(default_factory=list)
    task_subs: list[Subscription] = field(default_factory=list)
    tag_subs: list[Subscription] = field(default_factory=list)

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if name in self.fail:
            raise RemoteTransportFailure(f"{name} failed")

    def called(self, name: str) -> list[tuple[Any, ...]]:
        return [args for call, args in self.calls if call == name]

    # auth

    def is_ready(self) -> bool:
        return self.ready

    def on_auth_state_changed(self, callback):
        if not self.ready:
            callback(None)
            return lambda: None
        self.auth_listeners.append(callback)
        callback(self.user)
        return lambda: self.auth_listeners.remove(callback)

    def emit_auth(self, user: User | None) -> None:
        self.user = user
        for listener in list(self.auth_listeners):
            listener(user)

    async def sign_in(self, email, password):
        self._record("sign_in", email, password)
        self.emit_auth(User(uid="user-1", email=email))

    async def sign_up(self, email, password):
        self._record("sign_up", email, password)
        self.emit_auth(User(uid="user-1", email=email))

    async def sign_out(self):
        self._record("sign_out")
        self.emit_auth(None)

    # documents

    async def save_task(self, user_id, task):
        self._record("save_task", user_id, task)

    async def delete_task(self, user_id, task_id):
        self._record("delete_task", user_id, task_id)

    async def upsert_tasks(self, user_id, tasks):
        self._record("upsert_tasks", user_id, list(tasks))

    async def clear_tasks(self, user_id):
        self._record("clear_tasks", user_id)

    async def save_tag(self, user_id, tag):
        self._record("save_tag", user_id, tag)

    async def delete_tag(self, user_id, tag_id):
        self._record("delete_tag", user_id, tag_id)

    async def upsert_tags(self, user_id, tags):
        self._record("upsert_tags", user_id, list(tags))

    async def clear_tags(self, user_id):
        self._record("clear_tags", user_id)

    # snapshots

    def subscribe_to_tasks(self, user_id, on_update, on_error):
        self.calls.append(("subscribe_to_tasks", (user_id,)))
        sub = Subscription(user_id, on_update, on_error)
        self.task_subs.append(sub)
        return sub.cancel

    def subscribe_to_tags(self, user_id, on_update, on_error):
        self.calls.append(("subscribe_to_tags", (user_id,)))
        sub = Subscription(user_id, on_update, on_error)
        self.tag_subs.append(sub)
        return sub.cancel

    async def aclose(self) -> None:
        self.calls.append(("aclose", ()))

    def emit_tasks(self, tasks: list[Task]) -> None:
        for sub in self.task_subs:
            if sub.active:
                sub.on_update(list(tasks))

    def emit_tags(self, tags: list[Tag]) -> None:
        for sub in self.tag_subs:
            if sub.active:
                sub.on_update(list(tags))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_log_dir(tmp_path):
    """Send any configured log file into the test's tmp directory."""
    with patch("twotab_todo.utils.logger.user_log_dir", return_value=str(tmp_path / "logs")):
        yield


@pytest.fixture()
def cache():
    return MemoryStateCache()


@pytest.fixture()
def store(cache):
    return LocalStore(cache)


@pytest.fixture()
def notices():
    return NoticeBoard()


@pytest.fixture()
def remote():
    return FakeRemoteStore()


@pytest.fixture()
def coordinator(store, remote, notices):
    return SyncCoordinator(store, remote, notices)


@pytest.fixture()
def service(store, coordinator, notices):
    return TodoService(store, coordinator, notices)


@pytest.fixture()
def tmp_config(tmp_path):
    """Provide a real ConfigService backed by a temporary directory.

    Patches platform dirs so config/data files land in *tmp_path* only.
    Also clears the lru_cache so each test gets a fresh service instance.
    """
    from twotab_todo.services.config_service import ConfigService, get_config_service

    tmpdir = str(tmp_path)
    get_config_service.cache_clear()
    with (
        patch("twotab_todo.services.config_service.user_config_dir", return_value=tmpdir),
        patch("twotab_todo.services.config_service.user_data_dir", return_value=tmpdir),
    ):
        yield ConfigService()
    get_config_service.cache_clear()


@pytest.fixture()
def cli_env(tmp_config):
    """Route CLI commands to a temporary config and data directory."""
    from twotab_todo.services.config_service import get_config_service

    get_config_service.cache_clear()
    yield tmp_config
    get_config_service.cache_clear()
