"""REST API adapter - RemoteStore implementation over the sync HTTP API.

Endpoints (relative to the configured base URL)::

    POST   /auth/login | /auth/signup     {"email", "password"} -> {"token", "user"}
    POST   /auth/logout
    GET    /users/{uid}/{collection}      list, newest ``createdAt`` first
    PUT    /users/{uid}/{collection}/{id} one document
    DELETE /users/{uid}/{collection}/{id}
    POST   /users/{uid}/{collection}/batch {"items": [...]} atomic upsert
    DELETE /users/{uid}/{collection}      clear

``collection`` is ``tasks`` or ``tags``. Live snapshots are produced by
polling the list endpoint; a snapshot is delivered on the first poll and
whenever the payload changes.

Without a configured endpoint the store reports not-ready: writes resolve
without doing anything, sign-in raises ``NotConfigured`` and subscriptions
report ``NotConfigured`` through their error callback.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from twotab_todo.api.client import APIClient
from twotab_todo.exceptions import NotConfigured, RemoteTransportFailure
from twotab_todo.models import RemoteConfig, Tag, Task, User, utc_now_iso
from twotab_todo.repositories import (
    AuthCallback,
    ErrorCallback,
    RemoteStore,
    TagsCallback,
    TasksCallback,
    Unsubscribe,
)
from twotab_todo.utils.logger import get_logger

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _noop_unsubscribe() -> None:
    return None


def _stamp(record: dict[str, Any]) -> dict[str, Any]:
    return {**record, "updatedAt": utc_now_iso()}


def _parse_collection(body: Any, model: type[ModelT]) -> list[ModelT]:
    """Accept either a bare list or ``{"items": [...]}`` and validate each entry."""
    if isinstance(body, dict):
        body = body.get("items")
    if not isinstance(body, list):
        raise RemoteTransportFailure("Unexpected snapshot payload")
    items: list[ModelT] = []
    for entry in body:
        try:
            items.append(model.model_validate(entry))
        except ValidationError as e:
            logger.warning("Skipping malformed remote %s: %s", model.__name__, e.errors()[0]["msg"])
    return items


class RestApiRemoteStore(RemoteStore):
    """Remote store talking to the sync API with a persisted bearer token."""

    def __init__(
        self,
        config: RemoteConfig,
        credentials_path: str | Path | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the adapter.

        Args:
            config: Remote configuration (endpoint, timeout, retry, poll interval)
            credentials_path: JSON file keeping the session between runs
            transport: Optional httpx transport, mainly for tests
        """
        self.config = config
        self.credentials_path = Path(credentials_path) if credentials_path else None
        self._credentials: dict[str, Any] | None = self._load_credentials()
        self._auth_listeners: list[AuthCallback] = []
        self.client = APIClient(config, token_provider=self._token, transport=transport)

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def _token(self) -> str | None:
        if self._credentials is None:
            return None
        return self._credentials.get("token")

    def _load_credentials(self) -> dict[str, Any] | None:
        if self.credentials_path is None or not self.credentials_path.exists():
            return None
        try:
            data = json.loads(self.credentials_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable credentials: %s", e)
            return None
        if not isinstance(data, dict) or "token" not in data or "user" not in data:
            return None
        return data

    def _save_credentials(self) -> None:
        if self.credentials_path is None or self._credentials is None:
            return
        self.credentials_path.parent.mkdir(parents=True, exist_ok=True)
        self.credentials_path.write_text(json.dumps(self._credentials, indent=2), encoding="utf-8")
        # Set secure file permissions
        self.credentials_path.chmod(0o600)

    def _clear_credentials(self) -> None:
        self._credentials = None
        if self.credentials_path is not None:
            self.credentials_path.unlink(missing_ok=True)

    @property
    def current_user(self) -> User | None:
        if self._credentials is None:
            return None
        try:
            return User.model_validate(self._credentials["user"])
        except ValidationError:
            return None

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def is_ready(self) -> bool:
        return self.config.is_configured

    def on_auth_state_changed(self, callback: AuthCallback) -> Unsubscribe:
        if not self.is_ready():
            callback(None)
            return _noop_unsubscribe
        self._auth_listeners.append(callback)
        callback(self.current_user)

        def unsubscribe() -> None:
            if callback in self._auth_listeners:
                self._auth_listeners.remove(callback)

        return unsubscribe

    def _emit_auth(self) -> None:
        user = self.current_user
        for listener in list(self._auth_listeners):
            listener(user)

    async def _authenticate(self, path: str, email: str, password: str) -> None:
        if not self.is_ready():
            raise NotConfigured()
        response = await self.client.post(
            path, json={"email": email, "password": password}, skip_auth=True
        )
        try:
            data = response.json()
            token = data["token"]
            user = User.model_validate(data["user"])
        except (ValueError, KeyError, TypeError, ValidationError) as e:
            raise RemoteTransportFailure("Unexpected authentication response") from e
        self._credentials = {"token": token, "user": user.model_dump()}
        self._save_credentials()
        self._emit_auth()

    async def sign_in(self, email: str, password: str) -> None:
        await self._authenticate("/auth/login", email, password)

    async def sign_up(self, email: str, password: str) -> None:
        await self._authenticate("/auth/signup", email, password)

    async def sign_out(self) -> None:
        if not self.is_ready() or self._credentials is None:
            return
        try:
            await self.client.post("/auth/logout")
        except RemoteTransportFailure as e:
            # the local session ends either way
            logger.warning("Server-side logout failed: %s", e)
        self._clear_credentials()
        self._emit_auth()

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def _save(self, user_id: str, collection: str, doc_id: str, record: dict[str, Any]) -> None:
        if not self.is_ready():
            return
        await self.client.put(f"/users/{user_id}/{collection}/{doc_id}", json=_stamp(record))

    async def _delete(self, user_id: str, collection: str, doc_id: str) -> None:
        if not self.is_ready():
            return
        await self.client.delete(f"/users/{user_id}/{collection}/{doc_id}")

    async def _upsert(self, user_id: str, collection: str, records: list[dict[str, Any]]) -> None:
        if not self.is_ready() or not records:
            return
        await self.client.post(
            f"/users/{user_id}/{collection}/batch",
            json={"items": [_stamp(record) for record in records]},
        )

    async def _clear(self, user_id: str, collection: str) -> None:
        if not self.is_ready():
            return
        await self.client.delete(f"/users/{user_id}/{collection}")

    async def save_task(self, user_id: str, task: Task) -> None:
        await self._save(user_id, "tasks", task.id, task.to_record())

    async def delete_task(self, user_id: str, task_id: str) -> None:
        await self._delete(user_id, "tasks", task_id)

    async def upsert_tasks(self, user_id: str, tasks: list[Task]) -> None:
        await self._upsert(user_id, "tasks", [task.to_record() for task in tasks])

    async def clear_tasks(self, user_id: str) -> None:
        await self._clear(user_id, "tasks")

    async def save_tag(self, user_id: str, tag: Tag) -> None:
        await self._save(user_id, "tags", tag.id, tag.to_record())

    async def delete_tag(self, user_id: str, tag_id: str) -> None:
        await self._delete(user_id, "tags", tag_id)

    async def upsert_tags(self, user_id: str, tags: list[Tag]) -> None:
        await self._upsert(user_id, "tags", [tag.to_record() for tag in tags])

    async def clear_tags(self, user_id: str) -> None:
        await self._clear(user_id, "tags")

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def _poll(
        self,
        path: str,
        model: type[ModelT],
        on_update: Any,
        on_error: ErrorCallback,
    ) -> Unsubscribe:
        async def run() -> None:
            # compared raw: records without createdAt get a fresh one on every parse
            last_body: Any = None
            while True:
                try:
                    response = await self.client.get(
                        path, params={"orderBy": "createdAt", "direction": "desc"}
                    )
                    body = response.json()
                    if body == last_body:
                        items = None
                    else:
                        items = _parse_collection(body, model)
                        last_body = body
                except (RemoteTransportFailure, ValueError) as e:
                    on_error(e)
                else:
                    if items is not None:
                        on_update(items)
                await asyncio.sleep(self.config.poll_interval)

        task = asyncio.get_running_loop().create_task(run())

        def unsubscribe() -> None:
            task.cancel()

        return unsubscribe

    def subscribe_to_tasks(
        self, user_id: str, on_update: TasksCallback, on_error: ErrorCallback
    ) -> Unsubscribe:
        if not self.is_ready():
            on_error(NotConfigured())
            return _noop_unsubscribe
        return self._poll(f"/users/{user_id}/tasks", Task, on_update, on_error)

    def subscribe_to_tags(
        self, user_id: str, on_update: TagsCallback, on_error: ErrorCallback
    ) -> Unsubscribe:
        if not self.is_ready():
            on_error(NotConfigured())
            return _noop_unsubscribe
        return self._poll(f"/users/{user_id}/tags", Tag, on_update, on_error)

    async def aclose(self) -> None:
        await self.client.close()
