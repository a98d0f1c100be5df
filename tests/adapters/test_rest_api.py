"""Tests for the REST remote store, using httpx.MockTransport."""

import asyncio
import json
import stat

import httpx
import pytest

from twotab_todo.adapters import RestApiRemoteStore
from twotab_todo.exceptions import NotConfigured, RemoteTransportFailure
from twotab_todo.models import RemoteConfig, Tag, Task, User

ENDPOINT = "https://sync.test/api"


class Recorder:
    """MockTransport handler that records requests and replies from a route table."""

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        reply = self.routes.get(key)
        if callable(reply):
            return reply(request)
        if reply is None:
            return httpx.Response(200, json={})
        return reply

    def bodies(self):
        return [json.loads(r.content) if r.content else None for r in self.requests]


def _store(tmp_path, recorder, **remote):
    config = RemoteConfig(endpoint=ENDPOINT, retry=0, poll_interval=0.01, **remote)
    return RestApiRemoteStore(
        config,
        credentials_path=tmp_path / "credentials.json",
        transport=httpx.MockTransport(recorder),
    )


def _login_reply(uid="user-1"):
    return httpx.Response(200, json={"token": "tok-123", "user": {"uid": uid, "email": "a@b.c"}})


async def _signed_in(tmp_path, recorder):
    recorder.routes[("POST", "/api/auth/login")] = _login_reply()
    store = _store(tmp_path, recorder)
    await store.sign_in("a@b.c", "pw")
    recorder.requests.clear()
    return store


class TestNotConfigured:
    @pytest.mark.asyncio
    async def test_behaves_as_not_ready(self):
        store = RestApiRemoteStore(RemoteConfig())
        users, errors = [], []

        assert store.is_ready() is False
        store.on_auth_state_changed(users.append)
        assert users == [None]

        with pytest.raises(NotConfigured):
            await store.sign_in("a@b.c", "pw")
        await store.save_task("u", Task(id="t1", title="x"))
        await store.clear_tags("u")

        unsubscribe = store.subscribe_to_tasks("u", lambda items: None, errors.append)
        unsubscribe()
        assert isinstance(errors[0], NotConfigured)
        await store.aclose()


class TestAuth:
    @pytest.mark.asyncio
    async def test_sign_in_saves_credentials_and_notifies(self, tmp_path):
        recorder = Recorder({("POST", "/api/auth/login"): _login_reply()})
        store = _store(tmp_path, recorder)
        users = []
        store.on_auth_state_changed(users.append)

        await store.sign_in("a@b.c", "pw")

        assert users == [None, User(uid="user-1", email="a@b.c")]
        assert "authorization" not in recorder.requests[0].headers
        assert recorder.bodies()[0] == {"email": "a@b.c", "password": "pw"}
        saved = json.loads((tmp_path / "credentials.json").read_text())
        assert saved["token"] == "tok-123"
        mode = (tmp_path / "credentials.json").stat().st_mode
        assert stat.S_IMODE(mode) == 0o600
        await store.aclose()

    @pytest.mark.asyncio
    async def test_session_survives_restart(self, tmp_path):
        recorder = Recorder()
        first = await _signed_in(tmp_path, recorder)
        await first.aclose()

        second = _store(tmp_path, recorder)
        users = []
        second.on_auth_state_changed(users.append)
        assert users == [User(uid="user-1", email="a@b.c")]
        await second.aclose()

    @pytest.mark.asyncio
    async def test_sign_up_uses_signup_endpoint(self, tmp_path):
        recorder = Recorder({("POST", "/api/auth/signup"): _login_reply()})
        store = _store(tmp_path, recorder)
        await store.sign_up("a@b.c", "pw")
        assert store.current_user.uid == "user-1"
        await store.aclose()

    @pytest.mark.asyncio
    async def test_rejected_credentials(self, tmp_path):
        recorder = Recorder(
            {("POST", "/api/auth/login"): httpx.Response(401, json={"detail": "Invalid password"})}
        )
        store = _store(tmp_path, recorder)
        with pytest.raises(RemoteTransportFailure, match="Invalid password"):
            await store.sign_in("a@b.c", "bad")
        assert store.current_user is None
        await store.aclose()

    @pytest.mark.asyncio
    async def test_malformed_auth_response(self, tmp_path):
        recorder = Recorder({("POST", "/api/auth/login"): httpx.Response(200, json={"ok": True})})
        store = _store(tmp_path, recorder)
        with pytest.raises(RemoteTransportFailure):
            await store.sign_in("a@b.c", "pw")
        await store.aclose()

    @pytest.mark.asyncio
    async def test_sign_out_clears_credentials_even_if_server_fails(self, tmp_path):
        recorder = Recorder()
        store = await _signed_in(tmp_path, recorder)
        recorder.routes[("POST", "/api/auth/logout")] = httpx.Response(503)
        users = []
        store.on_auth_state_changed(users.append)

        await store.sign_out()

        assert users[-1] is None
        assert not (tmp_path / "credentials.json").exists()
        await store.aclose()

    def test_unreadable_credentials_are_ignored(self, tmp_path):
        (tmp_path / "credentials.json").write_text("{broken")
        store = _store(tmp_path, Recorder())
        assert store.current_user is None


class TestDocuments:
    @pytest.mark.asyncio
    async def test_save_task(self, tmp_path):
        recorder = Recorder()
        store = await _signed_in(tmp_path, recorder)

        await store.save_task("user-1", Task(id="t1", title="x", tag_id="g1"))

        request = recorder.requests[0]
        assert request.method == "PUT"
        assert request.url.path == "/api/users/user-1/tasks/t1"
        assert request.headers["authorization"] == "Bearer tok-123"
        body = recorder.bodies()[0]
        assert body["tagId"] == "g1"
        assert "updatedAt" in body
        await store.aclose()

    @pytest.mark.asyncio
    async def test_delete_and_clear(self, tmp_path):
        recorder = Recorder()
        store = await _signed_in(tmp_path, recorder)

        await store.delete_tag("user-1", "g1")
        await store.clear_tasks("user-1")

        assert [(r.method, r.url.path) for r in recorder.requests] == [
            ("DELETE", "/api/users/user-1/tags/g1"),
            ("DELETE", "/api/users/user-1/tasks"),
        ]
        await store.aclose()

    @pytest.mark.asyncio
    async def test_upsert_sends_one_batch(self, tmp_path):
        recorder = Recorder()
        store = await _signed_in(tmp_path, recorder)

        await store.upsert_tags("user-1", [Tag(id="g1", name="A"), Tag(id="g2", name="B")])
        await store.upsert_tasks("user-1", [])

        assert len(recorder.requests) == 1
        assert recorder.requests[0].url.path == "/api/users/user-1/tags/batch"
        assert [item["id"] for item in recorder.bodies()[0]["items"]] == ["g1", "g2"]
        await store.aclose()

    @pytest.mark.asyncio
    async def test_server_error_surfaces_as_transport_failure(self, tmp_path):
        recorder = Recorder()
        store = await _signed_in(tmp_path, recorder)
        recorder.routes[("PUT", "/api/users/user-1/tasks/t1")] = httpx.Response(500)
        with pytest.raises(RemoteTransportFailure):
            await store.save_task("user-1", Task(id="t1", title="x"))
        await store.aclose()


class TestSubscriptions:
    @pytest.mark.asyncio
    async def test_poll_delivers_first_and_changed_payloads(self, tmp_path):
        payloads = [
            [{"id": "t1", "title": "a"}],
            [{"id": "t1", "title": "a"}],
            {"items": [{"id": "t2", "title": "b"}, {"id": "bad"}]},
        ]

        def reply(request):
            body = payloads.pop(0) if len(payloads) > 1 else payloads[0]
            return httpx.Response(200, json=body)

        recorder = Recorder()
        store = await _signed_in(tmp_path, recorder)
        recorder.routes[("GET", "/api/users/user-1/tasks")] = reply
        updates = []
        done = asyncio.Event()

        def on_update(items):
            updates.append([task.id for task in items])
            if len(updates) == 2:
                done.set()

        unsubscribe = store.subscribe_to_tasks("user-1", on_update, lambda e: None)
        await asyncio.wait_for(done.wait(), 2)
        unsubscribe()

        assert updates == [["t1"], ["t2"]]
        assert recorder.requests[0].url.params["orderBy"] == "createdAt"
        assert recorder.requests[0].url.params["direction"] == "desc"
        await store.aclose()

    @pytest.mark.asyncio
    async def test_unchanged_payload_without_created_at_is_delivered_once(self, tmp_path):
        polled = asyncio.Event()
        polls = []

        def reply(request):
            polls.append(request)
            if len(polls) == 4:
                polled.set()
            return httpx.Response(200, json=[{"id": "t1", "title": "a"}])

        recorder = Recorder()
        store = await _signed_in(tmp_path, recorder)
        recorder.routes[("GET", "/api/users/user-1/tasks")] = reply
        updates = []

        unsubscribe = store.subscribe_to_tasks("user-1", updates.append, lambda e: None)
        await asyncio.wait_for(polled.wait(), 2)
        unsubscribe()

        assert len(updates) == 1
        assert [task.id for task in updates[0]] == ["t1"]
        await store.aclose()

    @pytest.mark.asyncio
    async def test_poll_failure_goes_to_error_callback(self, tmp_path):
        recorder = Recorder()
        store = await _signed_in(tmp_path, recorder)
        recorder.routes[("GET", "/api/users/user-1/tags")] = httpx.Response(403)
        errors = []
        failed = asyncio.Event()

        def on_error(error):
            errors.append(error)
            failed.set()

        unsubscribe = store.subscribe_to_tags("user-1", lambda items: None, on_error)
        await asyncio.wait_for(failed.wait(), 2)
        unsubscribe()

        assert isinstance(errors[0], RemoteTransportFailure)
        await store.aclose()
