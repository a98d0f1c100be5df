"""Tests for the TodoService facade."""

import pytest

from twotab_todo.adapters import MemoryStateCache
from twotab_todo.models import User
from twotab_todo.services import TodoService


async def _signed_in(service, remote):
    service.start()
    remote.emit_auth(User(uid="user-1"))
    await service.coordinator.drain()
    remote.calls.clear()


def test_create_loads_cached_state(remote):
    cache = MemoryStateCache('{"activeTab": "personal", "tasks": [{"id": "t1", "title": "x"}]}')
    service = TodoService.create(cache, remote, notice_duration=5)
    assert service.state.active_tab == "personal"
    assert service.notices.default_duration == 5


def test_render_listener_gets_fresh_view(service):
    views = []
    service.on_render(views.append)
    service.add_task("Buy milk")
    assert [task.title for task in views[-1].tasks] == ["Buy milk"]


def test_render_listener_unsubscribe(service):
    views = []
    unsubscribe = service.on_render(views.append)
    unsubscribe()
    service.add_task("x")
    assert views == []


def test_view_and_stats(service):
    service.add_task("a")
    task = service.add_task("b")
    service.toggle_task(task.id)
    assert service.view().ids != []
    assert service.stats().done == 1


def test_guest_actions(service, remote):
    task = service.add_task("draft")
    assert service.toggle_important(task.id).important is True
    assert service.rename_task(task.id, "final").title == "final"
    tag = service.add_tag("Urgent")
    assert service.set_task_tag(task.id, tag.id).tag_id == tag.id
    assert service.delete_tag(tag.id) is True
    assert service.delete_task(task.id) is True
    assert remote.calls == []


def test_invalid_rename_posts_notice(service, notices):
    task = service.add_task("draft")
    assert service.rename_task(task.id, " ") is None
    assert notices.current.ok is False
    assert service.state.tasks[0].title == "draft"


def test_duplicate_tag_posts_notice(service, notices):
    service.add_tag("Urgent")
    assert service.add_tag("URGENT") is None
    assert "already exists" in notices.current.message


def test_invalid_preference_posts_notice(service, notices):
    assert service.set_active_tab("garden") is False
    assert notices.current.message == "Unknown tab: garden"


def test_move_task(service):
    a = service.add_task("a")
    b = service.add_task("b")
    assert service.move_task(b.id, a.id) is True
    assert [task.title for task in service.state.tasks] == ["a", "b"]


@pytest.mark.asyncio
async def test_synced_actions_are_pushed_after_commit(service, remote, cache):
    await _signed_in(service, remote)
    writes = cache.writes

    task = service.add_task("x")
    assert cache.writes == writes + 1
    await service.coordinator.drain()

    assert remote.called("save_task") == [("user-1", task)]


@pytest.mark.asyncio
async def test_clear_all(service, remote):
    service.add_task("x")
    await _signed_in(service, remote)

    await service.clear_all()

    assert service.state.tasks == []
    assert remote.called("clear_tasks") == [("user-1",)]
    assert service.coordinator.pending_guest_tasks == []


@pytest.mark.asyncio
async def test_clear_all_as_guest_only_touches_local(service, remote):
    service.add_task("x")
    await service.clear_all()
    assert service.state.tasks == []
    assert remote.calls == []


@pytest.mark.asyncio
async def test_sign_in_and_sync(service, remote):
    service.start()
    assert await service.sign_in("a@b.c", "pw") is True
    assert await service.sync_now() is True
    assert await service.sign_out() is True
    await service.close()
