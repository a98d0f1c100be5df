"""CLI tests for the account and sync commands."""

import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from twotab_todo.main import app
from twotab_todo.models import User

runner = CliRunner()


@pytest.fixture()
def synced_env(cli_env, remote):
    """CLI wired to the in-memory remote; snapshot waits return immediately."""
    cli_env.set("snapshot_timeout", 0)
    with patch(
        "twotab_todo.services.config_service.ConfigService.create_remote_store",
        return_value=remote,
    ):
        yield remote


def test_login_without_endpoint(cli_env):
    result = runner.invoke(app, ["auth", "login", "--email", "a@b.c", "--password", "pw"])
    assert result.exit_code == 3
    assert "Sync is not configured yet." in result.output


def test_login_prompts_for_missing_email(synced_env):
    result = runner.invoke(app, ["auth", "login", "--password", "pw"], input="a@b.c\n")
    assert result.exit_code == 0
    assert synced_env.called("sign_in") == [("a@b.c", "pw")]


def test_login_uploads_guest_tasks(cli_env, remote):
    cli_env.set("snapshot_timeout", 0)
    runner.invoke(app, ["tasks", "add", "guest task"])
    with patch(
        "twotab_todo.services.config_service.ConfigService.create_remote_store",
        return_value=remote,
    ):
        result = runner.invoke(app, ["auth", "login", "--email", "a@b.c", "--password", "pw"])

    assert result.exit_code == 0, result.output
    assert "Signed in. Syncing tasks…" in result.output
    uploads = remote.called("upsert_tasks")
    assert [task.title for task in uploads[0][1]] == ["guest task"]
    assert remote.called("aclose")


def test_login_failure(synced_env):
    synced_env.fail.add("sign_in")
    result = runner.invoke(app, ["auth", "login", "--email", "a@b.c", "--password", "pw"])
    assert result.exit_code == 3
    assert "sign_in failed" in result.output


def test_signup(synced_env):
    result = runner.invoke(app, ["auth", "signup", "--email", "a@b.c", "--password", "pw"])
    assert result.exit_code == 0
    assert synced_env.called("sign_up") == [("a@b.c", "pw")]


def test_synced_add_is_pushed(synced_env):
    synced_env.user = User(uid="user-1")
    assert runner.invoke(app, ["tasks", "add", "cloud task"]).exit_code == 0
    assert [task.title for _, task in synced_env.called("save_task")] == ["cloud task"]


def test_sync_requires_sign_in(synced_env):
    result = runner.invoke(app, ["auth", "sync"])
    assert result.exit_code == 3
    assert "Sign in to sync across devices." in result.output


def test_sync_pushes_everything(synced_env):
    synced_env.user = User(uid="user-1")
    result = runner.invoke(app, ["auth", "sync"])
    assert result.exit_code == 0
    assert "Sync complete." in result.output
    assert synced_env.called("upsert_tasks")


def test_sync_failure(synced_env):
    synced_env.user = User(uid="user-1")
    synced_env.fail.add("upsert_tasks")
    assert runner.invoke(app, ["auth", "sync"]).exit_code == 4


def test_logout(synced_env):
    synced_env.user = User(uid="user-1")
    result = runner.invoke(app, ["auth", "logout"])
    assert result.exit_code == 0
    assert "Signed out. Back to guest mode." in result.output
    assert synced_env.user is None


def test_logout_when_guest(synced_env):
    result = runner.invoke(app, ["auth", "logout"])
    assert result.exit_code == 0
    assert "Not signed in" in result.output


def test_status(synced_env):
    synced_env.user = User(uid="user-1", email="a@b.c")
    result = runner.invoke(app, ["auth", "status"])
    assert json.loads(result.output) == {
        "configured": True,
        "status": "synced",
        "user": "a@b.c",
    }


def test_status_not_configured(cli_env):
    result = runner.invoke(app, ["auth", "status"])
    assert json.loads(result.output)["status"] == "guest"
    assert json.loads(result.output)["configured"] is False
