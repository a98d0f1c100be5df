"""Tests for configuration models."""

import pytest
from pydantic import ValidationError

from twotab_todo.models import AppConfig, RemoteConfig


def test_defaults():
    config = AppConfig()
    assert config.storage_key == "two-tab-todo-v1"
    assert config.notice_duration == 2.6
    assert config.remote.is_configured is False


@pytest.mark.parametrize("endpoint", [None, "", "   "])
def test_blank_endpoint_is_not_configured(endpoint):
    assert RemoteConfig(endpoint=endpoint).is_configured is False


def test_endpoint_trailing_slash_is_stripped():
    remote = RemoteConfig(endpoint=" https://sync.example.com/api/ ")
    assert remote.endpoint == "https://sync.example.com/api"
    assert remote.is_configured is True


def test_poll_interval_must_be_positive():
    with pytest.raises(ValidationError):
        RemoteConfig(poll_interval=0)
