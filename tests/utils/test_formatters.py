"""Tests for CLI output formatters."""

import json

import yaml

from twotab_todo.models import AppState, Tag, Task
from twotab_todo.services import compute_stats, derive_view
from twotab_todo.services.notifier import Notice
from twotab_todo.utils.ui.formatters import (
    _colored,
    format_notice,
    format_output,
    format_stats,
    format_tags,
    format_view,
    get_completion_color,
    get_progress_bar,
)


def test_colored_only_wraps_full_hex():
    assert _colored("x", "#ef4444") == "[#ef4444]x[/#ef4444]"
    assert _colored("x", "#abc") == "x"
    assert _colored("[b]", "purple") == "\\[b]"


def test_progress_bar_and_color():
    assert get_progress_bar(50) == "▓" * 5 + "░" * 5
    assert get_completion_color(90) == "green"
    assert get_completion_color(50) == "yellow"
    assert get_completion_color(10) == "red"


def test_format_output_json_and_yaml(capsys):
    format_output({"a": 1})
    assert json.loads(capsys.readouterr().out) == {"a": 1}
    format_output({"a": 1}, "yaml")
    assert yaml.safe_load(capsys.readouterr().out) == {"a": 1}


def test_format_view_shows_tag_and_title(capsys):
    tag = Tag(id="g1", name="Urgent", color="#ef4444")
    state = AppState(tasks=[Task(id="t1", title="Buy [milk]", tag_id="g1", important=True)], tags=[tag])
    format_view(derive_view(state), state.tags)
    out = capsys.readouterr().out
    assert "Buy [milk]" in out
    assert "#Urgent" in out
    assert "1 task" in out


def test_format_view_empty(capsys):
    format_view(derive_view(AppState()), [])
    assert "No work tasks yet." in capsys.readouterr().out


def test_format_tags_and_stats(capsys):
    format_tags([Tag(id="g1", name="Urgent", color="odd")], "g1")
    format_stats(compute_stats(AppState(tasks=[Task(id="t1", title="x", completed=True)])))
    out = capsys.readouterr().out
    assert "Urgent" in out
    assert "100%" in out


def test_format_notice(capsys):
    format_notice(Notice("Sync complete.", ok=True, duration=1, posted_at=0))
    format_notice(Notice("Realtime sync failed.", ok=False, duration=1, posted_at=0))
    out = capsys.readouterr().out
    assert "Sync complete." in out
    assert "Error: Realtime sync failed." in out
