"""Tag registry - validation and lifecycle rules for tags.

Tag identity is the id; names are unique ignoring case; color is cosmetic and
never used for identity or filtering.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from twotab_todo.exceptions import ValidationFailure
from twotab_todo.models import DEFAULT_TAG_COLOR, TAG_PALETTE, Tag, Task, utc_now_iso
from twotab_todo.utils.uuid_utils import new_id

_HEX_COLOR = re.compile(r"^#(?:[0-9a-f]{3}|[0-9a-f]{6})$", re.IGNORECASE)


def normalize_tag_name(name: str) -> str:
    """Trim surrounding whitespace and collapse inner runs to single spaces."""
    return " ".join(name.split())


def find_tag_by_name(tags: Iterable[Tag], name: str) -> Tag | None:
    """Find a tag whose name matches ``name`` ignoring case."""
    wanted = normalize_tag_name(name).casefold()
    for tag in tags:
        if tag.name.casefold() == wanted:
            return tag
    return None


def is_valid_color(color: str) -> bool:
    """Palette entries and #rgb / #rrggbb values are accepted for new tags."""
    return color in TAG_PALETTE or _HEX_COLOR.match(color) is not None


def build_tag(existing: Iterable[Tag], name: str, color: str | None = None) -> Tag:
    """Validate a new tag against the existing set and create it.

    Raises:
        ValidationFailure: Empty name, duplicate name, or unknown color
    """
    if not isinstance(name, str):
        raise ValidationFailure("Tag name must be text")
    clean = normalize_tag_name(name)
    if not clean:
        raise ValidationFailure("Tag name cannot be empty")

    clash = find_tag_by_name(existing, clean)
    if clash is not None:
        raise ValidationFailure(f'A tag named "{clash.name}" already exists')

    color = (color or DEFAULT_TAG_COLOR).strip()
    if not is_valid_color(color):
        raise ValidationFailure(f"Unsupported tag color: {color}")

    return Tag(id=new_id(), name=clean, color=color, created_at=utc_now_iso())


def clear_tag_references(tasks: list[Task], tag_id: str) -> tuple[list[Task], list[Task]]:
    """Cascade null: drop ``tag_id`` from every task referencing it.

    Returns:
        Tuple of (new task list, the tasks that were changed)
    """
    updated: list[Task] = []
    changed: list[Task] = []
    for task in tasks:
        if task.tag_id == tag_id:
            task = task.model_copy(update={"tag_id": None})
            changed.append(task)
        updated.append(task)
    return updated, changed


def drop_dangling_references(tasks: list[Task], tag_ids: set[str]) -> list[Task]:
    """Null every ``tag_id`` that does not name a tag in ``tag_ids``."""
    return [
        task
        if task.tag_id is None or task.tag_id in tag_ids
        else task.model_copy(update={"tag_id": None})
        for task in tasks
    ]
