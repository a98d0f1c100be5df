"""Reorder engine - turns a drag gesture over the visible list into a new global order."""

from __future__ import annotations

from twotab_todo.models import AppState, Task

from .view_pipeline import derive_view


def move_in_list(tasks: list[Task], dragged_id: str, target_id: str) -> list[Task] | None:
    """Move ``dragged_id`` to the position ``target_id`` holds in ``tasks``.

    Both indices come from the full list before the move. The dragged task is
    removed, then inserted at the target's original index: dragging down lands
    after the target, dragging up lands before it.

    Returns:
        A new list, or None if either id is missing or they are equal
    """
    if dragged_id == target_id:
        return None
    ids = [task.id for task in tasks]
    try:
        dragged_index = ids.index(dragged_id)
        target_index = ids.index(target_id)
    except ValueError:
        return None

    reordered = list(tasks)
    dragged = reordered.pop(dragged_index)
    reordered.insert(target_index, dragged)
    return reordered


def plan_move(state: AppState, dragged_id: str, target_id: str) -> list[Task] | None:
    """Validate a drag gesture against the current view and compute the new order.

    The gesture is ignored while important tasks are auto-sorted, when the ids
    are equal, or when either task is not currently visible.
    """
    if state.sort_important or dragged_id == target_id:
        return None
    visible = set(derive_view(state).ids)
    if dragged_id not in visible or target_id not in visible:
        return None
    return move_in_list(state.tasks, dragged_id, target_id)
