"""View pipeline - derives the ordered, filtered task list shown to the user.

Everything here is a pure function of ``AppState``: the same state always
yields the same sequence and counts.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from twotab_todo.models import DEFAULT_TAB, TAG_FILTER_ALL, TAG_FILTER_UNTAGGED, AppState, Task


class EmptyReason(str, Enum):
    """Why the visible list is empty; the two cases read differently."""

    NO_TASKS = "no_tasks"
    NO_TAG_MATCHES = "no_tag_matches"


@dataclass(frozen=True)
class ViewResult:
    """Visible tasks of the active tab plus the numbers shown around them.

    Attributes:
        tab: Tab the view was derived for
        tasks: Visible tasks in display order
        total: Number of tasks in the tab, before completion/tag filters
        completed: Number of completed tasks in the tab
        show_completed: Whether completed tasks were kept
        empty: Reason the view is empty, or None when it is not
        manual_order: Whether drag reordering is allowed in this view
    """

    tab: str
    tasks: tuple[Task, ...]
    total: int
    completed: int
    show_completed: bool
    empty: EmptyReason | None
    manual_order: bool

    @property
    def ids(self) -> list[str]:
        return [task.id for task in self.tasks]

    @property
    def counter_label(self) -> str:
        """e.g. "3 tasks · 1 done"."""
        label = f"{self.total} task{'' if self.total == 1 else 's'}"
        if self.completed:
            label += f" · {self.completed} done"
        return label

    @property
    def empty_message(self) -> str:
        if self.empty is EmptyReason.NO_TAG_MATCHES:
            return f"No {self.tab} tasks match this tag."
        if self.empty is EmptyReason.NO_TASKS:
            return f"No {self.tab} tasks{'' if self.show_completed else ' yet'}."
        return ""


@dataclass(frozen=True)
class TaskStats:
    """Per-tab totals and the overall completion rate (whole percent)."""

    work_total: int
    work_done: int
    personal_total: int
    personal_done: int
    total: int
    done: int
    completion_rate: int


def task_tab(task: Task) -> str:
    return task.tab or DEFAULT_TAB


def matches_tag_filter(task: Task, tag_filter: str) -> bool:
    if tag_filter == TAG_FILTER_ALL:
        return True
    if tag_filter == TAG_FILTER_UNTAGGED:
        return task.tag_id is None
    return task.tag_id == tag_filter


def derive_view(state: AppState) -> ViewResult:
    """Turn the state into the visible, ordered task list for the active tab.

    Steps: tab filter, optional stable important-first partition, completion
    filter, tag filter.
    """
    in_tab = [task for task in state.tasks if task_tab(task) == state.active_tab]

    if state.sort_important:
        # sorted() is stable, so each importance group keeps its manual order
        ordered = sorted(in_tab, key=lambda task: not task.important)
    else:
        ordered = in_tab

    if state.show_completed:
        after_completed = ordered
    else:
        after_completed = [task for task in ordered if not task.completed]

    visible = tuple(
        task for task in after_completed if matches_tag_filter(task, state.active_tag_filter)
    )

    empty: EmptyReason | None = None
    if not visible:
        if after_completed and state.active_tag_filter != TAG_FILTER_ALL:
            empty = EmptyReason.NO_TAG_MATCHES
        else:
            empty = EmptyReason.NO_TASKS

    return ViewResult(
        tab=state.active_tab,
        tasks=visible,
        total=len(in_tab),
        completed=sum(1 for task in in_tab if task.completed),
        show_completed=state.show_completed,
        empty=empty,
        manual_order=not state.sort_important,
    )


def compute_stats(state: AppState) -> TaskStats:
    """Count tasks per tab and the share of completed tasks overall."""
    work = [task for task in state.tasks if task_tab(task) == "work"]
    personal = [task for task in state.tasks if task_tab(task) == "personal"]
    work_done = sum(1 for task in work if task.completed)
    personal_done = sum(1 for task in personal if task.completed)
    total = len(state.tasks)
    done = work_done + personal_done
    # round half up, not banker's rounding
    rate = int(done * 100 / total + 0.5) if total else 0
    return TaskStats(
        work_total=len(work),
        work_done=work_done,
        personal_total=len(personal),
        personal_done=personal_done,
        total=total,
        done=done,
        completion_rate=rate,
    )
