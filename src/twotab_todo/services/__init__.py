"""Services module for the two-tab todo engine - business logic layer."""

from .local_store import LocalStore, parse_state
from .notifier import Notice, NoticeBoard
from .reorder import move_in_list, plan_move
from .sync_coordinator import SyncCoordinator, SyncStatus
from .todo_service import TodoService
from .view_pipeline import EmptyReason, TaskStats, ViewResult, compute_stats, derive_view

__all__ = [
    "LocalStore",
    "parse_state",
    "Notice",
    "NoticeBoard",
    "move_in_list",
    "plan_move",
    "SyncCoordinator",
    "SyncStatus",
    "TodoService",
    "EmptyReason",
    "TaskStats",
    "ViewResult",
    "compute_stats",
    "derive_view",
]
