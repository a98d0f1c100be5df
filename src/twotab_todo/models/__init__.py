"""Two-tab todo domain models.

Pydantic models for the entities the engine works with, plus the change events
emitted by local mutations.
"""

from .config_models import AppConfig, RemoteConfig
from .core import (
    DEFAULT_TAB,
    DEFAULT_TAG_COLOR,
    TABS,
    TAG_FILTER_ALL,
    TAG_FILTER_UNTAGGED,
    TAG_PALETTE,
    AppState,
    TabName,
    Tag,
    Task,
    User,
    utc_now_iso,
)
from .events import (
    LocalChange,
    TagRemoved,
    TagSaved,
    TaskRemoved,
    TaskSaved,
    TasksReordered,
)

__all__ = [
    # Domain models
    "Task",
    "Tag",
    "User",
    "AppState",
    "TabName",
    # Constants
    "TABS",
    "DEFAULT_TAB",
    "TAG_FILTER_ALL",
    "TAG_FILTER_UNTAGGED",
    "TAG_PALETTE",
    "DEFAULT_TAG_COLOR",
    "utc_now_iso",
    # Change events
    "LocalChange",
    "TaskSaved",
    "TaskRemoved",
    "TasksReordered",
    "TagSaved",
    "TagRemoved",
    # Config models
    "AppConfig",
    "RemoteConfig",
]
