"""Port interfaces for the two-tab todo engine.

Implementations (Adapters) are in:
- twotab_todo.adapters.state_cache (file and in-memory caches)
- twotab_todo.adapters.rest_api (remote REST API; not-ready without an endpoint)
"""

from .repository import (
    AuthCallback,
    ErrorCallback,
    RemoteStore,
    StateCache,
    TagsCallback,
    TasksCallback,
    Unsubscribe,
)

__all__ = [
    "StateCache",
    "RemoteStore",
    "Unsubscribe",
    "AuthCallback",
    "TasksCallback",
    "TagsCallback",
    "ErrorCallback",
]
