"""Adapters module - implementations of the engine's ports.

- state_cache: file-backed and in-memory state caches
- rest_api: remote store over the sync HTTP API
"""

from .rest_api import RestApiRemoteStore
from .state_cache import FileStateCache, MemoryStateCache

__all__ = [
    "FileStateCache",
    "MemoryStateCache",
    "RestApiRemoteStore",
]
