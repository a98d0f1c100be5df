"""State cache adapters: a JSON file on disk and an in-memory stand-in."""

from __future__ import annotations

import os
from pathlib import Path

from platformdirs import user_data_dir

from twotab_todo.exceptions import PersistenceFailure
from twotab_todo.repositories import StateCache

_APP_NAME = "twotab_todo"


class FileStateCache(StateCache):
    """Stores the state record as ``<data_dir>/<storage_key>.json``.

    Writes go to a temporary sibling first and are swapped in with
    ``os.replace`` so a crash never leaves a half-written record behind.
    """

    def __init__(self, storage_key: str, data_dir: str | Path | None = None):
        """Initialize the file cache.

        Args:
            storage_key: Fixed key naming the record
            data_dir: Directory for the file. Defaults to the platform data dir
        """
        if data_dir is None:
            data_dir = user_data_dir(_APP_NAME)
        self.data_dir = Path(data_dir)
        self.path = self.data_dir / f"{storage_key}.json"

    def read(self) -> str | None:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceFailure(f"Unable to read {self.path}: {e}") from e

    def write(self, text: str) -> None:
        tmp_path = self.path.with_suffix(".json.tmp")
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(text, encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise PersistenceFailure(f"Unable to write {self.path}: {e}") from e

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceFailure(f"Unable to remove {self.path}: {e}") from e


class MemoryStateCache(StateCache):
    """Keeps the record in a string; used by tests and throwaway sessions."""

    def __init__(self, text: str | None = None):
        self.text = text
        self.writes = 0

    def read(self) -> str | None:
        return self.text

    def write(self, text: str) -> None:
        self.text = text
        self.writes += 1

    def clear(self) -> None:
        self.text = None
