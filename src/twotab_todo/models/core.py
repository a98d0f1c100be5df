"""Core domain models: tasks, tags, users and the persisted application state."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

TabName = Literal["work", "personal"]

TABS: tuple[str, ...] = ("work", "personal")
DEFAULT_TAB = "work"

TAG_FILTER_ALL = "all"
TAG_FILTER_UNTAGGED = "none"

TAG_PALETTE: tuple[str, ...] = (
    "#ef4444",
    "#f97316",
    "#eab308",
    "#22c55e",
    "#14b8a6",
    "#3b82f6",
    "#8b5cf6",
    "#ec4899",
)
DEFAULT_TAG_COLOR = TAG_PALETTE[5]


def utc_now_iso() -> str:
    """Return the current UTC time as ISO-8601 text with millisecond precision."""
    return _format_timestamp(datetime.now(UTC))


def _format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _coerce_timestamp(value: Any) -> Any:
    if value is None or value == "":
        return utc_now_iso()
    if isinstance(value, datetime):
        return _format_timestamp(value)
    return value


def _coerce_id(value: Any) -> Any:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


def _require_text(value: Any, field: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field} must be text")
    value = value.strip()
    if not value:
        raise ValueError(f"{field} cannot be empty")
    return value


class Task(BaseModel):
    """A single todo item.

    Attributes:
        id: Opaque unique identifier, immutable after creation
        title: Non-empty trimmed text
        tab: Category the task belongs to ("work" or "personal")
        completed: Completion status
        important: Whether the task is flagged as important
        tag_id: Optional reference to a Tag id
        created_at: ISO-8601 creation timestamp, assigned once

    Fields the remote adds (such as ``updatedAt``) are kept as extras so a
    snapshot written back to the cache is not silently trimmed.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    id: str = Field(min_length=1)
    title: str
    tab: TabName = DEFAULT_TAB
    completed: bool = False
    important: bool = False
    tag_id: str | None = Field(default=None, alias="tagId")
    created_at: str = Field(default_factory=utc_now_iso, alias="createdAt")

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, v: Any) -> Any:
        return _coerce_id(v)

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, v: Any) -> str:
        return _require_text(v, "title")

    @field_validator("tab", mode="before")
    @classmethod
    def _tab(cls, v: Any) -> str:
        return v if v in TABS else DEFAULT_TAB

    @field_validator("completed", "important", mode="before")
    @classmethod
    def _flag(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("tag_id", mode="before")
    @classmethod
    def _tag_id(cls, v: Any) -> Any:
        v = _coerce_id(v)
        if not isinstance(v, str) or not v:
            return None
        return v

    @field_validator("created_at", mode="before")
    @classmethod
    def _created_at(cls, v: Any) -> Any:
        return _coerce_timestamp(v)

    def to_record(self) -> dict[str, Any]:
        """Serialize using the wire/cache field names."""
        return self.model_dump(by_alias=True)


class Tag(BaseModel):
    """A user-defined label that tasks can reference.

    Attributes:
        id: Opaque unique identifier
        name: Non-empty trimmed text, unique ignoring case
        color: Display color; cosmetic only
        created_at: ISO-8601 creation timestamp
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    id: str = Field(min_length=1)
    name: str
    color: str = DEFAULT_TAG_COLOR
    created_at: str = Field(default_factory=utc_now_iso, alias="createdAt")

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, v: Any) -> Any:
        return _coerce_id(v)

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, v: Any) -> str:
        return _require_text(v, "name")

    @field_validator("color", mode="before")
    @classmethod
    def _color(cls, v: Any) -> Any:
        if not isinstance(v, str) or not v.strip():
            return DEFAULT_TAG_COLOR
        return v.strip()

    @field_validator("created_at", mode="before")
    @classmethod
    def _created_at(cls, v: Any) -> Any:
        return _coerce_timestamp(v)

    def to_record(self) -> dict[str, Any]:
        """Serialize using the wire/cache field names."""
        return self.model_dump(by_alias=True)


class User(BaseModel):
    """Authenticated principal reported by the remote store."""

    uid: str
    email: str | None = None


class AppState(BaseModel):
    """Everything the local cache persists: data plus view preferences.

    Field order matches the cached record so the serialized text is stable.
    """

    model_config = ConfigDict(populate_by_name=True)

    active_tab: TabName = Field(default=DEFAULT_TAB, alias="activeTab")
    tasks: list[Task] = Field(default_factory=list)
    show_completed: bool = Field(default=False, alias="showCompleted")
    sort_important: bool = Field(default=False, alias="sortImportant")
    tags: list[Tag] = Field(default_factory=list)
    active_tag_filter: str = Field(default=TAG_FILTER_ALL, alias="activeTagFilter")

    def to_json(self) -> str:
        """Serialize to the cache record text."""
        return self.model_dump_json(by_alias=True)

    def find_task(self, task_id: str) -> Task | None:
        return next((task for task in self.tasks if task.id == task_id), None)

    def find_tag(self, tag_id: str) -> Tag | None:
        return next((tag for tag in self.tags if tag.id == tag_id), None)

    def tag_ids(self) -> set[str]:
        return {tag.id for tag in self.tags}
