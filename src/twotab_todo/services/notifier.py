"""Notice board - single-slot, auto-expiring messages for sync and auth outcomes."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from twotab_todo.repositories import Unsubscribe

DEFAULT_NOTICE_DURATION = 2.6


@dataclass(frozen=True)
class Notice:
    """A transient message.

    Attributes:
        message: Human-readable text
        ok: False for failures, True for progress or success
        duration: Seconds the notice stays visible
        posted_at: Monotonic clock reading when it was posted
    """

    message: str
    ok: bool
    duration: float
    posted_at: float

    def expired(self, now: float) -> bool:
        return now - self.posted_at >= self.duration


NoticeListener = Callable[[Notice], None]


class NoticeBoard:
    """Holds at most one notice; a newer notice replaces the current one."""

    def __init__(
        self,
        default_duration: float = DEFAULT_NOTICE_DURATION,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_duration = default_duration
        self._clock = clock
        self._current: Notice | None = None
        self._listeners: list[NoticeListener] = []

    def post(self, message: str, ok: bool = True, duration: float | None = None) -> Notice:
        notice = Notice(
            message=message,
            ok=ok,
            duration=self.default_duration if duration is None else duration,
            posted_at=self._clock(),
        )
        self._current = notice
        for listener in list(self._listeners):
            listener(notice)
        return notice

    def success(self, message: str) -> Notice:
        return self.post(message, ok=True)

    def failure(self, message: str) -> Notice:
        return self.post(message, ok=False)

    @property
    def current(self) -> Notice | None:
        """The visible notice, or None once it has expired."""
        if self._current is not None and self._current.expired(self._clock()):
            self._current = None
        return self._current

    def dismiss(self) -> None:
        self._current = None

    def subscribe(self, listener: NoticeListener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
