"""Progress, counter and urgency hints for the taskbar launcher entry."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

OBJECT_PATH = "/com/deepin/dtkgui/DTaskbarControl"
INTERFACE = "com.canonical.Unity.LauncherEntry"
MEMBER = "Update"


@dataclass(frozen=True)
class LauncherEntryMessage:
    """A LauncherEntry ``Update`` signal addressed to one application."""

    app_uri: str
    properties: dict[str, Any]
    path: str = OBJECT_PATH
    interface: str = INTERFACE
    member: str = MEMBER


def _fuzzy_equal(p1: float, p2: float) -> bool:
    return abs(p1 - p2) * 1e12 <= min(abs(p1), abs(p2))


@dataclass
class TaskbarControl:
    """Tracks launcher state and sends an update message on every change request.

    Messages go to ``sender``; without one they are collected in ``outbox``.
    """

    desktop_file_name: Optional[str] = None
    sender: Optional[Callable[[LauncherEntryMessage], None]] = None
    counter: int = field(default=0, init=False)
    counter_visible: bool = field(default=True, init=False)
    progress: float = field(default=0.0, init=False)
    progress_visible: bool = field(default=True, init=False)
    outbox: list[LauncherEntryMessage] = field(default_factory=list, init=False)
    _listeners: list[Callable[[str, Any], None]] = field(default_factory=list, init=False, repr=False)

    def add_listener(self, callback: Callable[[str, Any], None]) -> None:
        """Call ``callback(name, value)`` when a tracked value changes."""
        self._listeners.append(callback)

    def _emit(self, name: str, value: Any) -> None:
        for callback in list(self._listeners):
            callback(name, value)

    def set_progress(self, visible: bool, progress: float) -> None:
        """Set the progress (0 to 1) and whether the progress bar shows."""
        if not _fuzzy_equal(self.progress, progress):
            self.progress = progress
            self._emit("progress", progress)
        if self.progress_visible != visible:
            self.progress_visible = visible
            self._emit("progress_visible", visible)
        self._send({"progress-visible": visible, "progress": progress})

    def set_counter(self, visible: bool, counter: int) -> None:
        """Set the task count and whether it shows."""
        if counter != self.counter:
            self.counter = counter
            self._emit("counter", counter)
        if self.counter_visible != visible:
            self.counter_visible = visible
            self._emit("counter_visible", visible)
        self._send({"count-visible": visible, "count": counter})

    def set_counter_visible(self, visible: bool) -> None:
        """Show or hide the task count."""
        if self.counter_visible != visible:
            self.counter_visible = visible
            self._emit("counter_visible", visible)
        self._send({"count-visible": visible})

    def set_urgency(self, urgent: bool) -> None:
        """Mark the application as needing attention."""
        self._send({"urgent": urgent})

    def _send(self, params: dict[str, Any]) -> None:
        if not self.desktop_file_name:
            logger.warning("You need to set the desktop file name before you can use TaskbarControl!")
            return
        message = LauncherEntryMessage(
            app_uri="application://" + self.desktop_file_name,
            properties=dict(sorted(params.items())),
        )
        if self.sender is None:
            self.outbox.append(message)
        else:
            self.sender(message)