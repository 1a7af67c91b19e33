"""
Typed events published by the OS adapters.

Each event carries the subscription ``session`` it was produced in so that the
coordinating thread can drop anything that was still queued when a
subscription was stopped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.element_tree import ElementNode
from shared.watched_app import WatchedApp


@dataclass(frozen=True, slots=True)
class WindowCreated:
    element: ElementNode
    session: int


@dataclass(frozen=True, slots=True)
class NotificationMatched:
    app: WatchedApp
    session: int


@dataclass(frozen=True, slots=True)
class AppActivated:
    app_id: Optional[str]
    pid: int
    session: int
