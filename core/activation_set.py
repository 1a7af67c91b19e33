"""
The set of watched apps that currently have an unacknowledged notification.
"""

from __future__ import annotations

from typing import Set

from PySide6.QtCore import QObject, QThread, Signal

from notification_light.notification_light import logger as app_logger

_LOGGER = app_logger.get_logger()


class ActivationSet(QObject):
    """
    Single-writer set of active app identifiers.

    Every mutation must run on the thread that owns this object. ``changed`` is
    emitted after any membership change and ``emptinessChanged`` only when the
    set flips between empty and non-empty, so listeners never see a duplicate
    edge.
    """

    changed = Signal(object)
    emptinessChanged = Signal(bool)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._ids: Set[str] = set()

    def insert(self, app_id: str) -> bool:
        self._check_thread()
        if app_id in self._ids:
            return False
        was_empty = not self._ids
        self._ids.add(app_id)
        _LOGGER.debug("Activated {}", app_id)
        self._dispatch(was_empty)
        return True

    def remove(self, app_id: str) -> bool:
        self._check_thread()
        if app_id not in self._ids:
            return False
        was_empty = not self._ids
        self._ids.discard(app_id)
        _LOGGER.debug("Deactivated {}", app_id)
        self._dispatch(was_empty)
        return True

    def clear(self) -> bool:
        self._check_thread()
        if not self._ids:
            return False
        self._ids.clear()
        _LOGGER.debug("Cleared all active apps")
        self._dispatch(False)
        return True

    def contains(self, app_id: str) -> bool:
        return app_id in self._ids

    def __contains__(self, app_id: object) -> bool:
        return app_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def is_empty(self) -> bool:
        return not self._ids

    def ids(self) -> frozenset:
        return frozenset(self._ids)

    def _dispatch(self, was_empty: bool) -> None:
        self.changed.emit(frozenset(self._ids))
        now_empty = not self._ids
        if now_empty != was_empty:
            self.emptinessChanged.emit(now_empty)

    def _check_thread(self) -> None:
        if QThread.currentThread() is not self.thread():
            raise RuntimeError("ActivationSet must be mutated from its owning thread.")
