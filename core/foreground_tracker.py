"""
Tracks which application the user brings to the foreground.
"""

from __future__ import annotations

from typing import Any, Optional

from PySide6.QtCore import QObject, Signal, Slot

from core.backends import WorkspaceBackend
from core.events import AppActivated
from notification_light.notification_light import logger as app_logger

_LOGGER = app_logger.get_logger()


class ForegroundTracker(QObject):
    """Publishes ``AppActivated`` on the owning thread for each activation."""

    appActivated = Signal(object)
    _rawActivated = Signal(object)

    def __init__(self, backend: WorkspaceBackend, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._backend = backend
        self._handle: Any = None
        self._session = 0
        self._rawActivated.connect(self._deliver)

    @property
    def is_running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        if self._handle is not None:
            return
        self._session += 1
        session = self._session

        def _publish(pid: int, bundle_id: Optional[str]) -> None:
            self._rawActivated.emit(AppActivated(app_id=bundle_id, pid=pid, session=session))

        self._handle = self._backend.observe_app_activation(_publish)
        _LOGGER.debug("Foreground tracking started")

    def stop(self) -> None:
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        self._session += 1
        self._backend.remove_observer(handle)
        _LOGGER.debug("Foreground tracking stopped")

    @Slot(object)
    def _deliver(self, event: AppActivated) -> None:
        if self._handle is None or event.session != self._session:
            return
        if event.app_id is None:
            _LOGGER.debug("Ignoring activation of pid {} without a bundle identifier", event.pid)
            return
        self.appActivated.emit(event)
