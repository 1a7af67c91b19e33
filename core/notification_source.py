"""
Subscription to notification banners created by the system notification process.
"""

from __future__ import annotations

from functools import partial
from typing import Any, Optional, Sequence, Tuple

from PySide6.QtCore import QObject, QThreadPool, Signal, Slot

from core.backends import AccessibilityBackend
from core.element_tree import ElementNode, match
from core.errors import PermissionDenied, SourceUnavailable
from core.events import NotificationMatched, WindowCreated
from notification_light.notification_light import logger as app_logger
from shared.watched_app import WatchedApp

_LOGGER = app_logger.get_logger()

DEFAULT_NOTIFICATION_CENTER_BUNDLE_ID = "com.apple.notificationcenterui"


class NotificationSource(QObject):
    """
    Turns "window created" events of the notification process into
    ``NotificationMatched`` events for watched apps.

    OS callbacks may arrive on any thread. Element trees are searched on a
    thread pool and results are delivered on the thread owning this object.
    Anything produced by a subscription that has since been stopped is dropped.
    """

    notificationDetected = Signal(object)
    _windowCreated = Signal(object)
    _matched = Signal(object)

    def __init__(
        self,
        backend: AccessibilityBackend,
        *,
        bundle_id: str = DEFAULT_NOTIFICATION_CENTER_BUNDLE_ID,
        pool: Optional[QThreadPool] = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._backend = backend
        self._bundle_id = bundle_id
        self._pool = pool or QThreadPool.globalInstance()
        self._watch_list: Tuple[WatchedApp, ...] = ()
        self._handle: Any = None
        self._session = 0

        self._windowCreated.connect(self._on_window_created)
        self._matched.connect(self._deliver)

    @property
    def is_running(self) -> bool:
        return self._handle is not None

    def update_watch_list(self, apps: Sequence[WatchedApp]) -> None:
        self._watch_list = tuple(apps)

    def start(self) -> None:
        if self._handle is not None:
            return
        if not self._backend.is_trusted():
            raise PermissionDenied(PermissionDenied.ACCESSIBILITY)

        pid = self._backend.find_process(self._bundle_id)
        if pid is None:
            raise SourceUnavailable(f"Notification Center process ({self._bundle_id}) not found.")

        self._session += 1
        session = self._session

        def _publish(element: ElementNode) -> None:
            self._windowCreated.emit(WindowCreated(element=element, session=session))

        self._handle = self._backend.observe_window_created(pid, _publish)
        _LOGGER.info("Started listening for new notifications (pid={})", pid)

    def stop(self) -> None:
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        self._session += 1
        self._backend.remove_observer(handle)
        _LOGGER.info("Stopped watching for notifications")

    def _is_current(self, session: int) -> bool:
        return self._handle is not None and session == self._session

    @Slot(object)
    def _on_window_created(self, event: WindowCreated) -> None:
        if not self._is_current(event.session):
            return
        snapshot = self._watch_list
        if not snapshot:
            _LOGGER.debug("Notification window ignored; no apps are watched")
            return
        self._pool.start(partial(self._match_in_background, event, snapshot))

    def _match_in_background(self, event: WindowCreated, snapshot: Tuple[WatchedApp, ...]) -> None:
        try:
            found = match(event.element, snapshot)
        except Exception:  # pragma: no cover
            _LOGGER.exception("Inspecting a notification window failed")
            return
        if found is None:
            _LOGGER.debug("Notification window did not mention a watched app")
            return
        self._matched.emit(NotificationMatched(app=found, session=event.session))

    @Slot(object)
    def _deliver(self, event: NotificationMatched) -> None:
        if not self._is_current(event.session):
            _LOGGER.debug("Dropping match for {} from a stopped subscription", event.app.app_id)
            return
        self.notificationDetected.emit(event)
