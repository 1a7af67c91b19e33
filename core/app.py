"""
Application coordinator wiring notification detection to the indicator light.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple

from PySide6.QtCore import QCoreApplication, QObject, QThreadPool, Signal, Slot

from core.activation_set import ActivationSet
from core.backends import AccessibilityBackend, CaptureBackend, WorkspaceBackend
from core.errors import LightError, PermissionDenied
from core.events import AppActivated, NotificationMatched
from core.foreground_tracker import ForegroundTracker
from core.light_controller import LightController
from core.notification_source import NotificationSource
from core.settings import CoreSettings, CoreSettingsManager
from core.watch_list_store import SettingsWatchListStore, WatchListStore
from notification_light.notification_light import logger as app_logger
from shared.watch_list_schema import WatchListValidationError, validate_app
from shared.watched_app import WatchedApp

APP_NAME = "Notification Light"
APP_VERSION = "1.0.0"


@dataclass(eq=False)
class AppCoordinator(QObject):
    """
    Owns the monitoring pipeline on the thread it was created on.

    Every state change goes through an explicit method here; watch list edits
    are saved and pushed to the notification source immediately, and
    activation edges drive the light controller.
    """

    accessibility: AccessibilityBackend
    workspace: WorkspaceBackend
    capture: CaptureBackend
    store: WatchListStore = field(default_factory=SettingsWatchListStore)
    settings_manager: CoreSettingsManager = field(default_factory=CoreSettingsManager)
    match_pool: Optional[QThreadPool] = None

    monitoringChanged = Signal(bool)
    activeAppsChanged = Signal(object)
    watchListChanged = Signal(object)
    lightChanged = Signal(bool)
    statusMessage = Signal(str)
    debugMessage = Signal(str)

    def __post_init__(self) -> None:
        super().__init__()
        self._logger = app_logger.get_logger()
        self._settings: CoreSettings = self.settings_manager.read_settings()
        self._watched: List[WatchedApp] = list(self.store.load())
        self._monitoring = False
        self._accessibility_granted = False
        self._manual_shutdown_requested = False
        self._closed = False

        self._active = ActivationSet(self)
        self._light = LightController(
            self.capture,
            preferred_device_id=self._settings.preferred_camera_id,
            parent=self,
        )
        self._source = NotificationSource(
            self.accessibility,
            bundle_id=self._settings.notification_center_bundle_id,
            pool=self.match_pool,
            parent=self,
        )
        self._source.update_watch_list(self._watched)
        self._tracker = ForegroundTracker(self.workspace, parent=self)

        self._active.emptinessChanged.connect(self._light.follow_activation)
        self._active.changed.connect(self.activeAppsChanged)
        self._light.stateChanged.connect(self.lightChanged)
        self._light.failed.connect(self._on_light_failed)
        self._source.notificationDetected.connect(self._on_notification_detected)
        self._tracker.appActivated.connect(self._on_app_activated)

    def start(self) -> None:
        self._logger.info("Starting {} v{} watching {} app(s)", APP_NAME, APP_VERSION, len(self._watched))
        self.check_accessibility(prompt=True)
        self._light.request_authorization()
        if self._settings.monitoring_enabled:
            self.start_monitoring()

    def shutdown(self) -> None:
        self._logger.info("Shutting down application on user request.")
        self._manual_shutdown_requested = True
        self.close()
        app = QCoreApplication.instance()
        if app is not None:
            app.quit()

    def close(self) -> None:
        """Stop subscriptions and release the light without touching saved preferences."""
        if self._closed:
            return
        self._closed = True
        self._halt_monitoring()
        self._light.shutdown()

    @property
    def manual_shutdown_requested(self) -> bool:
        return self._manual_shutdown_requested

    @property
    def settings(self) -> CoreSettings:
        return self._settings

    @property
    def watched_apps(self) -> Tuple[WatchedApp, ...]:
        return tuple(self._watched)

    @property
    def active_app_ids(self) -> frozenset:
        return self._active.ids()

    @property
    def is_monitoring(self) -> bool:
        return self._monitoring

    @property
    def light_on(self) -> bool:
        return self._light.is_on

    @property
    def light_busy(self) -> bool:
        """True while a light switch is running on the worker thread."""
        return self._light.is_busy

    @property
    def accessibility_granted(self) -> bool:
        return self._accessibility_granted

    def check_accessibility(self, *, prompt: bool = False) -> bool:
        if prompt:
            granted = self.accessibility.request_permission_prompt()
        else:
            granted = self.accessibility.is_trusted()
        if granted != self._accessibility_granted:
            self._logger.info("Accessibility permission {}", "granted" if granted else "missing")
        self._accessibility_granted = granted
        return granted

    # Monitoring ---------------------------------------------------------

    def set_monitoring(self, enabled: bool) -> bool:
        if enabled:
            return self.start_monitoring()
        self.stop_monitoring()
        return False

    def start_monitoring(self) -> bool:
        """Subscribe to notifications and activations; report failures instead of raising."""
        if self._closed:
            return False
        if self._monitoring:
            return True

        try:
            self._source.start()
            self._tracker.start()
        except LightError as exc:
            self._source.stop()
            self._tracker.stop()
            if isinstance(exc, PermissionDenied):
                self._accessibility_granted = False
            self._logger.warning("Unable to start monitoring: {}", exc)
            self.statusMessage.emit(str(exc))
            self.monitoringChanged.emit(False)
            return False

        self._accessibility_granted = True
        self._monitoring = True
        self._persist_monitoring(True)
        self.statusMessage.emit("Monitoring active")
        self.monitoringChanged.emit(True)
        return True

    def stop_monitoring(self) -> None:
        if not self._monitoring:
            return
        self._halt_monitoring()
        self._persist_monitoring(False)
        self.statusMessage.emit("Monitoring paused")

    def _halt_monitoring(self) -> None:
        self._source.stop()
        self._tracker.stop()
        self._active.clear()
        if self._monitoring:
            self._monitoring = False
            self.monitoringChanged.emit(False)

    def _persist_monitoring(self, enabled: bool) -> None:
        if self._settings.monitoring_enabled == enabled:
            return
        self._settings = replace(self._settings, monitoring_enabled=enabled)
        self.settings_manager.write_settings(self._settings)

    # Watch list ---------------------------------------------------------

    def add_app(self, app: WatchedApp) -> bool:
        try:
            app = validate_app(app)
        except WatchListValidationError as exc:
            self._logger.warning("Rejected watch list entry {!r}: {}", app.app_id, exc)
            return False
        if any(existing.app_id == app.app_id for existing in self._watched):
            self._logger.debug("{} is already watched", app.app_id)
            return False
        self._watched.append(app)
        self._logger.info("Watching {} ({})", app.display_name, app.app_id)
        self._publish_watch_list()
        return True

    def remove_app(self, app_id: str) -> bool:
        remaining = [app for app in self._watched if app.app_id != app_id]
        if len(remaining) == len(self._watched):
            return False
        self._watched = remaining
        self._logger.info("Stopped watching {}", app_id)
        self._publish_watch_list()
        self._active.remove(app_id)
        return True

    def _publish_watch_list(self) -> None:
        self.store.save(self._watched)
        self._source.update_watch_list(self._watched)
        self.watchListChanged.emit(tuple(self._watched))

    # Activation ---------------------------------------------------------

    def toggle_active(self, app_id: str) -> None:
        """Manually mark or unmark a watched app as having a pending notification."""
        if not any(app.app_id == app_id for app in self._watched):
            self._logger.warning("Ignoring manual toggle for unknown app {}", app_id)
            return
        if self._active.contains(app_id):
            self._active.remove(app_id)
        else:
            self._active.insert(app_id)

    def clear_all(self) -> None:
        self._active.clear()

    def test_light(self) -> None:
        self._light.toggle_manual()

    @Slot(object)
    def _on_notification_detected(self, event: NotificationMatched) -> None:
        app = next((item for item in self._watched if item.app_id == event.app.app_id), None)
        if app is None:
            self._logger.debug("Ignoring notification for {}; it is no longer watched", event.app.app_id)
            return
        if self._active.insert(app.app_id):
            self._debug(f"Active: {app.display_name}")

    @Slot(object)
    def _on_app_activated(self, event: AppActivated) -> None:
        if event.app_id is not None and self._active.remove(event.app_id):
            self._debug(f"Cleared: {event.app_id}")

    @Slot(object)
    def _on_light_failed(self, error: LightError) -> None:
        self.statusMessage.emit(str(error))

    def _debug(self, message: str) -> None:
        self._logger.info(message)
        if self._settings.show_debug_logs:
            self.debugMessage.emit(message)
