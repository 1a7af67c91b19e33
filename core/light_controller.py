"""
Controller for the camera-based indicator light.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from PySide6.QtCore import QObject, Qt, QThread, Signal, Slot

from core.backends import AuthorizationStatus, CaptureBackend, CaptureDevice, CaptureResource
from core.errors import LightError, PermissionDenied, ResourceUnavailable
from notification_light.notification_light import logger as app_logger

_LOGGER = app_logger.get_logger()


@dataclass(frozen=True, slots=True)
class _Outcome:
    requested: bool
    running: bool
    error: Optional[LightError] = None


class _LightWorker(QObject):
    """Owns the capture resource and performs the blocking start/stop calls."""

    finished = Signal(object)

    def __init__(self, backend: CaptureBackend, preferred_device_id: Optional[str]) -> None:
        super().__init__()
        self._backend = backend
        self._preferred_device_id = preferred_device_id
        self._resource: Optional[CaptureResource] = None

    @Slot(bool)
    def apply(self, on: bool) -> None:
        try:
            if on:
                resource = self._ensure_resource()
                if not resource.is_running():
                    resource.start()
            elif self._resource is not None and self._resource.is_running():
                self._resource.stop()
        except LightError as exc:
            self.finished.emit(_Outcome(requested=on, running=self._running(), error=exc))
            return
        self.finished.emit(_Outcome(requested=on, running=self._running()))

    @Slot()
    def release(self) -> None:
        resource, self._resource = self._resource, None
        if resource is None:
            return
        try:
            if resource.is_running():
                resource.stop()
        except LightError as exc:
            _LOGGER.warning("Failed to stop capture device during shutdown: {}", exc)
        finally:
            resource.close()

    def _running(self) -> bool:
        return self._resource is not None and self._resource.is_running()

    def _ensure_resource(self) -> CaptureResource:
        if self._resource is not None:
            return self._resource

        status = self._backend.authorization_status()
        if status is AuthorizationStatus.DENIED:
            raise PermissionDenied(PermissionDenied.CAMERA, "Camera access denied.")
        if status is AuthorizationStatus.UNDETERMINED:
            raise PermissionDenied(PermissionDenied.CAMERA, "Camera access has not been granted yet.")

        device = self._select_device()
        _LOGGER.info("Opening capture device {} ({})", device.description, device.device_id)
        self._resource = self._backend.open(device)
        return self._resource

    def _select_device(self) -> CaptureDevice:
        devices = self._backend.enumerate_devices()
        if not devices:
            raise ResourceUnavailable("No camera found.")
        if self._preferred_device_id:
            for device in devices:
                if device.device_id == self._preferred_device_id:
                    return device
            _LOGGER.warning(
                "Preferred camera {} not present; falling back to {}",
                self._preferred_device_id,
                devices[0].description,
            )
        return devices[0]


class LightController(QObject):
    """
    Two-state machine (off/on) driving the capture device.

    Requests are accepted on the owning thread and executed on a dedicated
    worker thread. While an operation is in flight only the most recent
    request is remembered; it is applied once the device is free and only if it
    differs from the settled state.
    """

    stateChanged = Signal(bool)
    failed = Signal(object)
    _applyRequested = Signal(bool)
    _releaseRequested = Signal()

    def __init__(
        self,
        backend: CaptureBackend,
        *,
        preferred_device_id: Optional[str] = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._backend = backend
        self._is_on = False
        self._wanted = False
        self._in_flight: Optional[bool] = None
        self._pending: Optional[bool] = None
        self._closed = False

        self._thread = QThread()
        self._thread.setObjectName("light-worker")
        self._worker = _LightWorker(backend, preferred_device_id)
        self._worker.moveToThread(self._thread)
        self._applyRequested.connect(self._worker.apply)
        self._releaseRequested.connect(self._worker.release, Qt.ConnectionType.BlockingQueuedConnection)
        self._worker.finished.connect(self._on_finished)
        self._thread.finished.connect(self._worker.deleteLater)
        self._thread.start()

    @property
    def is_on(self) -> bool:
        return self._is_on

    @property
    def is_busy(self) -> bool:
        return self._in_flight is not None

    def request(self, on: bool) -> None:
        """Ask for the light to be on or off; the latest request wins."""
        if self._closed:
            return
        self._wanted = on
        if self._in_flight is not None:
            self._pending = on
            return
        if on == self._is_on:
            return
        self._dispatch(on)

    @Slot(bool)
    def follow_activation(self, now_empty: bool) -> None:
        self.request(not now_empty)

    def toggle_manual(self) -> None:
        """Flip the most recently desired state."""
        if self._pending is not None:
            latest = self._pending
        elif self._in_flight is not None:
            latest = self._in_flight
        else:
            latest = self._is_on
        _LOGGER.info("Manual light toggle requested; turning {}", "off" if latest else "on")
        self.request(not latest)

    def request_authorization(self) -> None:
        status = self._backend.authorization_status()
        if status is AuthorizationStatus.GRANTED:
            return
        if status is AuthorizationStatus.DENIED:
            _LOGGER.warning("Camera access denied; the light cannot be used.")
            self.failed.emit(PermissionDenied(PermissionDenied.CAMERA, "Camera access denied."))
            return
        _LOGGER.info("Requesting camera authorization.")
        self._backend.request_authorization(self._on_authorization)

    def shutdown(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._pending = None
        if self._thread.isRunning():
            self._releaseRequested.emit()
            self._thread.quit()
            self._thread.wait()
        if self._is_on:
            self._is_on = False
            self.stateChanged.emit(False)

    def _dispatch(self, on: bool) -> None:
        self._in_flight = on
        self._pending = None
        _LOGGER.debug("Turning light {}", "on" if on else "off")
        self._applyRequested.emit(on)

    @Slot(object)
    def _on_finished(self, outcome: _Outcome) -> None:
        self._in_flight = None
        if self._closed:
            return

        if outcome.error is not None:
            _LOGGER.error("Failed to turn light {}: {}", "on" if outcome.requested else "off", outcome.error)
            self.failed.emit(outcome.error)
        elif outcome.running != self._is_on:
            self._is_on = outcome.running
            _LOGGER.info("Light {}", "ON" if self._is_on else "OFF")
            self.stateChanged.emit(self._is_on)

        pending, self._pending = self._pending, None
        if pending is not None and pending != self._is_on:
            self._dispatch(pending)

    def _on_authorization(self, granted: bool) -> None:
        if not granted:
            _LOGGER.warning("Camera authorization was refused.")
            self.failed.emit(PermissionDenied(PermissionDenied.CAMERA, "Camera access denied."))
            return
        _LOGGER.info("Camera authorization granted.")
        if self._wanted and not self._is_on:
            self.request(True)
