"""
Camera access through Qt Multimedia.

Running the camera lights its hardware indicator, which is what the light
controller uses as the notification light.
"""

from __future__ import annotations

from typing import Callable, List

from PySide6.QtCore import QCameraPermission, QCoreApplication, QEventLoop, Qt, QTimer
from PySide6.QtMultimedia import QCamera, QCameraDevice, QMediaCaptureSession, QMediaDevices

from core.backends import AuthorizationStatus, CaptureDevice
from core.errors import ResourceUnavailable
from notification_light.notification_light import logger as app_logger

_LOGGER = app_logger.get_logger()

DEFAULT_SWITCH_TIMEOUT_MS = 5000

_STATUS_MAP = {
    Qt.PermissionStatus.Granted: AuthorizationStatus.GRANTED,
    Qt.PermissionStatus.Denied: AuthorizationStatus.DENIED,
    Qt.PermissionStatus.Undetermined: AuthorizationStatus.UNDETERMINED,
}


class QtCaptureResource:
    """
    A camera attached to its own capture session.

    Must be created and used on a single thread that runs a Qt event loop; the
    light controller's worker thread satisfies that.
    """

    def __init__(self, device: QCameraDevice, *, timeout_ms: int = DEFAULT_SWITCH_TIMEOUT_MS) -> None:
        self._timeout_ms = timeout_ms
        self._camera = QCamera(device)
        self._session = QMediaCaptureSession()
        self._session.setCamera(self._camera)

    def start(self) -> None:
        if self._camera.isActive():
            return
        self._camera.start()
        self._wait_for(active=True)

    def stop(self) -> None:
        if not self._camera.isActive():
            return
        self._camera.stop()
        self._wait_for(active=False)

    def is_running(self) -> bool:
        return self._camera.isActive()

    def close(self) -> None:
        self._session.setCamera(None)
        self._camera.deleteLater()
        self._session.deleteLater()

    def _wait_for(self, *, active: bool) -> None:
        if self._camera.isActive() != active and self._camera.error() == QCamera.Error.NoError:
            loop = QEventLoop()
            timer = QTimer()
            timer.setSingleShot(True)
            timer.timeout.connect(loop.quit)
            self._camera.activeChanged.connect(loop.quit)
            self._camera.errorOccurred.connect(loop.quit)
            timer.start(self._timeout_ms)
            loop.exec()
            timer.stop()
            self._camera.activeChanged.disconnect(loop.quit)
            self._camera.errorOccurred.disconnect(loop.quit)

        if self._camera.error() != QCamera.Error.NoError:
            raise ResourceUnavailable(f"Camera error: {self._camera.errorString()}")
        if self._camera.isActive() != active:
            raise ResourceUnavailable(
                f"Camera did not {'start' if active else 'stop'} within {self._timeout_ms} ms."
            )


class QtCaptureBackend:
    """Enumerates and opens cameras, and checks camera authorization."""

    def __init__(self, *, timeout_ms: int = DEFAULT_SWITCH_TIMEOUT_MS) -> None:
        self._timeout_ms = timeout_ms

    def authorization_status(self) -> AuthorizationStatus:
        app = QCoreApplication.instance()
        if app is None:
            return AuthorizationStatus.UNDETERMINED
        return _STATUS_MAP.get(app.checkPermission(QCameraPermission()), AuthorizationStatus.UNDETERMINED)

    def request_authorization(self, callback: Callable[[bool], None]) -> None:
        app = QCoreApplication.instance()
        if app is None:
            callback(False)
            return

        def _on_result(permission) -> None:
            callback(permission.status() == Qt.PermissionStatus.Granted)

        app.requestPermission(QCameraPermission(), app, _on_result)

    def enumerate_devices(self) -> List[CaptureDevice]:
        return [_to_capture_device(device) for device in QMediaDevices.videoInputs()]

    def open(self, device: CaptureDevice) -> QtCaptureResource:
        for candidate in QMediaDevices.videoInputs():
            if _to_capture_device(candidate).device_id == device.device_id:
                return QtCaptureResource(candidate, timeout_ms=self._timeout_ms)
        raise ResourceUnavailable(f"Camera {device.description} is no longer connected.")


def _to_capture_device(device: QCameraDevice) -> CaptureDevice:
    raw_id = bytes(device.id().data()).decode("utf-8", errors="replace")
    return CaptureDevice(device_id=raw_id, description=device.description())
