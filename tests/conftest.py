from __future__ import annotations

import os
import tempfile
import threading
import time
from typing import Callable, Dict, List, Optional

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
os.environ.setdefault("NOTIFICATION_LIGHT_LOG_DIR", tempfile.mkdtemp(prefix="notification-light-logs-"))

import pytest
from PySide6.QtCore import QCoreApplication, QSettings, QThreadPool

from core.app import AppCoordinator
from core.backends import AuthorizationStatus, CaptureDevice
from core.light_controller import LightController
from core.settings import CoreSettingsManager
from core.watch_list_store import SettingsWatchListStore


class FakeAccessibility:
    def __init__(self, *, trusted: bool = True, pid: Optional[int] = 4242) -> None:
        self.trusted = trusted
        self.pid = pid
        self.prompts = 0
        self.looked_up: List[str] = []
        self.observers: Dict[object, Callable] = {}
        self.removed: List[object] = []

    def is_trusted(self) -> bool:
        return self.trusted

    def request_permission_prompt(self) -> bool:
        self.prompts += 1
        return self.trusted

    def find_process(self, bundle_id: str) -> Optional[int]:
        self.looked_up.append(bundle_id)
        return self.pid

    def observe_window_created(self, pid: int, callback: Callable) -> object:
        handle = object()
        self.observers[handle] = callback
        return handle

    def remove_observer(self, handle: object) -> None:
        self.observers.pop(handle)
        self.removed.append(handle)

    def emit_window(self, element) -> None:
        for callback in list(self.observers.values()):
            callback(element)


class FakeWorkspace:
    def __init__(self) -> None:
        self.observers: Dict[object, Callable] = {}

    def observe_app_activation(self, callback: Callable) -> object:
        handle = object()
        self.observers[handle] = callback
        return handle

    def remove_observer(self, handle: object) -> None:
        self.observers.pop(handle)

    def activate(self, bundle_id: Optional[str], pid: int = 501) -> None:
        for callback in list(self.observers.values()):
            callback(pid, bundle_id)


class FakeResource:
    def __init__(self) -> None:
        self.running = False
        self.closed = False
        self.ops: List[str] = []
        self.entered = 0
        self.gate: Optional[threading.Event] = None
        self.start_error: Optional[Exception] = None
        self.stop_error: Optional[Exception] = None

    def _block(self) -> None:
        self.entered += 1
        if self.gate is not None:
            self.gate.wait(5)

    def start(self) -> None:
        self._block()
        if self.start_error is not None:
            raise self.start_error
        self.ops.append("start")
        self.running = True

    def stop(self) -> None:
        self._block()
        if self.stop_error is not None:
            raise self.stop_error
        self.ops.append("stop")
        self.running = False

    def is_running(self) -> bool:
        return self.running

    def close(self) -> None:
        self.closed = True


class FakeCapture:
    def __init__(self) -> None:
        self.status = AuthorizationStatus.GRANTED
        self.devices = [CaptureDevice(device_id="cam-0", description="FaceTime HD Camera")]
        self.resource = FakeResource()
        self.opened: List[CaptureDevice] = []
        self.auth_callbacks: List[Callable[[bool], None]] = []

    def authorization_status(self) -> AuthorizationStatus:
        return self.status

    def request_authorization(self, callback: Callable[[bool], None]) -> None:
        self.auth_callbacks.append(callback)

    def enumerate_devices(self) -> List[CaptureDevice]:
        return list(self.devices)

    def open(self, device: CaptureDevice) -> FakeResource:
        self.opened.append(device)
        return self.resource


def _wait_until(predicate: Callable[[], bool], timeout: float = 3.0) -> bool:
    deadline = time.monotonic() + timeout
    while True:
        QCoreApplication.processEvents()
        if predicate():
            return True
        if time.monotonic() > deadline:
            return False
        time.sleep(0.005)


@pytest.fixture(scope="session")
def qt_app():
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


@pytest.fixture
def wait_until():
    return _wait_until


@pytest.fixture
def accessibility() -> FakeAccessibility:
    return FakeAccessibility()


@pytest.fixture
def workspace() -> FakeWorkspace:
    return FakeWorkspace()


@pytest.fixture
def capture() -> FakeCapture:
    return FakeCapture()


@pytest.fixture
def light(qt_app, capture):
    controller = LightController(capture)
    yield controller
    if capture.resource.gate is not None:
        capture.resource.gate.set()
    controller.shutdown()


@pytest.fixture
def qsettings(qt_app, tmp_path) -> QSettings:
    return QSettings(str(tmp_path / "settings.ini"), QSettings.Format.IniFormat)


@pytest.fixture
def match_pool():
    pool = QThreadPool()
    yield pool
    pool.waitForDone()


@pytest.fixture
def make_coordinator(qt_app, accessibility, workspace, capture, qsettings, match_pool):
    created: List[AppCoordinator] = []

    def _make() -> AppCoordinator:
        coordinator = AppCoordinator(
            accessibility=accessibility,
            workspace=workspace,
            capture=capture,
            store=SettingsWatchListStore(qsettings),
            settings_manager=CoreSettingsManager(qsettings),
            match_pool=match_pool,
        )
        created.append(coordinator)
        return coordinator

    yield _make
    if capture.resource.gate is not None:
        capture.resource.gate.set()
    for coordinator in created:
        coordinator.close()


@pytest.fixture
def coordinator(make_coordinator) -> AppCoordinator:
    return make_coordinator()
