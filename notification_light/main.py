"""
Entry point for the notification light application.
"""

from __future__ import annotations

import sys
import time
from pathlib import Path
from typing import Iterable, Tuple

from PySide6.QtCore import QDir, QLockFile
from PySide6.QtWidgets import QApplication

from core.app import AppCoordinator
from core.capture_device import QtCaptureBackend
from core.tray_menu import TrayMenu
from notification_light.notification_light import logger as app_logger

_LOGGER = app_logger.get_logger()
_LOCK_NAME = "notification-light-core.lock"


class _InstanceGuard:
    """Lock file guard to prevent concurrent instances."""

    def __init__(self, name: str) -> None:
        self._lock = QLockFile(str(Path(QDir.tempPath()) / name))

    def acquire(self) -> bool:
        return self._lock.tryLock(100)

    def release(self) -> None:
        if self._lock.isLocked():
            self._lock.unlock()


def _build_coordinator() -> AppCoordinator:
    from core.macos import MacAccessibilityBackend, MacWorkspaceBackend

    return AppCoordinator(
        accessibility=MacAccessibilityBackend(),
        workspace=MacWorkspaceBackend(),
        capture=QtCaptureBackend(),
    )


def _run_application_once(argv: Iterable[str]) -> Tuple[int, bool]:
    """Start the Qt application once and report whether shutdown was intentional."""
    app = QApplication.instance() or QApplication(list(argv))
    app.setQuitOnLastWindowClosed(False)
    coordinator = _build_coordinator()
    tray = TrayMenu(coordinator)
    tray.show()
    coordinator.start()
    try:
        exit_code = app.exec()
    finally:
        tray.hide()
        coordinator.close()
    return exit_code, coordinator.manual_shutdown_requested


def main() -> int:
    """Launch the application with single-instance + recovery safeguards."""
    if sys.platform != "darwin":
        _LOGGER.error("Notification monitoring requires the macOS accessibility APIs.")
        return 1

    guard = _InstanceGuard(_LOCK_NAME)
    if not guard.acquire():
        _LOGGER.debug("Notification Light instance already running; exiting silently.")
        return 0

    backoff_seconds = 2
    max_backoff = 30

    try:
        while True:
            try:
                exit_code, manual = _run_application_once(sys.argv)
            except Exception:  # pragma: no cover - crash guard
                _LOGGER.exception("Core app crashed; attempting automatic recovery.")
                exit_code = 1
                manual = False

            if manual:
                return exit_code

            _LOGGER.warning(
                "Core app exited unexpectedly (code={}). Restarting in {} seconds.",
                exit_code,
                backoff_seconds,
            )
            time.sleep(backoff_seconds)
            backoff_seconds = min(backoff_seconds * 2, max_backoff)
    finally:
        guard.release()


if __name__ == "__main__":
    raise SystemExit(main())
