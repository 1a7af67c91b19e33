"""
System tray menu exposing the coordinator's host-facing controls.
"""

from __future__ import annotations

from PySide6.QtCore import QObject, QUrl
from PySide6.QtGui import QAction, QDesktopServices
from PySide6.QtWidgets import QApplication, QMenu, QStyle, QSystemTrayIcon

from core.app import APP_NAME, APP_VERSION, AppCoordinator

ACCESSIBILITY_SETTINGS_URL = "x-apple.systempreferences:com.apple.preference.security?Privacy_Accessibility"


class TrayMenu(QObject):
    def __init__(self, coordinator: AppCoordinator, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._coordinator = coordinator

        self._tray = QSystemTrayIcon(self)
        self._tray.setIcon(QApplication.style().standardIcon(QStyle.StandardPixmap.SP_ComputerIcon))
        self._tray.setToolTip(f"{APP_NAME} v{APP_VERSION}")

        menu = QMenu()
        self._status_action = QAction("Light OFF", menu)
        self._status_action.setEnabled(False)
        self._monitor_action = QAction("Monitoring", menu)
        self._monitor_action.setCheckable(True)
        self._test_action = QAction("Test Light", menu)
        self._clear_action = QAction("Clear All", menu)
        self._permission_action = QAction("Open Accessibility Settings", menu)
        exit_action = QAction("Exit", menu)

        menu.addAction(self._status_action)
        menu.addSeparator()
        menu.addAction(self._monitor_action)
        menu.addAction(self._test_action)
        menu.addAction(self._clear_action)
        menu.addSeparator()
        menu.addAction(self._permission_action)
        menu.addAction(exit_action)
        self._menu = menu
        self._tray.setContextMenu(menu)

        self._monitor_action.triggered.connect(self._on_monitor_toggled)
        self._test_action.triggered.connect(coordinator.test_light)
        self._clear_action.triggered.connect(coordinator.clear_all)
        self._permission_action.triggered.connect(self._open_accessibility_settings)
        exit_action.triggered.connect(coordinator.shutdown)

        coordinator.monitoringChanged.connect(self._monitor_action.setChecked)
        coordinator.lightChanged.connect(self._on_light_changed)
        coordinator.activeAppsChanged.connect(self._on_active_changed)
        coordinator.statusMessage.connect(self._on_status)
        coordinator.debugMessage.connect(self._tray.setToolTip)

        self._monitor_action.setChecked(coordinator.is_monitoring)
        self._clear_action.setEnabled(bool(coordinator.active_app_ids))
        self._permission_action.setVisible(not coordinator.accessibility_granted)

    def show(self) -> None:
        self._tray.show()

    def hide(self) -> None:
        self._tray.hide()

    def _on_monitor_toggled(self, checked: bool) -> None:
        started = self._coordinator.set_monitoring(checked)
        self._monitor_action.setChecked(started)
        self._permission_action.setVisible(not self._coordinator.accessibility_granted)

    def _on_light_changed(self, on: bool) -> None:
        self._status_action.setText("Light ON" if on else "Light OFF")
        self._test_action.setText("Turn Off Light" if on else "Test Light")

    def _on_active_changed(self, active_ids: frozenset) -> None:
        self._clear_action.setEnabled(bool(active_ids))

    def _on_status(self, message: str) -> None:
        self._tray.showMessage(APP_NAME, message, QSystemTrayIcon.MessageIcon.Information, 3000)

    def _open_accessibility_settings(self) -> None:
        QDesktopServices.openUrl(QUrl(ACCESSIBILITY_SETTINGS_URL))
